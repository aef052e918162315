# -*- coding: utf-8 -*-

"""HAL documents.

A Document holds the properties of a resource together with the links, forms and embedded documents
that the actions and their filters attach to it. `Document.render` turns it into a HAL+JSON tree:

    {
        "id": 1,
        "title": "...",
        "_links": {"self": {"href": "/tasks/1"}},
        "_forms": {"tasks": {"href": "/tasks/1", "name": "delete", "method": "DELETE"}},
        "_embedded": {"users": {...}}
    }
"""

import copy
from dataclasses import dataclass
from typing import Any, Dict, List, Optional, Union

from uritemplate import expand

Properties = Dict[str, Any]


@dataclass
class Link:
    """
    :param rel: key under `_links` where the link is rendered, multiple links with the same rel become a list
    :param href: URI or URI template
    :param name: disambiguates multiple links with the same rel
    :param params: values used to fill `href` when it is a template
    :param public: render for requests that aren't authenticated
    :param private: set to False to hide from authenticated requests
    """

    rel: str
    href: str
    name: Optional[str] = None
    params: Optional[Dict[str, Any]] = None
    public: Optional[bool] = None
    private: Optional[bool] = None


@dataclass
class Form(Link):
    """
    A form control that may be used to mutate documents
    """

    method: str = "GET"
    schema: Optional[Dict[str, Any]] = None


@dataclass
class Embed:
    """
    A document embedded within a document, rendered under `_embedded[rel]`
    """

    rel: str
    document: "Document"
    always_array: bool = False


class Document:
    """
    Container for Properties, Links, Forms and Embeds
    """

    def __init__(self, properties: Optional[Properties] = None) -> None:
        self.properties: Properties = properties if properties is not None else {}
        self.embedded: List[Embed] = []
        self.links: List[Link] = []
        self.forms: List[Form] = []

    def __repr__(self) -> str:
        return f"<Document {self.properties!r}>"

    def render(self, params: Optional[Dict[str, Any]] = None, request: Any = None) -> Properties:
        """
        Create the HAL representation of this document, embedded documents are rendered recursively.
        `properties` aren't modified.

        :param params: the request parameters
        :param request: the request, its authentication state determines which links and forms are visible
        :return: the HAL document
        """
        result = copy.deepcopy(self.properties)

        for embed in self.embedded:
            upsert(result, "_embedded", embed.rel, embed.document.render(params, request), embed.always_array)

        for link in self.links:
            if is_visible(request, link):
                upsert(result, "_links", link.rel, render_link(link))

        for form in self.forms:
            if is_visible(request, form):
                upsert(result, "_forms", form.rel, render_form(form))

        return result


def is_authenticated(request: Any) -> bool:
    """
    A request is authenticated unless the security plugin recorded an authentication error for it.
    Without a security plugin every request counts as authenticated.
    """
    if request is None:
        return True
    state = getattr(request, "state", None)
    return getattr(state, "auth_error", None) is None


def is_visible(request: Any, item: Link) -> bool:
    """
    Determine if a Link or Form is visible to `request`
    """
    if is_authenticated(request):
        return item.private is not False
    return item.public is True


def _stringify(value: Any) -> Any:
    if isinstance(value, bool):
        return "true" if value else "false"
    if isinstance(value, dict):
        return {str(key): _stringify(val) for key, val in value.items()}
    if isinstance(value, (list, tuple)):
        return [_stringify(val) for val in value]
    if value is None:
        return None
    return str(value)


def fill(href: str, params: Dict[str, Any]) -> str:
    """
    Expand the URI template `href` with `params`, parameters that aren't set are left out
    """
    variables = {key: _stringify(value) for key, value in params.items() if value is not None}
    return expand(href, variables)


def render_link(link: Link) -> Dict[str, Any]:
    """
    Transform a Link into its rendered equivalent. If `link.href` is a URI template, it is filled with
    `link.params`. Without params the template is passed on as is and marked `templated`.
    """
    result: Dict[str, Any] = {"href": link.href}
    if link.name is not None:
        result["name"] = link.name

    if "{" not in link.href:
        return result

    if link.params is None:
        result["templated"] = True
        return result

    result["href"] = fill(link.href, link.params)
    return result


def render_form(form: Form) -> Dict[str, Any]:
    result = render_link(form)
    result["method"] = form.method
    if form.schema is not None:
        result["schema"] = form.schema
    return result


def upsert(container: Properties, key: str, name: str, value: Any, always_array: bool = False) -> None:
    """
    Write `value` to `container[key][name]`

    - If `container[key][name]` doesn't exist, it is set to `value` (wrapped in a list if `always_array`)
    - If it exists and is a list, `value` is appended
    - If it exists and isn't a list, it is converted to a list and `value` is appended
    """
    section: Dict[str, Union[Any, List[Any]]] = container.setdefault(key, {})

    if name not in section:
        section[name] = [value] if always_array else value
        return

    if isinstance(section[name], list):
        section[name].append(value)
        return

    section[name] = [section[name], value]
