# -*- coding: utf-8 -*-

"""Actions.

An Action implements the logic of one HTTP method on one path. When a request is routed to an action,
`handle(params, request)` produces the raw result, a `Document` is built from it and
`decorate(doc, params, request)` enriches it before it is rendered. `handle` may return a Starlette
`Response` instead when it needs full control over the response.

Actions contribute `filters` that wrap the filterable methods of other actions registered with the same
registry; this is how the built-in actions link to each other without knowing about each other.
"""

from contextlib import contextmanager
from contextvars import ContextVar
from enum import Enum
from typing import Any, Dict, Iterator, List, Optional, Sequence, Union

from ..config import get_config
from ..document import Document
from ..filters import Filter
from ..resource import Resource, initialize
from ..util import Filterable, filterable

Params = Dict[str, Any]


class ActionKind(str, Enum):
    ROOT = "root"
    READ_ITEM = "read_item"
    READ_COLLECTION = "read_collection"
    CREATE_ITEM = "create_item"
    UPDATE_ITEM = "update_item"
    DELETE_ITEM = "delete_item"
    CREATE_TOKEN = "create_token"


class Action(Filterable):
    """
    Base class of all actions

    :param kind: discriminator used by filters to find this action
    :param method: the HTTP method this action responds to
    :param path: the path (URI template) this action responds to, the plugin prepends its root when registering
    :param auth: "required", "optional" or False, how the security plugin treats requests to this action
    """

    kind: str = ""
    method: str = "GET"
    path: str = ""
    auth: Union[str, bool] = "required"
    resource: Optional[Resource] = None
    filters: Sequence[Union[Filter, Sequence[Filter]]] = ()
    register: Any = None

    def __repr__(self) -> str:
        return f"<{type(self).__name__} {self.method}:{self.path}>"

    @property
    def resource_name(self) -> Optional[str]:
        return self.resource.name if self.resource is not None else None

    @filterable
    async def handle(self, params: Params, request: Any = None) -> Any:
        raise NotImplementedError

    @filterable
    async def decorate(self, doc: Document, params: Optional[Params] = None, request: Any = None) -> Document:
        return doc


class ResourceAction(Action):
    """
    An action that is bound to one Resource. The resource source is registered along with the action.
    """

    def __init__(self, resource: Union[Resource, Dict[str, Any]], require_keys: bool = True) -> None:
        self.resource = initialize(resource, require_keys)
        self.register = self.resource.source


def item_path(resource: Resource) -> str:
    """
    :return: the path of a single item, eg. "tasks/{id}"
    """
    keys = ["{" + key + "}" for key in resource.primary_keys]
    return "/".join([resource.name] + keys)


def payload(request: Any) -> Any:
    """
    :return: the parsed request body, the plugin stores it on `request.state.payload`
    """
    return getattr(getattr(request, "state", None), "payload", None)


_DEPTH: ContextVar[int] = ContextVar("prism_relationship_depth", default=0)


@contextmanager
def relationship_step() -> Iterator[bool]:
    """
    Track how deep the current relationship walk is. Yields False once MAX_RELATIONSHIP_DEPTH is reached,
    the caller must not descend any further then (resource graphs may be cyclic).
    """
    depth = _DEPTH.get()
    if depth >= int(get_config("MAX_RELATIONSHIP_DEPTH")):
        yield False
        return
    token = _DEPTH.set(depth + 1)
    try:
        yield True
    finally:
        _DEPTH.reset(token)


from .root import Root  # noqa: E402
from .read_item import ReadItem  # noqa: E402
from .read_collection import ReadCollection  # noqa: E402
from .create_item import CreateItem  # noqa: E402
from .update_item import UpdateItem  # noqa: E402
from .delete_item import DeleteItem  # noqa: E402


def resource_actions(resource: Union[Resource, Dict[str, Any]]) -> List[Action]:
    """
    :return: the five built-in actions for `resource`
    """
    resource = initialize(resource)
    return [ReadItem(resource), ReadCollection(resource), CreateItem(resource), UpdateItem(resource), DeleteItem(resource)]


__all__ = (
    "Action",
    "ActionKind",
    "Params",
    "ResourceAction",
    "Root",
    "ReadItem",
    "ReadCollection",
    "CreateItem",
    "UpdateItem",
    "DeleteItem",
    "resource_actions",
    "item_path",
    "payload",
    "relationship_step",
)
