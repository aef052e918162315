# -*- coding: utf-8 -*-

import math
from functools import partial
from typing import Any, Callable, Dict, List, Mapping, Optional, Union

from . import Action, ActionKind, Params, ResourceAction, relationship_step
from ..config import config_value
from ..document import Document, Embed, Link
from ..errors import BadRequestError
from ..filters import Filter
from ..registry import Registry
from ..resource import Relationship, Resource
from ..query import Clause, Condition, Join, Order, Page, Read
from ..schema import Schema
from ..util import filterable

DIRECTIONS = ("asc", "desc")


def _pairs(params: Params, name: str) -> Dict[str, Any]:
    value = params.get(name)
    if value is None:
        return {}
    if not isinstance(value, Mapping):
        raise BadRequestError(f'"{name}" must be given as field,value pairs')
    return dict(value)


class ReadCollection(ResourceAction):
    """
    Reads a page of items, eg. `GET /tasks?where=owner,1&order=title,desc&page=2`

    :param page_size: number of items per page, defaults to the PAGE_SIZE setting
    """

    kind = ActionKind.READ_COLLECTION
    method = "GET"

    def __init__(self, resource: Union[Resource, Dict[str, Any]], page_size: Optional[int] = None) -> None:
        super().__init__(resource, require_keys=False)
        self.path = f"{self.resource.name}{{?where,page,order}}"
        self.page_size = int(config_value(page_size, "PAGE_SIZE"))

        self.filters = [
            Filter(ActionKind.ROOT, "decorate", self._link_from_root),
            [Filter(ActionKind.READ_COLLECTION, "joins", partial(self._join_into_child, child), resource=child.name) for child in self.resource.has],
            [Filter(ActionKind.READ_ITEM, "decorate", partial(self._link_from_parent, parent), resource=parent.name) for parent in self.resource.belongs_to],
        ]

    async def handle(self, params: Params, request: Any = None) -> Dict[str, Any]:
        return await self.resource.source.read(await self.query(params, request))

    @filterable
    async def query(self, params: Params, request: Any = None) -> Read:
        return Read(
            source=self.resource.name,
            returns="collection",
            schema=await self.schema(params, request),
            joins=await self.joins(params, request),
            conditions=await self.conditions(params, request),
            order=await self.order(params, request),
            page=await self.page(params, request),
        )

    @filterable
    async def schema(self, params: Params, request: Any = None) -> Schema:
        return self.resource.schema

    @filterable
    async def joins(self, params: Params, request: Any = None) -> List[Join]:
        return [Join(parent.name, [self.resource.name, parent.name], parent.from_, parent.to) for parent in self.resource.belongs_to]

    @filterable
    async def conditions(self, params: Params, request: Any = None) -> List[Clause]:
        return [Condition(field, value) for field, value in _pairs(params, "where").items()]

    @filterable
    async def order(self, params: Params, request: Any = None) -> List[Order]:
        pairs = _pairs(params, "order")
        if not pairs:
            return [Order(key, "asc") for key in self.resource.primary_keys]

        result = []
        for field, direction in pairs.items():
            direction = str(direction).lower()
            if direction not in DIRECTIONS:
                raise BadRequestError(f'Invalid order direction "{direction}" for "{field}"')
            result.append(Order(field, direction))
        return result

    @filterable
    async def page(self, params: Params, request: Any = None) -> Page:
        return Page(self.current_page(params), self.page_size)

    def current_page(self, params: Optional[Params]) -> int:
        value = (params or {}).get("page")
        if value is None or value == "":
            return 1
        try:
            number = int(value)
        except (TypeError, ValueError):
            raise BadRequestError(f'Invalid page "{value}"')
        if number < 1:
            raise BadRequestError(f'Invalid page "{value}"')
        return number

    async def decorate(self, doc: Document, params: Optional[Params] = None, request: Any = None) -> Document:
        """
        Embed the items and add the pagination links
        """
        items = doc.properties.pop("items", None) or []
        for item in items:
            doc.embedded.append(await self.embed_item(item, params, request))
        doc.links.extend(self.pagination(doc.properties.get("count", 0), params))
        return doc

    @filterable
    async def embed_item(self, item: Dict[str, Any], params: Optional[Params] = None, request: Any = None) -> Embed:
        document = Document(item)
        for parent in self.resource.belongs_to:
            if parent.name not in item:
                continue
            data = item.pop(parent.name)
            if isinstance(data, dict):
                document.embedded.append(Embed(parent.name, Document(data)))
        return Embed(self.resource.name, document, always_array=True)

    def pagination(self, count: int, params: Optional[Params]) -> List[Link]:
        """
        :return: first/prev/next/last links, none when all items fit on one page
        """
        if count < self.page_size:
            return []

        params = params or {}
        current = self.current_page(params)
        last = math.ceil(count / self.page_size)
        query_params = {name: params[name] for name in ("where", "order") if params.get(name)}

        def link(rel: str, page: int) -> Link:
            return Link(rel, self.path, params={**query_params, "page": page})

        links = []
        if current > 1:
            links += [link("first", 1), link("prev", current - 1)]
        if current < last:
            links += [link("next", current + 1), link("last", last)]
        return links

    def _link_from_root(self, next: Callable, root: Action, registry: Registry) -> Callable:
        async def decorate(doc: Document, params: Optional[Params] = None, request: Any = None) -> Document:
            doc = await next(doc, params, request)
            doc.links.append(Link(self.resource.name, self.path, name="collection"))
            return doc

        return decorate

    def _join_into_child(self, child: Relationship, next: Callable, collection: Action, registry: Registry) -> Callable:
        """
        Items of child collections embed this resource, along with its own parents
        """

        async def joins(params: Params, request: Any = None) -> List[Join]:
            result = await next(params, request)
            with relationship_step() as descend:
                if descend:
                    own = await self.joins(params, request)
                    result = result + [join.prefixed(child.name) for join in own]
            return result

        return joins

    def _link_from_parent(self, parent: Relationship, next: Callable, reader: Action, registry: Registry) -> Callable:
        """
        Parent items link to the collection of their children
        """

        async def decorate(doc: Document, params: Optional[Params] = None, request: Any = None) -> Document:
            doc = await next(doc, params, request)
            doc.links.append(
                Link(self.resource.name, self.path, name="collection", params={"where": {parent.from_: doc.properties.get(parent.to)}})
            )
            return doc

        return decorate
