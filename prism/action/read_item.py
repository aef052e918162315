# -*- coding: utf-8 -*-

from functools import partial
from typing import Any, Callable, Dict, List, Optional, Union

from . import Action, ActionKind, Params, ResourceAction, item_path, relationship_step
from ..document import Document, Embed, Link, fill
from ..errors import NotFoundError
from ..filters import Filter
from ..registry import Registry
from ..resource import Relationship, Resource
from ..query import Clause, Condition, Join, Read
from ..schema import Schema
from ..util import filterable


class ReadItem(ResourceAction):
    """
    Reads a single item, eg. `GET /tasks/{id}`

    Parent rows (`belongs_to`) are joined and embedded in the document.
    """

    kind = ActionKind.READ_ITEM
    method = "GET"

    def __init__(self, resource: Union[Resource, Dict[str, Any]]) -> None:
        super().__init__(resource)
        self.path = item_path(self.resource)

        self.filters = [
            Filter(ActionKind.ROOT, "decorate", self._link_from_root),
            Filter(ActionKind.CREATE_ITEM, "handle", self._set_location, resource=self.resource.name),
            Filter(ActionKind.READ_COLLECTION, "embed_item", self._link_embedded_item, resource=self.resource.name),
            [Filter(ActionKind.READ_ITEM, "joins", partial(self._join_into_child, child), resource=child.name) for child in self.resource.has],
            [Filter(ActionKind.READ_ITEM, "decorate", partial(self._decorate_in_child, child), resource=child.name) for child in self.resource.has],
        ]

    async def handle(self, params: Params, request: Any = None) -> Dict[str, Any]:
        item = await self.resource.source.read(await self.query(params, request))
        if item is None:
            raise NotFoundError(f"{self.resource.name} {params}")
        return item

    @filterable
    async def query(self, params: Params, request: Any = None) -> Read:
        return Read(
            source=self.resource.name,
            returns="item",
            schema=await self.schema(params, request),
            joins=await self.joins(params, request),
            conditions=await self.conditions(params, request),
        )

    @filterable
    async def schema(self, params: Params, request: Any = None) -> Schema:
        return self.resource.schema

    @filterable
    async def conditions(self, params: Params, request: Any = None) -> List[Clause]:
        return [Condition(key, params.get(key)) for key in self.resource.primary_keys]

    @filterable
    async def joins(self, params: Params, request: Any = None) -> List[Join]:
        return [Join(parent.name, [self.resource.name, parent.name], parent.from_, parent.to) for parent in self.resource.belongs_to]

    async def decorate(self, doc: Document, params: Optional[Params] = None, request: Any = None) -> Document:
        """
        Move the joined parent rows from the properties to embedded documents
        """
        for parent in self.resource.belongs_to:
            if parent.name not in doc.properties:
                continue
            data = doc.properties[parent.name]
            if isinstance(data, dict):
                del doc.properties[parent.name]
                doc.embedded.append(Embed(parent.name, Document(data)))
            elif data is None:
                del doc.properties[parent.name]
        return doc

    def _link_from_root(self, next: Callable, root: Action, registry: Registry) -> Callable:
        async def decorate(doc: Document, params: Optional[Params] = None, request: Any = None) -> Document:
            doc = await next(doc, params, request)
            doc.links.append(Link(self.resource.name, self.path))
            return doc

        return decorate

    def _set_location(self, next: Callable, create: Action, registry: Registry) -> Callable:
        """
        Point the Location header of created items to this action
        """

        async def handle(params: Params, request: Any = None) -> Any:
            response = await next(params, request)
            item = getattr(response, "item", None)
            if isinstance(item, dict):
                response.headers["Location"] = fill(self.path, item)
            return response

        return handle

    def _link_embedded_item(self, next: Callable, collection: Action, registry: Registry) -> Callable:
        """
        Items embedded in a collection get a link to this action and are decorated like read items
        """

        async def embed_item(item: Dict[str, Any], params: Optional[Params] = None, request: Any = None) -> Embed:
            embed = await next(item, params, request)
            if embed.rel == self.resource.name:
                embed.document.links.append(Link("self", self.path, params=embed.document.properties))
                await self.decorate(embed.document, params, request)
            return embed

        return embed_item

    def _join_into_child(self, child: Relationship, next: Callable, reader: Action, registry: Registry) -> Callable:
        """
        Children read their parent through this resource, so they also join the parents of this resource
        """

        async def joins(params: Params, request: Any = None) -> List[Join]:
            result = await next(params, request)
            with relationship_step() as descend:
                if descend:
                    own = await self.joins(params, request)
                    result = result + [join.prefixed(child.name) for join in own]
            return result

        return joins

    def _decorate_in_child(self, child: Relationship, next: Callable, reader: Action, registry: Registry) -> Callable:
        """
        Decorate this resource where it is embedded as the parent of a child item
        """

        async def decorate(doc: Document, params: Optional[Params] = None, request: Any = None) -> Document:
            doc = await next(doc, params, request)
            for embed in doc.embedded:
                if embed.rel != self.resource.name or not embed.document.properties:
                    continue
                embed.document.links.append(Link("self", self.path, params=embed.document.properties))
                await self.decorate(embed.document, params, request)
            return doc

        return decorate
