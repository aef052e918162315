# -*- coding: utf-8 -*-

import copy
from functools import partial
from typing import Any, Callable, Dict, List, Optional, Union

from . import Action, ActionKind, Params, ResourceAction, payload, relationship_step
from ..document import Document, Form
from ..filters import Filter
from ..registry import Registry
from ..resource import Relationship, Resource
from ..responses import ActionResponse
from ..query import Create, Join
from ..schema import Schema, validate, with_default
from ..util import filterable


class CreateItem(ResourceAction):
    """
    Creates an item from the request payload, eg. `POST /tasks`

    Parents may be given as nested objects instead of keys, the source creates them first:

        {"title": "...", "owner": {"username": "...", "department": {"name": "..."}}}
    """

    kind = ActionKind.CREATE_ITEM
    method = "POST"

    def __init__(self, resource: Union[Resource, Dict[str, Any]]) -> None:
        super().__init__(resource)
        self.path = self.resource.name

        self.filters = [
            Filter(ActionKind.ROOT, "decorate", self._form_on_root),
            Filter(ActionKind.READ_COLLECTION, "decorate", self._form_on_collection, resource=self.resource.name),
            [Filter(ActionKind.READ_ITEM, "decorate", partial(self._form_on_parent, parent), resource=parent.name) for parent in self.resource.belongs_to],
            [
                Filter([ActionKind.CREATE_ITEM, ActionKind.UPDATE_ITEM], "joins", partial(self._join_into_child, child), resource=child.name)
                for child in self.resource.has
            ],
            [
                Filter([ActionKind.CREATE_ITEM, ActionKind.UPDATE_ITEM], "schema", partial(self._nest_into_child, child), resource=child.name)
                for child in self.resource.has
            ],
        ]

    async def handle(self, params: Params, request: Any = None) -> ActionResponse:
        """
        Validate the payload and create the item

        :return: a 201 response, `item` holds the keys of the created item
        """
        schema = await self.schema(params, request)
        await validate(payload(request), schema)

        created = await self.resource.source.create(await self.query(params, request))
        return ActionResponse(201, item=created)

    @filterable
    async def schema(self, params: Params, request: Any = None) -> Schema:
        return copy.deepcopy(self.resource.schema)

    @filterable
    async def query(self, params: Params, request: Any = None) -> Create:
        return Create(
            source=self.resource.name,
            returning=list(self.resource.primary_keys),
            schema=await self.schema(params, request),
            data=payload(request),
            joins=await self.joins(params, request),
        )

    @filterable
    async def joins(self, params: Params, request: Any = None) -> List[Join]:
        return [Join(parent.name, [parent.from_], parent.from_, parent.to) for parent in self.resource.belongs_to]

    def _form(self, schema: Schema) -> Form:
        return Form(self.resource.name, self.path, name="create", method=self.method, schema=schema)

    def _form_on_root(self, next: Callable, root: Action, registry: Registry) -> Callable:
        async def decorate(doc: Document, params: Optional[Params] = None, request: Any = None) -> Document:
            doc = await next(doc, params, request)
            doc.forms.append(self._form(await self.schema(params or {}, request)))
            return doc

        return decorate

    def _form_on_collection(self, next: Callable, collection: Action, registry: Registry) -> Callable:
        async def decorate(doc: Document, params: Optional[Params] = None, request: Any = None) -> Document:
            doc = await next(doc, params, request)
            doc.forms.append(self._form(await self.schema(params or {}, request)))
            return doc

        return decorate

    def _form_on_parent(self, parent: Relationship, next: Callable, reader: Action, registry: Registry) -> Callable:
        """
        Parent items get a create form with their key filled in as the default foreign key
        """

        async def decorate(doc: Document, params: Optional[Params] = None, request: Any = None) -> Document:
            doc = await next(doc, params, request)
            schema = await self.schema(params or {}, request)
            doc.forms.append(self._form(with_default(schema, {parent.from_: doc.properties.get(parent.to)})))
            return doc

        return decorate

    def _join_into_child(self, child: Relationship, next: Callable, writer: Action, registry: Registry) -> Callable:
        """
        Children may embed this resource (and its parents) to create them along with the child
        """

        async def joins(params: Params, request: Any = None) -> List[Join]:
            result = await next(params, request)
            with relationship_step() as descend:
                if descend:
                    own = await self.joins(params, request)
                    result = result + [join.prefixed(child.to) for join in own]
            return result

        return joins

    def _nest_into_child(self, child: Relationship, next: Callable, writer: Action, registry: Registry) -> Callable:
        """
        The foreign key of children accepts either a key or an object of this resource
        """

        async def schema(params: Params, request: Any = None) -> Schema:
            result = await next(params, request)
            with relationship_step() as descend:
                if not descend:
                    return result
                properties = result.get("properties", {})
                prop = properties.get(child.to)
                # undeclared foreign keys aren't validated at all
                if isinstance(prop, dict) and "oneOf" not in prop:
                    own = await self.schema(params, request)
                    own.pop("default", None)
                    properties[child.to] = {"oneOf": [prop, own]}
            return result

        return schema
