# -*- coding: utf-8 -*-

import copy
from typing import Any, Callable, Dict, List, Optional, Union

from . import Action, ActionKind, Params, ResourceAction, item_path, payload
from ..document import Document, Form
from ..errors import NotFoundError
from ..filters import Filter
from ..registry import Registry
from ..resource import Resource
from ..responses import ActionResponse
from ..query import Clause, Condition, Join, Update
from ..schema import Schema, pick_allowed_values, validate
from ..source import Item
from ..util import filterable


class UpdateItem(ResourceAction):
    """
    Partially updates an item, eg. `PATCH /tasks/{id}`

    No field is required and only the fields declared in the schema (that aren't `readOnly`) are written.
    """

    kind = ActionKind.UPDATE_ITEM
    method = "PATCH"

    def __init__(self, resource: Union[Resource, Dict[str, Any]]) -> None:
        super().__init__(resource)
        self.path = item_path(self.resource)

        self.filters = [
            Filter(ActionKind.ROOT, "decorate", self._form_on_root),
            Filter(ActionKind.READ_ITEM, "decorate", self._form_on_item, resource=self.resource.name),
        ]

    async def handle(self, params: Params, request: Any = None) -> ActionResponse:
        schema = await self.schema(params, request)
        await validate(payload(request), schema)

        updated = await self.update_item(await self.query(params, request), params, request)
        if updated is None:
            raise NotFoundError(f"{self.resource.name} {params}")
        return ActionResponse(204, item=updated)

    @filterable
    async def schema(self, params: Params, request: Any = None) -> Schema:
        schema = copy.deepcopy(self.resource.schema)
        schema["required"] = []
        return schema

    @filterable
    async def query(self, params: Params, request: Any = None) -> Update:
        schema = await self.schema(params, request)
        return Update(
            source=self.resource.name,
            returning=list(self.resource.primary_keys),
            schema=schema,
            data=pick_allowed_values(schema, payload(request)),
            conditions=await self.conditions(params, request),
            joins=await self.joins(params, request),
        )

    @filterable
    async def conditions(self, params: Params, request: Any = None) -> List[Clause]:
        return [Condition(key, params.get(key)) for key in self.resource.primary_keys]

    @filterable
    async def joins(self, params: Params, request: Any = None) -> List[Join]:
        return [Join(parent.name, [parent.from_], parent.from_, parent.to) for parent in self.resource.belongs_to]

    @filterable
    async def update_item(self, query: Update, params: Params, request: Any = None) -> Optional[Item]:
        return await self.resource.source.update(query)

    def _form_on_root(self, next: Callable, root: Action, registry: Registry) -> Callable:
        async def decorate(doc: Document, params: Optional[Params] = None, request: Any = None) -> Document:
            doc = await next(doc, params, request)
            schema = await self.schema(params or {}, request)
            doc.forms.append(Form(self.resource.name, self.path, name="update", method=self.method, schema=schema))
            return doc

        return decorate

    def _form_on_item(self, next: Callable, reader: Action, registry: Registry) -> Callable:
        """
        Items get an update form, its defaults are the current values
        """

        async def decorate(doc: Document, params: Optional[Params] = None, request: Any = None) -> Document:
            doc = await next(doc, params, request)
            schema = await self.schema(params or {}, request)
            # shared with the document, filters applied after this one change both
            schema["default"] = doc.properties
            doc.forms.append(Form("self", self.path, name="update", method=self.method, params=doc.properties, schema=schema))
            return doc

        return decorate
