# -*- coding: utf-8 -*-

from typing import Any, Callable, Dict, List, Optional, Union

from . import Action, ActionKind, Params, ResourceAction, item_path
from ..document import Document, Form
from ..errors import NotFoundError
from ..filters import Filter
from ..registry import Registry
from ..resource import Resource
from ..responses import ActionResponse
from ..query import Clause, Condition, Delete
from ..util import filterable


class DeleteItem(ResourceAction):
    """
    Deletes an item, eg. `DELETE /tasks/{id}`
    """

    kind = ActionKind.DELETE_ITEM
    method = "DELETE"

    def __init__(self, resource: Union[Resource, Dict[str, Any]]) -> None:
        super().__init__(resource)
        self.path = item_path(self.resource)

        self.filters = [
            Filter(ActionKind.ROOT, "decorate", self._form_on_root),
            Filter(ActionKind.READ_ITEM, "decorate", self._form_on_item, resource=self.resource.name),
        ]

    async def handle(self, params: Params, request: Any = None) -> ActionResponse:
        deleted = await self.resource.source.delete(await self.query(params, request))
        if not deleted:
            raise NotFoundError(f"{self.resource.name} {params}")
        return ActionResponse(204)

    @filterable
    async def query(self, params: Params, request: Any = None) -> Delete:
        return Delete(source=self.resource.name, conditions=await self.conditions(params, request))

    @filterable
    async def conditions(self, params: Params, request: Any = None) -> List[Clause]:
        return [Condition(key, params.get(key)) for key in self.resource.primary_keys]

    def _form_on_root(self, next: Callable, root: Action, registry: Registry) -> Callable:
        async def decorate(doc: Document, params: Optional[Params] = None, request: Any = None) -> Document:
            doc = await next(doc, params, request)
            doc.forms.append(Form(self.resource.name, self.path, name="delete", method=self.method))
            return doc

        return decorate

    def _form_on_item(self, next: Callable, reader: Action, registry: Registry) -> Callable:
        async def decorate(doc: Document, params: Optional[Params] = None, request: Any = None) -> Document:
            doc = await next(doc, params, request)
            doc.forms.append(Form(self.resource.name, self.path, name="delete", method=self.method, params=doc.properties))
            return doc

        return decorate
