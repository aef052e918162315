# -*- coding: utf-8 -*-

from typing import Any, Callable, Optional

from fastapi.responses import JSONResponse

from ..action import Action, ActionKind, Params
from ..document import Document, Form
from ..errors import ForbiddenError
from ..filters import Filter
from ..registry import Registry
from .backend import Backend


class CreateToken(Action):
    """
    Issues a signed token when the backend accepts the posted credentials, eg. `POST /token`
    """

    kind = ActionKind.CREATE_TOKEN
    method = "POST"
    path = "token"
    auth = False

    def __init__(self, backend: Backend, security: Any) -> None:
        self.backend = backend
        self.security = security
        self.register = backend

        self.filters = [
            Filter(ActionKind.ROOT, "decorate", self._create_form),
            Filter(ActionKind.ROOT, "decorate", self._refresh_form),
        ]

    async def handle(self, params: Params, request: Any = None) -> JSONResponse:
        claims = await self.backend.issue(params, request)
        if claims is False:
            raise ForbiddenError("Token request denied")
        return JSONResponse({"token": self.security.sign(claims)}, status_code=201)

    def _create_form(self, next: Callable, root: Action, registry: Registry) -> Callable:
        """
        Anonymous clients get a form to obtain a token
        """

        async def decorate(doc: Document, params: Optional[Params] = None, request: Any = None) -> Document:
            doc = await next(doc, params, request)
            doc.forms.append(
                Form("token", self.path, name="create", method=self.method, schema=self.backend.schema, public=True, private=False)
            )
            return doc

        return decorate

    def _refresh_form(self, next: Callable, root: Action, registry: Registry) -> Callable:
        async def decorate(doc: Document, params: Optional[Params] = None, request: Any = None) -> Document:
            doc = await next(doc, params, request)
            doc.forms.append(Form("token", self.path, name="refresh", method=self.method, schema=self.backend.schema))
            return doc

        return decorate

