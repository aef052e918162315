# -*- coding: utf-8 -*-

import json
import posixpath
import re
from contextlib import asynccontextmanager
from http import HTTPStatus
from typing import Any, AsyncIterator, Callable, Dict, Iterable, List, Optional, Union

import prism
from fastapi import FastAPI, Request
from fastapi.encoders import jsonable_encoder
from starlette.exceptions import HTTPException as StarletteHTTPException
from starlette.responses import Response

from ..action import Action, Params, Root
from ..config import config_value
from ..document import Document, Link
from ..errors import BadRequestError, ConfigurationError, GenericError, PrismError
from ..filters import Filter
from ..registry import Registry
from ..responses import HALResponse

BODY_METHODS = {"POST", "PATCH", "PUT"}
QUERY_TEMPLATE = re.compile(r"\{\?[^}]*\}")


def dequery(path: str) -> str:
    """
    Strip the query part of a URI template: "/tasks{?where,page,order}" => "/tasks"
    """
    return QUERY_TEMPLATE.sub("", path) or "/"


def parse_parameter(value: str) -> Any:
    """
    Comma separated values are field,value pairs: "owner,1,project,2" => {"owner": "1", "project": "2"}
    """
    if "," not in value:
        return value
    parts = value.split(",")
    if len(parts) % 2:
        return value
    return dict(zip(parts[::2], parts[1::2]))


def merge_request_parameters(request: Request) -> Params:
    """
    :return: the path parameters merged with the parsed query string parameters
    """
    params: Params = {key: parse_parameter(value) for key, value in request.query_params.items()}
    params.update(request.path_params)
    return params


def error_response(status_code: int, message: str, errors: Optional[List[Dict[str, Any]]] = None) -> HALResponse:
    try:
        phrase = HTTPStatus(status_code).phrase
    except ValueError:
        phrase = "HTTP Error"
    content: Dict[str, Any] = {"statusCode": status_code, "error": phrase, "message": message}
    if errors is not None:
        content["errors"] = errors
    return HALResponse(status_code=status_code, content=jsonable_encoder(content))


def install_prism_exception_handlers(app: FastAPI) -> None:
    @app.exception_handler(PrismError)
    async def _prism_error_handler(_request: Request, exc: PrismError) -> HALResponse:
        return HALResponse(status_code=exc.status_code, content=jsonable_encoder(exc.to_dict()))

    @app.exception_handler(StarletteHTTPException)
    async def _starlette_http_error_handler(_request: Request, exc: StarletteHTTPException) -> HALResponse:
        return error_response(int(exc.status_code), str(exc.detail))


class PrismFastAPI:
    """
    Publishes actions on a FastAPI app

        app = FastAPI()
        api = PrismFastAPI(app, root="/api", secure=False)
        api.register_action(resource_actions(tasks))

    The filters are applied when the app starts (or when `freeze` is called), so all actions
    must be registered before that.

    :param root: path prefix of all actions, defaults to the ROOT setting
    :param secure: require a security backend, defaults to the SECURE setting
    """

    def __init__(self, app: FastAPI, root: Optional[str] = None, secure: Optional[bool] = None) -> None:
        self.app = app
        self.root = str(config_value(root, "ROOT") or "/")
        self.secure = bool(config_value(secure, "SECURE"))
        self.registry = Registry()
        self.security: Any = None

        install_prism_exception_handlers(app)
        self._install_lifespan()

        self.root_action = Root()
        if self.secure:
            self.root_action.auth = "optional"
        self.register_action(self.root_action)

    def _install_lifespan(self) -> None:
        previous = self.app.router.lifespan_context

        @asynccontextmanager
        async def lifespan(app: Any) -> AsyncIterator[Any]:
            async with self.lifespan(app):
                async with previous(app) as state:
                    yield state

        self.app.router.lifespan_context = lifespan

    @asynccontextmanager
    async def lifespan(self, app: Any = None) -> AsyncIterator[None]:
        if not self.registry.frozen:
            self.freeze()
        yield

    def register_action(self, action: Union[Action, Iterable[Action]]) -> None:
        """
        Prefix the path of `action` with the root, register it and route it
        """
        if not isinstance(action, Action):
            for item in action:
                self.register_action(item)
            return

        action.path = posixpath.join(self.root, action.path)
        self.registry.register_object(action)

        path = dequery(action.path)
        self.app.add_api_route(
            path,
            self._endpoint(action),
            methods=[action.method],
            response_class=HALResponse,
            name=f"{type(action).__name__}:{action.resource_name or ''}",
        )
        prism.log.info('Action "%s" routed to "%s:%s"', type(action).__name__, action.method, path)

    def register_filter(self, filter: Union[Filter, Iterable[Any]]) -> None:
        self.registry.register_filter(filter)

    def freeze(self) -> None:
        """
        Apply the filters, no actions or filters can be registered afterwards

        :raise ConfigurationError: in secure mode when no security backend was registered
        """
        if self.secure and (self.security is None or self.security.backend is None):
            raise ConfigurationError("Secure mode is enabled but no security backend was registered")
        self.registry.apply_filters()

    def _endpoint(self, action: Action) -> Callable:
        async def endpoint(request: Request) -> Response:
            return await self.dispatch(action, request)

        endpoint.__name__ = f"{type(action).__name__}_{action.resource_name or 'root'}"
        return endpoint

    async def dispatch(self, action: Action, request: Request) -> Response:
        params = merge_request_parameters(request)
        request.state.payload = await self.parse_body(request)

        try:
            if self.secure and action.auth is not False:
                await self.security.authenticate(request, action.auth)

            result = await action.handle(params, request)
            if isinstance(result, Response):
                return result

            doc = Document(result if result is not None else {})
            doc = await action.decorate(doc, params, request)
            doc.links.append(Link("self", action.path, public=True, params=params))
            return HALResponse(content=jsonable_encoder(doc.render(params, request)))
        except PrismError:
            raise
        except Exception as exc:
            raise GenericError(exc)

    @staticmethod
    async def parse_body(request: Request) -> Any:
        if request.method not in BODY_METHODS:
            return None
        body = await request.body()
        if not body:
            return None
        try:
            return json.loads(body)
        except ValueError:
            raise BadRequestError("Invalid JSON in request body")
