# -*- coding: utf-8 -*-

import datetime as dt
from typing import Any, Dict, Mapping, Optional

import jwt

import prism
from ..config import get_config
from ..errors import ConfigurationError, UnAuthorizedError
from .backend import Backend, Claims
from .create_token import CreateToken

BEARER = "bearer"


class SecurityPlugin:
    """
    Token authentication for a PrismFastAPI plugin

    Tokens are JWTs signed with `key`. Requests present them in the `Authorization: Bearer <token>` header,
    the registered backend checks whether the claims still refer to valid credentials.

    :param api: the PrismFastAPI plugin to secure
    :param key: the key used to sign and verify tokens
    :param sign: signing options: `algorithm`, `expires_in` (seconds) and `headers`
    """

    def __init__(self, api: Any, key: str, sign: Optional[Mapping[str, Any]] = None) -> None:
        if not key:
            raise ConfigurationError("Key for token signing/verification was not specified")
        self.api = api
        self.key = key
        self.sign_options: Dict[str, Any] = dict(sign or {})
        self.algorithm = self.sign_options.get("algorithm") or get_config("JWT_ALGORITHM")
        self.backend: Optional[Backend] = None
        api.security = self

    def register_backend(self, backend: Backend) -> None:
        """
        Register the backend, its filters and the action that issues tokens. Only one backend can be registered.
        """
        if self.backend is not None:
            raise ConfigurationError("A security backend has already been registered")
        self.backend = backend

        if backend.filters:
            self.api.register_filter(backend.filters)
        self.api.register_action(CreateToken(backend, self))

    def sign(self, claims: Claims) -> str:
        payload = dict(claims)
        expires_in = self.sign_options.get("expires_in")
        if expires_in:
            payload["exp"] = dt.datetime.now(tz=dt.timezone.utc) + dt.timedelta(seconds=int(expires_in))
        return jwt.encode(payload, self.key, algorithm=self.algorithm, headers=self.sign_options.get("headers"))

    def decode(self, token: str) -> Claims:
        return jwt.decode(token, self.key, algorithms=[self.algorithm])

    async def authenticate(self, request: Any, mode: Any = "required") -> Optional[Dict[str, Any]]:
        """
        Verify the token of `request`. `request.state.credentials` holds the credentials when the token is
        valid, `request.state.auth_error` describes the failure otherwise.

        :param mode: "required" fails the request when it isn't authenticated, "optional" doesn't
        :raise UnAuthorizedError: when authentication is required and failed
        """
        request.state.credentials = None
        request.state.auth_error = None

        header = request.headers.get("Authorization", "")
        scheme, _, token = header.partition(" ")
        if scheme.lower() != BEARER or not token.strip():
            request.state.auth_error = "Missing authentication token"
        else:
            try:
                claims = self.decode(token.strip())
            except jwt.InvalidTokenError as exc:
                request.state.auth_error = f"Invalid token: {exc}"
            else:
                credentials = await self.backend.validate(claims, request)
                if credentials is False or credentials is None:
                    request.state.auth_error = "Invalid credentials"
                else:
                    request.state.credentials = credentials

        if request.state.auth_error is not None:
            prism.log.debug("Authentication failed: %s", request.state.auth_error)
            if mode == "required":
                raise UnAuthorizedError(request.state.auth_error)
        return request.state.credentials
