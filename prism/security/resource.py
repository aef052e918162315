# -*- coding: utf-8 -*-

from typing import Any, Callable, Dict, List, Mapping, Optional, Sequence, Union

import bcrypt
from starlette.concurrency import run_in_threadpool

from .. import query
from ..action import Action, ActionKind, Params, payload
from ..document import Document, Link, is_authenticated
from ..errors import PrismError
from ..filters import Filter
from ..registry import Registry
from ..resource import Resource, initialize
from ..schema import validate
from .backend import Backend, Claims


def _compare(given: str, actual: Union[str, bytes]) -> bool:
    if isinstance(actual, str):
        actual = actual.encode()
    try:
        return bcrypt.checkpw(given.encode(), actual)
    except ValueError:
        # not a bcrypt hash
        return False


class ResourceBackend(Backend):
    """
    Authenticates against the rows of a resource, eg. a `users` table with username and (bcrypt hashed) password

    The claims of the issued tokens hold the primary keys of the row: `{"users": {"id": 1}}`

    :param identity: field holding the human readable identity, eg. the username or email address
    :param password: field holding the password hash
    :param redact: replaces the password in documents of the resource
    :param scope: additional conditions for the queries that look up the credentials
    :param rounds: bcrypt cost factor used when hashing passwords
    """

    def __init__(
        self,
        resource: Union[Resource, Dict[str, Any]],
        identity: str = "username",
        password: str = "password",
        redact: str = "**REDACTED**",
        scope: Sequence[query.Clause] = (),
        rounds: int = 10,
    ) -> None:
        self.resource = initialize(resource)
        self.identity = identity
        self.password = password
        self.redact = redact
        self.scope = list(scope)
        self.rounds = rounds
        self.register = self.resource.source

        self.schema = {
            "$schema": "http://json-schema.org/draft-04/schema#",
            "title": "token",
            "type": "object",
            "properties": {identity: {"type": "string"}, password: {"type": "string"}},
            "required": [identity, password],
        }

        self.filters = [
            Filter(ActionKind.READ_ITEM, "decorate", self._redact_password, resource=self.resource.name),
            Filter([ActionKind.CREATE_ITEM, ActionKind.UPDATE_ITEM], "handle", self._hash_password, resource=self.resource.name),
            Filter(ActionKind.ROOT, "decorate", self._identity_link),
        ]

    def __repr__(self) -> str:
        return f"<ResourceBackend {self.resource.name}>"

    async def hash(self, given: str) -> str:
        hashed = await run_in_threadpool(bcrypt.hashpw, given.encode(), bcrypt.gensalt(self.rounds))
        return hashed.decode()

    async def compare(self, given: str, actual: Any) -> bool:
        if not isinstance(actual, (str, bytes)):
            return False
        return await run_in_threadpool(_compare, given, actual)

    def _read(self, conditions: List[query.Clause]) -> query.Read:
        return query.Read(source=self.resource.name, schema=self.resource.schema, returns="item", conditions=self.scope + conditions)

    async def issue(self, params: Params, request: Any) -> Union[Claims, bool]:
        data = payload(request)
        await validate(data, self.schema)

        found = await self.resource.source.read(self._read([query.Condition(self.identity, data[self.identity])]))
        if found is None:
            # TODO: the lookup takes less time for unknown identities than a failed compare
            return False

        if not await self.compare(data[self.password], found.get(self.password)):
            return False

        return {self.resource.name: {key: found[key] for key in self.resource.primary_keys}}

    async def validate(self, claims: Claims, request: Any) -> Union[Dict[str, Any], bool]:
        keys = claims.get(self.resource.name)
        if not isinstance(keys, Mapping) or any(key not in keys for key in self.resource.primary_keys):
            return False

        try:
            found = await self.resource.source.read(self._read([query.Condition(key, keys[key]) for key in self.resource.primary_keys]))
        except PrismError:
            return False
        return found if found is not None else False

    def _redact_password(self, next: Callable, reader: Action, registry: Registry) -> Callable:
        async def decorate(doc: Document, params: Optional[Params] = None, request: Any = None) -> Document:
            doc = await next(doc, params, request)
            if self.password in doc.properties:
                doc.properties[self.password] = self.redact
            return doc

        return decorate

    def _hash_password(self, next: Callable, writer: Action, registry: Registry) -> Callable:
        """
        Passwords are hashed before they're validated and stored
        """

        async def handle(params: Params, request: Any = None) -> Any:
            data = payload(request)
            if isinstance(data, dict) and isinstance(data.get(self.password), str) and data[self.password]:
                data[self.password] = await self.hash(data[self.password])
            return await next(params, request)

        return handle

    def _identity_link(self, next: Callable, root: Action, registry: Registry) -> Callable:
        """
        Authenticated clients find the resource they're authenticated as on the root document
        """

        async def decorate(doc: Document, params: Optional[Params] = None, request: Any = None) -> Document:
            doc = await next(doc, params, request)
            credentials = getattr(getattr(request, "state", None), "credentials", None)
            if not is_authenticated(request) or not isinstance(credentials, Mapping):
                return doc

            readers = registry.find_objects(ActionKind.READ_ITEM, resource=self.resource.name)
            if not readers:
                return doc

            params = {key: credentials.get(key) for key in self.resource.primary_keys}
            doc.links.append(Link(self.resource.name, readers[0].path, name="identity", params=params))
            return doc

        return decorate
