from types import SimpleNamespace
from typing import Any, Dict, List, Optional

import pytest
from sqlalchemy import Column, ForeignKey, Integer, MetaData, String, Table, create_engine
from sqlalchemy.pool import StaticPool

from prism.registry import Registry
from prism.resource import Resource, initialize
from prism.source import Source, SQLAlchemySource


class FakeSource(Source):
    """
    Records the queries it receives and answers with canned results
    """

    def __init__(self) -> None:
        self.queries: List[Any] = []
        self.item: Optional[Dict[str, Any]] = None
        self.collection: Dict[str, Any] = {"items": [], "count": 0}
        self.created: Optional[Dict[str, Any]] = {"id": 1}
        self.updated: Optional[Dict[str, Any]] = {"id": 1}
        self.deleted = True

    async def create(self, query):
        self.queries.append(query)
        return self.created

    async def read(self, query):
        self.queries.append(query)
        if query.returns == "collection":
            return self.collection
        return self.item

    async def update(self, query):
        self.queries.append(query)
        return self.updated

    async def delete(self, query):
        self.queries.append(query)
        return self.deleted


def make_request(payload: Any = None, auth_error: Optional[str] = None, credentials: Any = None) -> SimpleNamespace:
    return SimpleNamespace(
        state=SimpleNamespace(payload=payload, auth_error=auth_error, credentials=credentials),
        headers={},
    )


def definitions(source: Any) -> Dict[str, Dict[str, Any]]:
    """
    tasks belong to users (owner) and projects (project), users belong to departments (department)
    """
    return {
        "departments": {
            "name": "departments",
            "source": source,
            "schema": {
                "type": "object",
                "properties": {"id": {"type": "integer", "readOnly": True}, "name": {"type": "string"}},
                "required": ["name"],
            },
            "relationships": {"has": [{"name": "users", "from": "id", "to": "department"}]},
        },
        "users": {
            "name": "users",
            "source": source,
            "schema": {
                "type": "object",
                "properties": {
                    "id": {"type": "integer", "readOnly": True},
                    "username": {"type": "string"},
                    "password": {"type": "string"},
                    "department": {"type": "integer"},
                },
                "required": ["username"],
            },
            "relationships": {
                "belongsTo": [{"name": "departments", "from": "department", "to": "id"}],
                "has": [{"name": "tasks", "from": "id", "to": "owner"}],
            },
        },
        "projects": {
            "name": "projects",
            "source": source,
            "schema": {
                "type": "object",
                "properties": {"id": {"type": "integer", "readOnly": True}, "name": {"type": "string"}},
                "required": ["name"],
            },
            "relationships": {"has": [{"name": "tasks", "from": "id", "to": "project"}]},
        },
        "tasks": {
            "name": "tasks",
            "source": source,
            "schema": {
                "type": "object",
                "properties": {
                    "id": {"type": "integer", "readOnly": True},
                    "title": {"type": "string"},
                    "owner": {"type": "integer"},
                    "project": {"type": "integer"},
                },
                "required": ["title", "owner"],
            },
            "relationships": {
                "belongsTo": [
                    {"name": "users", "from": "owner", "to": "id"},
                    {"name": "projects", "from": "project", "to": "id"},
                ],
            },
        },
    }


def build_registry(*actions: Any) -> Registry:
    registry = Registry()
    for action in actions:
        registry.register_object(action)
    registry.apply_filters()
    return registry


def create_tables(metadata: MetaData) -> None:
    Table("departments", metadata, Column("id", Integer, primary_key=True), Column("name", String, nullable=False))
    Table(
        "users",
        metadata,
        Column("id", Integer, primary_key=True),
        Column("username", String, nullable=False, unique=True),
        Column("password", String),
        Column("department", Integer, ForeignKey("departments.id")),
    )
    Table("projects", metadata, Column("id", Integer, primary_key=True), Column("name", String, nullable=False))
    Table(
        "tasks",
        metadata,
        Column("id", Integer, primary_key=True),
        Column("title", String, nullable=False),
        Column("owner", Integer, ForeignKey("users.id")),
        Column("project", Integer, ForeignKey("projects.id")),
    )


@pytest.fixture
def source() -> FakeSource:
    return FakeSource()


@pytest.fixture
def resources(source: FakeSource) -> Dict[str, Resource]:
    return {name: initialize(definition) for name, definition in definitions(source).items()}


@pytest.fixture
def request_factory():
    return make_request


@pytest.fixture
def engine():
    engine = create_engine("sqlite://", connect_args={"check_same_thread": False}, poolclass=StaticPool)
    metadata = MetaData()
    create_tables(metadata)
    metadata.create_all(engine)
    yield engine
    engine.dispose()


@pytest.fixture
def sqla_source(engine) -> SQLAlchemySource:
    return SQLAlchemySource(engine)


@pytest.fixture
def sqla_resources(sqla_source: SQLAlchemySource) -> Dict[str, Resource]:
    return {name: initialize(definition) for name, definition in definitions(sqla_source).items()}


@pytest.fixture
def registry_factory():
    return build_registry
