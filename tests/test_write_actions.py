import asyncio

import pytest

from prism.action import CreateItem, DeleteItem, ReadItem, Root, UpdateItem
from prism.document import Document
from prism.errors import NotFoundError, ValidationError
from prism.query import Condition, Join


def test_create_validates_the_payload(resources, request_factory, source) -> None:
    action = CreateItem(resources["tasks"])

    with pytest.raises(ValidationError) as exc_info:
        asyncio.run(action.handle({}, request_factory({})))

    errors = exc_info.value.errors
    assert [(entry["dataPath"], entry["params"]["missingProperty"]) for entry in errors] == [("", "title"), ("", "owner")]
    assert source.queries == []


def test_create_query(resources, request_factory, source) -> None:
    action = CreateItem(resources["tasks"])
    payload = {"title": "x", "owner": 1}

    response = asyncio.run(action.handle({}, request_factory(payload)))

    assert response.status_code == 201
    assert response.item == {"id": 1}
    [query] = source.queries
    assert query.source == "tasks"
    assert query.returning == ["id"]
    assert query.data == payload
    assert query.joins == [Join("users", ["owner"], "owner", "id"), Join("projects", ["project"], "project", "id")]


def test_parents_may_be_nested(resources, registry_factory, request_factory, source) -> None:
    tasks = CreateItem(resources["tasks"])
    registry_factory(tasks, CreateItem(resources["users"]), CreateItem(resources["departments"]), CreateItem(resources["projects"]))

    schema = asyncio.run(tasks.schema({}))
    owner = schema["properties"]["owner"]["oneOf"]
    assert owner[0] == {"type": "integer"}
    assert owner[1]["properties"]["department"]["oneOf"][1]["required"] == ["name"]
    # the resource definition isn't modified
    assert resources["tasks"].schema["properties"]["owner"] == {"type": "integer"}

    payload = {"title": "x", "owner": {"username": "bob", "department": {"name": "R&D"}}, "project": {"name": "prism"}}
    asyncio.run(tasks.handle({}, request_factory(payload)))

    [query] = source.queries
    assert Join("departments", ["owner", "department"], "department", "id") in query.joins


def test_nested_parents_are_validated(resources, registry_factory, request_factory) -> None:
    tasks = CreateItem(resources["tasks"])
    registry_factory(tasks, CreateItem(resources["users"]))

    with pytest.raises(ValidationError):
        asyncio.run(tasks.handle({}, request_factory({"title": "x", "owner": {"password": "no username"}})))


def test_create_forms(resources, registry_factory) -> None:
    root = Root()
    registry_factory(root, CreateItem(resources["tasks"]))

    rendered = asyncio.run(root.decorate(Document())).render()

    form = rendered["_forms"]["tasks"]
    assert (form["href"], form["name"], form["method"]) == ("tasks", "create", "POST")
    assert form["schema"]["required"] == ["title", "owner"]


def test_update_query(resources, request_factory, source) -> None:
    action = UpdateItem(resources["tasks"])

    response = asyncio.run(action.handle({"id": "1"}, request_factory({"title": "y", "id": 5, "unknown": 1})))

    assert response.status_code == 204
    [query] = source.queries
    assert query.data == {"title": "y"}
    assert query.conditions == [Condition("id", "1")]
    assert query.schema["required"] == []
    assert resources["tasks"].schema["required"] == ["title", "owner"]


def test_update_missing_item(resources, request_factory, source) -> None:
    source.updated = None

    with pytest.raises(NotFoundError):
        asyncio.run(UpdateItem(resources["tasks"]).handle({"id": "1"}, request_factory({"title": "y"})))


def test_update_validates_types(resources, request_factory) -> None:
    with pytest.raises(ValidationError):
        asyncio.run(UpdateItem(resources["tasks"]).handle({"id": "1"}, request_factory({"title": 5})))


def test_update_and_delete_forms_on_items(resources, registry_factory) -> None:
    reader = ReadItem(resources["tasks"])
    registry_factory(reader, UpdateItem(resources["tasks"]), DeleteItem(resources["tasks"]))

    rendered = asyncio.run(reader.decorate(Document({"id": 3, "title": "x"}))).render()

    update = rendered["_forms"]["self"]
    assert (update["href"], update["name"], update["method"]) == ("tasks/3", "update", "PATCH")
    assert update["schema"]["default"] == {"id": 3, "title": "x"}
    delete = rendered["_forms"]["tasks"]
    assert (delete["href"], delete["name"], delete["method"]) == ("tasks/3", "delete", "DELETE")
    assert "schema" not in delete


def test_delete(resources, source) -> None:
    response = asyncio.run(DeleteItem(resources["tasks"]).handle({"id": "3"}))

    assert response.status_code == 204
    [query] = source.queries
    assert query.conditions == [Condition("id", "3")]


def test_delete_missing_item(resources, source) -> None:
    source.deleted = False

    with pytest.raises(NotFoundError):
        asyncio.run(DeleteItem(resources["tasks"]).handle({"id": "404"}))
