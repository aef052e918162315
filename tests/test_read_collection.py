import asyncio

import pytest

from prism.action import CreateItem, ReadCollection, ReadItem, Root
from prism.document import Document
from prism.errors import BadRequestError
from prism.query import Condition, Join, Order, Page


def _pagination(action: ReadCollection, count: int, params: dict) -> dict:
    doc = asyncio.run(action.decorate(Document({"items": [], "count": count}), params))
    return doc.render()["_links"] if doc.links else {}


def test_query(resources, source) -> None:
    action = ReadCollection(resources["tasks"])
    source.collection = {"items": [{"id": 1}], "count": 1}

    result = asyncio.run(action.handle({"where": {"owner": "1"}, "order": {"title": "DESC"}, "page": "2"}))

    assert result == {"items": [{"id": 1}], "count": 1}
    [query] = source.queries
    assert query.returns == "collection"
    assert query.conditions == [Condition("owner", "1")]
    assert query.order == [Order("title", "desc")]
    assert query.page == Page(2, 20)
    assert query.page.offset == 20
    assert query.joins[0] == Join("users", ["tasks", "users"], "owner", "id")


def test_default_order_and_page(resources, source) -> None:
    asyncio.run(ReadCollection(resources["tasks"], page_size=5).handle({}))

    [query] = source.queries
    assert query.conditions == []
    assert query.order == [Order("id", "asc")]
    assert query.page == Page(1, 5)


@pytest.mark.parametrize(
    "params",
    [{"where": "owner"}, {"order": {"title": "sideways"}}, {"page": "0"}, {"page": "two"}],
)
def test_invalid_parameters(resources, params) -> None:
    with pytest.raises(BadRequestError):
        asyncio.run(ReadCollection(resources["tasks"]).handle(params))


def test_items_are_embedded_as_arrays(resources) -> None:
    action = ReadCollection(resources["tasks"])
    doc = Document({"items": [{"id": 1, "owner": 2, "users": {"id": 2}}], "count": 1})

    rendered = asyncio.run(action.decorate(doc, {})).render()

    assert "items" not in rendered
    assert rendered["count"] == 1
    assert rendered["_embedded"]["tasks"] == [{"id": 1, "owner": 2, "_embedded": {"users": {"id": 2}}}]


def test_pagination(resources) -> None:
    action = ReadCollection(resources["tasks"])
    action.path = "/tasks{?where,page,order}"

    first = _pagination(action, 55, {})
    assert set(first) == {"next", "last"}
    assert first["next"] == {"href": "/tasks?page=2"}
    assert first["last"] == {"href": "/tasks?page=3"}

    second = _pagination(action, 55, {"page": "2", "where": {"owner": "1"}})
    assert set(second) == {"first", "prev", "next", "last"}
    assert second["prev"] == {"href": "/tasks?where=owner,1&page=1"}

    assert set(_pagination(action, 55, {"page": "3"})) == {"first", "prev"}
    assert _pagination(action, 19, {}) == {}


def test_links_and_forms(resources, registry_factory) -> None:
    root = Root()
    tasks = ReadCollection(resources["tasks"])
    users = ReadItem(resources["users"])
    registry_factory(root, users, tasks, CreateItem(resources["tasks"]))

    rendered = asyncio.run(root.decorate(Document())).render()
    assert {"href": "tasks{?where,page,order}", "name": "collection", "templated": True} in _as_list(rendered["_links"]["tasks"])

    rendered = asyncio.run(users.decorate(Document({"id": 2}))).render()
    assert rendered["_links"]["tasks"] == {"href": "tasks?where=owner,2", "name": "collection"}
    assert rendered["_forms"]["tasks"]["schema"]["default"] == {"owner": 2}

    rendered = asyncio.run(tasks.decorate(Document({"items": [], "count": 0}), {})).render()
    assert rendered["_forms"]["tasks"]["name"] == "create"


def test_child_collections_join_ancestors(resources, registry_factory) -> None:
    tasks = ReadCollection(resources["tasks"])
    registry_factory(tasks, ReadCollection(resources["users"]), ReadCollection(resources["departments"]))

    joins = asyncio.run(tasks.joins({}))

    assert Join("departments", ["tasks", "users", "departments"], "department", "id") in joins


def _as_list(value):
    return value if isinstance(value, list) else [value]
