import asyncio
import time

import pytest
from sqlalchemy import Column, Integer, MetaData, Table, create_engine, event, insert, select

from prism.errors import ConstraintViolation, ValidationError
from prism.query import And, Condition, Create, Delete, Join, Or, Order, Page, Raw, Read, Update
from prism.source import SQLAlchemySource


def _seed(engine) -> None:
    tables = _tables(engine)
    with engine.begin() as conn:
        conn.execute(insert(tables["departments"]).values(id=1, name="R&D"))
        conn.execute(insert(tables["users"]).values(id=1, username="alice", department=1))
        conn.execute(insert(tables["users"]).values(id=2, username="bob", department=None))
        for number in range(1, 6):
            conn.execute(insert(tables["tasks"]).values(id=number, title=f"task {number}", owner=1 if number % 2 else 2))


def _tables(engine):
    metadata = MetaData()
    metadata.reflect(bind=engine)
    return metadata.tables


def test_read_item_with_nested_joins(engine, sqla_source) -> None:
    _seed(engine)
    query = Read(
        source="tasks",
        schema={},
        conditions=[Condition("id", "1")],
        joins=[
            Join("users", ["tasks", "users"], "owner", "id"),
            Join("departments", ["tasks", "users", "departments"], "department", "id"),
            Join("projects", ["tasks", "projects"], "project", "id"),
        ],
    )

    item = asyncio.run(sqla_source.read(query))

    assert item["title"] == "task 1"
    assert item["users"]["username"] == "alice"
    assert item["users"]["departments"] == {"id": 1, "name": "R&D"}
    assert item["projects"] is None


def test_read_missing_item(engine, sqla_source) -> None:
    assert asyncio.run(sqla_source.read(Read(source="tasks", schema={}, conditions=[Condition("id", 99)]))) is None


def test_read_collection(engine, sqla_source) -> None:
    _seed(engine)
    query = Read(
        source="tasks",
        schema={},
        returns="collection",
        conditions=[Condition("owner", "1")],
        order=[Order("id", "desc")],
        page=Page(1, 2),
    )

    result = asyncio.run(sqla_source.read(query))

    assert result["count"] == 3
    assert [item["id"] for item in result["items"]] == [5, 3]


def test_conditions(engine, sqla_source) -> None:
    _seed(engine)

    def ids(*conditions):
        query = Read(source="tasks", schema={}, returns="collection", conditions=list(conditions), order=[Order("id")])
        return [item["id"] for item in asyncio.run(sqla_source.read(query))["items"]]

    assert ids(Condition("id", 3, ">=")) == [3, 4, 5]
    assert ids(Or([Condition("id", 1), Condition("id", 2)])) == [1, 2]
    assert ids(And([Condition("owner", 1), Condition("id", 2, ">")])) == [3, 5]
    assert ids(Condition("id", [2, 4], "in")) == [2, 4]
    assert ids(Raw("tasks.id < :limit", {"limit": 2})) == [1]

    with pytest.raises(ValidationError):
        ids(Condition("nope", 1))
    with pytest.raises(ValidationError):
        ids(Condition("id", 1, "~"))


def test_nested_create_inserts_parents_first(engine, sqla_source) -> None:
    inserted = []

    @event.listens_for(engine, "before_cursor_execute")
    def record(conn, cursor, statement, parameters, context, executemany):
        if statement.startswith("INSERT"):
            inserted.append(statement.split()[2])

    query = Create(
        source="tasks",
        returning=["id"],
        schema={},
        data={"title": "x", "owner": {"username": "bob", "department": {"name": "R&D"}}, "project": {"name": "prism"}},
        joins=[
            Join("users", ["owner"], "owner", "id"),
            Join("projects", ["project"], "project", "id"),
            Join("departments", ["owner", "department"], "department", "id"),
        ],
    )

    created = asyncio.run(sqla_source.create(query))

    assert inserted == ["departments", "users", "projects", "tasks"]
    tables = _tables(engine)
    with engine.connect() as conn:
        task = conn.execute(select(tables["tasks"]).where(tables["tasks"].c.id == created["id"])).mappings().one()
        user = conn.execute(select(tables["users"]).where(tables["users"].c.id == task["owner"])).mappings().one()
        project = conn.execute(select(tables["projects"]).where(tables["projects"].c.id == task["project"])).mappings().one()
        department = conn.execute(select(tables["departments"]).where(tables["departments"].c.id == user["department"])).mappings().one()
    assert (user["username"], project["name"], department["name"]) == ("bob", "prism", "R&D")


def test_unknown_foreign_key_is_a_constraint_violation(engine, sqla_source) -> None:
    query = Create(source="tasks", returning=["id"], schema={}, data={"title": "x", "owner": 42}, joins=[Join("users", ["owner"], "owner", "id")])

    with pytest.raises(ConstraintViolation) as exc_info:
        asyncio.run(sqla_source.create(query))

    assert exc_info.value.status_code == 422
    assert exc_info.value.errors[0]["dataPath"] == "/owner"
    with engine.connect() as conn:
        assert conn.execute(select(_tables(engine)["tasks"])).first() is None


def test_failed_nested_create_is_rolled_back(engine, sqla_source) -> None:
    query = Create(
        source="tasks",
        returning=["id"],
        schema={},
        data={"title": "x", "owner": {"username": "bob"}, "project": 42},
        joins=[Join("users", ["owner"], "owner", "id"), Join("projects", ["project"], "project", "id")],
    )

    with pytest.raises(ConstraintViolation):
        asyncio.run(sqla_source.create(query))

    with engine.connect() as conn:
        assert conn.execute(select(_tables(engine)["users"])).first() is None


def test_integrity_errors_are_validation_errors(engine, sqla_source) -> None:
    _seed(engine)
    query = Create(source="users", returning=["id"], schema={}, data={"username": "alice"})

    with pytest.raises(ValidationError):
        asyncio.run(sqla_source.create(query))


def test_update(engine, sqla_source) -> None:
    _seed(engine)

    updated = asyncio.run(sqla_source.update(Update(source="tasks", returning=["id"], schema={}, data={"title": "y"}, conditions=[Condition("id", "2")])))
    missing = asyncio.run(sqla_source.update(Update(source="tasks", returning=["id"], schema={}, data={"title": "y"}, conditions=[Condition("id", "99")])))

    assert updated == {"id": 2}
    assert missing is None
    item = asyncio.run(sqla_source.read(Read(source="tasks", schema={}, conditions=[Condition("id", 2)])))
    assert item["title"] == "y"


def test_delete(engine, sqla_source) -> None:
    _seed(engine)

    assert asyncio.run(sqla_source.delete(Delete(source="tasks", conditions=[Condition("id", "4")]))) is True
    assert asyncio.run(sqla_source.delete(Delete(source="tasks", conditions=[Condition("id", "4")]))) is False
    count = asyncio.run(sqla_source.read(Read(source="tasks", schema={}, returns="collection")))["count"]
    assert count == 4


def test_queries_run_outside_the_event_loop(tmp_path) -> None:
    engine = create_engine(f"sqlite:///{tmp_path / 'slow.db'}", connect_args={"check_same_thread": False})

    @event.listens_for(engine, "connect")
    def add_slow_function(dbapi_connection, connection_record):
        dbapi_connection.create_function("slow", 0, lambda: time.sleep(0.5) or 1)

    metadata = MetaData()
    tasks = Table("tasks", metadata, Column("id", Integer, primary_key=True))
    metadata.create_all(engine)
    with engine.begin() as conn:
        conn.execute(insert(tasks).values(id=1))
    source = SQLAlchemySource(engine, metadata)

    async def read_while_ticking():
        ticks = []

        async def tick():
            while True:
                ticks.append(time.monotonic())
                await asyncio.sleep(0.05)

        ticker = asyncio.create_task(tick())
        await asyncio.sleep(0)
        item = await source.read(Read(source="tasks", schema={}, conditions=[Raw("slow() = 1")]))
        ticker.cancel()
        return item, ticks

    item, ticks = asyncio.run(read_while_ticking())
    engine.dispose()

    assert item == {"id": 1}
    assert len(ticks) > 5
    assert max(later - earlier for earlier, later in zip(ticks, ticks[1:])) < 0.3
