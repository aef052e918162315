# -*- coding: utf-8 -*-

"""SQLAlchemy Core implementation of the Source interface."""

import copy
import operator
from contextlib import contextmanager
from typing import Any, Callable, Dict, Iterator, List, Optional, Sequence, Tuple, Union

from sqlalchemy import MetaData, Table, and_, delete, func, insert, or_, select, text, update
from sqlalchemy.engine import Connection, Engine
from sqlalchemy.exc import IntegrityError
from sqlalchemy.sql.expression import ColumnElement, FromClause
from starlette.concurrency import run_in_threadpool

import prism
from . import Collection, Item, Source
from .. import query
from ..config import config_value
from ..errors import ConfigurationError, ConstraintViolation, ValidationError

OPERATORS: Dict[str, Callable[[Any, Any], ColumnElement]] = {
    "=": operator.eq,
    "!=": operator.ne,
    "<>": operator.ne,
    "<": operator.lt,
    "<=": operator.le,
    ">": operator.gt,
    ">=": operator.ge,
    "like": lambda column, value: column.like(value),
    "in": lambda column, value: column.in_(value),
}


def _field_error(field: str, message: str) -> ValidationError:
    return ValidationError(
        message,
        [{"message": message, "dataPath": f"/{field}", "schemaPath": "", "params": {"field": field}}],
    )


def _get_path(data: Any, path: Sequence[str]) -> Any:
    for segment in path:
        if not isinstance(data, dict):
            return None
        data = data.get(segment)
    return data


def _set_path(data: Dict[str, Any], path: Sequence[str], value: Any) -> None:
    for segment in path[:-1]:
        data = data[segment]
    data[path[-1]] = value


@contextmanager
def _integrity() -> Iterator[None]:
    try:
        yield
    except IntegrityError as exc:
        prism.log.warning("Integrity error: %s", exc.orig)
        raise ValidationError(
            "Constraint violation",
            [{"message": str(exc.orig), "dataPath": "", "schemaPath": "", "params": {}}],
        ) from exc


class SQLAlchemySource(Source):
    """
    Executes queries against a relational database

    Joined rows are fetched with LEFT OUTER JOINs aliased by their join path and nested into the result
    under the path (minus its first segment). When creating or updating, objects found at a join path are
    inserted first, deepest path first, and replaced by their generated key.

    :param engine: SQLAlchemy engine
    :param metadata: table metadata, reflected from `engine` when omitted
    :param join_marker: separator used to build aliases from join paths
    """

    def __init__(self, engine: Engine, metadata: Optional[MetaData] = None, join_marker: Optional[str] = None) -> None:
        self.engine = engine
        if metadata is None:
            metadata = MetaData()
            metadata.reflect(bind=engine)
        self.metadata = metadata
        self.join_marker = config_value(join_marker, "JOIN_MARKER")

    def __repr__(self) -> str:
        return f"<SQLAlchemySource {self.engine.url!r}>"

    def table(self, name: str) -> Table:
        try:
            return self.metadata.tables[name]
        except KeyError:
            raise ConfigurationError(f'Table "{name}" is not known to {self!r}')

    @staticmethod
    def column(table: FromClause, field: str) -> ColumnElement:
        try:
            return table.c[field]
        except KeyError:
            raise _field_error(field, f'Unknown field "{field}"')

    @staticmethod
    def coerce(column: ColumnElement, value: Any) -> Any:
        """
        Convert a string value (eg. from the query string) to the python type of `column`
        """
        if isinstance(value, (list, tuple)):
            return [SQLAlchemySource.coerce(column, item) for item in value]
        if not isinstance(value, str):
            return value
        try:
            python_type = column.type.python_type
        except NotImplementedError:
            return value
        if python_type is bool:
            return value.lower() in ("1", "true", "yes", "on")
        if python_type in (int, float):
            try:
                return python_type(value)
            except ValueError:
                raise _field_error(column.name, f'Invalid value for "{column.name}"')
        return value

    def clause(self, table: FromClause, clause: query.Clause) -> ColumnElement:
        if isinstance(clause, query.And):
            return and_(*[self.clause(table, item) for item in clause.conditions])
        if isinstance(clause, query.Or):
            return or_(*[self.clause(table, item) for item in clause.conditions])
        if isinstance(clause, query.Raw):
            return text(clause.sql).bindparams(**clause.params)

        column = self.column(table, clause.field)
        op = OPERATORS.get(clause.operator.lower())
        if op is None:
            raise _field_error(clause.field, f'Unsupported operator "{clause.operator}"')
        return op(column, self.coerce(column, clause.value))

    def _values(self, table: Table, data: Dict[str, Any]) -> Dict[str, Any]:
        return {key: value for key, value in data.items() if key in table.c}

    def _with_joins(self, conn: Connection, data: Dict[str, Any], joins: List[query.Join]) -> Dict[str, Any]:
        """
        Insert the objects that are nested in `data` at the join paths, deepest path first, and substitute
        their generated keys. Scalar foreign keys must refer to existing rows.
        """
        data = copy.deepcopy(data)
        for join in sorted(joins, key=lambda join: len(join.path), reverse=True):
            nested = _get_path(data, join.path)
            table = self.table(join.source)
            key = self.column(table, join.to)

            if isinstance(nested, dict):
                statement = insert(table).values(**self._values(table, nested)).returning(key)
                generated = conn.execute(statement).scalar_one()
                prism.log.debug("Created %s %s=%s for %s", join.source, join.to, generated, "/".join(join.path))
                _set_path(data, join.path, generated)
            elif nested is not None:
                found = conn.execute(select(key).where(key == self.coerce(key, nested))).first()
                if found is None:
                    raise ConstraintViolation("/".join(join.path))
        return data

    def _joined_select(self, table: Table, q: query.Read) -> Tuple[Any, List[Tuple[query.Join, FromClause]]]:
        aliases: Dict[Tuple[str, ...], FromClause] = {(q.source,): table}
        selectable: FromClause = table
        if q.fields:
            columns = [self.column(table, field) for field in q.fields]
        else:
            columns = list(table.c)

        joined = []
        for join in sorted(q.joins, key=lambda join: len(join.path)):
            parent = aliases.get(tuple(join.path[:-1]))
            if parent is None:
                prism.log.warning("Skipping join %s, %s isn't joined", join.path, join.path[:-1])
                continue
            alias = self.table(join.source).alias(self.join_marker.join(join.path))
            aliases[tuple(join.path)] = alias
            selectable = selectable.outerjoin(alias, self.column(alias, join.to) == self.column(parent, join.from_))
            columns.extend(column.label(f"{alias.name}{self.join_marker}{column.name}") for column in alias.c)
            joined.append((join, alias))

        return select(*columns).select_from(selectable), joined

    def _merge_joins(self, row: Any, table: Table, q: query.Read, joined: List[Tuple[query.Join, FromClause]]) -> Item:
        names = q.fields or [column.name for column in table.c]
        result: Item = {name: row[name] for name in names}
        for join, alias in joined:
            values = {column.name: row[f"{alias.name}{self.join_marker}{column.name}"] for column in alias.c}
            nested = values if any(value is not None for value in values.values()) else None
            path = join.path[1:]
            if not path or not isinstance(_get_path(result, path[:-1]), dict):
                continue
            _set_path(result, path, nested)
        return result

    def _read(self, query: query.Read) -> Optional[Union[Item, Collection]]:
        table = self.table(query.source)
        statement, joined = self._joined_select(table, query)
        conditions = [self.clause(table, clause) for clause in query.conditions]
        statement = statement.where(*conditions)

        for order in query.order:
            column = self.column(table, order.field)
            statement = statement.order_by(column.desc() if order.direction.lower() == "desc" else column.asc())

        with self.engine.connect() as conn:
            if query.returns == "item":
                row = conn.execute(statement).mappings().first()
                if row is None:
                    return None
                return self._merge_joins(row, table, query, joined)

            if query.page is not None:
                statement = statement.limit(query.page.size).offset(query.page.offset)
            rows = conn.execute(statement).mappings().all()
            count = conn.execute(select(func.count()).select_from(table).where(*conditions)).scalar_one()

        return {"items": [self._merge_joins(row, table, query, joined) for row in rows], "count": int(count)}

    def _create(self, query: query.Create) -> Optional[Item]:
        table = self.table(query.source)
        returning = [self.column(table, field) for field in query.returning]
        with _integrity(), self.engine.begin() as conn:
            data = self._with_joins(conn, query.data, query.joins)
            row = conn.execute(insert(table).values(**self._values(table, data)).returning(*returning)).mappings().first()
        return dict(row) if row is not None else None

    def _update(self, query: query.Update) -> Optional[Item]:
        table = self.table(query.source)
        returning = [self.column(table, field) for field in query.returning]
        conditions = [self.clause(table, clause) for clause in query.conditions]
        with _integrity(), self.engine.begin() as conn:
            values = self._values(table, self._with_joins(conn, query.data, query.joins))
            if values:
                statement = update(table).where(*conditions).values(**values).returning(*returning)
            else:
                statement = select(*returning).where(*conditions)
            row = conn.execute(statement).mappings().first()
        return dict(row) if row is not None else None

    def _delete(self, query: query.Delete) -> bool:
        table = self.table(query.source)
        conditions = [self.clause(table, clause) for clause in query.conditions]
        with _integrity(), self.engine.begin() as conn:
            result = conn.execute(delete(table).where(*conditions))
        return result.rowcount > 0

    # the engine is synchronous, statements are executed in the threadpool

    async def read(self, query: query.Read) -> Optional[Union[Item, Collection]]:
        return await run_in_threadpool(self._read, query)

    async def create(self, query: query.Create) -> Optional[Item]:
        return await run_in_threadpool(self._create, query)

    async def update(self, query: query.Update) -> Optional[Item]:
        return await run_in_threadpool(self._update, query)

    async def delete(self, query: query.Delete) -> bool:
        return await run_in_threadpool(self._delete, query)
