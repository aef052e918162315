# -*- coding: utf-8 -*-

"""Query records.

Actions describe what they need from a Source with these records, the Source decides how to execute them.
"""

from dataclasses import dataclass, field, replace
from typing import Any, Dict, List, Literal, Optional, Union


@dataclass
class Condition:
    field: str
    value: Any
    operator: str = "="


@dataclass
class And:
    conditions: List["Clause"]


@dataclass
class Or:
    conditions: List["Clause"]


@dataclass
class Raw:
    """
    A raw SQL fragment with named bind parameters, eg. `Raw("tasks.due < :now", {"now": now})`
    """

    sql: str
    params: Dict[str, Any] = field(default_factory=dict)


Clause = Union[Condition, And, Or, Raw]


@dataclass
class Join:
    """
    Fetch (or create) a related row alongside the main query

    :param source: name of the related resource
    :param path: relation names from the main row to the related row, used for aliasing and nesting
    :param from_: field of the row one step up the path
    :param to: field of the related row
    """

    source: str
    path: List[str]
    from_: str
    to: str

    def prefixed(self, segment: str) -> "Join":
        return replace(self, path=[segment] + list(self.path))


@dataclass
class Order:
    field: str
    direction: str = "asc"


@dataclass
class Page:
    number: int
    size: int

    @property
    def offset(self) -> int:
        return self.size * (self.number - 1)


@dataclass
class Query:
    source: str


@dataclass
class Create(Query):
    returning: List[str]
    schema: Dict[str, Any]
    data: Dict[str, Any]
    joins: List[Join] = field(default_factory=list)


@dataclass
class Read(Query):
    schema: Dict[str, Any]
    returns: Literal["item", "collection"] = "item"
    fields: Optional[List[str]] = None
    conditions: List[Clause] = field(default_factory=list)
    joins: List[Join] = field(default_factory=list)
    order: List[Order] = field(default_factory=list)
    page: Optional[Page] = None


@dataclass
class Update(Query):
    returning: List[str]
    schema: Dict[str, Any]
    data: Dict[str, Any]
    conditions: List[Clause] = field(default_factory=list)
    joins: List[Join] = field(default_factory=list)


@dataclass
class Delete(Query):
    conditions: List[Clause] = field(default_factory=list)
