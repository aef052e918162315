# -*- coding: utf-8 -*-

"""Resource definitions.

A Resource describes a named relational entity: its JSON schema, primary keys, the Source that stores it
and its relationships. Resources are created once by the integrator, `initialize` validates them and fills
in defaults. They are not modified afterwards.

    tasks = initialize({
        "name": "tasks",
        "source": source,
        "schema": {"type": "object", "properties": {...}, "required": ["title"]},
        "primaryKeys": ["id"],
        "relationships": {
            "belongsTo": [{"name": "users", "from": "owner", "to": "id"}],
            "has": [],
        },
    })
"""

from typing import Any, Dict, List, Mapping, Union

import pydantic
from pydantic import BaseModel, ConfigDict, Field, field_validator

from .errors import ConfigurationError


class Relationship(BaseModel):
    """
    An edge between two resources

    In `belongs_to`: `name` is the parent resource, `from_` the foreign key of this resource
    and `to` the key of the parent.
    In `has`: `name` is the child resource, `from_` the key of this resource and `to` the foreign key
    of the child.
    """

    model_config = ConfigDict(populate_by_name=True, frozen=True)

    name: str
    from_: str = Field(alias="from")
    to: str


class Relationships(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    belongs_to: List[Relationship] = Field(default_factory=list, alias="belongsTo")
    has: List[Relationship] = Field(default_factory=list)


class Resource(BaseModel):
    model_config = ConfigDict(populate_by_name=True, arbitrary_types_allowed=True)

    name: str
    source: Any
    schema_: Dict[str, Any] = Field(default_factory=dict, alias="schema")
    primary_keys: List[str] = Field(default_factory=lambda: ["id"], alias="primaryKeys")
    relationships: Relationships = Field(default_factory=Relationships)

    @field_validator("name")
    @classmethod
    def _name_not_empty(cls, value: str) -> str:
        if not value:
            raise ValueError("name must not be empty")
        return value

    @field_validator("source")
    @classmethod
    def _source_present(cls, value: Any) -> Any:
        if value is None:
            raise ValueError("source is required")
        return value

    @property
    def schema(self) -> Dict[str, Any]:
        return self.schema_

    @property
    def belongs_to(self) -> List[Relationship]:
        return self.relationships.belongs_to

    @property
    def has(self) -> List[Relationship]:
        return self.relationships.has


def initialize(resource: Union[Resource, Mapping[str, Any]], require_keys: bool = True) -> Resource:
    """
    Validate a resource definition and fill in its defaults

    :param resource: a Resource, or a mapping with the same fields
    :param require_keys: set to False for actions that don't address single items
    :return: the Resource
    """
    if isinstance(resource, Resource):
        result = resource
    else:
        try:
            result = Resource.model_validate(dict(resource))
        except pydantic.ValidationError as exc:
            raise ConfigurationError(f"Invalid resource definition: {exc}") from exc

    schema = result.schema_
    schema.setdefault("type", "object")
    schema.setdefault("properties", {})
    schema.setdefault("required", [])

    if require_keys and not result.primary_keys:
        raise ConfigurationError(f'Resource "{result.name}" has no primary keys')
    return result
