# -*- coding: utf-8 -*-

"""Sources execute the query records produced by the actions.

A collection read resolves to `{"items": [...], "count": <total number of matching rows>}`,
an item read to the item or `None`.
"""

from abc import ABC, abstractmethod
from typing import Any, Dict, List, Optional, Union

from .. import query

Item = Dict[str, Any]
Collection = Dict[str, Union[List[Item], int]]


class Source(ABC):
    kind = "source"

    @abstractmethod
    async def create(self, query: query.Create) -> Optional[Item]:
        """
        :return: the `returning` fields of the created item
        :raise ConstraintViolation: when a foreign key refers to a row that doesn't exist
        """

    @abstractmethod
    async def read(self, query: query.Read) -> Optional[Union[Item, Collection]]:
        pass

    @abstractmethod
    async def update(self, query: query.Update) -> Optional[Item]:
        """
        :return: the `returning` fields of the updated item, None when no item matched
        :raise ConstraintViolation: when a foreign key refers to a row that doesn't exist
        """

    @abstractmethod
    async def delete(self, query: query.Delete) -> bool:
        """
        :return: whether an item was deleted
        """


from .sqla import SQLAlchemySource  # noqa: E402

__all__ = ("Source", "SQLAlchemySource", "Item", "Collection")
