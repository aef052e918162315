# -*- coding: utf-8 -*-

"""Security backends decide whether a token may be issued and whether a presented token is valid."""

from abc import ABC, abstractmethod
from typing import Any, Dict, Optional, Sequence, Union

from ..action import Params
from ..filters import Filter
from ..schema import Schema

Claims = Dict[str, Any]


class Backend(ABC):
    """
    :param schema: JSON schema of the payload that is posted to obtain a token, None when it isn't described
    :param filters: filters the backend applies to other actions
    """

    kind = "security_backend"
    schema: Optional[Schema] = None
    filters: Sequence[Union[Filter, Sequence[Filter]]] = ()
    register: Any = None

    @abstractmethod
    async def issue(self, params: Params, request: Any) -> Union[Claims, bool]:
        """
        :return: the claims of the token to issue, False when the request doesn't qualify for a token
        """

    @abstractmethod
    async def validate(self, claims: Claims, request: Any) -> Union[Dict[str, Any], bool]:
        """
        :return: the credentials that the token refers to (eg. the user), False when they're no longer valid
        """
