# -*- coding: utf-8 -*-

from typing import Any, Mapping, Optional

from fastapi.responses import JSONResponse
from starlette.responses import Response


class HALResponse(JSONResponse):
    """
    Rendered documents are sent as 'application/hal+json'
    """

    media_type = "application/hal+json"


class ActionResponse(Response):
    """
    Bodiless response of the mutating actions (201 / 204)
    `item` holds the fields the source returned, eg. the keys of a created item
    """

    def __init__(self, status_code: int, item: Optional[Mapping[str, Any]] = None, headers: Optional[Mapping[str, str]] = None) -> None:
        super().__init__(status_code=status_code, headers=headers)
        self.item = item
