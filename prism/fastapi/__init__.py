# -*- coding: utf-8 -*-

from ..responses import ActionResponse, HALResponse
from .plugin import PrismFastAPI, dequery, install_prism_exception_handlers, merge_request_parameters, parse_parameter

__all__ = (
    "PrismFastAPI",
    "HALResponse",
    "ActionResponse",
    "dequery",
    "install_prism_exception_handlers",
    "merge_request_parameters",
    "parse_parameter",
)
