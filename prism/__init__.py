# flake8: noqa: F401
#
# prism_init has to be imported first: the other modules use prism.log and prism.PRISM
#
from .prism_init import PRISM, log
from .errors import (
    PrismError,
    ValidationError,
    ConstraintViolation,
    BadRequestError,
    NotFoundError,
    UnAuthorizedError,
    ForbiddenError,
    GenericError,
    ConfigurationError,
)
from .document import Document, Link, Form, Embed
from .filters import Filter
from .registry import Registry
from .resource import Resource, Relationship, initialize
from .source import Source, SQLAlchemySource
from .action import (
    Action,
    ActionKind,
    Root,
    ReadItem,
    ReadCollection,
    CreateItem,
    UpdateItem,
    DeleteItem,
    resource_actions,
)
from .fastapi import PrismFastAPI
from .__about__ import __version__, __description__

__all__ = (
    "__version__",
    "__description__",
    #
    "PRISM",
    "log",
    # registry:
    "Registry",
    "Filter",
    # documents:
    "Document",
    "Link",
    "Form",
    "Embed",
    # resources:
    "Resource",
    "Relationship",
    "initialize",
    "Source",
    "SQLAlchemySource",
    # actions:
    "Action",
    "ActionKind",
    "Root",
    "ReadItem",
    "ReadCollection",
    "CreateItem",
    "UpdateItem",
    "DeleteItem",
    "resource_actions",
    # fastapi:
    "PrismFastAPI",
    # Errors:
    "PrismError",
    "ValidationError",
    "ConstraintViolation",
    "BadRequestError",
    "NotFoundError",
    "UnAuthorizedError",
    "ForbiddenError",
    "GenericError",
    "ConfigurationError",
)
