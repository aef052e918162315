# Exception Handlers
#
# The application loglevel determines the level of detail shown to the user.
# If set to debug, too much sensitive info might be shown !
#
# The exceptions will be caught by the handlers installed in prism.fastapi and formatted, for example:
# {
#      "statusCode": 422,
#      "error": "Unprocessable Entity",
#      "message": "Schema validation failed",
#      "errors": [{"message": "...", "dataPath": "/title", "schemaPath": "#/required", "params": {}}]
# }
#
from http import HTTPStatus
from typing import Any, Dict, List, Optional
import prism
from .config import is_debug

HIDDEN_LOG = "(debug logging disabled)"


class PrismError(Exception):
    """
    Base class of the errors that are rendered as an HTTP error response
    """

    status_code = HTTPStatus.INTERNAL_SERVER_ERROR.value
    message = ""
    errors: Optional[List[Dict[str, Any]]] = None

    def __str__(self) -> str:
        return self.message

    def to_dict(self) -> Dict[str, Any]:
        """
        :return: the json error payload
        """
        try:
            phrase = HTTPStatus(self.status_code).phrase
        except ValueError:  # pragma: no cover
            phrase = "HTTP Error"
        result: Dict[str, Any] = {"statusCode": self.status_code, "error": phrase, "message": self.message}
        if self.errors is not None:
            result["errors"] = self.errors
        return result


class ValidationError(PrismError):
    """
    This exception is raised when invalid input has been detected (client side input)
    Always send back the message and the field level errors to the client in the response
    """

    status_code = HTTPStatus.UNPROCESSABLE_ENTITY.value
    message = "Schema validation failed"

    def __init__(self, message: str = "", errors: Optional[List[Dict[str, Any]]] = None, status_code: int = HTTPStatus.UNPROCESSABLE_ENTITY.value) -> None:
        Exception.__init__(self)
        self.status_code = status_code
        if message:
            self.message = message
        self.errors = list(errors) if errors is not None else []
        prism.log.warning("ValidationError: %s %s", self.message, self.errors)


class ConstraintViolation(ValidationError):
    """
    This exception is raised when a foreign key refers to a row that doesn't exist
    The error is scoped to the offending field
    """

    message = "Constraint violation"

    def __init__(self, field: str, message: str = "Constraint violation") -> None:
        self.field = field
        error = {
            "message": message,
            "dataPath": f"/{field}",
            "schemaPath": f"#/properties/{field}/constraint",
            "params": {},
        }
        ValidationError.__init__(self, message, [error])


class BadRequestError(PrismError):
    """
    This exception is raised when the request body can't be parsed
    """

    status_code = HTTPStatus.BAD_REQUEST.value
    message = "Bad Request"

    def __init__(self, message: str = "") -> None:
        Exception.__init__(self)
        prism.log.warning("BadRequestError: %s", message)
        if message:
            self.message = message


class NotFoundError(PrismError):
    """
    This exception is raised when an item was not found
    """

    status_code = HTTPStatus.NOT_FOUND.value
    message = "Not Found"

    def __init__(self, message: str = "") -> None:
        Exception.__init__(self)
        prism.log.info("Not found: %s", message)


class UnAuthorizedError(PrismError):
    """
    This exception is raised when a request lacks valid credentials
    """

    status_code = HTTPStatus.UNAUTHORIZED.value
    message = "Authorization Error: "

    def __init__(self, message: str = "", status_code: int = HTTPStatus.UNAUTHORIZED.value) -> None:
        Exception.__init__(self)
        self.status_code = status_code
        prism.log.error("UnAuthorizedError: %s", message)
        if is_debug():
            self.message += message
        else:
            self.message += HIDDEN_LOG


class ForbiddenError(UnAuthorizedError):
    """
    This exception is raised when valid credentials don't grant access
    """

    status_code = HTTPStatus.FORBIDDEN.value

    def __init__(self, message: str = "") -> None:
        UnAuthorizedError.__init__(self, message, HTTPStatus.FORBIDDEN.value)


class GenericError(PrismError):
    """
    This exception is raised when an unexpected error has been detected
    """

    status_code = HTTPStatus.INTERNAL_SERVER_ERROR.value  # 500
    message = "Generic Error: "

    def __init__(self, message: Any, status_code: int = HTTPStatus.INTERNAL_SERVER_ERROR.value) -> None:
        Exception.__init__(self)
        self.status_code = status_code
        exc_info = message if isinstance(message, BaseException) else None
        prism.log.error("Generic Error: %s", message, exc_info=exc_info)
        if is_debug():
            self.message += str(message)
        else:
            self.message += HIDDEN_LOG


class ConfigurationError(PrismError):
    """
    This exception is raised when the api has been set up incorrectly, eg. an invalid resource definition
    or secure mode without a security backend. It is raised before the server starts serving and never caught.
    """

    message = "Configuration Error: "

    def __init__(self, message: str = "") -> None:
        Exception.__init__(self, message)
        prism.log.critical("ConfigurationError: %s", message)
        self.message += message
