"""Error taxonomy shared by the domain, persistence, and HTTP layers."""
from __future__ import annotations

import logging
from dataclasses import dataclass
from enum import Enum
from typing import Dict, List, Optional

logger = logging.getLogger("travelorders.errors")

GENERIC_ERROR_MESSAGE = "An internal server error occurred"


class ErrorKind(Enum):
    """Every failure category the API can report, with its HTTP status."""

    VALIDATION = 422
    UNAUTHORIZED = 401
    NOT_FOUND = 404
    DOMAIN_RULE = 400
    UNEXPECTED = 500

    @property
    def status_code(self) -> int:
        return self.value


class ApiError(Exception):
    """Base class for failures that are categorised where they are detected."""

    kind: ErrorKind = ErrorKind.UNEXPECTED
    default_message = "An error occurred"

    def __init__(
        self,
        message: Optional[str] = None,
        *,
        errors: Optional[Dict[str, List[str]]] = None,
    ) -> None:
        self.message = message or self.default_message
        self.errors = errors
        super().__init__(self.message)

    @property
    def status_code(self) -> int:
        return self.kind.status_code


class ValidationFailed(ApiError):
    kind = ErrorKind.VALIDATION
    default_message = "Validation failed"


class Unauthorized(ApiError):
    kind = ErrorKind.UNAUTHORIZED
    default_message = "Unauthorized"


class NotFound(ApiError):
    kind = ErrorKind.NOT_FOUND
    default_message = "Resource not found"


class DomainRuleViolation(ApiError):
    kind = ErrorKind.DOMAIN_RULE
    default_message = "The requested change is not allowed"


@dataclass(frozen=True)
class ErrorTranslation:
    status_code: int
    message: str
    errors: Optional[Dict[str, List[str]]] = None


def translate_error(exc: BaseException, *, debug: bool = False) -> ErrorTranslation:
    """Map any exception raised while serving a request onto the envelope fields.

    Categorised :class:`ApiError` instances keep their message and field errors.
    Anything else is logged with its traceback and reported as a generic 500,
    unless ``debug`` is set, in which case the original message is exposed.
    """

    if isinstance(exc, ApiError):
        return ErrorTranslation(status_code=exc.status_code, message=exc.message, errors=exc.errors)

    logger.error("Unhandled error while processing request", exc_info=exc)
    message = str(exc) if debug and str(exc) else GENERIC_ERROR_MESSAGE
    return ErrorTranslation(status_code=ErrorKind.UNEXPECTED.status_code, message=message)


__all__ = [
    "ApiError",
    "DomainRuleViolation",
    "ErrorKind",
    "ErrorTranslation",
    "GENERIC_ERROR_MESSAGE",
    "NotFound",
    "Unauthorized",
    "ValidationFailed",
    "translate_error",
]
