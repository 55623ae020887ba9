"""Error catalog for the mock broker.

Every failure the lifecycle layer reports is a ``BrokerError`` carrying a
stable code and the HTTP status the server layer answers with. Errors are
terminal for the current call; nothing is retried internally.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any


@dataclass(frozen=True, slots=True)
class ErrorCode:
    """Represents a stable error code used in the error body."""

    code: str
    default_message: str
    status_code: int = 400

    def as_error(self, *, message: str | None = None, details: Any | None = None) -> dict[str, Any]:
        return {
            "error": self.code,
            "description": message if message is not None else self.default_message,
            "details": details,
        }


VALIDATION_FAILED = ErrorCode(
    code="VALIDATION_FAILED",
    default_message="Request validation failed.",
)

PARAMETERS_INVALID = ErrorCode(
    code="PARAMETERS_INVALID",
    default_message="Parameters do not match the plan schema.",
)

SERVICE_NOT_FOUND = ErrorCode(
    code="SERVICE_NOT_FOUND",
    default_message="Service is not in the catalog.",
)

PLAN_NOT_FOUND = ErrorCode(
    code="PLAN_NOT_FOUND",
    default_message="Service/plan pair is not in the catalog.",
)

INSTANCE_NOT_FOUND = ErrorCode(
    code="INSTANCE_NOT_FOUND",
    default_message="Service instance does not exist.",
    status_code=404,
)

INSTANCE_CONFLICT = ErrorCode(
    code="INSTANCE_CONFLICT",
    default_message="Service instance already exists.",
    status_code=409,
)

# Wire code defined by the broker API; platforms match on it verbatim.
CONCURRENCY_ERROR = ErrorCode(
    code="ConcurrencyError",
    default_message="Another operation for this service instance is in progress.",
    status_code=422,
)

CATALOG_INVALID = ErrorCode(
    code="CATALOG_INVALID",
    default_message="Catalog document is malformed.",
)

API_VERSION_MISSING = ErrorCode(
    code="API_VERSION_MISSING",
    default_message="Missing broker api version",
    status_code=412,
)


class BrokerError(Exception):
    """Base class for errors surfaced to broker callers."""

    error_code: ErrorCode = VALIDATION_FAILED

    def __init__(
        self,
        message: str | None = None,
        *,
        details: Any | None = None,
        error_code: ErrorCode | None = None,
    ) -> None:
        if error_code is not None:
            self.error_code = error_code
        self.message = message if message is not None else self.error_code.default_message
        self.details = details
        super().__init__(self.message)

    @property
    def code(self) -> str:
        return self.error_code.code

    @property
    def status_code(self) -> int:
        return self.error_code.status_code

    def to_dict(self) -> dict[str, Any]:
        return self.error_code.as_error(message=self.message, details=self.details)


class ValidationError(BrokerError):
    """Missing/malformed input or parameters rejected by a plan schema."""

    error_code = VALIDATION_FAILED


class NotFoundError(BrokerError):
    """A service, plan or instance that must resolve did not."""

    error_code = INSTANCE_NOT_FOUND


class ConflictError(BrokerError):
    error_code = INSTANCE_CONFLICT


class ConcurrencyError(BrokerError):
    error_code = CONCURRENCY_ERROR


class CatalogFormatError(BrokerError):
    error_code = CATALOG_INVALID


class PreconditionFailed(BrokerError):
    error_code = API_VERSION_MISSING


def error_from_exception(exc: Exception, *, include_details: bool = False) -> dict[str, Any]:
    """Best-effort conversion of unexpected exceptions into a stable error shape."""

    details = None
    if include_details:
        details = {"type": type(exc).__name__, "message": str(exc)}
    return {
        "error": "UNEXPECTED_ERROR",
        "description": "Unexpected error in mock broker.",
        "details": details,
    }
