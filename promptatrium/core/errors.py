"""
Application error taxonomy.

Every failure a service wants to surface to API clients is raised as an
``AppError`` (or one of its subclasses). The server's exception handlers map
the error type to an HTTP status and a uniform JSON body::

    {"error": {"message": "...", "type": "NOT_FOUND", "timestamp": "..."}}

Errors flagged as non-operational are programming or infrastructure faults;
they are logged at error level, while operational errors (bad input, missing
rows, permission failures) are expected and logged at warning level.
"""

from __future__ import annotations

from enum import Enum
from typing import Any, Dict, Optional


class ErrorType(str, Enum):
    """Failure categories understood by the API layer."""

    VALIDATION = "VALIDATION_ERROR"
    AUTHENTICATION = "AUTHENTICATION_ERROR"
    AUTHORIZATION = "AUTHORIZATION_ERROR"
    NOT_FOUND = "NOT_FOUND"
    CONFLICT = "CONFLICT"
    RATE_LIMIT = "RATE_LIMIT"
    DATABASE = "DATABASE_ERROR"
    EXTERNAL_SERVICE = "EXTERNAL_SERVICE"
    FILE_UPLOAD = "FILE_UPLOAD"
    INTERNAL = "INTERNAL_ERROR"


ERROR_STATUS_CODES: Dict[ErrorType, int] = {
    ErrorType.VALIDATION: 400,
    ErrorType.AUTHENTICATION: 401,
    ErrorType.AUTHORIZATION: 403,
    ErrorType.NOT_FOUND: 404,
    ErrorType.CONFLICT: 409,
    ErrorType.RATE_LIMIT: 429,
    ErrorType.FILE_UPLOAD: 413,
    ErrorType.DATABASE: 500,
    ErrorType.EXTERNAL_SERVICE: 502,
    ErrorType.INTERNAL: 500,
}


class AppError(Exception):
    """Base class for errors that carry an HTTP-facing category."""

    def __init__(
        self,
        message: str,
        error_type: ErrorType = ErrorType.INTERNAL,
        status_code: Optional[int] = None,
        is_operational: bool = True,
        metadata: Optional[Dict[str, Any]] = None,
    ) -> None:
        super().__init__(message)
        self.message = message
        self.error_type = error_type
        self.status_code = status_code if status_code is not None else ERROR_STATUS_CODES[error_type]
        self.is_operational = is_operational
        self.metadata = metadata or {}

    def __repr__(self) -> str:
        return f"{type(self).__name__}(type={self.error_type.value}, status={self.status_code}, message={self.message!r})"


class ValidationError(AppError):
    def __init__(self, message: str, metadata: Optional[Dict[str, Any]] = None) -> None:
        super().__init__(message, ErrorType.VALIDATION, metadata=metadata)


class AuthenticationError(AppError):
    def __init__(self, message: str = "Unauthorized") -> None:
        super().__init__(message, ErrorType.AUTHENTICATION)


class AuthorizationError(AppError):
    def __init__(self, message: str = "Insufficient permissions") -> None:
        super().__init__(message, ErrorType.AUTHORIZATION)


class NotFoundError(AppError):
    def __init__(self, resource: str) -> None:
        super().__init__(f"{resource} not found", ErrorType.NOT_FOUND, metadata={"resource": resource})


class ConflictError(AppError):
    def __init__(self, message: str = "Resource already exists") -> None:
        super().__init__(message, ErrorType.CONFLICT)


class RateLimitError(AppError):
    def __init__(self, message: str, retry_after: int) -> None:
        super().__init__(message, ErrorType.RATE_LIMIT, metadata={"retry_after": retry_after})

    @property
    def retry_after(self) -> int:
        return int(self.metadata["retry_after"])


class ExternalServiceError(AppError):
    def __init__(self, service: str, message: str) -> None:
        super().__init__(
            f"{service}: {message}", ErrorType.EXTERNAL_SERVICE, metadata={"service": service, "reason": message}
        )
