"""Error taxonomy shared by the services and the HTTP boundary."""

from enum import StrEnum
from typing import Any

from pydantic import BaseModel, Field


class ErrorCode:
    """Error codes for specific error conditions."""

    ERR_VALIDATION_FAILED = "ERR_VALIDATION_FAILED"
    ERR_DUPLICATE_KEY = "ERR_DUPLICATE_KEY"
    ERR_UNAUTHORIZED = "ERR_UNAUTHORIZED"
    ERR_NOT_FOUND = "ERR_NOT_FOUND"
    ERR_INTERNAL = "ERR_INTERNAL"


class UnauthorizedReason(StrEnum):
    """Why a request could not be authenticated."""

    MISSING = "missing"
    INVALID = "invalid"
    EXPIRED = "expired"
    USER_NOT_FOUND = "user_not_found"
    BAD_CREDENTIALS = "bad_credentials"


class FieldError(BaseModel):
    """A single constraint violation on a request field."""

    field: str = Field(..., description="Name of the offending field")
    message: str = Field(..., description="Human readable violation message")
    value: Any = Field(default=None, description="The offending value as received")


class ErrorResponse(BaseModel):
    """Uniform error envelope returned by every failing endpoint."""

    success: bool = False
    message: str
    details: Any = None


class AppError(Exception):
    """Base class for errors that map onto an HTTP status."""

    status_code: int = 500
    code: str = ErrorCode.ERR_INTERNAL

    def __init__(self, message: str, details: Any = None) -> None:
        super().__init__(message)
        self.message = message
        self.details = details

    def to_response(self) -> ErrorResponse:
        """Render the error as the uniform envelope."""
        details = self.details
        if isinstance(details, list):
            details = [item.model_dump() if isinstance(item, BaseModel) else item for item in details]
        elif isinstance(details, BaseModel):
            details = details.model_dump()
        return ErrorResponse(message=self.message, details=details)


class ValidationFailed(AppError):
    """One or more request fields violate their constraints."""

    status_code = 400
    code = ErrorCode.ERR_VALIDATION_FAILED

    def __init__(self, errors: list[FieldError], message: str = "Validation failed") -> None:
        super().__init__(message, details=list(errors))
        self.errors = list(errors)

    def fields(self) -> list[str]:
        """Names of the offending fields, in order."""
        return [error.field for error in self.errors]


class DuplicateKey(AppError):
    """A unique constraint was violated."""

    status_code = 400
    code = ErrorCode.ERR_DUPLICATE_KEY

    def __init__(self, field: str, message: str = "Duplicate field value entered") -> None:
        super().__init__(message, details={"field": field, "message": f"{field} already exists"})
        self.field = field


class Unauthorized(AppError):
    """The request carries no usable identity."""

    status_code = 401
    code = ErrorCode.ERR_UNAUTHORIZED

    def __init__(self, message: str, reason: UnauthorizedReason) -> None:
        super().__init__(message)
        self.reason = reason


class NotFound(AppError):
    """The addressed record does not exist."""

    status_code = 404
    code = ErrorCode.ERR_NOT_FOUND


class InternalError(AppError):
    """Anything unanticipated."""

    status_code = 500
    code = ErrorCode.ERR_INTERNAL


class TokenError(Exception):
    """A session token could not be verified."""


class InvalidToken(TokenError):
    """Token signature or payload is not valid."""


class ExpiredToken(TokenError):
    """Token signature is valid but its lifetime has elapsed."""
