"""Declarative field rules and payload validation.

The rule helpers are plain functions used from pydantic ``field_validator``s on
the request models. Each helper either returns the sanitized value or raises a
``PydanticCustomError`` carrying the user-facing message, so pydantic collects
every violation of a payload in one pass.
"""

import re
from collections.abc import Iterable, Mapping, Sequence
from typing import Any, TypeVar

from email_validator import EmailNotValidError, validate_email
from pydantic import BaseModel, ValidationError
from pydantic_core import PydanticCustomError

from taskboard.core.errors import FieldError, ValidationFailed


ModelT = TypeVar("ModelT", bound=BaseModel)

RECORD_ID_PATTERN = re.compile(r"^[0-9a-f]{32}$")

# Locations FastAPI prepends to request validation errors
_REQUEST_LOCATIONS = {"body", "query", "path", "header", "cookie"}

# Never echoed back in error details
_REDACTED_FIELDS = {"password"}


def _violation(message: str) -> PydanticCustomError:
    return PydanticCustomError("constraint", message)


def require_text(
    value: Any,
    *,
    label: str,
    required_message: str,
    max_length: int,
    max_message: str,
    min_length: int = 1,
    min_message: str | None = None,
) -> str:
    """Trim a required string and enforce its length bounds."""
    if value is None:
        raise _violation(required_message)
    if not isinstance(value, str):
        raise _violation(f"{label} must be a string")

    text = value.strip()
    if not text:
        raise _violation(required_message)
    if len(text) < min_length:
        raise _violation(min_message or required_message)
    if len(text) > max_length:
        raise _violation(max_message)
    return text


def optional_text(value: Any, *, label: str, max_length: int, max_message: str) -> str:
    """Trim an optional string; null becomes empty."""
    if value is None:
        return ""
    if not isinstance(value, str):
        raise _violation(f"{label} must be a string")

    text = value.strip()
    if len(text) > max_length:
        raise _violation(max_message)
    return text


def search_text(value: Any, *, max_length: int, message: str) -> str | None:
    """Optional free-text term; blank becomes None."""
    if value is None:
        return None
    if not isinstance(value, str) or len(value) > max_length:
        raise _violation(message)
    return value.strip() or None


def one_of(value: Any, choices: Iterable[str], *, message: str) -> str:
    """Enforce enum membership."""
    if not isinstance(value, str) or value not in set(choices):
        raise _violation(message)
    return value


def positive_int(value: Any, *, message: str, minimum: int = 1, maximum: int | None = None) -> int:
    """Parse an integer (query strings included) and enforce its bounds."""
    if isinstance(value, bool):
        raise _violation(message)

    if isinstance(value, int):
        number = value
    elif isinstance(value, str) and value.strip().lstrip("+-").isdigit():
        number = int(value.strip())
    else:
        raise _violation(message)

    if number < minimum or (maximum is not None and number > maximum):
        raise _violation(message)
    return number


def valid_email(value: Any, *, required_message: str, invalid_message: str) -> str:
    """Validate email syntax and normalize to lowercase."""
    if value is None or (isinstance(value, str) and not value.strip()):
        raise _violation(required_message)
    if not isinstance(value, str):
        raise _violation(invalid_message)

    try:
        result = validate_email(value.strip(), check_deliverability=False)
    except EmailNotValidError as e:
        raise _violation(invalid_message) from e
    return result.normalized.lower()


def require_password(
    value: Any,
    *,
    required_message: str,
    min_length: int = 0,
    min_message: str | None = None,
    max_bytes: int | None = None,
    max_message: str | None = None,
) -> str:
    """Passwords are taken verbatim (no trimming). The upper bound is in UTF-8 bytes."""
    if value is None or value == "":
        raise _violation(required_message)
    if not isinstance(value, str):
        raise _violation("Password must be a string")
    if len(value) < min_length:
        raise _violation(min_message or required_message)
    if max_bytes is not None and len(value.encode("utf-8")) > max_bytes:
        raise _violation(max_message or required_message)
    return value


def _safe_value(value: Any) -> Any:
    if value is None or isinstance(value, str | int | float | bool):
        return value
    if isinstance(value, Mapping):
        return {str(key): _safe_value(item) for key, item in value.items()}
    if isinstance(value, list | tuple):
        return [_safe_value(item) for item in value]
    return str(value)


def field_errors_from(errors: Sequence[Mapping[str, Any]]) -> list[FieldError]:
    """Convert pydantic/FastAPI error dicts into FieldErrors, preserving order."""
    field_errors = []
    for error in errors:
        loc = [str(part) for part in error.get("loc", ())]
        if len(loc) > 1 and loc[0] in _REQUEST_LOCATIONS:
            loc = loc[1:]
        field = ".".join(loc) if loc else "body"

        value = None if error.get("type") == "missing" or field in _REDACTED_FIELDS else error.get("input")
        field_errors.append(FieldError(field=field, message=str(error.get("msg", "Invalid value")), value=_safe_value(value)))
    return field_errors


def collect_errors(model: type[ModelT], data: Any) -> tuple[ModelT | None, list[FieldError]]:
    """Validate data against a request model without raising.

    Returns the model instance and an empty list, or None and every violation found.
    """
    try:
        return model.model_validate(data if data is not None else {}), []
    except ValidationError as e:
        return None, field_errors_from(e.errors())


def validate_payload(model: type[ModelT], data: Any) -> ModelT:
    """Validate data against a request model, raising ValidationFailed with all violations."""
    instance, errors = collect_errors(model, data)
    if errors or instance is None:
        raise ValidationFailed(errors)
    return instance


def ensure_record_id(record_id: str, *, message: str = "Invalid task ID format") -> str:
    """Reject ids that cannot have been issued by the record store."""
    if not RECORD_ID_PATTERN.match(record_id):
        raise ValidationFailed([FieldError(field="id", message=message, value=record_id)])
    return record_id
