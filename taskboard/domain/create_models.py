"""Request models for creating records and authenticating."""

from typing import Any

from pydantic import BaseModel, Field, field_validator

from taskboard.core.config import constants
from taskboard.core.validators import one_of, optional_text, require_password, require_text, valid_email
from taskboard.domain.task import STATUS_MESSAGE, TASK_STATUS_VALUES, TaskStatus


TITLE_TOO_LONG = f"Title cannot exceed {constants.TITLE_MAX_LENGTH} characters"
DESCRIPTION_TOO_LONG = f"Description cannot exceed {constants.DESCRIPTION_MAX_LENGTH} characters"
NAME_LENGTH = f"Name must be between {constants.NAME_MIN_LENGTH} and {constants.NAME_MAX_LENGTH} characters"
PASSWORD_TOO_SHORT = f"Password must be at least {constants.PASSWORD_MIN_LENGTH} characters"
PASSWORD_TOO_LONG = f"Password cannot exceed {constants.BCRYPT_MAX_PASSWORD_BYTES} bytes"
EMAIL_INVALID = "Please enter a valid email"


def validate_title(value: Any, *, required_message: str) -> str:
    return require_text(
        value,
        label="Title",
        required_message=required_message,
        max_length=constants.TITLE_MAX_LENGTH,
        max_message=TITLE_TOO_LONG,
    )


def validate_description(value: Any) -> str:
    return optional_text(
        value,
        label="Description",
        max_length=constants.DESCRIPTION_MAX_LENGTH,
        max_message=DESCRIPTION_TOO_LONG,
    )


def validate_status(value: Any) -> str:
    return one_of(value, TASK_STATUS_VALUES, message=STATUS_MESSAGE)


def validate_name(value: Any) -> str:
    return require_text(
        value,
        label="Name",
        required_message="Name is required",
        min_length=constants.NAME_MIN_LENGTH,
        min_message=NAME_LENGTH,
        max_length=constants.NAME_MAX_LENGTH,
        max_message=NAME_LENGTH,
    )


def validate_new_password(value: Any) -> str:
    return require_password(
        value,
        required_message="Password is required",
        min_length=constants.PASSWORD_MIN_LENGTH,
        min_message=PASSWORD_TOO_SHORT,
        max_bytes=constants.BCRYPT_MAX_PASSWORD_BYTES,
        max_message=PASSWORD_TOO_LONG,
    )


def validate_email_field(value: Any) -> str:
    return valid_email(value, required_message="Email is required", invalid_message=EMAIL_INVALID)


class TaskCreate(BaseModel):
    """Payload for creating a task."""

    title: str = Field(default=None, validate_default=True, description="Task title (1-200 chars, trimmed)")  # type: ignore[assignment]
    description: str = Field(default="", description="Optional description (0-2000 chars, trimmed)")
    status: TaskStatus = Field(default=TaskStatus.PENDING, description="Initial status")

    @field_validator("title", mode="before")
    @classmethod
    def check_title(cls, v: Any) -> str:
        return validate_title(v, required_message="Task title is required")

    @field_validator("description", mode="before")
    @classmethod
    def check_description(cls, v: Any) -> str:
        return validate_description(v)

    @field_validator("status", mode="before")
    @classmethod
    def check_status(cls, v: Any) -> str:
        return validate_status(v)


class RegisterRequest(BaseModel):
    """Payload for registering a user."""

    name: str = Field(default=None, validate_default=True, description="Display name (2-100 chars)")  # type: ignore[assignment]
    email: str = Field(default=None, validate_default=True, description="Email address, stored lowercase")  # type: ignore[assignment]
    password: str = Field(default=None, validate_default=True, description="Plaintext password (min 6 chars)")  # type: ignore[assignment]

    @field_validator("name", mode="before")
    @classmethod
    def check_name(cls, v: Any) -> str:
        return validate_name(v)

    @field_validator("email", mode="before")
    @classmethod
    def check_email(cls, v: Any) -> str:
        return validate_email_field(v)

    @field_validator("password", mode="before")
    @classmethod
    def check_password(cls, v: Any) -> str:
        return validate_new_password(v)


class LoginRequest(BaseModel):
    """Payload for logging in."""

    email: str = Field(default=None, validate_default=True)  # type: ignore[assignment]
    password: str = Field(default=None, validate_default=True)  # type: ignore[assignment]

    @field_validator("email", mode="before")
    @classmethod
    def check_email(cls, v: Any) -> str:
        return validate_email_field(v)

    @field_validator("password", mode="before")
    @classmethod
    def check_password(cls, v: Any) -> str:
        return require_password(v, required_message="Password is required")
