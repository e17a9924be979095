"""Update models for partial record changes.

Only fields present in the payload are validated and applied; use
``changes()`` rather than ``model_dump()`` to get them.
"""

from typing import Any

from pydantic import BaseModel, field_validator

from taskboard.domain.create_models import (
    validate_description,
    validate_email_field,
    validate_name,
    validate_new_password,
    validate_status,
    validate_title,
)
from taskboard.domain.task import TaskStatus


class TaskUpdate(BaseModel):
    """Partial update payload for a task."""

    title: str | None = None
    description: str | None = None
    status: TaskStatus | None = None

    @field_validator("title", mode="before")
    @classmethod
    def check_title(cls, v: Any) -> str:
        return validate_title(v, required_message="Task title cannot be empty")

    @field_validator("description", mode="before")
    @classmethod
    def check_description(cls, v: Any) -> str:
        return validate_description(v)

    @field_validator("status", mode="before")
    @classmethod
    def check_status(cls, v: Any) -> str:
        return validate_status(v)

    def changes(self) -> dict[str, Any]:
        """Fields explicitly present in the request."""
        return self.model_dump(include=self.model_fields_set)


class UserUpdate(BaseModel):
    """Partial update payload for the current user's profile."""

    name: str | None = None
    email: str | None = None
    password: str | None = None

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

    def changes(self) -> dict[str, Any]:
        """Fields explicitly present in the request."""
        return self.model_dump(include=self.model_fields_set)
