"""Query-string models."""

from typing import Any

from pydantic import BaseModel, Field, field_validator

from taskboard.core.config import constants
from taskboard.core.validators import positive_int, search_text
from taskboard.domain.create_models import validate_status
from taskboard.domain.task import TaskStatus


class TaskQuery(BaseModel):
    """Filter and pagination parameters for listing tasks."""

    status: TaskStatus | None = Field(default=None, description="Exact status match")
    search: str | None = Field(default=None, description="Case-insensitive substring of title or description")
    page: int = Field(default=constants.DEFAULT_PAGE, description="1-based page number")
    limit: int = Field(default=constants.DEFAULT_PAGE_LIMIT, description="Items per page (max 100)")

    @field_validator("status", mode="before")
    @classmethod
    def check_status(cls, v: Any) -> str | None:
        if v is None or v == "":
            return None
        return validate_status(v)

    @field_validator("search", mode="before")
    @classmethod
    def check_search(cls, v: Any) -> str | None:
        return search_text(
            v,
            max_length=constants.SEARCH_MAX_LENGTH,
            message=f"Search term cannot exceed {constants.SEARCH_MAX_LENGTH} characters",
        )

    @field_validator("page", mode="before")
    @classmethod
    def check_page(cls, v: Any) -> int:
        return positive_int(v, message="Page must be a positive integer", maximum=constants.MAX_PAGE)

    @field_validator("limit", mode="before")
    @classmethod
    def check_limit(cls, v: Any) -> int:
        return positive_int(
            v,
            message=f"Limit must be between 1 and {constants.MAX_PAGE_LIMIT}",
            maximum=constants.MAX_PAGE_LIMIT,
        )

    @property
    def offset(self) -> int:
        return (self.page - 1) * self.limit
