"""Task domain models and enums."""

from datetime import datetime
from enum import StrEnum

from pydantic import BaseModel, ConfigDict, Field, computed_field


class TaskStatus(StrEnum):
    """Task lifecycle state."""

    PENDING = "pending"
    IN_PROGRESS = "in-progress"
    COMPLETED = "completed"

    @property
    def label(self) -> str:
        """Display label (e.g. 'In Progress')."""
        return _STATUS_LABELS[self]


_STATUS_LABELS = {
    TaskStatus.PENDING: "Pending",
    TaskStatus.IN_PROGRESS: "In Progress",
    TaskStatus.COMPLETED: "Completed",
}

TASK_STATUS_VALUES: tuple[str, ...] = tuple(status.value for status in TaskStatus)
STATUS_MESSAGE = f"Status must be one of: {', '.join(TASK_STATUS_VALUES)}"

# Every state may move to every other state; nothing transitions on its own.
ALLOWED_TRANSITIONS: dict[TaskStatus, frozenset[TaskStatus]] = {
    status: frozenset(other for other in TaskStatus if other is not status) for status in TaskStatus
}


def can_transition(current: TaskStatus, target: TaskStatus) -> bool:
    """Return True if a task in ``current`` may be moved to ``target``."""
    return current == target or target in ALLOWED_TRANSITIONS[current]


class Task(BaseModel):
    """Task data transfer object."""

    model_config = ConfigDict(populate_by_name=True)

    id: str = Field(..., description="Unique task ID")
    title: str = Field(..., description="Task title")
    description: str = Field(default="", description="Detailed task description")
    status: TaskStatus = Field(default=TaskStatus.PENDING, description="Current lifecycle state")
    owner_id: str | None = Field(default=None, alias="user", description="ID of the user who created the task")
    created: datetime = Field(..., alias="createdAt", description="Creation timestamp")
    updated: datetime = Field(..., alias="updatedAt", description="Last update timestamp")

    @computed_field(alias="formattedStatus")  # type: ignore[prop-decorator]
    @property
    def formatted_status(self) -> str:
        return self.status.label

    def is_completed(self) -> bool:
        return self.status == TaskStatus.COMPLETED

    def is_pending(self) -> bool:
        return self.status == TaskStatus.PENDING


class TaskPage(BaseModel):
    """One page of a filtered task listing."""

    items: list[Task] = Field(default_factory=list, description="Tasks on this page, newest first")
    total: int = Field(..., description="Number of tasks matching the filter across all pages")
    page: int = Field(..., description="1-based page number")
    pages: int = Field(..., description="Number of pages for the filter at the requested limit")


class TaskStats(BaseModel):
    """Task counts grouped by status."""

    model_config = ConfigDict(populate_by_name=True)

    pending: int = 0
    in_progress: int = Field(default=0, alias="in-progress")
    completed: int = 0
    total: int = 0
