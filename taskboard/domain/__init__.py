"""Domain models and DTOs."""

from taskboard.domain.create_models import LoginRequest, RegisterRequest, TaskCreate
from taskboard.domain.query_models import TaskQuery
from taskboard.domain.task import Task, TaskPage, TaskStats, TaskStatus
from taskboard.domain.update_models import TaskUpdate, UserUpdate
from taskboard.domain.user import AuthResult, User


__all__ = [
    "AuthResult",
    "LoginRequest",
    "RegisterRequest",
    "Task",
    "TaskCreate",
    "TaskPage",
    "TaskQuery",
    "TaskStats",
    "TaskStatus",
    "TaskUpdate",
    "User",
    "UserUpdate",
]
