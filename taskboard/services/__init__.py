"""Service layer for task and account operations."""

from taskboard.services.credential_service import CredentialService
from taskboard.services.task_service import TaskService
from taskboard.services.user_service import UserService


__all__ = [
    "CredentialService",
    "TaskService",
    "UserService",
]
