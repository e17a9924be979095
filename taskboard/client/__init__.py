"""Python client for the taskboard API."""

from taskboard.client.api_client import ApiClientError, TaskboardClient
from taskboard.client.state import Resource, ResourceStatus, SessionState, TaskBoardState, run


__all__ = [
    "ApiClientError",
    "Resource",
    "ResourceStatus",
    "SessionState",
    "TaskBoardState",
    "TaskboardClient",
    "run",
]
