"""Client-side resource state for the task board.

Every remote value lives in a ``Resource`` whose lifecycle is an explicit
finite state: ``IDLE -> LOADING -> LOADED | ERROR``. ``run`` drives those
transitions from the completion of an API call.
"""

import logging
from collections.abc import Awaitable, Callable
from dataclasses import dataclass, field
from enum import StrEnum
from typing import Any, Generic, TypeVar

import httpx

from taskboard.client.api_client import ApiClientError, TaskboardClient
from taskboard.core.config import constants
from taskboard.domain.task import Task, TaskPage
from taskboard.domain.user import User


logger = logging.getLogger(__name__)

T = TypeVar("T")


class ResourceStatus(StrEnum):
    """Lifecycle of a remote value."""

    IDLE = "idle"
    LOADING = "loading"
    LOADED = "loaded"
    ERROR = "error"


class InvalidTransitionError(ValueError):
    """A resource was asked to move to a state it cannot reach from its current one."""


@dataclass
class Resource(Generic[T]):
    """A remote value together with its load state and last error."""

    status: ResourceStatus = ResourceStatus.IDLE
    value: T | None = None
    error: str | None = None

    @property
    def is_loading(self) -> bool:
        return self.status == ResourceStatus.LOADING

    @property
    def is_loaded(self) -> bool:
        return self.status == ResourceStatus.LOADED

    def begin(self) -> None:
        """Start a load. The previous value stays visible until it is replaced."""
        if self.status == ResourceStatus.LOADING:
            msg = "Cannot begin: resource is already loading"
            raise InvalidTransitionError(msg)
        self.status = ResourceStatus.LOADING
        self.error = None

    def succeed(self, value: T) -> None:
        if self.status != ResourceStatus.LOADING:
            msg = f"Cannot succeed: resource is in {self.status} state"
            raise InvalidTransitionError(msg)
        self.status = ResourceStatus.LOADED
        self.value = value
        self.error = None

    def fail(self, message: str) -> None:
        if self.status != ResourceStatus.LOADING:
            msg = f"Cannot fail: resource is in {self.status} state"
            raise InvalidTransitionError(msg)
        self.status = ResourceStatus.ERROR
        self.error = message

    def reset(self) -> None:
        if self.status == ResourceStatus.LOADING:
            msg = "Cannot reset: resource is loading"
            raise InvalidTransitionError(msg)
        self.status = ResourceStatus.IDLE
        self.value = None
        self.error = None


async def run(
    resource: Resource[T], operation: Callable[[], Awaitable[T]], *, error_message: str = "Request failed"
) -> T | None:
    """Call ``operation`` and record the outcome of awaiting it on ``resource``.

    ``operation`` is only called once ``resource`` has entered ``LOADING``, so a
    rejected transition never starts a request. API and transport failures end
    in ``ERROR`` with a message and return None. Anything else also leaves
    ``LOADING`` before propagating.
    """
    resource.begin()
    try:
        value = await operation()
    except ApiClientError as e:
        resource.fail(e.message or error_message)
        return None
    except httpx.HTTPError as e:
        logger.warning("API transport error", extra={"error": str(e)})
        resource.fail(error_message)
        return None
    except BaseException:
        resource.fail(error_message)
        raise

    resource.succeed(value)
    return value


@dataclass
class TaskFilters:
    status: str = ""
    search: str = ""


@dataclass
class TaskBoardState:
    """Task listing with its filters and pagination."""

    tasks: Resource[TaskPage] = field(default_factory=Resource)
    current_task: Resource[Task] = field(default_factory=Resource)
    filters: TaskFilters = field(default_factory=TaskFilters)
    page: int = constants.DEFAULT_PAGE
    limit: int = constants.DEFAULT_PAGE_LIMIT

    @property
    def items(self) -> list[Task]:
        return self.tasks.value.items if self.tasks.value else []

    @property
    def total(self) -> int:
        return self.tasks.value.total if self.tasks.value else 0

    @property
    def pages(self) -> int:
        return self.tasks.value.pages if self.tasks.value else 0

    def query_params(self) -> dict[str, Any]:
        """Listing parameters with empty filters left out."""
        params: dict[str, Any] = {
            "page": self.page,
            "limit": self.limit,
            "status": self.filters.status,
            "search": self.filters.search,
        }
        return {key: value for key, value in params.items() if value not in ("", None)}

    def set_filters(self, *, status: str | None = None, search: str | None = None) -> None:
        """Merge filter changes and go back to the first page."""
        if status is not None:
            self.filters.status = status
        if search is not None:
            self.filters.search = search
        self.page = constants.DEFAULT_PAGE

    def set_page(self, page: int, *, limit: int | None = None) -> None:
        self.page = page
        if limit is not None:
            self.limit = limit

    def _page(self) -> TaskPage:
        return self.tasks.value or TaskPage(items=[], total=0, page=self.page, pages=0)

    def add_task(self, task: Task) -> None:
        current = self._page()
        self.tasks.value = current.model_copy(update={"items": [task, *current.items], "total": current.total + 1})

    def replace_task(self, task: Task) -> None:
        current = self._page()
        items = [task if item.id == task.id else item for item in current.items]
        self.tasks.value = current.model_copy(update={"items": items})
        if self.current_task.value is not None and self.current_task.value.id == task.id:
            self.current_task.value = task

    def remove_task(self, task_id: str) -> None:
        current = self._page()
        items = [item for item in current.items if item.id != task_id]
        self.tasks.value = current.model_copy(update={"items": items, "total": max(current.total - 1, 0)})

    async def fetch_tasks(self, client: TaskboardClient) -> TaskPage | None:
        return await run(
            self.tasks, lambda: client.list_tasks(self.query_params()), error_message="Failed to fetch tasks"
        )

    async def fetch_task(self, client: TaskboardClient, task_id: str) -> Task | None:
        return await run(self.current_task, lambda: client.get_task(task_id), error_message="Failed to fetch task")

    async def create_task(self, client: TaskboardClient, **fields: Any) -> Task | None:
        task = await run(
            self.current_task, lambda: client.create_task(**fields), error_message="Failed to create task"
        )
        if task is not None:
            self.add_task(task)
        return task

    async def update_task(self, client: TaskboardClient, task_id: str, **changes: Any) -> Task | None:
        task = await run(
            self.current_task, lambda: client.update_task(task_id, **changes), error_message="Failed to update task"
        )
        if task is not None:
            self.replace_task(task)
        return task

    async def delete_task(self, client: TaskboardClient, task_id: str) -> bool:
        resource: Resource[None] = Resource()
        await run(resource, lambda: client.delete_task(task_id), error_message="Failed to delete task")
        if resource.status == ResourceStatus.ERROR:
            self.current_task.error = resource.error
            return False
        self.remove_task(task_id)
        return True


@dataclass
class SessionState:
    """The authenticated user, if any."""

    user: Resource[User] = field(default_factory=Resource)

    @property
    def is_authenticated(self) -> bool:
        return self.user.is_loaded and self.user.value is not None

    async def login(self, client: TaskboardClient, *, email: str, password: str) -> User | None:
        return await run(
            self.user, lambda: _user_of(client.login(email=email, password=password)), error_message="Login failed"
        )

    async def register(self, client: TaskboardClient, *, name: str, email: str, password: str) -> User | None:
        return await run(
            self.user,
            lambda: _user_of(client.register(name=name, email=email, password=password)),
            error_message="Registration failed",
        )

    async def restore(self, client: TaskboardClient) -> User | None:
        """Resolve a stored token into a user.

        A rejected token is dropped by the client on its 401; other failures
        keep the token so the session can be restored later.
        """
        if not client.is_authenticated:
            self.user.reset()
            return None
        return await run(self.user, client.me, error_message="Session expired")

    async def logout(self, client: TaskboardClient) -> None:
        try:
            await client.logout()
        except (ApiClientError, httpx.HTTPError) as e:
            logger.info("Logout request failed; clearing session locally", extra={"error": str(e)})
        self.user.reset()


async def _user_of(result: Awaitable[Any]) -> User:
    return (await result).user
