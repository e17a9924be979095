"""Unit tests for client-side resource state."""

from datetime import UTC, datetime

import httpx
import pytest

from taskboard.client.api_client import ApiClientError, TaskboardClient
from taskboard.client.state import (
    InvalidTransitionError,
    Resource,
    ResourceStatus,
    SessionState,
    TaskBoardState,
    run,
)
from taskboard.domain.task import Task, TaskPage


NOW = datetime(2024, 1, 1, tzinfo=UTC)


def make_task(task_id: str, title: str = "task", status: str = "pending") -> Task:
    return Task(id=task_id, title=title, status=status, created=NOW, updated=NOW)


async def returns(value):
    return value


async def raises(error: BaseException):
    raise error


@pytest.mark.unit
class TestResource:
    """Tests for the Resource state machine."""

    def test_starts_idle(self):
        resource: Resource[int] = Resource()

        assert resource.status == ResourceStatus.IDLE
        assert resource.value is None

    def test_load_success(self):
        resource: Resource[int] = Resource()

        resource.begin()
        assert resource.is_loading
        resource.succeed(42)

        assert resource.status == ResourceStatus.LOADED
        assert resource.value == 42

    def test_load_failure_keeps_previous_value(self):
        resource: Resource[int] = Resource(status=ResourceStatus.LOADED, value=1)

        resource.begin()
        resource.fail("Failed to fetch tasks")

        assert resource.status == ResourceStatus.ERROR
        assert resource.error == "Failed to fetch tasks"
        assert resource.value == 1

    def test_begin_clears_error(self):
        resource: Resource[int] = Resource(status=ResourceStatus.ERROR, error="old")

        resource.begin()

        assert resource.error is None

    def test_cannot_begin_twice(self):
        resource: Resource[int] = Resource()
        resource.begin()

        with pytest.raises(InvalidTransitionError):
            resource.begin()

    @pytest.mark.parametrize("status", [ResourceStatus.IDLE, ResourceStatus.LOADED, ResourceStatus.ERROR])
    def test_succeed_and_fail_require_loading(self, status):
        resource: Resource[int] = Resource(status=status)

        with pytest.raises(InvalidTransitionError):
            resource.succeed(1)
        with pytest.raises(InvalidTransitionError):
            resource.fail("nope")

    def test_reset(self):
        resource: Resource[int] = Resource(status=ResourceStatus.LOADED, value=3)

        resource.reset()

        assert (resource.status, resource.value, resource.error) == (ResourceStatus.IDLE, None, None)

    def test_cannot_reset_while_loading(self):
        resource: Resource[int] = Resource()
        resource.begin()

        with pytest.raises(InvalidTransitionError):
            resource.reset()


@pytest.mark.unit
class TestRun:
    """Tests for run()."""

    async def test_success(self):
        resource: Resource[str] = Resource()

        assert await run(resource, lambda: returns("ok")) == "ok"
        assert resource.value == "ok"
        assert resource.status == ResourceStatus.LOADED

    async def test_api_error_uses_server_message(self):
        resource: Resource[str] = Resource()

        result = await run(resource, lambda: raises(ApiClientError(400, "Validation failed")), error_message="Failed")

        assert result is None
        assert resource.status == ResourceStatus.ERROR
        assert resource.error == "Validation failed"

    async def test_transport_error_uses_fallback_message(self):
        resource: Resource[str] = Resource()

        await run(resource, lambda: raises(httpx.ConnectError("refused")), error_message="Failed to fetch tasks")

        assert resource.error == "Failed to fetch tasks"

    async def test_unexpected_error_propagates_after_leaving_loading(self):
        resource: Resource[str] = Resource()

        with pytest.raises(RuntimeError):
            await run(resource, lambda: raises(RuntimeError("bug")))

        assert resource.status == ResourceStatus.ERROR

    async def test_rejected_transition_never_starts_the_operation(self):
        resource: Resource[str] = Resource()
        resource.begin()
        started = []

        def operation():
            started.append(True)
            return returns("ok")

        with pytest.raises(InvalidTransitionError):
            await run(resource, operation)

        assert started == []
        assert resource.status == ResourceStatus.LOADING


@pytest.mark.unit
class TestTaskBoardState:
    """Tests for the task list reducer operations."""

    def loaded_board(self, *tasks: Task) -> TaskBoardState:
        board = TaskBoardState()
        board.tasks = Resource(
            status=ResourceStatus.LOADED,
            value=TaskPage(items=list(tasks), total=len(tasks), page=1, pages=1),
        )
        return board

    def test_add_task_prepends(self):
        board = self.loaded_board(make_task("1"))

        board.add_task(make_task("2"))

        assert [task.id for task in board.items] == ["2", "1"]
        assert board.total == 2

    def test_add_task_to_unloaded_board(self):
        board = TaskBoardState()

        board.add_task(make_task("1"))

        assert board.total == 1

    def test_replace_task(self):
        board = self.loaded_board(make_task("1", "old"), make_task("2"))

        board.replace_task(make_task("1", "new", status="completed"))

        assert board.items[0].title == "new"
        assert board.items[0].is_completed()
        assert board.total == 2

    def test_remove_task(self):
        board = self.loaded_board(make_task("1"), make_task("2"))

        board.remove_task("1")

        assert [task.id for task in board.items] == ["2"]
        assert board.total == 1

    def test_set_filters_resets_page(self):
        board = TaskBoardState()
        board.set_page(4)

        board.set_filters(status="completed")

        assert board.page == 1
        assert board.filters.status == "completed"
        assert board.filters.search == ""

    def test_filters_merge(self):
        board = TaskBoardState()
        board.set_filters(status="completed")

        board.set_filters(search="milk")

        assert (board.filters.status, board.filters.search) == ("completed", "milk")

    def test_query_params_drop_empty_filters(self):
        board = TaskBoardState()

        assert board.query_params() == {"page": 1, "limit": 10}

        board.set_filters(search="milk")
        board.set_page(2, limit=5)

        assert board.query_params() == {"page": 2, "limit": 5, "search": "milk"}


def offline_client(handler) -> TaskboardClient:
    return TaskboardClient("http://testserver", token="stored-token", transport=httpx.MockTransport(handler))


@pytest.mark.unit
class TestSessionRestore:
    """Tests for SessionState.restore against failing transports."""

    async def test_transport_error_keeps_token(self):
        def refuse(request: httpx.Request) -> httpx.Response:
            raise httpx.ConnectError("refused", request=request)

        async with offline_client(refuse) as client:
            session = SessionState()

            assert await session.restore(client) is None
            assert session.user.status == ResourceStatus.ERROR
            assert session.user.error == "Session expired"
            assert client.token == "stored-token"

    async def test_server_error_keeps_token(self):
        def fail(request: httpx.Request) -> httpx.Response:
            return httpx.Response(500, json={"success": False, "message": "Server Error"})

        async with offline_client(fail) as client:
            session = SessionState()

            assert await session.restore(client) is None
            assert session.user.error == "Server Error"
            assert client.token == "stored-token"

    async def test_unauthorized_drops_token(self):
        def reject(request: httpx.Request) -> httpx.Response:
            return httpx.Response(401, json={"success": False, "message": "Token expired"})

        async with offline_client(reject) as client:
            session = SessionState()

            assert await session.restore(client) is None
            assert session.user.error == "Token expired"
            assert client.token is None
