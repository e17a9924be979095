"""Unit tests for the task store."""

import pytest

from taskboard.core.errors import NotFound, ValidationFailed
from taskboard.domain.create_models import TaskCreate
from taskboard.domain.query_models import TaskQuery
from taskboard.domain.task import TaskStatus
from taskboard.domain.update_models import TaskUpdate
from taskboard.services.task_service import TaskService, build_task_filters


MISSING_ID = "0" * 32


@pytest.mark.unit
class TestCreateAndGet:
    """Tests for create_task / get_task."""

    async def test_create_then_get_returns_trimmed_fields(self, task_service: TaskService):
        created = await task_service.create_task({"title": "  Buy milk ", "description": " 2 litres  "})

        fetched = await task_service.get_task(created.id)

        assert fetched.title == "Buy milk"
        assert fetched.description == "2 litres"
        assert fetched.status == TaskStatus.PENDING
        assert fetched.owner_id is None
        assert fetched.created == fetched.updated

    async def test_create_records_owner(self, task_service: TaskService):
        task = await task_service.create_task(TaskCreate(title="Mine"), owner_id="a" * 32)

        assert task.owner_id == "a" * 32

    async def test_empty_title_persists_nothing(self, task_service: TaskService):
        with pytest.raises(ValidationFailed) as exc_info:
            await task_service.create_task({"title": ""})

        assert "title" in exc_info.value.fields()
        assert await task_service.count_tasks() == 0

    async def test_get_missing_task(self, task_service: TaskService):
        with pytest.raises(NotFound, match="Task not found"):
            await task_service.get_task(MISSING_ID)


@pytest.mark.unit
class TestListTasks:
    """Tests for list_tasks."""

    async def test_status_filter_newest_first(self, task_service: TaskService):
        first = await task_service.create_task({"title": "first", "status": "completed"})
        await task_service.create_task({"title": "second"})
        third = await task_service.create_task({"title": "third", "status": "completed"})

        page = await task_service.list_tasks(TaskQuery(status="completed"))

        assert [task.id for task in page.items] == [third.id, first.id]
        assert all(task.status == TaskStatus.COMPLETED for task in page.items)
        assert page.total == 2

    async def test_search_matches_title_or_description(self, task_service: TaskService):
        await task_service.create_task({"title": "Buy MILK"})
        await task_service.create_task({"title": "Groceries", "description": "oat milk"})
        await task_service.create_task({"title": "Walk dog"})

        page = await task_service.list_tasks(TaskQuery(search="milk"))

        assert {task.title for task in page.items} == {"Buy MILK", "Groceries"}

    async def test_status_and_search_combine(self, task_service: TaskService):
        await task_service.create_task({"title": "milk run", "status": "completed"})
        await task_service.create_task({"title": "milk again"})

        page = await task_service.list_tasks(TaskQuery(status="pending", search="milk"))

        assert [task.title for task in page.items] == ["milk again"]

    async def test_pagination(self, task_service: TaskService):
        for i in range(12):
            await task_service.create_task({"title": f"task {i}"})

        page = await task_service.list_tasks(TaskQuery(page=2, limit=5))

        assert [task.title for task in page.items] == ["task 6", "task 5", "task 4", "task 3", "task 2"]
        assert (page.total, page.page, page.pages) == (12, 2, 3)

    async def test_page_past_the_end(self, task_service: TaskService):
        await task_service.create_task({"title": "only"})

        page = await task_service.list_tasks(TaskQuery(page=5))

        assert page.items == []
        assert page.total == 1
        assert page.pages == 1

    async def test_empty_store(self, task_service: TaskService):
        page = await task_service.list_tasks()

        assert (page.items, page.total, page.page, page.pages) == ([], 0, 1, 0)

    def test_filters_without_criteria(self):
        assert build_task_filters(TaskQuery()) == []


@pytest.mark.unit
class TestUpdateTask:
    """Tests for update_task."""

    async def test_buy_milk_scenario(self, task_service: TaskService):
        """Create, complete, and read back a task."""
        created = await task_service.create_task({"title": "Buy milk"})
        assert created.status == TaskStatus.PENDING

        await task_service.update_task(created.id, {"status": "completed"})
        fetched = await task_service.get_task(created.id)

        assert fetched.status == TaskStatus.COMPLETED
        assert fetched.title == "Buy milk"
        assert fetched.is_completed()

    async def test_only_present_fields_change(self, task_service: TaskService):
        created = await task_service.create_task({"title": "Buy milk", "description": "2 litres"})

        updated = await task_service.update_task(created.id, TaskUpdate(title="Buy oat milk"))

        assert updated.title == "Buy oat milk"
        assert updated.description == "2 litres"
        assert updated.status == TaskStatus.PENDING
        assert updated.updated >= created.updated

    async def test_any_status_may_follow_any_other(self, task_service: TaskService):
        created = await task_service.create_task({"title": "Cycle", "status": "completed"})

        for status in ("pending", "in-progress", "completed", "in-progress"):
            task = await task_service.update_task(created.id, {"status": status})
            assert task.status == status

    async def test_empty_update_returns_current(self, task_service: TaskService):
        created = await task_service.create_task({"title": "Same"})

        unchanged = await task_service.update_task(created.id, {})

        assert unchanged == created

    async def test_null_description_clears_it(self, task_service: TaskService):
        created = await task_service.create_task({"title": "Clear", "description": "something"})

        updated = await task_service.update_task(created.id, {"description": None})

        assert updated.description == ""

    async def test_invalid_update_leaves_task_unchanged(self, task_service: TaskService):
        created = await task_service.create_task({"title": "Keep"})

        with pytest.raises(ValidationFailed):
            await task_service.update_task(created.id, {"title": "", "status": "done"})

        assert await task_service.get_task(created.id) == created

    async def test_update_missing_task(self, task_service: TaskService):
        with pytest.raises(NotFound):
            await task_service.update_task(MISSING_ID, {"title": "x"})


@pytest.mark.unit
class TestDeleteAndStats:
    """Tests for delete_task and stats_by_status."""

    async def test_delete(self, task_service: TaskService):
        created = await task_service.create_task({"title": "Gone"})

        await task_service.delete_task(created.id)

        with pytest.raises(NotFound):
            await task_service.get_task(created.id)

    async def test_delete_missing_keeps_count(self, task_service: TaskService):
        await task_service.create_task({"title": "Stay"})

        with pytest.raises(NotFound):
            await task_service.delete_task(MISSING_ID)

        assert await task_service.count_tasks() == 1

    async def test_stats(self, task_service: TaskService):
        await task_service.create_task({"title": "a"})
        await task_service.create_task({"title": "b", "status": "in-progress"})
        await task_service.create_task({"title": "c", "status": "completed"})
        await task_service.create_task({"title": "d", "status": "completed"})

        stats = await task_service.stats_by_status()

        assert (stats.pending, stats.in_progress, stats.completed, stats.total) == (1, 1, 2, 4)

    async def test_stats_on_empty_store(self, task_service: TaskService):
        stats = await task_service.stats_by_status()

        assert stats.model_dump(by_alias=True) == {"pending": 0, "in-progress": 0, "completed": 0, "total": 0}
