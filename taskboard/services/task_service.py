"""Task store: filtered listing, CRUD and per-status aggregation."""

import logging
import math
from collections.abc import Mapping
from typing import Any

from taskboard.core.config import constants
from taskboard.core.db_client import AnyOf, Condition, DBClient, Filter, RecordNotFoundError
from taskboard.core.errors import NotFound
from taskboard.core.logging import span
from taskboard.core.validators import validate_payload
from taskboard.domain.create_models import TaskCreate
from taskboard.domain.query_models import TaskQuery
from taskboard.domain.task import Task, TaskPage, TaskStats, TaskStatus, can_transition
from taskboard.domain.update_models import TaskUpdate


logger = logging.getLogger(__name__)

COLLECTION = "tasks"
NEWEST_FIRST = "created DESC"


def build_task_filters(query: TaskQuery) -> list[Filter]:
    """Status equality AND (title OR description contains the search term)."""
    filters: list[Filter] = []
    if query.status is not None:
        filters.append(Condition("status", "=", query.status))
    if query.search:
        filters.append(
            AnyOf(
                (
                    Condition("title", "~", query.search),
                    Condition("description", "~", query.search),
                )
            )
        )
    return filters


class TaskService:
    """Task operations over the record store.

    Ownership is recorded but not enforced: any caller may read, update or
    delete any task.
    """

    def __init__(self, db: DBClient) -> None:
        self._db = db

    async def list_tasks(self, query: TaskQuery | None = None) -> TaskPage:
        """Return one page of tasks matching the filter, newest first."""
        query = query or TaskQuery()
        limit = min(query.limit, constants.MAX_PAGE_LIMIT)
        page = max(query.page, 1)

        with span("task_service.list_tasks"):
            filters = build_task_filters(query)
            total = await self._db.count_records(collection=COLLECTION, filters=filters)
            records = await self._db.list_records(
                collection=COLLECTION,
                filters=filters,
                sort=NEWEST_FIRST,
                page=page,
                per_page=limit,
            )

            return TaskPage(
                items=[Task.model_validate(record) for record in records],
                total=total,
                page=page,
                pages=math.ceil(total / limit),
            )

    async def get_task(self, task_id: str) -> Task:
        """Fetch one task.

        Raises:
            NotFound: If no task has this id
        """
        try:
            record = await self._db.get_record(collection=COLLECTION, record_id=task_id)
        except RecordNotFoundError as e:
            raise NotFound("Task not found") from e
        return Task.model_validate(record)

    async def create_task(self, payload: TaskCreate | Mapping[str, Any], *, owner_id: str | None = None) -> Task:
        """Create a task; status defaults to pending and text fields are trimmed.

        Raises:
            ValidationFailed: If the payload violates any field constraint (nothing is persisted)
        """
        data = payload if isinstance(payload, TaskCreate) else validate_payload(TaskCreate, payload)

        with span("task_service.create_task"):
            record = await self._db.create_record(
                collection=COLLECTION,
                data={
                    "title": data.title,
                    "description": data.description,
                    "status": data.status,
                    "owner_id": owner_id,
                },
            )
            logger.info("Created task", extra={"task_id": record["id"], "owner_id": owner_id})
            return Task.model_validate(record)

    async def update_task(self, task_id: str, payload: TaskUpdate | Mapping[str, Any]) -> Task:
        """Apply only the fields present in the payload.

        Raises:
            ValidationFailed: If a present field, or the merged task, violates a constraint
            NotFound: If no task has this id
        """
        update = payload if isinstance(payload, TaskUpdate) else validate_payload(TaskUpdate, payload)
        changes = update.changes()

        with span("task_service.update_task"):
            current = await self.get_task(task_id)
            if not changes:
                return current

            merged = {
                "title": changes.get("title", current.title),
                "description": changes.get("description", current.description),
                "status": changes.get("status", current.status),
            }
            validate_payload(TaskCreate, merged)

            target = TaskStatus(merged["status"])
            if target != current.status:
                if not can_transition(current.status, target):
                    msg = f"Cannot move task {task_id} from {current.status} to {target}"
                    raise ValueError(msg)
                logger.info(
                    "Transitioned task status",
                    extra={"task_id": task_id, "from_status": current.status.value, "to_status": target.value},
                )

            try:
                record = await self._db.update_record(collection=COLLECTION, record_id=task_id, data=changes)
            except RecordNotFoundError as e:
                raise NotFound("Task not found") from e
            return Task.model_validate(record)

    async def delete_task(self, task_id: str) -> None:
        """Hard-delete a task.

        Raises:
            NotFound: If no task has this id
        """
        with span("task_service.delete_task"):
            try:
                await self._db.delete_record(collection=COLLECTION, record_id=task_id)
            except RecordNotFoundError as e:
                raise NotFound("Task not found") from e
            logger.info("Deleted task", extra={"task_id": task_id})

    async def stats_by_status(self) -> TaskStats:
        """Count tasks per status; statuses with no tasks report 0."""
        with span("task_service.stats_by_status"):
            counts = await self._db.count_by(collection=COLLECTION, field="status")
            return TaskStats(
                pending=counts.get(TaskStatus.PENDING.value, 0),
                in_progress=counts.get(TaskStatus.IN_PROGRESS.value, 0),
                completed=counts.get(TaskStatus.COMPLETED.value, 0),
                total=sum(counts.values()),
            )

    async def count_tasks(self) -> int:
        return await self._db.count_records(collection=COLLECTION)
