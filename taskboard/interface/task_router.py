"""Task endpoints."""

import logging
from typing import Annotated, Any

from fastapi import APIRouter, Depends, Query, status

from taskboard.core.validators import ensure_record_id
from taskboard.domain.create_models import TaskCreate
from taskboard.domain.query_models import TaskQuery
from taskboard.domain.task import Task, TaskPage, TaskStats
from taskboard.domain.update_models import TaskUpdate
from taskboard.interface.dependencies import OptionalUser, get_task_service
from taskboard.services.task_service import TaskService


logger = logging.getLogger(__name__)

router = APIRouter(prefix="/tasks", tags=["tasks"])

Tasks = Annotated[TaskService, Depends(get_task_service)]


@router.get("", response_model=TaskPage)
async def list_tasks(query: Annotated[TaskQuery, Query()], tasks: Tasks, _user: OptionalUser) -> TaskPage:
    """List tasks with optional status/search filters and pagination."""
    return await tasks.list_tasks(query)


# Registered before /{task_id} so "stats" is not taken for an id
@router.get("/stats", response_model=TaskStats)
async def get_task_stats(tasks: Tasks) -> TaskStats:
    """Count tasks per status."""
    return await tasks.stats_by_status()


@router.get("/{task_id}", response_model=Task)
async def get_task(task_id: str, tasks: Tasks, _user: OptionalUser) -> Task:
    """Fetch a single task."""
    return await tasks.get_task(ensure_record_id(task_id))


@router.post("", response_model=Task, status_code=status.HTTP_201_CREATED)
async def create_task(payload: TaskCreate, tasks: Tasks, user: OptionalUser) -> Task:
    """Create a task, owned by the caller when a valid token is presented."""
    return await tasks.create_task(payload, owner_id=user.id if user else None)


@router.put("/{task_id}", response_model=Task)
async def update_task(task_id: str, payload: TaskUpdate, tasks: Tasks, _user: OptionalUser) -> Task:
    """Update any subset of title, description and status."""
    return await tasks.update_task(ensure_record_id(task_id), payload)


@router.delete("/{task_id}")
async def delete_task(task_id: str, tasks: Tasks, _user: OptionalUser) -> dict[str, Any]:
    """Delete a task."""
    await tasks.delete_task(ensure_record_id(task_id))
    return {"success": True, "message": "Task deleted successfully"}
