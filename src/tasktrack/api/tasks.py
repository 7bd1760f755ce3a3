"""Task API routes.

These routes translate HTTP to TaskService calls. The caller's identity
comes from the access guard, and every service call is scoped to it.

Key patterns:
- POST for creation, PUT for partial updates (only supplied fields change)
- Query params for filtering, sorting and 1-based pagination
- 404 for tasks that don't exist AND for tasks owned by someone else
"""

import uuid

from fastapi import APIRouter, Depends, Query
from sqlalchemy.ext.asyncio import AsyncSession

from tasktrack.auth.dependencies import CurrentIdentity, get_current_user
from tasktrack.db.engine import get_db
from tasktrack.schemas.common import MessageResponse
from tasktrack.schemas.task import (
    PriorityFilter,
    SortField,
    SortOrder,
    StatsResponse,
    StatusFilter,
    TaskCreate,
    TaskEnvelope,
    TaskListResponse,
    TaskMutationResponse,
    TaskUpdate,
)
from tasktrack.services.task_service import MAX_PAGE, TaskService, page_count

router = APIRouter(prefix="/tasks")


def _task_svc(db: AsyncSession = Depends(get_db)) -> TaskService:
    return TaskService(db)


def _owner_id(identity: CurrentIdentity = Depends(get_current_user)) -> uuid.UUID:
    return identity.user_id


# ═══════════════════════════════════════════════════════════
# Collection
# ═══════════════════════════════════════════════════════════


@router.get("", response_model=TaskListResponse)
async def list_tasks(
    status: StatusFilter = Query(None, description="Filter by status"),
    priority: PriorityFilter = Query(None, description="Filter by priority"),
    sort_by: SortField = Query("createdAt", alias="sortBy"),
    sort_order: SortOrder = Query("desc", alias="sortOrder"),
    page: int = Query(1, ge=1, le=MAX_PAGE),
    limit: int = Query(10, ge=1, le=100),
    owner_id: uuid.UUID = Depends(_owner_id),
    svc: TaskService = Depends(_task_svc),
):
    """List the caller's tasks with optional filters, sorting and pagination."""
    tasks, total = await svc.list_tasks(
        owner_id=owner_id,
        status=status,
        priority=priority,
        sort_by=sort_by,
        sort_order=sort_order,
        page=page,
        limit=limit,
    )
    return {
        "tasks": tasks,
        "pagination": {
            "page": page,
            "limit": limit,
            "total": total,
            "pages": page_count(total, limit),
        },
    }


@router.post("", response_model=TaskMutationResponse, status_code=201)
async def create_task(
    body: TaskCreate,
    owner_id: uuid.UUID = Depends(_owner_id),
    svc: TaskService = Depends(_task_svc),
):
    task = await svc.create_task(
        owner_id=owner_id,
        title=body.title,
        description=body.description,
        status=body.status,
        priority=body.priority,
        due_date=body.due_date,
    )
    return {"message": "Task created successfully", "task": task}


@router.get("/stats/overview", response_model=StatsResponse)
async def stats_overview(
    owner_id: uuid.UUID = Depends(_owner_id),
    svc: TaskService = Depends(_task_svc),
):
    """Count the caller's tasks per status."""
    return {"stats": await svc.stats_overview(owner_id)}


# ═══════════════════════════════════════════════════════════
# Single task
# ═══════════════════════════════════════════════════════════


@router.get("/{task_id}", response_model=TaskEnvelope)
async def get_task(
    task_id: str,
    owner_id: uuid.UUID = Depends(_owner_id),
    svc: TaskService = Depends(_task_svc),
):
    return {"task": await svc.get_task(owner_id, task_id)}


@router.put("/{task_id}", response_model=TaskMutationResponse)
async def update_task(
    task_id: str,
    body: TaskUpdate,
    owner_id: uuid.UUID = Depends(_owner_id),
    svc: TaskService = Depends(_task_svc),
):
    """Update the fields present in the body; everything else is left alone."""
    task = await svc.update_task(owner_id, task_id, body.changes())
    return {"message": "Task updated successfully", "task": task}


@router.delete("/{task_id}", response_model=MessageResponse)
async def delete_task(
    task_id: str,
    owner_id: uuid.UUID = Depends(_owner_id),
    svc: TaskService = Depends(_task_svc),
):
    await svc.delete_task(owner_id, task_id)
    return {"message": "Task deleted successfully"}
