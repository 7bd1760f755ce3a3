"""Task service: owner-scoped task CRUD, listing and statistics.

Every method takes the caller's user id and folds it into the WHERE clause.
There is no code path that loads a task by id alone, so a task belonging to
someone else is indistinguishable from one that does not exist (NotFound).

Field validation (lengths, enums, future due dates) happens in the request
schemas before the service is called; the service only persists.
"""

import math
import uuid
from datetime import datetime, timedelta
from typing import Any, Optional

import structlog
from sqlalchemy import func, nulls_last, select
from sqlalchemy.ext.asyncio import AsyncSession

from tasktrack.db.models import TASK_STATUSES, Task, utcnow
from tasktrack.errors import NotFound

logger = structlog.get_logger()

# API sort key → column
SORT_COLUMNS = {
    "createdAt": Task.created_at,
    "updatedAt": Task.updated_at,
    "dueDate": Task.due_date,
    "title": Task.title,
    "status": Task.status,
    "priority": Task.priority,
}

UPDATABLE_FIELDS = ("title", "description", "status", "priority", "due_date")

# Keeps (page - 1) * limit inside a 64-bit OFFSET
MAX_PAGE = 1_000_000


def page_count(total: int, limit: int) -> int:
    return math.ceil(total / limit) if limit else 0


def _parse_id(task_id: Any) -> Optional[uuid.UUID]:
    if isinstance(task_id, uuid.UUID):
        return task_id
    try:
        return uuid.UUID(str(task_id))
    except ValueError:
        return None


class TaskService:
    """Business logic for a single owner's tasks."""

    def __init__(self, db: AsyncSession):
        self.db = db

    # ─── Create ──────────────────────────────────────────

    async def create_task(
        self,
        owner_id: uuid.UUID,
        title: str,
        description: Optional[str] = None,
        status: str = "pending",
        priority: str = "medium",
        due_date: Optional[datetime] = None,
    ) -> Task:
        now = utcnow()
        task = Task(
            owner_id=owner_id,
            title=title,
            description=description,
            status=status,
            priority=priority,
            due_date=due_date,
            created_at=now,
            updated_at=now,
        )
        self.db.add(task)
        await self.db.commit()

        logger.info("task.created", task_id=str(task.id), owner_id=str(owner_id))
        return task

    # ─── Read ────────────────────────────────────────────

    async def get_task(self, owner_id: uuid.UUID, task_id: Any) -> Task:
        """Fetch one of the owner's tasks. Raises NotFound otherwise."""
        tid = _parse_id(task_id)
        if tid is None:
            raise NotFound("Task not found")

        result = await self.db.execute(
            select(Task).where(Task.id == tid, Task.owner_id == owner_id)
        )
        task = result.scalars().first()
        if task is None:
            raise NotFound("Task not found")
        return task

    async def list_tasks(
        self,
        owner_id: uuid.UUID,
        status: Optional[str] = None,
        priority: Optional[str] = None,
        sort_by: str = "createdAt",
        sort_order: str = "desc",
        page: int = 1,
        limit: int = 10,
    ) -> tuple[list[Task], int]:
        """List the owner's tasks. Returns (page of tasks, total matching).

        Filters apply before pagination; total counts all matches so the
        client can compute the number of pages. Pages are 1-based.
        """
        conditions = [Task.owner_id == owner_id]
        if status:
            conditions.append(Task.status == status)
        if priority:
            conditions.append(Task.priority == priority)

        column = SORT_COLUMNS[sort_by]
        ordering = column.desc() if sort_order == "desc" else column.asc()
        tiebreak = Task.id.desc() if sort_order == "desc" else Task.id.asc()

        query = (
            select(Task)
            .where(*conditions)
            .order_by(nulls_last(ordering), tiebreak)
            .limit(limit)
            .offset((page - 1) * limit)
        )
        result = await self.db.execute(query)
        tasks = list(result.scalars().all())

        total = await self.db.scalar(
            select(func.count()).select_from(Task).where(*conditions)
        )
        return tasks, total or 0

    # ─── Update ──────────────────────────────────────────

    async def update_task(
        self,
        owner_id: uuid.UUID,
        task_id: Any,
        changes: dict[str, Any],
    ) -> Task:
        """Apply a partial update. Only keys present in `changes` are touched.

        updated_at is refreshed even when no field actually changes, and
        always moves forward.
        """
        task = await self.get_task(owner_id, task_id)

        for field, value in changes.items():
            if field not in UPDATABLE_FIELDS:
                raise ValueError(f"Field {field!r} cannot be updated")
            setattr(task, field, value)

        now = utcnow()
        if task.updated_at is not None and now <= task.updated_at:
            now = task.updated_at + timedelta(microseconds=1)
        task.updated_at = now

        await self.db.commit()
        logger.info(
            "task.updated",
            task_id=str(task.id),
            fields=sorted(changes),
        )
        return task

    # ─── Delete ──────────────────────────────────────────

    async def delete_task(self, owner_id: uuid.UUID, task_id: Any) -> None:
        task = await self.get_task(owner_id, task_id)
        await self.db.delete(task)
        await self.db.commit()
        logger.info("task.deleted", task_id=str(task.id))

    # ─── Stats ───────────────────────────────────────────

    async def stats_overview(self, owner_id: uuid.UUID) -> dict[str, int]:
        """Count the owner's tasks per status. Every status is present, zero if empty."""
        result = await self.db.execute(
            select(Task.status, func.count())
            .where(Task.owner_id == owner_id)
            .group_by(Task.status)
        )
        overview = {"total": 0, **{status: 0 for status in TASK_STATUSES}}
        for status, count in result.all():
            overview[status] = count
            overview["total"] += count
        return overview
