"""Pydantic schemas for tasks.

Separate schemas for create/update/read keep the API clean.
- TaskCreate: what you POST to create a task
- TaskUpdate: what you PUT to modify a task (only supplied fields apply)
- TaskRead: what the API returns

Validation rules live here and run before the service touches the database:
title 1–100 chars, description ≤500, status/priority enums, due date in
the future. Unknown fields (e.g. owner) are rejected.
"""

import uuid
from datetime import datetime, timezone
from typing import Annotated, Literal, Optional

from pydantic import (
    AfterValidator,
    AliasChoices,
    BeforeValidator,
    ConfigDict,
    Field,
    model_validator,
)

from tasktrack.schemas.common import CamelModel

TaskStatus = Literal["pending", "in-progress", "completed"]
TaskPriority = Literal["low", "medium", "high"]
SortField = Literal["createdAt", "updatedAt", "dueDate", "title", "status", "priority"]
SortOrder = Literal["asc", "desc"]


def _blank_as_none(value):
    return None if value == "" else value


# "?status=" on the list route means "no filter"
StatusFilter = Annotated[Optional[TaskStatus], BeforeValidator(_blank_as_none)]
PriorityFilter = Annotated[Optional[TaskPriority], BeforeValidator(_blank_as_none)]


def _due_date_in_future(value: datetime) -> datetime:
    if value.tzinfo is None:
        value = value.replace(tzinfo=timezone.utc)
    if value <= datetime.now(timezone.utc):
        raise ValueError("Due date must be in the future")
    return value


FutureDatetime = Annotated[datetime, AfterValidator(_due_date_in_future)]


class _TaskInput(CamelModel):
    model_config = ConfigDict(extra="forbid", str_strip_whitespace=True)


class TaskCreate(_TaskInput):
    title: str = Field(..., min_length=1, max_length=100)
    description: Optional[str] = Field(None, max_length=500)
    status: TaskStatus = "pending"
    priority: TaskPriority = "medium"
    due_date: Optional[FutureDatetime] = None


class TaskUpdate(_TaskInput):
    """Partial update: only fields present in the request body are applied.

    description and dueDate may be set to null to clear them.
    """
    title: Optional[str] = Field(None, min_length=1, max_length=100)
    description: Optional[str] = Field(None, max_length=500)
    status: Optional[TaskStatus] = None
    priority: Optional[TaskPriority] = None
    due_date: Optional[FutureDatetime] = None

    @model_validator(mode="after")
    def reject_null_required_fields(self):
        for field in ("title", "status", "priority"):
            if field in self.model_fields_set and getattr(self, field) is None:
                raise ValueError(f"{field} cannot be null")
        return self

    def changes(self) -> dict:
        return self.model_dump(exclude_unset=True)


class TaskRead(CamelModel):
    id: uuid.UUID
    title: str
    description: Optional[str]
    status: str
    priority: str
    due_date: Optional[datetime]
    owner_id: uuid.UUID = Field(
        validation_alias=AliasChoices("owner_id", "owner"),
        serialization_alias="owner",
    )
    created_at: datetime
    updated_at: datetime


class TaskEnvelope(CamelModel):
    task: TaskRead


class TaskMutationResponse(CamelModel):
    message: str
    task: TaskRead


class Pagination(CamelModel):
    page: int
    limit: int
    total: int
    pages: int


class TaskListResponse(CamelModel):
    tasks: list[TaskRead]
    pagination: Pagination


class TaskStats(CamelModel):
    total: int
    pending: int
    in_progress: int = Field(alias="in-progress")
    completed: int


class StatsResponse(CamelModel):
    stats: TaskStats
