from __future__ import annotations

from datetime import datetime
from typing import ClassVar, Literal
from uuid import UUID

from pydantic import BaseModel, ConfigDict, Field

from ubos.core.schemas import PartialUpdate


ProjectStatus = Literal["not_started", "in_progress", "completed", "on_hold", "cancelled"]
TaskStatus = Literal["todo", "in_progress", "review", "completed", "cancelled"]
TaskPriority = Literal["low", "medium", "high", "urgent"]


class ProjectCreate(BaseModel):
    engagement_id: UUID
    name: str = Field(min_length=1, max_length=255)
    description: str | None = None
    status: ProjectStatus = "not_started"
    start_date: datetime | None = None
    due_date: datetime | None = None
    completed_at: datetime | None = None
    progress: int = Field(default=0, ge=0, le=100)


class ProjectUpdate(PartialUpdate):
    non_nullable: ClassVar[frozenset[str]] = frozenset({"engagement_id", "name", "status", "progress"})

    engagement_id: UUID | None = None
    name: str | None = Field(default=None, min_length=1, max_length=255)
    description: str | None = None
    status: ProjectStatus | None = None
    start_date: datetime | None = None
    due_date: datetime | None = None
    completed_at: datetime | None = None
    progress: int | None = Field(default=None, ge=0, le=100)


class ProjectRead(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: UUID
    organization_id: UUID
    engagement_id: UUID
    name: str
    description: str | None
    status: ProjectStatus | str
    start_date: datetime | None
    due_date: datetime | None
    completed_at: datetime | None
    progress: int
    created_at: datetime
    updated_at: datetime


class TaskCreate(BaseModel):
    project_id: UUID
    assignee_id: str | None = Field(default=None, max_length=128)
    name: str = Field(min_length=1, max_length=255)
    description: str | None = None
    status: TaskStatus = "todo"
    priority: TaskPriority = "medium"
    due_date: datetime | None = None
    completed_at: datetime | None = None
    sort_order: int = 0


class TaskUpdate(PartialUpdate):
    non_nullable: ClassVar[frozenset[str]] = frozenset({"project_id", "name", "status", "priority", "sort_order"})

    project_id: UUID | None = None
    assignee_id: str | None = Field(default=None, max_length=128)
    name: str | None = Field(default=None, min_length=1, max_length=255)
    description: str | None = None
    status: TaskStatus | None = None
    priority: TaskPriority | None = None
    due_date: datetime | None = None
    completed_at: datetime | None = None
    sort_order: int | None = None


class TaskRead(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: UUID
    organization_id: UUID
    project_id: UUID
    assignee_id: str | None
    name: str
    description: str | None
    status: TaskStatus | str
    priority: TaskPriority | str
    due_date: datetime | None
    completed_at: datetime | None
    sort_order: int
    created_at: datetime
    updated_at: datetime
