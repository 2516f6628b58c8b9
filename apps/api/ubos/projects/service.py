from __future__ import annotations

import uuid
from dataclasses import dataclass

from fastapi import HTTPException
from sqlalchemy.orm import Session

from ubos.engagements.repository import EngagementRepository
from ubos.platform.tenancy.context import OrgContext
from ubos.platform.tenancy.guards import require_reference
from ubos.projects.repository import ProjectRepository, TaskRepository
from ubos.projects.schemas import ProjectCreate, ProjectRead, ProjectUpdate, TaskCreate, TaskRead, TaskUpdate


@dataclass(slots=True)
class ProjectService:
    project_repository: ProjectRepository = ProjectRepository()
    task_repository: TaskRepository = TaskRepository()
    engagement_repository: EngagementRepository = EngagementRepository()

    def list_projects(self, session: Session, ctx: OrgContext) -> list[ProjectRead]:
        return [ProjectRead.model_validate(row) for row in self.project_repository.list(session, ctx)]

    def get_project(self, session: Session, ctx: OrgContext, project_id: uuid.UUID) -> ProjectRead:
        row = self.project_repository.get(session, ctx, project_id)
        if row is None:
            raise HTTPException(status_code=404, detail="project not found")
        return ProjectRead.model_validate(row)

    def create_project(self, session: Session, ctx: OrgContext, dto: ProjectCreate) -> ProjectRead:
        require_reference(session, ctx, self.engagement_repository, dto.engagement_id, field="engagement_id")
        row = self.project_repository.create(session, ctx, dto.model_dump())
        return ProjectRead.model_validate(row)

    def update_project(self, session: Session, ctx: OrgContext, project_id: uuid.UUID, dto: ProjectUpdate) -> ProjectRead:
        changes = dto.changes()
        require_reference(session, ctx, self.engagement_repository, changes.get("engagement_id"), field="engagement_id")
        row = self.project_repository.update(session, ctx, project_id, changes)
        if row is None:
            raise HTTPException(status_code=404, detail="project not found")
        return ProjectRead.model_validate(row)

    def delete_project(self, session: Session, ctx: OrgContext, project_id: uuid.UUID) -> None:
        if not self.project_repository.delete(session, ctx, project_id):
            raise HTTPException(status_code=404, detail="project not found")

    def list_tasks(self, session: Session, ctx: OrgContext, *, project_id: uuid.UUID | None = None) -> list[TaskRead]:
        rows = self.task_repository.list(session, ctx, filters={"project_id": project_id})
        return [TaskRead.model_validate(row) for row in rows]

    def create_task(self, session: Session, ctx: OrgContext, dto: TaskCreate) -> TaskRead:
        require_reference(session, ctx, self.project_repository, dto.project_id, field="project_id")
        row = self.task_repository.create(session, ctx, dto.model_dump())
        return TaskRead.model_validate(row)

    def update_task(self, session: Session, ctx: OrgContext, task_id: uuid.UUID, dto: TaskUpdate) -> TaskRead:
        changes = dto.changes()
        require_reference(session, ctx, self.project_repository, changes.get("project_id"), field="project_id")
        row = self.task_repository.update(session, ctx, task_id, changes)
        if row is None:
            raise HTTPException(status_code=404, detail="task not found")
        return TaskRead.model_validate(row)

    def delete_task(self, session: Session, ctx: OrgContext, task_id: uuid.UUID) -> None:
        if not self.task_repository.delete(session, ctx, task_id):
            raise HTTPException(status_code=404, detail="task not found")


project_service = ProjectService()
