from __future__ import annotations

import uuid

from fastapi import APIRouter, Depends, HTTPException, Query, Request, status
from fastapi.responses import JSONResponse, Response
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from ubos.core.database import get_db
from ubos.core.errors import error_response, storage_failure
from ubos.platform.tenancy.context import OrgContext
from ubos.platform.tenancy.dependencies import get_org_context, get_writable_org_context
from ubos.projects.schemas import ProjectCreate, ProjectRead, ProjectUpdate, TaskCreate, TaskRead, TaskUpdate
from ubos.projects.service import project_service


projects_router = APIRouter(prefix="/api/projects", tags=["projects"])
tasks_router = APIRouter(prefix="/api/tasks", tags=["projects"])


@projects_router.get("", response_model=list[ProjectRead])
def list_projects(
    request: Request,
    db: Session = Depends(get_db),
    ctx: OrgContext = Depends(get_org_context),
) -> list[ProjectRead] | JSONResponse:
    try:
        return project_service.list_projects(db, ctx)
    except SQLAlchemyError:
        return storage_failure(request, db, ctx, code="project_list_failed", resource="projects.project")


@projects_router.post("", response_model=ProjectRead, status_code=status.HTTP_201_CREATED)
def create_project(
    request: Request,
    dto: ProjectCreate,
    db: Session = Depends(get_db),
    ctx: OrgContext = Depends(get_writable_org_context),
) -> ProjectRead | JSONResponse:
    try:
        return project_service.create_project(db, ctx, dto)
    except HTTPException as exc:
        return error_response(request, status_code=exc.status_code, code="project_create_failed", message=str(exc.detail))
    except SQLAlchemyError:
        return storage_failure(request, db, ctx, code="project_create_failed", resource="projects.project")


@projects_router.get("/{project_id}", response_model=ProjectRead)
def get_project(
    request: Request,
    project_id: uuid.UUID,
    db: Session = Depends(get_db),
    ctx: OrgContext = Depends(get_org_context),
) -> ProjectRead | JSONResponse:
    try:
        return project_service.get_project(db, ctx, project_id)
    except HTTPException as exc:
        return error_response(request, status_code=exc.status_code, code="project_read_failed", message=str(exc.detail))
    except SQLAlchemyError:
        return storage_failure(request, db, ctx, code="project_read_failed", resource="projects.project")


@projects_router.patch("/{project_id}", response_model=ProjectRead)
def update_project(
    request: Request,
    project_id: uuid.UUID,
    dto: ProjectUpdate,
    db: Session = Depends(get_db),
    ctx: OrgContext = Depends(get_writable_org_context),
) -> ProjectRead | JSONResponse:
    try:
        return project_service.update_project(db, ctx, project_id, dto)
    except HTTPException as exc:
        return error_response(request, status_code=exc.status_code, code="project_update_failed", message=str(exc.detail))
    except SQLAlchemyError:
        return storage_failure(request, db, ctx, code="project_update_failed", resource="projects.project")


@projects_router.delete("/{project_id}", status_code=status.HTTP_204_NO_CONTENT, response_class=Response)
def delete_project(
    request: Request,
    project_id: uuid.UUID,
    db: Session = Depends(get_db),
    ctx: OrgContext = Depends(get_writable_org_context),
) -> Response:
    try:
        project_service.delete_project(db, ctx, project_id)
        return Response(status_code=status.HTTP_204_NO_CONTENT)
    except HTTPException as exc:
        return error_response(request, status_code=exc.status_code, code="project_delete_failed", message=str(exc.detail))
    except SQLAlchemyError:
        return storage_failure(request, db, ctx, code="project_delete_failed", resource="projects.project")


@tasks_router.get("", response_model=list[TaskRead])
def list_tasks(
    request: Request,
    project_id: uuid.UUID | None = Query(default=None),
    db: Session = Depends(get_db),
    ctx: OrgContext = Depends(get_org_context),
) -> list[TaskRead] | JSONResponse:
    try:
        return project_service.list_tasks(db, ctx, project_id=project_id)
    except SQLAlchemyError:
        return storage_failure(request, db, ctx, code="task_list_failed", resource="projects.task")


@tasks_router.post("", response_model=TaskRead, status_code=status.HTTP_201_CREATED)
def create_task(
    request: Request,
    dto: TaskCreate,
    db: Session = Depends(get_db),
    ctx: OrgContext = Depends(get_writable_org_context),
) -> TaskRead | JSONResponse:
    try:
        return project_service.create_task(db, ctx, dto)
    except HTTPException as exc:
        return error_response(request, status_code=exc.status_code, code="task_create_failed", message=str(exc.detail))
    except SQLAlchemyError:
        return storage_failure(request, db, ctx, code="task_create_failed", resource="projects.task")


@tasks_router.patch("/{task_id}", response_model=TaskRead)
def update_task(
    request: Request,
    task_id: uuid.UUID,
    dto: TaskUpdate,
    db: Session = Depends(get_db),
    ctx: OrgContext = Depends(get_writable_org_context),
) -> TaskRead | JSONResponse:
    try:
        return project_service.update_task(db, ctx, task_id, dto)
    except HTTPException as exc:
        return error_response(request, status_code=exc.status_code, code="task_update_failed", message=str(exc.detail))
    except SQLAlchemyError:
        return storage_failure(request, db, ctx, code="task_update_failed", resource="projects.task")


@tasks_router.delete("/{task_id}", status_code=status.HTTP_204_NO_CONTENT, response_class=Response)
def delete_task(
    request: Request,
    task_id: uuid.UUID,
    db: Session = Depends(get_db),
    ctx: OrgContext = Depends(get_writable_org_context),
) -> Response:
    try:
        project_service.delete_task(db, ctx, task_id)
        return Response(status_code=status.HTTP_204_NO_CONTENT)
    except HTTPException as exc:
        return error_response(request, status_code=exc.status_code, code="task_delete_failed", message=str(exc.detail))
    except SQLAlchemyError:
        return storage_failure(request, db, ctx, code="task_delete_failed", resource="projects.task")
