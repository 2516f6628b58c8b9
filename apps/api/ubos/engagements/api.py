from __future__ import annotations

import uuid

from fastapi import APIRouter, Depends, HTTPException, Request, status
from fastapi.responses import JSONResponse, Response
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from ubos.core.database import get_db
from ubos.core.errors import error_response, storage_failure
from ubos.engagements.schemas import EngagementCreate, EngagementRead, EngagementUpdate
from ubos.engagements.service import engagement_service
from ubos.platform.tenancy.context import OrgContext
from ubos.platform.tenancy.dependencies import get_org_context, get_writable_org_context


router = APIRouter(prefix="/api/engagements", tags=["engagements"])


@router.get("", response_model=list[EngagementRead])
def list_engagements(
    request: Request,
    db: Session = Depends(get_db),
    ctx: OrgContext = Depends(get_org_context),
) -> list[EngagementRead] | JSONResponse:
    try:
        return engagement_service.list_engagements(db, ctx)
    except SQLAlchemyError:
        return storage_failure(request, db, ctx, code="engagement_list_failed", resource="engagements.engagement")


@router.post("", response_model=EngagementRead, status_code=status.HTTP_201_CREATED)
def create_engagement(
    request: Request,
    dto: EngagementCreate,
    db: Session = Depends(get_db),
    ctx: OrgContext = Depends(get_writable_org_context),
) -> EngagementRead | JSONResponse:
    try:
        return engagement_service.create_engagement(db, ctx, dto)
    except HTTPException as exc:
        return error_response(request, status_code=exc.status_code, code="engagement_create_failed", message=str(exc.detail))
    except SQLAlchemyError:
        return storage_failure(request, db, ctx, code="engagement_create_failed", resource="engagements.engagement")


@router.get("/{engagement_id}", response_model=EngagementRead)
def get_engagement(
    request: Request,
    engagement_id: uuid.UUID,
    db: Session = Depends(get_db),
    ctx: OrgContext = Depends(get_org_context),
) -> EngagementRead | JSONResponse:
    try:
        return engagement_service.get_engagement(db, ctx, engagement_id)
    except HTTPException as exc:
        return error_response(request, status_code=exc.status_code, code="engagement_read_failed", message=str(exc.detail))
    except SQLAlchemyError:
        return storage_failure(request, db, ctx, code="engagement_read_failed", resource="engagements.engagement")


@router.patch("/{engagement_id}", response_model=EngagementRead)
def update_engagement(
    request: Request,
    engagement_id: uuid.UUID,
    dto: EngagementUpdate,
    db: Session = Depends(get_db),
    ctx: OrgContext = Depends(get_writable_org_context),
) -> EngagementRead | JSONResponse:
    try:
        return engagement_service.update_engagement(db, ctx, engagement_id, dto)
    except HTTPException as exc:
        return error_response(request, status_code=exc.status_code, code="engagement_update_failed", message=str(exc.detail))
    except SQLAlchemyError:
        return storage_failure(request, db, ctx, code="engagement_update_failed", resource="engagements.engagement")


@router.delete("/{engagement_id}", status_code=status.HTTP_204_NO_CONTENT, response_class=Response)
def delete_engagement(
    request: Request,
    engagement_id: uuid.UUID,
    db: Session = Depends(get_db),
    ctx: OrgContext = Depends(get_writable_org_context),
) -> Response:
    try:
        engagement_service.delete_engagement(db, ctx, engagement_id)
        return Response(status_code=status.HTTP_204_NO_CONTENT)
    except HTTPException as exc:
        return error_response(request, status_code=exc.status_code, code="engagement_delete_failed", message=str(exc.detail))
    except SQLAlchemyError:
        return storage_failure(request, db, ctx, code="engagement_delete_failed", resource="engagements.engagement")
