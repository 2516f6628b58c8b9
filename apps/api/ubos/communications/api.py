from __future__ import annotations

import uuid

from fastapi import APIRouter, Depends, HTTPException, Request, status
from fastapi.responses import JSONResponse
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from ubos.communications.schemas import MessageCreate, MessageRead, ThreadCreate, ThreadRead
from ubos.communications.service import communication_service
from ubos.core.database import get_db
from ubos.core.errors import error_response, storage_failure
from ubos.platform.tenancy.context import OrgContext
from ubos.platform.tenancy.dependencies import get_org_context, get_writable_org_context


router = APIRouter(prefix="/api/threads", tags=["communications"])


@router.get("", response_model=list[ThreadRead])
def list_threads(
    request: Request,
    db: Session = Depends(get_db),
    ctx: OrgContext = Depends(get_org_context),
) -> list[ThreadRead] | JSONResponse:
    try:
        return communication_service.list_threads(db, ctx)
    except SQLAlchemyError:
        return storage_failure(request, db, ctx, code="thread_list_failed", resource="communications.thread")


@router.post("", response_model=ThreadRead, status_code=status.HTTP_201_CREATED)
def create_thread(
    request: Request,
    dto: ThreadCreate,
    db: Session = Depends(get_db),
    ctx: OrgContext = Depends(get_writable_org_context),
) -> ThreadRead | JSONResponse:
    try:
        return communication_service.create_thread(db, ctx, dto)
    except HTTPException as exc:
        return error_response(request, status_code=exc.status_code, code="thread_create_failed", message=str(exc.detail))
    except SQLAlchemyError:
        return storage_failure(request, db, ctx, code="thread_create_failed", resource="communications.thread")


@router.get("/{thread_id}", response_model=ThreadRead)
def get_thread(
    request: Request,
    thread_id: uuid.UUID,
    db: Session = Depends(get_db),
    ctx: OrgContext = Depends(get_org_context),
) -> ThreadRead | JSONResponse:
    try:
        return communication_service.get_thread(db, ctx, thread_id)
    except HTTPException as exc:
        return error_response(request, status_code=exc.status_code, code="thread_read_failed", message=str(exc.detail))
    except SQLAlchemyError:
        return storage_failure(request, db, ctx, code="thread_read_failed", resource="communications.thread")


@router.get("/{thread_id}/messages", response_model=list[MessageRead])
def list_messages(
    request: Request,
    thread_id: uuid.UUID,
    db: Session = Depends(get_db),
    ctx: OrgContext = Depends(get_org_context),
) -> list[MessageRead] | JSONResponse:
    try:
        return communication_service.list_messages(db, ctx, thread_id)
    except HTTPException as exc:
        return error_response(request, status_code=exc.status_code, code="message_list_failed", message=str(exc.detail))
    except SQLAlchemyError:
        return storage_failure(request, db, ctx, code="message_list_failed", resource="communications.message")


@router.post("/{thread_id}/messages", response_model=MessageRead, status_code=status.HTTP_201_CREATED)
def post_message(
    request: Request,
    thread_id: uuid.UUID,
    dto: MessageCreate,
    db: Session = Depends(get_db),
    ctx: OrgContext = Depends(get_writable_org_context),
) -> MessageRead | JSONResponse:
    try:
        return communication_service.post_message(db, ctx, thread_id, dto)
    except HTTPException as exc:
        return error_response(request, status_code=exc.status_code, code="message_create_failed", message=str(exc.detail))
    except SQLAlchemyError:
        return storage_failure(request, db, ctx, code="message_create_failed", resource="communications.message")
