from __future__ import annotations

import logging
import uuid

from fastapi import APIRouter, Depends, HTTPException, Query, Request
from fastapi.responses import JSONResponse, RedirectResponse
from jose import JWTError
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from ubos.core.auth import AuthUser, decode_session_token, extract_session_token, get_current_user
from ubos.core.config import get_settings
from ubos.core.database import get_db
from ubos.core.errors import error_response, storage_failure
from ubos.identity.schemas import CurrentOrganizationRead, UserRead
from ubos.identity.service import identity_service
from ubos.platform.tenancy.context import OrgContext
from ubos.platform.tenancy.dependencies import get_org_context


logger = logging.getLogger("ubos.identity")
router = APIRouter(prefix="/api", tags=["identity"])


@router.get("/login")
def login(
    user_id: str | None = Query(default=None, min_length=1, max_length=128),
    db: Session = Depends(get_db),
) -> RedirectResponse:
    settings = get_settings()
    requested_user_id = None if settings.is_production else user_id
    token, user_session = identity_service.login(db, requested_user_id)

    response = RedirectResponse(url="/", status_code=302)
    response.set_cookie(
        key=settings.session_cookie_name,
        value=token,
        max_age=settings.session_ttl_seconds,
        httponly=True,
        secure=settings.is_production,
        samesite="lax",
        path="/",
    )
    return response


@router.get("/logout")
def logout(request: Request, db: Session = Depends(get_db)) -> RedirectResponse:
    settings = get_settings()
    token = extract_session_token(request)
    if token is not None:
        try:
            payload = decode_session_token(token)
        except JWTError:
            payload = {}
        subject = payload.get("sub")
        raw_session_id = payload.get("sid")
        if subject and raw_session_id:
            try:
                session_id = uuid.UUID(str(raw_session_id))
            except ValueError:
                session_id = None
            if session_id is not None:
                identity_service.logout(db, session_id, str(subject))

    response = RedirectResponse(url="/", status_code=302)
    response.delete_cookie(key=settings.session_cookie_name, path="/")
    return response


@router.get("/auth/user", response_model=UserRead)
def read_current_user(
    request: Request,
    db: Session = Depends(get_db),
    user: AuthUser = Depends(get_current_user),
) -> UserRead | JSONResponse:
    try:
        return identity_service.current_user(db, user)
    except SQLAlchemyError:
        db.rollback()
        logger.exception("storage.failure", extra={"user_id": user.sub, "resource": "users"})
        return error_response(request, status_code=500, code="auth_user_read_failed", message="Internal server error")


@router.get("/organizations/current", response_model=CurrentOrganizationRead)
def read_current_organization(
    request: Request,
    db: Session = Depends(get_db),
    ctx: OrgContext = Depends(get_org_context),
) -> CurrentOrganizationRead | JSONResponse:
    try:
        return identity_service.current_organization(db, ctx)
    except HTTPException as exc:
        return error_response(
            request,
            status_code=exc.status_code,
            code="organization_read_failed",
            message=str(exc.detail),
        )
    except SQLAlchemyError:
        return storage_failure(request, db, ctx, code="organization_read_failed", resource="organizations")
