from __future__ import annotations

import logging
import uuid
from dataclasses import dataclass
from datetime import datetime, timezone
from typing import Any

from fastapi import Depends, HTTPException
from jose import JWTError, jwt
from sqlalchemy.orm import Session
from starlette.requests import Request

from ubos.core.config import get_settings
from ubos.core.database import get_db
from ubos.identity.repository import IdentityRepository
from ubos.metrics import observe_auth_failure


logger = logging.getLogger("ubos.auth")
identity_repository = IdentityRepository()
# users.id column width
MAX_USER_ID_LENGTH = 128


@dataclass(frozen=True)
class AuthUser:
    sub: str
    session_id: uuid.UUID | None = None


def issue_session_token(user_id: str, session_id: uuid.UUID, expires_at: datetime) -> str:
    settings = get_settings()
    if expires_at.tzinfo is None:
        # sqlite hands back naive datetimes
        expires_at = expires_at.replace(tzinfo=timezone.utc)
    claims = {"sub": user_id, "sid": str(session_id), "exp": int(expires_at.timestamp())}
    return jwt.encode(claims, settings.session_secret, algorithm=settings.session_algorithm)


def decode_session_token(token: str) -> dict[str, Any]:
    settings = get_settings()
    return jwt.decode(token, settings.session_secret, algorithms=[settings.session_algorithm])


def extract_session_token(request: Request) -> str | None:
    auth_header = request.headers.get("authorization", "")
    if auth_header.startswith("Bearer "):
        token = auth_header[len("Bearer ") :].strip()
        if token:
            return token
    return request.cookies.get(get_settings().session_cookie_name) or None


def peek_subject(request: Request) -> str | None:
    """Best-effort caller id without a database round trip; used for rate-limit keys only."""
    settings = get_settings()
    header_user = request.headers.get("x-user-id")
    if header_user and settings.header_auth_enabled:
        return header_user.strip()
    token = extract_session_token(request)
    if token is None:
        return None
    try:
        payload = decode_session_token(token)
    except JWTError:
        return None
    subject = payload.get("sub")
    return str(subject) if subject else None


def _unauthenticated(reason: str) -> HTTPException:
    observe_auth_failure(reason)
    logger.info("auth.rejected", extra={"error": reason})
    return HTTPException(status_code=401, detail="Unauthorized")


def get_current_user(request: Request, db: Session = Depends(get_db)) -> AuthUser:
    settings = get_settings()

    header_user = (request.headers.get("x-user-id") or "").strip()
    if header_user:
        if settings.header_auth_enabled:
            if len(header_user) > MAX_USER_ID_LENGTH:
                raise _unauthenticated("invalid_user_id")
            return AuthUser(sub=header_user)
        logger.warning("auth.header_rejected", extra={"path": request.url.path})

    token = extract_session_token(request)
    if token is None:
        raise _unauthenticated("missing_credentials")

    try:
        payload = decode_session_token(token)
    except JWTError:
        raise _unauthenticated("invalid_token")

    subject = payload.get("sub")
    raw_session_id = payload.get("sid")
    if not subject or not raw_session_id or len(str(subject)) > MAX_USER_ID_LENGTH:
        raise _unauthenticated("incomplete_token")
    try:
        session_id = uuid.UUID(str(raw_session_id))
    except ValueError:
        raise _unauthenticated("incomplete_token")

    if identity_repository.get_active_session(db, session_id, str(subject)) is None:
        raise _unauthenticated("session_revoked")

    return AuthUser(sub=str(subject), session_id=session_id)
