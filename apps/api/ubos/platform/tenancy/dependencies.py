from __future__ import annotations

import uuid

from fastapi import Depends, Header, HTTPException
from sqlalchemy.orm import Session
from starlette.requests import Request

from ubos.context import get_correlation_id
from ubos.core.auth import AuthUser, get_current_user
from ubos.core.database import get_db
from ubos.identity.service import identity_service
from ubos.platform.tenancy.context import OrgContext
from ubos.platform.tenancy.guards import require_write_access


def _parse_organization_header(raw: str | None) -> uuid.UUID | None:
    if raw is None or not raw.strip():
        return None
    try:
        return uuid.UUID(raw.strip())
    except ValueError:
        raise HTTPException(status_code=403, detail="not a member of organization")


def get_org_context(
    request: Request,
    db: Session = Depends(get_db),
    user: AuthUser = Depends(get_current_user),
    x_organization_id: str | None = Header(default=None),
) -> OrgContext:
    membership = identity_service.resolve_membership(
        db,
        user.sub,
        requested_organization_id=_parse_organization_header(x_organization_id),
    )
    return OrgContext(
        organization_id=membership.organization_id,
        user_id=user.sub,
        role=membership.role,
        correlation_id=get_correlation_id() or getattr(request.state, "correlation_id", None),
    )


def get_writable_org_context(ctx: OrgContext = Depends(get_org_context)) -> OrgContext:
    """Org context for mutating routes; viewers are rejected before the handler runs."""
    require_write_access(ctx)
    return ctx
