from __future__ import annotations

import uuid
from collections.abc import Collection
from typing import Any

from fastapi import HTTPException
from sqlalchemy.orm import Session

from ubos.platform.tenancy.context import OrgContext
from ubos.platform.tenancy.repository import ScopedRepository


def require_reference(
    session: Session,
    ctx: OrgContext,
    repository: ScopedRepository[Any],
    entity_id: uuid.UUID | None,
    *,
    field: str,
) -> None:
    """Reject a foreign reference that does not resolve inside the caller's organization."""
    if entity_id is None:
        return
    if not repository.exists(session, ctx, entity_id):
        raise HTTPException(status_code=422, detail=f"unknown {field}")


def require_status(current: str, allowed: Collection[str]) -> None:
    if current not in allowed:
        raise HTTPException(status_code=409, detail="invalid status transition")


WRITE_ROLES = frozenset({"owner", "admin", "member"})


def require_write_access(ctx: OrgContext) -> None:
    if ctx.role not in WRITE_ROLES:
        raise HTTPException(status_code=403, detail="read-only membership")
