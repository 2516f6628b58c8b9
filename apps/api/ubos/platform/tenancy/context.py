from __future__ import annotations

import uuid
from dataclasses import dataclass


class TenantContextError(ValueError):
    pass


@dataclass(frozen=True, slots=True)
class OrgContext:
    """Resolved tenant scope for one request or job.

    Every repository call takes one of these as a required argument. There is
    no way to build a context without an organization, so an unscoped or
    cross-tenant query cannot be expressed through the storage layer.
    """

    organization_id: uuid.UUID
    user_id: str
    role: str = "member"
    correlation_id: str | None = None

    def __post_init__(self) -> None:
        if not isinstance(self.organization_id, uuid.UUID):
            raise TenantContextError("organization_id must be a UUID")
        if not self.user_id:
            raise TenantContextError("user_id is required")
