from __future__ import annotations

import logging
import secrets
import uuid
from dataclasses import dataclass

from fastapi import HTTPException
from sqlalchemy.orm import Session

from ubos.core.auth import AuthUser, issue_session_token
from ubos.core.config import get_settings
from ubos.identity.models import OrganizationMember, UserSession
from ubos.identity.repository import IdentityRepository
from ubos.identity.schemas import CurrentOrganizationRead, OrganizationRead, UserRead
from ubos.metrics import observe_organization_created
from ubos.platform.tenancy.context import OrgContext


logger = logging.getLogger("ubos.tenancy")


def build_organization_slug(user_id: str) -> str:
    return f"org-{user_id[:8]}-{secrets.token_hex(3)}"


@dataclass(slots=True)
class IdentityService:
    repository: IdentityRepository = IdentityRepository()

    def current_user(self, session: Session, user: AuthUser) -> UserRead:
        return UserRead.model_validate(self.repository.upsert_user(session, user.sub))

    def login(self, session: Session, user_id: str | None) -> tuple[str, UserSession]:
        settings = get_settings()
        resolved_user_id = user_id or str(uuid.uuid4())
        self.repository.upsert_user(session, resolved_user_id)
        user_session = self.repository.create_session(
            session,
            resolved_user_id,
            ttl_seconds=settings.session_ttl_seconds,
        )
        token = issue_session_token(resolved_user_id, user_session.id, user_session.expires_at)
        logger.info("auth.login", extra={"user_id": resolved_user_id})
        return token, user_session

    def logout(self, session: Session, session_id: uuid.UUID, user_id: str) -> bool:
        active = self.repository.get_active_session(session, session_id, user_id)
        if active is None:
            return False
        revoked = self.repository.revoke_session(session, active.id)
        logger.info("auth.logout", extra={"user_id": user_id})
        return revoked

    def resolve_membership(
        self,
        session: Session,
        user_id: str,
        *,
        requested_organization_id: uuid.UUID | None = None,
    ) -> OrganizationMember:
        self.repository.upsert_user(session, user_id)

        if requested_organization_id is not None:
            membership = self.repository.get_membership(session, user_id, requested_organization_id)
            if membership is None:
                logger.warning(
                    "tenancy.membership_denied",
                    extra={"user_id": user_id, "organization_id": str(requested_organization_id)},
                )
                raise HTTPException(status_code=403, detail="not a member of organization")
            return membership

        membership = self.repository.first_membership(session, user_id)
        if membership is not None:
            return membership

        settings = get_settings()
        membership = self.repository.create_organization_with_owner(
            session,
            name=settings.default_organization_name,
            slug=build_organization_slug(user_id),
            owner_id=user_id,
        )
        observe_organization_created()
        logger.info(
            "tenancy.organization_created",
            extra={"user_id": user_id, "organization_id": str(membership.organization_id)},
        )
        return membership

    def current_organization(self, session: Session, ctx: OrgContext) -> CurrentOrganizationRead:
        organization = self.repository.get_organization(session, ctx.organization_id)
        if organization is None:
            raise HTTPException(status_code=404, detail="organization not found")
        return CurrentOrganizationRead(organization=OrganizationRead.model_validate(organization), role=ctx.role)


identity_service = IdentityService()
