from __future__ import annotations

import uuid
from datetime import datetime, timedelta

from sqlalchemy import select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from ubos.identity.models import Organization, OrganizationMember, User, UserSession, utcnow


class IdentityRepository:
    """Users, sessions and memberships.

    These rows sit above the tenant boundary (an organization is the boundary
    itself), so lookups here are keyed by user id rather than by an OrgContext.
    """

    def get_user(self, session: Session, user_id: str) -> User | None:
        return session.get(User, user_id)

    def upsert_user(self, session: Session, user_id: str) -> User:
        user = session.get(User, user_id)
        if user is None:
            user = User(id=user_id)
            session.add(user)
            try:
                session.commit()
            except IntegrityError:
                # a concurrent first request inserted the same user
                session.rollback()
                existing = session.get(User, user_id)
                if existing is None:
                    raise
                return existing
            session.refresh(user)
        return user

    def create_session(self, session: Session, user_id: str, *, ttl_seconds: int) -> UserSession:
        now = utcnow()
        row = UserSession(user_id=user_id, created_at=now, expires_at=now + timedelta(seconds=ttl_seconds))
        session.add(row)
        session.commit()
        session.refresh(row)
        return row

    def get_active_session(self, session: Session, session_id: uuid.UUID, user_id: str) -> UserSession | None:
        stmt = select(UserSession).where(
            UserSession.id == session_id,
            UserSession.user_id == user_id,
            UserSession.revoked_at.is_(None),
            UserSession.expires_at > utcnow(),
        )
        return session.scalar(stmt)

    def revoke_session(self, session: Session, session_id: uuid.UUID, *, revoked_at: datetime | None = None) -> bool:
        row = session.get(UserSession, session_id)
        if row is None or row.revoked_at is not None:
            return False
        row.revoked_at = revoked_at or utcnow()
        session.commit()
        return True

    def get_membership(self, session: Session, user_id: str, organization_id: uuid.UUID) -> OrganizationMember | None:
        stmt = select(OrganizationMember).where(
            OrganizationMember.user_id == user_id,
            OrganizationMember.organization_id == organization_id,
        )
        return session.scalar(stmt)

    def first_membership(self, session: Session, user_id: str) -> OrganizationMember | None:
        stmt = (
            select(OrganizationMember)
            .where(OrganizationMember.user_id == user_id)
            .order_by(OrganizationMember.created_at.asc(), OrganizationMember.id.asc())
            .limit(1)
        )
        return session.scalar(stmt)

    def create_organization_with_owner(self, session: Session, *, name: str, slug: str, owner_id: str) -> OrganizationMember:
        organization = Organization(name=name, slug=slug)
        session.add(organization)
        session.flush()
        membership = OrganizationMember(organization_id=organization.id, user_id=owner_id, role="owner")
        session.add(membership)
        session.commit()
        session.refresh(membership)
        return membership

    def add_member(self, session: Session, organization_id: uuid.UUID, user_id: str, *, role: str = "member") -> OrganizationMember:
        membership = OrganizationMember(organization_id=organization_id, user_id=user_id, role=role)
        session.add(membership)
        session.commit()
        session.refresh(membership)
        return membership

    def get_organization(self, session: Session, organization_id: uuid.UUID) -> Organization | None:
        return session.get(Organization, organization_id)

    def list_organization_ids(self, session: Session) -> list[uuid.UUID]:
        return list(session.scalars(select(Organization.id).order_by(Organization.created_at.asc())).all())
