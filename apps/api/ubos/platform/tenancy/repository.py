from __future__ import annotations

import logging
import uuid
from datetime import datetime, timezone
from typing import Any, ClassVar, Generic, TypeVar

from sqlalchemy import delete, func, select
from sqlalchemy.orm import InstrumentedAttribute, Session
from sqlalchemy.sql import Select

from ubos.core.database import Base
from ubos.metrics import observe_scoped_miss
from ubos.platform.tenancy.context import OrgContext


logger = logging.getLogger("ubos.tenancy")

ModelT = TypeVar("ModelT", bound=Base)


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


class ScopedRepository(Generic[ModelT]):
    """Data access for one tenant-owned model.

    ``scope`` adds ``organization_id == ctx.organization_id`` to a statement
    and every read and write below is built on top of it. Lookups by id match
    the ``(id, organization_id)`` pair, so a row owned by another tenant is
    indistinguishable from a missing one.
    """

    model: ClassVar[type[Any]]
    resource: ClassVar[str] = ""
    protected_fields: ClassVar[frozenset[str]] = frozenset({"id", "organization_id", "created_at", "updated_at"})

    def __init_subclass__(cls, **kwargs: Any) -> None:
        super().__init_subclass__(**kwargs)
        model = cls.__dict__.get("model")
        if model is None:
            return
        if not isinstance(getattr(model, "organization_id", None), InstrumentedAttribute):
            raise TypeError(f"{cls.__name__}: {model.__name__} has no organization_id column and cannot be scoped")
        if not cls.resource:
            cls.resource = model.__tablename__

    def scope(self, query: Select[Any], ctx: OrgContext) -> Select[Any]:
        return query.where(self.model.organization_id == ctx.organization_id)

    def ordering(self) -> tuple[Any, ...]:
        return (self.model.created_at.desc(),)

    def apply_filters(self, query: Select[Any], filters: dict[str, Any] | None) -> Select[Any]:
        for field_name, value in (filters or {}).items():
            if value is None:
                continue
            column = getattr(self.model, field_name)
            if isinstance(value, (list, tuple, set, frozenset)):
                query = query.where(column.in_(value))
            else:
                query = query.where(column == value)
        return query

    def list(self, session: Session, ctx: OrgContext, *, filters: dict[str, Any] | None = None) -> list[ModelT]:
        stmt = self.apply_filters(self.scope(select(self.model), ctx), filters)
        return list(session.scalars(stmt.order_by(*self.ordering())).all())

    def count(self, session: Session, ctx: OrgContext, *, filters: dict[str, Any] | None = None) -> int:
        stmt = self.apply_filters(self.scope(select(func.count()).select_from(self.model), ctx), filters)
        return int(session.scalar(stmt) or 0)

    def get(self, session: Session, ctx: OrgContext, entity_id: uuid.UUID) -> ModelT | None:
        stmt = self.scope(select(self.model).where(self.model.id == entity_id), ctx)
        row = session.scalar(stmt)
        if row is None:
            observe_scoped_miss(self.resource)
            logger.info(
                "tenancy.scoped_miss",
                extra={
                    "organization_id": str(ctx.organization_id),
                    "resource": self.resource,
                    "entity_id": str(entity_id),
                },
            )
        return row

    def exists(self, session: Session, ctx: OrgContext, entity_id: uuid.UUID) -> bool:
        stmt = self.scope(select(self.model.id).where(self.model.id == entity_id), ctx)
        return session.scalar(stmt) is not None

    def create(
        self,
        session: Session,
        ctx: OrgContext,
        payload: dict[str, Any],
        *,
        commit: bool = True,
    ) -> ModelT:
        values = {key: value for key, value in payload.items() if key not in self.protected_fields}
        values["organization_id"] = ctx.organization_id
        row = self.model(**values)
        session.add(row)
        if commit:
            session.commit()
            session.refresh(row)
        else:
            session.flush()
        return row

    def update(
        self,
        session: Session,
        ctx: OrgContext,
        entity_id: uuid.UUID,
        changes: dict[str, Any],
        *,
        commit: bool = True,
    ) -> ModelT | None:
        row = self.get(session, ctx, entity_id)
        if row is None:
            return None
        for field_name, value in changes.items():
            if field_name in self.protected_fields:
                continue
            setattr(row, field_name, value)
        row.updated_at = utcnow()
        if commit:
            session.commit()
            session.refresh(row)
        else:
            session.flush()
        return row

    def delete(self, session: Session, ctx: OrgContext, entity_id: uuid.UUID) -> bool:
        stmt = delete(self.model).where(
            self.model.id == entity_id,
            self.model.organization_id == ctx.organization_id,
        )
        result = session.execute(stmt)
        session.commit()
        if result.rowcount == 0:
            observe_scoped_miss(self.resource)
            return False
        return True
