from __future__ import annotations

import logging
import uuid
from dataclasses import dataclass

from fastapi import HTTPException
from sqlalchemy.orm import Session

from ubos import events
from ubos.crm.repository import ClientCompanyRepository, ContactRepository, DealRepository
from ubos.crm.schemas import (
    ClientCompanyCreate,
    ClientCompanyRead,
    ClientCompanyUpdate,
    ContactCreate,
    ContactRead,
    ContactUpdate,
    DealCreate,
    DealRead,
    DealUpdate,
)
from ubos.platform.tenancy.context import OrgContext
from ubos.platform.tenancy.guards import require_reference


logger = logging.getLogger("ubos.crm")


@dataclass(slots=True)
class CrmService:
    client_repository: ClientCompanyRepository = ClientCompanyRepository()
    contact_repository: ContactRepository = ContactRepository()
    deal_repository: DealRepository = DealRepository()

    def list_clients(self, session: Session, ctx: OrgContext) -> list[ClientCompanyRead]:
        return [ClientCompanyRead.model_validate(row) for row in self.client_repository.list(session, ctx)]

    def get_client(self, session: Session, ctx: OrgContext, client_id: uuid.UUID) -> ClientCompanyRead:
        row = self.client_repository.get(session, ctx, client_id)
        if row is None:
            raise HTTPException(status_code=404, detail="client not found")
        return ClientCompanyRead.model_validate(row)

    def create_client(self, session: Session, ctx: OrgContext, dto: ClientCompanyCreate) -> ClientCompanyRead:
        row = self.client_repository.create(session, ctx, dto.model_dump())
        logger.info(
            "crm.client.created",
            extra={"organization_id": str(ctx.organization_id), "user_id": ctx.user_id, "entity_id": str(row.id)},
        )
        return ClientCompanyRead.model_validate(row)

    def update_client(
        self,
        session: Session,
        ctx: OrgContext,
        client_id: uuid.UUID,
        dto: ClientCompanyUpdate,
    ) -> ClientCompanyRead:
        row = self.client_repository.update(session, ctx, client_id, dto.changes())
        if row is None:
            raise HTTPException(status_code=404, detail="client not found")
        return ClientCompanyRead.model_validate(row)

    def delete_client(self, session: Session, ctx: OrgContext, client_id: uuid.UUID) -> None:
        if not self.client_repository.delete(session, ctx, client_id):
            raise HTTPException(status_code=404, detail="client not found")

    def list_contacts(self, session: Session, ctx: OrgContext) -> list[ContactRead]:
        return [ContactRead.model_validate(row) for row in self.contact_repository.list(session, ctx)]

    def get_contact(self, session: Session, ctx: OrgContext, contact_id: uuid.UUID) -> ContactRead:
        row = self.contact_repository.get(session, ctx, contact_id)
        if row is None:
            raise HTTPException(status_code=404, detail="contact not found")
        return ContactRead.model_validate(row)

    def create_contact(self, session: Session, ctx: OrgContext, dto: ContactCreate) -> ContactRead:
        require_reference(session, ctx, self.client_repository, dto.client_company_id, field="client_company_id")
        row = self.contact_repository.create(session, ctx, dto.model_dump())
        return ContactRead.model_validate(row)

    def update_contact(self, session: Session, ctx: OrgContext, contact_id: uuid.UUID, dto: ContactUpdate) -> ContactRead:
        changes = dto.changes()
        require_reference(session, ctx, self.client_repository, changes.get("client_company_id"), field="client_company_id")
        row = self.contact_repository.update(session, ctx, contact_id, changes)
        if row is None:
            raise HTTPException(status_code=404, detail="contact not found")
        return ContactRead.model_validate(row)

    def delete_contact(self, session: Session, ctx: OrgContext, contact_id: uuid.UUID) -> None:
        if not self.contact_repository.delete(session, ctx, contact_id):
            raise HTTPException(status_code=404, detail="contact not found")

    def list_deals(self, session: Session, ctx: OrgContext) -> list[DealRead]:
        return [DealRead.model_validate(row) for row in self.deal_repository.list(session, ctx)]

    def get_deal(self, session: Session, ctx: OrgContext, deal_id: uuid.UUID) -> DealRead:
        row = self.deal_repository.get(session, ctx, deal_id)
        if row is None:
            raise HTTPException(status_code=404, detail="deal not found")
        return DealRead.model_validate(row)

    def create_deal(self, session: Session, ctx: OrgContext, dto: DealCreate) -> DealRead:
        self._check_deal_references(session, ctx, dto.client_company_id, dto.contact_id)
        payload = dto.model_dump()
        payload["owner_id"] = ctx.user_id
        row = self.deal_repository.create(session, ctx, payload)
        events.publish(
            "deal.created",
            organization_id=ctx.organization_id,
            entity_id=row.id,
            actor_id=ctx.user_id,
            payload={"stage": row.stage},
        )
        return DealRead.model_validate(row)

    def update_deal(self, session: Session, ctx: OrgContext, deal_id: uuid.UUID, dto: DealUpdate) -> DealRead:
        changes = dto.changes()
        self._check_deal_references(session, ctx, changes.get("client_company_id"), changes.get("contact_id"))
        row = self.deal_repository.update(session, ctx, deal_id, changes)
        if row is None:
            raise HTTPException(status_code=404, detail="deal not found")
        events.publish(
            "deal.updated",
            organization_id=ctx.organization_id,
            entity_id=row.id,
            actor_id=ctx.user_id,
            payload={"stage": row.stage, "changed_fields": sorted(changes)},
        )
        return DealRead.model_validate(row)

    def delete_deal(self, session: Session, ctx: OrgContext, deal_id: uuid.UUID) -> None:
        if not self.deal_repository.delete(session, ctx, deal_id):
            raise HTTPException(status_code=404, detail="deal not found")

    def _check_deal_references(
        self,
        session: Session,
        ctx: OrgContext,
        client_company_id: uuid.UUID | None,
        contact_id: uuid.UUID | None,
    ) -> None:
        require_reference(session, ctx, self.client_repository, client_company_id, field="client_company_id")
        require_reference(session, ctx, self.contact_repository, contact_id, field="contact_id")


crm_service = CrmService()
