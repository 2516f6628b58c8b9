from __future__ import annotations

import uuid
from dataclasses import dataclass
from typing import Any

from fastapi import HTTPException
from sqlalchemy.orm import Session

from ubos.agreements.repository import ContractRepository
from ubos.crm.repository import ClientCompanyRepository, ContactRepository, DealRepository
from ubos.engagements.repository import EngagementRepository
from ubos.engagements.schemas import EngagementCreate, EngagementRead, EngagementUpdate
from ubos.platform.tenancy.context import OrgContext
from ubos.platform.tenancy.guards import require_reference


@dataclass(slots=True)
class EngagementService:
    repository: EngagementRepository = EngagementRepository()
    contract_repository: ContractRepository = ContractRepository()
    deal_repository: DealRepository = DealRepository()
    client_repository: ClientCompanyRepository = ClientCompanyRepository()
    contact_repository: ContactRepository = ContactRepository()

    def list_engagements(self, session: Session, ctx: OrgContext) -> list[EngagementRead]:
        return [EngagementRead.model_validate(row) for row in self.repository.list(session, ctx)]

    def get_engagement(self, session: Session, ctx: OrgContext, engagement_id: uuid.UUID) -> EngagementRead:
        row = self.repository.get(session, ctx, engagement_id)
        if row is None:
            raise HTTPException(status_code=404, detail="engagement not found")
        return EngagementRead.model_validate(row)

    def create_engagement(self, session: Session, ctx: OrgContext, dto: EngagementCreate) -> EngagementRead:
        payload = dto.model_dump()
        self._check_references(session, ctx, payload)
        payload["owner_id"] = ctx.user_id
        row = self.repository.create(session, ctx, payload)
        return EngagementRead.model_validate(row)

    def update_engagement(
        self,
        session: Session,
        ctx: OrgContext,
        engagement_id: uuid.UUID,
        dto: EngagementUpdate,
    ) -> EngagementRead:
        changes = dto.changes()
        self._check_references(session, ctx, changes)
        row = self.repository.update(session, ctx, engagement_id, changes)
        if row is None:
            raise HTTPException(status_code=404, detail="engagement not found")
        return EngagementRead.model_validate(row)

    def delete_engagement(self, session: Session, ctx: OrgContext, engagement_id: uuid.UUID) -> None:
        if not self.repository.delete(session, ctx, engagement_id):
            raise HTTPException(status_code=404, detail="engagement not found")

    def _check_references(self, session: Session, ctx: OrgContext, values: dict[str, Any]) -> None:
        require_reference(session, ctx, self.contract_repository, values.get("contract_id"), field="contract_id")
        require_reference(session, ctx, self.deal_repository, values.get("deal_id"), field="deal_id")
        require_reference(session, ctx, self.client_repository, values.get("client_company_id"), field="client_company_id")
        require_reference(session, ctx, self.contact_repository, values.get("contact_id"), field="contact_id")


engagement_service = EngagementService()
