from __future__ import annotations

import logging
import uuid
from dataclasses import dataclass
from typing import Any

from fastapi import HTTPException
from sqlalchemy.orm import Session

from ubos import events
from ubos.agreements.repository import ContractRepository, ProposalRepository
from ubos.agreements.schemas import (
    ContractCreate,
    ContractRead,
    ContractSignRequest,
    ContractSignResult,
    ContractUpdate,
    ProposalCreate,
    ProposalRead,
    ProposalUpdate,
)
from ubos.crm.repository import ClientCompanyRepository, ContactRepository, DealRepository
from ubos.engagements.repository import EngagementRepository
from ubos.engagements.schemas import EngagementRead
from ubos.platform.tenancy.context import OrgContext
from ubos.platform.tenancy.guards import require_reference, require_status
from ubos.platform.tenancy.repository import utcnow


logger = logging.getLogger("ubos.agreements")

PROPOSAL_SENDABLE = frozenset({"draft", "sent", "viewed"})
CONTRACT_SENDABLE = frozenset({"draft", "sent"})
CONTRACT_SIGNABLE = frozenset({"draft", "sent"})


@dataclass(slots=True)
class AgreementService:
    proposal_repository: ProposalRepository = ProposalRepository()
    contract_repository: ContractRepository = ContractRepository()
    engagement_repository: EngagementRepository = EngagementRepository()
    deal_repository: DealRepository = DealRepository()
    client_repository: ClientCompanyRepository = ClientCompanyRepository()
    contact_repository: ContactRepository = ContactRepository()

    def list_proposals(self, session: Session, ctx: OrgContext) -> list[ProposalRead]:
        return [ProposalRead.model_validate(row) for row in self.proposal_repository.list(session, ctx)]

    def get_proposal(self, session: Session, ctx: OrgContext, proposal_id: uuid.UUID) -> ProposalRead:
        row = self.proposal_repository.get(session, ctx, proposal_id)
        if row is None:
            raise HTTPException(status_code=404, detail="proposal not found")
        return ProposalRead.model_validate(row)

    def create_proposal(self, session: Session, ctx: OrgContext, dto: ProposalCreate) -> ProposalRead:
        payload = dto.model_dump()
        self._check_party_references(session, ctx, payload)
        payload["created_by_id"] = ctx.user_id
        row = self.proposal_repository.create(session, ctx, payload)
        return ProposalRead.model_validate(row)

    def update_proposal(
        self,
        session: Session,
        ctx: OrgContext,
        proposal_id: uuid.UUID,
        dto: ProposalUpdate,
    ) -> ProposalRead:
        changes = dto.changes()
        self._check_party_references(session, ctx, changes)
        row = self.proposal_repository.update(session, ctx, proposal_id, changes)
        if row is None:
            raise HTTPException(status_code=404, detail="proposal not found")
        return ProposalRead.model_validate(row)

    def delete_proposal(self, session: Session, ctx: OrgContext, proposal_id: uuid.UUID) -> None:
        if not self.proposal_repository.delete(session, ctx, proposal_id):
            raise HTTPException(status_code=404, detail="proposal not found")

    def send_proposal(self, session: Session, ctx: OrgContext, proposal_id: uuid.UUID) -> ProposalRead:
        row = self.proposal_repository.get(session, ctx, proposal_id)
        if row is None:
            raise HTTPException(status_code=404, detail="proposal not found")
        require_status(row.status, PROPOSAL_SENDABLE)
        row = self.proposal_repository.update(session, ctx, proposal_id, {"status": "sent", "sent_at": utcnow()})
        events.publish("proposal.sent", organization_id=ctx.organization_id, entity_id=proposal_id, actor_id=ctx.user_id)
        return ProposalRead.model_validate(row)

    def list_contracts(self, session: Session, ctx: OrgContext) -> list[ContractRead]:
        return [ContractRead.model_validate(row) for row in self.contract_repository.list(session, ctx)]

    def get_contract(self, session: Session, ctx: OrgContext, contract_id: uuid.UUID) -> ContractRead:
        row = self.contract_repository.get(session, ctx, contract_id)
        if row is None:
            raise HTTPException(status_code=404, detail="contract not found")
        return ContractRead.model_validate(row)

    def create_contract(self, session: Session, ctx: OrgContext, dto: ContractCreate) -> ContractRead:
        payload = dto.model_dump()
        self._check_party_references(session, ctx, payload)
        require_reference(session, ctx, self.proposal_repository, payload.get("proposal_id"), field="proposal_id")
        payload["created_by_id"] = ctx.user_id
        row = self.contract_repository.create(session, ctx, payload)
        return ContractRead.model_validate(row)

    def update_contract(
        self,
        session: Session,
        ctx: OrgContext,
        contract_id: uuid.UUID,
        dto: ContractUpdate,
    ) -> ContractRead:
        changes = dto.changes()
        self._check_party_references(session, ctx, changes)
        require_reference(session, ctx, self.proposal_repository, changes.get("proposal_id"), field="proposal_id")
        row = self.contract_repository.update(session, ctx, contract_id, changes)
        if row is None:
            raise HTTPException(status_code=404, detail="contract not found")
        return ContractRead.model_validate(row)

    def delete_contract(self, session: Session, ctx: OrgContext, contract_id: uuid.UUID) -> None:
        if not self.contract_repository.delete(session, ctx, contract_id):
            raise HTTPException(status_code=404, detail="contract not found")

    def send_contract(self, session: Session, ctx: OrgContext, contract_id: uuid.UUID) -> ContractRead:
        row = self.contract_repository.get(session, ctx, contract_id)
        if row is None:
            raise HTTPException(status_code=404, detail="contract not found")
        require_status(row.status, CONTRACT_SENDABLE)
        row = self.contract_repository.update(session, ctx, contract_id, {"status": "sent"})
        events.publish("contract.sent", organization_id=ctx.organization_id, entity_id=contract_id, actor_id=ctx.user_id)
        return ContractRead.model_validate(row)

    def sign_contract(
        self,
        session: Session,
        ctx: OrgContext,
        contract_id: uuid.UUID,
        dto: ContractSignRequest,
    ) -> ContractSignResult:
        """Mark the contract signed and open its engagement in a single commit."""
        contract = self.contract_repository.get(session, ctx, contract_id)
        if contract is None:
            raise HTTPException(status_code=404, detail="contract not found")
        require_status(contract.status, CONTRACT_SIGNABLE)

        signed_at = utcnow()
        contract = self.contract_repository.update(
            session,
            ctx,
            contract_id,
            {
                "status": "signed",
                "signed_at": signed_at,
                "signed_by_name": dto.signed_by_name,
                "signature_data": dto.signature_data,
            },
            commit=False,
        )
        engagement = self.engagement_repository.create(
            session,
            ctx,
            {
                "contract_id": contract.id,
                "deal_id": contract.deal_id,
                "client_company_id": contract.client_company_id,
                "contact_id": contract.contact_id,
                "owner_id": ctx.user_id,
                "name": f"Engagement: {contract.name}",
                "status": "active",
                "start_date": signed_at,
                "total_value": contract.total_value,
            },
            commit=False,
        )
        session.commit()
        session.refresh(contract)
        session.refresh(engagement)

        logger.info(
            "agreements.contract.signed",
            extra={
                "organization_id": str(ctx.organization_id),
                "user_id": ctx.user_id,
                "entity_id": str(contract.id),
            },
        )
        events.publish(
            "contract.signed",
            organization_id=ctx.organization_id,
            entity_id=contract.id,
            actor_id=ctx.user_id,
            payload={"engagement_id": str(engagement.id)},
        )
        return ContractSignResult(
            contract=ContractRead.model_validate(contract),
            engagement=EngagementRead.model_validate(engagement),
        )

    def _check_party_references(self, session: Session, ctx: OrgContext, values: dict[str, Any]) -> None:
        require_reference(session, ctx, self.deal_repository, values.get("deal_id"), field="deal_id")
        require_reference(session, ctx, self.client_repository, values.get("client_company_id"), field="client_company_id")
        require_reference(session, ctx, self.contact_repository, values.get("contact_id"), field="contact_id")


agreement_service = AgreementService()
