from __future__ import annotations

import logging
import uuid
from dataclasses import dataclass
from datetime import datetime
from decimal import Decimal

from fastapi import HTTPException
from sqlalchemy.orm import Session

from ubos import events
from ubos.crm.repository import ClientCompanyRepository
from ubos.engagements.repository import EngagementRepository
from ubos.identity.repository import IdentityRepository
from ubos.metrics import observe_overdue_invoices
from ubos.platform.tenancy.context import OrgContext
from ubos.platform.tenancy.guards import require_reference, require_status
from ubos.platform.tenancy.repository import utcnow
from ubos.revenue.repository import BillRepository, InvoiceRepository, VendorRepository
from ubos.revenue.schemas import (
    BillCreate,
    BillRead,
    BillUpdate,
    InvoiceCreate,
    InvoiceRead,
    InvoiceUpdate,
    VendorCreate,
    VendorRead,
)


logger = logging.getLogger("ubos.revenue")

INVOICE_SENDABLE = frozenset({"draft", "sent", "viewed", "overdue"})
INVOICE_PAYABLE = frozenset({"draft", "sent", "viewed", "overdue"})
BILL_APPROVABLE = frozenset({"pending", "rejected"})
BILL_REJECTABLE = frozenset({"pending", "approved"})
BILL_PAYABLE = frozenset({"approved"})
# fields a plain PATCH may not touch once the document is paid
PAID_LOCKED_FIELDS = frozenset({"amount", "tax", "status"})
UNPAID_INVOICE = frozenset({"draft", "sent", "viewed", "overdue", "cancelled"})
UNPAID_BILL = frozenset({"pending", "approved", "rejected", "cancelled"})
SWEEP_USER_ID = "system:overdue-sweep"


@dataclass(slots=True)
class RevenueService:
    invoice_repository: InvoiceRepository = InvoiceRepository()
    bill_repository: BillRepository = BillRepository()
    vendor_repository: VendorRepository = VendorRepository()
    engagement_repository: EngagementRepository = EngagementRepository()
    client_repository: ClientCompanyRepository = ClientCompanyRepository()
    identity_repository: IdentityRepository = IdentityRepository()

    def list_invoices(self, session: Session, ctx: OrgContext) -> list[InvoiceRead]:
        return [InvoiceRead.model_validate(row) for row in self.invoice_repository.list(session, ctx)]

    def get_invoice(self, session: Session, ctx: OrgContext, invoice_id: uuid.UUID) -> InvoiceRead:
        row = self.invoice_repository.get(session, ctx, invoice_id)
        if row is None:
            raise HTTPException(status_code=404, detail="invoice not found")
        return InvoiceRead.model_validate(row)

    def create_invoice(self, session: Session, ctx: OrgContext, dto: InvoiceCreate) -> InvoiceRead:
        require_reference(session, ctx, self.engagement_repository, dto.engagement_id, field="engagement_id")
        require_reference(session, ctx, self.client_repository, dto.client_company_id, field="client_company_id")
        payload = dto.model_dump()
        payload["invoice_number"] = dto.invoice_number or self.invoice_repository.next_number(session, ctx)
        payload["total_amount"] = dto.amount + dto.tax
        row = self.invoice_repository.create(session, ctx, payload)
        return InvoiceRead.model_validate(row)

    def update_invoice(self, session: Session, ctx: OrgContext, invoice_id: uuid.UUID, dto: InvoiceUpdate) -> InvoiceRead:
        changes = dto.changes()
        row = self.invoice_repository.get(session, ctx, invoice_id)
        if row is None:
            raise HTTPException(status_code=404, detail="invoice not found")
        if PAID_LOCKED_FIELDS & changes.keys():
            require_status(row.status, UNPAID_INVOICE)
        require_reference(session, ctx, self.engagement_repository, changes.get("engagement_id"), field="engagement_id")
        require_reference(session, ctx, self.client_repository, changes.get("client_company_id"), field="client_company_id")
        if "amount" in changes or "tax" in changes:
            amount = changes.get("amount", row.amount)
            tax = changes.get("tax", row.tax)
            changes["total_amount"] = Decimal(amount) + Decimal(tax or 0)
        row = self.invoice_repository.update(session, ctx, invoice_id, changes)
        return InvoiceRead.model_validate(row)

    def delete_invoice(self, session: Session, ctx: OrgContext, invoice_id: uuid.UUID) -> None:
        if not self.invoice_repository.delete(session, ctx, invoice_id):
            raise HTTPException(status_code=404, detail="invoice not found")

    def send_invoice(self, session: Session, ctx: OrgContext, invoice_id: uuid.UUID) -> InvoiceRead:
        row = self.invoice_repository.get(session, ctx, invoice_id)
        if row is None:
            raise HTTPException(status_code=404, detail="invoice not found")
        require_status(row.status, INVOICE_SENDABLE)
        row = self.invoice_repository.update(session, ctx, invoice_id, {"status": "sent", "sent_at": utcnow()})
        events.publish("invoice.sent", organization_id=ctx.organization_id, entity_id=invoice_id, actor_id=ctx.user_id)
        return InvoiceRead.model_validate(row)

    def mark_invoice_paid(self, session: Session, ctx: OrgContext, invoice_id: uuid.UUID) -> InvoiceRead:
        row = self.invoice_repository.get(session, ctx, invoice_id)
        if row is None:
            raise HTTPException(status_code=404, detail="invoice not found")
        require_status(row.status, INVOICE_PAYABLE)
        row = self.invoice_repository.update(
            session,
            ctx,
            invoice_id,
            {"status": "paid", "paid_at": utcnow(), "paid_amount": row.total_amount},
        )
        events.publish(
            "invoice.paid",
            organization_id=ctx.organization_id,
            entity_id=invoice_id,
            actor_id=ctx.user_id,
            payload={"paid_amount": str(row.paid_amount)},
        )
        return InvoiceRead.model_validate(row)

    def refresh_overdue(self, session: Session, ctx: OrgContext, *, now: datetime | None = None) -> int:
        """Move unpaid sent/viewed invoices past their due date to ``overdue``."""
        cutoff = now or utcnow()
        candidates = self.invoice_repository.list_overdue_candidates(session, ctx, cutoff)
        for invoice in candidates:
            self.invoice_repository.update(session, ctx, invoice.id, {"status": "overdue"}, commit=False)
        if candidates:
            session.commit()
            logger.info(
                "revenue.invoices.overdue",
                extra={"organization_id": str(ctx.organization_id), "resource": "revenue.invoice"},
            )
        observe_overdue_invoices(len(candidates))
        return len(candidates)

    def refresh_overdue_all_organizations(self, session: Session, *, now: datetime | None = None) -> int:
        changed = 0
        for organization_id in self.identity_repository.list_organization_ids(session):
            ctx = OrgContext(organization_id=organization_id, user_id=SWEEP_USER_ID, role="system")
            changed += self.refresh_overdue(session, ctx, now=now)
        return changed

    def list_vendors(self, session: Session, ctx: OrgContext) -> list[VendorRead]:
        return [VendorRead.model_validate(row) for row in self.vendor_repository.list(session, ctx)]

    def create_vendor(self, session: Session, ctx: OrgContext, dto: VendorCreate) -> VendorRead:
        row = self.vendor_repository.create(session, ctx, dto.model_dump())
        return VendorRead.model_validate(row)

    def list_bills(self, session: Session, ctx: OrgContext) -> list[BillRead]:
        return [BillRead.model_validate(row) for row in self.bill_repository.list(session, ctx)]

    def get_bill(self, session: Session, ctx: OrgContext, bill_id: uuid.UUID) -> BillRead:
        row = self.bill_repository.get(session, ctx, bill_id)
        if row is None:
            raise HTTPException(status_code=404, detail="bill not found")
        return BillRead.model_validate(row)

    def create_bill(self, session: Session, ctx: OrgContext, dto: BillCreate) -> BillRead:
        require_reference(session, ctx, self.engagement_repository, dto.engagement_id, field="engagement_id")
        require_reference(session, ctx, self.vendor_repository, dto.vendor_id, field="vendor_id")
        payload = dto.model_dump()
        payload["bill_number"] = dto.bill_number or self.bill_repository.next_number(session, ctx)
        payload["created_by_id"] = ctx.user_id
        row = self.bill_repository.create(session, ctx, payload)
        return BillRead.model_validate(row)

    def update_bill(self, session: Session, ctx: OrgContext, bill_id: uuid.UUID, dto: BillUpdate) -> BillRead:
        changes = dto.changes()
        row = self.bill_repository.get(session, ctx, bill_id)
        if row is None:
            raise HTTPException(status_code=404, detail="bill not found")
        if PAID_LOCKED_FIELDS & changes.keys():
            require_status(row.status, UNPAID_BILL)
        require_reference(session, ctx, self.engagement_repository, changes.get("engagement_id"), field="engagement_id")
        require_reference(session, ctx, self.vendor_repository, changes.get("vendor_id"), field="vendor_id")
        row = self.bill_repository.update(session, ctx, bill_id, changes)
        return BillRead.model_validate(row)

    def delete_bill(self, session: Session, ctx: OrgContext, bill_id: uuid.UUID) -> None:
        if not self.bill_repository.delete(session, ctx, bill_id):
            raise HTTPException(status_code=404, detail="bill not found")

    def approve_bill(self, session: Session, ctx: OrgContext, bill_id: uuid.UUID) -> BillRead:
        return self._transition_bill(
            session,
            ctx,
            bill_id,
            BILL_APPROVABLE,
            {"status": "approved", "approved_by_id": ctx.user_id, "approved_at": utcnow()},
            event_type="bill.approved",
        )

    def reject_bill(self, session: Session, ctx: OrgContext, bill_id: uuid.UUID) -> BillRead:
        return self._transition_bill(session, ctx, bill_id, BILL_REJECTABLE, {"status": "rejected"}, event_type="bill.rejected")

    def mark_bill_paid(self, session: Session, ctx: OrgContext, bill_id: uuid.UUID) -> BillRead:
        return self._transition_bill(
            session,
            ctx,
            bill_id,
            BILL_PAYABLE,
            {"status": "paid", "paid_at": utcnow()},
            event_type="bill.paid",
        )

    def _transition_bill(
        self,
        session: Session,
        ctx: OrgContext,
        bill_id: uuid.UUID,
        allowed: frozenset[str],
        changes: dict[str, object],
        *,
        event_type: str,
    ) -> BillRead:
        row = self.bill_repository.get(session, ctx, bill_id)
        if row is None:
            raise HTTPException(status_code=404, detail="bill not found")
        require_status(row.status, allowed)
        row = self.bill_repository.update(session, ctx, bill_id, changes)
        events.publish(event_type, organization_id=ctx.organization_id, entity_id=bill_id, actor_id=ctx.user_id)
        return BillRead.model_validate(row)


revenue_service = RevenueService()
