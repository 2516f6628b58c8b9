from __future__ import annotations

from datetime import datetime
from decimal import Decimal
from typing import Any, ClassVar

from sqlalchemy import func, select
from sqlalchemy.orm import Session

from ubos.platform.tenancy.context import OrgContext
from ubos.platform.tenancy.repository import ModelT, ScopedRepository
from ubos.revenue.models import Bill, Invoice, Vendor


class NumberedRepository(ScopedRepository[ModelT]):
    """Scoped repository for documents numbered ``<PREFIX>-00001`` per organization."""

    number_field: ClassVar[str]
    number_prefix: ClassVar[str]

    def next_number(self, session: Session, ctx: OrgContext) -> str:
        counter = self.count(session, ctx)
        while True:
            counter += 1
            candidate = f"{self.number_prefix}-{counter:05d}"
            if not self.number_taken(session, ctx, candidate):
                return candidate

    def number_taken(self, session: Session, ctx: OrgContext, number: str) -> bool:
        column = getattr(self.model, self.number_field)
        stmt = self.scope(select(self.model.id).where(column == number), ctx)
        return session.scalar(stmt.limit(1)) is not None


class InvoiceRepository(NumberedRepository[Invoice]):
    model = Invoice
    resource = "revenue.invoice"
    number_field = "invoice_number"
    number_prefix = "INV"

    def list_overdue_candidates(self, session: Session, ctx: OrgContext, now: datetime) -> list[Invoice]:
        stmt = self.scope(select(Invoice), ctx).where(
            Invoice.status.in_(("sent", "viewed")),
            Invoice.due_date.is_not(None),
            Invoice.due_date < now,
            Invoice.paid_at.is_(None),
        )
        return list(session.scalars(stmt.order_by(Invoice.due_date.asc())).all())

    def sum_paid_total(self, session: Session, ctx: OrgContext) -> Decimal:
        stmt = self.scope(select(func.coalesce(func.sum(Invoice.total_amount), 0)), ctx).where(Invoice.status == "paid")
        return Decimal(str(session.scalar(stmt) or 0))


class VendorRepository(ScopedRepository[Vendor]):
    model = Vendor
    resource = "revenue.vendor"

    def ordering(self) -> tuple[Any, ...]:
        return (Vendor.name.asc(),)


class BillRepository(NumberedRepository[Bill]):
    model = Bill
    resource = "revenue.bill"
    number_field = "bill_number"
    number_prefix = "BILL"
