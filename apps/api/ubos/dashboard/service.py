from __future__ import annotations

from dataclasses import dataclass

from sqlalchemy.orm import Session

from ubos.crm.repository import ClientCompanyRepository, DealRepository
from ubos.dashboard.schemas import DashboardStats
from ubos.engagements.repository import EngagementRepository
from ubos.platform.tenancy.context import OrgContext
from ubos.revenue.repository import InvoiceRepository


PENDING_INVOICE_STATUSES = ("sent", "viewed")


@dataclass(slots=True)
class DashboardService:
    client_repository: ClientCompanyRepository = ClientCompanyRepository()
    deal_repository: DealRepository = DealRepository()
    engagement_repository: EngagementRepository = EngagementRepository()
    invoice_repository: InvoiceRepository = InvoiceRepository()

    def stats(self, session: Session, ctx: OrgContext) -> DashboardStats:
        """Headline counts for the caller's organization; revenue is the sum of paid invoice totals."""
        total_revenue = self.invoice_repository.sum_paid_total(session, ctx)
        return DashboardStats(
            clients=self.client_repository.count(session, ctx),
            deals=self.deal_repository.count_open(session, ctx),
            engagements=self.engagement_repository.count(session, ctx, filters={"status": "active"}),
            pending_invoices=self.invoice_repository.count(
                session, ctx, filters={"status": PENDING_INVOICE_STATUSES}
            ),
            total_revenue=f"{total_revenue:.2f}",
        )


dashboard_service = DashboardService()
