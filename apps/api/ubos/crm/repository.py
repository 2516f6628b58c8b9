from __future__ import annotations

from sqlalchemy import func, select
from sqlalchemy.orm import Session

from ubos.crm.models import ClientCompany, Contact, Deal
from ubos.platform.tenancy.context import OrgContext
from ubos.platform.tenancy.repository import ScopedRepository


CLOSED_DEAL_STAGES = ("won", "lost")


class ClientCompanyRepository(ScopedRepository[ClientCompany]):
    model = ClientCompany
    resource = "crm.client"


class ContactRepository(ScopedRepository[Contact]):
    model = Contact
    resource = "crm.contact"


class DealRepository(ScopedRepository[Deal]):
    model = Deal
    resource = "crm.deal"

    def count_open(self, session: Session, ctx: OrgContext) -> int:
        stmt = self.scope(select(func.count()).select_from(Deal), ctx).where(Deal.stage.not_in(CLOSED_DEAL_STAGES))
        return int(session.scalar(stmt) or 0)
