"""Import every model module so ``Base.metadata`` knows all tables."""

from ubos.agreements.models import Contract, Proposal
from ubos.communications.models import Message, MessageThread
from ubos.crm.models import ClientCompany, Contact, Deal
from ubos.engagements.models import Engagement
from ubos.identity.models import Organization, OrganizationMember, User, UserSession
from ubos.projects.models import Project, Task
from ubos.revenue.models import Bill, Invoice, Vendor

__all__ = [
    "Bill",
    "ClientCompany",
    "Contact",
    "Contract",
    "Deal",
    "Engagement",
    "Invoice",
    "Message",
    "MessageThread",
    "Organization",
    "OrganizationMember",
    "Project",
    "Proposal",
    "Task",
    "User",
    "UserSession",
    "Vendor",
]
