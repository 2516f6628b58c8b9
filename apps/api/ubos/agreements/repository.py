from __future__ import annotations

from ubos.agreements.models import Contract, Proposal
from ubos.platform.tenancy.repository import ScopedRepository


class ProposalRepository(ScopedRepository[Proposal]):
    model = Proposal
    resource = "agreements.proposal"


class ContractRepository(ScopedRepository[Contract]):
    model = Contract
    resource = "agreements.contract"
