from __future__ import annotations

from datetime import datetime
from decimal import Decimal
from typing import Any, ClassVar, Literal
from uuid import UUID

from pydantic import BaseModel, ConfigDict, Field

from ubos.core.schemas import PartialUpdate
from ubos.engagements.schemas import EngagementRead


ProposalStatus = Literal["draft", "sent", "viewed", "accepted", "rejected", "expired"]
ContractStatus = Literal["draft", "sent", "signed", "expired", "cancelled"]


class ProposalCreate(BaseModel):
    deal_id: UUID | None = None
    client_company_id: UUID | None = None
    contact_id: UUID | None = None
    name: str = Field(min_length=1, max_length=255)
    status: ProposalStatus = "draft"
    content: dict[str, Any] | None = None
    total_value: Decimal | None = Field(default=None, ge=Decimal("0"), max_digits=12, decimal_places=2)
    valid_until: datetime | None = None


class ProposalUpdate(PartialUpdate):
    non_nullable: ClassVar[frozenset[str]] = frozenset({"name", "status"})

    deal_id: UUID | None = None
    client_company_id: UUID | None = None
    contact_id: UUID | None = None
    name: str | None = Field(default=None, min_length=1, max_length=255)
    status: ProposalStatus | None = None
    content: dict[str, Any] | None = None
    total_value: Decimal | None = Field(default=None, ge=Decimal("0"), max_digits=12, decimal_places=2)
    valid_until: datetime | None = None
    viewed_at: datetime | None = None
    responded_at: datetime | None = None


class ProposalRead(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: UUID
    organization_id: UUID
    deal_id: UUID | None
    client_company_id: UUID | None
    contact_id: UUID | None
    created_by_id: str
    name: str
    status: ProposalStatus | str
    content: dict[str, Any] | None
    total_value: Decimal | None
    valid_until: datetime | None
    sent_at: datetime | None
    viewed_at: datetime | None
    responded_at: datetime | None
    created_at: datetime
    updated_at: datetime


class ContractCreate(BaseModel):
    proposal_id: UUID | None = None
    deal_id: UUID | None = None
    client_company_id: UUID | None = None
    contact_id: UUID | None = None
    name: str = Field(min_length=1, max_length=255)
    content: dict[str, Any] | None = None
    total_value: Decimal | None = Field(default=None, ge=Decimal("0"), max_digits=12, decimal_places=2)
    start_date: datetime | None = None
    end_date: datetime | None = None


class ContractUpdate(PartialUpdate):
    non_nullable: ClassVar[frozenset[str]] = frozenset({"name", "status"})

    proposal_id: UUID | None = None
    deal_id: UUID | None = None
    client_company_id: UUID | None = None
    contact_id: UUID | None = None
    name: str | None = Field(default=None, min_length=1, max_length=255)
    status: Literal["expired", "cancelled"] | None = None
    content: dict[str, Any] | None = None
    total_value: Decimal | None = Field(default=None, ge=Decimal("0"), max_digits=12, decimal_places=2)
    start_date: datetime | None = None
    end_date: datetime | None = None


class ContractRead(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: UUID
    organization_id: UUID
    proposal_id: UUID | None
    deal_id: UUID | None
    client_company_id: UUID | None
    contact_id: UUID | None
    created_by_id: str
    name: str
    status: ContractStatus | str
    content: dict[str, Any] | None
    total_value: Decimal | None
    start_date: datetime | None
    end_date: datetime | None
    signed_at: datetime | None
    signed_by_name: str | None
    signature_data: str | None
    created_at: datetime
    updated_at: datetime


class ContractSignRequest(BaseModel):
    signed_by_name: str | None = Field(default=None, max_length=255)
    signature_data: str | None = None


class ContractSignResult(BaseModel):
    contract: ContractRead
    engagement: EngagementRead
