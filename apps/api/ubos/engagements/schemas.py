from __future__ import annotations

from datetime import datetime
from decimal import Decimal
from typing import ClassVar, Literal
from uuid import UUID

from pydantic import BaseModel, ConfigDict, Field

from ubos.core.schemas import PartialUpdate


EngagementStatus = Literal["active", "on_hold", "completed", "cancelled"]


class EngagementCreate(BaseModel):
    contract_id: UUID | None = None
    deal_id: UUID | None = None
    client_company_id: UUID | None = None
    contact_id: UUID | None = None
    name: str = Field(min_length=1, max_length=255)
    description: str | None = None
    status: EngagementStatus = "active"
    start_date: datetime | None = None
    end_date: datetime | None = None
    total_value: Decimal | None = Field(default=None, ge=Decimal("0"), max_digits=12, decimal_places=2)


class EngagementUpdate(PartialUpdate):
    non_nullable: ClassVar[frozenset[str]] = frozenset({"name", "status"})

    contract_id: UUID | None = None
    deal_id: UUID | None = None
    client_company_id: UUID | None = None
    contact_id: UUID | None = None
    name: str | None = Field(default=None, min_length=1, max_length=255)
    description: str | None = None
    status: EngagementStatus | None = None
    start_date: datetime | None = None
    end_date: datetime | None = None
    total_value: Decimal | None = Field(default=None, ge=Decimal("0"), max_digits=12, decimal_places=2)


class EngagementRead(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: UUID
    organization_id: UUID
    contract_id: UUID | None
    deal_id: UUID | None
    client_company_id: UUID | None
    contact_id: UUID | None
    owner_id: str
    name: str
    description: str | None
    status: EngagementStatus | str
    start_date: datetime | None
    end_date: datetime | None
    total_value: Decimal | None
    created_at: datetime
    updated_at: datetime
