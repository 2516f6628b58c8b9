from __future__ import annotations

from datetime import datetime
from decimal import Decimal
from typing import ClassVar, Literal
from uuid import UUID

from pydantic import BaseModel, ConfigDict, Field

from ubos.core.schemas import PartialUpdate


DealStage = Literal["lead", "qualified", "proposal", "negotiation", "won", "lost"]


class ClientCompanyCreate(BaseModel):
    name: str = Field(min_length=1, max_length=255)
    website: str | None = Field(default=None, max_length=512)
    industry: str | None = Field(default=None, max_length=128)
    address: str | None = None
    city: str | None = Field(default=None, max_length=128)
    state: str | None = Field(default=None, max_length=128)
    zip_code: str | None = Field(default=None, max_length=32)
    country: str | None = Field(default=None, max_length=128)
    notes: str | None = None


class ClientCompanyUpdate(PartialUpdate):
    non_nullable: ClassVar[frozenset[str]] = frozenset({"name"})

    name: str | None = Field(default=None, min_length=1, max_length=255)
    website: str | None = Field(default=None, max_length=512)
    industry: str | None = Field(default=None, max_length=128)
    address: str | None = None
    city: str | None = Field(default=None, max_length=128)
    state: str | None = Field(default=None, max_length=128)
    zip_code: str | None = Field(default=None, max_length=32)
    country: str | None = Field(default=None, max_length=128)
    notes: str | None = None


class ClientCompanyRead(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: UUID
    organization_id: UUID
    name: str
    website: str | None
    industry: str | None
    address: str | None
    city: str | None
    state: str | None
    zip_code: str | None
    country: str | None
    notes: str | None
    created_at: datetime
    updated_at: datetime


class ContactCreate(BaseModel):
    client_company_id: UUID | None = None
    first_name: str = Field(min_length=1, max_length=128)
    last_name: str = Field(min_length=1, max_length=128)
    email: str | None = Field(default=None, max_length=320)
    phone: str | None = Field(default=None, max_length=64)
    title: str | None = Field(default=None, max_length=128)
    is_primary: bool = False
    notes: str | None = None


class ContactUpdate(PartialUpdate):
    non_nullable: ClassVar[frozenset[str]] = frozenset({"first_name", "last_name", "is_primary"})

    client_company_id: UUID | None = None
    first_name: str | None = Field(default=None, min_length=1, max_length=128)
    last_name: str | None = Field(default=None, min_length=1, max_length=128)
    email: str | None = Field(default=None, max_length=320)
    phone: str | None = Field(default=None, max_length=64)
    title: str | None = Field(default=None, max_length=128)
    is_primary: bool | None = None
    notes: str | None = None


class ContactRead(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: UUID
    organization_id: UUID
    client_company_id: UUID | None
    first_name: str
    last_name: str
    email: str | None
    phone: str | None
    title: str | None
    is_primary: bool
    notes: str | None
    created_at: datetime
    updated_at: datetime


class DealCreate(BaseModel):
    client_company_id: UUID | None = None
    contact_id: UUID | None = None
    name: str = Field(min_length=1, max_length=255)
    description: str | None = None
    value: Decimal | None = Field(default=None, ge=Decimal("0"), max_digits=12, decimal_places=2)
    stage: DealStage = "lead"
    probability: int = Field(default=0, ge=0, le=100)
    expected_close_date: datetime | None = None
    closed_at: datetime | None = None
    notes: str | None = None


class DealUpdate(PartialUpdate):
    non_nullable: ClassVar[frozenset[str]] = frozenset({"name", "stage", "probability"})

    client_company_id: UUID | None = None
    contact_id: UUID | None = None
    name: str | None = Field(default=None, min_length=1, max_length=255)
    description: str | None = None
    value: Decimal | None = Field(default=None, ge=Decimal("0"), max_digits=12, decimal_places=2)
    stage: DealStage | None = None
    probability: int | None = Field(default=None, ge=0, le=100)
    expected_close_date: datetime | None = None
    closed_at: datetime | None = None
    notes: str | None = None


class DealRead(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: UUID
    organization_id: UUID
    client_company_id: UUID | None
    contact_id: UUID | None
    owner_id: str
    name: str
    description: str | None
    value: Decimal | None
    stage: DealStage | str
    probability: int
    expected_close_date: datetime | None
    closed_at: datetime | None
    notes: str | None
    created_at: datetime
    updated_at: datetime
