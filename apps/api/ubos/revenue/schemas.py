from __future__ import annotations

from datetime import datetime
from decimal import Decimal
from typing import Any, ClassVar, Literal
from uuid import UUID

from pydantic import BaseModel, ConfigDict, Field

from ubos.core.schemas import PartialUpdate


InvoiceStatus = Literal["draft", "sent", "viewed", "paid", "overdue", "cancelled"]
BillStatus = Literal["pending", "approved", "rejected", "paid", "cancelled"]


class InvoiceCreate(BaseModel):
    engagement_id: UUID
    client_company_id: UUID | None = None
    invoice_number: str | None = Field(default=None, min_length=1, max_length=50)
    amount: Decimal = Field(ge=Decimal("0"), max_digits=12, decimal_places=2)
    tax: Decimal = Field(default=Decimal("0"), ge=Decimal("0"), max_digits=12, decimal_places=2)
    line_items: list[dict[str, Any]] | None = None
    due_date: datetime | None = None
    notes: str | None = None


class InvoiceUpdate(PartialUpdate):
    non_nullable: ClassVar[frozenset[str]] = frozenset(
        {"engagement_id", "invoice_number", "amount", "tax", "status"}
    )

    engagement_id: UUID | None = None
    client_company_id: UUID | None = None
    invoice_number: str | None = Field(default=None, min_length=1, max_length=50)
    status: Literal["cancelled"] | None = None
    amount: Decimal | None = Field(default=None, ge=Decimal("0"), max_digits=12, decimal_places=2)
    tax: Decimal | None = Field(default=None, ge=Decimal("0"), max_digits=12, decimal_places=2)
    line_items: list[dict[str, Any]] | None = None
    due_date: datetime | None = None
    notes: str | None = None


class InvoiceRead(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: UUID
    organization_id: UUID
    engagement_id: UUID
    client_company_id: UUID | None
    invoice_number: str
    status: InvoiceStatus | str
    amount: Decimal
    tax: Decimal
    total_amount: Decimal
    line_items: list[dict[str, Any]] | None
    due_date: datetime | None
    sent_at: datetime | None
    paid_at: datetime | None
    paid_amount: Decimal | None
    notes: str | None
    created_at: datetime
    updated_at: datetime


class VendorCreate(BaseModel):
    name: str = Field(min_length=1, max_length=255)
    email: str | None = Field(default=None, max_length=255)
    phone: str | None = Field(default=None, max_length=50)
    address: str | None = None
    notes: str | None = None


class VendorRead(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: UUID
    organization_id: UUID
    name: str
    email: str | None
    phone: str | None
    address: str | None
    notes: str | None
    created_at: datetime
    updated_at: datetime


class BillCreate(BaseModel):
    engagement_id: UUID | None = None
    vendor_id: UUID | None = None
    bill_number: str | None = Field(default=None, min_length=1, max_length=50)
    amount: Decimal = Field(ge=Decimal("0"), max_digits=12, decimal_places=2)
    due_date: datetime | None = None
    description: str | None = None
    notes: str | None = None


class BillUpdate(PartialUpdate):
    non_nullable: ClassVar[frozenset[str]] = frozenset({"bill_number", "amount", "status"})

    engagement_id: UUID | None = None
    vendor_id: UUID | None = None
    bill_number: str | None = Field(default=None, min_length=1, max_length=50)
    status: Literal["cancelled"] | None = None
    amount: Decimal | None = Field(default=None, ge=Decimal("0"), max_digits=12, decimal_places=2)
    due_date: datetime | None = None
    description: str | None = None
    notes: str | None = None


class BillRead(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: UUID
    organization_id: UUID
    engagement_id: UUID | None
    vendor_id: UUID | None
    created_by_id: str
    bill_number: str
    status: BillStatus | str
    amount: Decimal
    due_date: datetime | None
    description: str | None
    approved_by_id: str | None
    approved_at: datetime | None
    paid_at: datetime | None
    notes: str | None
    created_at: datetime
    updated_at: datetime
