from __future__ import annotations

from pydantic import BaseModel


class DashboardStats(BaseModel):
    clients: int
    deals: int
    engagements: int
    pending_invoices: int
    total_revenue: str
