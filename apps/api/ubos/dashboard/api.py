from __future__ import annotations

from fastapi import APIRouter, Depends, Request
from fastapi.responses import JSONResponse
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from ubos.core.database import get_db
from ubos.core.errors import storage_failure
from ubos.dashboard.schemas import DashboardStats
from ubos.dashboard.service import dashboard_service
from ubos.platform.tenancy.context import OrgContext
from ubos.platform.tenancy.dependencies import get_org_context


router = APIRouter(prefix="/api/dashboard", tags=["dashboard"])


@router.get("/stats", response_model=DashboardStats)
def dashboard_stats(
    request: Request,
    db: Session = Depends(get_db),
    ctx: OrgContext = Depends(get_org_context),
) -> DashboardStats | JSONResponse:
    try:
        return dashboard_service.stats(db, ctx)
    except SQLAlchemyError:
        return storage_failure(request, db, ctx, code="dashboard_stats_failed", resource="dashboard.stats")
