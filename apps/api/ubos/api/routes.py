from fastapi import APIRouter, HTTPException, status
from fastapi.responses import Response

from ubos.agreements.api import contracts_router, proposals_router
from ubos.communications.api import router as threads_router
from ubos.core.config import get_settings
from ubos.crm.api import clients_router, contacts_router, deals_router
from ubos.dashboard.api import router as dashboard_router
from ubos.engagements.api import router as engagements_router
from ubos.identity.api import router as identity_router
from ubos.metrics import generate_metrics_payload, metrics_content_type
from ubos.projects.api import projects_router, tasks_router
from ubos.revenue.api import bills_router, invoices_router, vendors_router

router = APIRouter()
router.include_router(identity_router)
router.include_router(clients_router)
router.include_router(contacts_router)
router.include_router(deals_router)
router.include_router(proposals_router)
router.include_router(contracts_router)
router.include_router(engagements_router)
router.include_router(projects_router)
router.include_router(tasks_router)
router.include_router(threads_router)
router.include_router(invoices_router)
router.include_router(bills_router)
router.include_router(vendors_router)
router.include_router(dashboard_router)


@router.get("/health", tags=["system"])
def health() -> dict[str, str]:
    settings = get_settings()
    return {
        "status": "ok",
        "service": settings.app_name,
        "environment": settings.app_env,
    }


@router.get("/metrics", tags=["system"])
def metrics() -> Response:
    if not get_settings().metrics_enabled:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="not found")
    return Response(content=generate_metrics_payload(), media_type=metrics_content_type())
