from __future__ import annotations

import logging
from datetime import datetime

from ubos.core.celery_app import celery_app
from ubos.core.config import get_settings
from ubos.core.database import SessionLocal
from ubos.revenue.service import revenue_service


logger = logging.getLogger("ubos.revenue.tasks")


def run_overdue_sweep(now: datetime | None = None) -> int:
    if not get_settings().overdue_sweep_enabled:
        logger.info("revenue.overdue_sweep.skipped")
        return 0
    session = SessionLocal()
    try:
        changed = revenue_service.refresh_overdue_all_organizations(session, now=now)
    except Exception:
        session.rollback()
        raise
    finally:
        session.close()
    logger.info("revenue.overdue_sweep.completed", extra={"resource": "revenue.invoice", "entity_id": str(changed)})
    return changed


@celery_app.task(name="ubos.revenue.tasks.refresh_overdue_invoices")
def refresh_overdue_invoices_task() -> int:
    return run_overdue_sweep()
