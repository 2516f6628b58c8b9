from celery import Celery

from ubos.core.config import get_settings

settings = get_settings()

celery_app = Celery(
    "ubos_api",
    broker=settings.redis_url,
    backend=settings.redis_url,
    include=["ubos.revenue.tasks"],
)
celery_app.conf.beat_schedule = {
    "refresh-overdue-invoices": {
        "task": "ubos.revenue.tasks.refresh_overdue_invoices",
        "schedule": float(settings.overdue_sweep_interval_seconds),
    },
}
