from contextlib import asynccontextmanager
import logging

from fastapi import FastAPI
from opentelemetry.instrumentation.fastapi import FastAPIInstrumentor

import ubos.models  # noqa: F401
from ubos.api.routes import router as api_router
from ubos.core.config import get_settings
from ubos.core.database import engine
from ubos.core.errors import register_exception_handlers
from ubos.events import InternalEvent, event_bus
from ubos.logging import configure_logging
from ubos.middleware.correlation_id import CorrelationIdMiddleware
from ubos.middleware.rate_limit import MutationRateLimitMiddleware
from ubos.middleware.request_logging import RequestLoggingMiddleware
from ubos.otel import get_fastapi_server_request_hook, setup_otel


configure_logging()
logger = logging.getLogger("ubos.lifecycle")
_subscriptions_registered = False

_domain_event_types = [
    "deal.created",
    "deal.updated",
    "proposal.sent",
    "contract.sent",
    "contract.signed",
    "invoice.sent",
    "invoice.paid",
    "bill.approved",
    "bill.rejected",
    "bill.paid",
]


def _on_system_started(event: InternalEvent) -> None:
    logger.info("system_event", extra={"event_name": event.name})


def _on_domain_event(event: InternalEvent) -> None:
    envelope = event.payload
    logger.info(
        "domain_event",
        extra={
            "event_name": event.name,
            "organization_id": envelope.get("organization_id"),
            "entity_id": envelope.get("entity_id"),
        },
    )


@asynccontextmanager
async def lifespan(app: FastAPI):
    global _subscriptions_registered
    if not _subscriptions_registered:
        event_bus.subscribe("system.started", _on_system_started)
        for event_name in _domain_event_types:
            event_bus.subscribe(event_name, _on_domain_event)
        _subscriptions_registered = True
    event_bus.publish("system.started", {"service": "api"})
    yield
    engine.dispose()
    logger.info("system_event", extra={"event_name": "system.stopped"})


app = FastAPI(title="UBOS API", version="0.1.0", lifespan=lifespan)
app.add_middleware(MutationRateLimitMiddleware)
app.add_middleware(RequestLoggingMiddleware)
app.add_middleware(CorrelationIdMiddleware)
register_exception_handlers(app)
app.include_router(api_router)

settings = get_settings()
if settings.otel_enabled:
    setup_otel("ubos-api", True)

if not getattr(app, "_is_instrumented_by_opentelemetry", False):
    FastAPIInstrumentor().instrument_app(app, server_request_hook=get_fastapi_server_request_hook())
