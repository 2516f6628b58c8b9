from __future__ import annotations

import re

from prometheus_client import CONTENT_TYPE_LATEST, Counter, Histogram, generate_latest
from starlette.requests import Request


http_requests_total = Counter(
    "http_requests_total",
    "Total HTTP requests",
    ["method", "path", "status"],
)

http_request_duration_seconds = Histogram(
    "http_request_duration_seconds",
    "HTTP request duration in seconds",
    ["method", "path"],
)

tenancy_scoped_misses_total = Counter(
    "tenancy_scoped_misses_total",
    "Lookups by id that matched no row inside the caller's organization",
    ["resource"],
)

tenancy_organizations_created_total = Counter(
    "tenancy_organizations_created_total",
    "Organizations created lazily on first authenticated request",
)

auth_failures_total = Counter(
    "auth_failures_total",
    "Rejected authentication attempts by reason",
    ["reason"],
)

overdue_invoices_marked_total = Counter(
    "overdue_invoices_marked_total",
    "Invoices moved to overdue by the background sweep",
)


_UUID_RE = re.compile(
    r"\b[0-9a-fA-F]{8}-[0-9a-fA-F]{4}-[1-5][0-9a-fA-F]{3}-[89abAB][0-9a-fA-F]{3}-[0-9a-fA-F]{12}\b"
)
_INT_RE = re.compile(r"/\d+\b")
_PATH_PARAM_RE = re.compile(r"\{[^{}]+\}")


def _sanitize_path(path: str) -> str:
    without_uuids = _UUID_RE.sub("{id}", path)
    return _INT_RE.sub("/{id}", without_uuids)


def resolve_http_path_label(request: Request) -> str:
    """Label requests by route template so ids never become label values."""
    route = request.scope.get("route")
    if route is not None:
        path_format = getattr(route, "path_format", None) or getattr(route, "path", None)
        if isinstance(path_format, str) and path_format:
            return _PATH_PARAM_RE.sub("{id}", path_format)
    return _sanitize_path(request.url.path)


def observe_http_request(method: str, path: str, status: int, duration: float) -> None:
    http_requests_total.labels(method=method, path=path, status=str(status)).inc()
    http_request_duration_seconds.labels(method=method, path=path).observe(duration)


def observe_scoped_miss(resource: str) -> None:
    tenancy_scoped_misses_total.labels(resource=resource or "unknown").inc()


def observe_organization_created() -> None:
    tenancy_organizations_created_total.inc()


def observe_auth_failure(reason: str) -> None:
    auth_failures_total.labels(reason=reason).inc()


def observe_overdue_invoices(count: int) -> None:
    if count > 0:
        overdue_invoices_marked_total.inc(count)


def generate_metrics_payload() -> bytes:
    return generate_latest()


def metrics_content_type() -> str:
    return CONTENT_TYPE_LATEST
