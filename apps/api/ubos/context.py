from __future__ import annotations

from contextvars import ContextVar, Token

correlation_id_var: ContextVar[str | None] = ContextVar("correlation_id", default=None)


def set_correlation_id(value: str | None) -> Token[str | None]:
    return correlation_id_var.set(value)


def reset_correlation_id(token: Token[str | None]) -> None:
    correlation_id_var.reset(token)


def get_correlation_id() -> str | None:
    return correlation_id_var.get()


MAX_CORRELATION_ID_LENGTH = 128


def normalize_correlation_id(raw: str | None) -> str | None:
    """Trim a caller-supplied correlation id; ``None`` when nothing usable is left."""
    if raw is None:
        return None
    value = raw.strip()[:MAX_CORRELATION_ID_LENGTH]
    return value or None
