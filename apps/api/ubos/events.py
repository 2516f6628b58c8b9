from __future__ import annotations

import uuid
from collections import defaultdict, deque
from collections.abc import Callable
from dataclasses import dataclass
from datetime import datetime, timezone
from typing import Any

from ubos.context import get_correlation_id


@dataclass
class InternalEvent:
    name: str
    payload: dict[str, Any]


EventHandler = Callable[[InternalEvent], None]


class InProcessEventBus:
    def __init__(self) -> None:
        self._subscribers: dict[str, list[EventHandler]] = defaultdict(list)

    def subscribe(self, event_name: str, handler: EventHandler) -> None:
        if handler not in self._subscribers[event_name]:
            self._subscribers[event_name].append(handler)

    def publish(self, event_name: str, payload: dict[str, Any]) -> None:
        event = InternalEvent(name=event_name, payload=payload)
        for handler in list(self._subscribers.get(event_name, [])):
            handler(event)


event_bus = InProcessEventBus()

# most recent envelopes, oldest dropped first
PUBLISHED_EVENTS_LIMIT = 500
published_events: deque[dict[str, Any]] = deque(maxlen=PUBLISHED_EVENTS_LIMIT)


def publish(
    event_type: str,
    *,
    organization_id: uuid.UUID,
    entity_id: uuid.UUID,
    actor_id: str,
    payload: dict[str, Any] | None = None,
) -> dict[str, Any]:
    """Publish a tenant-stamped domain event envelope on the in-process bus."""
    envelope: dict[str, Any] = {
        "event_id": str(uuid.uuid4()),
        "event_type": event_type,
        "organization_id": str(organization_id),
        "entity_id": str(entity_id),
        "actor_id": actor_id,
        "occurred_at": datetime.now(timezone.utc).isoformat(),
        "correlation_id": get_correlation_id(),
        "payload": payload or {},
    }
    published_events.append(envelope)
    event_bus.publish(event_type, envelope)
    return envelope
