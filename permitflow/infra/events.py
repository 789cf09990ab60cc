from __future__ import annotations

from collections import defaultdict
from collections.abc import Callable
from typing import Any

import structlog
from sqlmodel import Session

from permitflow.domain.models import EventEnvelope, EventRecord
from permitflow.infra.db import engine

logger = structlog.get_logger(__name__)

EventHandler = Callable[[EventEnvelope], None]

WILDCARD = "*"


class EventBus:
    """Outbox for notification events.

    Each event is stored in ``events`` before any subscriber sees it, so the
    table is the complete record of what recipients were told.
    """

    def __init__(self) -> None:
        self._subscribers: dict[str, list[EventHandler]] = defaultdict(list)

    def subscribe(self, event_type: str, handler: EventHandler) -> None:
        self._subscribers[event_type].append(handler)

    def handlers_for(self, event_type: str) -> list[EventHandler]:
        return [*self._subscribers.get(event_type, []), *self._subscribers.get(WILDCARD, [])]

    def publish(self, event: EventEnvelope, session: Session | None = None) -> None:
        record = EventRecord(**event.model_dump())
        if session is not None:
            session.add(record)
        else:
            with Session(engine) as owned:
                owned.add(record)
                owned.commit()
        logger.debug("event.recorded", event_type=event.event_type, recipient_id=event.recipient_id)

        for handler in self.handlers_for(event.event_type):
            handler(event)

    def publish_dict(
        self,
        event_type: str,
        recipient_id: str,
        payload: dict[str, Any],
        actor_id: str | None = None,
        correlation_id: str | None = None,
    ) -> EventEnvelope:
        event = EventEnvelope(
            event_type=event_type,
            recipient_id=recipient_id,
            actor_id=actor_id,
            correlation_id=correlation_id,
            payload=payload,
        )
        self.publish(event)
        return event


event_bus = EventBus()
