from __future__ import annotations

from typing import Any, Protocol

from permitflow.infra.events import EventBus, event_bus


class NotificationDispatcher(Protocol):
    def notify(self, recipient_id: str, event_kind: str, payload: dict[str, Any]) -> None: ...


class EventBusDispatcher:
    """Hands notifications to the event bus; delivery transports subscribe there.

    A single attempt is made and publish errors propagate. Callers that must not
    fail on a lost notification catch and log them.
    """

    def __init__(self, bus: EventBus | None = None) -> None:
        self._bus = bus or event_bus

    def notify(self, recipient_id: str, event_kind: str, payload: dict[str, Any]) -> None:
        self._bus.publish_dict(event_kind, recipient_id, payload)
