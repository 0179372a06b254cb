"""In-process publisher for provisioning run events."""

from __future__ import annotations

from collections.abc import Awaitable, Callable
from typing import Any

import structlog

from provisioner.domain.ports.services import EventPublisher


logger = structlog.get_logger(__name__)

EventHandler = Callable[[dict[str, Any]], Awaitable[None]]

ALL_EVENTS = "*"


class InMemoryEventPublisher(EventPublisher):
    """Keeps the event log of the process and awaits local subscribers.

    Handlers run in publish order, after handlers of the exact event type
    come those subscribed to ``ALL_EVENTS``. A failing handler propagates
    to the publisher's caller.
    """

    def __init__(self) -> None:
        self._events: list[tuple[str, dict[str, Any]]] = []
        self._handlers: dict[str, list[EventHandler]] = {}

    async def publish(self, event_type: str, payload: dict[str, Any]) -> None:
        self._events.append((event_type, payload))
        logger.info("event_published", event_type=event_type, run_id=payload.get("run_id"))

        handlers = self._handlers.get(event_type, []) + self._handlers.get(ALL_EVENTS, [])
        for handler in handlers:
            await handler(payload)

    async def publish_batch(self, events: list[tuple[str, dict[str, Any]]]) -> None:
        for event_type, payload in events:
            await self.publish(event_type, payload)

    def subscribe(self, event_type: str, handler: EventHandler) -> None:
        self._handlers.setdefault(event_type, []).append(handler)

    @property
    def published_events(self) -> list[tuple[str, dict[str, Any]]]:
        return list(self._events)

    def events_of_type(self, event_type: str) -> list[dict[str, Any]]:
        return [payload for kind, payload in self._events if kind == event_type]

    def events_for_run(self, run_id: str) -> list[str]:
        """Event types published for one run, oldest first."""
        return [kind for kind, payload in self._events if payload.get("run_id") == run_id]

    def clear(self) -> None:
        self._events.clear()
