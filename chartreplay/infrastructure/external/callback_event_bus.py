"""
Callback Event Bus.

Implementa IEventSink con dispatch SÍNCRONO a handlers registrados
por tipo de evento (nombre de clase). El tipo "*" recibe todos los eventos.

Un handler que falla se loguea y no interrumpe al resto.
"""

from __future__ import annotations

from typing import Dict, List

from chartreplay.application.ports.event_sink import EventHandler, IEventSink
from chartreplay.domain.events.domain_events import DomainEvent
from chartreplay.shared.logging.logger import get_logger

logger = get_logger("event_bus")

ALL_EVENTS = "*"


class CallbackEventBus(IEventSink):
    """Bus de eventos en proceso."""

    def __init__(self) -> None:
        self._handlers: Dict[str, List[EventHandler]] = {}
        self._published: int = 0

    def publish(self, event: DomainEvent) -> None:
        event_type = event.event_type
        self._published += 1
        logger.debug("Publishing event: %s", event_type)

        handlers = self._handlers.get(event_type, []) + self._handlers.get(ALL_EVENTS, [])
        for handler in handlers:
            try:
                handler(event)
            except Exception as e:
                logger.error("Error in handler for %s: %s", event_type, e)

    def register_handler(self, event_type: str, handler: EventHandler) -> None:
        self._handlers.setdefault(event_type, []).append(handler)
        logger.info("Handler registered for event type: %s", event_type)

    def unregister_all(self, event_type: str | None = None) -> None:
        """Quita los handlers de un tipo de evento, o todos."""
        if event_type:
            self._handlers.pop(event_type, None)
        else:
            self._handlers.clear()

    @property
    def published_count(self) -> int:
        return self._published
