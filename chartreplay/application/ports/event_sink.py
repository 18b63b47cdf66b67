"""
ChartReplay – Application Port: Event Sink
============================================
Interfaz para emitir Domain Events hacia el exterior.

Los servicios de aplicación publican eventos (DrawingCreated,
TradeModifyRequested, ...) sin saber quién los consume.

A diferencia de un bus asíncrono, la entrega es SÍNCRONA: los gestos
del puntero se procesan de punta a punta en el mismo tick del loop.
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from typing import Callable, List

from chartreplay.domain.events.domain_events import DomainEvent

EventHandler = Callable[[DomainEvent], None]


class IEventSink(ABC):
    """
    Interfaz para publicar eventos de dominio.

    IMPLEMENTACIONES:
    - CallbackEventBus (dispatch síncrono por tipo de evento)
    """

    @abstractmethod
    def publish(self, event: DomainEvent) -> None:
        """
        Publica un evento de dominio.

        Args:
            event: Evento a publicar
        """
        pass

    def publish_all(self, events: List[DomainEvent]) -> None:
        """Publica múltiples eventos en secuencia."""
        for event in events:
            self.publish(event)

    @abstractmethod
    def register_handler(self, event_type: str, handler: EventHandler) -> None:
        """
        Registra un handler para un tipo de evento (nombre de clase).

        Args:
            event_type: Nombre de la clase del evento (e.g. "DrawingCreated")
            handler: Callable que recibe el evento
        """
        pass
