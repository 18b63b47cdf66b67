"""
ChartReplay – Domain Events
=============================
Eventos que el core expone hacia afuera.

Los dibujos y las ediciones de trades salen del core SOLO por aquí:
el core no persiste nada ni modifica trades directamente.
Son inmutables y llevan timestamp.
"""

from __future__ import annotations

import time
import uuid
from dataclasses import dataclass, field
from typing import Any, Dict, Optional

from chartreplay.domain.entities.drawing import Drawing


@dataclass(frozen=True)
class DomainEvent:
    """Evento base de dominio."""

    event_id: str = field(default_factory=lambda: uuid.uuid4().hex[:12])
    timestamp: float = field(default_factory=time.time)

    @property
    def event_type(self) -> str:
        return self.__class__.__name__

    def to_dict(self) -> Dict[str, Any]:
        return {
            "event_id": self.event_id,
            "event_type": self.event_type,
            "timestamp": self.timestamp,
        }


# ════════════════════════════════════════════════════════════════════
#  Dibujos
# ════════════════════════════════════════════════════════════════════

@dataclass(frozen=True)
class DrawingCreated(DomainEvent):
    """Evento: se confirmó un dibujo nuevo (o un clon por drag duplicado)."""

    drawing: Optional[Drawing] = None

    def to_dict(self) -> Dict[str, Any]:
        base = super().to_dict()
        base["drawing"] = self.drawing.to_dict() if self.drawing else None
        return base


@dataclass(frozen=True)
class DrawingUpdated(DomainEvent):
    """Evento: un drag terminó y cambió la geometría del dibujo."""

    drawing: Optional[Drawing] = None

    def to_dict(self) -> Dict[str, Any]:
        base = super().to_dict()
        base["drawing"] = self.drawing.to_dict() if self.drawing else None
        return base


@dataclass(frozen=True)
class DrawingEditRequested(DomainEvent):
    """Evento: doble click sobre un dibujo, se pide edición externa."""

    drawing: Optional[Drawing] = None

    def to_dict(self) -> Dict[str, Any]:
        base = super().to_dict()
        base["drawing"] = self.drawing.to_dict() if self.drawing else None
        return base


@dataclass(frozen=True)
class DrawingSelected(DomainEvent):
    """Evento: cambió la selección (None = sin selección)."""

    drawing_id: Optional[str] = None

    def to_dict(self) -> Dict[str, Any]:
        base = super().to_dict()
        base["drawing_id"] = self.drawing_id
        return base


@dataclass(frozen=True)
class DrawingDeleted(DomainEvent):
    """Evento: se borró un dibujo."""

    drawing_id: str = ""

    def to_dict(self) -> Dict[str, Any]:
        base = super().to_dict()
        base["drawing_id"] = self.drawing_id
        return base


# ════════════════════════════════════════════════════════════════════
#  Trades
# ════════════════════════════════════════════════════════════════════

@dataclass(frozen=True)
class TradeModifyRequested(DomainEvent):
    """Evento: propuesta de nuevos SL/TP para un trade."""

    trade_id: str = ""
    stop_loss: float = 0.0
    take_profit: float = 0.0

    def to_dict(self) -> Dict[str, Any]:
        base = super().to_dict()
        base.update({
            "trade_id": self.trade_id,
            "stop_loss": self.stop_loss,
            "take_profit": self.take_profit,
        })
        return base


@dataclass(frozen=True)
class OrderEntryModifyRequested(DomainEvent):
    """Evento: propuesta de nuevo precio de entrada de una orden pendiente."""

    trade_id: str = ""
    entry_price: float = 0.0

    def to_dict(self) -> Dict[str, Any]:
        base = super().to_dict()
        base.update({"trade_id": self.trade_id, "entry_price": self.entry_price})
        return base


@dataclass(frozen=True)
class TradeDragProgress(DomainEvent):
    """Evento: precio provisional mientras se arrastra una línea (no confirma nada)."""

    trade_id: str = ""
    line: str = ""  # SL | TP | ENTRY
    price: float = 0.0

    def to_dict(self) -> Dict[str, Any]:
        base = super().to_dict()
        base.update({"trade_id": self.trade_id, "line": self.line, "price": self.price})
        return base


@dataclass(frozen=True)
class TradeDragEnded(DomainEvent):
    """Evento: terminó el drag de una línea de trade."""

    trade_id: str = ""

    def to_dict(self) -> Dict[str, Any]:
        base = super().to_dict()
        base["trade_id"] = self.trade_id
        return base


# ════════════════════════════════════════════════════════════════════
#  Playback / paneles
# ════════════════════════════════════════════════════════════════════

@dataclass(frozen=True)
class HistoryLoadRequested(DomainEvent):
    """Evento: el usuario pidió cargar más historia."""

    symbol: str = ""
    timeframe: str = ""

    def to_dict(self) -> Dict[str, Any]:
        base = super().to_dict()
        base.update({"symbol": self.symbol, "timeframe": self.timeframe})
        return base


@dataclass(frozen=True)
class IndicatorRemoveRequested(DomainEvent):
    """Evento: se pidió quitar un indicador (y su panel)."""

    indicator_id: str = ""
    pane: str = ""

    def to_dict(self) -> Dict[str, Any]:
        base = super().to_dict()
        base.update({"indicator_id": self.indicator_id, "pane": self.pane})
        return base


@dataclass(frozen=True)
class PlaybackStatusChanged(DomainEvent):
    """Evento: transición de estado del motor de replay."""

    status: str = ""
    previous: str = ""
    current_index: int = 0
    max_index: int = 0

    def to_dict(self) -> Dict[str, Any]:
        base = super().to_dict()
        base.update({
            "status": self.status,
            "previous": self.previous,
            "current_index": self.current_index,
            "max_index": self.max_index,
        })
        return base


@dataclass(frozen=True)
class DataUnavailable(DomainEvent):
    """Evento: no hay datos para cargar el replay."""

    symbol: str = ""
    timeframe: str = ""
    message: str = ""

    def to_dict(self) -> Dict[str, Any]:
        base = super().to_dict()
        base.update({
            "symbol": self.symbol,
            "timeframe": self.timeframe,
            "message": self.message,
        })
        return base
