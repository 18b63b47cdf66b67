"""
ChartReplay – Domain Entity: Trade
====================================
Vista de solo lectura de una orden/trade del simulador externo.

El core nunca modifica un Trade: solo PROPONE cambios de precio
(SL/TP/entrada) mediante eventos de dominio. El dueño del trade decide.

Convención: stop_loss == 0 / take_profit == 0 → no definido.
"""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum


class OrderStatus(str, Enum):
    PENDING = "PENDING"
    OPEN = "OPEN"
    CLOSED = "CLOSED"


class OrderType(str, Enum):
    MARKET = "MARKET"
    LIMIT = "LIMIT"
    STOP = "STOP"


class OrderSide(str, Enum):
    LONG = "LONG"
    SHORT = "SHORT"


@dataclass(frozen=True, slots=True)
class Trade:
    """Trade/orden tal como lo expone el simulador."""

    id: str
    symbol: str
    side: OrderSide
    type: OrderType
    status: OrderStatus
    entry_price: float
    stop_loss: float = 0.0
    take_profit: float = 0.0

    @property
    def is_closed(self) -> bool:
        return self.status == OrderStatus.CLOSED

    @property
    def is_pending(self) -> bool:
        return self.status == OrderStatus.PENDING

    @property
    def has_stop_loss(self) -> bool:
        return self.stop_loss != 0

    @property
    def has_take_profit(self) -> bool:
        return self.take_profit != 0

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "symbol": self.symbol,
            "side": self.side.value,
            "type": self.type.value,
            "status": self.status.value,
            "entry_price": self.entry_price,
            "stop_loss": self.stop_loss,
            "take_profit": self.take_profit,
        }
