"""
ChartReplay – Domain Value Object: Point
==========================================
Unidad atómica a la que se ancla todo dibujo: (tiempo, precio).

- frozen=True → inmutable, los drags producen Points nuevos.
- slots=True  → menor footprint; se crean en cada movimiento del puntero.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Callable, Optional


@dataclass(frozen=True, slots=True)
class Point:
    """Coordenada de dominio: epoch en segundos + precio."""

    time: float
    price: float

    def shifted(
        self,
        time_delta: float,
        price_delta: float,
        rounding: Optional[Callable[[float], float]] = None,
    ) -> "Point":
        """Point desplazado por (Δtiempo, Δprecio)."""
        price = self.price + price_delta
        if rounding is not None:
            price = rounding(price)
        return Point(time=self.time + time_delta, price=price)

    def to_dict(self) -> dict:
        return {"time": self.time, "price": self.price}
