"""
ChartReplay – Domain Entity: Candle
=====================================
Vela OHLC inmutable de la serie histórica que se reproduce.

Decisiones de diseño:
- frozen=True → una vela cerrada no cambia nunca.
  La única vela que "cambia" es la que está en formación durante el replay,
  y se representa creando una NUEVA instancia (with_live_price).
- synthetic=True marca las velas de relleno del warm-up (copias de la
  primera vela real).
"""

from __future__ import annotations

from dataclasses import dataclass, replace


@dataclass(frozen=True, slots=True)
class Candle:
    """Vela OHLC con timestamp de apertura (epoch seconds)."""

    time: int
    open: float
    high: float
    low: float
    close: float
    volume: float = 0.0
    synthetic: bool = False

    def end_time(self, interval: int) -> int:
        """Instante de cierre de la vela para un timeframe dado."""
        return self.time + interval

    def with_live_price(self, price: float | None) -> "Candle":
        """
        Vela en formación: conserva el open y cierra en el último precio
        conocido (o en el open si no hay ninguno).
        """
        close = price if price is not None else self.open
        return replace(
            self,
            close=close,
            high=max(self.open, close),
            low=min(self.open, close),
        )

    def as_synthetic(self, time: int) -> "Candle":
        """Copia del OHLC en otro instante, usada como relleno de warm-up."""
        return replace(self, time=time, synthetic=True)

    def to_dict(self) -> dict:
        return {
            "time": self.time,
            "open": self.open,
            "high": self.high,
            "low": self.low,
            "close": self.close,
            "volume": self.volume,
            "synthetic": self.synthetic,
        }
