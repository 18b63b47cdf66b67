"""
ChartReplay – Candle Window
=============================
Ventana deslizante de velas del replay: warm-up + visibles.

DISEÑO:
  - warmup: velas anteriores al inicio de sesión (solo para indicadores).
    Puede contener velas sintéticas de relleno.
  - candles: velas visibles, estrictamente crecientes en time.
  - Se mantiene un array numpy de tiempos para búsquedas binarias O(log n)
    (coordenadas, snap, localización del índice actual).
  - revealed: velas ya reveladas por el replay (hasta el índice actual
    inclusive). Coordenadas, imán y kill zones solo leen esa porción; el
    resto es buffer de look-ahead. Sin marcar = todo revelado.

THREADING:
  Todo corre en un solo event-loop asyncio. No se necesitan locks.
"""

from __future__ import annotations

from typing import Iterable, List, Optional

import numpy as np

from chartreplay.domain.entities.candle import Candle
from chartreplay.domain.value_objects.timeframe import Timeframe


class CandleWindow:
    """Velas visibles + warm-up de un (símbolo, timeframe)."""

    def __init__(
        self,
        symbol: str = "",
        timeframe: Optional[Timeframe] = Timeframe.H1,
        default_interval: int = 60,
    ) -> None:
        self.symbol = symbol
        self.timeframe = timeframe
        self._default_interval = default_interval
        self._candles: List[Candle] = []
        self._warmup: List[Candle] = []
        self._times = np.empty(0, dtype=np.int64)
        self._revealed: Optional[int] = None

    # ════════════════════════════════════════════════════════════════
    #  ESCRITURA
    # ════════════════════════════════════════════════════════════════

    def reset(self, symbol: str | None = None, timeframe: Timeframe | None = None) -> None:
        if symbol is not None:
            self.symbol = symbol
        if timeframe is not None:
            self.timeframe = timeframe
        self.replace([], [])

    def replace(self, candles: Iterable[Candle], warmup: Iterable[Candle]) -> None:
        self._candles = list(candles)
        self._warmup = list(warmup)
        self._revealed = None
        self._reindex()

    def set_candle(self, index: int, candle: Candle) -> None:
        """Reemplaza una vela sin cambiar su time (vela en formación)."""
        if candle.time != self._candles[index].time:
            raise ValueError("set_candle no puede cambiar el time de la vela")
        self._candles[index] = candle

    def append_newer(self, candles: Iterable[Candle]) -> int:
        """
        Agrega al final solo las velas estrictamente más nuevas que la última.

        Returns:
            Cantidad de velas agregadas.
        """
        incoming = list(candles)
        if not self._candles:
            fresh = sorted({c.time: c for c in incoming}.values(), key=lambda c: c.time)
        else:
            last_time = self._candles[-1].time
            fresh = []
            for c in incoming:
                if c.time > last_time:
                    fresh.append(c)
                    last_time = c.time
        if fresh:
            self._candles.extend(fresh)
            self._reindex()
        return len(fresh)

    def reveal_through(self, index: int) -> None:
        """Marca como reveladas las velas hasta `index` inclusive."""
        self._revealed = max(0, index + 1)

    def _reindex(self) -> None:
        self._times = np.fromiter((c.time for c in self._candles), dtype=np.int64, count=len(self._candles))

    # ════════════════════════════════════════════════════════════════
    #  CONSULTAS
    # ════════════════════════════════════════════════════════════════

    @property
    def candles(self) -> List[Candle]:
        return self._candles

    @property
    def revealed_count(self) -> int:
        if self._revealed is None:
            return len(self._candles)
        return min(self._revealed, len(self._candles))

    @property
    def revealed_candles(self) -> List[Candle]:
        return self._candles[: self.revealed_count]

    @property
    def revealed_times(self) -> np.ndarray:
        return self._times[: self.revealed_count]

    @property
    def warmup(self) -> List[Candle]:
        return self._warmup

    @property
    def times(self) -> np.ndarray:
        return self._times

    @property
    def interval(self) -> int:
        """Segundos por barra del timeframe activo (default si no hay timeframe)."""
        if self.timeframe is None:
            return self._default_interval
        return Timeframe(self.timeframe).seconds

    def __len__(self) -> int:
        return len(self._candles)

    def is_empty(self) -> bool:
        return not self._candles

    def bar_spacing(self, fallback: int = 3600) -> int:
        """Distancia entre las dos primeras velas (o fallback)."""
        if len(self._candles) > 1:
            return self._candles[1].time - self._candles[0].time
        return fallback

    def index_at_or_before(self, time: float) -> int:
        """Índice de la última vela con time <= t, o -1 si no hay."""
        return int(np.searchsorted(self._times, time, side="right")) - 1

    def candle_at(self, time: float) -> Optional[Candle]:
        """Vela revelada cuyo time coincide exactamente, o None."""
        idx = self.index_at_or_before(time)
        if 0 <= idx < self.revealed_count and self._candles[idx].time == time:
            return self._candles[idx]
        return None

    def oldest_real_time(self) -> Optional[int]:
        """Time de la vela real (no sintética) más antigua en warm-up + visibles."""
        for candle in self._warmup:
            if not candle.synthetic:
                return candle.time
        if self._candles:
            return self._candles[0].time
        return None

    def full_series(self) -> List[Candle]:
        """warm-up + visibles, estrictamente creciente (para indicadores)."""
        series: List[Candle] = []
        for candle in self._warmup + self._candles:
            if not series or candle.time > series[-1].time:
                series.append(candle)
        return series

    def to_dict(self) -> dict:
        return {
            "symbol": self.symbol,
            "timeframe": Timeframe(self.timeframe).value if self.timeframe else None,
            "candles": len(self._candles),
            "warmup": len(self._warmup),
            "revealed": self.revealed_count,
            "first_time": self._candles[0].time if self._candles else None,
            "last_time": self._candles[-1].time if self._candles else None,
        }
