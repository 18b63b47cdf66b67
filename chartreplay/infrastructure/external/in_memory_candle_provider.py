"""
In-Memory Candle Provider.

Implementa ICandleDataProvider sobre series cargadas en memoria.
Se usa en tests y demos; permite simular latencia de red para
ejercitar la cancelación de cargas.
"""

from __future__ import annotations

import asyncio
from typing import Dict, List, Optional, Sequence, Tuple

import numpy as np

from chartreplay.application.cancellation import CancellationToken
from chartreplay.application.ports.candle_data_provider import ICandleDataProvider
from chartreplay.domain.entities.candle import Candle
from chartreplay.domain.value_objects.timeframe import Timeframe
from chartreplay.shared.logging.logger import get_logger

logger = get_logger("in_memory_provider")

SeriesKey = Tuple[str, Timeframe]


class InMemoryCandleProvider(ICandleDataProvider):
    """Provider de velas en memoria con búsqueda binaria sobre los tiempos."""

    def __init__(self, latency: float = 0.0) -> None:
        self._latency = latency
        self._candles: Dict[SeriesKey, List[Candle]] = {}
        self._times: Dict[SeriesKey, np.ndarray] = {}
        self.calls: List[Tuple[str, str, str, float, int]] = []

    def add_series(self, symbol: str, timeframe: Timeframe, candles: Sequence[Candle]) -> None:
        """Registra (o reemplaza) una serie; se ordena y deduplica por time."""
        key = (symbol, Timeframe(timeframe))
        unique = sorted({c.time: c for c in candles}.values(), key=lambda c: c.time)
        self._candles[key] = unique
        self._times[key] = np.array([c.time for c in unique], dtype=np.int64)
        logger.debug("Serie %s %s: %d velas", symbol, key[1].value, len(unique))

    def _series(self, symbol: str, timeframe: Timeframe) -> Tuple[List[Candle], np.ndarray]:
        key = (symbol, Timeframe(timeframe))
        return self._candles.get(key, []), self._times.get(key, np.empty(0, dtype=np.int64))

    async def _simulate_latency(self, cancel: Optional[CancellationToken]) -> None:
        if cancel is not None:
            cancel.raise_if_cancelled()
        if self._latency > 0:
            await asyncio.sleep(self._latency)
        if cancel is not None:
            cancel.raise_if_cancelled()

    def _before(self, symbol: str, timeframe: Timeframe, before_time: float, count: int) -> List[Candle]:
        candles, times = self._series(symbol, timeframe)
        end = int(np.searchsorted(times, before_time, side="left"))
        return candles[max(0, end - count):end]

    # ════════════════════════════════════════════════════════════════
    #  ICandleDataProvider
    # ════════════════════════════════════════════════════════════════

    async def fetch_context_candles(
        self,
        symbol: str,
        timeframe: Timeframe,
        before_time: float,
        count: int,
        cancel: Optional[CancellationToken] = None,
    ) -> List[Candle]:
        self.calls.append(("context", symbol, Timeframe(timeframe).value, before_time, count))
        await self._simulate_latency(cancel)
        return self._before(symbol, timeframe, before_time, count)

    async def fetch_future_candles(
        self,
        symbol: str,
        timeframe: Timeframe,
        after_time: float,
        count: int,
        cancel: Optional[CancellationToken] = None,
    ) -> List[Candle]:
        self.calls.append(("future", symbol, Timeframe(timeframe).value, after_time, count))
        await self._simulate_latency(cancel)
        candles, times = self._series(symbol, timeframe)
        start = int(np.searchsorted(times, after_time, side="right"))
        return candles[start:start + count]

    async def fetch_first_candle(
        self,
        symbol: str,
        timeframe: Timeframe,
        cancel: Optional[CancellationToken] = None,
    ) -> Optional[Candle]:
        self.calls.append(("first", symbol, Timeframe(timeframe).value, 0, 1))
        await self._simulate_latency(cancel)
        candles, _ = self._series(symbol, timeframe)
        return candles[0] if candles else None

    async def fetch_historical_data(
        self,
        symbol: str,
        timeframe: Timeframe,
        before_time: float,
        count: int,
    ) -> List[Candle]:
        self.calls.append(("history", symbol, Timeframe(timeframe).value, before_time, count))
        await self._simulate_latency(None)
        return self._before(symbol, timeframe, before_time, count)
