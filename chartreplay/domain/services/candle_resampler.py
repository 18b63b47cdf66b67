"""
ChartReplay – Domain Service: Candle Resampler
================================================
Agrega velas base (M2) en velas de un timeframe superior.

Se usa cuando el dataset no tiene el timeframe pedido pero sí el base:
el provider lee M2 y lo reagrega.

ALINEACIÓN TEMPORAL:
  Las velas agregadas se alinean a múltiplos exactos del intervalo
  (floor(time / interval) * interval). Los huecos no generan velas vacías.
"""

from __future__ import annotations

import math
from dataclasses import dataclass
from typing import Dict, List, Sequence

from chartreplay.domain.entities.candle import Candle


@dataclass
class _Bucket:
    """Vela mutable en construcción."""

    open_time: int
    open: float = 0.0
    high: float = 0.0
    low: float = 0.0
    close: float = 0.0
    volume: float = 0.0
    count: int = 0

    def add(self, candle: Candle) -> None:
        if self.count == 0:
            self.open = candle.open
            self.high = candle.high
            self.low = candle.low
        else:
            self.high = max(self.high, candle.high)
            self.low = min(self.low, candle.low)
        self.close = candle.close
        self.volume += candle.volume
        self.count += 1

    def freeze(self) -> Candle:
        return Candle(
            time=self.open_time,
            open=self.open,
            high=self.high,
            low=self.low,
            close=self.close,
            volume=self.volume,
        )


def align_time(epoch: float, interval: int) -> int:
    """Alinear timestamp al inicio del intervalo."""
    return int(math.floor(epoch / interval) * interval)


def resample_candles(candles: Sequence[Candle], interval: int) -> List[Candle]:
    """
    Reagrega una serie ascendente al intervalo dado.

    Returns:
        Nueva lista ascendente; la original no se modifica.
    """
    if not candles or interval <= 0:
        return list(candles)

    buckets: Dict[int, _Bucket] = {}
    for candle in sorted(candles, key=lambda c: c.time):
        open_time = align_time(candle.time, interval)
        bucket = buckets.get(open_time)
        if bucket is None:
            bucket = _Bucket(open_time=open_time)
            buckets[open_time] = bucket
        bucket.add(candle)

    return [buckets[t].freeze() for t in sorted(buckets)]
