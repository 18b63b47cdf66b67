"""
ChartReplay – Coordinate Mapper
=================================
Traducción píxel ↔ índice lógico ↔ tiempo/precio, tolerante a series
irregulares (fines de semana, cortes de sesión, barras faltantes).

ALGORITMO time → x:
  1. Lookup directo en el eje del panel.
  2. Búsqueda binaria (numpy.searchsorted) de la vela at-or-before.
  3. Antes de la primera / después de la última → proyección lineal
     por duración de barra.
  4. Entre dos velas:
       hueco <= gap_ratio × barra → interpolación proporcional
       hueco >  gap_ratio × barra → diff / barra (hueco = barras vacías)

Solo se consideran las velas ya reveladas por el replay: más allá de la
última se extrapola, sin exponer los tiempos del buffer futuro.

La API pública retorna None cuando no hay resolución. Las variantes
require_* lanzan CoordinateUnresolvableError (uso interno del renderer).
"""

from __future__ import annotations

import math
from typing import Optional

import numpy as np

from chartreplay.application.ports.chart_pane import PaneContext
from chartreplay.application.state.candle_window import CandleWindow
from chartreplay.domain.exceptions.domain_errors import CoordinateUnresolvableError
from chartreplay.domain.value_objects.point import Point


def round_half_up(value: float) -> int:
    return math.floor(value + 0.5)


class CoordinateMapper:
    """Conversión de coordenadas sobre la ventana de velas activa."""

    def __init__(self, window: CandleWindow, gap_ratio: float = 1.5) -> None:
        self._window = window
        self._gap_ratio = gap_ratio

    @property
    def interval(self) -> int:
        return self._window.interval

    # ════════════════════════════════════════════════════════════════
    #  Eje horizontal
    # ════════════════════════════════════════════════════════════════

    def pixel_to_logical(self, ctx: Optional[PaneContext], x: float) -> Optional[float]:
        if ctx is None:
            return None
        return ctx.time_scale.coordinate_to_logical(x)

    def logical_to_time(self, logical: Optional[float]) -> Optional[float]:
        """
        Índice lógico → tiempo.

        Dentro de [0, len-1] retorna el time de la vela; fuera extrapola
        desde el borde más cercano a razón de una barra por índice.
        """
        times = self._window.revealed_times
        if logical is None or times.size == 0:
            return None
        index = round_half_up(logical)
        last = times.size - 1
        if 0 <= index <= last:
            return int(times[index])
        if index < 0:
            return int(times[0]) + index * self.interval
        return int(times[last]) + (index - last) * self.interval

    def time_to_logical(self, time: float) -> Optional[float]:
        """Tiempo → índice lógico (fraccionario) según la regla de huecos."""
        times = self._window.revealed_times
        if times.size == 0:
            return None
        interval = self.interval
        left = int(np.searchsorted(times, time, side="right")) - 1

        if left >= 0 and times[left] == time:
            return float(left)
        if left == -1:
            return (time - float(times[0])) / interval
        if left == times.size - 1:
            return left + (time - float(times[left])) / interval

        gap = float(times[left + 1] - times[left])
        diff = time - float(times[left])
        if gap > interval * self._gap_ratio:
            return left + diff / interval
        return left + diff / gap

    def time_to_pixel(self, ctx: Optional[PaneContext], time: float) -> Optional[float]:
        if ctx is None:
            return None
        direct = ctx.time_scale.time_to_coordinate(time)
        if direct is not None:
            return direct
        logical = self.time_to_logical(time)
        if logical is None:
            return None
        return ctx.time_scale.logical_to_coordinate(logical)

    # ════════════════════════════════════════════════════════════════
    #  Eje vertical
    # ════════════════════════════════════════════════════════════════

    def price_to_pixel(self, ctx: Optional[PaneContext], price: Optional[float]) -> Optional[float]:
        if ctx is None or price is None or math.isnan(price):
            return None
        return ctx.series.price_to_coordinate(price)

    def pixel_to_price(self, ctx: Optional[PaneContext], y: float) -> Optional[float]:
        if ctx is None:
            return None
        price = ctx.series.coordinate_to_price(y)
        if price is None or math.isnan(price):
            return None
        return price

    # ════════════════════════════════════════════════════════════════
    #  Compuestos
    # ════════════════════════════════════════════════════════════════

    def pixel_to_point(self, ctx: Optional[PaneContext], x: float, y: float) -> Optional[Point]:
        """Píxel → Point crudo (sin imán ni restricciones)."""
        time = self.logical_to_time(self.pixel_to_logical(ctx, x))
        price = self.pixel_to_price(ctx, y)
        if time is None or price is None:
            return None
        return Point(time=time, price=price)

    def require_x(self, ctx: Optional[PaneContext], time: float) -> float:
        x = self.time_to_pixel(ctx, time)
        if x is None:
            raise CoordinateUnresolvableError(f"Sin coordenada x para t={time}")
        return x

    def require_y(self, ctx: Optional[PaneContext], price: Optional[float]) -> float:
        y = self.price_to_pixel(ctx, price)
        if y is None:
            raise CoordinateUnresolvableError(f"Sin coordenada y para precio={price}")
        return y
