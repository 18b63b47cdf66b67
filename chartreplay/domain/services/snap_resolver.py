"""
ChartReplay – Domain Service: Snap Resolver
=============================================
Ajustes del precio/tiempo bajo el puntero mientras se dibuja.

- Magnet: el precio salta al OHLC más cercano de la vela en ese instante.
  Solo en el panel MAIN y solo con el modo imán activo.
- Restricción angular (tecla de bloqueo, solo TRENDLINE): si el movimiento
  en píxeles es más horizontal que vertical se fija el precio del ancla,
  en caso contrario se fija su tiempo.
"""

from __future__ import annotations

from typing import Optional, Tuple

from chartreplay.domain.entities.candle import Candle
from chartreplay.domain.value_objects.pane import Pane
from chartreplay.domain.value_objects.point import Point


def nearest_ohlc(candle: Candle, raw_price: float) -> float:
    """OHLC más cercano. Empates: high, low, close, open (en ese orden)."""
    candidates = (candle.high, candle.low, candle.close, candle.open)
    return min(candidates, key=lambda p: abs(p - raw_price))


def snap_price(
    candle: Optional[Candle],
    raw_price: float,
    pane: Pane,
    magnet: bool,
) -> float:
    """
    Aplica el imán al precio crudo.

    Args:
        candle: Vela cuyo time coincide exactamente con el del puntero (o None)
        raw_price: Precio convertido directamente desde el píxel
        pane: Panel donde ocurre el gesto
        magnet: Estado del modo imán
    """
    if not magnet or pane != Pane.MAIN or candle is None:
        return raw_price
    return nearest_ohlc(candle, raw_price)


def constrain_angle(
    anchor: Point,
    current: Point,
    anchor_px: Tuple[float, float],
    current_px: Tuple[float, float],
) -> Point:
    """Bloquea la línea a horizontal o vertical respecto del ancla."""
    dx = abs(current_px[0] - anchor_px[0])
    dy = abs(current_px[1] - anchor_px[1])
    if dx > dy:
        return Point(time=current.time, price=anchor.price)
    return Point(time=anchor.time, price=current.price)
