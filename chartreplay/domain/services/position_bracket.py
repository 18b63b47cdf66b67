"""
ChartReplay – Domain Service: Position Bracket
================================================
Calcula target/stop de la herramienta de posición a partir de la
entrada (E) y del precio actual del puntero (C).

REGLA (d = |C − E|):
- d < min_distance_pct × E → bracket por defecto 1:2 con riesgo
  default_risk_pct × E.
- LONG:  C > E → target = C, stop = E − d/2
         C ≤ E → stop = C,   target = E + 2d
- SHORT: C < E → target = C, stop = E + d/2
         C ≥ E → stop = C,   target = E − 2d

NOTA: la relación es asimétrica (1:0.5 arrastrando hacia el target,
1:2 arrastrando hacia el stop). Se conserva tal cual.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Tuple


@dataclass
class BracketConfig:
    """Umbrales del bracket de la herramienta de posición."""

    min_distance_pct: float = 0.0005  # 0.05 % del entry
    default_risk_pct: float = 0.002   # 0.2 % del entry


def compute_bracket(
    is_long: bool,
    entry: float,
    current: float,
    config: BracketConfig | None = None,
) -> Tuple[float, float]:
    """
    Retorna (target, stop) para una posición.

    Args:
        is_long: True para LONG_POSITION, False para SHORT_POSITION
        entry: Precio de entrada (p1)
        current: Precio bajo el puntero
    """
    cfg = config or BracketConfig()
    distance = abs(current - entry)

    if distance < entry * cfg.min_distance_pct:
        risk = entry * cfg.default_risk_pct
        if is_long:
            return entry + 2 * risk, entry - risk
        return entry - 2 * risk, entry + risk

    if is_long:
        if current > entry:
            return current, entry - distance / 2
        return entry + 2 * distance, current

    if current < entry:
        return current, entry + distance / 2
    return entry - 2 * distance, current
