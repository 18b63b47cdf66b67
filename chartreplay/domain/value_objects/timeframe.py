"""
ChartReplay – Domain Value Object: Timeframe
==============================================
Timeframes soportados por el replay y su duración de barra.

El M1 no se ofrece: el dataset más fino disponible es M2.
"""

from __future__ import annotations

from enum import Enum
from typing import Dict


class Timeframe(str, Enum):
    """Timeframe de velas."""
    M2 = "M2"
    M5 = "M5"
    M15 = "M15"
    M30 = "M30"
    H1 = "H1"
    H2 = "H2"
    H4 = "H4"
    D1 = "D1"

    @property
    def seconds(self) -> int:
        return TIMEFRAME_SECONDS[self]


# Mapeo de timeframe a segundos por barra
TIMEFRAME_SECONDS: Dict[Timeframe, int] = {
    Timeframe.M2: 120,
    Timeframe.M5: 300,
    Timeframe.M15: 900,
    Timeframe.M30: 1800,
    Timeframe.H1: 3600,
    Timeframe.H2: 7200,
    Timeframe.H4: 14400,
    Timeframe.D1: 86400,
}
