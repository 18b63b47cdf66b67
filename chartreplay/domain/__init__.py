"""
ChartReplay – Domain Layer
============================
Núcleo puro del replay. CERO dependencias externas.

Este módulo contiene:
- entities/: Entidades (Candle, Drawing y variantes, Trade)
- value_objects/: Objetos inmutables (Point, Timeframe, Pane, KillZoneConfig)
- services/: Servicios puros (bracket, snap, sesiones, precisión)
- events/: Eventos de dominio
- exceptions/: Excepciones de dominio

REGLA DE DEPENDENCIA:
Este módulo NO puede importar de:
- application/
- infrastructure/
- shared/ (settings)
- Librerías externas (numpy, pandas, pydantic)
"""

from chartreplay.domain.entities.candle import Candle
from chartreplay.domain.entities.drawing import Drawing, ToolType
from chartreplay.domain.entities.trade import Trade
from chartreplay.domain.value_objects.pane import Pane
from chartreplay.domain.value_objects.point import Point
from chartreplay.domain.value_objects.timeframe import Timeframe

__all__ = [
    "Candle",
    "Drawing",
    "ToolType",
    "Trade",
    "Pane",
    "Point",
    "Timeframe",
]
