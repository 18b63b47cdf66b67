"""
ChartReplay – Application Layer
=================================
Orquestación del replay y de la interacción con el gráfico.

Este módulo contiene:
- ports/: Interfaces hacia infraestructura y adaptadores de charting
- state/: Estado en memoria (ventana de velas, reloj, dibujos)
- services/: Playback, anotaciones, overlay de trades, render
- dto/: Primitivas de dibujo

REGLA DE DEPENDENCIA:
Esta capa puede importar de:
- domain/
- shared/logging

NO puede importar de:
- infrastructure/ (implementaciones concretas)
"""

from chartreplay.application.services.chart_workspace import ChartWorkspace
from chartreplay.application.services.playback_engine import PlaybackEngine, PlaybackStatus

__all__ = [
    "ChartWorkspace",
    "PlaybackEngine",
    "PlaybackStatus",
]
