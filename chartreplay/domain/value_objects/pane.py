"""
ChartReplay – Domain Value Object: Pane
=========================================
Identidad de los paneles del gráfico.

Conjunto cerrado: el panel principal de precio y uno por cada
indicador con sub-gráfico propio (la EMA se dibuja sobre MAIN).
Toda operación de coordenadas o dibujo pertenece a exactamente UN panel.
"""

from __future__ import annotations

from enum import Enum


class Pane(str, Enum):
    """Clave de panel."""
    MAIN = "MAIN"
    RSI = "RSI"
    MACD = "MACD"
