"""
ChartReplay – Interaction Context
===================================
Estado de interacción compartido por referencia entre handlers:
herramienta activa, imán, estilo de dibujo, selección y ventana de velas.

Solo existe UNA instancia por workspace.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Optional

from chartreplay.application.state.candle_window import CandleWindow
from chartreplay.domain.entities.drawing import DrawingSettings, ToolType


@dataclass
class InteractionContext:
    window: CandleWindow = field(default_factory=CandleWindow)
    active_tool: ToolType = ToolType.CURSOR
    magnet_mode: bool = False
    drawing_settings: DrawingSettings = field(default_factory=DrawingSettings)
    selected_id: Optional[str] = None

    @property
    def symbol(self) -> str:
        return self.window.symbol

    @property
    def interval(self) -> int:
        return self.window.interval
