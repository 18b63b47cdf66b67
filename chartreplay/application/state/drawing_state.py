"""
ChartReplay – Drawing State Manager
=====================================
Espejo en memoria de los dibujos de todos los símbolos.

DISEÑO:
  - Los dibujos se guardan por id en orden de creación (dict).
  - Las consultas filtran por el símbolo activo del InteractionContext.
  - create() aplica los defaults por variante antes de guardar.
  - Los niveles Fibonacci se recuerdan: la última edición de un FIB
    pasa a ser el default de los siguientes.
  - Un único KILLZONE por símbolo (add_auto_kill_zone).

NO persiste nada: la persistencia es externa y escucha los eventos.
"""

from __future__ import annotations

import uuid
from dataclasses import replace
from typing import Dict, List, Optional, Tuple

from chartreplay.application.state.interaction_context import InteractionContext
from chartreplay.domain.entities.drawing import (
    DEFAULT_FIB_LEVELS,
    Drawing,
    FibLevel,
    FibRetracement,
    KillZoneDrawing,
    PositionDrawing,
    TextLabel,
    ToolType,
)
from chartreplay.domain.value_objects.kill_zone import KillZoneConfig
from chartreplay.domain.value_objects.point import Point
from chartreplay.shared.logging.logger import get_logger

logger = get_logger("drawing_state")


def new_drawing_id() -> str:
    return uuid.uuid4().hex[:9]


class DrawingStateManager:
    """
    Estado en memoria de dibujos.

    Invariantes:
      - Máximo 1 KILLZONE por símbolo creado por add_auto_kill_zone.
      - El ghost (GHOST_ID) nunca se guarda.
    """

    def __init__(
        self,
        context: InteractionContext,
        position_width_bars: int = 20,
        fallback_bar_seconds: int = 3600,
    ) -> None:
        self._context = context
        self._position_width_bars = position_width_bars
        self._fallback_bar_seconds = fallback_bar_seconds
        self._drawings: Dict[str, Drawing] = {}
        self._fib_levels: Tuple[FibLevel, ...] = DEFAULT_FIB_LEVELS

    # ════════════════════════════════════════════════════════════════
    #  ESCRITURA
    # ════════════════════════════════════════════════════════════════

    def create(self, drawing: Drawing) -> Drawing:
        """
        Guarda un dibujo nuevo aplicando defaults y lo selecciona.

        Returns: el dibujo tal como quedó guardado.
        """
        if drawing.is_ghost:
            raise ValueError("El ghost de previsualización no se guarda")

        stored = replace(drawing, symbol=self._context.symbol)
        if isinstance(stored, FibRetracement):
            stored = replace(stored, fib_levels=tuple(self._fib_levels))
        elif isinstance(stored, PositionDrawing):
            stored = self.position_defaults(stored)
        elif isinstance(stored, TextLabel):
            stored = replace(stored, text="Text", font_size=14, color="#ffffff")

        self._drawings[stored.id] = stored
        self._context.selected_id = stored.id
        logger.debug("Dibujo creado: %s %s [%s]", stored.kind.value, stored.id, stored.symbol)
        return stored

    def insert(self, drawing: Drawing) -> Drawing:
        """Guarda un dibujo tal cual (clones por drag duplicado) y lo selecciona."""
        if drawing.is_ghost:
            raise ValueError("El ghost de previsualización no se guarda")
        self._drawings[drawing.id] = drawing
        self._context.selected_id = drawing.id
        return drawing

    def update(self, drawing: Drawing) -> Drawing:
        """Reemplaza por id. Un FIB editado fija los nuevos niveles por defecto."""
        if drawing.id not in self._drawings:
            raise KeyError(drawing.id)
        if isinstance(drawing, FibRetracement):
            self._fib_levels = tuple(drawing.fib_levels)
        self._drawings[drawing.id] = drawing
        return drawing

    def delete(self, drawing_id: str) -> Optional[Drawing]:
        removed = self._drawings.pop(drawing_id, None)
        if removed is not None and self._context.selected_id == drawing_id:
            self._context.selected_id = None
        return removed

    def toggle_visible(self, drawing_id: str) -> Drawing:
        current = self._drawings[drawing_id]
        return self.update(replace(current, visible=not current.visible))

    def toggle_lock(self, drawing_id: str) -> Drawing:
        current = self._drawings[drawing_id]
        return self.update(replace(current, locked=not current.locked))

    def select(self, drawing_id: Optional[str]) -> None:
        self._context.selected_id = drawing_id

    def reset(self) -> None:
        self._drawings.clear()
        self._context.selected_id = None
        logger.info("Dibujos reiniciados")

    def add_auto_kill_zone(self, time: float, price: float) -> Tuple[Drawing, bool]:
        """
        Agrega el KILLZONE del símbolo activo, o selecciona el existente.

        Returns: (dibujo, True si se creó)
        """
        existing = self._kill_zone_for(self._context.symbol)
        if existing is not None:
            self._context.selected_id = existing.id
            return existing, False

        anchor = Point(time=time, price=price)
        kill_zone = KillZoneDrawing(
            id=new_drawing_id(),
            symbol=self._context.symbol,
            p1=anchor,
            p2=anchor,
            color="#ffffff",
            line_width=1,
            kill_zone_config=KillZoneConfig(),
        )
        self._drawings[kill_zone.id] = kill_zone
        self._context.selected_id = kill_zone.id
        logger.info("Kill zone agregada para %s", self._context.symbol)
        return kill_zone, True

    # ════════════════════════════════════════════════════════════════
    #  CONSULTAS
    # ════════════════════════════════════════════════════════════════

    def get(self, drawing_id: str) -> Optional[Drawing]:
        return self._drawings.get(drawing_id)

    def __contains__(self, drawing_id: str) -> bool:
        return drawing_id in self._drawings

    @property
    def all_drawings(self) -> List[Drawing]:
        return list(self._drawings.values())

    @property
    def fib_levels(self) -> Tuple[FibLevel, ...]:
        return self._fib_levels

    def current_drawings(self) -> List[Drawing]:
        """Dibujos del símbolo activo."""
        symbol = self._context.symbol
        return [d for d in self._drawings.values() if d.symbol == symbol]

    def has_kill_zone(self) -> bool:
        return self._kill_zone_for(self._context.symbol) is not None

    def active_kill_zone_config(self) -> KillZoneConfig:
        kill_zone = self._kill_zone_for(self._context.symbol)
        if isinstance(kill_zone, KillZoneDrawing):
            return kill_zone.kill_zone_config
        return KillZoneConfig()

    # ─── Internos ───────────────────────────────────────────────────────

    def _kill_zone_for(self, symbol: str) -> Optional[Drawing]:
        for drawing in self._drawings.values():
            if drawing.kind is ToolType.KILLZONE and drawing.symbol == symbol:
                return drawing
        return None

    def position_defaults(self, position: PositionDrawing) -> PositionDrawing:
        """Bracket por defecto si falta; ancho por defecto si p1 y p2 comparten time."""
        entry = position.p1.price
        if not position.target_price or not position.stop_price:
            diff = abs(position.p2.price - entry)
            offset = diff if diff > entry * 0.0001 else entry * 0.01
            sign = 1 if position.is_long else -1
            if not position.target_price:
                position = replace(position, target_price=entry + sign * offset)
            if not position.stop_price:
                position = replace(position, stop_price=entry - sign * offset * 0.5)

        if position.p2.time == position.p1.time:
            bar = self._context.window.bar_spacing(self._fallback_bar_seconds)
            width = bar * self._position_width_bars
            position = replace(position, p2=Point(time=position.p1.time + width, price=position.p2.price))
        return position
