"""
ChartReplay – Annotation Engine
=================================
Máquina de estados de las herramientas de dibujo y ciclo de vida del drag.

ESTADOS (por panel):
    IDLE ──click──▶ ANCHORED ──click──▶ IDLE (+ DrawingCreated)

  - Herramientas de dos puntos: TRENDLINE, RECTANGLE, FIB, LONG/SHORT_POSITION
    (las de posición solo en MAIN).
  - TEXT se crea con un único click.
  - KILLZONE no se coloca con click (ver DrawingStateManager.add_auto_kill_zone).
  - CURSOR: el click limpia selección y ancla.
  - Mientras hay ancla, cada movimiento recalcula un ghost (GHOST_ID) con las
    mismas reglas de geometría que el objeto confirmado. El ghost no emite eventos.
  - Tras cualquier creación la herramienta vuelve a CURSOR.

DRAG:
  start_drag captura la geometría previa y el punto de dominio bajo el puntero.
    all    → suma (Δtime, Δprice) a toda la geometría (incl. target/stop)
    p1/p2  → reemplaza el punto (con imán)
    target/stop → reemplaza el precio
    entry  → mueve el precio de p1 y p2 juntos
  pointer_up confirma con DrawingUpdated solo si hubo movimiento.
  Si el dibujo desaparece durante el drag, el drag se aborta en silencio.
"""

from __future__ import annotations

from dataclasses import dataclass, replace
from enum import Enum
from typing import List, Optional

from chartreplay.application.ports.event_sink import IEventSink
from chartreplay.application.services.coordinate_mapper import CoordinateMapper
from chartreplay.application.services.pane_registry import PaneRegistry
from chartreplay.application.state.drawing_state import DrawingStateManager, new_drawing_id
from chartreplay.application.state.interaction_context import InteractionContext
from chartreplay.domain.entities.drawing import (
    GHOST_ID,
    Drawing,
    PositionDrawing,
    TextLabel,
    ToolType,
    drawing_class_for,
)
from chartreplay.domain.events.domain_events import (
    DrawingCreated,
    DrawingDeleted,
    DrawingEditRequested,
    DrawingSelected,
    DrawingUpdated,
)
from chartreplay.domain.exceptions.domain_errors import MalformedDragError
from chartreplay.domain.services.position_bracket import BracketConfig, compute_bracket
from chartreplay.domain.services.price_precision import round_price
from chartreplay.domain.services.snap_resolver import constrain_angle, snap_price
from chartreplay.domain.value_objects.pane import Pane
from chartreplay.domain.value_objects.point import Point
from chartreplay.shared.logging.logger import get_logger

logger = get_logger("annotation_engine")


class AnnotationState(str, Enum):
    IDLE = "IDLE"
    ANCHORED = "ANCHORED"


class DragControl(str, Enum):
    P1 = "p1"
    P2 = "p2"
    ALL = "all"
    TARGET = "target"
    STOP = "stop"
    ENTRY = "entry"


@dataclass(frozen=True)
class Modifiers:
    """Teclas modificadoras del gesto."""

    lock_angle: bool = False   # shift
    duplicate: bool = False    # ctrl / meta


@dataclass
class _Anchor:
    pane: Pane
    point: Point


@dataclass
class _DragSession:
    drawing_id: str
    control: DragControl
    pane: Pane
    origin: Drawing
    initial_mouse: Point
    current: Drawing
    moved: bool = False


class AnnotationEngine:
    """
    Motor de anotaciones.

    Todas las decisiones dependen del InteractionContext compartido
    (herramienta, imán, estilo, selección, ventana de velas).
    """

    def __init__(
        self,
        context: InteractionContext,
        registry: PaneRegistry,
        mapper: CoordinateMapper,
        drawing_state: DrawingStateManager,
        sink: IEventSink,
        bracket_config: BracketConfig | None = None,
    ) -> None:
        self._context = context
        self._registry = registry
        self._mapper = mapper
        self._drawings = drawing_state
        self._sink = sink
        self._bracket = bracket_config or BracketConfig()

        self._anchor: Optional[_Anchor] = None
        self._hover: Optional[_Anchor] = None
        self._drag: Optional[_DragSession] = None

    # ════════════════════════════════════════════════════════════════
    #  Estado
    # ════════════════════════════════════════════════════════════════

    def state(self, pane: Pane) -> AnnotationState:
        if self._anchor is not None and self._anchor.pane == pane:
            return AnnotationState.ANCHORED
        return AnnotationState.IDLE

    @property
    def anchor(self) -> Optional[Point]:
        return self._anchor.point if self._anchor else None

    @property
    def is_dragging(self) -> bool:
        return self._drag is not None

    def set_tool(self, tool: ToolType) -> None:
        self._context.active_tool = ToolType(tool)
        self.cancel()

    def cancel(self) -> None:
        """Descarta ancla y ghost."""
        self._anchor = None
        self._hover = None

    # ════════════════════════════════════════════════════════════════
    #  Gestos
    # ════════════════════════════════════════════════════════════════

    def pointer_move(
        self,
        pane: Pane,
        x: float,
        y: float,
        modifiers: Modifiers | None = None,
    ) -> None:
        pane = Pane(pane)
        mods = modifiers or Modifiers()

        point = self.resolve_pointer(pane, x, y, lock_angle=mods.lock_angle)
        if point is not None:
            self._hover = _Anchor(pane=pane, point=point)

        if self._drag is not None and self._drag.pane == pane:
            try:
                self._update_drag(x, y)
            except MalformedDragError as exc:
                logger.debug("Drag abortado: %s", exc.message)
                self._drag = None

    def click(
        self,
        pane: Pane,
        x: float,
        y: float,
        modifiers: Modifiers | None = None,
    ) -> Optional[Drawing]:
        """
        Click sobre el área vacía del panel.

        Returns: el dibujo creado, si el click completó uno.
        """
        pane = Pane(pane)
        tool = self._context.active_tool
        mods = modifiers or Modifiers()

        if tool is ToolType.CURSOR:
            self.cancel()
            self._select(None)
            return None

        point = self.resolve_pointer(pane, x, y, lock_angle=mods.lock_angle)
        if point is None:
            return None

        if tool is ToolType.TEXT:
            text = TextLabel(
                id=new_drawing_id(),
                symbol=self._context.symbol,
                pane=pane,
                p1=point,
                p2=point,
                color="#ffffff",
                line_width=1,
            )
            return self._commit_new(text)

        if not tool.is_two_point:
            return None
        if tool.is_position and pane != Pane.MAIN:
            return None

        if self._anchor is None or self._anchor.pane != pane:
            self._anchor = _Anchor(pane=pane, point=point)
            self._hover = None
            return None

        drawing = self._build(tool, self._anchor.point, point, pane, new_drawing_id())
        return self._commit_new(drawing)

    def start_drag(
        self,
        drawing_id: str,
        control: DragControl,
        x: float,
        y: float,
        modifiers: Modifiers | None = None,
    ) -> bool:
        """
        Inicia el drag de un dibujo existente.

        Returns: True si el drag quedó activo.
        """
        mods = modifiers or Modifiers()
        drawing = self._drawings.get(drawing_id)
        if drawing is None or drawing.is_ghost:
            return False
        if drawing.locked:
            self._select(drawing.id)
            return False

        ctx = self._registry.get(drawing.pane)
        point = self._mapper.pixel_to_point(ctx, x, y)
        if point is None:
            return False

        target = drawing
        if mods.duplicate:
            target = replace(drawing, id=new_drawing_id())
            self._drawings.insert(target)
            self._sink.publish(DrawingCreated(drawing=target))

        self._drag = _DragSession(
            drawing_id=target.id,
            control=DragControl(control),
            pane=drawing.pane,
            origin=target,
            initial_mouse=point,
            current=target,
        )
        self._select(target.id)
        return True

    def pointer_up(self) -> Optional[Drawing]:
        """Confirma el drag activo. Returns: el dibujo actualizado, si cambió."""
        session = self._drag
        self._drag = None
        if session is None:
            return None
        if self._drawings.get(session.drawing_id) is None:
            logger.debug("Drag abortado: %s ya no existe", session.drawing_id)
            return None
        if not session.moved:
            return None

        updated = self._drawings.update(session.current)
        self._sink.publish(DrawingUpdated(drawing=updated))
        return updated

    def delete_selected(self) -> bool:
        drawing_id = self._context.selected_id
        if drawing_id is None or self._drawings.get(drawing_id) is None:
            return False
        self._drawings.delete(drawing_id)
        self._sink.publish(DrawingDeleted(drawing_id=drawing_id))
        self._select(None)
        return True

    def request_edit(self, drawing_id: str) -> bool:
        """Doble click: pide edición externa (nunca para el ghost)."""
        if drawing_id == GHOST_ID:
            return False
        drawing = self._drawings.get(drawing_id)
        if drawing is None:
            return False
        self._sink.publish(DrawingEditRequested(drawing=drawing))
        return True

    def handle_key(self, key: str) -> bool:
        if key in ("Delete", "Backspace"):
            return self.delete_selected()
        if key == "Escape":
            self.cancel()
            return True
        return False

    # ════════════════════════════════════════════════════════════════
    #  Render
    # ════════════════════════════════════════════════════════════════

    def ghost(self) -> Optional[Drawing]:
        tool = self._context.active_tool
        if self._anchor is None or self._hover is None or not tool.is_two_point:
            return None
        if self._hover.pane != self._anchor.pane:
            return None
        ghost = self._build(tool, self._anchor.point, self._hover.point, self._anchor.pane, GHOST_ID)
        if isinstance(ghost, PositionDrawing):
            ghost = self._drawings.position_defaults(ghost)
        return ghost

    def render_list(self) -> List[Drawing]:
        """Dibujos del símbolo activo, con el objeto arrastrado y el ghost."""
        drawings = self._drawings.current_drawings()
        if self._drag is not None:
            current = self._drag.current
            drawings = [current if d.id == current.id else d for d in drawings]
            if all(d.id != current.id for d in drawings):
                drawings.append(current)
        ghost = self.ghost()
        if ghost is not None:
            drawings.append(ghost)
        return drawings

    # ════════════════════════════════════════════════════════════════
    #  Internos
    # ════════════════════════════════════════════════════════════════

    def resolve_pointer(
        self,
        pane: Pane,
        x: float,
        y: float,
        lock_angle: bool = False,
    ) -> Optional[Point]:
        """Píxel → Point con imán y restricción angular aplicados."""
        ctx = self._registry.get(pane)
        raw = self._mapper.pixel_to_point(ctx, x, y)
        if raw is None:
            return None

        candle = self._context.window.candle_at(raw.time)
        point = Point(
            time=raw.time,
            price=snap_price(candle, raw.price, pane, self._context.magnet_mode),
        )

        anchor = self._anchor
        if (
            lock_angle
            and anchor is not None
            and anchor.pane == pane
            and self._context.active_tool is ToolType.TRENDLINE
        ):
            anchor_x = self._mapper.time_to_pixel(ctx, anchor.point.time)
            anchor_y = self._mapper.price_to_pixel(ctx, anchor.point.price)
            if anchor_x is not None and anchor_y is not None:
                point = constrain_angle(anchor.point, point, (anchor_x, anchor_y), (x, y))
        return point

    def _build(
        self,
        tool: ToolType,
        p1: Point,
        p2: Point,
        pane: Pane,
        drawing_id: str,
    ) -> Drawing:
        settings = self._context.drawing_settings
        cls = drawing_class_for(tool)
        fields = dict(
            id=drawing_id,
            symbol=self._context.symbol,
            pane=pane,
            p1=p1,
            p2=p2,
            color=settings.color,
            line_width=settings.line_width,
            line_style=settings.line_style,
        )
        if issubclass(cls, PositionDrawing):
            target, stop = compute_bracket(tool is ToolType.LONG_POSITION, p1.price, p2.price, self._bracket)
            fields.update(target_price=target, stop_price=stop)
        return cls(**fields)

    def _commit_new(self, drawing: Drawing) -> Drawing:
        stored = self._drawings.create(drawing)
        self._sink.publish(DrawingCreated(drawing=stored))
        self._sink.publish(DrawingSelected(drawing_id=stored.id))
        self._context.active_tool = ToolType.CURSOR
        self.cancel()
        logger.info("Dibujo confirmado: %s (%s)", stored.kind.value, stored.id)
        return stored

    def _select(self, drawing_id: Optional[str]) -> None:
        self._drawings.select(drawing_id)
        self._sink.publish(DrawingSelected(drawing_id=drawing_id))

    def _update_drag(self, x: float, y: float) -> None:
        session = self._drag
        if self._drawings.get(session.drawing_id) is None:
            raise MalformedDragError("El dibujo arrastrado ya no existe", drawing_id=session.drawing_id)

        ctx = self._registry.get(session.pane)
        raw = self._mapper.pixel_to_point(ctx, x, y)
        if raw is None:
            return

        control = session.control
        origin = session.origin
        symbol = self._context.symbol

        def rounded(price: float) -> float:
            return round_price(symbol, price)

        price = raw.price
        if control in (DragControl.P1, DragControl.P2):
            candle = self._context.window.candle_at(raw.time)
            price = snap_price(candle, raw.price, session.pane, self._context.magnet_mode)

        if control is DragControl.ALL:
            dt = raw.time - session.initial_mouse.time
            dp = price - session.initial_mouse.price
            moved = origin.translated(dt, dp, rounded)
        elif control is DragControl.P1:
            moved = replace(origin, p1=Point(time=raw.time, price=rounded(price)))
        elif control is DragControl.P2:
            moved = replace(origin, p2=Point(time=raw.time, price=rounded(price)))
        elif control is DragControl.ENTRY:
            moved = replace(
                origin,
                p1=Point(time=origin.p1.time, price=rounded(price)),
                p2=Point(time=origin.p2.time, price=rounded(price)),
            )
        elif isinstance(origin, PositionDrawing):
            if control is DragControl.TARGET:
                moved = replace(origin, target_price=rounded(price))
            else:
                moved = replace(origin, stop_price=rounded(price))
        else:
            raise MalformedDragError(
                f"Control {control.value} inválido para {origin.kind.value}",
                drawing_id=origin.id,
            )

        session.current = moved
        session.moved = moved != origin
