"""
ChartReplay – Overlay Renderer
================================
Convierte dibujos, líneas de trades y zonas de sesión en primitivas de
dibujo agrupadas por panel: {Pane: [primitiva, ...]}.

Se recalcula completo en cada cambio de rango visible, resize o mutación
de datos; no guarda estado entre frames.

Un elemento cuya geometría no se puede proyectar (CoordinateUnresolvableError)
se omite sin afectar al resto del frame.
"""

from __future__ import annotations

import math
from typing import Callable, Dict, List, Optional

from chartreplay.application.dto.draw_primitives import (
    DASH_PATTERNS,
    DrawPrimitive,
    HandlePrimitive,
    LinePrimitive,
    RectPrimitive,
    TextPrimitive,
)
from chartreplay.application.ports.chart_pane import PaneContext
from chartreplay.application.services.annotation_engine import AnnotationEngine, DragControl
from chartreplay.application.services.coordinate_mapper import CoordinateMapper
from chartreplay.application.services.pane_registry import PaneRegistry
from chartreplay.application.services.trade_overlay import (
    AddAffordance,
    TradeLine,
    TradeOverlayController,
    TradeLineKind,
)
from chartreplay.application.state.interaction_context import InteractionContext
from chartreplay.domain.entities.drawing import (
    Drawing,
    FibRetracement,
    KillZoneDrawing,
    PositionDrawing,
    TextLabel,
    ToolType,
    TrendLine,
)
from chartreplay.domain.exceptions.domain_errors import CoordinateUnresolvableError
from chartreplay.domain.services.price_precision import drag_decimals, pip_size
from chartreplay.domain.services.session_zones import SessionZone, SessionZoneCalculator
from chartreplay.domain.value_objects.pane import Pane
from chartreplay.shared.logging.logger import get_logger

logger = get_logger("overlay_renderer")

RISK_COLOR = "#ef4444"
REWARD_COLOR = "#22c55e"
NEUTRAL_COLOR = "#a1a1aa"
ENTRY_LINE_COLOR = "#71717a"

Frame = Dict[Pane, List[DrawPrimitive]]


class OverlayRenderer:
    """Genera el frame de primitivas de todos los paneles."""

    def __init__(
        self,
        context: InteractionContext,
        registry: PaneRegistry,
        mapper: CoordinateMapper,
        annotations: AnnotationEngine,
        trade_overlay: TradeOverlayController,
        session_zones: SessionZoneCalculator,
        digits_provider: Optional[Callable[[], int]] = None,
    ) -> None:
        self._context = context
        self._registry = registry
        self._mapper = mapper
        self._annotations = annotations
        self._trades = trade_overlay
        self._sessions = session_zones
        self._digits_provider = digits_provider or (lambda: 5)

        self._dispatch: Dict[ToolType, Callable[[Drawing, PaneContext], List[DrawPrimitive]]] = {
            ToolType.TRENDLINE: self._render_trendline,
            ToolType.RECTANGLE: self._render_rectangle,
            ToolType.FIB: self._render_fib,
            ToolType.TEXT: self._render_text,
            ToolType.KILLZONE: self._render_kill_zone,
            ToolType.LONG_POSITION: self._render_position,
            ToolType.SHORT_POSITION: self._render_position,
        }

    def render(self) -> Frame:
        frame: Frame = {pane: [] for pane in Pane}

        main = self._registry.get(Pane.MAIN)
        if main is not None:
            frame[Pane.MAIN].extend(self._render_trades(main))

        for drawing in self._annotations.render_list():
            if not drawing.visible:
                continue
            pane = Pane(drawing.pane)
            ctx = self._registry.get(pane)
            if ctx is None:
                continue
            try:
                frame[pane].extend(self._dispatch[drawing.kind](drawing, ctx))
            except CoordinateUnresolvableError as exc:
                logger.debug("Dibujo %s omitido: %s", drawing.id, exc.message)
        return frame

    # ════════════════════════════════════════════════════════════════
    #  Helpers
    # ════════════════════════════════════════════════════════════════

    def _xy(self, ctx: PaneContext, time: float, price: float) -> tuple[float, float]:
        return self._mapper.require_x(ctx, time), self._mapper.require_y(ctx, price)

    def _is_selected(self, drawing: Drawing) -> bool:
        return not drawing.is_ghost and drawing.id == self._context.selected_id

    def _handles(self, drawing: Drawing, x1: float, y1: float, x2: float, y2: float) -> List[DrawPrimitive]:
        if not self._is_selected(drawing):
            return []
        return [
            HandlePrimitive(drawing.id, x1, y1, drawing.color, role=DragControl.P1.value),
            HandlePrimitive(drawing.id, x2, y2, drawing.color, role=DragControl.P2.value),
        ]

    # ════════════════════════════════════════════════════════════════
    #  Variantes
    # ════════════════════════════════════════════════════════════════

    def _render_trendline(self, drawing: Drawing, ctx: PaneContext) -> List[DrawPrimitive]:
        assert isinstance(drawing, TrendLine)
        x1, y1 = self._xy(ctx, drawing.p1.time, drawing.p1.price)
        x2, y2 = self._xy(ctx, drawing.p2.time, drawing.p2.price)
        interactive = not drawing.is_ghost

        prims: List[DrawPrimitive] = [
            LinePrimitive(drawing.id, x1, y1, x2, y2, "transparent", width=20,
                          interactive=interactive, role=DragControl.ALL.value),
            LinePrimitive(drawing.id, x1, y1, x2, y2, drawing.color, width=drawing.line_width,
                          dash=DASH_PATTERNS[drawing.line_style.value], interactive=False),
        ]
        if drawing.text:
            rotation = math.degrees(math.atan2(y2 - y1, x2 - x1))
            if rotation > 90 or rotation < -90:
                rotation += 180
            prims.append(TextPrimitive(
                drawing.id, (x1 + x2) / 2, (y1 + y2) / 2 - 6, drawing.text, drawing.color,
                font_size=drawing.font_size or 12, anchor="middle", rotation=rotation,
            ))
        prims.extend(self._handles(drawing, x1, y1, x2, y2))
        return prims

    def _render_rectangle(self, drawing: Drawing, ctx: PaneContext) -> List[DrawPrimitive]:
        x1, y1 = self._xy(ctx, drawing.p1.time, drawing.p1.price)
        x2, y2 = self._xy(ctx, drawing.p2.time, drawing.p2.price)
        prims: List[DrawPrimitive] = [
            RectPrimitive(
                drawing.id, min(x1, x2), min(y1, y2), abs(x2 - x1), abs(y2 - y1),
                fill=drawing.color, fill_opacity=0.2, stroke=drawing.color,
                stroke_width=drawing.line_width, dash=DASH_PATTERNS[drawing.line_style.value],
                interactive=not drawing.is_ghost, role=DragControl.ALL.value,
            ),
        ]
        prims.extend(self._handles(drawing, x1, y1, x2, y2))
        return prims

    def _render_fib(self, drawing: Drawing, ctx: PaneContext) -> List[DrawPrimitive]:
        assert isinstance(drawing, FibRetracement)
        x1, y1 = self._xy(ctx, drawing.p1.time, drawing.p1.price)
        x2, y2 = self._xy(ctx, drawing.p2.time, drawing.p2.price)
        digits = self._digits_provider()
        interactive = not drawing.is_ghost

        prims: List[DrawPrimitive] = [
            LinePrimitive(drawing.id, x1, y1, x2, y2, "transparent", width=15,
                          interactive=interactive, role=DragControl.ALL.value),
            LinePrimitive(drawing.id, x1, y1, x2, y2, drawing.color, width=1,
                          dash="4 4", opacity=0.5, interactive=False),
        ]
        prims.extend(self._handles(drawing, x1, y1, x2, y2))

        left, right = min(x1, x2), max(x1, x2)
        for level, price in drawing.level_prices():
            ly = self._mapper.price_to_pixel(ctx, price)
            if ly is None:
                continue
            prims.append(LinePrimitive(drawing.id, left, ly, right, ly, level.color, dash="4 4",
                                       opacity=0.8, interactive=interactive))
            prims.append(TextPrimitive(drawing.id, right + 5, ly + 3,
                                       f"{level.level:g} ({price:.{digits}f})", level.color))
        return prims

    def _render_text(self, drawing: Drawing, ctx: PaneContext) -> List[DrawPrimitive]:
        assert isinstance(drawing, TextLabel)
        x, y = self._xy(ctx, drawing.p1.time, drawing.p1.price)
        size = drawing.font_size or 14
        lines = (drawing.text or "Text").split("\n")
        prims: List[DrawPrimitive] = [
            TextPrimitive(drawing.id, x, y + i * size * 1.2, line, drawing.color, font_size=size,
                          interactive=not drawing.is_ghost, role=DragControl.P1.value)
            for i, line in enumerate(lines)
        ]
        if self._is_selected(drawing):
            prims.append(RectPrimitive(drawing.id, x - 2, y - size, 20, 20, fill="transparent",
                                       fill_opacity=0.0, stroke="blue", stroke_width=1,
                                       dash="2 2", interactive=False))
        return prims

    def _render_kill_zone(self, drawing: Drawing, ctx: PaneContext) -> List[DrawPrimitive]:
        assert isinstance(drawing, KillZoneDrawing)
        if Pane(drawing.pane) != Pane.MAIN:
            return []
        logical_range = ctx.time_scale.get_visible_logical_range()
        if logical_range is None:
            return []

        window = self._context.window
        zones = self._sessions.compute(
            drawing.id,
            drawing.kill_zone_config,
            window.revealed_candles,
            window.interval,
            logical_range.from_,
            logical_range.to,
        )
        prims: List[DrawPrimitive] = []
        for zone in zones:
            try:
                prims.extend(self._render_zone(drawing, zone, ctx))
            except CoordinateUnresolvableError:
                continue
        return prims

    def _render_zone(self, drawing: KillZoneDrawing, zone: SessionZone, ctx: PaneContext) -> List[DrawPrimitive]:
        cfg = drawing.kill_zone_config
        sx = self._mapper.require_x(ctx, zone.start)
        ex = self._mapper.require_x(ctx, zone.end)
        sy = self._mapper.require_y(ctx, zone.high)
        ey = self._mapper.require_y(ctx, zone.low)
        width = ctx.time_scale.width()

        prims: List[DrawPrimitive] = [
            RectPrimitive(zone.key, sx, sy, max(1.0, ex - sx), abs(ey - sy), fill=zone.color,
                          fill_opacity=cfg.opacity, interactive=False),
        ]
        if cfg.show_label:
            prims.append(TextPrimitive(zone.key, sx, sy - 5, zone.label, zone.color,
                                       interactive=True, role="edit"))
        if cfg.show_high_low_lines:
            prims.append(LinePrimitive(zone.key, sx, sy, ex, sy, zone.color, interactive=False))
            prims.append(LinePrimitive(zone.key, sx, ey, ex, ey, zone.color, interactive=False))
        if cfg.extend:
            prims.append(LinePrimitive(zone.key, ex, sy, width, sy, zone.color, dash="4 2",
                                       opacity=0.7, interactive=False))
            prims.append(LinePrimitive(zone.key, ex, ey, width, ey, zone.color, dash="4 2",
                                       opacity=0.7, interactive=False))
        if cfg.show_average:
            my = self._mapper.require_y(ctx, zone.midline)
            prims.append(LinePrimitive(zone.key, sx, my, width if cfg.extend else ex, my, zone.color,
                                       dash="2 2", opacity=0.7, interactive=False))
        return prims

    def _render_position(self, drawing: Drawing, ctx: PaneContext) -> List[DrawPrimitive]:
        assert isinstance(drawing, PositionDrawing)
        if Pane(drawing.pane) != Pane.MAIN or not drawing.target_price or not drawing.stop_price:
            return []
        x1, y1 = self._xy(ctx, drawing.p1.time, drawing.p1.price)
        x2 = self._mapper.require_x(ctx, drawing.p2.time)
        target_y = self._mapper.require_y(ctx, drawing.target_price)
        stop_y = self._mapper.require_y(ctx, drawing.stop_price)

        is_long = drawing.is_long
        box_x = min(x1, x2)
        box_w = abs(x2 - x1)
        prims: List[DrawPrimitive] = [
            RectPrimitive(drawing.id, box_x, y1 if is_long else stop_y, box_w, abs(stop_y - y1),
                          fill=RISK_COLOR, fill_opacity=0.15, interactive=False),
            RectPrimitive(drawing.id, box_x, target_y if is_long else y1, box_w, abs(target_y - y1),
                          fill=REWARD_COLOR, fill_opacity=0.15, interactive=False),
            LinePrimitive(drawing.id, box_x, y1, box_x + box_w, y1, ENTRY_LINE_COLOR, interactive=False),
        ]

        if drawing.is_ghost:
            y2 = self._mapper.price_to_pixel(ctx, drawing.p2.price)
            if y2 is not None:
                prims.append(LinePrimitive(drawing.id, x1, y1, x2, y2, drawing.color, dash="4 4",
                                           opacity=0.8, interactive=False))
        else:
            top = min(target_y, stop_y)
            height = abs(target_y - stop_y)
            bottom = top + height
            upper_role = DragControl.TARGET if (target_y < stop_y) else DragControl.STOP
            lower_role = DragControl.STOP if upper_role is DragControl.TARGET else DragControl.TARGET
            left_role, right_role = (DragControl.P1, DragControl.P2) if x1 < x2 else (DragControl.P2, DragControl.P1)
            prims.extend([
                RectPrimitive(drawing.id, box_x, top, box_w, height, fill="transparent",
                              fill_opacity=0.0, role=DragControl.ALL.value),
                LinePrimitive(drawing.id, box_x, top, box_x, bottom, "transparent", width=10,
                              role=left_role.value),
                LinePrimitive(drawing.id, box_x + box_w, top, box_x + box_w, bottom, "transparent",
                              width=10, role=right_role.value),
                LinePrimitive(drawing.id, box_x, top, box_x + box_w, top, "transparent", width=10,
                              role=upper_role.value),
                LinePrimitive(drawing.id, box_x, bottom, box_x + box_w, bottom, "transparent",
                              width=10, role=lower_role.value),
                LinePrimitive(drawing.id, box_x, y1, box_x + box_w, y1, "transparent", width=10,
                              role=DragControl.ENTRY.value),
            ])

        symbol = self._context.symbol
        digits = drag_decimals(symbol)
        pip = pip_size(symbol)
        risk = abs(drawing.entry_price - drawing.stop_price)
        reward = abs(drawing.target_price - drawing.entry_price)
        label_x = box_x + box_w + 4
        prims.extend([
            TextPrimitive(drawing.id, box_x + box_w / 2, y1 + (-5 if is_long else 12),
                          f"R: {drawing.risk_reward():.2f}", NEUTRAL_COLOR, anchor="middle"),
            TextPrimitive(drawing.id, label_x, y1 + 3,
                          f"Entry: {drawing.entry_price:.{digits}f}", NEUTRAL_COLOR),
            TextPrimitive(drawing.id, label_x, target_y + 3,
                          f"TP: {drawing.target_price:.{digits}f} ({reward / pip:.2f} pips)", REWARD_COLOR),
            TextPrimitive(drawing.id, label_x, stop_y + 3,
                          f"SL: {drawing.stop_price:.{digits}f} ({risk / pip:.2f} pips)", RISK_COLOR),
        ])
        return prims

    # ════════════════════════════════════════════════════════════════
    #  Trades
    # ════════════════════════════════════════════════════════════════

    def _render_trades(self, ctx: PaneContext) -> List[DrawPrimitive]:
        width = ctx.time_scale.width()
        height = ctx.series.height()
        digits = self._digits_provider()
        prims: List[DrawPrimitive] = []

        for item in self._trades.overlay_items():
            price = item.price if isinstance(item, TradeLine) else item.anchor_price
            y = self._mapper.price_to_pixel(ctx, price)
            if y is None or not (0 < y < height):
                continue

            if isinstance(item, AddAffordance):
                offset = 115 if item.kind is TradeLineKind.SL else 83
                prims.append(HandlePrimitive(item.trade_id, width - offset, y, item.color,
                                             role=item.kind.value, label=item.label))
                continue

            if item.draggable:
                prims.append(LinePrimitive(item.trade_id, 0, y, width, y, "transparent", width=20,
                                           role=item.kind.value))
                prims.append(LinePrimitive(item.trade_id, 0, y, width, y, item.color,
                                           dash="4 2" if item.kind is TradeLineKind.ENTRY else "4 4",
                                           interactive=False))
                tag = item.label.split(" ")[0]
                prims.append(TextPrimitive(item.trade_id, width - 105, y + 4,
                                           f"{tag} {item.price:.{digits}f}", item.color))
            prims.append(TextPrimitive(item.trade_id, 10, y - 4, item.label, item.color))
        return prims
