"""
ChartReplay – Chart Workspace
===============================
Fachada que conecta los gestos del adaptador de charting con el core:

    gestos (click, drag, teclas) ──▶ AnnotationEngine / TradeOverlayController
    rango visible / replay        ──▶ OverlayRenderer ──▶ frame listeners

El adaptador de UI solo habla con esta clase y escucha los eventos
publicados en el IEventSink.
"""

from __future__ import annotations

from typing import Callable, List, Optional

from chartreplay.application.ports.chart_pane import IPriceSeries, ITimeScale, PaneContext
from chartreplay.application.ports.event_sink import IEventSink
from chartreplay.application.services.annotation_engine import (
    AnnotationEngine,
    DragControl,
    Modifiers,
)
from chartreplay.application.services.overlay_renderer import Frame, OverlayRenderer
from chartreplay.application.services.pane_registry import PaneRegistry
from chartreplay.application.services.playback_engine import PlaybackEngine
from chartreplay.application.services.trade_overlay import TradeLineKind, TradeOverlayController
from chartreplay.application.state.drawing_state import DrawingStateManager
from chartreplay.application.state.interaction_context import InteractionContext
from chartreplay.domain.entities.drawing import Drawing, DrawingSettings, ToolType
from chartreplay.domain.entities.trade import Trade
from chartreplay.domain.events.domain_events import (
    DrawingCreated,
    DrawingSelected,
    DrawingUpdated,
    HistoryLoadRequested,
    IndicatorRemoveRequested,
)
from chartreplay.domain.value_objects.pane import Pane
from chartreplay.shared.logging.logger import get_logger

logger = get_logger("chart_workspace")

FrameListener = Callable[[Frame], None]


class ChartWorkspace:
    """Punto de entrada del adaptador de UI."""

    def __init__(
        self,
        context: InteractionContext,
        registry: PaneRegistry,
        annotations: AnnotationEngine,
        drawing_state: DrawingStateManager,
        trade_overlay: TradeOverlayController,
        renderer: OverlayRenderer,
        playback: PlaybackEngine,
        sink: IEventSink,
    ) -> None:
        self.context = context
        self.registry = registry
        self.annotations = annotations
        self.drawings = drawing_state
        self.trades = trade_overlay
        self.renderer = renderer
        self.playback = playback
        self._sink = sink

        self._frame_listeners: List[FrameListener] = []
        self.last_frame: Frame = {}
        registry.add_render_listener(self.render)
        playback.add_change_listener(self.render)

    # ─── Paneles ────────────────────────────────────────────────────────

    def register_pane(self, pane: Pane, time_scale: ITimeScale, series: IPriceSeries) -> None:
        self.registry.register(pane, PaneContext(time_scale=time_scale, series=series))
        self.render()

    def remove_indicator(self, indicator_id: str, pane: Pane) -> None:
        pane = Pane(pane)
        self._sink.publish(IndicatorRemoveRequested(indicator_id=indicator_id, pane=pane.value))
        if pane != Pane.MAIN:
            self.registry.unregister(pane)
        self.render()

    # ─── Herramientas ───────────────────────────────────────────────────

    def select_tool(self, tool: ToolType) -> None:
        tool = ToolType(tool)
        if tool is not ToolType.KILLZONE:
            self.annotations.set_tool(tool)
            return

        # KILLZONE no se coloca: se agrega (o selecciona) en el instante actual
        self.annotations.set_tool(ToolType.CURSOR)
        drawing, created = self.drawings.add_auto_kill_zone(
            self.playback.last_time, self.playback.trading_price,
        )
        if created:
            self._sink.publish(DrawingCreated(drawing=drawing))
        self._sink.publish(DrawingSelected(drawing_id=drawing.id))
        self.render()

    def set_magnet(self, enabled: bool) -> None:
        self.context.magnet_mode = bool(enabled)

    def set_drawing_settings(self, settings: DrawingSettings) -> None:
        self.context.drawing_settings = settings

    def toggle_visible(self, drawing_id: str) -> Drawing:
        drawing = self.drawings.toggle_visible(drawing_id)
        self._sink.publish(DrawingUpdated(drawing=drawing))
        self.render()
        return drawing

    def toggle_lock(self, drawing_id: str) -> Drawing:
        drawing = self.drawings.toggle_lock(drawing_id)
        self._sink.publish(DrawingUpdated(drawing=drawing))
        self.render()
        return drawing

    # ─── Gestos ─────────────────────────────────────────────────────────

    def click(self, pane: Pane, x: float, y: float, modifiers: Modifiers | None = None) -> Optional[Drawing]:
        created = self.annotations.click(pane, x, y, modifiers)
        self.render()
        return created

    def start_drawing_drag(
        self,
        drawing_id: str,
        control: DragControl,
        x: float,
        y: float,
        modifiers: Modifiers | None = None,
    ) -> bool:
        return self.annotations.start_drag(drawing_id, control, x, y, modifiers)

    def start_trade_drag(self, trade_id: str, kind: TradeLineKind) -> bool:
        return self.trades.start_drag(trade_id, kind)

    def pointer_move(self, pane: Pane, x: float, y: float, modifiers: Modifiers | None = None) -> None:
        if self.trades.dragging is not None:
            self.trades.pointer_move(pane, y)
        else:
            self.annotations.pointer_move(pane, x, y, modifiers)
        self.render()

    def pointer_up(self) -> None:
        if not self.trades.pointer_up():
            self.annotations.pointer_up()
        self.render()

    def double_click(self, drawing_id: str) -> bool:
        return self.annotations.request_edit(drawing_id)

    def edit_order_entry(self, trade_id: str, value: str) -> bool:
        return self.trades.edit_entry_price(trade_id, value)

    def key(self, key: str) -> bool:
        handled = self.annotations.handle_key(key)
        if handled:
            self.render()
        return handled

    # ─── Datos ──────────────────────────────────────────────────────────

    def set_trades(self, trades: List[Trade]) -> None:
        self.trades.set_trades(trades)
        self.render()

    async def request_history(self) -> int:
        window = self.playback.window
        timeframe = window.timeframe.value if window.timeframe else ""
        self._sink.publish(HistoryLoadRequested(symbol=window.symbol, timeframe=timeframe))
        return await self.playback.load_more_history()

    # ─── Render ─────────────────────────────────────────────────────────

    def add_frame_listener(self, listener: FrameListener) -> None:
        self._frame_listeners.append(listener)

    def render(self) -> Frame:
        frame = self.renderer.render()
        self.last_frame = frame
        for listener in list(self._frame_listeners):
            listener(frame)
        return frame
