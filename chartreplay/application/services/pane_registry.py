"""
ChartReplay – Pane Registry
=============================
Registro de paneles (MAIN, RSI, MACD) con sincronización del rango visible.

SINCRONIZACIÓN:
  Cuando el rango lógico visible de un panel cambia, se copia a todos
  los demás. Un flag _syncing evita la re-entrada (cada set_visible_logical_range
  dispara a su vez el listener del panel destino).
  Un panel nuevo hereda el rango visible del panel MAIN.
"""

from __future__ import annotations

from typing import Callable, Dict, List, Optional

from chartreplay.application.ports.chart_pane import LogicalRange, PaneContext, RangeListener
from chartreplay.domain.value_objects.pane import Pane
from chartreplay.shared.logging.logger import get_logger

logger = get_logger("pane_registry")


class PaneRegistry:
    """Paneles registrados por id, con propagación lock-step del rango visible."""

    def __init__(self) -> None:
        self._panes: Dict[Pane, PaneContext] = {}
        self._listeners: Dict[Pane, RangeListener] = {}
        self._render_listeners: List[Callable[[], None]] = []
        self._syncing = False

    def register(self, pane: Pane, ctx: PaneContext) -> None:
        pane = Pane(pane)
        if pane in self._panes:
            self.unregister(pane)

        self._panes[pane] = ctx
        listener = self._make_listener(pane)
        self._listeners[pane] = listener
        ctx.time_scale.subscribe_visible_range_change(listener)

        main = self._panes.get(Pane.MAIN)
        if pane != Pane.MAIN and main is not None:
            main_range = main.time_scale.get_visible_logical_range()
            if main_range is not None:
                self._syncing = True
                try:
                    ctx.time_scale.set_visible_logical_range(main_range)
                finally:
                    self._syncing = False
        logger.info("Panel registrado: %s", pane.value)

    def unregister(self, pane: Pane) -> None:
        pane = Pane(pane)
        ctx = self._panes.pop(pane, None)
        listener = self._listeners.pop(pane, None)
        if ctx is not None and listener is not None:
            ctx.time_scale.unsubscribe_visible_range_change(listener)
            logger.info("Panel eliminado: %s", pane.value)

    def get(self, pane: Pane) -> Optional[PaneContext]:
        return self._panes.get(Pane(pane))

    def panes(self) -> List[Pane]:
        return list(self._panes)

    def add_render_listener(self, callback: Callable[[], None]) -> None:
        """Callback a invocar cuando cambia el rango visible de cualquier panel."""
        self._render_listeners.append(callback)

    def notify_render(self) -> None:
        for callback in list(self._render_listeners):
            callback()

    # ─── Internos ───────────────────────────────────────────────────────

    def _make_listener(self, source: Pane) -> RangeListener:
        def _listener(logical_range: Optional[LogicalRange]) -> None:
            self._on_range_change(source, logical_range)
        return _listener

    def _on_range_change(self, source: Pane, logical_range: Optional[LogicalRange]) -> None:
        if logical_range is None or self._syncing:
            return
        self._syncing = True
        try:
            for pane, ctx in self._panes.items():
                if pane != source:
                    ctx.time_scale.set_visible_logical_range(logical_range)
        finally:
            self._syncing = False
        self.notify_render()
