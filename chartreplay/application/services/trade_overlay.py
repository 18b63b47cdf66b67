"""
ChartReplay – Trade Overlay Controller
========================================
Líneas arrastrables de SL / TP / entrada pendiente sobre el panel MAIN.

Los trades pertenecen al simulador externo; aquí solo se PROPONEN cambios:
  - Drag SL  → TradeModifyRequested(id, nuevo_sl, tp_actual)
  - Drag TP  → TradeModifyRequested(id, sl_actual, nuevo_tp)
  - Drag ENTRY (solo pendientes) → OrderEntryModifyRequested(id, precio)
Durante el drag se emite TradeDragProgress (no confirma nada) y al
soltar, TradeDragEnded.

Los precios del drag de trades NO se redondean: el simulador decide.
"""

from __future__ import annotations

import math
from dataclasses import dataclass
from enum import Enum
from typing import Dict, List, Optional, Union

from chartreplay.application.ports.event_sink import IEventSink
from chartreplay.application.services.coordinate_mapper import CoordinateMapper
from chartreplay.application.services.pane_registry import PaneRegistry
from chartreplay.domain.entities.trade import OrderType, Trade
from chartreplay.domain.events.domain_events import (
    OrderEntryModifyRequested,
    TradeDragEnded,
    TradeDragProgress,
    TradeModifyRequested,
)
from chartreplay.domain.value_objects.pane import Pane
from chartreplay.shared.logging.logger import get_logger

logger = get_logger("trade_overlay")

SL_COLOR = "#F23645"
TP_COLOR = "#089981"
PENDING_COLOR = "#f59e0b"
OPEN_ENTRY_COLOR = "#a1a1aa"


class TradeLineKind(str, Enum):
    SL = "SL"
    TP = "TP"
    ENTRY = "ENTRY"


@dataclass(frozen=True, slots=True)
class TradeLine:
    """Línea horizontal de un trade a un precio dado."""

    trade_id: str
    kind: TradeLineKind
    price: float
    label: str
    color: str
    draggable: bool = True
    dragging: bool = False


@dataclass(frozen=True, slots=True)
class AddAffordance:
    """Botón "SL+" / "TP+" anclado a la altura de la entrada de un trade abierto."""

    trade_id: str
    kind: TradeLineKind
    anchor_price: float
    color: str

    @property
    def label(self) -> str:
        return f"{self.kind.value}+"


OverlayItem = Union[TradeLine, AddAffordance]


@dataclass
class _TradeDrag:
    trade_id: str
    kind: TradeLineKind
    start_price: float
    current_price: float


class TradeOverlayController:
    """Controlador de líneas de trades."""

    def __init__(self, registry: PaneRegistry, mapper: CoordinateMapper, sink: IEventSink) -> None:
        self._registry = registry
        self._mapper = mapper
        self._sink = sink
        self._trades: Dict[str, Trade] = {}
        self._drag: Optional[_TradeDrag] = None

    # ════════════════════════════════════════════════════════════════
    #  Trades
    # ════════════════════════════════════════════════════════════════

    def set_trades(self, trades: List[Trade]) -> None:
        self._trades = {t.id: t for t in trades}
        if self._drag is not None and self._drag.trade_id not in self._trades:
            logger.debug("Trade %s desapareció durante el drag", self._drag.trade_id)
            self._drag = None

    @property
    def trades(self) -> List[Trade]:
        return list(self._trades.values())

    @property
    def dragging(self) -> Optional[TradeLineKind]:
        return self._drag.kind if self._drag else None

    # ════════════════════════════════════════════════════════════════
    #  Drag
    # ════════════════════════════════════════════════════════════════

    def start_drag(self, trade_id: str, kind: TradeLineKind) -> bool:
        trade = self._trades.get(trade_id)
        if trade is None or trade.is_closed:
            return False
        kind = TradeLineKind(kind)
        if kind is TradeLineKind.ENTRY and not trade.is_pending:
            return False

        if kind is TradeLineKind.SL:
            start = trade.stop_loss if trade.has_stop_loss else trade.entry_price
        elif kind is TradeLineKind.TP:
            start = trade.take_profit if trade.has_take_profit else trade.entry_price
        else:
            start = trade.entry_price

        self._drag = _TradeDrag(trade_id=trade_id, kind=kind, start_price=start, current_price=start)
        return True

    def pointer_move(self, pane: Pane, y: float) -> None:
        if self._drag is None or Pane(pane) != Pane.MAIN:
            return
        price = self._mapper.pixel_to_price(self._registry.get(Pane.MAIN), y)
        if price is None:
            return
        self._drag.current_price = price
        self._sink.publish(TradeDragProgress(
            trade_id=self._drag.trade_id,
            line=self._drag.kind.value,
            price=price,
        ))

    def pointer_up(self) -> bool:
        """Confirma el drag. Returns: True si había un drag activo."""
        drag = self._drag
        if drag is None:
            return False
        self._drag = None

        trade = self._trades.get(drag.trade_id)
        if trade is not None:
            if drag.kind is TradeLineKind.SL:
                self._sink.publish(TradeModifyRequested(
                    trade_id=trade.id,
                    stop_loss=drag.current_price,
                    take_profit=trade.take_profit,
                ))
            elif drag.kind is TradeLineKind.TP:
                self._sink.publish(TradeModifyRequested(
                    trade_id=trade.id,
                    stop_loss=trade.stop_loss,
                    take_profit=drag.current_price,
                ))
            else:
                self._sink.publish(OrderEntryModifyRequested(
                    trade_id=trade.id,
                    entry_price=drag.current_price,
                ))
        self._sink.publish(TradeDragEnded(trade_id=drag.trade_id))
        return True

    def edit_entry_price(self, trade_id: str, value: Union[str, float]) -> bool:
        """Edición explícita del precio de entrada (prompt del doble click)."""
        trade = self._trades.get(trade_id)
        if trade is None or not trade.is_pending:
            return False
        try:
            price = float(value)
        except (TypeError, ValueError):
            logger.warning("Precio de entrada inválido para %s: %r", trade_id, value)
            return False
        if math.isnan(price):
            return False
        self._sink.publish(OrderEntryModifyRequested(trade_id=trade_id, entry_price=price))
        return True

    # ════════════════════════════════════════════════════════════════
    #  Overlay
    # ════════════════════════════════════════════════════════════════

    def overlay_items(self) -> List[OverlayItem]:
        """Líneas y affordances de todos los trades no cerrados."""
        items: List[OverlayItem] = []
        drag = self._drag
        for trade in self._trades.values():
            if trade.is_closed:
                continue
            dragging = drag.kind if drag is not None and drag.trade_id == trade.id else None
            short_id = trade.id[:4]

            if trade.is_pending:
                price = drag.current_price if dragging is TradeLineKind.ENTRY else trade.entry_price
                kind_label = "LIMIT" if trade.type == OrderType.LIMIT else "STOP"
                items.append(TradeLine(
                    trade_id=trade.id,
                    kind=TradeLineKind.ENTRY,
                    price=price,
                    label=f"{kind_label} #{short_id}",
                    color=PENDING_COLOR,
                    dragging=dragging is TradeLineKind.ENTRY,
                ))
            else:
                items.append(TradeLine(
                    trade_id=trade.id,
                    kind=TradeLineKind.ENTRY,
                    price=trade.entry_price,
                    label=f"#{short_id}",
                    color=OPEN_ENTRY_COLOR,
                    draggable=False,
                ))
                if not trade.has_stop_loss and dragging is not TradeLineKind.SL:
                    items.append(AddAffordance(trade.id, TradeLineKind.SL, trade.entry_price, SL_COLOR))
                if not trade.has_take_profit and dragging is not TradeLineKind.TP:
                    items.append(AddAffordance(trade.id, TradeLineKind.TP, trade.entry_price, TP_COLOR))

            if trade.has_stop_loss or dragging is TradeLineKind.SL:
                price = drag.current_price if dragging is TradeLineKind.SL else trade.stop_loss
                items.append(TradeLine(
                    trade_id=trade.id,
                    kind=TradeLineKind.SL,
                    price=price,
                    label=f"SL #{short_id}",
                    color=SL_COLOR,
                    dragging=dragging is TradeLineKind.SL,
                ))
            if trade.has_take_profit or dragging is TradeLineKind.TP:
                price = drag.current_price if dragging is TradeLineKind.TP else trade.take_profit
                items.append(TradeLine(
                    trade_id=trade.id,
                    kind=TradeLineKind.TP,
                    price=price,
                    label=f"TP #{short_id}",
                    color=TP_COLOR,
                    dragging=dragging is TradeLineKind.TP,
                ))
        return items
