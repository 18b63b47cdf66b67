import pytest

from chartreplay.application.services.trade_overlay import (
    AddAffordance,
    TradeLine,
    TradeLineKind,
    TradeOverlayController,
)
from chartreplay.domain.entities.trade import OrderSide, OrderStatus, OrderType, Trade
from chartreplay.domain.value_objects.pane import Pane

from conftest import y_for


def _open_trade(**kwargs):
    fields = dict(
        id="abcd1234",
        symbol="EURUSD",
        side=OrderSide.LONG,
        type=OrderType.MARKET,
        status=OrderStatus.OPEN,
        entry_price=1.10,
        stop_loss=1.09,
        take_profit=1.12,
    )
    fields.update(kwargs)
    return Trade(**fields)


@pytest.fixture
def overlay(registry, mapper, sink):
    return TradeOverlayController(registry, mapper, sink)


def test_sl_drag_preserves_take_profit(overlay, sink):
    overlay.set_trades([_open_trade()])

    assert overlay.start_drag("abcd1234", TradeLineKind.SL)
    overlay.pointer_move(Pane.MAIN, y_for(1.095))
    assert overlay.pointer_up()

    (progress,) = sink.of_type("TradeDragProgress")
    assert progress.line == "SL"
    (modify,) = sink.of_type("TradeModifyRequested")
    assert modify.stop_loss == pytest.approx(1.095)
    assert modify.take_profit == 1.12
    assert sink.types()[-1] == "TradeDragEnded"


def test_tp_drag_preserves_stop_loss(overlay, sink):
    overlay.set_trades([_open_trade()])
    overlay.start_drag("abcd1234", TradeLineKind.TP)
    overlay.pointer_move(Pane.MAIN, y_for(1.13))
    overlay.pointer_up()
    (modify,) = sink.of_type("TradeModifyRequested")
    assert modify.stop_loss == 1.09
    assert modify.take_profit == pytest.approx(1.13)


def test_entry_drag_only_for_pending(overlay, sink):
    pending = _open_trade(id="pend", type=OrderType.LIMIT, status=OrderStatus.PENDING)
    overlay.set_trades([_open_trade(), pending])

    assert overlay.start_drag("abcd1234", TradeLineKind.ENTRY) is False
    assert overlay.start_drag("pend", TradeLineKind.ENTRY)
    overlay.pointer_move(Pane.MAIN, y_for(1.105))
    overlay.pointer_up()

    (modify,) = sink.of_type("OrderEntryModifyRequested")
    assert modify.trade_id == "pend"
    assert modify.entry_price == pytest.approx(1.105)


def test_closed_trade_is_not_draggable_nor_rendered(overlay):
    overlay.set_trades([_open_trade(status=OrderStatus.CLOSED)])
    assert overlay.start_drag("abcd1234", TradeLineKind.SL) is False
    assert overlay.overlay_items() == []


def test_moves_outside_main_are_ignored(overlay, sink):
    overlay.set_trades([_open_trade()])
    overlay.start_drag("abcd1234", TradeLineKind.SL)
    overlay.pointer_move(Pane.RSI, 10)
    overlay.pointer_up()
    (modify,) = sink.of_type("TradeModifyRequested")
    assert modify.stop_loss == 1.09


def test_affordances_for_missing_levels(overlay):
    overlay.set_trades([_open_trade(stop_loss=0.0, take_profit=0.0)])
    items = overlay.overlay_items()

    affordances = [i for i in items if isinstance(i, AddAffordance)]
    assert [a.label for a in affordances] == ["SL+", "TP+"]
    lines = [i for i in items if isinstance(i, TradeLine)]
    assert len(lines) == 1
    assert lines[0].draggable is False
    assert lines[0].label == "#abcd"


def test_dragging_from_affordance_shows_line(overlay):
    overlay.set_trades([_open_trade(stop_loss=0.0, take_profit=0.0)])
    overlay.start_drag("abcd1234", TradeLineKind.SL)
    overlay.pointer_move(Pane.MAIN, y_for(1.08))

    items = overlay.overlay_items()
    sl_lines = [i for i in items if isinstance(i, TradeLine) and i.kind is TradeLineKind.SL]
    assert len(sl_lines) == 1
    assert sl_lines[0].dragging
    assert sl_lines[0].price == pytest.approx(1.08)
    assert [a.kind for a in items if isinstance(a, AddAffordance)] == [TradeLineKind.TP]


def test_pending_entry_label(overlay):
    overlay.set_trades([_open_trade(id="xyz98765", type=OrderType.STOP, status=OrderStatus.PENDING)])
    entry = overlay.overlay_items()[0]
    assert entry.label == "STOP #xyz9"
    assert entry.draggable


def test_trade_removed_mid_drag_cancels(overlay, sink):
    overlay.set_trades([_open_trade()])
    overlay.start_drag("abcd1234", TradeLineKind.SL)
    overlay.set_trades([])
    assert overlay.dragging is None
    assert overlay.pointer_up() is False
    assert sink.events == []


@pytest.mark.parametrize("value", ["abc", None, "nan"])
def test_edit_entry_price_rejects_invalid(overlay, sink, value):
    overlay.set_trades([_open_trade(id="pend", status=OrderStatus.PENDING)])
    assert overlay.edit_entry_price("pend", value) is False
    assert sink.events == []


def test_edit_entry_price(overlay, sink):
    overlay.set_trades([_open_trade(id="pend", status=OrderStatus.PENDING), _open_trade()])
    assert overlay.edit_entry_price("abcd1234", "1.2") is False
    assert overlay.edit_entry_price("pend", "1.2")
    assert sink.of_type("OrderEntryModifyRequested")[0].entry_price == 1.2
