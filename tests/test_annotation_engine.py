import pytest

from chartreplay.application.ports.chart_pane import PaneContext
from chartreplay.application.services.annotation_engine import (
    AnnotationState,
    DragControl,
    Modifiers,
)
from chartreplay.domain.entities.drawing import (
    GHOST_ID,
    LongPosition,
    RectangleDrawing,
    TextLabel,
    ToolType,
    TrendLine,
)
from chartreplay.domain.value_objects.pane import Pane
from chartreplay.domain.value_objects.point import Point

from conftest import BAR, T0, FakeSeries, FakeTimeScale, x_for, y_for


def _rectangle(drawing_state):
    return drawing_state.create(RectangleDrawing(
        id="rect1",
        p1=Point(time=T0 + 5 * BAR, price=1.12),
        p2=Point(time=T0 + 10 * BAR, price=1.10),
    ))


# ════════════════════════════════════════════════════════════════════
#  Creación
# ════════════════════════════════════════════════════════════════════

def test_trendline_two_clicks_with_ghost(engine, context, sink):
    engine.set_tool(ToolType.TRENDLINE)

    assert engine.click(Pane.MAIN, x_for(1), y_for(1.101)) is None
    assert engine.state(Pane.MAIN) is AnnotationState.ANCHORED
    assert sink.events == []

    engine.pointer_move(Pane.MAIN, x_for(3), y_for(1.105))
    ghost = engine.ghost()
    assert ghost is not None and ghost.id == GHOST_ID
    assert ghost.p2.time == T0 + 3 * BAR
    assert engine.render_list()[-1].id == GHOST_ID
    assert sink.events == []

    created = engine.click(Pane.MAIN, x_for(3), y_for(1.105))

    assert isinstance(created, TrendLine)
    assert created.p1.time == T0 + BAR
    assert created.p1.price == pytest.approx(1.101)
    assert created.p2.price == pytest.approx(1.105)
    assert created.symbol == "EURUSD"
    assert sink.types() == ["DrawingCreated", "DrawingSelected"]
    assert context.active_tool is ToolType.CURSOR
    assert context.selected_id == created.id
    assert engine.ghost() is None
    assert engine.state(Pane.MAIN) is AnnotationState.IDLE


def test_magnet_snaps_anchor_to_nearest_ohlc(engine, context):
    context.magnet_mode = True
    engine.set_tool(ToolType.TRENDLINE)
    engine.click(Pane.MAIN, x_for(2), y_for(1.1038))
    assert engine.anchor.price == 1.104


def test_magnet_ignores_candles_not_yet_revealed(engine, context, window):
    window.reveal_through(5)
    context.magnet_mode = True
    engine.set_tool(ToolType.TRENDLINE)

    # vela 15 oculta: high 1.117
    engine.click(Pane.MAIN, x_for(15), y_for(1.1168))

    assert engine.anchor.time == T0 + 15 * BAR
    assert engine.anchor.price == pytest.approx(1.1168)


def test_magnet_drag_ignores_candles_not_yet_revealed(engine, context, window, drawing_state):
    _rectangle(drawing_state)
    window.reveal_through(5)
    context.magnet_mode = True

    assert engine.start_drag("rect1", DragControl.P2, x_for(10), y_for(1.10))
    engine.pointer_move(Pane.MAIN, x_for(12), y_for(1.1148))

    assert engine.render_list()[0].p2.price == pytest.approx(1.1148)


def test_magnet_is_ignored_outside_main(engine, context, registry):
    registry.register(Pane.RSI, PaneContext(time_scale=FakeTimeScale(), series=FakeSeries()))
    context.magnet_mode = True
    engine.set_tool(ToolType.TRENDLINE)
    engine.click(Pane.RSI, x_for(2), y_for(1.1038))
    assert engine.anchor.price == pytest.approx(1.1038)


def test_position_tool_ignored_on_secondary_pane(engine, registry, sink):
    registry.register(Pane.RSI, PaneContext(time_scale=FakeTimeScale(), series=FakeSeries()))
    engine.set_tool(ToolType.LONG_POSITION)
    assert engine.click(Pane.RSI, x_for(1), y_for(1.1)) is None
    assert engine.anchor is None
    assert sink.events == []


def test_position_same_point_gets_default_bracket_and_width(engine):
    engine.set_tool(ToolType.LONG_POSITION)
    engine.click(Pane.MAIN, x_for(10), y_for(1.11))
    created = engine.click(Pane.MAIN, x_for(10), y_for(1.11))

    assert isinstance(created, LongPosition)
    entry = created.entry_price
    assert entry == pytest.approx(1.11)
    assert created.target_price == pytest.approx(entry * 1.004)
    assert created.stop_price == pytest.approx(entry * 0.998)
    assert created.p2.time == created.p1.time + 20 * BAR


def test_position_ghost_matches_committed_width(engine):
    engine.set_tool(ToolType.LONG_POSITION)
    engine.click(Pane.MAIN, x_for(10), y_for(1.11))
    engine.pointer_move(Pane.MAIN, x_for(10), y_for(1.11))

    ghost = engine.ghost()
    created = engine.click(Pane.MAIN, x_for(10), y_for(1.11))

    assert ghost.p2.time == created.p2.time == created.p1.time + 20 * BAR
    assert (ghost.target_price, ghost.stop_price) == (created.target_price, created.stop_price)


def test_angle_lock_applies_on_committing_click(engine):
    engine.set_tool(ToolType.TRENDLINE)
    engine.click(Pane.MAIN, x_for(1), y_for(1.10))
    created = engine.click(Pane.MAIN, x_for(5), y_for(1.101), Modifiers(lock_angle=True))
    assert created.p2.price == created.p1.price
    assert created.p2.time == T0 + 5 * BAR


def test_text_is_created_with_single_click(engine, context, sink):
    engine.set_tool(ToolType.TEXT)
    created = engine.click(Pane.MAIN, x_for(4), y_for(1.1))
    assert isinstance(created, TextLabel)
    assert created.text == "Text"
    assert created.font_size == 14
    assert context.active_tool is ToolType.CURSOR
    assert sink.of_type("DrawingCreated")[0].drawing == created


def test_cursor_click_clears_selection(engine, context, drawing_state, sink):
    rect = _rectangle(drawing_state)
    assert context.selected_id == rect.id
    engine.click(Pane.MAIN, 10, 10)
    assert context.selected_id is None
    assert sink.of_type("DrawingSelected")[-1].drawing_id is None


# ════════════════════════════════════════════════════════════════════
#  Drag
# ════════════════════════════════════════════════════════════════════

def test_drag_all_translates_geometry(engine, drawing_state, sink):
    rect = _rectangle(drawing_state)

    assert engine.start_drag(rect.id, DragControl.ALL, 10, 50)
    engine.pointer_move(Pane.MAIN, 30, 60)
    updated = engine.pointer_up()

    assert updated.p1.time == T0 + 7 * BAR
    assert updated.p2.time == T0 + 12 * BAR
    assert updated.p1.price == pytest.approx(1.11)
    assert updated.p2.price == pytest.approx(1.09)
    assert drawing_state.get(rect.id) == updated
    assert sink.of_type("DrawingUpdated")[0].drawing == updated


def test_drag_shows_current_geometry_before_release(engine, drawing_state):
    rect = _rectangle(drawing_state)
    engine.start_drag(rect.id, DragControl.P2, 10, 50)
    engine.pointer_move(Pane.MAIN, x_for(20), y_for(1.13))

    (rendered,) = engine.render_list()
    assert rendered.p2.time == T0 + 20 * BAR
    assert drawing_state.get(rect.id) == rect


def test_drag_without_movement_emits_nothing(engine, drawing_state, sink):
    rect = _rectangle(drawing_state)
    engine.start_drag(rect.id, DragControl.ALL, 10, 50)
    assert engine.pointer_up() is None
    assert sink.of_type("DrawingUpdated") == []


def test_locked_drawing_is_selected_but_not_dragged(engine, drawing_state, context):
    rect = _rectangle(drawing_state)
    drawing_state.toggle_lock(rect.id)
    context.selected_id = None

    assert engine.start_drag(rect.id, DragControl.ALL, 10, 50) is False
    assert context.selected_id == rect.id
    assert not engine.is_dragging


def test_duplicate_drag_moves_the_clone(engine, drawing_state, sink):
    rect = _rectangle(drawing_state)

    engine.start_drag(rect.id, DragControl.ALL, 10, 50, Modifiers(duplicate=True))
    engine.pointer_move(Pane.MAIN, 30, 60)
    clone = engine.pointer_up()

    assert clone.id != rect.id
    assert drawing_state.get(rect.id) == rect
    assert len(drawing_state.all_drawings) == 2
    assert sink.of_type("DrawingCreated")[0].drawing.id == clone.id


def test_drag_aborts_when_drawing_is_deleted(engine, drawing_state, sink):
    rect = _rectangle(drawing_state)
    engine.start_drag(rect.id, DragControl.ALL, 10, 50)
    drawing_state.delete(rect.id)

    engine.pointer_move(Pane.MAIN, 30, 60)

    assert not engine.is_dragging
    assert engine.pointer_up() is None
    assert sink.of_type("DrawingUpdated") == []


def test_drag_target_rounds_price(engine, drawing_state):
    position = drawing_state.create(LongPosition(
        id="pos1",
        p1=Point(time=T0, price=1.10),
        p2=Point(time=T0 + 10 * BAR, price=1.10),
        target_price=1.11,
        stop_price=1.095,
    ))
    engine.start_drag(position.id, DragControl.TARGET, 10, 50)
    engine.pointer_move(Pane.MAIN, 10, y_for(1.1234567))
    updated = engine.pointer_up()
    assert updated.target_price == 1.12346
    assert updated.stop_price == 1.095


def test_malformed_control_aborts_drag(engine, drawing_state):
    rect = _rectangle(drawing_state)
    engine.start_drag(rect.id, DragControl.TARGET, 10, 50)
    engine.pointer_move(Pane.MAIN, 30, 60)
    assert not engine.is_dragging


# ════════════════════════════════════════════════════════════════════
#  Teclas y edición
# ════════════════════════════════════════════════════════════════════

def test_delete_key_removes_selected(engine, drawing_state, context, sink):
    rect = _rectangle(drawing_state)
    assert engine.handle_key("Delete")
    assert rect.id not in drawing_state
    assert sink.of_type("DrawingDeleted")[0].drawing_id == rect.id
    assert context.selected_id is None
    assert engine.handle_key("Backspace") is False


def test_escape_cancels_anchor(engine):
    engine.set_tool(ToolType.RECTANGLE)
    engine.click(Pane.MAIN, 10, 10)
    assert engine.handle_key("Escape")
    assert engine.anchor is None


def test_request_edit(engine, drawing_state, sink):
    rect = _rectangle(drawing_state)
    assert engine.request_edit(GHOST_ID) is False
    assert engine.request_edit("missing") is False
    assert engine.request_edit(rect.id)
    assert sink.of_type("DrawingEditRequested")[0].drawing == rect
