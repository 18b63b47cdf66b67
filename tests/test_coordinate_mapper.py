import pytest

from chartreplay.application.ports.chart_pane import PaneContext
from chartreplay.application.services.coordinate_mapper import CoordinateMapper, round_half_up
from chartreplay.application.state.candle_window import CandleWindow
from chartreplay.domain.entities.candle import Candle
from chartreplay.domain.exceptions.domain_errors import CoordinateUnresolvableError

from conftest import BAR, T0, FakeSeries, FakeTimeScale, build_candles


def _window(times):
    win = CandleWindow(symbol="EURUSD", timeframe=None, default_interval=60)
    win.replace([Candle(time=t, open=1.0, high=1.0, low=1.0, close=1.0) for t in times], [])
    return win


def test_gap_wider_than_tolerance_projects_by_bar():
    mapper = CoordinateMapper(_window([0, 7200]))
    assert mapper.time_to_logical(3600) == pytest.approx(60.0)


def test_regular_gap_interpolates_proportionally():
    mapper = CoordinateMapper(_window([0, 60, 120]))
    assert mapper.time_to_logical(30) == pytest.approx(0.5)
    assert mapper.time_to_logical(120) == 2.0


def test_time_outside_window_extrapolates():
    mapper = CoordinateMapper(_window([600, 660, 720]))
    assert mapper.time_to_logical(480) == pytest.approx(-2.0)
    assert mapper.time_to_logical(840) == pytest.approx(4.0)


def test_empty_window_returns_none():
    mapper = CoordinateMapper(_window([]))
    assert mapper.time_to_logical(100) is None
    assert mapper.logical_to_time(3) is None


def test_logical_to_time_rounds_half_up_and_extrapolates():
    mapper = CoordinateMapper(_window([600, 660, 720]))
    assert mapper.logical_to_time(0.5) == 660
    assert mapper.logical_to_time(0.49) == 600
    assert mapper.logical_to_time(4) == 720 + 2 * 60
    assert mapper.logical_to_time(-1) == 540


def test_round_half_up():
    assert round_half_up(2.5) == 3
    assert round_half_up(-0.5) == 0
    assert round_half_up(1.49) == 1


def test_pixels_increase_with_time(window):
    mapper = CoordinateMapper(window)
    ctx = PaneContext(time_scale=FakeTimeScale(), series=FakeSeries())
    xs = [mapper.time_to_pixel(ctx, c.time) for c in window.candles]
    assert all(a < b for a, b in zip(xs, xs[1:]))


def test_pixel_to_point_round_trip_on_bar(window):
    mapper = CoordinateMapper(window)
    ctx = PaneContext(time_scale=FakeTimeScale(), series=FakeSeries())
    point = mapper.pixel_to_point(ctx, 30, 100)
    assert point.time == T0 + 3 * BAR
    assert point.price == pytest.approx(1.1)


def test_missing_pane_returns_none_and_require_raises(window):
    mapper = CoordinateMapper(window)
    assert mapper.time_to_pixel(None, T0) is None
    assert mapper.price_to_pixel(None, 1.1) is None
    assert mapper.pixel_to_point(None, 10, 10) is None
    with pytest.raises(CoordinateUnresolvableError):
        mapper.require_x(None, T0)


def test_nan_price_is_unresolvable(window):
    mapper = CoordinateMapper(window)
    ctx = PaneContext(time_scale=FakeTimeScale(), series=FakeSeries())
    assert mapper.price_to_pixel(ctx, float("nan")) is None
    with pytest.raises(CoordinateUnresolvableError):
        mapper.require_y(ctx, None)


def test_interval_follows_window_default():
    win = CandleWindow(timeframe=None, default_interval=60)
    win.replace(build_candles(3), [])
    assert CoordinateMapper(win).interval == 60


def test_hidden_candles_do_not_leak_times():
    # hueco de fin de semana aún no revelado tras la vela 2
    win = _window([0, 60, 120, 7200, 7260])
    win.reveal_through(2)
    mapper = CoordinateMapper(win)

    assert mapper.logical_to_time(3) == 180
    assert mapper.time_to_logical(7200) == pytest.approx(120.0)
