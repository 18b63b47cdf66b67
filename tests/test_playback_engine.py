import asyncio
from datetime import datetime, timezone
from types import SimpleNamespace

import pytest

from chartreplay.application.services.playback_engine import (
    PlaybackEngine,
    PlaybackStatus,
    ReplayConfig,
    parse_datetime,
)
from chartreplay.application.state.candle_window import CandleWindow
from chartreplay.application.state.simulation_state import SimulationState
from chartreplay.domain.value_objects.timeframe import Timeframe
from chartreplay.infrastructure.external.in_memory_candle_provider import InMemoryCandleProvider

from conftest import T0, RecordingSink, build_candles

M5 = 300
CONFIG = ReplayConfig(
    visible_candles=20,
    warmup_buffer=10,
    min_warmup=5,
    forward_buffer_threshold=5,
    forward_batch_size=10,
    history_batch_size=10,
)


def bar(i: int) -> int:
    return T0 + i * M5


def _engine(provider, sink=None):
    return PlaybackEngine(
        provider,
        sink or RecordingSink(),
        CandleWindow(),
        SimulationState(),
        CONFIG,
    )


def _provider(count=200, latency=0.0):
    provider = InMemoryCandleProvider(latency=latency)
    provider.add_series("EURUSD", Timeframe.M5, build_candles(count, interval=M5))
    return provider


class _RangeLimitedProvider(InMemoryCandleProvider):
    """Solo responde velas dentro de `span` segundos del instante pedido."""

    def __init__(self, span: int) -> None:
        super().__init__()
        self.span = span

    async def fetch_context_candles(self, symbol, timeframe, before_time, count, cancel=None):
        candles = await super().fetch_context_candles(symbol, timeframe, before_time, count, cancel)
        return [c for c in candles if c.time >= before_time - self.span]

    async def fetch_future_candles(self, symbol, timeframe, after_time, count, cancel=None):
        candles = await super().fetch_future_candles(symbol, timeframe, after_time, count, cancel)
        return [c for c in candles if c.time <= after_time + self.span]


class _BrokenProvider(InMemoryCandleProvider):
    async def fetch_context_candles(self, symbol, timeframe, before_time, count, cancel=None):
        raise RuntimeError("backend caído")


# ════════════════════════════════════════════════════════════════════
#  Carga
# ════════════════════════════════════════════════════════════════════

def test_load_splits_warmup_and_visible():
    sink = RecordingSink()
    engine = _engine(_provider(), sink)

    loaded = asyncio.run(engine.load("EURUSD", Timeframe.M5, bar(50), bar(55) + 100))

    assert loaded
    assert engine.status is PlaybackStatus.READY
    window = engine.window
    assert [c.time for c in window.warmup] == [bar(i) for i in range(26, 50)]
    assert window.candles[0].time == bar(50)
    assert window.candles[-1].time == bar(75)
    assert engine.state.current_index == 5
    assert engine.state.max_index == 26
    assert engine.state.current_sim_time == bar(55) + 100
    statuses = [e.status for e in sink.of_type("PlaybackStatusChanged")]
    assert statuses == ["LOADING", "READY"]


def test_in_progress_candle_is_resynthesized():
    engine = _engine(_provider())
    asyncio.run(engine.load("EURUSD", Timeframe.M5, bar(50), bar(55) + 100))

    active = engine.current_candle
    assert active.close == active.open
    assert active.high == active.open
    assert active.low == active.open
    assert engine.live_price == active.open


def test_closed_candle_is_kept_untouched():
    engine = _engine(_provider())
    asyncio.run(engine.load("EURUSD", Timeframe.M5, bar(50), bar(56) - 1))
    assert engine.current_candle == build_candles(56, interval=M5)[55]


def test_short_warmup_is_padded_with_synthetic_candles():
    engine = _engine(_provider())
    asyncio.run(engine.load("EURUSD", Timeframe.M5, bar(2), bar(3) - 1))

    warmup = engine.window.warmup
    assert len(warmup) == CONFIG.min_warmup
    assert [c.synthetic for c in warmup] == [True, True, True, False, False]
    assert [c.time for c in warmup[:3]] == [bar(-3), bar(-2), bar(-1)]
    first = warmup[3]
    for pad in warmup[:3]:
        assert (pad.open, pad.high, pad.low, pad.close) == (first.open, first.high, first.low, first.close)
    assert engine.window.candles[0].time == bar(2)
    assert engine.state.current_index == 0


def test_falls_back_to_first_available_candle():
    provider = _RangeLimitedProvider(span=86400)
    provider.add_series("EURUSD", Timeframe.M5, build_candles(200, interval=M5))
    engine = _engine(provider)

    start = T0 - 10 * 86400
    assert asyncio.run(engine.load("EURUSD", Timeframe.M5, start))

    assert "first" in [call[0] for call in provider.calls]
    assert engine.window.candles[0].time == T0
    assert len(engine.window) == CONFIG.visible_candles
    assert all(c.synthetic for c in engine.window.warmup)
    assert engine.state.current_index == 0
    assert engine.state.current_sim_time == T0 + M5


def test_empty_dataset_sets_error_and_publishes():
    sink = RecordingSink()
    engine = _engine(InMemoryCandleProvider(), sink)

    assert asyncio.run(engine.load("EURUSD", Timeframe.M5, T0)) is False

    assert engine.status is PlaybackStatus.ERROR
    (event,) = sink.of_type("DataUnavailable")
    assert event.symbol == "EURUSD"
    assert event.timeframe == "M5"
    assert engine.window.is_empty()


def test_no_candles_after_session_start_is_unavailable():
    sink = RecordingSink()
    engine = _engine(_provider(count=30), sink)
    after_end = bar(40)

    assert asyncio.run(engine.load("EURUSD", Timeframe.M5, after_end, after_end)) is False
    assert engine.status is PlaybackStatus.ERROR
    assert len(sink.of_type("DataUnavailable")) == 1


def test_provider_failure_sets_error():
    sink = RecordingSink()
    engine = _engine(_BrokenProvider(), sink)

    assert asyncio.run(engine.load("EURUSD", Timeframe.M5, T0)) is False
    assert engine.status is PlaybackStatus.ERROR
    assert "backend caído" in sink.of_type("DataUnavailable")[0].message


def test_newer_load_supersedes_pending_one():
    provider = _provider(latency=0.01)
    provider.add_series("GBPUSD", Timeframe.M5, build_candles(200, interval=M5, base=1.3))
    engine = _engine(provider)

    async def scenario():
        first = asyncio.create_task(engine.load("EURUSD", Timeframe.M5, bar(50), bar(55)))
        await asyncio.sleep(0)
        second = await engine.load("GBPUSD", Timeframe.M5, bar(60), bar(60))
        return await first, second

    first, second = asyncio.run(scenario())

    assert first is False
    assert second is True
    assert engine.generation == 2
    assert engine.window.symbol == "GBPUSD"
    assert engine.window.candles[0].open > 1.25
    assert engine.status is PlaybackStatus.READY


# ════════════════════════════════════════════════════════════════════
#  Reproducción
# ════════════════════════════════════════════════════════════════════

def test_tick_advances_clock_and_stops_at_end():
    engine = _engine(_provider())
    asyncio.run(engine.load("EURUSD", Timeframe.M5, bar(50), bar(55) + 100))
    engine.state.is_playing = True

    assert engine.tick()
    candle = engine.current_candle
    assert candle.time == bar(56)
    assert engine.state.current_sim_time == bar(57)
    assert engine.live_price == candle.close

    while engine.tick():
        pass
    assert engine.state.current_index == engine.state.max_index - 1
    assert engine.state.is_playing is False


def test_window_is_revealed_up_to_current_candle():
    engine = _engine(_provider())
    asyncio.run(engine.load("EURUSD", Timeframe.M5, bar(50), bar(55) + 100))

    assert engine.window.revealed_count == 6
    assert engine.window.revealed_candles[-1] == engine.current_candle

    engine.tick()
    assert engine.window.revealed_count == 7
    assert engine.window.revealed_candles[-1].time == bar(56)


def test_change_listeners_fire_on_each_mutation():
    engine = _engine(_provider())
    seen = []
    engine.add_change_listener(lambda: seen.append(engine.state.current_index))

    asyncio.run(engine.load("EURUSD", Timeframe.M5, bar(50), bar(55) + 100))
    assert seen == [5]

    engine.set_live_price(engine.current_candle.open + 0.0005)
    assert asyncio.run(engine.step())
    assert seen == [5, 5, 6]

    asyncio.run(engine.load_more_history())
    assert len(seen) == 4
    assert seen[-1] == engine.state.current_index


def test_step_buffers_more_candles_near_the_end():
    provider = _provider()
    engine = _engine(provider)
    asyncio.run(engine.load("EURUSD", Timeframe.M5, bar(50), bar(55) + 100))
    engine.state.current_index = 21

    assert asyncio.run(engine.step())

    assert engine.state.current_index == 22
    assert engine.window.candles[-1].time == bar(85)
    assert engine.state.max_index == 36
    assert provider.calls[-1] == ("future", "EURUSD", "M5", bar(75), CONFIG.forward_batch_size)


def test_forward_buffer_skipped_when_enough_candles_remain():
    provider = _provider()
    engine = _engine(provider)
    asyncio.run(engine.load("EURUSD", Timeframe.M5, bar(50), bar(55) + 100))
    calls = len(provider.calls)

    assert asyncio.run(engine.ensure_forward_buffer()) == 0
    assert len(provider.calls) == calls


def test_play_runs_until_data_ends():
    sink = RecordingSink()
    engine = _engine(_provider(count=80), sink)

    async def scenario():
        await engine.load("EURUSD", Timeframe.M5, bar(50), bar(50) + 100)
        engine.set_speed(1)
        assert await engine.play()
        assert engine.status is PlaybackStatus.PLAYING

        async def wait_ready():
            while engine.status is PlaybackStatus.PLAYING:
                await asyncio.sleep(0.005)

        await asyncio.wait_for(wait_ready(), timeout=5)
        await engine.stop()

    asyncio.run(scenario())

    assert engine.status is PlaybackStatus.READY
    assert len(engine.window) == 30
    assert engine.state.current_index == 29
    assert engine.current_candle.time == bar(79)
    statuses = [e.status for e in sink.of_type("PlaybackStatusChanged")]
    assert statuses[-2:] == ["PLAYING", "READY"]


def test_pause_stops_ticker():
    engine = _engine(_provider())

    async def scenario():
        await engine.load("EURUSD", Timeframe.M5, bar(50), bar(50) + 100)
        engine.set_speed(1000)
        await engine.play()
        await engine.pause()

    asyncio.run(scenario())
    assert engine.status is PlaybackStatus.READY
    assert engine.state.is_playing is False
    assert engine.state.current_index == 0


def test_play_requires_loaded_window():
    engine = _engine(_provider())
    assert asyncio.run(engine.play()) is False
    assert engine.status is PlaybackStatus.IDLE


# ════════════════════════════════════════════════════════════════════
#  Backfill
# ════════════════════════════════════════════════════════════════════

def test_load_more_history_keeps_reference_candle():
    provider = _provider()
    engine = _engine(provider)
    asyncio.run(engine.load("EURUSD", Timeframe.M5, bar(100), bar(100) + 100))
    assert engine.window.oldest_real_time() == bar(71)
    reference = engine.current_candle.time

    added = asyncio.run(engine.load_more_history())

    assert provider.calls[-1][0] == "history"
    assert added == 39
    times = [c.time for c in engine.window.candles]
    assert times == sorted(set(times))
    assert times[0] == bar(61)
    assert [c.time for c in engine.window.warmup] == [bar(i) for i in range(51, 61)]
    assert engine.current_candle.time == reference
    assert engine.state.max_index == len(engine.window)


def test_repeated_backfill_stays_deduplicated():
    engine = _engine(_provider())
    asyncio.run(engine.load("EURUSD", Timeframe.M5, bar(150), bar(150) + 100))
    reference = engine.current_candle.time

    added = [asyncio.run(engine.load_more_history()) for _ in range(3)]

    assert all(n > 0 for n in added)
    times = [c.time for c in engine.full_series()]
    assert times == sorted(set(times))
    visible = [c.time for c in engine.window.candles]
    assert visible == sorted(set(visible))
    assert engine.current_candle.time == reference
    assert engine.window.revealed_candles[-1].time == reference


def test_load_more_history_at_dataset_start():
    engine = _engine(_provider())
    asyncio.run(engine.load("EURUSD", Timeframe.M5, bar(2), bar(3) - 1))
    before = len(engine.window)

    assert asyncio.run(engine.load_more_history()) == 0
    assert len(engine.window) == before


# ════════════════════════════════════════════════════════════════════
#  Saltos y derivados
# ════════════════════════════════════════════════════════════════════

def test_jump_to_date_reloads_at_target():
    engine = _engine(_provider())
    asyncio.run(engine.load("EURUSD", Timeframe.M5, bar(50), bar(55)))

    assert asyncio.run(engine.jump_to_date(bar(150) + 10))

    assert engine.current_candle.time == bar(150)
    assert engine.state.current_sim_time == bar(150) + 10
    assert engine.generation == 2


def test_jump_to_invalid_date_is_rejected():
    engine = _engine(_provider())
    asyncio.run(engine.load("EURUSD", Timeframe.M5, bar(50), bar(55)))
    assert asyncio.run(engine.jump_to_date("no es una fecha")) is False
    assert engine.generation == 1


def test_jump_to_first_data():
    provider = _provider()
    engine = _engine(provider)
    asyncio.run(engine.load("EURUSD", Timeframe.M5, T0, bar(100)))

    assert asyncio.run(engine.jump_to_first_data())

    assert "first" in [call[0] for call in provider.calls]
    assert engine.current_candle.time == T0
    assert engine.state.current_index == 0


def test_set_live_price_updates_forming_candle():
    engine = _engine(_provider())
    asyncio.run(engine.load("EURUSD", Timeframe.M5, bar(50), bar(55) + 100))

    engine.set_live_price(1.2)

    candle = engine.current_candle
    assert candle.close == 1.2
    assert candle.high == 1.2
    assert candle.low == candle.open
    assert engine.trading_price == 1.2


def test_derived_values():
    engine = _engine(_provider())
    asyncio.run(engine.load("EURUSD", Timeframe.M5, bar(50), bar(55) + 100))

    assert engine.digits() == 5
    assert engine.digits(custom_digits=2) == 2
    assert len(engine.current_slice()) == 6
    assert engine.last_time == bar(55)
    assert len(engine.full_series()) == 24 + 26

    points = [SimpleNamespace(time=bar(i), value=i) for i in range(40, 80)]
    clipped = engine.clip_indicator(points)
    assert [p.value for p in clipped] == list(range(50, 56))
    assert engine.to_dict()["status"] == "READY"


@pytest.mark.parametrize("value, expected", [
    (1_700_000_000, 1_700_000_000.0),
    ("1700000000", 1_700_000_000.0),
    ("2024-01-02 00:00", datetime(2024, 1, 2, tzinfo=timezone.utc).timestamp()),
    ("2024-01-02T09:00:00+07:00", datetime(2024, 1, 2, 2, tzinfo=timezone.utc).timestamp()),
    ("mañana", None),
])
def test_parse_datetime(value, expected):
    assert parse_datetime(value) == expected
