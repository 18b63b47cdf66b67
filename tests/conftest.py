"""
Fixtures compartidas.

Los paneles se simulan con un eje lineal (x = índice lógico × 10 px) y una
serie lineal (y = (1.2 − precio) × 1000 px), suficientes para verificar
las conversiones del core sin librería de charting.
"""

from __future__ import annotations

from typing import Callable, List, Optional

import pytest

from chartreplay.application.ports.chart_pane import (
    IPriceSeries,
    ITimeScale,
    LogicalRange,
    PaneContext,
    RangeListener,
)
from chartreplay.application.ports.event_sink import EventHandler, IEventSink
from chartreplay.application.services.annotation_engine import AnnotationEngine
from chartreplay.application.services.coordinate_mapper import CoordinateMapper
from chartreplay.application.services.pane_registry import PaneRegistry
from chartreplay.application.state.candle_window import CandleWindow
from chartreplay.application.state.drawing_state import DrawingStateManager
from chartreplay.application.state.interaction_context import InteractionContext
from chartreplay.domain.entities.candle import Candle
from chartreplay.domain.events.domain_events import DomainEvent
from chartreplay.domain.value_objects.pane import Pane

# Múltiplo exacto de 60 y de 3600 s
T0 = 1_700_002_800
BAR = 60
BAR_PX = 10.0
TOP_PRICE = 1.2
PX_PER_PRICE = 1000.0


class FakeTimeScale(ITimeScale):
    def __init__(self, width: float = 800.0) -> None:
        self._width = width
        self.visible: Optional[LogicalRange] = None
        self.listeners: List[RangeListener] = []
        self.set_calls: List[LogicalRange] = []

    def coordinate_to_logical(self, x: float) -> Optional[float]:
        return x / BAR_PX

    def logical_to_coordinate(self, logical: float) -> Optional[float]:
        return logical * BAR_PX

    def time_to_coordinate(self, time: float) -> Optional[float]:
        return None

    def get_visible_logical_range(self) -> Optional[LogicalRange]:
        return self.visible

    def set_visible_logical_range(self, logical_range: LogicalRange) -> None:
        self.visible = logical_range
        self.set_calls.append(logical_range)
        for listener in list(self.listeners):
            listener(logical_range)

    def subscribe_visible_range_change(self, listener: RangeListener) -> None:
        self.listeners.append(listener)

    def unsubscribe_visible_range_change(self, listener: RangeListener) -> None:
        self.listeners.remove(listener)

    def width(self) -> float:
        return self._width


class FakeSeries(IPriceSeries):
    def __init__(self, height: float = 600.0) -> None:
        self._height = height

    def price_to_coordinate(self, price: float) -> Optional[float]:
        return (TOP_PRICE - price) * PX_PER_PRICE

    def coordinate_to_price(self, y: float) -> Optional[float]:
        return TOP_PRICE - y / PX_PER_PRICE

    def height(self) -> float:
        return self._height


class RecordingSink(IEventSink):
    """Guarda todo lo publicado."""

    def __init__(self) -> None:
        self.events: List[DomainEvent] = []
        self._handlers: dict = {}

    def publish(self, event: DomainEvent) -> None:
        self.events.append(event)
        for handler in self._handlers.get(event.event_type, []):
            handler(event)

    def register_handler(self, event_type: str, handler: EventHandler) -> None:
        self._handlers.setdefault(event_type, []).append(handler)

    def of_type(self, name: str) -> List[DomainEvent]:
        return [e for e in self.events if e.event_type == name]

    def types(self) -> List[str]:
        return [e.event_type for e in self.events]


def y_for(price: float) -> float:
    return (TOP_PRICE - price) * PX_PER_PRICE


def x_for(index: float) -> float:
    return index * BAR_PX


def build_candles(
    count: int,
    start: int = T0,
    interval: int = BAR,
    base: float = 1.1,
    step: float = 0.001,
) -> List[Candle]:
    """Velas alcistas regulares: open = base + i·step, rango ±0.002."""
    candles = []
    for i in range(count):
        open_ = round(base + i * step, 5)
        candles.append(Candle(
            time=start + i * interval,
            open=open_,
            high=round(open_ + 0.002, 5),
            low=round(open_ - 0.002, 5),
            close=round(open_ + 0.001, 5),
            volume=10.0,
        ))
    return candles


@pytest.fixture
def make_candles() -> Callable[..., List[Candle]]:
    return build_candles


@pytest.fixture
def sink() -> RecordingSink:
    return RecordingSink()


@pytest.fixture
def window() -> CandleWindow:
    win = CandleWindow(symbol="EURUSD", timeframe=None, default_interval=BAR)
    win.replace(build_candles(50), [])
    return win


@pytest.fixture
def context(window: CandleWindow) -> InteractionContext:
    return InteractionContext(window=window)


@pytest.fixture
def registry() -> PaneRegistry:
    reg = PaneRegistry()
    reg.register(Pane.MAIN, PaneContext(time_scale=FakeTimeScale(), series=FakeSeries()))
    return reg


@pytest.fixture
def mapper(window: CandleWindow) -> CoordinateMapper:
    return CoordinateMapper(window)


@pytest.fixture
def drawing_state(context: InteractionContext) -> DrawingStateManager:
    return DrawingStateManager(context)


@pytest.fixture
def engine(context, registry, mapper, drawing_state, sink) -> AnnotationEngine:
    return AnnotationEngine(context, registry, mapper, drawing_state, sink)
