"""External systems - candle data sources and event delivery."""

from chartreplay.infrastructure.external.callback_event_bus import CallbackEventBus
from chartreplay.infrastructure.external.csv_candle_provider import CsvCandleProvider
from chartreplay.infrastructure.external.in_memory_candle_provider import InMemoryCandleProvider

__all__ = [
    "CallbackEventBus",
    "CsvCandleProvider",
    "InMemoryCandleProvider",
]
