"""Domain events."""
from chartreplay.domain.events.domain_events import (
    DataUnavailable,
    DomainEvent,
    DrawingCreated,
    DrawingDeleted,
    DrawingEditRequested,
    DrawingSelected,
    DrawingUpdated,
    HistoryLoadRequested,
    IndicatorRemoveRequested,
    OrderEntryModifyRequested,
    PlaybackStatusChanged,
    TradeDragEnded,
    TradeDragProgress,
    TradeModifyRequested,
)

__all__ = [
    "DomainEvent",
    "DrawingCreated",
    "DrawingUpdated",
    "DrawingEditRequested",
    "DrawingSelected",
    "DrawingDeleted",
    "TradeModifyRequested",
    "OrderEntryModifyRequested",
    "TradeDragProgress",
    "TradeDragEnded",
    "HistoryLoadRequested",
    "IndicatorRemoveRequested",
    "PlaybackStatusChanged",
    "DataUnavailable",
]
