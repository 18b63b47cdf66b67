"""Domain entities."""
from chartreplay.domain.entities.candle import Candle
from chartreplay.domain.entities.drawing import (
    DEFAULT_FIB_LEVELS,
    GHOST_ID,
    Drawing,
    DrawingSettings,
    FibLevel,
    FibRetracement,
    KillZoneDrawing,
    LineStyle,
    LongPosition,
    PositionDrawing,
    RectangleDrawing,
    ShortPosition,
    TextLabel,
    ToolType,
    TrendLine,
    drawing_class_for,
)
from chartreplay.domain.entities.trade import OrderSide, OrderStatus, OrderType, Trade

__all__ = [
    "Candle",
    "DEFAULT_FIB_LEVELS",
    "GHOST_ID",
    "Drawing",
    "DrawingSettings",
    "FibLevel",
    "FibRetracement",
    "KillZoneDrawing",
    "LineStyle",
    "LongPosition",
    "PositionDrawing",
    "RectangleDrawing",
    "ShortPosition",
    "TextLabel",
    "ToolType",
    "TrendLine",
    "drawing_class_for",
    "OrderSide",
    "OrderStatus",
    "OrderType",
    "Trade",
]
