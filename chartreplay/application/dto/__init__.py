"""Data transfer objects."""
from chartreplay.application.dto.draw_primitives import (
    DASH_PATTERNS,
    DrawPrimitive,
    HandlePrimitive,
    LinePrimitive,
    RectPrimitive,
    TextPrimitive,
)

__all__ = [
    "DASH_PATTERNS",
    "DrawPrimitive",
    "HandlePrimitive",
    "LinePrimitive",
    "RectPrimitive",
    "TextPrimitive",
]
