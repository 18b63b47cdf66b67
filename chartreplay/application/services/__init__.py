"""Application services: orquestación del replay y de la interacción."""
from chartreplay.application.services.annotation_engine import (
    AnnotationEngine,
    AnnotationState,
    DragControl,
    Modifiers,
)
from chartreplay.application.services.chart_workspace import ChartWorkspace
from chartreplay.application.services.coordinate_mapper import CoordinateMapper
from chartreplay.application.services.overlay_renderer import OverlayRenderer
from chartreplay.application.services.pane_registry import PaneRegistry
from chartreplay.application.services.playback_engine import (
    PlaybackEngine,
    PlaybackStatus,
    ReplayConfig,
)
from chartreplay.application.services.trade_overlay import (
    AddAffordance,
    TradeLine,
    TradeLineKind,
    TradeOverlayController,
)

__all__ = [
    "AnnotationEngine",
    "AnnotationState",
    "DragControl",
    "Modifiers",
    "ChartWorkspace",
    "CoordinateMapper",
    "OverlayRenderer",
    "PaneRegistry",
    "PlaybackEngine",
    "PlaybackStatus",
    "ReplayConfig",
    "AddAffordance",
    "TradeLine",
    "TradeLineKind",
    "TradeOverlayController",
]
