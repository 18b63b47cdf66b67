"""Domain value objects."""
from chartreplay.domain.value_objects.point import Point
from chartreplay.domain.value_objects.timeframe import Timeframe, TIMEFRAME_SECONDS
from chartreplay.domain.value_objects.pane import Pane
from chartreplay.domain.value_objects.kill_zone import KillZoneConfig, SessionConfig

__all__ = [
    "Point",
    "Timeframe",
    "TIMEFRAME_SECONDS",
    "Pane",
    "KillZoneConfig",
    "SessionConfig",
]
