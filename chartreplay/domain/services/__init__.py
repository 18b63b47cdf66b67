"""Domain services (pure, no I/O)."""
from chartreplay.domain.services.candle_resampler import align_time, resample_candles
from chartreplay.domain.services.position_bracket import BracketConfig, compute_bracket
from chartreplay.domain.services.price_precision import (
    display_digits,
    drag_decimals,
    pip_size,
    round_price,
)
from chartreplay.domain.services.session_zones import (
    SessionZone,
    SessionZoneCalculator,
    SessionZoneConfig,
)
from chartreplay.domain.services.snap_resolver import constrain_angle, nearest_ohlc, snap_price

__all__ = [
    "align_time",
    "resample_candles",
    "BracketConfig",
    "compute_bracket",
    "display_digits",
    "drag_decimals",
    "pip_size",
    "round_price",
    "SessionZone",
    "SessionZoneCalculator",
    "SessionZoneConfig",
    "constrain_angle",
    "nearest_ohlc",
    "snap_price",
]
