"""Application state (single-owner, in-memory)."""
from chartreplay.application.state.candle_window import CandleWindow
from chartreplay.application.state.drawing_state import DrawingStateManager, new_drawing_id
from chartreplay.application.state.interaction_context import InteractionContext
from chartreplay.application.state.simulation_state import SimulationState

__all__ = [
    "CandleWindow",
    "DrawingStateManager",
    "new_drawing_id",
    "InteractionContext",
    "SimulationState",
]
