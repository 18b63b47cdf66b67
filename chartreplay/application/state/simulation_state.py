"""
ChartReplay – Simulation State
================================
Estado del reloj simulado del replay.

INVARIANTES:
  - 0 <= current_index < max_index cuando max_index > 0.
  - Un avance que alcanzaría max_index NO avanza y detiene la reproducción.
  - current_sim_time = cierre de la vela actual mientras se reproduce/avanza.
"""

from __future__ import annotations

from dataclasses import dataclass


@dataclass
class SimulationState:
    """Estado mutable del replay (un solo dueño: PlaybackEngine)."""

    is_playing: bool = False
    speed: int = 500  # ms por tick
    current_index: int = 0
    max_index: int = 0
    current_sim_time: float = 0.0

    def can_advance(self) -> bool:
        return self.current_index + 1 < self.max_index

    def advance(self) -> bool:
        """
        Avanza un índice.

        Returns:
            False (y is_playing=False) si el avance violaría el invariante.
        """
        if not self.can_advance():
            self.is_playing = False
            return False
        self.current_index += 1
        return True

    def resize(self, max_index: int) -> None:
        """Ajusta max_index tras cambiar la ventana, manteniendo el invariante."""
        self.max_index = max_index
        if max_index == 0:
            self.current_index = 0
        elif self.current_index >= max_index:
            self.current_index = max_index - 1

    def to_dict(self) -> dict:
        return {
            "is_playing": self.is_playing,
            "speed": self.speed,
            "current_index": self.current_index,
            "max_index": self.max_index,
            "current_sim_time": self.current_sim_time,
        }
