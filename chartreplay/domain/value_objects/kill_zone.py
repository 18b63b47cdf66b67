"""
ChartReplay – Domain Value Object: Kill Zone Config
=====================================================
Configuración de las sesiones ("kill zones") que se resaltan cada día.

Las horas están expresadas en la zona horaria de referencia (UTC+7).
Una sesión cuyo fin es <= a su inicio cruza la medianoche (p.ej. NY 19:00–04:00).
"""

from __future__ import annotations

from dataclasses import dataclass, field, replace
from typing import Tuple


@dataclass(frozen=True)
class SessionConfig:
    """Ventana diaria de una sesión."""

    enabled: bool
    label: str
    color: str
    start: str  # HH:MM
    end: str    # HH:MM

    @staticmethod
    def _parse(hhmm: str) -> Tuple[int, int]:
        hour, minute = hhmm.split(":")
        return int(hour), int(minute)

    @property
    def start_hm(self) -> Tuple[int, int]:
        return self._parse(self.start)

    @property
    def end_hm(self) -> Tuple[int, int]:
        return self._parse(self.end)

    def to_dict(self) -> dict:
        return {
            "enabled": self.enabled,
            "label": self.label,
            "color": self.color,
            "start": self.start,
            "end": self.end,
        }


@dataclass(frozen=True)
class KillZoneConfig:
    """Sesiones + flags de presentación de la herramienta KILLZONE."""

    asian: SessionConfig = field(default_factory=lambda: SessionConfig(
        enabled=True, label="Asian", color="#e91e63", start="06:00", end="11:00",
    ))
    london: SessionConfig = field(default_factory=lambda: SessionConfig(
        enabled=True, label="London", color="#00bcd4", start="14:00", end="17:00",
    ))
    ny: SessionConfig = field(default_factory=lambda: SessionConfig(
        enabled=True, label="New York", color="#ff5d00", start="19:00", end="04:00",
    ))
    show_high_low_lines: bool = False
    show_average: bool = False
    extend: bool = False
    show_label: bool = True
    opacity: float = 0.15

    def sessions(self) -> Tuple[Tuple[str, SessionConfig], ...]:
        """Sesiones en orden fijo de evaluación."""
        return (("asian", self.asian), ("london", self.london), ("ny", self.ny))

    def with_session(self, key: str, session: SessionConfig) -> "KillZoneConfig":
        return replace(self, **{key: session})

    def to_dict(self) -> dict:
        return {
            "asian": self.asian.to_dict(),
            "london": self.london.to_dict(),
            "ny": self.ny.to_dict(),
            "show_high_low_lines": self.show_high_low_lines,
            "show_average": self.show_average,
            "extend": self.extend,
            "show_label": self.show_label,
            "opacity": self.opacity,
        }
