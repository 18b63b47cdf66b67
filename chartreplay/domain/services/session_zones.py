"""
ChartReplay – Domain Service: Session Zone Calculator
=======================================================
Cajas de "kill zones" (sesiones Asia / Londres / NY) por día de calendario.

ALGORITMO (por cada día en UTC+7 con velas en el rango visible):
  1. start/end de la sesión → epoch; si end <= start, end += 1 día.
  2. Velas que solapan [start, end): time + bar > start and time < end.
  3. Sin velas → sin caja.
  4. high = max(high), low = min(low).
  5. Barras >= 1h: la caja se ajusta al inicio de la primera vela y al
     cierre de la última.
Timeframes >= 4h no dibujan cajas.
"""

from __future__ import annotations

import math
from dataclasses import dataclass
from datetime import date, datetime, timedelta, timezone
from typing import List, Sequence

from chartreplay.domain.entities.candle import Candle
from chartreplay.domain.value_objects.kill_zone import KillZoneConfig, SessionConfig

_DAY_SECONDS = 86400


@dataclass
class SessionZoneConfig:
    """Parámetros del calculador."""

    utc_offset_hours: int = 7
    max_interval_seconds: int = 14400
    snap_interval_seconds: int = 3600


@dataclass(frozen=True, slots=True)
class SessionZone:
    """Caja calculada de una sesión en un día concreto."""

    drawing_id: str
    session_key: str
    day: str         # YYYY-MM-DD en la zona de referencia
    label: str
    color: str
    start: int
    end: int
    high: float
    low: float

    @property
    def key(self) -> str:
        return f"{self.drawing_id}-{self.day}-{self.session_key}"

    @property
    def midline(self) -> float:
        return (self.high + self.low) / 2

    def to_dict(self) -> dict:
        return {
            "drawing_id": self.drawing_id,
            "session": self.session_key,
            "day": self.day,
            "label": self.label,
            "color": self.color,
            "start": self.start,
            "end": self.end,
            "high": self.high,
            "low": self.low,
        }


class SessionZoneCalculator:
    """
    Calculador de cajas de sesión.

    NO tiene estado: recibe la ventana de velas y el rango visible
    en cada llamada.
    """

    def __init__(self, config: SessionZoneConfig | None = None):
        self._config = config or SessionZoneConfig()
        self._tz = timezone(timedelta(hours=self._config.utc_offset_hours))

    @property
    def tz(self) -> timezone:
        return self._tz

    def is_suppressed(self, interval: int) -> bool:
        return interval >= self._config.max_interval_seconds

    def session_bounds(self, day: date, session: SessionConfig) -> tuple[int, int]:
        """Epoch [start, end) de una sesión para un día de la zona de referencia."""
        sh, sm = session.start_hm
        eh, em = session.end_hm
        start = int(datetime(day.year, day.month, day.day, sh, sm, tzinfo=self._tz).timestamp())
        end = int(datetime(day.year, day.month, day.day, eh, em, tzinfo=self._tz).timestamp())
        if end <= start:
            end += _DAY_SECONDS
        return start, end

    def visible_days(self, candles: Sequence[Candle], start_idx: int, end_idx: int) -> List[date]:
        """Días de calendario (zona de referencia) de las velas visibles, en orden."""
        days: List[date] = []
        seen = set()
        for candle in candles[start_idx:end_idx + 1]:
            day = datetime.fromtimestamp(candle.time, tz=self._tz).date()
            if day not in seen:
                seen.add(day)
                days.append(day)
        return days

    def compute(
        self,
        drawing_id: str,
        config: KillZoneConfig,
        candles: Sequence[Candle],
        interval: int,
        visible_from: float,
        visible_to: float,
    ) -> List[SessionZone]:
        """
        Calcula todas las cajas del rango lógico visible.

        Args:
            drawing_id: Id del dibujo KILLZONE dueño de las cajas
            config: Sesiones y flags del dibujo
            candles: Ventana de velas (orden ascendente)
            interval: Segundos por barra
            visible_from / visible_to: Rango lógico visible del panel
        """
        if not candles or self.is_suppressed(interval):
            return []

        start_idx = max(0, math.floor(visible_from))
        end_idx = min(len(candles) - 1, math.ceil(visible_to))
        if start_idx > end_idx:
            return []

        zones: List[SessionZone] = []
        for day in self.visible_days(candles, start_idx, end_idx):
            for key, session in config.sessions():
                if not session.enabled:
                    continue
                zone = self._zone_for(drawing_id, key, session, day, candles, interval)
                if zone is not None:
                    zones.append(zone)
        return zones

    # ─── Internos ───────────────────────────────────────────────────────

    def _zone_for(
        self,
        drawing_id: str,
        key: str,
        session: SessionConfig,
        day: date,
        candles: Sequence[Candle],
        interval: int,
    ) -> SessionZone | None:
        start, end = self.session_bounds(day, session)
        relevant = [c for c in candles if c.time + interval > start and c.time < end]
        if not relevant:
            return None

        high = max(c.high for c in relevant)
        low = min(c.low for c in relevant)
        if interval >= self._config.snap_interval_seconds:
            start = relevant[0].time
            end = relevant[-1].time + interval

        return SessionZone(
            drawing_id=drawing_id,
            session_key=key,
            day=day.isoformat(),
            label=session.label,
            color=session.color,
            start=start,
            end=end,
            high=high,
            low=low,
        )
