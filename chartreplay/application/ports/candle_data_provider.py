"""
ChartReplay – Application Port: Candle Data Provider
======================================================
Interfaz para obtener rangos de velas históricas.

El PlaybackEngine pide rangos; la infraestructura decide CÓMO
obtenerlos (memoria, CSV, API remota, etc.)

CONTRATO:
- Todas las listas vienen en orden ascendente de tiempo.
- Lista vacía = no hay más datos en esa dirección.
- Si el token está cancelado, el provider lanza FetchCancelledError.
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from typing import List, Optional

from chartreplay.application.cancellation import CancellationToken
from chartreplay.domain.entities.candle import Candle
from chartreplay.domain.value_objects.timeframe import Timeframe


class ICandleDataProvider(ABC):
    """
    Interfaz para proveer velas históricas.

    IMPLEMENTACIONES:
    - InMemoryCandleProvider (tests, demos)
    - CsvCandleProvider (ficheros <SYMBOL>_<TF>.csv)
    """

    @abstractmethod
    async def fetch_context_candles(
        self,
        symbol: str,
        timeframe: Timeframe,
        before_time: float,
        count: int,
        cancel: Optional[CancellationToken] = None,
    ) -> List[Candle]:
        """
        Últimas `count` velas con time < before_time.

        Args:
            symbol: Símbolo (e.g. "EURUSD")
            timeframe: Timeframe de las velas
            before_time: Límite superior exclusivo (epoch)
            count: Máximo de velas
            cancel: Token de la carga en curso
        """
        pass

    @abstractmethod
    async def fetch_future_candles(
        self,
        symbol: str,
        timeframe: Timeframe,
        after_time: float,
        count: int,
        cancel: Optional[CancellationToken] = None,
    ) -> List[Candle]:
        """Primeras `count` velas con time > after_time."""
        pass

    @abstractmethod
    async def fetch_first_candle(
        self,
        symbol: str,
        timeframe: Timeframe,
        cancel: Optional[CancellationToken] = None,
    ) -> Optional[Candle]:
        """Primera vela disponible del dataset, o None si está vacío."""
        pass

    @abstractmethod
    async def fetch_historical_data(
        self,
        symbol: str,
        timeframe: Timeframe,
        before_time: float,
        count: int,
    ) -> List[Candle]:
        """Últimas `count` velas con time < before_time (backfill)."""
        pass
