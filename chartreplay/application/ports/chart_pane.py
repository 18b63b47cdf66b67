"""
ChartReplay – Application Port: Chart Pane
============================================
Interfaz estrecha hacia la librería de charting de cada panel.

El core solo necesita convertir coordenadas; el renderizado real de
velas/indicadores es responsabilidad del adaptador.

CONVENCIÓN: los métodos de conversión retornan None cuando la librería
no puede resolver el valor (fuera de escala, sin datos, etc.).
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from dataclasses import dataclass
from typing import Callable, Optional


@dataclass(frozen=True, slots=True)
class LogicalRange:
    """Rango visible en índices lógicos de barra (puede ser fraccionario)."""

    from_: float
    to: float

    def to_dict(self) -> dict:
        return {"from": self.from_, "to": self.to}


RangeListener = Callable[[Optional[LogicalRange]], None]


class ITimeScale(ABC):
    """Eje horizontal de un panel."""

    @abstractmethod
    def coordinate_to_logical(self, x: float) -> Optional[float]:
        pass

    @abstractmethod
    def logical_to_coordinate(self, logical: float) -> Optional[float]:
        pass

    @abstractmethod
    def time_to_coordinate(self, time: float) -> Optional[float]:
        """Lookup directo; None si el tiempo no es una barra de la serie."""
        pass

    @abstractmethod
    def get_visible_logical_range(self) -> Optional[LogicalRange]:
        pass

    @abstractmethod
    def set_visible_logical_range(self, logical_range: LogicalRange) -> None:
        pass

    @abstractmethod
    def subscribe_visible_range_change(self, listener: RangeListener) -> None:
        pass

    @abstractmethod
    def unsubscribe_visible_range_change(self, listener: RangeListener) -> None:
        pass

    @abstractmethod
    def width(self) -> float:
        pass


class IPriceSeries(ABC):
    """Serie primaria de un panel (velas en MAIN, línea en RSI/MACD)."""

    @abstractmethod
    def price_to_coordinate(self, price: float) -> Optional[float]:
        pass

    @abstractmethod
    def coordinate_to_price(self, y: float) -> Optional[float]:
        pass

    @abstractmethod
    def height(self) -> float:
        pass


@dataclass(frozen=True)
class PaneContext:
    """Par (eje de tiempo, serie primaria) de un panel registrado."""

    time_scale: ITimeScale
    series: IPriceSeries
