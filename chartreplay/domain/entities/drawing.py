"""
ChartReplay – Domain Entity: Drawing
======================================
Objetos de anotación dibujados sobre un panel del chart.

JERARQUÍA:
    Drawing (base: id, symbol, pane, p1, p2, estilo, visible, locked)
    ├── TrendLine          (label opcional)
    ├── RectangleDrawing
    ├── FibRetracement     (fib_levels)
    ├── TextLabel          (text, font_size)
    ├── KillZoneDrawing    (kill_zone_config)
    └── PositionDrawing    (target_price, stop_price)
        ├── LongPosition
        └── ShortPosition

Los objetos son inmutables: toda edición produce una nueva instancia
(dataclasses.replace). El engine nunca muta un dibujo "en sitio".
"""

from __future__ import annotations

from dataclasses import dataclass, field, replace
from enum import Enum
from typing import Callable, ClassVar, Dict, Optional, Tuple, Type

from chartreplay.domain.value_objects.kill_zone import KillZoneConfig
from chartreplay.domain.value_objects.pane import Pane
from chartreplay.domain.value_objects.point import Point

# Id reservado de la previsualización mientras una herramienta está anclada.
GHOST_ID = "ghost-preview"


class ToolType(str, Enum):
    """Herramienta activa del toolbar (CURSOR = sin herramienta)."""

    CURSOR = "CURSOR"
    TRENDLINE = "TRENDLINE"
    RECTANGLE = "RECTANGLE"
    FIB = "FIB"
    TEXT = "TEXT"
    KILLZONE = "KILLZONE"
    LONG_POSITION = "LONG_POSITION"
    SHORT_POSITION = "SHORT_POSITION"

    @property
    def is_position(self) -> bool:
        return self in (ToolType.LONG_POSITION, ToolType.SHORT_POSITION)

    @property
    def is_two_point(self) -> bool:
        return self in (
            ToolType.TRENDLINE,
            ToolType.RECTANGLE,
            ToolType.FIB,
            ToolType.LONG_POSITION,
            ToolType.SHORT_POSITION,
        )


class LineStyle(str, Enum):
    SOLID = "solid"
    DASHED = "dashed"
    DOTTED = "dotted"


@dataclass(frozen=True, slots=True)
class FibLevel:
    level: float
    color: str
    visible: bool = True

    def price_between(self, p1: float, p2: float) -> float:
        """Precio del nivel: 0 en p2, 1 en p1."""
        return p2 + (p1 - p2) * self.level

    def to_dict(self) -> dict:
        return {"level": self.level, "color": self.color, "visible": self.visible}


DEFAULT_FIB_LEVELS: Tuple[FibLevel, ...] = (
    FibLevel(0, "#94a3b8"),
    FibLevel(0.236, "#ef4444", visible=False),
    FibLevel(0.382, "#ef4444"),
    FibLevel(0.5, "#22c55e"),
    FibLevel(0.618, "#eab308"),
    FibLevel(0.786, "#3b82f6"),
    FibLevel(0.886, "#6366f1"),
    FibLevel(1, "#a1a1aa"),
    FibLevel(1.272, "#f87171"),
    FibLevel(1.618, "#a855f7"),
)


@dataclass(frozen=True)
class DrawingSettings:
    """Estilo con el que se crean los nuevos dibujos."""

    color: str = "#3b82f6"
    line_width: int = 2
    line_style: LineStyle = LineStyle.SOLID
    font_size: Optional[int] = None


# ════════════════════════════════════════════════════════════════════
#  Base
# ════════════════════════════════════════════════════════════════════

@dataclass(frozen=True, kw_only=True)
class Drawing:
    """Campos comunes a todas las variantes."""

    kind: ClassVar[ToolType]

    id: str
    p1: Point
    p2: Point
    symbol: str = ""
    pane: Pane = Pane.MAIN
    color: str = "#3b82f6"
    line_width: int = 2
    line_style: LineStyle = LineStyle.SOLID
    visible: bool = True
    locked: bool = False

    @property
    def is_ghost(self) -> bool:
        return self.id == GHOST_ID

    def translated(
        self,
        time_delta: float,
        price_delta: float,
        rounding: Optional[Callable[[float], float]] = None,
    ) -> "Drawing":
        """Desplaza toda la geometría (Δtime, Δprice); `rounding` se aplica a cada precio."""
        return replace(
            self,
            p1=self.p1.shifted(time_delta, price_delta, rounding),
            p2=self.p2.shifted(time_delta, price_delta, rounding),
        )

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "type": self.kind.value,
            "symbol": self.symbol,
            "pane": self.pane.value,
            "p1": self.p1.to_dict(),
            "p2": self.p2.to_dict(),
            "color": self.color,
            "line_width": self.line_width,
            "line_style": self.line_style.value,
            "visible": self.visible,
            "locked": self.locked,
        }


# ════════════════════════════════════════════════════════════════════
#  Variantes
# ════════════════════════════════════════════════════════════════════

@dataclass(frozen=True, kw_only=True)
class TrendLine(Drawing):
    kind: ClassVar[ToolType] = ToolType.TRENDLINE

    text: Optional[str] = None
    font_size: Optional[int] = None

    def to_dict(self) -> dict:
        data = super().to_dict()
        if self.text:
            data["text"] = self.text
            data["font_size"] = self.font_size
        return data


@dataclass(frozen=True, kw_only=True)
class RectangleDrawing(Drawing):
    kind: ClassVar[ToolType] = ToolType.RECTANGLE


@dataclass(frozen=True, kw_only=True)
class FibRetracement(Drawing):
    kind: ClassVar[ToolType] = ToolType.FIB

    fib_levels: Tuple[FibLevel, ...] = DEFAULT_FIB_LEVELS

    def level_prices(self) -> list[tuple[FibLevel, float]]:
        """Niveles visibles con su precio."""
        return [
            (lvl, lvl.price_between(self.p1.price, self.p2.price))
            for lvl in self.fib_levels
            if lvl.visible
        ]

    def to_dict(self) -> dict:
        data = super().to_dict()
        data["fib_levels"] = [lvl.to_dict() for lvl in self.fib_levels]
        return data


@dataclass(frozen=True, kw_only=True)
class TextLabel(Drawing):
    kind: ClassVar[ToolType] = ToolType.TEXT

    text: str = "Text"
    font_size: int = 14

    def to_dict(self) -> dict:
        data = super().to_dict()
        data.update({"text": self.text, "font_size": self.font_size})
        return data


@dataclass(frozen=True, kw_only=True)
class KillZoneDrawing(Drawing):
    kind: ClassVar[ToolType] = ToolType.KILLZONE

    kill_zone_config: KillZoneConfig = field(default_factory=KillZoneConfig)

    def to_dict(self) -> dict:
        data = super().to_dict()
        data["kill_zone_config"] = self.kill_zone_config.to_dict()
        return data


@dataclass(frozen=True, kw_only=True)
class PositionDrawing(Drawing):
    """
    Herramienta de posición: p1 = entrada (precio) e inicio (tiempo),
    p2 define el ancho temporal. target/stop siempre se fijan juntos.
    """

    target_price: float = 0.0
    stop_price: float = 0.0

    @property
    def is_long(self) -> bool:
        return self.kind is ToolType.LONG_POSITION

    @property
    def entry_price(self) -> float:
        return self.p1.price

    def translated(
        self,
        time_delta: float,
        price_delta: float,
        rounding: Optional[Callable[[float], float]] = None,
    ) -> "PositionDrawing":
        moved = super().translated(time_delta, price_delta, rounding)
        fix = rounding or float
        return replace(
            moved,
            target_price=fix(self.target_price + price_delta),
            stop_price=fix(self.stop_price + price_delta),
        )

    def risk_reward(self) -> float:
        risk = abs(self.entry_price - self.stop_price)
        reward = abs(self.target_price - self.entry_price)
        return reward / risk if risk else 0.0

    def to_dict(self) -> dict:
        data = super().to_dict()
        data.update({"target_price": self.target_price, "stop_price": self.stop_price})
        return data


@dataclass(frozen=True, kw_only=True)
class LongPosition(PositionDrawing):
    kind: ClassVar[ToolType] = ToolType.LONG_POSITION


@dataclass(frozen=True, kw_only=True)
class ShortPosition(PositionDrawing):
    kind: ClassVar[ToolType] = ToolType.SHORT_POSITION


DRAWING_TYPES: Dict[ToolType, Type[Drawing]] = {
    ToolType.TRENDLINE: TrendLine,
    ToolType.RECTANGLE: RectangleDrawing,
    ToolType.FIB: FibRetracement,
    ToolType.TEXT: TextLabel,
    ToolType.KILLZONE: KillZoneDrawing,
    ToolType.LONG_POSITION: LongPosition,
    ToolType.SHORT_POSITION: ShortPosition,
}


def drawing_class_for(tool: ToolType) -> Type[Drawing]:
    try:
        return DRAWING_TYPES[tool]
    except KeyError:
        raise ValueError(f"La herramienta {tool} no crea dibujos") from None
