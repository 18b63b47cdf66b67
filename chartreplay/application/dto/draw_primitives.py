"""
ChartReplay – Draw Primitives (DTOs)
======================================
Primitivas de dibujo independientes de la librería de renderizado.

Cada primitiva lleva:
  - owner_id: id del objeto dueño (dibujo, trade o zona de sesión).
  - interactive: False para el ghost y para decoraciones no clicables.
  - role: qué gesto dispara al ser clicada (p.ej. "all", "p1", "SL").
"""

from __future__ import annotations

from dataclasses import asdict, dataclass
from typing import Optional, Union


@dataclass(frozen=True, slots=True)
class LinePrimitive:
    owner_id: str
    x1: float
    y1: float
    x2: float
    y2: float
    color: str
    width: float = 1.0
    dash: Optional[str] = None
    opacity: float = 1.0
    interactive: bool = True
    role: Optional[str] = None

    def to_dict(self) -> dict:
        return {"kind": "line", **asdict(self)}


@dataclass(frozen=True, slots=True)
class RectPrimitive:
    owner_id: str
    x: float
    y: float
    width: float
    height: float
    fill: str
    fill_opacity: float = 0.2
    stroke: Optional[str] = None
    stroke_width: float = 0.0
    dash: Optional[str] = None
    interactive: bool = True
    role: Optional[str] = None

    def to_dict(self) -> dict:
        return {"kind": "rect", **asdict(self)}


@dataclass(frozen=True, slots=True)
class TextPrimitive:
    owner_id: str
    x: float
    y: float
    text: str
    color: str
    font_size: int = 12
    anchor: str = "start"
    rotation: float = 0.0
    interactive: bool = False
    role: Optional[str] = None

    def to_dict(self) -> dict:
        return {"kind": "text", **asdict(self)}


@dataclass(frozen=True, slots=True)
class HandlePrimitive:
    """Círculo de arrastre (p1/p2) o affordance clicable (SL+/TP+)."""

    owner_id: str
    x: float
    y: float
    color: str
    role: str
    radius: float = 5.0
    label: Optional[str] = None
    interactive: bool = True

    def to_dict(self) -> dict:
        return {"kind": "handle", **asdict(self)}


DrawPrimitive = Union[LinePrimitive, RectPrimitive, TextPrimitive, HandlePrimitive]

DASH_PATTERNS = {
    "solid": None,
    "dashed": "8 4",
    "dotted": "2 2",
}
