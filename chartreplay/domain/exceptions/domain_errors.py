"""
ChartReplay – Domain Exceptions
=================================
Excepciones específicas del dominio del replay.

JERARQUÍA:
    DomainError (base)
    ├── DataUnavailableError         (no hay velas para el rango pedido)
    ├── FetchCancelledError          (carga reemplazada por otra más nueva)
    ├── CoordinateUnresolvableError  (un elemento no se puede proyectar)
    └── MalformedDragError           (el objetivo del drag ya no existe)
"""

from __future__ import annotations


class DomainError(Exception):
    """Excepción base para errores de dominio."""

    def __init__(self, message: str, code: str = "DOMAIN_ERROR"):
        self.message = message
        self.code = code
        super().__init__(message)

    def to_dict(self) -> dict:
        return {
            "error": self.code,
            "message": self.message,
        }


class DataUnavailableError(DomainError):
    """No hay datos para el símbolo/timeframe (ni siquiera la primera vela)."""

    def __init__(self, message: str, symbol: str = None, timeframe: str = None):
        super().__init__(message, code="DATA_UNAVAILABLE")
        self.symbol = symbol
        self.timeframe = timeframe

    def to_dict(self) -> dict:
        data = super().to_dict()
        data.update({"symbol": self.symbol, "timeframe": self.timeframe})
        return data


class FetchCancelledError(DomainError):
    """La carga fue cancelada; sus resultados se descartan."""

    def __init__(self, message: str = "Fetch cancelled", generation: int = None):
        super().__init__(message, code="FETCH_CANCELLED")
        self.generation = generation


class CoordinateUnresolvableError(DomainError):
    """Un tiempo/precio no tiene coordenada en el panel."""

    def __init__(self, message: str, pane: str = None):
        super().__init__(message, code="COORDINATE_UNRESOLVABLE")
        self.pane = pane


class MalformedDragError(DomainError):
    """Estado de drag inconsistente (p.ej. el dibujo fue borrado)."""

    def __init__(self, message: str, drawing_id: str = None):
        super().__init__(message, code="MALFORMED_DRAG")
        self.drawing_id = drawing_id
