"""
ChartReplay – Cancellation Token
==================================
Token de cancelación cooperativa por carga.

Cada carga del PlaybackEngine crea su propio token; iniciar una carga
nueva cancela la anterior. Los providers consultan el token antes y
después de cada suspensión.
"""

from __future__ import annotations

from chartreplay.domain.exceptions.domain_errors import FetchCancelledError


class CancellationToken:
    """Flag de cancelación con la generación de carga a la que pertenece."""

    __slots__ = ("_cancelled", "generation")

    def __init__(self, generation: int = 0):
        self._cancelled = False
        self.generation = generation

    @property
    def cancelled(self) -> bool:
        return self._cancelled

    def cancel(self) -> None:
        self._cancelled = True

    def raise_if_cancelled(self) -> None:
        if self._cancelled:
            raise FetchCancelledError(
                f"Load generation {self.generation} cancelled",
                generation=self.generation,
            )

    def __repr__(self) -> str:
        return f"CancellationToken(generation={self.generation}, cancelled={self._cancelled})"
