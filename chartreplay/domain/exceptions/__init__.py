"""Domain exceptions."""
from chartreplay.domain.exceptions.domain_errors import (
    CoordinateUnresolvableError,
    DataUnavailableError,
    DomainError,
    FetchCancelledError,
    MalformedDragError,
)

__all__ = [
    "DomainError",
    "DataUnavailableError",
    "FetchCancelledError",
    "CoordinateUnresolvableError",
    "MalformedDragError",
]
