"""
ChartReplay – Domain Service: Price Precision
===============================================
Reglas de precisión de precios por símbolo.

DOS USOS DISTINTOS:
- Redondeo de precios confirmados por drag: JPY → 3, metales → 2, resto → 5.
- Dígitos de visualización del replay: custom del perfil → tabla de
  símbolos → heurística por magnitud del último close.
"""

from __future__ import annotations

from typing import Dict, Optional

_METALS = ("XAU", "XAG")

# Dígitos de cotización de los símbolos conocidos
SYMBOL_DIGITS: Dict[str, int] = {
    "AUDUSD": 5,
    "EURAUD": 5,
    "EURJPY": 3,
    "EURUSD": 5,
    "GBPAUD": 5,
    "GBPJPY": 3,
    "GBPUSD": 5,
    "NZDUSD": 5,
    "USDCHF": 5,
    "USDJPY": 3,
    "XAGUSD": 3,
    "XAUUSD": 2,
    "CUSTOM": 5,
}


def _is_metal(symbol: str) -> bool:
    upper = symbol.upper()
    return any(m in upper for m in _METALS)


def _is_jpy(symbol: str) -> bool:
    return "JPY" in symbol.upper()


def drag_decimals(symbol: str) -> int:
    """Decimales con los que se redondea un precio arrastrado."""
    if _is_jpy(symbol):
        return 3
    if _is_metal(symbol):
        return 2
    return 5


def round_price(symbol: str, price: float) -> float:
    return round(price, drag_decimals(symbol))


def pip_size(symbol: str) -> float:
    """Tamaño de pip: 0.01 para JPY y metales, 0.0001 para el resto."""
    if _is_jpy(symbol) or _is_metal(symbol):
        return 0.01
    return 0.0001


def display_digits(
    symbol: str,
    custom_digits: Optional[int] = None,
    sample_price: Optional[float] = None,
) -> int:
    """Dígitos a mostrar para el símbolo activo."""
    if custom_digits:
        return custom_digits
    if symbol.upper() in SYMBOL_DIGITS:
        return SYMBOL_DIGITS[symbol.upper()]
    if sample_price is not None:
        if sample_price > 500:
            return 2
        if sample_price > 20:
            return 3
    return 5
