"""
CSV Candle Provider.

Lee velas de ficheros `<data_dir>/<SYMBOL>_<TF>.csv` con pandas.

SANITIZADO (sanitize_frame):
  - time: epoch en segundos o fecha ISO ("2024-01-02 10:00" / "2024-01-02T10:00Z").
    Fechas sin zona horaria se interpretan en UTC.
  - Filas sin time o close válidos, o con close <= 0, se descartan.
  - XAUUSD con close < 500 se multiplica ×100 y XAGUSD con close < 5 ×10
    (cotizaciones exportadas en otra unidad).
  - Orden ascendente y deduplicado por time (gana la primera fila).

FALLBACK M2:
  Si el fichero de un timeframe distinto de M2 no existe o queda vacío,
  se reagrega el fichero M2 del símbolo.

Cada fichero se lee una sola vez (cache por serie).
"""

from __future__ import annotations

from pathlib import Path
from typing import List, Optional, Tuple

import numpy as np
import pandas as pd

from chartreplay.domain.entities.candle import Candle
from chartreplay.domain.services.candle_resampler import resample_candles
from chartreplay.domain.value_objects.timeframe import Timeframe
from chartreplay.infrastructure.external.in_memory_candle_provider import InMemoryCandleProvider
from chartreplay.shared.logging.logger import get_logger

logger = get_logger("csv_provider")

PRICE_COLUMNS = ["open", "high", "low", "close"]

# símbolo → (umbral de close, factor)
METAL_RESCALE = {
    "XAUUSD": (500.0, 100.0),
    "XAGUSD": (5.0, 10.0),
}


def _parse_times(raw: pd.Series) -> pd.Series:
    """Epoch (segundos) desde valores numéricos o fechas ISO; inválidos → NaN."""
    numeric = pd.to_numeric(raw, errors="coerce")
    text = raw.where(numeric.isna()).astype("string").str.replace(" ", "T", n=1)
    parsed = pd.to_datetime(text, errors="coerce", utc=True, format="ISO8601")
    seconds = (parsed - pd.Timestamp(0, tz="UTC")) // pd.Timedelta(seconds=1)
    return numeric.fillna(seconds.astype("float64"))


def sanitize_frame(frame: pd.DataFrame, symbol: str = "") -> pd.DataFrame:
    """
    Normaliza un DataFrame crudo de velas.

    Returns:
        DataFrame con columnas time (int64), open, high, low, close, volume.
    """
    frame = frame.rename(columns=str.lower)
    missing = [c for c in ["time", *PRICE_COLUMNS] if c not in frame.columns]
    if missing:
        raise ValueError(f"Columnas faltantes en CSV: {missing}")

    clean = pd.DataFrame({"time": _parse_times(frame["time"])})
    for column in PRICE_COLUMNS:
        clean[column] = pd.to_numeric(frame[column], errors="coerce")
    if "volume" in frame.columns:
        clean["volume"] = pd.to_numeric(frame["volume"], errors="coerce").fillna(0.0)
    else:
        clean["volume"] = 0.0

    rule = METAL_RESCALE.get(symbol.upper())
    if rule is not None:
        threshold, factor = rule
        mask = clean["close"] < threshold
        if mask.any():
            logger.warning("%s: %d filas reescaladas ×%g", symbol, int(mask.sum()), factor)
            clean.loc[mask, PRICE_COLUMNS] = clean.loc[mask, PRICE_COLUMNS] * factor

    clean = clean[clean["time"].notna() & clean["close"].notna() & (clean["close"] > 0)]
    clean = clean.sort_values("time", kind="mergesort").drop_duplicates("time", keep="first")
    clean["time"] = clean["time"].astype(np.int64)
    return clean.reset_index(drop=True)


def frame_to_candles(frame: pd.DataFrame) -> List[Candle]:
    return [
        Candle(
            time=int(row.time),
            open=float(row.open),
            high=float(row.high),
            low=float(row.low),
            close=float(row.close),
            volume=float(row.volume),
        )
        for row in frame.itertuples(index=False)
    ]


class CsvCandleProvider(InMemoryCandleProvider):
    """Provider de velas respaldado por ficheros CSV."""

    def __init__(self, data_dir: str | Path, latency: float = 0.0) -> None:
        super().__init__(latency=latency)
        self._data_dir = Path(data_dir)

    def path_for(self, symbol: str, timeframe: Timeframe) -> Path:
        return self._data_dir / f"{symbol}_{Timeframe(timeframe).value}.csv"

    def _read(self, symbol: str, timeframe: Timeframe) -> List[Candle]:
        path = self.path_for(symbol, timeframe)
        if not path.exists():
            return []
        try:
            raw = pd.read_csv(path)
        except pd.errors.EmptyDataError:
            logger.warning("CSV vacío: %s", path)
            return []
        candles = frame_to_candles(sanitize_frame(raw, symbol))
        logger.info("CSV cargado %s: %d velas", path.name, len(candles))
        return candles

    def _load(self, symbol: str, timeframe: Timeframe) -> List[Candle]:
        candles = self._read(symbol, timeframe)
        if not candles and timeframe is not Timeframe.M2:
            base = self._read(symbol, Timeframe.M2)
            if base:
                candles = resample_candles(base, timeframe.seconds)
                logger.info(
                    "%s %s reagregado desde M2: %d velas", symbol, timeframe.value, len(candles),
                )
        return candles

    def _series(self, symbol: str, timeframe: Timeframe) -> Tuple[List[Candle], np.ndarray]:
        timeframe = Timeframe(timeframe)
        key = (symbol, timeframe)
        if key not in self._candles:
            self.add_series(symbol, timeframe, self._load(symbol, timeframe))
        return super()._series(symbol, timeframe)

    def invalidate(self, symbol: Optional[str] = None) -> None:
        """Descarta la cache (de un símbolo o completa)."""
        for key in [k for k in self._candles if symbol is None or k[0] == symbol]:
            self._candles.pop(key, None)
            self._times.pop(key, None)
