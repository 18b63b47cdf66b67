"""
ChartReplay – Settings (Pydantic BaseSettings)
==============================================
Configuración centralizada cargada desde variables de entorno / .env.
Se usa pydantic-settings para validación estricta al arranque.

NOTA: La capa de dominio NO importa este módulo. Los servicios de dominio
reciben dataclasses de configuración (BracketConfig, etc.) construidas
en la capa de aplicación a partir de estos valores.
"""

from __future__ import annotations

from pydantic_settings import BaseSettings
from pydantic import Field


class Settings(BaseSettings):
    # ─── Ventana de velas ───────────────────────────────────────────────
    visible_candles: int = Field(
        default=1000, description="Velas visibles pedidas en cada carga",
    )
    warmup_buffer: int = Field(
        default=500, description="Velas extra de contexto para warm-up de indicadores",
    )
    min_warmup: int = Field(
        default=200, description="Mínimo de velas de warm-up (se rellena con velas sintéticas)",
    )

    # ─── Buffering ──────────────────────────────────────────────────────
    forward_buffer_threshold: int = Field(
        default=50, description="Velas restantes bajo las cuales se pide más futuro",
    )
    forward_batch_size: int = Field(
        default=100, description="Velas pedidas en cada recarga hacia adelante",
    )
    history_batch_size: int = Field(
        default=500, description="Velas visibles extra pedidas al cargar más historia",
    )

    # ─── Playback ───────────────────────────────────────────────────────
    default_speed_ms: int = Field(
        default=500, description="Milisegundos por tick del reloj simulado",
    )

    # ─── Mapeo de coordenadas ───────────────────────────────────────────
    default_interval_seconds: int = Field(
        default=60, description="Duración de barra si el timeframe es desconocido",
    )
    gap_tolerance_ratio: float = Field(
        default=1.5, description="Hueco máximo (× barra) interpolado proporcionalmente",
    )

    # ─── Kill Zones ─────────────────────────────────────────────────────
    killzone_utc_offset_hours: int = Field(
        default=7, description="Zona horaria de referencia de las sesiones (UTC+7)",
    )
    killzone_max_interval_seconds: int = Field(
        default=14400, description="Timeframes >= este valor no dibujan kill zones",
    )
    killzone_snap_interval_seconds: int = Field(
        default=3600, description="Timeframes >= este valor ajustan la caja a las barras",
    )

    # ─── Herramienta de posición ────────────────────────────────────────
    position_min_distance_pct: float = Field(
        default=0.0005, description="Distancia mínima (fracción del entry) para bracket direccional",
    )
    position_default_risk_pct: float = Field(
        default=0.002, description="Riesgo por defecto (fracción del entry) del bracket 1:2",
    )
    position_default_width_bars: int = Field(
        default=20, description="Ancho en barras de una posición creada sin ancho",
    )

    # ─── Datos ──────────────────────────────────────────────────────────
    candle_data_dir: str = Field(
        default="data", description="Directorio con CSVs <SYMBOL>_<TF>.csv",
    )

    # ─── Logging ────────────────────────────────────────────────────────
    log_level: str = Field(default="INFO")

    model_config = {
        "env_file": ".env",
        "env_file_encoding": "utf-8",
        "case_sensitive": False,
    }


# Singleton global – se importa donde se necesite
settings = Settings()
