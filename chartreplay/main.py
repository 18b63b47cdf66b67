"""
ChartReplay – Headless Replay Runner
======================================
Reproduce un símbolo desde CSV sin UI y loguea el avance del reloj.

USO:
    python -m chartreplay.main --symbol EURUSD --timeframe M15 \
        --start 2024-01-02 --ticks 100 --speed 50

FLUJO:
  1. Configurar logging y contenedor
  2. PlaybackEngine.load(símbolo, timeframe, inicio de sesión)
  3. play() hasta completar N ticks o agotar los datos
"""

from __future__ import annotations

import argparse
import asyncio
from typing import Optional

from chartreplay.container import init_container
from chartreplay.application.services.playback_engine import PlaybackStatus, parse_datetime
from chartreplay.domain.events.domain_events import DomainEvent
from chartreplay.domain.value_objects.timeframe import Timeframe
from chartreplay.shared.config.settings import Settings
from chartreplay.shared.logging.logger import get_logger, setup_logging

logger = get_logger("main")


async def run_replay(
    settings: Settings,
    symbol: str,
    timeframe: Timeframe,
    start: float,
    ticks: int,
    speed_ms: Optional[int] = None,
) -> int:
    """
    Ejecuta el replay.

    Returns:
        Ticks efectivamente avanzados.
    """
    container = init_container(settings)
    bus = container.event_bus
    engine = container.playback_engine

    def _log_event(event: DomainEvent) -> None:
        logger.info("Evento %s: %s", event.event_type, event.to_dict())

    bus.register_handler("PlaybackStatusChanged", _log_event)
    bus.register_handler("DataUnavailable", _log_event)

    logger.info("=" * 60)
    logger.info("  ChartReplay – %s %s", symbol, timeframe.value)
    logger.info("  Datos: %s", settings.candle_data_dir)
    logger.info("=" * 60)

    if not await engine.load(symbol, timeframe, start):
        logger.error("No se pudo cargar el replay")
        return 0

    if speed_ms is not None:
        engine.set_speed(speed_ms)

    start_index = engine.state.current_index
    await engine.play()
    try:
        while engine.status is PlaybackStatus.PLAYING:
            if engine.state.current_index - start_index >= ticks:
                break
            await asyncio.sleep(engine.state.speed / 1000)
    finally:
        await engine.stop()

    advanced = engine.state.current_index - start_index
    candle = engine.current_candle
    logger.info(
        "Replay detenido: %d ticks, idx=%d/%d, precio=%s, t=%s",
        advanced,
        engine.state.current_index,
        engine.state.max_index,
        candle.close if candle else None,
        candle.time if candle else None,
    )
    return advanced


def main() -> None:
    parser = argparse.ArgumentParser(description="ChartReplay headless runner")
    parser.add_argument("--symbol", type=str, default="EURUSD", help="Símbolo (e.g. EURUSD)")
    parser.add_argument(
        "--timeframe", type=str, default="M15",
        choices=[tf.value for tf in Timeframe],
        help="Timeframe de las velas",
    )
    parser.add_argument("--start", type=str, required=True, help="Inicio de sesión (ISO o epoch)")
    parser.add_argument("--ticks", type=int, default=100, help="Velas a reproducir")
    parser.add_argument("--speed", type=int, default=None, help="Milisegundos por tick")
    parser.add_argument("--data-dir", type=str, default=None, help="Directorio de CSVs")

    args = parser.parse_args()

    settings = Settings()
    if args.data_dir:
        settings = settings.model_copy(update={"candle_data_dir": args.data_dir})
    setup_logging(settings.log_level)

    start = parse_datetime(args.start)
    if start is None:
        parser.error(f"Fecha de inicio inválida: {args.start}")

    asyncio.run(run_replay(
        settings,
        args.symbol.upper(),
        Timeframe(args.timeframe),
        start,
        args.ticks,
        speed_ms=args.speed,
    ))


if __name__ == "__main__":
    main()
