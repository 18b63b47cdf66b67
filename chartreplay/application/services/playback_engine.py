"""
ChartReplay – Playback Engine
===============================
Reloj simulado del replay: carga de ventana, ticker, buffering y backfill.

ESTADOS:
    IDLE ──load──▶ LOADING ──▶ READY ⇄ PLAYING
                      └──────▶ ERROR  (sin datos / fallo del provider)

CARGA (load):
  1. Alinear sim_time a la barra del timeframe.
  2. Contexto hacia atrás: visible + warm-up velas con time < aligned + tf.
  3. Ventana hacia adelante: visible velas con time > aligned.
  4. Separar warm-up (antes del inicio de sesión) y visibles.
  5. Rellenar warm-up hasta min_warmup con velas sintéticas planas.
  6. Merge por time (el futuro gana), ordenar.
  7. Índice = última vela con time <= sim_time. Si sim_time cae dentro de
     esa vela, se re-sintetiza con el último precio conocido.
  Sin datos → primera vela disponible + ventana hacia adelante.
  Sigue vacío → ERROR + DataUnavailable.

CAMBIOS:
  Cada mutación de ventana o índice (carga, tick, step, buffer, backfill,
  precio en vivo) revela la ventana hasta el índice actual y notifica a
  los change listeners (el workspace re-renderiza el frame).

CONCURRENCIA:
  Un solo event-loop. Cada carga tiene su CancellationToken; una carga
  nueva cancela la anterior. Buffering y backfill capturan la generación
  de carga y descartan resultados de una generación superada.
"""

from __future__ import annotations

import asyncio
from dataclasses import dataclass
from datetime import datetime, timezone
from enum import Enum
from typing import Callable, List, Optional, Sequence, TypeVar, Union

from chartreplay.application.cancellation import CancellationToken
from chartreplay.application.ports.candle_data_provider import ICandleDataProvider
from chartreplay.application.ports.event_sink import IEventSink
from chartreplay.application.state.candle_window import CandleWindow
from chartreplay.application.state.simulation_state import SimulationState
from chartreplay.domain.entities.candle import Candle
from chartreplay.domain.events.domain_events import DataUnavailable, PlaybackStatusChanged
from chartreplay.domain.exceptions.domain_errors import DataUnavailableError, FetchCancelledError
from chartreplay.domain.services.candle_resampler import align_time
from chartreplay.domain.services.price_precision import display_digits
from chartreplay.domain.value_objects.timeframe import Timeframe
from chartreplay.shared.logging.logger import get_logger

logger = get_logger("playback_engine")

T = TypeVar("T")

ChangeListener = Callable[[], None]


class PlaybackStatus(str, Enum):
    IDLE = "IDLE"
    LOADING = "LOADING"
    READY = "READY"
    PLAYING = "PLAYING"
    ERROR = "ERROR"


@dataclass
class ReplayConfig:
    """Tamaños de ventana y buffering (construido desde Settings por el container)."""

    visible_candles: int = 1000
    warmup_buffer: int = 500
    min_warmup: int = 200
    forward_buffer_threshold: int = 50
    forward_batch_size: int = 100
    history_batch_size: int = 500


def _pad_warmup(first: Candle, count: int, interval: int) -> List[Candle]:
    """`count` velas sintéticas inmediatamente anteriores a `first`."""
    return [first.as_synthetic(first.time - (count - i) * interval) for i in range(count)]


def parse_datetime(value: Union[str, float, int]) -> Optional[float]:
    """Epoch (segundos) desde epoch numérico o fecha ISO. Fechas sin zona = UTC."""
    if isinstance(value, (int, float)):
        return float(value)
    text = str(value).strip()
    try:
        return float(text)
    except ValueError:
        pass
    try:
        parsed = datetime.fromisoformat(text.replace(" ", "T"))
    except ValueError:
        return None
    if parsed.tzinfo is None:
        parsed = parsed.replace(tzinfo=timezone.utc)
    return parsed.timestamp()


class PlaybackEngine:
    """
    Motor de replay.

    Dueño único de CandleWindow y SimulationState; el resto de componentes
    solo los lee.
    """

    def __init__(
        self,
        provider: ICandleDataProvider,
        sink: IEventSink,
        window: CandleWindow,
        state: SimulationState,
        config: ReplayConfig | None = None,
    ) -> None:
        self._provider = provider
        self._sink = sink
        self.window = window
        self.state = state
        self._config = config or ReplayConfig()

        self._status = PlaybackStatus.IDLE
        self._generation = 0
        self._token: Optional[CancellationToken] = None
        self._ticker_task: Optional[asyncio.Task] = None
        self._buffer_task: Optional[asyncio.Task] = None
        self._buffering = False
        self._loading_history = False
        self._change_listeners: List[ChangeListener] = []

        self.session_start: float = 0.0
        self.live_price: float = 0.0

    # ════════════════════════════════════════════════════════════════
    #  Estado
    # ════════════════════════════════════════════════════════════════

    @property
    def status(self) -> PlaybackStatus:
        return self._status

    @property
    def generation(self) -> int:
        return self._generation

    def _set_status(self, status: PlaybackStatus) -> None:
        previous = self._status
        if previous is status:
            return
        self._status = status
        logger.info("Replay %s → %s (idx=%d/%d)", previous.value, status.value,
                    self.state.current_index, self.state.max_index)
        self._sink.publish(PlaybackStatusChanged(
            status=status.value,
            previous=previous.value,
            current_index=self.state.current_index,
            max_index=self.state.max_index,
        ))

    def add_change_listener(self, callback: ChangeListener) -> None:
        """Callback a invocar tras cada cambio de ventana o índice."""
        self._change_listeners.append(callback)

    def _changed(self) -> None:
        self.window.reveal_through(self.state.current_index)
        for callback in list(self._change_listeners):
            callback()

    # ════════════════════════════════════════════════════════════════
    #  Carga
    # ════════════════════════════════════════════════════════════════

    async def load(
        self,
        symbol: str,
        timeframe: Timeframe,
        session_start: float,
        sim_time: Optional[float] = None,
    ) -> bool:
        """
        Carga la ventana de velas alrededor de sim_time.

        Args:
            symbol: Símbolo a reproducir
            timeframe: Timeframe de las velas
            session_start: Inicio de la sesión (epoch); lo anterior es warm-up
            sim_time: Instante simulado; por defecto el actual o session_start

        Returns:
            True si la carga se aplicó (False si falló o fue reemplazada).
        """
        timeframe = Timeframe(timeframe)
        await self._stop_ticker()
        self.state.is_playing = False

        if self._token is not None:
            self._token.cancel()
        self._generation += 1
        token = CancellationToken(self._generation)
        self._token = token

        if sim_time is None or sim_time <= 0:
            sim_time = self.state.current_sim_time if self.state.current_sim_time > 0 else session_start
        self.session_start = session_start
        self.window.reset(symbol, timeframe)
        self.state.resize(0)
        self._set_status(PlaybackStatus.LOADING)

        try:
            await self._load_window(symbol, timeframe, session_start, sim_time, token)
        except FetchCancelledError:
            logger.debug("Carga %d cancelada (%s %s)", token.generation, symbol, timeframe.value)
            return False
        except DataUnavailableError as exc:
            if token.cancelled:
                return False
            logger.warning("Sin datos para %s %s: %s", symbol, timeframe.value, exc.message)
            self._fail(symbol, timeframe, exc.message)
            return False
        except Exception as exc:
            if token.cancelled:
                return False
            logger.exception("Error cargando %s %s", symbol, timeframe.value)
            self._fail(symbol, timeframe, str(exc))
            return False

        if token.cancelled:
            return False
        self._set_status(PlaybackStatus.READY)
        self._changed()
        return True

    async def reload(self) -> bool:
        """Recarga el símbolo/timeframe activo en el sim_time actual."""
        if not self.window.symbol or self.window.timeframe is None:
            return False
        return await self.load(
            self.window.symbol,
            self.window.timeframe,
            self.session_start,
            self.state.current_sim_time,
        )

    def _fail(self, symbol: str, timeframe: Timeframe, message: str) -> None:
        self.window.replace([], [])
        self.state.resize(0)
        self._set_status(PlaybackStatus.ERROR)
        self._sink.publish(DataUnavailable(symbol=symbol, timeframe=timeframe.value, message=message))
        self._changed()

    async def _load_window(
        self,
        symbol: str,
        timeframe: Timeframe,
        session_start: float,
        sim_time: float,
        token: CancellationToken,
    ) -> None:
        cfg = self._config
        interval = timeframe.seconds
        aligned = align_time(sim_time, interval)

        context = await self._provider.fetch_context_candles(
            symbol, timeframe, aligned + interval, cfg.visible_candles + cfg.warmup_buffer, token,
        )
        token.raise_if_cancelled()
        future = await self._provider.fetch_future_candles(
            symbol, timeframe, aligned, cfg.visible_candles, token,
        )
        token.raise_if_cancelled()

        if not context and not future:
            await self._load_from_first(symbol, timeframe, token)
            return

        history = [c for c in context if c.time >= session_start]
        warmup = [c for c in context if c.time < session_start]
        if len(warmup) < cfg.min_warmup:
            first = context[0] if context else future[0]
            warmup = _pad_warmup(first, cfg.min_warmup - len(warmup), interval) + warmup

        merged = {c.time: c for c in history}
        merged.update((c.time, c) for c in future)
        visible = [merged[t] for t in sorted(merged)]
        if not visible:
            raise DataUnavailableError(
                "No hay velas a partir del inicio de sesión", symbol=symbol, timeframe=timeframe.value,
            )

        index = 0
        for i in range(len(visible) - 1, -1, -1):
            if visible[i].time <= sim_time:
                index = i
                break

        active = visible[index]
        if sim_time < active.time + interval - 1:
            visible[index] = active.with_live_price(self.live_price or None)
        self.live_price = visible[index].close

        self.window.replace(visible, warmup)
        self.state.resize(len(visible))
        self.state.current_index = index
        self.state.current_sim_time = sim_time
        self.window.reveal_through(index)
        logger.info(
            "Ventana cargada %s %s: %d visibles, %d warm-up, idx=%d",
            symbol, timeframe.value, len(visible), len(warmup), index,
        )

    async def _load_from_first(self, symbol: str, timeframe: Timeframe, token: CancellationToken) -> None:
        cfg = self._config
        interval = timeframe.seconds

        first = await self._provider.fetch_first_candle(symbol, timeframe, token)
        token.raise_if_cancelled()
        if first is None:
            raise DataUnavailableError("Dataset vacío", symbol=symbol, timeframe=timeframe.value)

        future = await self._provider.fetch_future_candles(
            symbol, timeframe, first.time - 1, cfg.visible_candles, token,
        )
        token.raise_if_cancelled()
        if not future:
            raise DataUnavailableError(
                "No hay velas desde la primera disponible", symbol=symbol, timeframe=timeframe.value,
            )

        logger.warning("Sin datos en el instante pedido; replay desde la primera vela (%d)", future[0].time)
        self.window.replace(future, _pad_warmup(future[0], cfg.min_warmup, interval))
        self.state.resize(len(future))
        self.state.current_index = 0
        self.state.current_sim_time = future[0].end_time(interval)
        self.window.reveal_through(0)
        self.live_price = future[0].close

    # ════════════════════════════════════════════════════════════════
    #  Reproducción
    # ════════════════════════════════════════════════════════════════

    async def play(self) -> bool:
        if self._status not in (PlaybackStatus.READY, PlaybackStatus.PLAYING) or self.window.is_empty():
            return False
        if self._ticker_task is not None and not self._ticker_task.done():
            return True
        self.state.is_playing = True
        self._set_status(PlaybackStatus.PLAYING)
        self._ticker_task = asyncio.create_task(self._run_ticker(), name="replay-ticker")
        return True

    async def pause(self) -> None:
        self.state.is_playing = False
        await self._stop_ticker()
        if self._status is PlaybackStatus.PLAYING:
            self._set_status(PlaybackStatus.READY)

    def set_speed(self, speed_ms: int) -> None:
        self.state.speed = max(1, int(speed_ms))

    def tick(self) -> bool:
        """
        Avanza una vela.

        Returns:
            False si el avance alcanzaría max_index (la reproducción se detiene).
        """
        if not self.state.advance():
            logger.info("Fin de datos en idx=%d", self.state.current_index)
            return False
        self._sync_sim_time()
        self._changed()
        return True

    async def step(self) -> bool:
        """Avance manual de una vela (sin ticker)."""
        if not self.state.can_advance():
            return False
        self.state.current_index += 1
        self._sync_sim_time()
        self._changed()
        await self.ensure_forward_buffer()
        return True

    def _sync_sim_time(self) -> None:
        candle = self.window.candles[self.state.current_index]
        self.state.current_sim_time = candle.end_time(self.window.interval)
        self.live_price = candle.close

    async def _run_ticker(self) -> None:
        while self.state.is_playing:
            await asyncio.sleep(self.state.speed / 1000)
            if not self.tick():
                break
            self._schedule_forward_buffer()
        if self._status is PlaybackStatus.PLAYING:
            self._set_status(PlaybackStatus.READY)

    async def _stop_ticker(self) -> None:
        task = self._ticker_task
        self._ticker_task = None
        if task is None or task.done() or task is asyncio.current_task():
            return
        task.cancel()
        try:
            await task
        except asyncio.CancelledError:
            pass

    # ════════════════════════════════════════════════════════════════
    #  Buffering
    # ════════════════════════════════════════════════════════════════

    def _remaining(self) -> int:
        return len(self.window) - 1 - self.state.current_index

    def _schedule_forward_buffer(self) -> None:
        if self._buffer_task is not None and not self._buffer_task.done():
            return
        if self._remaining() >= self._config.forward_buffer_threshold:
            return
        self._buffer_task = asyncio.create_task(self.ensure_forward_buffer(), name="replay-forward-buffer")

    async def ensure_forward_buffer(self) -> int:
        """
        Pide más velas futuras si quedan menos del umbral.

        Returns:
            Velas agregadas (solo las estrictamente más nuevas).
        """
        if self.window.is_empty() or self._buffering:
            return 0
        if self._remaining() >= self._config.forward_buffer_threshold:
            return 0

        generation = self._generation
        symbol, timeframe = self.window.symbol, self.window.timeframe
        self._buffering = True
        try:
            more = await self._provider.fetch_future_candles(
                symbol, timeframe, self.window.candles[-1].time, self._config.forward_batch_size,
            )
        except FetchCancelledError:
            return 0
        except Exception:
            logger.exception("Error pidiendo velas futuras de %s", symbol)
            return 0
        finally:
            self._buffering = False

        if generation != self._generation:
            logger.debug("Buffer de la generación %d descartado", generation)
            return 0
        added = self.window.append_newer(more)
        self.state.resize(len(self.window))
        if added:
            logger.debug("Buffer: +%d velas (%d total)", added, len(self.window))
            self._changed()
        return added

    async def load_more_history(self) -> int:
        """
        Backfill: velas anteriores a la vela real más antigua.

        Las nuevas velas más antiguas pasan a ser el warm-up; el resto y el
        warm-up real previo se deslizan a la ventana visible. El índice se
        re-ubica para seguir apuntando a la misma vela.

        Returns:
            Velas agregadas a la ventana visible.
        """
        if self.window.is_empty() or self._loading_history:
            return 0
        oldest = self.window.oldest_real_time()
        if oldest is None:
            return 0

        cfg = self._config
        generation = self._generation
        symbol, timeframe = self.window.symbol, self.window.timeframe
        self._loading_history = True
        try:
            raw = await self._provider.fetch_historical_data(
                symbol, timeframe, oldest, cfg.history_batch_size + cfg.warmup_buffer,
            )
        except Exception:
            logger.exception("Error cargando historia de %s", symbol)
            return 0
        finally:
            self._loading_history = False

        if generation != self._generation:
            logger.debug("Historia de la generación %d descartada", generation)
            return 0
        if not raw:
            logger.info("No hay más historia antes de %d", oldest)
            return 0

        if len(raw) > cfg.warmup_buffer:
            new_warmup = raw[:cfg.warmup_buffer]
            new_visible = raw[cfg.warmup_buffer:]
        else:
            new_warmup = _pad_warmup(raw[0], cfg.min_warmup, self.window.interval)
            new_visible = raw

        reference_time = self.window.candles[self.state.current_index].time
        previous_len = len(self.window)
        real_warmup = [c for c in self.window.warmup if not c.synthetic]

        merged = {}
        for candle in list(new_visible) + real_warmup + self.window.candles:
            merged[candle.time] = candle
        visible = [merged[t] for t in sorted(merged)]
        warmup = [c for c in new_warmup if c.time < visible[0].time]

        self.window.replace(visible, warmup)
        self.state.resize(len(visible))
        self.state.current_index = self.window.index_at_or_before(reference_time)
        self._changed()

        added = len(visible) - previous_len
        logger.info("Historia: +%d velas visibles, idx=%d", added, self.state.current_index)
        return added

    # ════════════════════════════════════════════════════════════════
    #  Saltos
    # ════════════════════════════════════════════════════════════════

    async def jump_to_date(self, value: Union[str, float, int]) -> bool:
        target = parse_datetime(value)
        if target is None:
            logger.warning("Fecha inválida para salto: %r", value)
            return False
        await self.pause()
        self.state.current_sim_time = target
        return await self.reload()

    async def jump_to_first_data(self) -> bool:
        if not self.window.symbol or self.window.timeframe is None:
            return False
        await self.pause()
        try:
            first = await self._provider.fetch_first_candle(self.window.symbol, self.window.timeframe)
        except Exception:
            logger.exception("Error buscando la primera vela de %s", self.window.symbol)
            return False
        if first is None:
            return False
        self.state.current_sim_time = first.time
        return await self.reload()

    async def stop(self) -> None:
        """Detiene ticker, buffering y la carga en curso."""
        if self._token is not None:
            self._token.cancel()
        await self.pause()
        task = self._buffer_task
        self._buffer_task = None
        if task is not None and not task.done():
            task.cancel()
            try:
                await task
            except asyncio.CancelledError:
                pass

    # ════════════════════════════════════════════════════════════════
    #  Precio en vivo y valores derivados
    # ════════════════════════════════════════════════════════════════

    def set_live_price(self, price: float) -> None:
        """Último precio conocido; re-sintetiza la vela actual si está en formación."""
        self.live_price = price
        if self.window.is_empty():
            return
        index = self.state.current_index
        candle = self.window.candles[index]
        if self.state.current_sim_time < candle.time + self.window.interval - 1:
            self.window.set_candle(index, candle.with_live_price(price))
            self._changed()

    def current_slice(self) -> List[Candle]:
        if self.window.is_empty():
            return []
        return self.window.candles[: self.state.current_index + 1]

    @property
    def current_candle(self) -> Optional[Candle]:
        if self.window.is_empty():
            return None
        return self.window.candles[self.state.current_index]

    @property
    def trading_price(self) -> float:
        candle = self.current_candle
        return candle.close if candle else 0.0

    @property
    def last_time(self) -> int:
        candle = self.current_candle
        return candle.time if candle else 0

    def digits(self, custom_digits: Optional[int] = None) -> int:
        sample = self.window.candles[-1].close if not self.window.is_empty() else None
        return display_digits(self.window.symbol, custom_digits, sample)

    def full_series(self) -> List[Candle]:
        return self.window.full_series()

    def clip_indicator(self, points: Sequence[T]) -> List[T]:
        """Puntos de indicador (con atributo `time`) dentro de [inicio visible, last_time]."""
        if self.window.is_empty():
            return []
        start = self.window.candles[0].time
        end = self.last_time
        return [p for p in points if start <= p.time <= end]

    def to_dict(self) -> dict:
        return {
            "status": self._status.value,
            "generation": self._generation,
            "live_price": self.live_price,
            "session_start": self.session_start,
            **self.state.to_dict(),
            "window": self.window.to_dict(),
        }
