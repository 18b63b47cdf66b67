"""
Dependency Injection Container.

Crea y comparte las instancias del replay: ventana de velas, reloj,
estado de dibujos, servicios de interacción y providers.

Clean Architecture: este contenedor vive en la capa más externa y es el único
lugar donde se crean dependencias concretas y se leen los Settings.
"""

from dataclasses import dataclass, field
from typing import Any, Optional

# Application
from chartreplay.application.ports.candle_data_provider import ICandleDataProvider
from chartreplay.application.ports.event_sink import IEventSink
from chartreplay.application.services.annotation_engine import AnnotationEngine
from chartreplay.application.services.chart_workspace import ChartWorkspace
from chartreplay.application.services.coordinate_mapper import CoordinateMapper
from chartreplay.application.services.overlay_renderer import OverlayRenderer
from chartreplay.application.services.pane_registry import PaneRegistry
from chartreplay.application.services.playback_engine import PlaybackEngine, ReplayConfig
from chartreplay.application.services.trade_overlay import TradeOverlayController
from chartreplay.application.state.candle_window import CandleWindow
from chartreplay.application.state.drawing_state import DrawingStateManager
from chartreplay.application.state.interaction_context import InteractionContext
from chartreplay.application.state.simulation_state import SimulationState

# Domain
from chartreplay.domain.services.position_bracket import BracketConfig
from chartreplay.domain.services.session_zones import SessionZoneCalculator, SessionZoneConfig

# Shared
from chartreplay.shared.config.settings import Settings


@dataclass
class Container:
    """
    Contenedor de Inyección de Dependencias.

    Todas las instancias son singletons perezosos; la ventana de velas
    y el contexto de interacción se comparten por referencia.
    """

    # Configuración
    settings: Settings = field(default_factory=Settings)
    custom_digits: Optional[int] = None

    # Ports (implementaciones concretas)
    _candle_provider: Optional[ICandleDataProvider] = None
    _event_bus: Optional[IEventSink] = None

    # Estado
    _window: Optional[CandleWindow] = None
    _simulation_state: Optional[SimulationState] = None
    _interaction_context: Optional[InteractionContext] = None
    _drawing_state: Optional[DrawingStateManager] = None

    # Servicios
    _pane_registry: Optional[PaneRegistry] = None
    _coordinate_mapper: Optional[CoordinateMapper] = None
    _session_zones: Optional[SessionZoneCalculator] = None
    _annotation_engine: Optional[AnnotationEngine] = None
    _trade_overlay: Optional[TradeOverlayController] = None
    _overlay_renderer: Optional[OverlayRenderer] = None
    _playback_engine: Optional[PlaybackEngine] = None
    _workspace: Optional[ChartWorkspace] = None

    # ==================== Ports ====================

    @property
    def candle_provider(self) -> ICandleDataProvider:
        """Provider CSV sobre settings.candle_data_dir."""
        if self._candle_provider is None:
            from chartreplay.infrastructure.external.csv_candle_provider import CsvCandleProvider
            self._candle_provider = CsvCandleProvider(self.settings.candle_data_dir)
        return self._candle_provider

    @property
    def event_bus(self) -> IEventSink:
        if self._event_bus is None:
            from chartreplay.infrastructure.external.callback_event_bus import CallbackEventBus
            self._event_bus = CallbackEventBus()
        return self._event_bus

    # ==================== State ====================

    @property
    def window(self) -> CandleWindow:
        if self._window is None:
            self._window = CandleWindow(default_interval=self.settings.default_interval_seconds)
        return self._window

    @property
    def simulation_state(self) -> SimulationState:
        if self._simulation_state is None:
            self._simulation_state = SimulationState(speed=self.settings.default_speed_ms)
        return self._simulation_state

    @property
    def interaction_context(self) -> InteractionContext:
        if self._interaction_context is None:
            self._interaction_context = InteractionContext(window=self.window)
        return self._interaction_context

    @property
    def drawing_state(self) -> DrawingStateManager:
        if self._drawing_state is None:
            self._drawing_state = DrawingStateManager(
                self.interaction_context,
                position_width_bars=self.settings.position_default_width_bars,
            )
        return self._drawing_state

    # ==================== Services ====================

    @property
    def pane_registry(self) -> PaneRegistry:
        if self._pane_registry is None:
            self._pane_registry = PaneRegistry()
        return self._pane_registry

    @property
    def coordinate_mapper(self) -> CoordinateMapper:
        if self._coordinate_mapper is None:
            self._coordinate_mapper = CoordinateMapper(
                self.window, gap_ratio=self.settings.gap_tolerance_ratio,
            )
        return self._coordinate_mapper

    @property
    def session_zones(self) -> SessionZoneCalculator:
        if self._session_zones is None:
            self._session_zones = SessionZoneCalculator(SessionZoneConfig(
                utc_offset_hours=self.settings.killzone_utc_offset_hours,
                max_interval_seconds=self.settings.killzone_max_interval_seconds,
                snap_interval_seconds=self.settings.killzone_snap_interval_seconds,
            ))
        return self._session_zones

    @property
    def annotation_engine(self) -> AnnotationEngine:
        if self._annotation_engine is None:
            self._annotation_engine = AnnotationEngine(
                self.interaction_context,
                self.pane_registry,
                self.coordinate_mapper,
                self.drawing_state,
                self.event_bus,
                bracket_config=BracketConfig(
                    min_distance_pct=self.settings.position_min_distance_pct,
                    default_risk_pct=self.settings.position_default_risk_pct,
                ),
            )
        return self._annotation_engine

    @property
    def trade_overlay(self) -> TradeOverlayController:
        if self._trade_overlay is None:
            self._trade_overlay = TradeOverlayController(
                self.pane_registry, self.coordinate_mapper, self.event_bus,
            )
        return self._trade_overlay

    @property
    def playback_engine(self) -> PlaybackEngine:
        if self._playback_engine is None:
            s = self.settings
            self._playback_engine = PlaybackEngine(
                self.candle_provider,
                self.event_bus,
                self.window,
                self.simulation_state,
                ReplayConfig(
                    visible_candles=s.visible_candles,
                    warmup_buffer=s.warmup_buffer,
                    min_warmup=s.min_warmup,
                    forward_buffer_threshold=s.forward_buffer_threshold,
                    forward_batch_size=s.forward_batch_size,
                    history_batch_size=s.history_batch_size,
                ),
            )
        return self._playback_engine

    @property
    def overlay_renderer(self) -> OverlayRenderer:
        if self._overlay_renderer is None:
            self._overlay_renderer = OverlayRenderer(
                self.interaction_context,
                self.pane_registry,
                self.coordinate_mapper,
                self.annotation_engine,
                self.trade_overlay,
                self.session_zones,
                digits_provider=lambda: self.playback_engine.digits(self.custom_digits),
            )
        return self._overlay_renderer

    @property
    def workspace(self) -> ChartWorkspace:
        if self._workspace is None:
            self._workspace = ChartWorkspace(
                self.interaction_context,
                self.pane_registry,
                self.annotation_engine,
                self.drawing_state,
                self.trade_overlay,
                self.overlay_renderer,
                self.playback_engine,
                self.event_bus,
            )
        return self._workspace

    # ==================== Lifecycle ====================

    def reset(self) -> None:
        """Resetea todas las instancias (útil para tests)."""
        for name in list(vars(self)):
            if name.startswith("_"):
                setattr(self, name, None)

    def override(self, name: str, instance: Any) -> None:
        """
        Override una dependencia (útil para tests).

        Args:
            name: Nombre de la dependencia (ej: 'candle_provider')
            instance: Instancia a usar
        """
        attr_name = f"_{name}"
        if hasattr(self, attr_name):
            setattr(self, attr_name, instance)
        else:
            raise ValueError(f"Unknown dependency: {name}")


# ==================== Global Container ====================

_container: Optional[Container] = None


def get_container() -> Container:
    """Instancia global del contenedor (se crea con Settings por defecto)."""
    global _container
    if _container is None:
        _container = Container()
    return _container


def reset_container() -> None:
    global _container
    if _container is not None:
        _container.reset()
    _container = None


def init_container(settings: Optional[Settings] = None) -> Container:
    """
    Inicializa el contenedor con configuración específica.

    Args:
        settings: Configuración opcional. Si es None, usa valores por defecto.
    """
    global _container
    if settings is None:
        settings = Settings()
    _container = Container(settings=settings)
    return _container
