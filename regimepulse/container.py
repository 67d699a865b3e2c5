"""
Dependency Injection Container.

Único lugar donde se crean dependencias concretas. Cada propiedad crea
su instancia la primera vez que se pide (singleton perezoso); los tests
sustituyen piezas con override() antes de tocarlas.

Clean Architecture: este contenedor vive en la capa más externa.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Optional

# Domain
from regimepulse.domain.services.impulse_detector import ImpulseDetector
from regimepulse.domain.services.mode_controller import ModeController

# Application
from regimepulse.application.ports.clock import IClock
from regimepulse.application.ports.event_publisher import IEventPublisher
from regimepulse.application.ports.market_data_provider import IMarketDataProvider
from regimepulse.application.services.candle_cache import CandleCache
from regimepulse.application.services.higher_trend import HigherTrendService
from regimepulse.application.services.profile_factory import build_profiles
from regimepulse.application.services.regime_engine import RegimeEngine
from regimepulse.application.use_cases.generate_signals_usecase import GenerateSignalsUseCase
from regimepulse.application.use_cases.instant_decision_usecase import InstantDecisionUseCase
from regimepulse.application.use_cases.process_tick_usecase import ProcessTickUseCase

# Shared
from regimepulse.shared.config.settings import Settings


@dataclass
class Container:
    """
    Contenedor de Inyección de Dependencias.

    Las capas internas dependen de abstracciones (ports); aquí se decide
    qué implementación concreta las satisface.
    """

    settings: Settings = field(default_factory=Settings)

    # Ports
    _clock: Optional[IClock] = None
    _event_bus: Optional[IEventPublisher] = None
    _market_data_provider: Optional[IMarketDataProvider] = None

    # Servicios con estado
    _candle_cache: Optional[CandleCache] = None
    _detector: Optional[ImpulseDetector] = None
    _mode_controller: Optional[ModeController] = None
    _engine: Optional[RegimeEngine] = None
    _process_tick: Optional[ProcessTickUseCase] = None
    _trade_feed: Optional[Any] = None
    _ws_manager: Optional[Any] = None

    # ==================== Ports ====================

    @property
    def clock(self) -> IClock:
        if self._clock is None:
            from regimepulse.infrastructure.external.system_clock import SystemClock
            self._clock = SystemClock()
        return self._clock

    @property
    def event_bus(self) -> IEventPublisher:
        if self._event_bus is None:
            from regimepulse.infrastructure.external.event_bus_adapter import EventBus
            self._event_bus = EventBus(max_queue_size=self.settings.event_bus_max_queue_size)
        return self._event_bus

    @property
    def market_data_provider(self) -> IMarketDataProvider:
        if self._market_data_provider is None:
            from regimepulse.infrastructure.external.binance_adapter import BinanceMarketDataProvider
            self._market_data_provider = BinanceMarketDataProvider(self.settings)
        return self._market_data_provider

    # ==================== Application ====================

    @property
    def candle_cache(self) -> CandleCache:
        if self._candle_cache is None:
            self._candle_cache = CandleCache(
                provider=self.market_data_provider,
                clock=self.clock,
                ttl_ms=int(self.settings.candle_cache_ttl_seconds * 1000),
            )
        return self._candle_cache

    @property
    def detector(self) -> ImpulseDetector:
        if self._detector is None:
            s = self.settings
            self._detector = ImpulseDetector(
                instrument=s.default_instrument,
                threshold_pct=s.strategy.event_threshold_pct,
                volume_multiplier=s.strategy.event_volume_multiplier,
                enabled=s.strategy.detector_enabled,
                cooldown_ms=int(s.detector_cooldown_seconds * 1000),
                window_ms=int(s.detector_window_seconds * 1000),
                retention_ms=int(s.detector_retention_seconds * 1000),
                min_samples=s.detector_min_samples,
            )
        return self._detector

    @property
    def mode_controller(self) -> ModeController:
        if self._mode_controller is None:
            self._mode_controller = ModeController(
                profiles=build_profiles(self.settings.strategy),
                clock=self.clock,
                hold_minutes=self.settings.strategy.event_hold_minutes,
            )
        return self._mode_controller

    @property
    def engine(self) -> RegimeEngine:
        if self._engine is None:
            s = self.settings
            self._engine = RegimeEngine(
                detector=self.detector,
                mode_controller=self.mode_controller,
                signals_usecase=GenerateSignalsUseCase(
                    cache=self.candle_cache,
                    higher_trend=HigherTrendService(
                        self.candle_cache, candle_limit=s.higher_tf_candle_limit,
                    ),
                    clock=self.clock,
                    candle_limit=s.chart_candle_limit,
                ),
                decision_usecase=InstantDecisionUseCase(
                    self.candle_cache, candle_limit=s.decision_candle_limit,
                ),
                publisher=self.event_bus,
                strategy_config=s.strategy,
                instruments=s.instruments,
                intervals=s.available_intervals,
                interval=s.default_interval,
                poll_seconds=s.mode_poll_seconds,
                refresh_seconds=s.signal_refresh_seconds,
            )
        return self._engine

    @property
    def process_tick(self) -> ProcessTickUseCase:
        if self._process_tick is None:
            self._process_tick = ProcessTickUseCase(self.event_bus, self.engine)
        return self._process_tick

    # ==================== Infrastructure / Presentation ====================

    @property
    def trade_feed(self):
        if self._trade_feed is None:
            from regimepulse.infrastructure.external.trade_feed import TradeFeed
            self._trade_feed = TradeFeed(self.market_data_provider, self.event_bus)
            self.engine.add_instrument_listener(self._trade_feed.switch)
        return self._trade_feed

    @property
    def ws_manager(self):
        if self._ws_manager is None:
            from regimepulse.presentation.websocket.websocket_manager import WebSocketManager
            self._ws_manager = WebSocketManager(self.event_bus)
        return self._ws_manager

    # ==================== Lifecycle ====================

    def override(self, name: str, instance: Any) -> None:
        """
        Override una dependencia (útil para tests con fakes).

        Args:
            name: Nombre de la dependencia (ej: 'market_data_provider')
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
    global _container
    if _container is None:
        _container = Container()
    return _container


def init_container(settings: Optional[Settings] = None) -> Container:
    """Inicializa el contenedor global (settings por defecto si None)."""
    global _container
    _container = Container(settings=settings or Settings())
    return _container
