"""Fixtures compartidos: reloj manual, proveedor falso y constructores de velas."""

from __future__ import annotations

import asyncio
from types import SimpleNamespace
from typing import Dict, List, Optional, Tuple

import pytest

from regimepulse.application.ports.clock import IClock
from regimepulse.application.ports.market_data_provider import IMarketDataProvider
from regimepulse.application.services.candle_cache import CandleCache
from regimepulse.application.services.higher_trend import HigherTrendService
from regimepulse.application.services.profile_factory import build_profiles
from regimepulse.application.services.regime_engine import RegimeEngine
from regimepulse.application.use_cases.generate_signals_usecase import GenerateSignalsUseCase
from regimepulse.application.use_cases.instant_decision_usecase import InstantDecisionUseCase
from regimepulse.domain.entities.candle import Candle
from regimepulse.domain.exceptions.domain_errors import DataFetchError
from regimepulse.domain.services.impulse_detector import ImpulseDetector
from regimepulse.domain.services.mode_controller import ModeController
from regimepulse.domain.value_objects.strategy_profile import ProfileName
from regimepulse.domain.value_objects.tick import TickSample
from regimepulse.infrastructure.external.event_bus_adapter import EventBus
from regimepulse.shared.config.settings import StrategyConfig

T0_MS = 1_700_000_000_000
HOUR = 3600


class FakeClock(IClock):
    def __init__(self, now_ms: int = T0_MS) -> None:
        self._now = now_ms

    def now_ms(self) -> int:
        return self._now

    def advance(self, ms: int) -> None:
        self._now += ms


class FakeProvider(IMarketDataProvider):
    """
    Devuelve velas fijas por (instrumento, intervalo).

    gate: si se asigna un asyncio.Event, cada fetch espera a que se active.
    gates: igual que gate pero por (instrumento, intervalo).
    fail: si es True, cada fetch lanza DataFetchError.
    """

    def __init__(self, default: Optional[List[Candle]] = None) -> None:
        self.default: List[Candle] = default if default is not None else flat_candles(200)
        self.candles: Dict[Tuple[str, str], List[Candle]] = {}
        self.calls: List[Tuple[str, str, int]] = []
        self.ticks: List[TickSample] = []
        self.gate: Optional[asyncio.Event] = None
        self.gates: Dict[Tuple[str, str], asyncio.Event] = {}
        self.fail = False

    async def fetch_candles(self, instrument: str, interval: str, limit: int) -> List[Candle]:
        self.calls.append((instrument, interval, limit))
        if self.gate is not None:
            await self.gate.wait()
        if (instrument, interval) in self.gates:
            await self.gates[(instrument, interval)].wait()
        if self.fail:
            raise DataFetchError("fetch simulado fallido", instrument=instrument, interval=interval)
        return list(self.candles.get((instrument, interval), self.default))[-limit:]

    async def stream_trades(self, instrument: str):
        for tick in self.ticks:
            if tick.symbol == instrument:
                yield tick


def make_candle(
    index: int,
    open_: float,
    close: float,
    high: Optional[float] = None,
    low: Optional[float] = None,
    volume: float = 1.0,
) -> Candle:
    return Candle(
        time=index * HOUR,
        open=open_,
        high=high if high is not None else max(open_, close) + 0.5,
        low=low if low is not None else min(open_, close) - 0.5,
        close=close,
        volume=volume,
    )


def flat_candles(count: int, price: float = 100.0, volume: float = 1.0) -> List[Candle]:
    return [make_candle(i, price, price, volume=volume) for i in range(count)]


@pytest.fixture
def clock() -> FakeClock:
    return FakeClock()


@pytest.fixture
def provider() -> FakeProvider:
    return FakeProvider()


@pytest.fixture
def profiles():
    return build_profiles(StrategyConfig())


@pytest.fixture
def normal_profile(profiles):
    return profiles[ProfileName.NORMAL]


@pytest.fixture
def event_profile(profiles):
    return profiles[ProfileName.EVENT]


@pytest.fixture
def engine_setup(clock, provider):
    """RegimeEngine completo sobre FakeProvider + FakeClock + EventBus real."""
    config = StrategyConfig()
    detector = ImpulseDetector(
        "BTCUSDT",
        threshold_pct=config.event_threshold_pct,
        volume_multiplier=config.event_volume_multiplier,
        enabled=config.detector_enabled,
    )
    mode = ModeController(build_profiles(config), clock, hold_minutes=config.event_hold_minutes)
    cache = CandleCache(provider, clock, ttl_ms=12_000)
    bus = EventBus(max_queue_size=100)
    engine = RegimeEngine(
        detector=detector,
        mode_controller=mode,
        signals_usecase=GenerateSignalsUseCase(cache, HigherTrendService(cache), clock),
        decision_usecase=InstantDecisionUseCase(cache),
        publisher=bus,
        strategy_config=config,
        instruments={"BTCUSDT": "BTC / USDT", "ETHUSDT": "ETH / USDT"},
        intervals=["1m", "15m", "1h", "4h"],
        interval="1h",
    )
    return SimpleNamespace(
        engine=engine, detector=detector, mode=mode, cache=cache, bus=bus,
        clock=clock, provider=provider,
    )
