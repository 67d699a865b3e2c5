import pytest

from conftest import flat_candles, make_candle
from regimepulse.application.services.candle_cache import CandleCache
from regimepulse.application.services.higher_trend import HigherTrendService
from regimepulse.application.use_cases.generate_signals_usecase import GenerateSignalsUseCase
from regimepulse.application.use_cases.instant_decision_usecase import InstantDecisionUseCase
from regimepulse.domain.exceptions.domain_errors import DataFetchError
from regimepulse.domain.value_objects.impulse import ImpulseDirection


def _cross_candles():
    candles = flat_candles(160)
    candles.append(make_candle(160, 100.0, 101.0, volume=2.0))
    candles.append(make_candle(161, 101.0, 101.0))
    return candles


def _falling_candles():
    return [make_candle(i, 200 - i * 0.5, 200 - (i + 1) * 0.5) for i in range(200)]


@pytest.fixture
def cache(provider, clock):
    return CandleCache(provider, clock)


@pytest.fixture
def usecase(cache, clock):
    return GenerateSignalsUseCase(cache, HigherTrendService(cache), clock)


@pytest.mark.asyncio
async def test_report_summarizes_last_event(usecase, provider, normal_profile):
    provider.candles[("BTCUSDT", "1h")] = _cross_candles()
    provider.candles[("BTCUSDT", "4h")] = []

    report = await usecase.execute("BTCUSDT", "1h", normal_profile)

    assert report.stale is False
    assert [e.type.value for e in report.events] == ["BUY"]
    assert report.last_decision == "BUY [NORMAL]"
    assert report.last_price == 101.0
    assert report.trend_ok is True
    assert report.detail == "TREND OK | MTF ? | VOL OFF"
    assert report.meta == "BTCUSDT | 1h | Profile NORMAL | SL 0.9% | Trail 1.6%"
    assert provider.calls == [("BTCUSDT", "4h", 600), ("BTCUSDT", "1h", 900)]


@pytest.mark.asyncio
async def test_nan_volume_on_last_bar_counts_as_zero(usecase, provider, normal_profile):
    candles = flat_candles(160, volume=0.0)
    candles.append(make_candle(160, 100.0, 101.0, volume=float("nan")))
    provider.candles[("BTCUSDT", "1h")] = candles
    provider.candles[("BTCUSDT", "4h")] = []

    report = await usecase.execute("BTCUSDT", "1h", normal_profile)

    assert report.detail == "TREND OK | MTF ? | VOL OK"
    assert [e.type.value for e in report.events] == ["BUY"]


@pytest.mark.asyncio
async def test_event_profile_detail_and_event_decision(usecase, provider, event_profile):
    provider.candles[("BTCUSDT", "1h")] = _falling_candles()

    report = await usecase.execute(
        "BTCUSDT", "1h", event_profile, event_decision="EVENT BUY (Impulse-Up)",
    )

    assert report.detail == "TREND OFF | BREAKOUT ON"
    assert report.last_decision == "EVENT BUY (Impulse-Up)"
    assert report.meta.endswith("SL 2.8% | Trail 6.5%")


@pytest.mark.asyncio
async def test_placeholder_event_decision_is_ignored(usecase, normal_profile):
    report = await usecase.execute("BTCUSDT", "15m", normal_profile, event_decision="—")
    assert report.last_decision == "—"


@pytest.mark.asyncio
async def test_cold_ema_reports_trend_off(usecase, provider, normal_profile):
    provider.candles[("BTCUSDT", "15m")] = flat_candles(30)
    report = await usecase.execute("BTCUSDT", "15m", normal_profile)

    assert report.trend_ok is False
    assert report.events == []


@pytest.mark.asyncio
async def test_fetch_failure_returns_previous_report_as_stale(usecase, provider, clock, normal_profile):
    fresh = await usecase.execute("BTCUSDT", "15m", normal_profile)

    clock.advance(60_000)
    provider.fail = True
    stale = await usecase.execute("BTCUSDT", "15m", normal_profile)

    assert stale.stale is True
    assert stale.events == fresh.events
    assert stale.generated_at_ms == fresh.generated_at_ms


@pytest.mark.asyncio
async def test_fetch_failure_without_history_is_empty_stale(usecase, provider, normal_profile):
    provider.fail = True
    report = await usecase.execute("ETHUSDT", "15m", normal_profile)

    assert report.stale is True
    assert report.events == []
    assert report.last_decision == "—"
    assert report.last_price is None


@pytest.mark.asyncio
async def test_instant_decision_uses_cached_candles(cache, provider):
    usecase = InstantDecisionUseCase(cache, candle_limit=260)

    decision = await usecase.execute("BTCUSDT", "1h", ImpulseDirection.UP, 101.0, "Manual Trigger", 150)

    assert decision.recommendation == "EVENT BUY (Impulse-Up)"
    assert provider.calls == [("BTCUSDT", "1h", 260)]


@pytest.mark.asyncio
async def test_instant_decision_propagates_fetch_errors(cache, provider):
    provider.fail = True
    usecase = InstantDecisionUseCase(cache)

    with pytest.raises(DataFetchError):
        await usecase.execute("BTCUSDT", "1h", ImpulseDirection.UP, 101.0, "r", 150)
