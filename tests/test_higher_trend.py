from dataclasses import replace

import pytest

from conftest import make_candle
from regimepulse.application.services.candle_cache import CandleCache
from regimepulse.application.services.higher_trend import HigherTrendService, higher_interval_of


def _trend(count, step):
    return [make_candle(i, 100 + i * step, 100 + (i + 1) * step) for i in range(count)]


@pytest.fixture
def service(provider, clock):
    return HigherTrendService(CandleCache(provider, clock), candle_limit=600)


@pytest.mark.parametrize("interval, expected", [("1h", "4h"), ("4h", "1d"), ("15m", None), ("1d", None)])
def test_higher_interval_map(interval, expected):
    assert higher_interval_of(interval) == expected


@pytest.mark.asyncio
async def test_rising_higher_timeframe_is_ok(service, provider, normal_profile):
    provider.candles[("BTCUSDT", "4h")] = _trend(200, 0.5)
    assert await service.higher_trend_ok("BTCUSDT", "1h", normal_profile) is True
    assert provider.calls == [("BTCUSDT", "4h", 600)]


@pytest.mark.asyncio
async def test_falling_higher_timeframe_blocks(service, provider, normal_profile):
    provider.candles[("BTCUSDT", "1d")] = _trend(200, -0.2)
    assert await service.higher_trend_ok("BTCUSDT", "4h", normal_profile) is False


@pytest.mark.asyncio
async def test_unknown_cases_return_none(service, provider, normal_profile, event_profile):
    # sin TF superior
    assert await service.higher_trend_ok("BTCUSDT", "15m", normal_profile) is None
    # perfil sin MTF
    assert await service.higher_trend_ok("BTCUSDT", "1h", event_profile) is None
    assert provider.calls == []

    # EMA sin calentar
    provider.candles[("BTCUSDT", "4h")] = _trend(50, 0.5)
    assert await service.higher_trend_ok("BTCUSDT", "1h", normal_profile) is None


@pytest.mark.asyncio
async def test_fetch_failure_is_unknown(service, provider, normal_profile):
    provider.fail = True
    assert await service.higher_trend_ok("BTCUSDT", "1h", normal_profile) is None


@pytest.mark.asyncio
async def test_empty_response_is_unknown(service, provider, normal_profile):
    provider.candles[("BTCUSDT", "4h")] = []
    profile = replace(normal_profile, ema_trend_period=1)
    assert await service.higher_trend_ok("BTCUSDT", "1h", profile) is None
