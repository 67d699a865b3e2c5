import json

import pytest
import requests

from regimepulse.domain.exceptions.domain_errors import DataFetchError
from regimepulse.infrastructure.external import binance_adapter
from regimepulse.infrastructure.external.binance_adapter import (
    BinanceMarketDataProvider,
    parse_kline_row,
    parse_trade_message,
)
from regimepulse.shared.config.settings import Settings

KLINE = [1_700_000_000_000, "100.0", "101.5", "99.5", "101.0", "12.5", 1_700_003_599_999, "0", 10]


class FakeResponse:
    def __init__(self, payload=None, status_error=None, bad_json=False):
        self._payload = payload
        self._status_error = status_error
        self._bad_json = bad_json

    def raise_for_status(self):
        if self._status_error:
            raise self._status_error

    def json(self):
        if self._bad_json:
            raise ValueError("no json")
        return self._payload


@pytest.fixture
def provider():
    return BinanceMarketDataProvider(Settings())


def _patch_get(monkeypatch, response=None, exc=None):
    calls = []

    def fake_get(url, params=None, timeout=None):
        calls.append({"url": url, "params": params, "timeout": timeout})
        if exc:
            raise exc
        return response

    monkeypatch.setattr(binance_adapter.requests, "get", fake_get)
    return calls


def test_parse_kline_row_converts_ms_to_seconds():
    candle = parse_kline_row(KLINE)

    assert candle.time == 1_700_000_000
    assert (candle.open, candle.high, candle.low, candle.close) == (100.0, 101.5, 99.5, 101.0)
    assert candle.volume == 12.5


@pytest.mark.parametrize("row", [[1, 2, 3], "nope", [1, "x", "1", "1", "1", "1"], [1, "nan", "1", "1", "1", "1"]])
def test_parse_kline_row_rejects_malformed(row):
    with pytest.raises(ValueError):
        parse_kline_row(row)


def test_parse_trade_message():
    raw = json.dumps({"e": "trade", "s": "BTCUSDT", "p": "43000.5", "q": "0.25", "T": 1_700_000_000_123})
    tick = parse_trade_message(raw, "BTCUSDT")

    assert tick.symbol == "BTCUSDT"
    assert tick.timestamp == 1_700_000_000_123
    assert tick.price == 43000.5
    assert tick.quantity == 0.25


def test_parse_trade_message_falls_back_to_instrument_symbol():
    raw = json.dumps({"p": "1.5", "q": "2", "T": 5})
    assert parse_trade_message(raw, "ethusdt").symbol == "ETHUSDT"


@pytest.mark.parametrize("raw", [
    "not json",
    json.dumps({"s": "BTCUSDT", "p": "1"}),
    json.dumps({"s": "BTCUSDT", "p": "nan", "q": "1", "T": 1}),
    json.dumps(["array"]),
])
def test_parse_trade_message_ignores_unusable(raw):
    assert parse_trade_message(raw, "BTCUSDT") is None


def test_stream_url(provider):
    assert provider.stream_url("BTCUSDT") == "wss://stream.binance.com:9443/ws/btcusdt@trade"


@pytest.mark.asyncio
async def test_fetch_candles(monkeypatch, provider):
    calls = _patch_get(monkeypatch, FakeResponse([KLINE, KLINE]))

    candles = await provider.fetch_candles("BTCUSDT", "1h", 2)

    assert len(candles) == 2
    assert calls[0]["params"] == {"symbol": "BTCUSDT", "interval": "1h", "limit": 2}
    assert calls[0]["timeout"] == 10.0


@pytest.mark.asyncio
@pytest.mark.parametrize("kwargs", [
    {"exc": requests.ConnectionError("down")},
    {"response": FakeResponse(status_error=requests.HTTPError("429"))},
    {"response": FakeResponse(bad_json=True)},
    {"response": FakeResponse({"code": -1121, "msg": "Invalid symbol."})},
    {"response": FakeResponse([[1, 2]])},
])
async def test_fetch_candles_errors_become_data_fetch_error(monkeypatch, provider, kwargs):
    _patch_get(monkeypatch, **kwargs)

    with pytest.raises(DataFetchError) as info:
        await provider.fetch_candles("BTCUSDT", "1h", 10)

    assert info.value.instrument == "BTCUSDT"
    assert info.value.interval == "1h"
