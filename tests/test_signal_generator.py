import random
from dataclasses import replace

import pytest

from conftest import flat_candles, make_candle
from regimepulse.domain.entities.signal_event import SignalType
from regimepulse.domain.services.indicator_calculator import IndicatorCalculator
from regimepulse.domain.services.signal_generator import SignalGenerator


def _cross_series(*tail):
    """160 velas planas en 100 + vela 160 que cruza al alza (vol 2) + `tail`."""
    candles = flat_candles(160)
    candles.append(make_candle(160, 100.0, 101.0, volume=2.0))
    for offset, (open_, close) in enumerate(tail, start=161):
        candles.append(make_candle(offset, open_, close))
    return candles


@pytest.fixture
def generator():
    return SignalGenerator()


def test_ma_cross_entry_then_stop_loss(generator, normal_profile):
    candles = _cross_series((101.0, 101.0), (101.0, 99.9))

    events = generator.generate(candles, normal_profile)

    assert [e.type for e in events] == [SignalType.BUY, SignalType.STOP_LOSS]
    buy, stop = events
    assert buy.reason == "MA-CROSS"
    assert buy.price == 101.0
    assert buy.time == candles[160].time
    assert buy.profile == "NORMAL"
    assert stop.time == candles[162].time
    assert stop.reason is None


def test_flat_series_produces_no_events(generator, normal_profile):
    assert generator.generate(flat_candles(300), normal_profile) == []


def test_short_series_is_warmup_not_error(generator, normal_profile):
    assert generator.generate(flat_candles(10), normal_profile) == []
    assert generator.generate([], normal_profile) == []


def test_higher_trend_false_blocks_entry(generator, normal_profile):
    candles = _cross_series((101.0, 101.0), (101.0, 99.9))

    assert generator.generate(candles, normal_profile, higher_trend_ok=False) == []
    # desconocido no bloquea
    assert generator.generate(candles, normal_profile, higher_trend_ok=None)


def test_low_volume_blocks_entry(generator, normal_profile):
    candles = [replace(c, volume=2.0) for c in flat_candles(160)]
    candles.append(make_candle(160, 100.0, 101.0, volume=1.0))

    assert generator.generate(candles, normal_profile) == []

    no_vol = replace(normal_profile, enable_vol=False)
    assert [e.type for e in generator.generate(candles, no_vol)] == [SignalType.BUY]


def test_trailing_take_profit(generator, normal_profile):
    profile = replace(normal_profile, trail_drawdown_pct=0.01)
    candles = _cross_series((101.0, 103.0), (103.0, 101.9))

    events = generator.generate(candles, profile)

    assert [e.type for e in events] == [SignalType.BUY, SignalType.TAKE_PROFIT]
    assert events[1].price == 101.9


def test_trend_fail_below_long_ma(generator, normal_profile):
    profile = replace(normal_profile, stop_loss_pct=0.05)
    candles = _cross_series((101.0, 100.0))

    events = generator.generate(candles, profile)

    assert [e.type for e in events] == [SignalType.BUY, SignalType.TREND_FAIL]


def test_stop_loss_wins_over_trend_fail(generator, normal_profile):
    # la vela 162 cumple STOP_LOSS y TREND_FAIL a la vez
    candles = _cross_series((101.0, 101.0), (101.0, 99.9))
    events = generator.generate(candles, normal_profile)
    assert events[-1].type is SignalType.STOP_LOSS


def test_event_breakout_entry_and_reversal_exit(generator, event_profile):
    candles = flat_candles(160)
    candles.append(make_candle(160, 100.0, 101.0, high=101.2, low=99.8))
    candles.append(make_candle(161, 100.8, 100.5, high=100.9, low=99.0))

    events = generator.generate(candles, event_profile)

    assert [e.type for e in events] == [SignalType.BUY, SignalType.REVERSAL_EXIT]
    assert events[0].reason == "BREAKOUT-UP"
    assert events[0].profile == "EVENT"


def _random_walk(count, seed):
    rng = random.Random(seed)
    candles = []
    price = 100.0
    for i in range(count):
        open_ = price
        price = max(1.0, price * (1 + rng.uniform(-0.02, 0.021)))
        high = max(open_, price) * (1 + rng.uniform(0, 0.01))
        low = min(open_, price) * (1 - rng.uniform(0, 0.01))
        candles.append(make_candle(i, open_, price, high=high, low=low, volume=rng.uniform(0.5, 3.0)))
    return candles


@pytest.mark.parametrize("seed", [1, 7, 42])
def test_events_alternate_entry_exit(generator, profiles, seed):
    candles = _random_walk(600, seed)
    for profile in profiles.values():
        events = generator.generate(candles, profile)
        for index, event in enumerate(events):
            assert event.is_entry == (index % 2 == 0)
        times = [e.time for e in events]
        assert times == sorted(times)


def test_replay_is_deterministic(generator, event_profile):
    candles = _random_walk(500, 3)
    assert generator.generate(candles, event_profile) == generator.generate(candles, event_profile)


def test_prefix_is_consistent_with_full_series(generator, normal_profile):
    candles = _random_walk(500, 11)
    full = generator.generate(candles, normal_profile)

    for cut in (200, 333, 450):
        prefix = generator.generate(candles[:cut], normal_profile)
        cutoff = candles[cut - 1].time
        assert prefix == [e for e in full if e.time <= cutoff]


def test_generate_report_exposes_indicator_series(generator, normal_profile):
    candles = flat_candles(200)
    result = generator.generate_report(candles, normal_profile)

    assert len(result.ma_short) == len(candles)
    assert result.trend_ema[-1] == pytest.approx(100.0)
    assert result.last_event is None


def test_nan_volume_counts_as_zero(generator, normal_profile):
    candles = flat_candles(160, volume=0.0)
    candles.append(make_candle(160, 100.0, 101.0, volume=float("nan")))

    # VolMA = 0 y el volumen NaN cuenta como 0: 0 >= 0 no bloquea
    assert IndicatorCalculator.volume_of(candles[-1]) == 0.0
    assert [e.type for e in generator.generate(candles, normal_profile)] == [SignalType.BUY]


def test_breakout_waits_for_highest_high_inside_lookback(generator, event_profile):
    # MAs idénticas: solo puede entrar por breakout
    profile = replace(event_profile, ma_short_period=event_profile.ma_long_period)
    candles = flat_candles(160)
    candles[150] = make_candle(150, 100.0, 100.0, high=103.0)
    candles.append(make_candle(160, 100.0, 101.0, high=101.2))
    candles.append(make_candle(161, 101.0, 102.0, high=102.5))
    candles.append(make_candle(162, 102.0, 103.5, high=104.0))

    events = generator.generate(candles, profile)

    assert [(e.type, e.reason) for e in events] == [(SignalType.BUY, "BREAKOUT-UP")]
    assert events[0].time == candles[162].time

    # sin el máximo de la vela 150 la ruptura llega en la 160
    candles[150] = make_candle(150, 100.0, 100.0)
    assert generator.generate(candles, profile)[0].time == candles[160].time
