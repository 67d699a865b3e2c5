import pytest

from conftest import flat_candles
from regimepulse.domain.services.decision_synthesizer import (
    AVOID_RISK_OFF,
    EVENT_BUY,
    WAIT_DOWN_ABOVE_EMA,
    WAIT_UP_BELOW_EMA,
    DecisionSynthesizer,
)
from regimepulse.domain.value_objects.impulse import ImpulseDirection


@pytest.fixture
def synthesizer():
    return DecisionSynthesizer()


@pytest.mark.parametrize(
    "direction, live_price, expected, trend_ok",
    [
        (ImpulseDirection.UP, 101.0, EVENT_BUY, True),
        (ImpulseDirection.UP, 99.0, WAIT_UP_BELOW_EMA, False),
        (ImpulseDirection.DOWN, 99.0, AVOID_RISK_OFF, False),
        (ImpulseDirection.DOWN, 101.0, WAIT_DOWN_ABOVE_EMA, True),
    ],
)
def test_decision_table(synthesizer, direction, live_price, expected, trend_ok):
    decision = synthesizer.synthesize(direction, live_price, "Impulse", flat_candles(200), 150)

    assert decision.recommendation == expected
    assert decision.trend_ok is trend_ok
    assert decision.trend_ema == pytest.approx(100.0)
    assert decision.detail.endswith("| Impulse")


def test_cold_ema_defaults_to_trend_ok(synthesizer):
    decision = synthesizer.synthesize(ImpulseDirection.DOWN, 1.0, "r", flat_candles(20), 150)

    assert decision.trend_ema is None
    assert decision.trend_ok is True
    assert decision.recommendation == WAIT_DOWN_ABOVE_EMA
