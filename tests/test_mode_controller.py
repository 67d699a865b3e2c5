import pytest

from regimepulse.domain.exceptions.domain_errors import ValidationError
from regimepulse.domain.services.mode_controller import ModeController
from regimepulse.domain.value_objects.mode_state import NO_VALUE, MarketMode
from regimepulse.domain.value_objects.strategy_profile import ProfileName

MINUTE = 60_000


@pytest.fixture
def controller(profiles, clock):
    return ModeController(profiles, clock, hold_minutes=12)


def test_starts_normal(controller):
    snapshot = controller.snapshot()
    assert snapshot.current is MarketMode.NORMAL
    assert snapshot.event_expiry_ms == 0
    assert snapshot.last_trigger_reason == NO_VALUE
    assert snapshot.last_decision == NO_VALUE
    assert snapshot.remaining_ms == 0
    assert controller.active_profile.name is ProfileName.NORMAL


def test_event_expires_exactly_at_hold(controller, clock):
    start = clock.now_ms()
    transition = controller.enter_event("Impulse UP", hold_minutes=10)

    assert transition.previous is MarketMode.NORMAL
    assert transition.current is MarketMode.EVENT
    assert transition.event_expiry_ms == start + 10 * MINUTE
    assert controller.active_profile.name is ProfileName.EVENT

    clock.advance(10 * MINUTE - 1)
    assert controller.check_expiry() is None
    assert controller.is_event

    clock.advance(1)
    reverted = controller.check_expiry()
    assert reverted is not None
    assert reverted.current is MarketMode.NORMAL
    assert controller.current is MarketMode.NORMAL

    snapshot = controller.snapshot()
    assert snapshot.event_expiry_ms == 0
    assert snapshot.last_trigger_reason == "Impulse UP"


def test_retrigger_refreshes_window(controller, clock):
    start = clock.now_ms()
    controller.enter_event("first", hold_minutes=10)
    clock.advance(5 * MINUTE)

    transition = controller.enter_event("second", hold_minutes=10)

    assert transition.is_refresh
    assert transition.event_expiry_ms == start + 15 * MINUTE
    clock.advance(5 * MINUTE)
    assert controller.check_expiry() is None
    assert controller.snapshot().last_trigger_reason == "second"


def test_remaining_ms(controller, clock):
    controller.enter_event("x")
    clock.advance(2 * MINUTE)
    assert controller.snapshot().remaining_ms == 10 * MINUTE


def test_default_hold_and_set_hold(controller, clock):
    start = clock.now_ms()
    controller.set_hold_minutes(3)
    assert controller.enter_event("x").event_expiry_ms == start + 3 * MINUTE


def test_fractional_hold_is_not_truncated(controller, clock, caplog):
    start = clock.now_ms()
    controller.set_hold_minutes(1.5)

    with caplog.at_level("INFO", logger="regimepulse"):
        transition = controller.enter_event("x")

    assert controller.hold_minutes == 1.5
    assert transition.event_expiry_ms == start + 90_000
    assert "hold=1.5min" in caplog.text
    clock.advance(90_000 - 1)
    assert controller.check_expiry() is None
    clock.advance(1)
    assert controller.check_expiry() is not None


@pytest.mark.parametrize("hold", [0, -1])
def test_invalid_hold_rejected(controller, hold):
    with pytest.raises(ValidationError):
        controller.enter_event("x", hold_minutes=hold)
    with pytest.raises(ValidationError):
        controller.set_hold_minutes(hold)
    assert controller.current is MarketMode.NORMAL


def test_check_expiry_in_normal_is_noop(controller):
    assert controller.check_expiry() is None


def test_record_and_clear_decision(controller):
    controller.record_decision("EVENT BUY (Impulse-Up)")
    assert controller.last_decision == "EVENT BUY (Impulse-Up)"

    controller.clear_decision()
    assert controller.last_decision == NO_VALUE


def test_missing_profile_rejected(profiles, clock):
    with pytest.raises(ValidationError):
        ModeController({ProfileName.NORMAL: profiles[ProfileName.NORMAL]}, clock)
