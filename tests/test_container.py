import pytest

from conftest import FakeClock, FakeProvider
from regimepulse.container import Container
from regimepulse.shared.config.settings import Settings


@pytest.fixture
def container():
    c = Container(settings=Settings(_env_file=None))
    c.override("market_data_provider", FakeProvider())
    c.override("clock", FakeClock())
    return c


def test_override_unknown_dependency_rejected(container):
    with pytest.raises(ValueError):
        container.override("database", object())


def test_engine_wiring_uses_settings(container):
    engine = container.engine

    assert engine.instrument == container.settings.default_instrument
    assert engine.interval == container.settings.default_interval
    assert container.detector.threshold_pct == container.settings.strategy.event_threshold_pct
    assert container.mode_controller.hold_minutes == container.settings.strategy.event_hold_minutes
    # singletons perezosos
    assert container.engine is engine
    assert container.process_tick is container.process_tick


@pytest.mark.asyncio
async def test_instrument_switch_restarts_trade_feed(container):
    feed = container.trade_feed
    engine = container.engine

    await feed.start(engine.instrument)
    await engine.switch_instrument("ETHUSDT")
    await engine.drain()

    assert feed.instrument == "ETHUSDT"
    await feed.stop()
