import pytest
from fastapi import FastAPI
from fastapi.testclient import TestClient

from regimepulse.presentation.api import routes
from regimepulse.presentation.websocket.websocket_manager import WebSocketManager


@pytest.fixture
def client(engine_setup):
    app = FastAPI()
    app.include_router(routes.router)
    routes.init_routes(
        engine_setup.engine,
        WebSocketManager(engine_setup.bus),
        event_bus=engine_setup.bus,
    )
    with TestClient(app) as test_client:
        yield test_client
    routes.init_routes(None, None)


def test_health(client):
    assert client.get("/api/health").json() == {"status": "ok", "service": "regimepulse"}


def test_not_ready_without_engine():
    app = FastAPI()
    app.include_router(routes.router)
    routes.init_routes(None, None)
    with TestClient(app) as test_client:
        assert test_client.get("/api/mode").json()["error"] == "ENGINE_NOT_READY"


def test_status(client):
    body = client.get("/api/status").json()
    assert body["engine"]["instrument"] == "BTCUSDT"
    assert body["engine"]["mode"]["current"] == "NORMAL"
    assert body["event_bus"]["subscribers"] == 0
    assert body["ws_clients"] == 0


def test_instruments_and_switch(client):
    listed = client.get("/api/instruments").json()
    assert listed["current"] == "BTCUSDT"
    assert {"id": "ETHUSDT", "name": "ETH / USDT"} in listed["instruments"]

    switched = client.post("/api/instrument", json={"instrument": " ethusdt "}).json()
    assert switched == {"current": "ETHUSDT", "changed": True}

    rejected = client.post("/api/instrument", json={"instrument": "FOOUSDT"}).json()
    assert rejected["error"] == "VALIDATION_ERROR"
    assert "BTCUSDT" in rejected["available"]


def test_interval(client):
    assert client.get("/api/interval").json()["active"] == "1h"

    changed = client.post("/api/interval", json={"interval": "15m"}).json()
    assert changed["active"] == "15m" and changed["changed"] is True

    rejected = client.post("/api/interval", json={"interval": "7m"}).json()
    assert "available" in rejected
    assert client.get("/api/interval").json()["active"] == "15m"


def test_manual_trigger_and_mode(client):
    body = client.post("/api/mode/trigger").json()

    assert body["transition"]["current"] == "EVENT"
    assert body["mode"]["last_trigger_reason"] == "Manual Trigger"
    assert client.get("/api/mode").json()["current"] == "EVENT"


def test_signals_refresh_and_read(client):
    assert client.get("/api/signals").json()["status"] == "no_data"

    refreshed = client.post("/api/signals/refresh").json()
    assert refreshed["instrument"] == "BTCUSDT"
    assert refreshed["profile"] == "NORMAL"
    assert refreshed["stale"] is False

    assert client.get("/api/signals").json()["meta"] == refreshed["meta"]


def test_decision_read_and_clear(client):
    body = client.get("/api/decision").json()
    assert body == {"last_decision": "—", "decision": None}

    cleared = client.post("/api/decision/clear").json()
    assert cleared["last_decision"] == "—"


def test_config_roundtrip_clamps(client):
    assert client.get("/api/config").json()["event_threshold_pct"] == 0.9

    updated = client.post("/api/config", json={
        "event_threshold_pct": 99,
        "stop_loss_normal_pct": "not-a-number",
        "detector_enabled": False,
    }).json()

    assert updated["event_threshold_pct"] == 20.0
    assert updated["stop_loss_normal_pct"] == 0.9
    assert updated["detector_enabled"] is False
    assert updated["trail_drawdown_event_pct"] == 6.5


def test_websocket_sends_snapshot_first(client):
    with client.websocket_connect("/ws/events") as ws:
        message = ws.receive_json()

    assert message["type"] == "snapshot"
    assert message["data"]["instrument"] == "BTCUSDT"
    assert message["data"]["detector"]["enabled"] is True
