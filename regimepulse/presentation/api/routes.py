"""
RegimePulse – API Routes (FastAPI)
===================================
Endpoints REST y WebSocket para el dashboard.

Endpoints disponibles:
  WS   /ws/events              → impulse / mode / decision / signals
  GET  /api/health             → health check
  GET  /api/status             → estado completo del motor
  GET  /api/instruments        → catálogo y observado
  POST /api/instrument         → cambiar instrumento observado
  GET  /api/interval           → intervalo activo y disponibles
  POST /api/interval           → cambiar intervalo
  GET  /api/mode               → snapshot del ModeState
  POST /api/mode/trigger       → disparo manual de EVENT
  GET  /api/signals            → último log de señales
  POST /api/signals/refresh    → regenerar log ahora
  GET  /api/decision           → última decisión instantánea
  POST /api/decision/clear     → limpiar decisión
  GET  /api/config             → umbrales de estrategia
  POST /api/config             → actualizar umbrales (recortados)
"""

from __future__ import annotations

from fastapi import APIRouter, WebSocket, WebSocketDisconnect

from regimepulse.domain.exceptions.domain_errors import ValidationError
from regimepulse.presentation.api.schemas import (
    ConfigUpdateRequest,
    HealthResponse,
    InstrumentRequest,
    IntervalRequest,
)
from regimepulse.shared.logging.logger import get_logger

logger = get_logger("api.routes")

router = APIRouter()

# Referencias a componentes inyectados desde main.py
_engine = None
_ws_manager = None
_trade_feed = None
_event_bus = None
_process_tick = None


def init_routes(engine, ws_manager, trade_feed=None, event_bus=None, process_tick=None) -> None:
    """Inyectar dependencias desde main.py al arrancar."""
    global _engine, _ws_manager, _trade_feed, _event_bus, _process_tick
    _engine = engine
    _ws_manager = ws_manager
    _trade_feed = trade_feed
    _event_bus = event_bus
    _process_tick = process_tick


def _not_ready() -> dict:
    return {"error": "ENGINE_NOT_READY", "message": "Motor no inicializado"}


# ─── WebSocket endpoint ───────────────────────────────────────────────

@router.websocket("/ws/events")
async def events_stream(websocket: WebSocket) -> None:
    """
    El dashboard se conecta aquí. Recibe un snapshot inicial y luego
    los eventos del motor; el broadcast lo maneja WebSocketManager.
    """
    if _ws_manager is None or _engine is None:
        await websocket.close(code=1011, reason="Server not ready")
        return

    await _ws_manager.connect(websocket)
    try:
        await _ws_manager.send_snapshot(websocket, _engine.snapshot().to_dict())
        while True:
            try:
                data = await websocket.receive_text()
                logger.debug("Mensaje de cliente WS: %s", data[:100])
            except WebSocketDisconnect:
                break
    finally:
        _ws_manager.disconnect(websocket)


# ─── Estado ───────────────────────────────────────────────────────────

@router.get("/api/health", response_model=HealthResponse)
async def health_check() -> dict:
    return {"status": "ok", "service": "regimepulse"}


@router.get("/api/status")
async def system_status() -> dict:
    if _engine is None:
        return _not_ready()
    return {
        "engine": _engine.snapshot().to_dict(),
        "trade_feed": _trade_feed.stats if _trade_feed else {},
        "event_bus": _event_bus.stats if _event_bus else {},
        "ticks_consumed": _process_tick.processed_count if _process_tick else 0,
        "ws_clients": _ws_manager.client_count if _ws_manager else 0,
    }


# ─── Instrumento / intervalo ─────────────────────────────────────────

@router.get("/api/instruments")
async def list_instruments() -> dict:
    if _engine is None:
        return _not_ready()
    return {
        "current": _engine.instrument,
        "instruments": [
            {"id": key, "name": name} for key, name in _engine.instruments.items()
        ],
    }


@router.post("/api/instrument")
async def switch_instrument(body: InstrumentRequest) -> dict:
    if _engine is None:
        return _not_ready()
    instrument = body.instrument.strip().upper()
    try:
        changed = await _engine.switch_instrument(instrument)
    except ValidationError as e:
        return {**e.to_dict(), "available": list(_engine.instruments)}
    return {"current": _engine.instrument, "changed": changed}


@router.get("/api/interval")
async def get_interval() -> dict:
    if _engine is None:
        return _not_ready()
    return {"active": _engine.interval, "available": _engine.intervals}


@router.post("/api/interval")
async def set_interval(body: IntervalRequest) -> dict:
    if _engine is None:
        return _not_ready()
    try:
        changed = await _engine.set_interval(body.interval)
    except ValidationError as e:
        return {**e.to_dict(), "available": _engine.intervals}
    return {"active": _engine.interval, "available": _engine.intervals, "changed": changed}


# ─── Modo ─────────────────────────────────────────────────────────────

@router.get("/api/mode")
async def get_mode() -> dict:
    if _engine is None:
        return _not_ready()
    return _engine.mode_snapshot().to_dict()


@router.post("/api/mode/trigger")
async def manual_trigger() -> dict:
    """Fuerza EVENT; la decisión instantánea llega luego por /ws/events."""
    if _engine is None:
        return _not_ready()
    transition = await _engine.manual_trigger()
    return {"transition": transition.to_dict(), "mode": _engine.mode_snapshot().to_dict()}


# ─── Señales ──────────────────────────────────────────────────────────

@router.get("/api/signals")
async def get_signals() -> dict:
    if _engine is None:
        return _not_ready()
    report = _engine.last_report
    if report is None:
        return {"instrument": _engine.instrument, "interval": _engine.interval, "status": "no_data"}
    return report.to_dict()


@router.post("/api/signals/refresh")
async def refresh_signals() -> dict:
    if _engine is None:
        return _not_ready()
    report = await _engine.refresh_signals()
    if report is None:
        return {"instrument": _engine.instrument, "interval": _engine.interval, "status": "discarded"}
    return report.to_dict()


# ─── Decisión ─────────────────────────────────────────────────────────

@router.get("/api/decision")
async def get_decision() -> dict:
    if _engine is None:
        return _not_ready()
    decision = _engine.last_decision
    return {
        "last_decision": _engine.mode_snapshot().last_decision,
        "decision": decision.to_dict() if decision else None,
    }


@router.post("/api/decision/clear")
async def clear_decision() -> dict:
    if _engine is None:
        return _not_ready()
    snapshot = await _engine.clear_decision()
    return snapshot.to_dict()


# ─── Configuración ───────────────────────────────────────────────────

@router.get("/api/config")
async def get_config() -> dict:
    if _engine is None:
        return _not_ready()
    return _engine.strategy_config.model_dump()


@router.post("/api/config")
async def update_config(body: ConfigUpdateRequest) -> dict:
    if _engine is None:
        return _not_ready()
    config = await _engine.update_config(body.changes())
    return config.model_dump()
