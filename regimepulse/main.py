"""
RegimePulse – Main Application Entry Point
===========================================
Orquesta: stream de trades + detector de impulsos + modo NORMAL/EVENT +
decisión instantánea + log de señales.

ARQUITECTURA DE ARRANQUE:
  1. Configurar logging
  2. Crear el contenedor de dependencias
  3. FastAPI lifespan startup:
     a. Iniciar WebSocketManager (broadcast a frontend)
     b. Iniciar ProcessTickUseCase (consumer de ticks)
     c. Iniciar RegimeEngine (liveness poll + refresh de señales)
     d. Iniciar TradeFeed (WS de Binance → EventBus)
  4. Shutdown: detener todo en orden inverso

FLUJO DE DATOS:
  Binance WS → TradeFeed → EventBus(tick) → ProcessTickUseCase
       → RegimeEngine → ImpulseDetector → ModeController
       → InstantDecisionUseCase (task) → EventBus(decision)
       → GenerateSignalsUseCase → EventBus(signals)
       → WebSocketManager → Frontend

  uvicorn regimepulse.main:app --host 0.0.0.0 --port 8890
"""

from __future__ import annotations

import asyncio
import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from regimepulse.container import init_container
from regimepulse.presentation.api.routes import init_routes, router
from regimepulse.shared.config.settings import settings
from regimepulse.shared.logging.logger import get_logger, setup_logging

# ─── Logging ────────────────────────────────────────────────────────────
setup_logging(logging.DEBUG if settings.debug else settings.log_level)
logger = get_logger("main")

# ─── Contenedor de Dependencias ─────────────────────────────────────────
container = init_container(settings)

# Task references para lifecycle
_background_tasks: list[asyncio.Task] = []


# ─── FastAPI Lifespan ───────────────────────────────────────────────────

@asynccontextmanager
async def lifespan(app: FastAPI):
    strategy = settings.strategy
    logger.info("=" * 60)
    logger.info("  RegimePulse v0.1")
    logger.info("  Instrumento: %s  Intervalo: %s", settings.default_instrument, settings.default_interval)
    logger.info("  Detector: thr=%.2f%% vol=x%.2f cooldown=%.0fs (%s)",
                strategy.event_threshold_pct,
                strategy.event_volume_multiplier,
                settings.detector_cooldown_seconds,
                "ON" if strategy.detector_enabled else "OFF")
    logger.info("  EVENT hold: %.0f min", strategy.event_hold_minutes)
    logger.info("  NORMAL: SL %.2f%% Trail %.2f%% | EVENT: SL %.2f%% Trail %.2f%%",
                strategy.stop_loss_normal_pct, strategy.trail_drawdown_normal_pct,
                strategy.stop_loss_event_pct, strategy.trail_drawdown_event_pct)
    logger.info("=" * 60)

    engine = container.engine
    trade_feed = container.trade_feed

    init_routes(
        engine,
        container.ws_manager,
        trade_feed=trade_feed,
        event_bus=container.event_bus,
        process_tick=container.process_tick,
    )

    await container.ws_manager.start()

    tick_task = asyncio.create_task(
        container.process_tick.start(), name="process-tick-usecase"
    )
    _background_tasks.append(tick_task)

    await engine.start()
    await trade_feed.start(engine.instrument)

    logger.info("✓ Todos los componentes iniciados correctamente")

    yield  # ← La app está corriendo aquí

    # ── SHUTDOWN ──
    logger.info("Iniciando shutdown...")
    await trade_feed.stop()
    await engine.stop()
    await container.process_tick.stop()
    await container.ws_manager.stop()

    for task in _background_tasks:
        if not task.done():
            task.cancel()
            try:
                await task
            except asyncio.CancelledError:
                pass
    _background_tasks.clear()

    await container.event_bus.unsubscribe_all()
    logger.info("✓ Shutdown completo")


# ─── FastAPI App ────────────────────────────────────────────────────────

app = FastAPI(
    title="RegimePulse",
    description="Motor de régimen de mercado: detección de impulsos, modo NORMAL/EVENT y señales deterministas",
    version="0.1.0",
    lifespan=lifespan,
)

app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],  # En producción: restringir a dominios específicos
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

app.include_router(router)


if __name__ == "__main__":
    import uvicorn

    uvicorn.run("regimepulse.main:app", host=settings.host, port=settings.port)
