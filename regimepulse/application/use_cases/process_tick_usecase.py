"""
RegimePulse – Process Tick Use Case
====================================
Caso de uso central del camino en vivo: consume trades del EventBus y
los entrega, uno a uno, al RegimeEngine.

FLUJO:
  TradeFeed ──publish──► EventBus (tick topic)
                              │
                              ▼
  ProcessTickUseCase._run()  ◄── loop consumiendo de su Queue
       │
       └── RegimeEngine.handle_tick(tick)
               ├── ModeController.check_expiry()  → auto-revert
               ├── ImpulseDetector.on_tick(tick)  → ¿impulso?
               └── Si impulso: enter_event + decisión en background

CÓMO SE EVITA PÉRDIDA DE TICKS:
- El UseCase consume de su cola exclusiva (provista por EventBus).
- La decisión instantánea NO se espera aquí: corre como task aparte,
  así un fetch lento nunca frena el consumo de trades.
"""

from __future__ import annotations

import asyncio
from typing import TYPE_CHECKING, Optional

from regimepulse.application.ports.event_publisher import IEventPublisher
from regimepulse.domain.value_objects.tick import TickSample
from regimepulse.shared.logging.logger import get_logger

if TYPE_CHECKING:
    from regimepulse.application.services.regime_engine import RegimeEngine

logger = get_logger("process_tick")

TICK_TOPIC = "tick"


class ProcessTickUseCase:
    def __init__(self, event_bus: IEventPublisher, engine: "RegimeEngine") -> None:
        self._event_bus = event_bus
        self._engine = engine
        self._queue: Optional[asyncio.Queue] = None
        self._running = False
        self._processed_count = 0

    @property
    def processed_count(self) -> int:
        return self._processed_count

    async def start(self) -> None:
        """Suscribirse al EventBus y lanzar loop de procesamiento."""
        self._queue = await self._event_bus.subscribe(TICK_TOPIC, "process_tick_usecase")
        self._running = True
        logger.info("ProcessTickUseCase iniciado, consumiendo tópico '%s'", TICK_TOPIC)
        await self._run()

    async def stop(self) -> None:
        self._running = False
        logger.info("ProcessTickUseCase detenido. Ticks procesados: %d", self._processed_count)

    async def _run(self) -> None:
        assert self._queue is not None

        while self._running:
            try:
                # Timeout para permitir shutdown limpio
                try:
                    tick: TickSample = await asyncio.wait_for(self._queue.get(), timeout=1.0)
                except asyncio.TimeoutError:
                    continue

                await self._engine.handle_tick(tick)
                self._processed_count += 1

            except asyncio.CancelledError:
                logger.info("ProcessTickUseCase cancelado")
                break
            except Exception as e:
                logger.error("Error procesando tick: %s", e, exc_info=True)
                continue
