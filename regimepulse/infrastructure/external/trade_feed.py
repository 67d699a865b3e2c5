"""
RegimePulse – Trade Feed
=========================
Puente entre el stream del proveedor y el EventBus.

Consume provider.stream_trades(instrumento) en una task y publica cada
TickSample en el tópico "tick". Un cambio de instrumento cancela la
task actual y lanza una nueva: nunca hay dos streams activos.
"""

from __future__ import annotations

import asyncio
from typing import Optional

from regimepulse.application.ports.event_publisher import IEventPublisher
from regimepulse.application.ports.market_data_provider import IMarketDataProvider
from regimepulse.application.use_cases.process_tick_usecase import TICK_TOPIC
from regimepulse.shared.logging.logger import get_logger

logger = get_logger("trade_feed")


class TradeFeed:
    """
    Ciclo de vida:
      1. start(instrument) → lanza task de consumo
      2. switch(instrument) → cancela y relanza con el nuevo símbolo
      3. stop()             → shutdown limpio
    """

    def __init__(self, provider: IMarketDataProvider, event_bus: IEventPublisher) -> None:
        self._provider = provider
        self._event_bus = event_bus
        self._instrument: Optional[str] = None
        self._task: Optional[asyncio.Task] = None
        self._ticks_published = 0

    @property
    def instrument(self) -> Optional[str]:
        return self._instrument

    @property
    def is_running(self) -> bool:
        return self._task is not None and not self._task.done()

    async def start(self, instrument: str) -> None:
        if self.is_running and instrument == self._instrument:
            logger.warning("TradeFeed ya está corriendo para %s, ignorando start()", instrument)
            return
        await self._cancel()
        self._instrument = instrument
        self._task = asyncio.create_task(self._pump(instrument), name=f"trade-feed-{instrument}")
        logger.info("TradeFeed iniciado para %s", instrument)

    async def switch(self, instrument: str) -> None:
        logger.info("TradeFeed: %s → %s", self._instrument, instrument)
        await self.start(instrument)

    async def stop(self) -> None:
        await self._cancel()
        logger.info("TradeFeed detenido. Ticks publicados: %d", self._ticks_published)

    async def _cancel(self) -> None:
        if self._task and not self._task.done():
            self._task.cancel()
            try:
                await self._task
            except asyncio.CancelledError:
                pass
        self._task = None

    async def _pump(self, instrument: str) -> None:
        try:
            async for tick in self._provider.stream_trades(instrument):
                await self._event_bus.publish(TICK_TOPIC, tick)
                self._ticks_published += 1
        except asyncio.CancelledError:
            raise
        except Exception as e:
            logger.error("TradeFeed %s terminó con error: %s", instrument, e, exc_info=True)

    @property
    def stats(self) -> dict:
        return {
            "instrument": self._instrument,
            "running": self.is_running,
            "ticks_published": self._ticks_published,
        }
