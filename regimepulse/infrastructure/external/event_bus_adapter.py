"""
RegimePulse – Event Bus (asyncio.Queue fan-out)
================================================
Bus interno que desacopla productores de consumidores.

  ┌───────────┐         ┌───────────┐
  │ TradeFeed │──tick──▸│           │──▸ ProcessTickUseCase
  └───────────┘         │ Event Bus │
  ┌───────────┐ impulse │ (fan-out) │──▸ WebSocketManager
  │  Regime   │──mode──▸│           │      (impulse/mode/decision/signals)
  │  Engine   │decision └───────────┘
  └───────────┘ signals

POLÍTICA DE COLAS:
- Una asyncio.Queue acotada por consumidor y tópico.
- Cola llena → se descarta el mensaje MÁS ANTIGUO de esa cola
  (drop-oldest). El productor nunca se bloquea ni espera a un
  consumidor lento; los consumidores rápidos no pierden nada.
"""

from __future__ import annotations

import asyncio
from typing import Any, Dict, List, Optional, Tuple

from regimepulse.application.ports.event_publisher import IEventPublisher
from regimepulse.shared.logging.logger import get_logger

logger = get_logger("event_bus")


class EventBus(IEventPublisher):
    """Implementación en memoria de IEventPublisher."""

    def __init__(self, max_queue_size: int = 10_000) -> None:
        self._max_queue_size = max_queue_size
        # tópico → [(cola, nombre_consumidor)]
        self._subscribers: Dict[str, List[Tuple[asyncio.Queue, str]]] = {}
        self._lock = asyncio.Lock()
        self._published = 0
        self._dropped = 0

    async def subscribe(self, topic: str, consumer_name: str) -> asyncio.Queue:
        async with self._lock:
            queue: asyncio.Queue = asyncio.Queue(maxsize=self._max_queue_size)
            self._subscribers.setdefault(topic, []).append((queue, consumer_name))
            logger.info(
                "Consumidor '%s' suscrito a '%s' (max_queue=%d)",
                consumer_name, topic, self._max_queue_size,
            )
            return queue

    async def unsubscribe(self, topic: str, queue: asyncio.Queue) -> None:
        """Retira una cola concreta (e.g. cliente WebSocket desconectado)."""
        async with self._lock:
            subscribers = self._subscribers.get(topic, [])
            self._subscribers[topic] = [(q, name) for q, name in subscribers if q is not queue]

    async def publish(self, topic: str, data: Any) -> None:
        self._published += 1
        for queue, consumer_name in self._subscribers.get(topic, []):
            if queue.full():
                try:
                    queue.get_nowait()
                    self._dropped += 1
                    logger.warning(
                        "Cola llena para '%s' en '%s' – mensaje antiguo descartado",
                        consumer_name, topic,
                    )
                except asyncio.QueueEmpty:
                    pass
            try:
                queue.put_nowait(data)
            except asyncio.QueueFull:
                logger.error("No se pudo encolar en '%s' (tópico '%s')", consumer_name, topic)

    async def unsubscribe_all(self, topic: Optional[str] = None) -> None:
        """Cleanup al shutdown."""
        async with self._lock:
            if topic:
                self._subscribers.pop(topic, None)
            else:
                self._subscribers.clear()
            logger.info("Suscriptores eliminados (%s)", topic or "todos")

    @property
    def subscriber_count(self) -> int:
        return sum(len(subs) for subs in self._subscribers.values())

    @property
    def stats(self) -> Dict[str, int]:
        return {
            "published": self._published,
            "dropped": self._dropped,
            "subscribers": self.subscriber_count,
        }
