"""
RegimePulse – WebSocket Manager (broadcast a clientes frontend)
================================================================
Retransmite a los clientes conectados los eventos publicados por el
RegimeEngine.

ARQUITECTURA:
  EventBus ──(impulse)───▸ ┐
  EventBus ──(mode)──────▸ │ WSManager._broadcast_loop()  (una por tópico)
  EventBus ──(decision)──▸ │
  EventBus ──(signals)───▸ ┘
       │
       ▼
  [Cliente WS 1, Cliente WS 2, ...]   payload: {"type": tópico, "data": {...}}

NO BLOQUEA EL LOOP PRINCIPAL:
- Cada broadcast corre como task independiente.
- El envío a cada cliente tiene timeout; un cliente lento o caído se
  elimina sin afectar a los demás.
"""

from __future__ import annotations

import asyncio
import json
from typing import Any, List, Set

from fastapi import WebSocket, WebSocketDisconnect

from regimepulse.application.ports.event_publisher import IEventPublisher
from regimepulse.domain.events.domain_events import (
    DecisionMade,
    ImpulseDetected,
    ModeChanged,
    SignalsGenerated,
)
from regimepulse.shared.logging.logger import get_logger

logger = get_logger("ws_manager")

BROADCAST_TOPICS = (
    ImpulseDetected.TOPIC,
    ModeChanged.TOPIC,
    DecisionMade.TOPIC,
    SignalsGenerated.TOPIC,
)

SEND_TIMEOUT_SECONDS = 5.0


class WebSocketManager:
    """Gestiona conexiones frontend y broadcast de eventos del motor."""

    def __init__(self, event_bus: IEventPublisher) -> None:
        self._event_bus = event_bus
        self._clients: Set[WebSocket] = set()
        self._broadcast_tasks: List[asyncio.Task] = []

    async def start(self) -> None:
        for topic in BROADCAST_TOPICS:
            queue = await self._event_bus.subscribe(topic, f"ws_broadcast_{topic}")
            self._broadcast_tasks.append(asyncio.create_task(
                self._broadcast_loop(queue, topic), name=f"ws-broadcast-{topic}",
            ))
        logger.info("WebSocketManager iniciado – tópicos: %s", ", ".join(BROADCAST_TOPICS))

    async def stop(self) -> None:
        for task in self._broadcast_tasks:
            task.cancel()
        await asyncio.gather(*self._broadcast_tasks, return_exceptions=True)
        self._broadcast_tasks = []

        for ws in list(self._clients):
            try:
                await ws.close()
            except Exception:
                pass
        self._clients.clear()
        logger.info("WebSocketManager detenido")

    async def connect(self, websocket: WebSocket) -> None:
        await websocket.accept()
        self._clients.add(websocket)
        logger.info("Cliente WS conectado. Total: %d", len(self._clients))

    def disconnect(self, websocket: WebSocket) -> None:
        self._clients.discard(websocket)
        logger.info("Cliente WS desconectado. Total: %d", len(self._clients))

    async def send_snapshot(self, websocket: WebSocket, data: dict) -> None:
        """Estado inicial para un cliente recién conectado."""
        await websocket.send_text(json.dumps({"type": "snapshot", "data": data}))

    async def _broadcast_loop(self, queue: asyncio.Queue, topic: str) -> None:
        try:
            while True:
                try:
                    data = await asyncio.wait_for(queue.get(), timeout=1.0)
                except asyncio.TimeoutError:
                    continue

                if not self._clients:
                    continue

                payload = json.dumps({"type": topic, "data": self._serialize(data)})

                disconnected: List[WebSocket] = []
                await asyncio.gather(*[
                    self._safe_send(ws, payload, disconnected) for ws in list(self._clients)
                ])
                for ws in disconnected:
                    self._clients.discard(ws)

        except asyncio.CancelledError:
            pass  # Shutdown limpio

    @staticmethod
    def _serialize(data: Any) -> Any:
        if hasattr(data, "to_dict"):
            return data.to_dict()
        if isinstance(data, dict):
            return data
        return str(data)

    async def _safe_send(self, ws: WebSocket, payload: str, disconnected: List[WebSocket]) -> None:
        """No lanza excepciones → no rompe el gather de broadcast."""
        try:
            await asyncio.wait_for(ws.send_text(payload), timeout=SEND_TIMEOUT_SECONDS)
        except (WebSocketDisconnect, asyncio.TimeoutError, Exception):
            disconnected.append(ws)

    @property
    def client_count(self) -> int:
        return len(self._clients)
