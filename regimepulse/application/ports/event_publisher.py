"""
RegimePulse – Application Port: Event Publisher
================================================
Interfaz para publicar eventos a sistemas externos.

Los use cases publican eventos; la infraestructura
decide CÓMO entregarlos (cola en memoria, WebSocket, etc.)
"""

from __future__ import annotations

import asyncio
from abc import ABC, abstractmethod
from typing import Any, Dict


class IEventPublisher(ABC):
    """Fan-out por tópico: una cola acotada por consumidor."""

    @abstractmethod
    async def publish(self, topic: str, data: Dict[str, Any]) -> None:
        """
        Publica un evento a un tópico.

        Args:
            topic: Nombre del tópico ("tick", "impulse", "mode", ...)
            data: Datos del evento (serializable a JSON)
        """

    @abstractmethod
    async def subscribe(self, topic: str, consumer_name: str) -> asyncio.Queue:
        """Registra un consumidor y devuelve su cola exclusiva."""
