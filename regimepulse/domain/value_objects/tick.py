"""
RegimePulse – Domain Value Object: TickSample
==============================================
Un trade individual recibido del stream en vivo.

- frozen=True → inmutable, seguro para pasar entre coroutines.
- slots=True  → menor footprint de memoria en hot-path.
- timestamp en MILISEGUNDOS (tiempo del exchange). Es monotónico no
  decreciente por stream, pero puede repetirse.
"""

from __future__ import annotations

import math
from dataclasses import dataclass


@dataclass(frozen=True, slots=True)
class TickSample:
    """Trade atómico: precio, cantidad y hora del exchange."""

    symbol: str       # e.g. "BTCUSDT"
    timestamp: int    # ms
    price: float
    quantity: float

    @property
    def is_valid(self) -> bool:
        return (
            math.isfinite(self.price)
            and math.isfinite(self.quantity)
            and math.isfinite(self.timestamp)
        )

    def to_dict(self) -> dict:
        """Serialización para WebSocket / frontend."""
        return {
            "symbol": self.symbol,
            "timestamp": self.timestamp,
            "price": self.price,
            "quantity": self.quantity,
        }
