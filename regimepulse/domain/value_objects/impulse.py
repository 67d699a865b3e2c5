"""
RegimePulse – Domain Value Object: ImpulseTrigger
==================================================
Disparo aceptado por el ImpulseDetector: dirección, magnitud del
movimiento en la ventana de 20s y ratio de volumen contra la línea base.
"""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum


class ImpulseDirection(str, Enum):
    UP = "UP"
    DOWN = "DOWN"


@dataclass(frozen=True, slots=True)
class ImpulseTrigger:
    instrument: str
    direction: ImpulseDirection
    percent_change: float
    volume_ratio: float
    price: float       # último precio de la ventana
    timestamp: int     # ms, tiempo del stream

    @property
    def reason(self) -> str:
        """Motivo legible que se registra en el ModeState."""
        return (
            f"Impulse {self.direction.value} | 20s {self.percent_change:.2f}% "
            f"| Vol x{self.volume_ratio:.2f}"
        )

    def to_dict(self) -> dict:
        return {
            "instrument": self.instrument,
            "direction": self.direction.value,
            "percent_change": round(self.percent_change, 4),
            "volume_ratio": round(self.volume_ratio, 4),
            "price": self.price,
            "timestamp": self.timestamp,
            "reason": self.reason,
        }
