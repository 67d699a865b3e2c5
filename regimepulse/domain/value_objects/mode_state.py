"""
RegimePulse – Domain Value Objects: Mode
=========================================
Régimen de mercado y snapshots de solo lectura del ModeController.

El ModeState mutable vive DENTRO del controlador; hacia afuera solo
salen ModeSnapshot (copia congelada) y ModeTransition (qué cambió).
"""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum

NO_VALUE = "—"


class MarketMode(str, Enum):
    NORMAL = "NORMAL"
    EVENT = "EVENT"


@dataclass
class ModeState:
    current: MarketMode = MarketMode.NORMAL
    event_expiry_ms: int = 0
    last_trigger_reason: str = NO_VALUE
    last_decision: str = NO_VALUE


@dataclass(frozen=True, slots=True)
class ModeSnapshot:
    current: MarketMode
    event_expiry_ms: int
    last_trigger_reason: str
    last_decision: str
    observed_at_ms: int

    @property
    def remaining_ms(self) -> int:
        if self.current is not MarketMode.EVENT:
            return 0
        return max(0, self.event_expiry_ms - self.observed_at_ms)

    def to_dict(self) -> dict:
        return {
            "current": self.current.value,
            "event_expiry_ms": self.event_expiry_ms,
            "remaining_ms": self.remaining_ms,
            "last_trigger_reason": self.last_trigger_reason,
            "last_decision": self.last_decision,
            "observed_at_ms": self.observed_at_ms,
        }


@dataclass(frozen=True, slots=True)
class ModeTransition:
    previous: MarketMode
    current: MarketMode
    reason: str
    event_expiry_ms: int
    at_ms: int

    @property
    def is_refresh(self) -> bool:
        """EVENT → EVENT: se extendió la ventana en vez de entrar."""
        return self.previous is MarketMode.EVENT and self.current is MarketMode.EVENT

    def to_dict(self) -> dict:
        return {
            "previous": self.previous.value,
            "current": self.current.value,
            "reason": self.reason,
            "event_expiry_ms": self.event_expiry_ms,
            "at_ms": self.at_ms,
            "refresh": self.is_refresh,
        }
