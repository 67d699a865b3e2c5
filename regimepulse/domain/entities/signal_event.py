"""
RegimePulse – Domain Entity: SignalEvent
=========================================
Evento de entrada/salida emitido por una pasada del SignalGenerator.

- frozen=True → el log es append-only; un evento emitido nunca cambia.
- time es el timestamp de la vela que lo produjo (segundos).
- reason solo se rellena en BUY ("MA-CROSS" | "BREAKOUT-UP").
"""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import Optional


class SignalType(str, Enum):
    BUY = "BUY"
    STOP_LOSS = "STOP_LOSS"
    TAKE_PROFIT = "TAKE_PROFIT"
    TREND_FAIL = "TREND_FAIL"
    REVERSAL_EXIT = "REVERSAL_EXIT"


REASON_MA_CROSS = "MA-CROSS"
REASON_BREAKOUT_UP = "BREAKOUT-UP"


@dataclass(frozen=True, slots=True)
class SignalEvent:
    """Entrada o salida de la posición simulada en una vela concreta."""

    type: SignalType
    time: int
    price: float
    profile: str
    reason: Optional[str] = None

    @property
    def is_entry(self) -> bool:
        return self.type is SignalType.BUY

    @property
    def label(self) -> str:
        """Texto corto para el KPI de "última decisión": 'BUY [NORMAL]'."""
        return f"{self.type.value} [{self.profile}]"

    def to_dict(self) -> dict:
        return {
            "type": self.type.value,
            "time": self.time,
            "price": self.price,
            "profile": self.profile,
            "reason": self.reason,
        }
