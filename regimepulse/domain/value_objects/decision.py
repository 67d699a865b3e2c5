"""
RegimePulse – Domain Value Object: InstantDecision
===================================================
Recomendación consultiva producida al instante de un disparo EVENT.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Optional

from regimepulse.domain.value_objects.impulse import ImpulseDirection


@dataclass(frozen=True, slots=True)
class InstantDecision:
    recommendation: str
    detail: str
    direction: ImpulseDirection
    live_price: float
    trend_ok: bool
    trend_ema: Optional[float]
    reason: str

    def to_dict(self) -> dict:
        return {
            "recommendation": self.recommendation,
            "detail": self.detail,
            "direction": self.direction.value,
            "live_price": self.live_price,
            "trend_ok": self.trend_ok,
            "trend_ema": self.trend_ema,
            "reason": self.reason,
        }
