"""Reloj de pared del proceso (epoch ms)."""

from __future__ import annotations

import time

from regimepulse.application.ports.clock import IClock


class SystemClock(IClock):
    def now_ms(self) -> int:
        return int(time.time() * 1000)
