"""
RegimePulse – Application Port: Clock
======================================
Fuente de tiempo inyectable. Expiry de EVENT y TTL de la caché de velas
se miden contra este reloj; los tests usan uno manual.
"""

from __future__ import annotations

from abc import ABC, abstractmethod


class IClock(ABC):
    @abstractmethod
    def now_ms(self) -> int:
        """Epoch en milisegundos."""
