"""
RegimePulse – Domain Entity: Candle
====================================
Vela OHLCV inmutable tal como la entrega el proveedor de datos.

Decisiones de diseño:
- frozen=True → inmutable una vez producida. Nadie puede alterar una
  vela pasada, lo que garantiza que el replay del generador de señales
  sea determinista.
- time en SEGUNDOS (apertura de la vela), estrictamente creciente dentro
  de una serie. El índice de la serie es el orden temporal.
"""

from __future__ import annotations

from dataclasses import dataclass


@dataclass(frozen=True, slots=True)
class Candle:
    """Vela OHLCV con timestamp de apertura en segundos."""

    time: int
    open: float
    high: float
    low: float
    close: float
    volume: float = 0.0

    @property
    def is_bullish(self) -> bool:
        return self.close > self.open

    @property
    def is_bearish(self) -> bool:
        return self.close < self.open

    def to_dict(self) -> dict:
        """Serialización para API / WebSocket."""
        return {
            "time": self.time,
            "open": self.open,
            "high": self.high,
            "low": self.low,
            "close": self.close,
            "volume": self.volume,
        }
