"""
RegimePulse – Application DTO: Snapshots
=========================================
Data Transfer Objects que salen de la capa de aplicación hacia la API
y el WebSocket.

Los DTOs sirven como contratos entre capas.
Son estructuras simples sin lógica de negocio.
"""

from __future__ import annotations

from dataclasses import dataclass, field, replace
from typing import Any, Dict, List, Optional

from regimepulse.domain.entities.signal_event import SignalEvent
from regimepulse.domain.value_objects.mode_state import NO_VALUE


@dataclass(frozen=True)
class SignalReport:
    """Log de señales + resumen para el dashboard."""

    instrument: str
    interval: str
    profile: str
    events: List[SignalEvent] = field(default_factory=list)
    last_decision: str = NO_VALUE
    last_price: Optional[float] = None
    trend_ok: Optional[bool] = None
    higher_trend_ok: Optional[bool] = None
    detail: str = ""
    meta: str = ""
    stale: bool = False
    generated_at_ms: int = 0

    def mark_stale(self) -> "SignalReport":
        """Copia del reporte previo marcada como desactualizada."""
        return replace(self, stale=True)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "instrument": self.instrument,
            "interval": self.interval,
            "profile": self.profile,
            "events": [e.to_dict() for e in self.events],
            "last_decision": self.last_decision,
            "last_price": self.last_price,
            "trend_ok": self.trend_ok,
            "higher_trend_ok": self.higher_trend_ok,
            "detail": self.detail,
            "meta": self.meta,
            "stale": self.stale,
            "generated_at_ms": self.generated_at_ms,
        }


@dataclass(frozen=True)
class DetectorStatus:
    instrument: str
    enabled: bool
    threshold_pct: float
    volume_multiplier: float
    samples: int
    baseline_volume: float
    last_price: Optional[float]
    last_trigger_ts: Optional[int]

    def to_dict(self) -> Dict[str, Any]:
        return {
            "instrument": self.instrument,
            "enabled": self.enabled,
            "threshold_pct": self.threshold_pct,
            "volume_multiplier": self.volume_multiplier,
            "samples": self.samples,
            "baseline_volume": round(self.baseline_volume, 6),
            "last_price": self.last_price,
            "last_trigger_ts": self.last_trigger_ts,
        }


@dataclass(frozen=True)
class EngineSnapshot:
    """Estado completo del motor para GET /api/status."""

    instrument: str
    interval: str
    mode: Dict[str, Any]
    detector: DetectorStatus
    active_profile: Dict[str, Any]
    last_report: Optional[SignalReport] = None
    ticks_processed: int = 0

    def to_dict(self) -> Dict[str, Any]:
        return {
            "instrument": self.instrument,
            "interval": self.interval,
            "mode": self.mode,
            "detector": self.detector.to_dict(),
            "active_profile": self.active_profile,
            "last_report": self.last_report.to_dict() if self.last_report else None,
            "ticks_processed": self.ticks_processed,
        }
