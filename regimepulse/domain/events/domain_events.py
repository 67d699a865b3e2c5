"""
RegimePulse – Domain Events
============================
Eventos de dominio para arquitectura event-driven.

Los eventos de dominio representan HECHOS que ocurrieron
en el sistema. Son inmutables y llevan timestamp.

Cada evento se publica en el EventBus bajo su tópico (TOPIC) y
el WebSocketManager lo retransmite tal cual a los clientes.
"""

from __future__ import annotations

import time
import uuid
from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional


@dataclass(frozen=True)
class DomainEvent:
    """Evento base de dominio."""

    TOPIC = "event"

    event_id: str = field(default_factory=lambda: uuid.uuid4().hex[:12])
    timestamp: float = field(default_factory=time.time)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "event_id": self.event_id,
            "event_type": self.__class__.__name__,
            "timestamp": self.timestamp,
        }


@dataclass(frozen=True)
class ImpulseDetected(DomainEvent):
    """Evento: el detector aceptó un impulso (o disparo manual)."""

    TOPIC = "impulse"

    instrument: str = ""
    direction: str = ""  # UP | DOWN
    percent_change: float = 0.0
    volume_ratio: float = 0.0
    price: float = 0.0
    reason: str = ""
    manual: bool = False

    def to_dict(self) -> Dict[str, Any]:
        base = super().to_dict()
        base.update({
            "instrument": self.instrument,
            "direction": self.direction,
            "percent_change": self.percent_change,
            "volume_ratio": self.volume_ratio,
            "price": self.price,
            "reason": self.reason,
            "manual": self.manual,
        })
        return base


@dataclass(frozen=True)
class ModeChanged(DomainEvent):
    """Evento: transición NORMAL/EVENT (incluye refresh EVENT → EVENT)."""

    TOPIC = "mode"

    instrument: str = ""
    previous: str = ""
    current: str = ""
    reason: str = ""
    event_expiry_ms: int = 0
    refresh: bool = False

    def to_dict(self) -> Dict[str, Any]:
        base = super().to_dict()
        base.update({
            "instrument": self.instrument,
            "previous": self.previous,
            "current": self.current,
            "reason": self.reason,
            "event_expiry_ms": self.event_expiry_ms,
            "refresh": self.refresh,
        })
        return base


@dataclass(frozen=True)
class DecisionMade(DomainEvent):
    """Evento: se sintetizó una decisión instantánea."""

    TOPIC = "decision"

    instrument: str = ""
    recommendation: str = ""
    detail: str = ""
    direction: str = ""
    live_price: float = 0.0
    trend_ok: bool = True
    trend_ema: Optional[float] = None

    def to_dict(self) -> Dict[str, Any]:
        base = super().to_dict()
        base.update({
            "instrument": self.instrument,
            "recommendation": self.recommendation,
            "detail": self.detail,
            "direction": self.direction,
            "live_price": self.live_price,
            "trend_ok": self.trend_ok,
            "trend_ema": self.trend_ema,
        })
        return base


@dataclass(frozen=True)
class SignalsGenerated(DomainEvent):
    """Evento: se recalculó el log de señales de un instrumento/intervalo."""

    TOPIC = "signals"

    instrument: str = ""
    interval: str = ""
    profile: str = ""
    events: List[Dict[str, Any]] = field(default_factory=list)
    last_decision: str = ""
    detail: str = ""
    meta: str = ""
    stale: bool = False

    def to_dict(self) -> Dict[str, Any]:
        base = super().to_dict()
        base.update({
            "instrument": self.instrument,
            "interval": self.interval,
            "profile": self.profile,
            "events": list(self.events),
            "last_decision": self.last_decision,
            "detail": self.detail,
            "meta": self.meta,
            "stale": self.stale,
        })
        return base
