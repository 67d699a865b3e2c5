"""
RegimePulse – API Schemas (Pydantic)
=====================================
Bodies de request de la API REST.

Los umbrales de estrategia NO se validan aquí: llegan como valores
sueltos y StrategyConfig los recorta a su rango.
"""

from __future__ import annotations

from typing import Any, Optional

from pydantic import BaseModel, Field


class InstrumentRequest(BaseModel):
    """Body para cambiar el instrumento observado."""
    instrument: str


class IntervalRequest(BaseModel):
    """Body para cambiar el intervalo de velas."""
    interval: str


class ConfigUpdateRequest(BaseModel):
    """Cambios parciales de configuración (valores fuera de rango se recortan)."""
    stop_loss_normal_pct: Optional[Any] = None
    trail_drawdown_normal_pct: Optional[Any] = None
    stop_loss_event_pct: Optional[Any] = None
    trail_drawdown_event_pct: Optional[Any] = None
    event_threshold_pct: Optional[Any] = None
    event_volume_multiplier: Optional[Any] = None
    event_hold_minutes: Optional[Any] = None
    detector_enabled: Optional[bool] = Field(default=None)

    def changes(self) -> dict:
        """Solo los campos presentes en el request."""
        return self.model_dump(exclude_none=True)


class HealthResponse(BaseModel):
    status: str
    service: str
