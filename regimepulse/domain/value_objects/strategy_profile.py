"""
RegimePulse – Domain Value Object: StrategyProfile
===================================================
Conjunto de parámetros que gobierna entradas/salidas de un régimen.

Existen dos perfiles:
  NORMAL → entradas estrictas (MTF + volumen), salidas por cruce bajista.
  EVENT  → sin fricción (sin MTF/volumen), entrada por ruptura y salida
           rápida por ruptura bajista.

Los porcentajes se guardan como FRACCIÓN (0.009 = 0.9%).
Inmutable durante una pasada del generador.
"""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import Optional

from regimepulse.domain.exceptions.domain_errors import ValidationError


class ProfileName(str, Enum):
    NORMAL = "NORMAL"
    EVENT = "EVENT"


@dataclass(frozen=True)
class StrategyProfile:
    name: ProfileName
    stop_loss_pct: float
    trail_drawdown_pct: float
    enable_mtf: bool
    enable_vol: bool
    breakout_entry: bool
    ma_short_period: int = 5
    ma_long_period: int = 20
    ema_trend_period: int = 150
    vol_period: int = 20
    breakout_lookback: Optional[int] = None

    def __post_init__(self) -> None:
        for field_name in ("stop_loss_pct", "trail_drawdown_pct"):
            value = getattr(self, field_name)
            if not 0.0 < value < 1.0:
                raise ValidationError(
                    f"{field_name} debe estar en (0, 1)", field=field_name, value=value,
                )
        for field_name in ("ma_short_period", "ma_long_period", "ema_trend_period", "vol_period"):
            value = getattr(self, field_name)
            if value < 1:
                raise ValidationError(
                    f"{field_name} debe ser >= 1", field=field_name, value=value,
                )
        if self.breakout_entry:
            if self.breakout_lookback is None or self.breakout_lookback < 1:
                raise ValidationError(
                    "breakout_lookback requerido (>= 1) con breakout_entry",
                    field="breakout_lookback",
                    value=self.breakout_lookback,
                )

    @property
    def is_normal(self) -> bool:
        return self.name is ProfileName.NORMAL

    def to_dict(self) -> dict:
        return {
            "name": self.name.value,
            "stop_loss_pct": self.stop_loss_pct,
            "trail_drawdown_pct": self.trail_drawdown_pct,
            "enable_mtf": self.enable_mtf,
            "enable_vol": self.enable_vol,
            "breakout_entry": self.breakout_entry,
            "ma_short_period": self.ma_short_period,
            "ma_long_period": self.ma_long_period,
            "ema_trend_period": self.ema_trend_period,
            "vol_period": self.vol_period,
            "breakout_lookback": self.breakout_lookback,
        }
