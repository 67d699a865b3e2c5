"""
RegimePulse – Domain Service: Instant Decision Synthesizer
===========================================================
Recomendación consultiva en el instante de un impulso.

TABLA DE DECISIÓN (trend_ok = live_price > EMA de tendencia):

  dirección │ trend_ok │ recomendación
  ──────────┼──────────┼──────────────────────────────────────────
  UP        │ True     │ EVENT BUY (Impulse-Up)
  UP        │ False    │ WAIT (Impulse-Up but below EMA)
  DOWN      │ False    │ AVOID / RISK-OFF (Impulse-Down)
  DOWN      │ True     │ WAIT (Impulse-Down but still above EMA)

Si la EMA no está calentada, trend_ok = True (default optimista).
Función pura: mismos argumentos → misma decisión.
"""

from __future__ import annotations

from typing import Sequence

from regimepulse.domain.entities.candle import Candle
from regimepulse.domain.services.indicator_calculator import IndicatorCalculator
from regimepulse.domain.value_objects.decision import InstantDecision
from regimepulse.domain.value_objects.impulse import ImpulseDirection

EVENT_BUY = "EVENT BUY (Impulse-Up)"
WAIT_UP_BELOW_EMA = "WAIT (Impulse-Up but below EMA)"
AVOID_RISK_OFF = "AVOID / RISK-OFF (Impulse-Down)"
WAIT_DOWN_ABOVE_EMA = "WAIT (Impulse-Down but still above EMA)"


class DecisionSynthesizer:
    """Combina dirección del impulso + filtro de tendencia en una recomendación."""

    def __init__(self, calculator: IndicatorCalculator | None = None) -> None:
        self._calc = calculator or IndicatorCalculator()

    def synthesize(
        self,
        direction: ImpulseDirection,
        live_price: float,
        reason: str,
        candles: Sequence[Candle],
        ema_period: int,
    ) -> InstantDecision:
        trend_ema = self._calc.last_value(self._calc.ema(candles, ema_period))
        trend_ok = True if trend_ema is None else live_price > trend_ema

        if direction is ImpulseDirection.UP:
            if trend_ok:
                recommendation = EVENT_BUY
                detail = f"Decisión EVENT: seguir el impulso a favor de tendencia | {reason}"
            else:
                recommendation = WAIT_UP_BELOW_EMA
                detail = f"Protección EVENT: subida bajo la EMA, posible falsa ruptura | {reason}"
        else:
            if not trend_ok:
                recommendation = AVOID_RISK_OFF
                detail = f"Decisión EVENT: caída con tendencia rota, no atrapar el cuchillo | {reason}"
            else:
                recommendation = WAIT_DOWN_ABOVE_EMA
                detail = f"Protección EVENT: caída aún sobre la EMA, esperar confirmación | {reason}"

        return InstantDecision(
            recommendation=recommendation,
            detail=detail,
            direction=direction,
            live_price=live_price,
            trend_ok=trend_ok,
            trend_ema=trend_ema,
            reason=reason,
        )
