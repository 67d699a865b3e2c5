"""
Instant Decision Use Case.

Caso de uso: al dispararse un EVENT, leer velas recientes (caché de 12s)
y sintetizar la recomendación con la EMA de tendencia del perfil EVENT.

Propaga DataFetchError; el RegimeEngine decide qué hacer con el fallo
(registrarlo y dejar intacto el estado de modo).
"""

from __future__ import annotations

from typing import Optional

from regimepulse.application.services.candle_cache import CandleCache
from regimepulse.domain.services.decision_synthesizer import DecisionSynthesizer
from regimepulse.domain.value_objects.decision import InstantDecision
from regimepulse.domain.value_objects.impulse import ImpulseDirection
from regimepulse.shared.logging.logger import get_logger

logger = get_logger("instant_decision")


class InstantDecisionUseCase:
    def __init__(
        self,
        cache: CandleCache,
        synthesizer: Optional[DecisionSynthesizer] = None,
        candle_limit: int = 260,
    ) -> None:
        self._cache = cache
        self._synthesizer = synthesizer or DecisionSynthesizer()
        self._candle_limit = candle_limit

    async def execute(
        self,
        instrument: str,
        interval: str,
        direction: ImpulseDirection,
        live_price: float,
        reason: str,
        ema_period: int,
    ) -> InstantDecision:
        candles = await self._cache.get(instrument, interval, self._candle_limit)
        decision = self._synthesizer.synthesize(direction, live_price, reason, candles, ema_period)
        logger.info(
            "Decisión instantánea %s: %s (EMA=%s)",
            instrument, decision.recommendation, decision.trend_ema,
        )
        return decision
