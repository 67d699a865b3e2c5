"""
RegimePulse – Application Service: Higher Timeframe Trend
==========================================================
Lectura del filtro MTF: ¿el cierre del TF superior está sobre su EMA?

  1h → 4h,  4h → 1d,  cualquier otro → sin TF superior (None)

Devuelve None (desconocido) cuando no aplica o no se puede determinar;
el generador trata None como "no bloquea".
"""

from __future__ import annotations

from typing import Dict, Optional

from regimepulse.application.services.candle_cache import CandleCache
from regimepulse.domain.exceptions.domain_errors import DataFetchError
from regimepulse.domain.services.indicator_calculator import IndicatorCalculator
from regimepulse.domain.value_objects.strategy_profile import StrategyProfile
from regimepulse.shared.logging.logger import get_logger

logger = get_logger("higher_trend")

HIGHER_INTERVALS: Dict[str, str] = {
    "1h": "4h",
    "4h": "1d",
}


def higher_interval_of(interval: str) -> Optional[str]:
    return HIGHER_INTERVALS.get(interval)


class HigherTrendService:
    def __init__(
        self,
        cache: CandleCache,
        candle_limit: int = 600,
        calculator: Optional[IndicatorCalculator] = None,
    ) -> None:
        self._cache = cache
        self._candle_limit = candle_limit
        self._calc = calculator or IndicatorCalculator()

    async def higher_trend_ok(
        self,
        instrument: str,
        interval: str,
        profile: StrategyProfile,
    ) -> Optional[bool]:
        if not profile.enable_mtf:
            return None
        higher = higher_interval_of(interval)
        if higher is None:
            return None

        try:
            candles = await self._cache.get(instrument, higher, self._candle_limit)
        except DataFetchError as e:
            logger.warning("MTF desconocido para %s %s: %s", instrument, higher, e.message)
            return None

        if not candles:
            return None
        trend_ema = self._calc.last_value(self._calc.ema(candles, profile.ema_trend_period))
        if trend_ema is None:
            return None
        return candles[-1].close > trend_ema
