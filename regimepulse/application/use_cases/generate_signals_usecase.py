"""
Generate Signals Use Case.

Caso de uso: regenerar el log de señales del instrumento observado bajo
el perfil activo y resumirlo para el dashboard.

FLUJO:
1. Lectura MTF del TF superior (solo si el perfil la usa)
2. Velas del intervalo actual (vía CandleCache)
3. Replay determinista con SignalGenerator
4. Resumen: último precio, TREND/MTF/VOL/BREAKOUT, última decisión

Si el fetch falla, se devuelve el reporte previo del mismo
instrumento/intervalo marcado stale=True (o uno vacío si no hay).
"""

from __future__ import annotations

from typing import Dict, List, Optional, Tuple

from regimepulse.application.dto.snapshot_dto import SignalReport
from regimepulse.application.ports.clock import IClock
from regimepulse.application.services.candle_cache import CandleCache
from regimepulse.application.services.higher_trend import HigherTrendService
from regimepulse.domain.entities.candle import Candle
from regimepulse.domain.exceptions.domain_errors import DataFetchError
from regimepulse.domain.services.indicator_calculator import IndicatorCalculator
from regimepulse.domain.services.signal_generator import GenerationResult, SignalGenerator
from regimepulse.domain.value_objects.mode_state import NO_VALUE
from regimepulse.domain.value_objects.strategy_profile import StrategyProfile
from regimepulse.shared.logging.logger import get_logger

logger = get_logger("generate_signals")


class GenerateSignalsUseCase:
    def __init__(
        self,
        cache: CandleCache,
        higher_trend: HigherTrendService,
        clock: IClock,
        generator: Optional[SignalGenerator] = None,
        candle_limit: int = 900,
    ) -> None:
        self._cache = cache
        self._higher_trend = higher_trend
        self._clock = clock
        self._generator = generator or SignalGenerator()
        self._candle_limit = candle_limit
        self._last_reports: Dict[Tuple[str, str], SignalReport] = {}

    async def execute(
        self,
        instrument: str,
        interval: str,
        profile: StrategyProfile,
        event_decision: Optional[str] = None,
    ) -> SignalReport:
        """
        Args:
            event_decision: decisión instantánea vigente; si viene (y no es
                "—") se usa como last_decision en vez del último evento.
        """
        key = (instrument, interval)
        try:
            higher_ok = await self._higher_trend.higher_trend_ok(instrument, interval, profile)
            candles = await self._cache.get(instrument, interval, self._candle_limit)
            if not candles:
                raise DataFetchError("Respuesta sin velas", instrument=instrument, interval=interval)
        except DataFetchError as e:
            logger.warning("Refresh de señales fallido (%s %s): %s", instrument, interval, e.message)
            previous = self._last_reports.get(key)
            if previous is not None:
                return previous.mark_stale()
            return SignalReport(
                instrument=instrument,
                interval=interval,
                profile=profile.name.value,
                meta=self._meta(instrument, interval, profile),
                stale=True,
                generated_at_ms=self._clock.now_ms(),
            )

        result = self._generator.generate_report(candles, profile, higher_ok)
        report = self._build_report(instrument, interval, profile, candles, result, higher_ok, event_decision)
        self._last_reports[key] = report

        logger.info(
            "Señales %s %s [%s]: %d eventos, última decisión %s",
            instrument, interval, profile.name.value, len(report.events), report.last_decision,
        )
        return report

    def _build_report(
        self,
        instrument: str,
        interval: str,
        profile: StrategyProfile,
        candles: List[Candle],
        result: GenerationResult,
        higher_ok: Optional[bool],
        event_decision: Optional[str],
    ) -> SignalReport:
        last = candles[-1]
        last_ema = result.trend_ema[-1]
        # En el dashboard, EMA sin calentar = tendencia no confirmada
        trend_ok = last_ema is not None and last.close > last_ema

        parts = ["TREND OK" if trend_ok else "TREND OFF"]
        if profile.enable_mtf:
            if higher_ok is None:
                parts.append("MTF ?")
            else:
                parts.append("MTF OK" if higher_ok else "MTF OFF")
        if profile.enable_vol:
            vol_ma = result.volume_ma[-1]
            vol_ok = True if vol_ma is None else IndicatorCalculator.volume_of(last) >= vol_ma
            parts.append("VOL OK" if vol_ok else "VOL OFF")
        if profile.breakout_entry:
            parts.append("BREAKOUT ON")

        if event_decision and event_decision != NO_VALUE:
            last_decision = event_decision
        elif result.last_event is not None:
            last_decision = result.last_event.label
        else:
            last_decision = NO_VALUE

        return SignalReport(
            instrument=instrument,
            interval=interval,
            profile=profile.name.value,
            events=result.events,
            last_decision=last_decision,
            last_price=last.close,
            trend_ok=trend_ok,
            higher_trend_ok=higher_ok,
            detail=" | ".join(parts),
            meta=self._meta(instrument, interval, profile),
            generated_at_ms=self._clock.now_ms(),
        )

    @staticmethod
    def _meta(instrument: str, interval: str, profile: StrategyProfile) -> str:
        return (
            f"{instrument} | {interval} | Profile {profile.name.value} "
            f"| SL {profile.stop_loss_pct * 100:.1f}% "
            f"| Trail {profile.trail_drawdown_pct * 100:.1f}%"
        )
