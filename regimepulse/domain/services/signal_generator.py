"""
RegimePulse – Domain Service: Signal Generator
===============================================
Replay determinista de una serie de velas bajo un StrategyProfile.

═══════════════════════════════════════════════════════════════
              MÁQUINA DE ESTADOS (FLAT ↔ IN_POSITION)
═══════════════════════════════════════════════════════════════

Recorre las velas desde el índice 1 (necesita la vela anterior para
detectar cruces). Si algún indicador requerido (MA corta/larga actual y
previa, EMA de tendencia) aún no está definido, la vela se SALTA sin
tocar el estado.

FILTROS (cada uno activable por perfil):
  trendOk  = close > EMA(ema_trend_period)
  mtfOk    = True si MTF desactivado; si no, True salvo higher_trend_ok
             explícitamente False (None = desconocido = no bloquea)
  volOk    = True si VOL desactivado; si no, volume >= VolMA, o VolMA
             sin definir (default optimista)

CRUCES:
  bullCross: MA corta pasa de <= MA larga a > MA larga
  bearCross: MA corta pasa de >= MA larga a < MA larga

RUPTURA (solo perfiles con breakout_entry):
  breakoutUp = high > máximo de las velas previas Y vela alcista
  breakoutDn = low  < mínimo de las velas previas Y vela bajista
  El rango se evalúa en la vela cerrada anterior (end_index = i-1).

ENTRADA (FLAT → IN_POSITION, "BUY"):
  (trendOk ∧ bullCross ∧ alcista ∧ mtfOk ∧ volOk)
  ∨ (breakout_entry ∧ trendOk ∧ breakoutUp)
  reason = "BREAKOUT-UP" si la ruptura aplica, si no "MA-CROSS".

SALIDAS (orden fijo, gana la primera):
  0. peak = max(peak, close)
  1. STOP_LOSS     close <= entry × (1 − stop_loss_pct)
  2. TAKE_PROFIT   peak > entry ∧ close <= peak × (1 − trail_drawdown_pct)
  3. TREND_FAIL    close < MA larga ∨ (NORMAL ∧ bearCross)
  4. REVERSAL_EXIT breakout_entry ∧ breakoutDn

Sin aleatoriedad ni lectura de reloj: mismas velas + mismo perfil →
mismo log, evento por evento.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import List, Optional, Sequence

from regimepulse.domain.entities.candle import Candle
from regimepulse.domain.entities.signal_event import (
    REASON_BREAKOUT_UP,
    REASON_MA_CROSS,
    SignalEvent,
    SignalType,
)
from regimepulse.domain.services.indicator_calculator import IndicatorCalculator, Series
from regimepulse.domain.value_objects.strategy_profile import StrategyProfile


@dataclass
class PositionState:
    """Posición simulada; existe solo durante una pasada."""

    in_position: bool = False
    entry_price: float = 0.0
    peak_price: float = 0.0

    def open(self, price: float) -> None:
        self.in_position = True
        self.entry_price = price
        self.peak_price = price

    def close(self) -> None:
        self.in_position = False
        self.entry_price = 0.0
        self.peak_price = 0.0


@dataclass(frozen=True)
class GenerationResult:
    """Log de eventos + series de indicadores usadas en la pasada."""

    events: List[SignalEvent]
    ma_short: Series = field(default_factory=list)
    ma_long: Series = field(default_factory=list)
    trend_ema: Series = field(default_factory=list)
    volume_ma: Series = field(default_factory=list)

    @property
    def last_event(self) -> Optional[SignalEvent]:
        return self.events[-1] if self.events else None


class SignalGenerator:
    """
    Generador determinista de señales de entrada/salida.

    Recibe: serie de velas + perfil + lectura opcional del TF superior.
    Genera: lista ordenada de SignalEvent.
    NO ejecuta órdenes. NO persiste.
    """

    def __init__(self, calculator: Optional[IndicatorCalculator] = None) -> None:
        self._calc = calculator or IndicatorCalculator()

    def generate(
        self,
        candles: Sequence[Candle],
        profile: StrategyProfile,
        higher_trend_ok: Optional[bool] = None,
    ) -> List[SignalEvent]:
        return self.generate_report(candles, profile, higher_trend_ok).events

    def generate_report(
        self,
        candles: Sequence[Candle],
        profile: StrategyProfile,
        higher_trend_ok: Optional[bool] = None,
    ) -> GenerationResult:
        ma_short = self._calc.moving_average(candles, profile.ma_short_period)
        ma_long = self._calc.moving_average(candles, profile.ma_long_period)
        trend_ema = self._calc.ema(candles, profile.ema_trend_period)
        volume_ma = self._calc.volume_moving_average(candles, profile.vol_period)

        # Desconocido (None) no bloquea: default optimista
        mtf_ok = (higher_trend_ok is not False) if profile.enable_mtf else True

        events: List[SignalEvent] = []
        position = PositionState()

        for i in range(1, len(candles)):
            prev_short, prev_long = ma_short[i - 1], ma_long[i - 1]
            curr_short, curr_long = ma_short[i], ma_long[i]
            ema = trend_ema[i]
            if None in (prev_short, prev_long, curr_short, curr_long, ema):
                continue

            bar = candles[i]
            price = bar.close
            trend_ok = price > ema

            vol_ma = volume_ma[i]
            if profile.enable_vol:
                vol_ok = True if vol_ma is None else self._calc.volume_of(bar) >= vol_ma
            else:
                vol_ok = True

            bull_cross = prev_short <= prev_long and curr_short > curr_long
            bear_cross = prev_short >= prev_long and curr_short < curr_long

            breakout_up = False
            breakout_dn = False
            if profile.breakout_entry:
                lookback = profile.breakout_lookback
                highest = self._calc.highest_high(candles, i - 1, lookback)
                lowest = self._calc.lowest_low(candles, i - 1, lookback)
                breakout_up = bar.high > highest and bar.is_bullish
                breakout_dn = bar.low < lowest and bar.is_bearish

            # ── FLAT: evaluar entrada ─────────────────────────────────
            if not position.in_position:
                cross_entry = trend_ok and bull_cross and bar.is_bullish and mtf_ok and vol_ok
                breakout_entry = profile.breakout_entry and trend_ok and breakout_up
                if cross_entry or breakout_entry:
                    position.open(price)
                    reason = REASON_BREAKOUT_UP if (profile.breakout_entry and breakout_up) else REASON_MA_CROSS
                    events.append(SignalEvent(
                        type=SignalType.BUY,
                        time=bar.time,
                        price=price,
                        profile=profile.name.value,
                        reason=reason,
                    ))
                continue

            # ── IN_POSITION: salidas en orden de prioridad ────────────
            position.peak_price = max(position.peak_price, price)
            exit_type = self._check_exit(
                position, profile, price, curr_long, bear_cross, breakout_dn,
            )
            if exit_type is not None:
                events.append(SignalEvent(
                    type=exit_type,
                    time=bar.time,
                    price=price,
                    profile=profile.name.value,
                ))
                position.close()

        return GenerationResult(
            events=events,
            ma_short=ma_short,
            ma_long=ma_long,
            trend_ema=trend_ema,
            volume_ma=volume_ma,
        )

    @staticmethod
    def _check_exit(
        position: PositionState,
        profile: StrategyProfile,
        price: float,
        ma_long: float,
        bear_cross: bool,
        breakout_dn: bool,
    ) -> Optional[SignalType]:
        stop_loss_price = position.entry_price * (1 - profile.stop_loss_pct)
        trail_stop_price = position.peak_price * (1 - profile.trail_drawdown_pct)

        if price <= stop_loss_price:
            return SignalType.STOP_LOSS
        if position.peak_price > position.entry_price and price <= trail_stop_price:
            return SignalType.TAKE_PROFIT
        if price < ma_long or (profile.is_normal and bear_cross):
            return SignalType.TREND_FAIL
        if profile.breakout_entry and breakout_dn:
            return SignalType.REVERSAL_EXIT
        return None
