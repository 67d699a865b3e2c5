"""
RegimePulse – Domain Service: Indicator Calculator
===================================================
Cálculos de indicadores técnicos puros sobre una serie de velas.

Cada función devuelve una serie ALINEADA 1:1 con la entrada:
out[i] corresponde a candles[i], y vale None mientras el indicador no
tenga historial suficiente (warm-up). El warm-up NO es un error.

VENTAJA:
- Testeo unitario sin mocks
- Sin dependencias externas (no TA-Lib, solo math puro)
- Fórmulas explícitas y auditables
"""

from __future__ import annotations

import math
from typing import List, Optional, Sequence

from regimepulse.domain.entities.candle import Candle
from regimepulse.domain.exceptions.domain_errors import ValidationError

Series = List[Optional[float]]


def _check_period(period: int) -> None:
    if period < 1:
        raise ValidationError("El período debe ser >= 1", field="period", value=period)


def _volume_of(candle: Candle) -> float:
    volume = candle.volume
    if volume is None:
        return 0.0
    try:
        volume = float(volume)
    except (TypeError, ValueError):
        return 0.0
    return volume if math.isfinite(volume) else 0.0


class IndicatorCalculator:
    """
    Calculadora de indicadores técnicos puros.

    RESPONSABILIDAD:
    Implementar las fórmulas matemáticas de indicadores.
    NO mantiene estado (stateless).
    """

    @staticmethod
    def moving_average(candles: Sequence[Candle], period: int) -> Series:
        """
        SMA de cierres con suma deslizante incremental.

        FÓRMULA:
        MA_i = (close_{i-period+1} + ... + close_i) / period

        La suma se actualiza sumando el cierre entrante y restando el que
        sale de la ventana → O(1) amortizado por vela.

        Returns:
            Serie alineada; definida desde el índice period-1.
        """
        _check_period(period)
        out: Series = [None] * len(candles)
        window_sum = 0.0
        for i, candle in enumerate(candles):
            window_sum += candle.close
            if i >= period:
                window_sum -= candles[i - period].close
            if i >= period - 1:
                out[i] = window_sum / period
        return out

    @staticmethod
    def ema(candles: Sequence[Candle], period: int) -> Series:
        """
        EMA (Exponential Moving Average).

        FÓRMULA:
        EMA_t = close_t × k + EMA_{t-1} × (1-k)
        k = 2 / (period + 1)

        INICIALIZACIÓN:
        EMA_0 = close_0. La recursión corre desde el índice 0, pero los
        valores anteriores a period-1 se suprimen de la salida para no
        reportar una EMA sin calentar.
        """
        _check_period(period)
        out: Series = [None] * len(candles)
        k = 2.0 / (period + 1)
        value: Optional[float] = None
        for i, candle in enumerate(candles):
            price = candle.close
            if value is None:
                value = price
            else:
                value = price * k + value * (1 - k)
            if i >= period - 1:
                out[i] = value
        return out

    @staticmethod
    def volume_of(candle: Candle) -> float:
        """Volumen de la vela; ausente, ilegible o no finito cuenta como 0."""
        return _volume_of(candle)

    @staticmethod
    def volume_moving_average(candles: Sequence[Candle], period: int) -> Series:
        """Misma suma deslizante que moving_average, sobre volumen (NaN → 0)."""
        _check_period(period)
        out: Series = [None] * len(candles)
        window_sum = 0.0
        for i, candle in enumerate(candles):
            window_sum += _volume_of(candle)
            if i >= period:
                window_sum -= _volume_of(candles[i - period])
            if i >= period - 1:
                out[i] = window_sum / period
        return out

    @staticmethod
    def highest_high(candles: Sequence[Candle], end_index: int, lookback: int) -> float:
        """
        Máximo de `high` en [max(0, end_index - lookback), end_index].

        El generador lo evalúa con end_index = i-1: la vela evaluada
        nunca entra en su propio rango (sin look-ahead).
        """
        start = max(0, end_index - lookback)
        highest = -math.inf
        for i in range(start, end_index + 1):
            highest = max(highest, candles[i].high)
        return highest

    @staticmethod
    def lowest_low(candles: Sequence[Candle], end_index: int, lookback: int) -> float:
        """Mínimo de `low` en [max(0, end_index - lookback), end_index]."""
        start = max(0, end_index - lookback)
        lowest = math.inf
        for i in range(start, end_index + 1):
            lowest = min(lowest, candles[i].low)
        return lowest

    @staticmethod
    def last_value(series: Series) -> Optional[float]:
        """Último valor de la serie (None si vacía o sin calentar)."""
        return series[-1] if series else None
