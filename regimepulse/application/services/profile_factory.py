"""
RegimePulse – Application Service: Profile Factory
===================================================
Construye los dos StrategyProfile a partir de la configuración recortada.

La configuración habla en PORCENTAJES (0.9 = 0.9%); los perfiles en
FRACCIONES (0.009). La conversión ocurre aquí y solo aquí.
"""

from __future__ import annotations

from typing import Dict

from regimepulse.domain.value_objects.strategy_profile import ProfileName, StrategyProfile
from regimepulse.shared.config.settings import StrategyConfig

MA_SHORT_PERIOD = 5
MA_LONG_PERIOD = 20
EMA_TREND_PERIOD = 150
VOL_PERIOD = 20
EVENT_BREAKOUT_LOOKBACK = 30


def build_profiles(config: StrategyConfig) -> Dict[ProfileName, StrategyProfile]:
    normal = StrategyProfile(
        name=ProfileName.NORMAL,
        stop_loss_pct=config.stop_loss_normal_pct / 100,
        trail_drawdown_pct=config.trail_drawdown_normal_pct / 100,
        enable_mtf=True,
        enable_vol=True,
        breakout_entry=False,
        ma_short_period=MA_SHORT_PERIOD,
        ma_long_period=MA_LONG_PERIOD,
        ema_trend_period=EMA_TREND_PERIOD,
        vol_period=VOL_PERIOD,
    )
    event = StrategyProfile(
        name=ProfileName.EVENT,
        stop_loss_pct=config.stop_loss_event_pct / 100,
        trail_drawdown_pct=config.trail_drawdown_event_pct / 100,
        enable_mtf=False,
        enable_vol=False,
        breakout_entry=True,
        ma_short_period=MA_SHORT_PERIOD,
        ma_long_period=MA_LONG_PERIOD,
        ema_trend_period=EMA_TREND_PERIOD,
        vol_period=VOL_PERIOD,
        breakout_lookback=EVENT_BREAKOUT_LOOKBACK,
    )
    return {ProfileName.NORMAL: normal, ProfileName.EVENT: event}
