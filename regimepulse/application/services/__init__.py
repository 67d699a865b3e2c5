"""Application services - Orchestration on top of domain services."""
from regimepulse.application.services.candle_cache import CandleCache
from regimepulse.application.services.higher_trend import HigherTrendService, higher_interval_of
from regimepulse.application.services.profile_factory import build_profiles
from regimepulse.application.services.regime_engine import RegimeEngine

__all__ = [
    "CandleCache",
    "HigherTrendService",
    "higher_interval_of",
    "build_profiles",
    "RegimeEngine",
]
