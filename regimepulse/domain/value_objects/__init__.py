"""Domain value objects."""
from regimepulse.domain.value_objects.tick import TickSample
from regimepulse.domain.value_objects.strategy_profile import ProfileName, StrategyProfile
from regimepulse.domain.value_objects.impulse import ImpulseDirection, ImpulseTrigger
from regimepulse.domain.value_objects.mode_state import (
    MarketMode,
    ModeSnapshot,
    ModeState,
    ModeTransition,
)
from regimepulse.domain.value_objects.decision import InstantDecision

__all__ = [
    "TickSample",
    "ProfileName",
    "StrategyProfile",
    "ImpulseDirection",
    "ImpulseTrigger",
    "MarketMode",
    "ModeSnapshot",
    "ModeState",
    "ModeTransition",
    "InstantDecision",
]
