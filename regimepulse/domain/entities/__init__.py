"""Domain entities."""
from regimepulse.domain.entities.candle import Candle
from regimepulse.domain.entities.signal_event import SignalEvent, SignalType

__all__ = ["Candle", "SignalEvent", "SignalType"]
