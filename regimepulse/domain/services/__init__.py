"""Domain services - Pure business logic with no external dependencies."""
from regimepulse.domain.services.indicator_calculator import IndicatorCalculator
from regimepulse.domain.services.signal_generator import GenerationResult, SignalGenerator
from regimepulse.domain.services.impulse_detector import ImpulseDetector, RealtimeState
from regimepulse.domain.services.mode_controller import ModeController
from regimepulse.domain.services.decision_synthesizer import DecisionSynthesizer

__all__ = [
    "IndicatorCalculator",
    "GenerationResult",
    "SignalGenerator",
    "ImpulseDetector",
    "RealtimeState",
    "ModeController",
    "DecisionSynthesizer",
]
