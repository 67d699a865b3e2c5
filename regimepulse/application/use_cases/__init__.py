"""Application use cases."""
from regimepulse.application.use_cases.generate_signals_usecase import GenerateSignalsUseCase
from regimepulse.application.use_cases.instant_decision_usecase import InstantDecisionUseCase
from regimepulse.application.use_cases.process_tick_usecase import ProcessTickUseCase

__all__ = [
    "GenerateSignalsUseCase",
    "InstantDecisionUseCase",
    "ProcessTickUseCase",
]
