"""
RegimePulse – Domain Layer
===========================
Núcleo puro del sistema. CERO dependencias externas.

Este módulo contiene:
- entities/: Entidades de negocio (Candle, SignalEvent)
- value_objects/: Objetos inmutables (TickSample, StrategyProfile, ModeSnapshot)
- services/: Servicios de dominio puros (indicadores, generador, detector, modo)
- events/: Eventos de dominio
- exceptions/: Excepciones de dominio

REGLA DE DEPENDENCIA:
Este módulo NO puede importar de:
- infrastructure/
- presentation/
- application/
- Frameworks externos (FastAPI, requests, websockets, etc.)
"""

from regimepulse.domain.entities.candle import Candle
from regimepulse.domain.entities.signal_event import SignalEvent, SignalType
from regimepulse.domain.value_objects.tick import TickSample
from regimepulse.domain.value_objects.strategy_profile import ProfileName, StrategyProfile

__all__ = [
    "Candle",
    "SignalEvent",
    "SignalType",
    "TickSample",
    "ProfileName",
    "StrategyProfile",
]
