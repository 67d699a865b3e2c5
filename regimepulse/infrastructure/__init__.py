"""
RegimePulse – Infrastructure Layer
===================================
Implementaciones concretas de interfaces.

Este módulo contiene:
- external/: Binance (REST velas + WS trades), EventBus, reloj, TradeFeed

REGLA DE DEPENDENCIA:
Esta capa implementa interfaces definidas en application/ports/.

Puede importar de:
- domain/ (entidades, value objects)
- application/ (ports)
- shared/ (config, logging)
"""
