"""
RegimePulse – Application Port: Market Data Provider
=====================================================
Interfaz para obtener datos de mercado.

Los use cases solicitan datos; la infraestructura
decide CÓMO obtenerlos (REST de Binance, WebSocket de trades,
fixtures en tests, etc.)
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from typing import AsyncIterator, List

from regimepulse.domain.entities.candle import Candle
from regimepulse.domain.value_objects.tick import TickSample


class IMarketDataProvider(ABC):
    """
    Interfaz para proveer datos de mercado.

    IMPLEMENTACIONES POSIBLES:
    - BinanceMarketDataProvider (REST klines + WS trades)
    - FakeMarketDataProvider (testing)
    """

    @abstractmethod
    async def fetch_candles(
        self,
        instrument: str,
        interval: str,
        limit: int,
    ) -> List[Candle]:
        """
        Obtiene velas históricas.

        Args:
            instrument: Símbolo (e.g. "BTCUSDT")
            interval: Intervalo ("1m", "1h", ...)
            limit: Número máximo de velas

        Returns:
            Lista de velas ordenadas por tiempo ASC

        Raises:
            DataFetchError: error de red, HTTP o payload malformado
        """

    @abstractmethod
    def stream_trades(self, instrument: str) -> AsyncIterator[TickSample]:
        """
        Stream de trades en tiempo real.

        La implementación maneja la reconexión internamente; el iterador
        solo termina al cancelarse.
        """
