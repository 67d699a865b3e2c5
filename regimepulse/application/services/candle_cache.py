"""
RegimePulse – Application Service: Candle Cache
================================================
Caché de velas compartido por (instrumento, intervalo).

GARANTÍAS:
- Dedup: N llamadores concurrentes para la misma clave comparten UN
  solo fetch en vuelo (una sola petición REST).
- TTL: un resultado se sirve durante ttl_ms medido con el reloj
  inyectado. Pasado el TTL, la siguiente llamada vuelve a pedir.
- Los fallos NUNCA se cachean: el error se propaga a todos los que
  esperaban ese fetch y la siguiente llamada reintenta.
- Una entrada con menos velas que las pedidas no sirve; se vuelve a pedir.
  Con más velas, se devuelven las `limit` más recientes.
"""

from __future__ import annotations

import asyncio
from dataclasses import dataclass
from typing import Dict, List, Optional, Tuple

from regimepulse.application.ports.clock import IClock
from regimepulse.application.ports.market_data_provider import IMarketDataProvider
from regimepulse.domain.entities.candle import Candle
from regimepulse.shared.logging.logger import get_logger

logger = get_logger("candle_cache")

CacheKey = Tuple[str, str]


@dataclass(frozen=True)
class _CacheEntry:
    candles: List[Candle]
    fetched_at_ms: int
    limit: int


class CandleCache:
    def __init__(
        self,
        provider: IMarketDataProvider,
        clock: IClock,
        ttl_ms: int = 12_000,
    ) -> None:
        self._provider = provider
        self._clock = clock
        self._ttl_ms = ttl_ms
        self._entries: Dict[CacheKey, _CacheEntry] = {}
        self._inflight: Dict[CacheKey, Tuple[asyncio.Task, int]] = {}
        self._fetch_count = 0

    @property
    def fetch_count(self) -> int:
        """Peticiones reales emitidas al proveedor."""
        return self._fetch_count

    async def get(self, instrument: str, interval: str, limit: int) -> List[Candle]:
        key = (instrument, interval)

        entry = self._entries.get(key)
        if entry is not None and entry.limit >= limit:
            if self._clock.now_ms() - entry.fetched_at_ms < self._ttl_ms:
                return entry.candles[-limit:]

        inflight = self._inflight.get(key)
        if inflight is None or inflight[1] < limit:
            task = asyncio.create_task(
                self._fetch(key, limit), name=f"candles-{instrument}-{interval}"
            )
            self._inflight[key] = (task, limit)
        else:
            task = inflight[0]

        # shield: cancelar a un llamador no cancela el fetch compartido
        candles = await asyncio.shield(task)
        return candles[-limit:]

    def invalidate(self, instrument: Optional[str] = None) -> None:
        """Descarta entradas (todas, o solo las de un instrumento)."""
        if instrument is None:
            self._entries.clear()
            return
        for key in [k for k in self._entries if k[0] == instrument]:
            del self._entries[key]

    async def _fetch(self, key: CacheKey, limit: int) -> List[Candle]:
        instrument, interval = key
        self._fetch_count += 1
        try:
            candles = await self._provider.fetch_candles(instrument, interval, limit)
            self._entries[key] = _CacheEntry(
                candles=list(candles),
                fetched_at_ms=self._clock.now_ms(),
                limit=limit,
            )
            logger.debug("Velas %s %s cacheadas (%d)", instrument, interval, len(candles))
            return list(candles)
        finally:
            current = self._inflight.get(key)
            if current is not None and current[0] is asyncio.current_task():
                del self._inflight[key]
