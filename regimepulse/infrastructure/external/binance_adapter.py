"""
RegimePulse – Binance Market Data Adapter
==========================================
Implementación de IMarketDataProvider sobre los endpoints públicos de
Binance (sin API key).

VELAS (REST):
  GET /api/v3/klines?symbol=BTCUSDT&interval=1h&limit=900
  Cada fila: [open_time_ms, open, high, low, close, volume, close_time, ...]
  → Candle(time=open_time_ms // 1000, ...). requests es bloqueante, así
  que la llamada corre en un worker thread (asyncio.to_thread) para no
  frenar el event loop.

TRADES (WebSocket):
  wss://stream.binance.com:9443/ws/<symbol>@trade
  Campos usados: p (precio), q (cantidad), T (hora del trade, ms).

RECONEXIÓN AUTOMÁTICA CON BACKOFF EXPONENCIAL:
- Ante cualquier desconexión el stream espera base * 2^intento
  (capped a max_delay) + jitter aleatorio, y vuelve a conectar.
- El intento se resetea tras una conexión exitosa.
- La desconexión NO toca el estado del detector: sus buffers siguen
  válidos y la retención de 60s los limpia sola.
"""

from __future__ import annotations

import asyncio
import json
import math
import random
from typing import Any, AsyncIterator, List, Optional

import requests
import websockets

from regimepulse.application.ports.market_data_provider import IMarketDataProvider
from regimepulse.domain.entities.candle import Candle
from regimepulse.domain.exceptions.domain_errors import DataFetchError, StreamDisconnectError
from regimepulse.domain.value_objects.tick import TickSample
from regimepulse.shared.config.settings import Settings
from regimepulse.shared.logging.logger import get_logger

logger = get_logger("binance_adapter")


def parse_kline_row(row: Any) -> Candle:
    """Fila de /api/v3/klines → Candle. Lanza ValueError si está malformada."""
    if not isinstance(row, (list, tuple)) or len(row) < 6:
        raise ValueError(f"fila de kline inválida: {row!r}")
    candle = Candle(
        time=int(row[0]) // 1000,
        open=float(row[1]),
        high=float(row[2]),
        low=float(row[3]),
        close=float(row[4]),
        volume=float(row[5]),
    )
    if not all(math.isfinite(v) for v in (candle.open, candle.high, candle.low, candle.close)):
        raise ValueError(f"precio no finito en kline: {row!r}")
    return candle


def parse_trade_message(raw: str | bytes, instrument: str) -> Optional[TickSample]:
    """Mensaje @trade → TickSample; None si no es un trade utilizable."""
    try:
        data = json.loads(raw)
        tick = TickSample(
            symbol=str(data.get("s") or instrument).upper(),
            timestamp=int(data["T"]),
            price=float(data["p"]),
            quantity=float(data["q"]),
        )
    except (ValueError, TypeError, KeyError, AttributeError):
        return None
    return tick if tick.is_valid else None


class BinanceMarketDataProvider(IMarketDataProvider):
    def __init__(self, settings: Settings) -> None:
        self._settings = settings
        self._connected = False
        self._reconnect_attempt = 0
        self._trades_received = 0

    # ════════════════════════════════════════════════════════════════
    #  Velas (REST)
    # ════════════════════════════════════════════════════════════════

    async def fetch_candles(self, instrument: str, interval: str, limit: int) -> List[Candle]:
        return await asyncio.to_thread(self._fetch_candles_sync, instrument, interval, limit)

    def _fetch_candles_sync(self, instrument: str, interval: str, limit: int) -> List[Candle]:
        params = {"symbol": instrument, "interval": interval, "limit": limit}
        try:
            resp = requests.get(
                self._settings.binance_rest_url,
                params=params,
                timeout=self._settings.http_timeout_seconds,
            )
            resp.raise_for_status()
            payload = resp.json()
        except requests.RequestException as e:
            logger.error("Fallo REST klines %s %s: %s", instrument, interval, e)
            raise DataFetchError(
                f"Binance klines no disponible: {e}", instrument=instrument, interval=interval,
            ) from e
        except ValueError as e:
            raise DataFetchError(
                "Respuesta de klines no es JSON", instrument=instrument, interval=interval,
            ) from e

        if not isinstance(payload, list):
            raise DataFetchError(
                f"Payload de klines inesperado: {str(payload)[:200]}",
                instrument=instrument,
                interval=interval,
            )
        try:
            candles = [parse_kline_row(row) for row in payload]
        except (ValueError, TypeError) as e:
            raise DataFetchError(str(e), instrument=instrument, interval=interval) from e

        logger.debug("Klines %s %s: %d velas", instrument, interval, len(candles))
        return candles

    # ════════════════════════════════════════════════════════════════
    #  Trades (WebSocket)
    # ════════════════════════════════════════════════════════════════

    def stream_url(self, instrument: str) -> str:
        return f"{self._settings.binance_ws_base}/{instrument.lower()}@trade"

    async def stream_trades(self, instrument: str) -> AsyncIterator[TickSample]:
        """
        Loop de reconexión perpetuo. Termina solo al cancelarse la task
        que lo consume (o al cerrarse el generador).
        """
        url = self.stream_url(instrument)
        while True:
            try:
                logger.info("Conectando a Binance: %s", url)
                async with websockets.connect(
                    url,
                    close_timeout=10,
                    max_size=2**20,   # 1 MB máximo por mensaje
                ) as ws:
                    self._connected = True
                    self._reconnect_attempt = 0
                    logger.info("✓ Stream de trades conectado (%s)", instrument)

                    async for raw_msg in ws:
                        tick = parse_trade_message(raw_msg, instrument)
                        if tick is None:
                            continue
                        self._trades_received += 1
                        yield tick

                raise StreamDisconnectError("Stream cerrado por el servidor", instrument=instrument)

            except StreamDisconnectError as e:
                logger.warning("%s (%s)", e.message, instrument)
            except websockets.exceptions.ConnectionClosed as e:
                logger.warning("Conexión cerrada: %s", e)
            except OSError as e:
                logger.error("Error de red: %s", e)
            except Exception as e:
                logger.error("Error inesperado en stream de trades: %s", e, exc_info=True)
            finally:
                self._connected = False

            # ── Backoff exponencial con jitter ──
            delay = min(
                self._settings.ws_reconnect_base_delay * (2 ** self._reconnect_attempt),
                self._settings.ws_reconnect_max_delay,
            )
            total_delay = delay + random.uniform(0, delay * 0.3)
            self._reconnect_attempt += 1
            logger.info(
                "Reconectando en %.1fs (intento #%d)...", total_delay, self._reconnect_attempt,
            )
            await asyncio.sleep(total_delay)

    @property
    def stats(self) -> dict:
        return {
            "connected": self._connected,
            "trades_received": self._trades_received,
            "reconnect_attempts": self._reconnect_attempt,
        }
