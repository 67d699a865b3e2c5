"""
RegimePulse – Settings (Pydantic BaseSettings)
==============================================
Configuración centralizada cargada desde variables de entorno / .env.
Se usa pydantic-settings para validación estricta al arranque.

UMBRALES DE ESTRATEGIA (StrategyConfig):
  Los valores que el operador ajusta en caliente (SL, trailing, umbral de
  impulso, multiplicador de volumen, minutos de EVENT) se RECORTAN al rango
  permitido en vez de rechazarse. Un valor no numérico cae al default.
  El mismo modelo se reutiliza en POST /api/config, así la regla de
  recorte vive en un solo lugar.

  Variables de entorno anidadas: STRATEGY__EVENT_THRESHOLD_PCT=1.2
"""

from __future__ import annotations

import math
from typing import Any, Dict, List

from pydantic import BaseModel, Field, ValidationInfo, field_validator
from pydantic_settings import BaseSettings

# campo → (mínimo, máximo, fallback)
STRATEGY_BOUNDS: Dict[str, tuple[float, float, float]] = {
    "stop_loss_normal_pct": (0.1, 30.0, 0.9),
    "trail_drawdown_normal_pct": (0.1, 50.0, 1.6),
    "stop_loss_event_pct": (0.2, 50.0, 2.8),
    "trail_drawdown_event_pct": (0.2, 80.0, 6.5),
    "event_threshold_pct": (0.2, 20.0, 0.9),
    "event_volume_multiplier": (1.0, 20.0, 2.2),
    "event_hold_minutes": (1.0, 120.0, 12.0),
}


def clamp_number(value: Any, minimum: float, maximum: float, fallback: float) -> float:
    """Convierte a float y recorta a [minimum, maximum]; no numérico → fallback."""
    if isinstance(value, bool):
        return fallback
    try:
        number = float(value)
    except (TypeError, ValueError):
        return fallback
    if not math.isfinite(number):
        return fallback
    if number < minimum:
        return minimum
    if number > maximum:
        return maximum
    return number


class StrategyConfig(BaseModel):
    """Umbrales configurables por el operador (porcentajes, no fracciones)."""

    # ─── Perfil NORMAL ──────────────────────────────────────────────────
    stop_loss_normal_pct: float = Field(
        default=0.9, description="Stop loss NORMAL en % bajo la entrada",
    )
    trail_drawdown_normal_pct: float = Field(
        default=1.6, description="Retroceso desde el pico (trailing) NORMAL en %",
    )

    # ─── Perfil EVENT ───────────────────────────────────────────────────
    stop_loss_event_pct: float = Field(
        default=2.8, description="Stop loss EVENT en % bajo la entrada",
    )
    trail_drawdown_event_pct: float = Field(
        default=6.5, description="Retroceso desde el pico (trailing) EVENT en %",
    )

    # ─── Detector de impulsos ───────────────────────────────────────────
    event_threshold_pct: float = Field(
        default=0.9, description="Movimiento mínimo en 20s (%) para disparar EVENT",
    )
    event_volume_multiplier: float = Field(
        default=2.2, description="Volumen 20s mínimo respecto a la línea base",
    )
    event_hold_minutes: float = Field(
        default=12.0, description="Minutos que se mantiene EVENT antes de volver a NORMAL",
    )
    detector_enabled: bool = Field(
        default=True, description="Habilitar el cambio automático a EVENT",
    )

    @field_validator(*STRATEGY_BOUNDS.keys(), mode="before")
    @classmethod
    def _clamp_to_bounds(cls, value: Any, info: ValidationInfo) -> float:
        minimum, maximum, fallback = STRATEGY_BOUNDS[info.field_name]
        return clamp_number(value, minimum, maximum, fallback)


def _default_instruments() -> Dict[str, str]:
    pairs = [
        "BTC", "ETH", "XRP", "BCH", "BNB", "SOL", "ADA", "AVAX", "DOT", "LINK",
        "DOGE", "MATIC", "LTC", "TRX", "ATOM", "NEAR", "OP", "ARB", "APT",
        "SUI", "INJ", "FIL", "ETC",
    ]
    return {f"{base}USDT": f"{base} / USDT" for base in pairs}


class Settings(BaseSettings):
    # ─── Binance (datos públicos, sin API key) ─────────────────────────
    binance_rest_url: str = Field(
        default="https://api.binance.com/api/v3/klines",
        description="Endpoint REST de velas (klines)",
    )
    binance_ws_base: str = Field(
        default="wss://stream.binance.com:9443/ws",
        description="Base del WebSocket de trades",
    )
    http_timeout_seconds: float = Field(
        default=10.0, description="Timeout de las peticiones REST",
    )

    # ─── Instrumentos ──────────────────────────────────────────────────
    instruments: Dict[str, str] = Field(
        default_factory=_default_instruments,
        description="Catálogo id → nombre legible",
    )
    default_instrument: str = Field(default="BTCUSDT")

    # ─── Intervalos ────────────────────────────────────────────────────
    available_intervals: List[str] = Field(
        default=["1m", "5m", "15m", "1h", "4h", "1d"],
        description="Intervalos de vela disponibles",
    )
    default_interval: str = Field(default="1h")

    # ─── Velas históricas ──────────────────────────────────────────────
    chart_candle_limit: int = Field(
        default=900, description="Velas para el log de señales",
    )
    decision_candle_limit: int = Field(
        default=260, description="Velas para la decisión instantánea",
    )
    higher_tf_candle_limit: int = Field(
        default=600, description="Velas del TF superior (filtro MTF)",
    )
    candle_cache_ttl_seconds: float = Field(
        default=12.0, description="Validez del caché de velas compartido",
    )

    # ─── Detector de impulsos ──────────────────────────────────────────
    detector_cooldown_seconds: float = Field(
        default=12.0, description="Ventana anti-rebote entre disparos aceptados",
    )
    detector_window_seconds: float = Field(default=20.0)
    detector_retention_seconds: float = Field(default=60.0)
    detector_min_samples: int = Field(
        default=8, description="Muestras mínimas en la ventana de 20s",
    )

    # ─── Cadencias ─────────────────────────────────────────────────────
    mode_poll_seconds: float = Field(
        default=1.0, description="Intervalo del chequeo de expiración de EVENT",
    )
    signal_refresh_seconds: float = Field(
        default=60.0, description="Intervalo de regeneración del log de señales",
    )

    # ─── Reconexión ────────────────────────────────────────────────────
    ws_reconnect_base_delay: float = Field(
        default=1.5, description="Delay base (seg) para backoff exponencial"
    )
    ws_reconnect_max_delay: float = Field(
        default=60.0, description="Delay máximo (seg) entre reconexiones"
    )

    # ─── Event Bus ─────────────────────────────────────────────────────
    event_bus_max_queue_size: int = Field(
        default=10_000,
        description="Tamaño máximo de cola por consumidor (drop-oldest)",
    )

    # ─── Estrategia (recortada al rango) ───────────────────────────────
    strategy: StrategyConfig = Field(default_factory=StrategyConfig)

    # ─── Server ────────────────────────────────────────────────────────
    host: str = Field(default="0.0.0.0")
    port: int = Field(default=8890)
    debug: bool = Field(default=False)
    log_level: str = Field(default="INFO", description="Nivel de logging (debug=True fuerza DEBUG)")

    model_config = {
        "env_file": ".env",
        "env_file_encoding": "utf-8",
        "env_nested_delimiter": "__",
        "case_sensitive": False,
    }


# Singleton global – se importa donde se necesite
settings = Settings()
