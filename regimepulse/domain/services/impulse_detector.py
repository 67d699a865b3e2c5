"""
RegimePulse – Domain Service: Realtime Impulse Detector
========================================================
Detecta impulsos de precio + volumen sobre el stream de trades.

═══════════════════════════════════════════════════════════════
                    ALGORITMO POR TICK
═══════════════════════════════════════════════════════════════

1. Append (t, price) y (t, quantity) a los buffers.
2. Descartar muestras con t < now − 60s (retención).
3. v20 = Σ quantity con now − t <= 20s
   baseline = v20 si baseline == 0, si no 0.92·baseline + 0.08·v20
4. Chequeo de disparo sobre la ventana de 20s:
   - al menos 8 muestras de precio, p0 > 0
   - pct   = (p_last − p0) / p0 × 100
   - ratio = v20 / max(baseline, 1e-9)
   - dispara si |pct| >= threshold_pct Y ratio >= volume_multiplier
5. Cooldown: si hubo disparo aceptado hace menos de cooldown_ms, se
   descarta. Si no, se registra y se devuelve el ImpulseTrigger.

TIEMPO:
`now` es SIEMPRE el timestamp del tick (tiempo del stream), nunca el
reloj de pared. Retención, ventana y cooldown usan la misma base, de
modo que un replay da exactamente el mismo resultado.
"""

from __future__ import annotations

from collections import deque
from dataclasses import dataclass, field
from typing import Deque, Optional, Tuple

from regimepulse.domain.value_objects.impulse import ImpulseDirection, ImpulseTrigger
from regimepulse.domain.value_objects.tick import TickSample
from regimepulse.shared.logging.logger import get_logger

logger = get_logger("impulse_detector")

BASELINE_DECAY = 0.92
BASELINE_GAIN = 0.08
BASELINE_EPSILON = 1e-9


@dataclass
class RealtimeState:
    """Buffers y línea base del instrumento observado."""

    instrument: str
    prices: Deque[Tuple[int, float]] = field(default_factory=deque)
    volumes: Deque[Tuple[int, float]] = field(default_factory=deque)
    baseline_volume: float = 0.0
    last_trigger_ts: Optional[int] = None  # None = nunca disparó

    @property
    def sample_count(self) -> int:
        return len(self.prices)


class ImpulseDetector:
    """
    Detector de impulsos en tiempo real.

    Un único instrumento a la vez. Cambiar de instrumento descarta todo el
    estado (reset). Una desconexión del stream NO resetea: los buffers
    siguen válidos hasta que la retención los expulse.
    """

    def __init__(
        self,
        instrument: str,
        threshold_pct: float = 0.9,
        volume_multiplier: float = 2.2,
        enabled: bool = True,
        cooldown_ms: int = 12_000,
        window_ms: int = 20_000,
        retention_ms: int = 60_000,
        min_samples: int = 8,
    ) -> None:
        self._state = RealtimeState(instrument=instrument)
        self._threshold_pct = threshold_pct
        self._volume_multiplier = volume_multiplier
        self._enabled = enabled
        self._cooldown_ms = cooldown_ms
        self._window_ms = window_ms
        self._retention_ms = retention_ms
        self._min_samples = min_samples

        logger.info(
            "ImpulseDetector inicializado: %s thr=%.2f%% vol=x%.2f cooldown=%dms",
            instrument, threshold_pct, volume_multiplier, cooldown_ms,
        )

    # ─── Propiedades ─────────────────────────────────────────────

    @property
    def instrument(self) -> str:
        return self._state.instrument

    @property
    def state(self) -> RealtimeState:
        return self._state

    @property
    def enabled(self) -> bool:
        return self._enabled

    @property
    def threshold_pct(self) -> float:
        return self._threshold_pct

    @property
    def volume_multiplier(self) -> float:
        return self._volume_multiplier

    @property
    def last_price(self) -> Optional[float]:
        """Último precio en buffer (None si no hay muestras)."""
        if not self._state.prices:
            return None
        return self._state.prices[-1][1]

    # ─── Control ─────────────────────────────────────────────────

    def reset(self, instrument: Optional[str] = None) -> None:
        """Descarta buffers, baseline y cooldown. Opcionalmente cambia de instrumento."""
        self._state = RealtimeState(instrument=instrument or self._state.instrument)
        logger.info("ImpulseDetector reseteado para %s", self._state.instrument)

    def configure(
        self,
        threshold_pct: Optional[float] = None,
        volume_multiplier: Optional[float] = None,
        enabled: Optional[bool] = None,
    ) -> None:
        if threshold_pct is not None:
            self._threshold_pct = threshold_pct
        if volume_multiplier is not None:
            self._volume_multiplier = volume_multiplier
        if enabled is not None:
            self._enabled = enabled

    # ─── Hot path ────────────────────────────────────────────────

    def on_tick(self, tick: TickSample) -> Optional[ImpulseTrigger]:
        """
        Procesa un trade y devuelve un ImpulseTrigger si se acepta un disparo.

        Ticks de otro símbolo o con campos no finitos se ignoran sin
        modificar el estado.
        """
        state = self._state
        if tick.symbol != state.instrument or not tick.is_valid:
            return None

        now = int(tick.timestamp)
        state.prices.append((now, tick.price))
        state.volumes.append((now, tick.quantity))

        self._evict(now - self._retention_ms)

        v20 = self._window_volume(now)
        if state.baseline_volume == 0:
            state.baseline_volume = v20
        else:
            state.baseline_volume = BASELINE_DECAY * state.baseline_volume + BASELINE_GAIN * v20

        if not self._enabled:
            return None

        candidate = self._evaluate(now, v20)
        if candidate is None:
            return None

        if (
            state.last_trigger_ts is not None
            and now - state.last_trigger_ts < self._cooldown_ms
        ):
            return None

        state.last_trigger_ts = now
        logger.info("Impulso detectado: %s @ %.6f", candidate.reason, candidate.price)
        return candidate

    # ─── Internos ────────────────────────────────────────────────

    def _evict(self, cutoff: int) -> None:
        prices, volumes = self._state.prices, self._state.volumes
        while prices and prices[0][0] < cutoff:
            prices.popleft()
        while volumes and volumes[0][0] < cutoff:
            volumes.popleft()

    def _window_volume(self, now: int) -> float:
        return sum(q for t, q in self._state.volumes if now - t <= self._window_ms)

    def _evaluate(self, now: int, v20: float) -> Optional[ImpulseTrigger]:
        recent = [p for t, p in self._state.prices if now - t <= self._window_ms]
        if len(recent) < self._min_samples:
            return None

        p0, p1 = recent[0], recent[-1]
        if p0 <= 0:
            return None

        pct = (p1 - p0) / p0 * 100.0
        ratio = v20 / max(self._state.baseline_volume, BASELINE_EPSILON)

        if abs(pct) < self._threshold_pct or ratio < self._volume_multiplier:
            return None

        return ImpulseTrigger(
            instrument=self._state.instrument,
            direction=ImpulseDirection.UP if pct >= 0 else ImpulseDirection.DOWN,
            percent_change=pct,
            volume_ratio=ratio,
            price=p1,
            timestamp=now,
        )
