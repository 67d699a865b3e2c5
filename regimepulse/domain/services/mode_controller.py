"""
RegimePulse – Domain Service: Mode Controller
==============================================
Dueño único del ModeState (NORMAL ↔ EVENT).

TRANSICIONES:
  NORMAL → EVENT   enter_event(reason, hold): expiry = now + hold·60s
  EVENT  → EVENT   enter_event de nuevo: REFRESCA expiry y reason
  EVENT  → NORMAL  check_expiry() cuando now >= expiry (liveness poll)

El estado NO se expone mutable: los lectores reciben ModeSnapshot.
El reloj se inyecta (cualquier objeto con now_ms()), así los tests
avanzan el tiempo sin dormir.
"""

from __future__ import annotations

from typing import Dict, Optional, Protocol

from regimepulse.domain.exceptions.domain_errors import ValidationError
from regimepulse.domain.value_objects.mode_state import (
    NO_VALUE,
    MarketMode,
    ModeSnapshot,
    ModeState,
    ModeTransition,
)
from regimepulse.domain.value_objects.strategy_profile import ProfileName, StrategyProfile
from regimepulse.shared.logging.logger import get_logger

logger = get_logger("mode_controller")

MS_PER_MINUTE = 60_000


class Clock(Protocol):
    """Fuente de tiempo en ms (SystemClock en producción, FakeClock en tests)."""

    def now_ms(self) -> int: ...


class ModeController:
    """
    Máquina de estados del régimen de mercado.

    Todas las mutaciones son síncronas; el llamador (RegimeEngine) las
    serializa bajo su lock.
    """

    def __init__(
        self,
        profiles: Dict[ProfileName, StrategyProfile],
        clock: Clock,
        hold_minutes: float = 12,
    ) -> None:
        self._check_profiles(profiles)
        self._profiles = dict(profiles)
        self._clock = clock
        self._hold_minutes = hold_minutes
        self._state = ModeState()

    # ─── Lectura ─────────────────────────────────────────────────

    @property
    def current(self) -> MarketMode:
        return self._state.current

    @property
    def is_event(self) -> bool:
        return self._state.current is MarketMode.EVENT

    @property
    def hold_minutes(self) -> float:
        return self._hold_minutes

    @property
    def last_decision(self) -> str:
        return self._state.last_decision

    @property
    def active_profile(self) -> StrategyProfile:
        """Perfil que rige el generador en el modo actual."""
        return self._profiles[ProfileName(self._state.current.value)]

    def profile(self, name: ProfileName) -> StrategyProfile:
        return self._profiles[name]

    def snapshot(self) -> ModeSnapshot:
        state = self._state
        return ModeSnapshot(
            current=state.current,
            event_expiry_ms=state.event_expiry_ms,
            last_trigger_reason=state.last_trigger_reason,
            last_decision=state.last_decision,
            observed_at_ms=self._clock.now_ms(),
        )

    # ─── Transiciones ────────────────────────────────────────────

    def enter_event(self, reason: str, hold_minutes: Optional[float] = None) -> ModeTransition:
        """
        Entra (o refresca) el modo EVENT.

        Un segundo disparo dentro de la ventana extiende el expiry desde
        `now` y reemplaza el motivo.
        """
        hold = self._hold_minutes if hold_minutes is None else hold_minutes
        if hold < 1:
            raise ValidationError("hold_minutes debe ser >= 1", field="hold_minutes", value=hold)

        now = self._clock.now_ms()
        previous = self._state.current
        self._state.current = MarketMode.EVENT
        self._state.event_expiry_ms = now + int(hold * MS_PER_MINUTE)
        self._state.last_trigger_reason = reason

        transition = ModeTransition(
            previous=previous,
            current=MarketMode.EVENT,
            reason=reason,
            event_expiry_ms=self._state.event_expiry_ms,
            at_ms=now,
        )
        logger.info(
            "Modo %s → EVENT (%s) hold=%.1fmin%s",
            previous.value, reason, hold, " [refresh]" if transition.is_refresh else "",
        )
        return transition

    def check_expiry(self) -> Optional[ModeTransition]:
        """Liveness poll: vuelve a NORMAL si el EVENT expiró."""
        state = self._state
        if state.current is not MarketMode.EVENT or state.event_expiry_ms <= 0:
            return None

        now = self._clock.now_ms()
        if now < state.event_expiry_ms:
            return None

        state.current = MarketMode.NORMAL
        state.event_expiry_ms = 0
        logger.info("EVENT expirado → NORMAL (último motivo: %s)", state.last_trigger_reason)
        return ModeTransition(
            previous=MarketMode.EVENT,
            current=MarketMode.NORMAL,
            reason=state.last_trigger_reason,
            event_expiry_ms=0,
            at_ms=now,
        )

    # ─── Decisiones / configuración ──────────────────────────────

    def record_decision(self, decision: str) -> None:
        self._state.last_decision = decision

    def clear_decision(self) -> None:
        self._state.last_decision = NO_VALUE

    def update_profiles(self, profiles: Dict[ProfileName, StrategyProfile]) -> None:
        self._check_profiles(profiles)
        self._profiles = dict(profiles)

    def set_hold_minutes(self, hold_minutes: float) -> None:
        """Aplica a los próximos disparos; no altera un EVENT en curso."""
        if hold_minutes < 1:
            raise ValidationError(
                "hold_minutes debe ser >= 1", field="hold_minutes", value=hold_minutes,
            )
        self._hold_minutes = hold_minutes

    @staticmethod
    def _check_profiles(profiles: Dict[ProfileName, StrategyProfile]) -> None:
        missing = [name.value for name in ProfileName if name not in profiles]
        if missing:
            raise ValidationError(f"Faltan perfiles: {', '.join(missing)}", field="profiles")
