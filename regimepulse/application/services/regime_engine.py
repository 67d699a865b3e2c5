"""
RegimePulse – Application Service: Regime Engine
=================================================
Orquestador del instrumento observado: detector, modo, decisiones y
log de señales.

═══════════════════════════════════════════════════════════════
                       CONCURRENCIA
═══════════════════════════════════════════════════════════════

Un único asyncio.Lock serializa: ticks, liveness poll, disparo manual,
cambio de instrumento/intervalo y cambio de configuración. Dentro del
lock solo hay mutaciones SÍNCRONAS (detector, ModeController), de modo
que un tick o disparo se aplica entero o no se aplica.

Los fetch de velas (decisión instantánea, refresh de señales) ocurren
FUERA del lock. Cada resultado asíncrono lleva la etiqueta del
instrumento/intervalo con el que se pidió; si al volver ya no coincide
con el observado, se descarta sin tocar el estado.

ORDEN ANTE UN DISPARO:
  1. trigger + transición a EVENT quedan registrados (bajo lock)
  2. se publican "impulse" y "mode"
  3. la decisión instantánea corre como task en background
  4. al resolverse: record_decision + "decision" + refresh de señales
     con from_event=True

TASKS DE FONDO:
  - liveness poll cada mode_poll_seconds (auto-revert EVENT → NORMAL)
  - refresh de señales cada signal_refresh_seconds
"""

from __future__ import annotations

import asyncio
from typing import TYPE_CHECKING, Any, Awaitable, Callable, Dict, List, Optional, Set

from regimepulse.application.dto.snapshot_dto import DetectorStatus, EngineSnapshot, SignalReport
from regimepulse.application.ports.event_publisher import IEventPublisher
from regimepulse.application.services.profile_factory import build_profiles
from regimepulse.domain.events.domain_events import (
    DecisionMade,
    DomainEvent,
    ImpulseDetected,
    ModeChanged,
    SignalsGenerated,
)
from regimepulse.domain.exceptions.domain_errors import DomainError, ValidationError
from regimepulse.domain.services.impulse_detector import ImpulseDetector
from regimepulse.domain.services.mode_controller import ModeController
from regimepulse.domain.value_objects.decision import InstantDecision
from regimepulse.domain.value_objects.impulse import ImpulseDirection, ImpulseTrigger
from regimepulse.domain.value_objects.mode_state import ModeSnapshot, ModeTransition
from regimepulse.domain.value_objects.strategy_profile import ProfileName
from regimepulse.domain.value_objects.tick import TickSample
from regimepulse.shared.config.settings import StrategyConfig
from regimepulse.shared.logging.logger import get_logger

if TYPE_CHECKING:
    from regimepulse.application.use_cases.generate_signals_usecase import GenerateSignalsUseCase
    from regimepulse.application.use_cases.instant_decision_usecase import InstantDecisionUseCase

logger = get_logger("regime_engine")

MANUAL_TRIGGER_REASON = "Manual Trigger"

InstrumentListener = Callable[[str], Awaitable[None]]


class RegimeEngine:
    def __init__(
        self,
        detector: ImpulseDetector,
        mode_controller: ModeController,
        signals_usecase: GenerateSignalsUseCase,
        decision_usecase: InstantDecisionUseCase,
        publisher: IEventPublisher,
        strategy_config: StrategyConfig,
        instruments: Dict[str, str],
        intervals: List[str],
        interval: str,
        poll_seconds: float = 1.0,
        refresh_seconds: float = 60.0,
    ) -> None:
        self._detector = detector
        self._mode = mode_controller
        self._signals = signals_usecase
        self._decisions = decision_usecase
        self._publisher = publisher
        self._config = strategy_config
        self._instruments = dict(instruments)
        self._intervals = list(intervals)

        if detector.instrument not in self._instruments:
            raise ValidationError(
                "Instrumento desconocido", field="instrument", value=detector.instrument,
            )
        if interval not in self._intervals:
            raise ValidationError("Intervalo no soportado", field="interval", value=interval)

        self._instrument = detector.instrument
        self._interval = interval
        self._poll_seconds = poll_seconds
        self._refresh_seconds = refresh_seconds

        self._lock = asyncio.Lock()
        self._last_report: Optional[SignalReport] = None
        self._last_decision: Optional[InstantDecision] = None
        self._ticks_processed = 0
        # Secuencias para descartar resultados async superados por otros más nuevos
        self._trigger_seq = 0
        self._refresh_seq = 0
        self._report_seq = 0
        self._listeners: List[InstrumentListener] = []

        self._running = False
        self._loops: List[asyncio.Task] = []
        self._pending: Set[asyncio.Task] = set()

    # ─── Lectura ─────────────────────────────────────────────────

    @property
    def instrument(self) -> str:
        return self._instrument

    @property
    def interval(self) -> str:
        return self._interval

    @property
    def instruments(self) -> Dict[str, str]:
        return dict(self._instruments)

    @property
    def intervals(self) -> List[str]:
        return list(self._intervals)

    @property
    def strategy_config(self) -> StrategyConfig:
        return self._config

    @property
    def last_report(self) -> Optional[SignalReport]:
        return self._last_report

    @property
    def last_decision(self) -> Optional[InstantDecision]:
        return self._last_decision

    @property
    def is_running(self) -> bool:
        return self._running

    def mode_snapshot(self) -> ModeSnapshot:
        return self._mode.snapshot()

    def snapshot(self) -> EngineSnapshot:
        state = self._detector.state
        return EngineSnapshot(
            instrument=self._instrument,
            interval=self._interval,
            mode=self._mode.snapshot().to_dict(),
            detector=DetectorStatus(
                instrument=state.instrument,
                enabled=self._detector.enabled,
                threshold_pct=self._detector.threshold_pct,
                volume_multiplier=self._detector.volume_multiplier,
                samples=state.sample_count,
                baseline_volume=state.baseline_volume,
                last_price=self._detector.last_price,
                last_trigger_ts=state.last_trigger_ts,
            ),
            active_profile=self._mode.active_profile.to_dict(),
            last_report=self._last_report,
            ticks_processed=self._ticks_processed,
        )

    def add_instrument_listener(self, listener: InstrumentListener) -> None:
        """Callback async invocado tras cada cambio de instrumento (e.g. TradeFeed)."""
        self._listeners.append(listener)

    # ─── Camino en vivo ──────────────────────────────────────────

    async def handle_tick(self, tick: TickSample) -> Optional[ImpulseTrigger]:
        async with self._lock:
            self._ticks_processed += 1
            reverted = self._mode.check_expiry()
            trigger = self._detector.on_tick(tick)
            transition = self._mode.enter_event(trigger.reason) if trigger else None
            if transition is not None:
                self._trigger_seq += 1
            trigger_seq = self._trigger_seq
            instrument, interval = self._instrument, self._interval

        if reverted is not None:
            await self._on_revert(reverted)

        if trigger is not None and transition is not None:
            await self._publish(ImpulseDetected(
                instrument=trigger.instrument,
                direction=trigger.direction.value,
                percent_change=trigger.percent_change,
                volume_ratio=trigger.volume_ratio,
                price=trigger.price,
                reason=trigger.reason,
            ))
            await self._publish_transition(transition, instrument)
            self._spawn(
                self.run_decision(
                    trigger.direction, trigger.price, trigger.reason, instrument, interval,
                    trigger_seq=trigger_seq,
                ),
                name="instant-decision",
            )
        return trigger

    async def manual_trigger(self) -> ModeTransition:
        """Fuerza EVENT con dirección UP al último precio conocido."""
        async with self._lock:
            live_price = self._detector.last_price or 0.0
            transition = self._mode.enter_event(MANUAL_TRIGGER_REASON)
            self._trigger_seq += 1
            trigger_seq = self._trigger_seq
            instrument, interval = self._instrument, self._interval

        logger.info("Disparo manual en %s @ %.6f", instrument, live_price)
        await self._publish(ImpulseDetected(
            instrument=instrument,
            direction=ImpulseDirection.UP.value,
            price=live_price,
            reason=MANUAL_TRIGGER_REASON,
            manual=True,
        ))
        await self._publish_transition(transition, instrument)
        self._spawn(
            self.run_decision(
                ImpulseDirection.UP, live_price, MANUAL_TRIGGER_REASON, instrument, interval,
                trigger_seq=trigger_seq,
            ),
            name="instant-decision",
        )
        return transition

    async def run_decision(
        self,
        direction: ImpulseDirection,
        live_price: float,
        reason: str,
        instrument: str,
        interval: str,
        trigger_seq: Optional[int] = None,
    ) -> Optional[InstantDecision]:
        """
        Sintetiza la decisión instantánea. Un fallo se registra y NO toca
        el estado de modo ni del detector.

        El resultado se descarta si llegó otro disparo después de
        `trigger_seq` o si el modo ya volvió a NORMAL.
        """
        ema_period = self._mode.profile(ProfileName.EVENT).ema_trend_period
        try:
            decision = await self._decisions.execute(
                instrument, interval, direction, live_price, reason, ema_period,
            )
        except DomainError as e:
            logger.warning("Decisión instantánea fallida para %s: %s", instrument, e.message)
            return None

        async with self._lock:
            if instrument != self._instrument:
                logger.info(
                    "Decisión para %s descartada: instrumento actual %s",
                    instrument, self._instrument,
                )
                return None
            if trigger_seq is not None and trigger_seq != self._trigger_seq:
                logger.info(
                    "Decisión del disparo #%d descartada: ya hubo disparo #%d",
                    trigger_seq, self._trigger_seq,
                )
                return None
            if not self._mode.is_event:
                logger.info("Decisión para %s descartada: el modo ya volvió a NORMAL", instrument)
                return None
            self._mode.record_decision(decision.recommendation)
            self._last_decision = decision

        await self._publish(DecisionMade(
            instrument=instrument,
            recommendation=decision.recommendation,
            detail=decision.detail,
            direction=decision.direction.value,
            live_price=decision.live_price,
            trend_ok=decision.trend_ok,
            trend_ema=decision.trend_ema,
        ))
        await self.refresh_signals(from_event=True)
        return decision

    # ─── Liveness / señales ──────────────────────────────────────

    async def poll_liveness(self) -> Optional[ModeTransition]:
        async with self._lock:
            reverted = self._mode.check_expiry()
        if reverted is not None:
            await self._on_revert(reverted)
        return reverted

    async def refresh_signals(self, from_event: bool = False) -> Optional[SignalReport]:
        async with self._lock:
            instrument, interval = self._instrument, self._interval
            profile = self._mode.active_profile
            event_decision = self._mode.last_decision if (from_event and self._mode.is_event) else None
            self._refresh_seq += 1
            seq = self._refresh_seq

        report = await self._signals.execute(instrument, interval, profile, event_decision)

        async with self._lock:
            if instrument != self._instrument or interval != self._interval:
                logger.info("Reporte de %s %s descartado (ya no es el observado)", instrument, interval)
                return None
            if seq < self._report_seq or profile.name is not self._mode.active_profile.name:
                logger.info(
                    "Reporte %s de %s descartado (superado; perfil activo %s)",
                    profile.name.value, instrument, self._mode.active_profile.name.value,
                )
                return None
            self._report_seq = seq
            self._last_report = report

        await self._publish(SignalsGenerated(
            instrument=report.instrument,
            interval=report.interval,
            profile=report.profile,
            events=[e.to_dict() for e in report.events],
            last_decision=report.last_decision,
            detail=report.detail,
            meta=report.meta,
            stale=report.stale,
        ))
        return report

    # ─── Controles del operador ──────────────────────────────────

    async def switch_instrument(self, instrument: str) -> bool:
        """Cambia el instrumento observado. Devuelve False si ya lo era."""
        if instrument not in self._instruments:
            raise ValidationError("Instrumento desconocido", field="instrument", value=instrument)

        async with self._lock:
            if instrument == self._instrument:
                return False
            previous = self._instrument
            self._instrument = instrument
            self._detector.reset(instrument)
            self._last_report = None

        logger.info("Instrumento cambiado: %s → %s", previous, instrument)
        for listener in self._listeners:
            await listener(instrument)
        self._spawn(self.refresh_signals(), name="signals-refresh")
        return True

    async def set_interval(self, interval: str) -> bool:
        if interval not in self._intervals:
            raise ValidationError("Intervalo no soportado", field="interval", value=interval)

        async with self._lock:
            if interval == self._interval:
                return False
            previous = self._interval
            self._interval = interval
            self._last_report = None

        logger.info("Intervalo cambiado: %s → %s", previous, interval)
        self._spawn(self.refresh_signals(), name="signals-refresh")
        return True

    async def update_config(self, changes: Dict[str, Any]) -> StrategyConfig:
        """
        Aplica cambios parciales de configuración. Cada valor se recorta a
        su rango; los no numéricos caen a su default.
        """
        merged = {**self._config.model_dump(), **changes}
        config = StrategyConfig.model_validate(merged)

        async with self._lock:
            self._config = config
            self._mode.update_profiles(build_profiles(config))
            self._mode.set_hold_minutes(config.event_hold_minutes)
            self._detector.configure(
                threshold_pct=config.event_threshold_pct,
                volume_multiplier=config.event_volume_multiplier,
                enabled=config.detector_enabled,
            )

        logger.info("Configuración actualizada: %s", config.model_dump())
        self._spawn(self.refresh_signals(), name="signals-refresh")
        return config

    async def clear_decision(self) -> ModeSnapshot:
        async with self._lock:
            self._mode.clear_decision()
            self._last_decision = None
            return self._mode.snapshot()

    # ─── Lifecycle ───────────────────────────────────────────────

    async def start(self) -> None:
        """Lanza liveness poll y refresh periódico. Idempotente."""
        if self._running:
            logger.warning("RegimeEngine ya está corriendo, ignorando start()")
            return
        self._running = True
        self._loops = [
            asyncio.create_task(self._poll_loop(), name="mode-poll"),
            asyncio.create_task(self._refresh_loop(), name="signals-refresh-loop"),
        ]
        logger.info(
            "RegimeEngine iniciado: %s %s (poll=%.1fs, refresh=%.0fs)",
            self._instrument, self._interval, self._poll_seconds, self._refresh_seconds,
        )

    async def stop(self) -> None:
        self._running = False
        tasks = [*self._loops, *self._pending]
        for task in tasks:
            task.cancel()
        await asyncio.gather(*tasks, return_exceptions=True)
        self._loops = []
        self._pending.clear()
        logger.info("RegimeEngine detenido. Ticks procesados: %d", self._ticks_processed)

    async def drain(self) -> None:
        """Espera a que terminen las tasks en background (decisiones, refresh)."""
        while self._pending:
            await asyncio.gather(*list(self._pending), return_exceptions=True)

    # ─── Internos ────────────────────────────────────────────────

    async def _poll_loop(self) -> None:
        while self._running:
            try:
                await self.poll_liveness()
            except asyncio.CancelledError:
                raise
            except Exception as e:
                logger.error("Error en liveness poll: %s", e, exc_info=True)
            await asyncio.sleep(self._poll_seconds)

    async def _refresh_loop(self) -> None:
        while self._running:
            try:
                await self.refresh_signals()
            except asyncio.CancelledError:
                raise
            except Exception as e:
                logger.error("Error en refresh de señales: %s", e, exc_info=True)
            await asyncio.sleep(self._refresh_seconds)

    async def _on_revert(self, transition: ModeTransition) -> None:
        await self._publish_transition(transition, self._instrument)
        self._spawn(self.refresh_signals(), name="signals-refresh")

    async def _publish_transition(self, transition: ModeTransition, instrument: str) -> None:
        await self._publish(ModeChanged(
            instrument=instrument,
            previous=transition.previous.value,
            current=transition.current.value,
            reason=transition.reason,
            event_expiry_ms=transition.event_expiry_ms,
            refresh=transition.is_refresh,
        ))

    async def _publish(self, event: DomainEvent) -> None:
        await self._publisher.publish(event.TOPIC, event.to_dict())

    def _spawn(self, coro: Awaitable, name: str) -> asyncio.Task:
        task = asyncio.create_task(self._guarded(coro, name), name=name)
        self._pending.add(task)
        task.add_done_callback(self._pending.discard)
        return task

    @staticmethod
    async def _guarded(coro: Awaitable, name: str) -> Any:
        try:
            return await coro
        except asyncio.CancelledError:
            raise
        except Exception as e:
            logger.error("Task '%s' falló: %s", name, e, exc_info=True)
            return None
