"""
controller.py — Playback Controller
====================================
The PlaybackController is the ONLY object a UI talks to during a run.
It owns the finite-state machine, holds at most one live step source,
and pushes every Step and lifecycle change to its renderers.

State machine (see states.py for the full table):
    IDLE      →  start()   →  RUNNING
    RUNNING   →  pause()   →  PAUSED
    PAUSED    →  resume()  →  RUNNING
    PAUSED    →  step()    →  STEPPING  →  PAUSED
    RUNNING / STEPPING  →  final step   →  COMPLETED
    RUNNING / STEPPING  →  source threw →  FAILED
    any       →  cancel() / reset()  →  IDLE

Runs:
  Every run gets a fresh RunHandle.  The pacing timer and any in-flight
  asynchronous pull capture the handle they were created under; when
  they come back, anything carrying a handle that is no longer current
  is dropped.  That is what keeps rapid Start/Reset/Start clicking from
  mixing two runs together.

Threading:
  Not thread-safe.  All calls (commands, timer callbacks, async pull
  completions) must arrive on one thread or be serialised by the host.
  Command methods never raise; illegal commands return False.
"""

from __future__ import annotations

import logging
import math
from enum import Enum
from typing import Any, Callable, Dict, Iterable, List, Optional

from playback.clock import Clock, PollingClock, TimerHandle
from playback.config import PlaybackConfig, get_config
from playback.events import LifecycleEvent, PlaybackSnapshot, RunHandle, Step
from playback.exceptions import (
    ConfigurationError,
    InvalidTransition,
    PlaybackError,
    StepSourceError,
)
from playback.renderer import CallbackRenderer, Renderer
from playback.source import PullResult, StepSourceAdapter
from playback.states import (
    LIVE_STATES,
    Command,
    LifecycleKind,
    RunState,
    Signal,
    is_legal,
    next_state,
)

logger = logging.getLogger(__name__)

SourceFactory = Callable[[], Any]


class PlaybackController:
    """
    Attributes:
        state          : Current RunState.
        run_handle     : Handle of the current run, None while IDLE.
        speed_ms       : Delay captured by the next scheduled pull.
        last_rejection : The most recent refused command, for hosts that
                         want to show why a button did nothing.
        lookahead      : Passed to each run's StepSourceAdapter; turn it off
                         for sources that mutate the object they yield.
    """

    def __init__(
        self,
        clock: Optional[Clock] = None,
        config: Optional[PlaybackConfig] = None,
        source_factory: Optional[SourceFactory] = None,
        renderers: Iterable[Renderer] = (),
        on_step: Optional[Callable[[Step, RunState], None]] = None,
        on_lifecycle: Optional[Callable[[LifecycleEvent], None]] = None,
        lookahead: bool = True,
    ):
        self.config:         PlaybackConfig      = config or get_config()
        self.source_factory: Optional[SourceFactory] = source_factory
        self.lookahead:      bool                = lookahead
        self.last_rejection: Optional[PlaybackError] = None

        self._clock:      Clock                       = clock or PollingClock()
        self._state:      RunState                    = RunState.IDLE
        self._handle:     Optional[RunHandle]         = None
        self._adapter:    Optional[StepSourceAdapter] = None
        self._timer:      Optional[TimerHandle]       = None
        self._pull_task:  Optional[Any]               = None
        self._in_flight:  bool                        = False
        self._stash:      Optional[PullResult]        = None
        self._speed_ms:   float                       = self.config.speed.default_ms

        # per-run
        self._sequence:   int                         = 0
        self._last_step:  Optional[Step]              = None
        self._error:      Optional[PlaybackError]     = None

        # accumulated across runs, cleared by reset()
        self._runs_started:   int = 0
        self._runs_completed: int = 0
        self._runs_failed:    int = 0

        self._renderers: List[Renderer] = list(renderers)
        if on_step is not None or on_lifecycle is not None:
            self._renderers.append(CallbackRenderer(on_step, on_lifecycle))

    # ------------------------------------------------------------------
    # Renderers
    # ------------------------------------------------------------------
    def subscribe(self, renderer: Renderer) -> None:
        if renderer not in self._renderers:
            self._renderers.append(renderer)

    def unsubscribe(self, renderer: Renderer) -> None:
        if renderer in self._renderers:
            self._renderers.remove(renderer)

    # ------------------------------------------------------------------
    # Command surface
    # ------------------------------------------------------------------
    def start(self, source: Any = None) -> bool:
        """Begin automatic playback of `source` (or a fresh factory source)."""
        if not is_legal(self._state, Command.START):
            return self._reject(Command.START, level=logging.WARNING)
        source = self._resolve_source(source)
        if source is None:
            return self._reject(
                Command.START,
                "no step source given and no source_factory configured",
                level=logging.WARNING,
            )

        self._teardown()
        self._transition(Command.START)
        self._begin_run(source)
        self._schedule_pull(0)
        return True

    def pause(self) -> bool:
        if self._state != RunState.RUNNING:
            return self._reject(Command.PAUSE)
        self._transition(Command.PAUSE)
        self._cancel_timer()
        self._emit_lifecycle(LifecycleKind.PAUSED)
        return True

    def resume(self) -> bool:
        if self._state != RunState.PAUSED:
            return self._reject(Command.RESUME)
        self._transition(Command.RESUME)
        self._emit_lifecycle(LifecycleKind.RESUMED)
        self._schedule_pull(0)
        return True

    def step(self, source: Any = None) -> bool:
        """Pull exactly one step, then stay PAUSED.

        From IDLE this starts a run first, using `source` or the factory.
        """
        if self._state == RunState.IDLE:
            source = self._resolve_source(source)
            if source is None:
                return self._reject(
                    Command.STEP,
                    "no step source given and no source_factory configured",
                    level=logging.WARNING,
                )
            self._teardown()
            self._transition(Command.STEP)
            self._begin_run(source)
        elif self._state == RunState.PAUSED:
            self._transition(Command.STEP)
        else:
            level = logging.DEBUG if self._state == RunState.STEPPING else logging.WARNING
            return self._reject(Command.STEP, level=level)

        self._pull_now()
        return True

    def cancel(self) -> bool:
        """Abandon the current run.  Always ends IDLE."""
        if self._state == RunState.IDLE:
            logger.debug("cancel while idle: nothing to discard")
            return True
        run_id = self._run_id
        self._transition(Command.CANCEL)
        self._teardown()
        self._emit_lifecycle(LifecycleKind.CANCELLED, run_id=run_id)
        return True

    def reset(self) -> bool:
        """Abandon the current run and clear every counter."""
        run_id = self._run_id
        self._transition(Command.RESET)
        self._teardown()
        self._sequence       = 0
        self._last_step      = None
        self._error          = None
        self._runs_started   = 0
        self._runs_completed = 0
        self._runs_failed    = 0
        self.last_rejection  = None
        logger.info("playback reset")
        self._emit_lifecycle(LifecycleKind.RESET, run_id=run_id)
        return True

    # ------------------------------------------------------------------
    # Speed
    # ------------------------------------------------------------------
    def set_speed(self, ms: Any) -> float:
        """Set the delay for the next scheduled step.  Returns the value used.

        Never touches a delay that is already scheduled.
        """
        try:
            requested = float(ms)
        except (TypeError, ValueError):
            requested = math.nan
        if math.isnan(requested):
            self._record(ConfigurationError("speed", f"not a number: {ms!r}"))
            return self._speed_ms

        bounds = self.config.speed
        clamped = bounds.clamp(requested)
        if clamped != requested:
            self._record(ConfigurationError(
                "speed",
                f"{requested} ms outside [{bounds.min_ms}, {bounds.max_ms}]; clamped to {clamped}",
            ))
        self._speed_ms = clamped
        logger.debug("speed set to %s ms", clamped)
        return clamped

    def set_speed_preset(self, name: str) -> bool:
        presets = self.config.speed.presets
        if name not in presets:
            self._record(ConfigurationError("speed.presets", f"unknown preset {name!r}"))
            return False
        self.set_speed(presets[name])
        return True

    # ------------------------------------------------------------------
    # Host loop helper
    # ------------------------------------------------------------------
    def tick(self) -> int:
        """Fire due timers on clocks that need polling.  Returns how many fired."""
        tick_fn = getattr(self._clock, "tick", None)
        if callable(tick_fn):
            return tick_fn()
        return 0

    # ------------------------------------------------------------------
    # Read-only accessors
    # ------------------------------------------------------------------
    @property
    def state(self) -> RunState:
        return self._state

    @property
    def run_handle(self) -> Optional[RunHandle]:
        return self._handle

    @property
    def speed_ms(self) -> float:
        return self._speed_ms

    @property
    def clock(self) -> Clock:
        return self._clock

    @property
    def steps_emitted(self) -> int:
        return self._sequence

    @property
    def last_step(self) -> Optional[Step]:
        return self._last_step

    @property
    def error(self) -> Optional[PlaybackError]:
        return self._error

    def snapshot(self) -> PlaybackSnapshot:
        return PlaybackSnapshot(
            state=self._state,
            run_id=self._run_id,
            speed_ms=self._speed_ms,
            steps_emitted=self._sequence,
            last_step=self._last_step,
            error=str(self._error) if self._error is not None else None,
        )

    def stats(self) -> Dict[str, int]:
        return {
            "steps_emitted":  self._sequence,
            "runs_started":   self._runs_started,
            "runs_completed": self._runs_completed,
            "runs_failed":    self._runs_failed,
        }

    # ------------------------------------------------------------------
    # Internal: run lifecycle
    # ------------------------------------------------------------------
    @property
    def _run_id(self) -> Optional[int]:
        return self._handle.run_id if self._handle is not None else None

    def _resolve_source(self, source: Any) -> Any:
        if source is not None:
            return source
        if self.source_factory is not None:
            return self.source_factory
        return None

    def _begin_run(self, source: Any) -> None:
        self._handle    = RunHandle()
        self._adapter   = StepSourceAdapter(source, lookahead=self.lookahead)
        self._sequence  = 0
        self._last_step = None
        self._error     = None
        self._runs_started += 1
        logger.info("starting %s", self._handle)
        self._emit_lifecycle(LifecycleKind.STARTED)

    def _release(self) -> None:
        """Let go of the step source and everything scheduled against it."""
        self._cancel_timer()
        if self._pull_task is not None:
            self._pull_task.cancel()
            self._pull_task = None
        self._in_flight = False
        self._stash = None
        if self._adapter is not None:
            self._adapter.dispose()
            self._adapter = None

    def _teardown(self) -> None:
        """Release and invalidate the current RunHandle."""
        self._release()
        self._handle = None

    def _transition(self, event: Enum) -> None:
        target = next_state(self._state, event)
        if target is None:
            raise RuntimeError(f"no transition for {self._state.value} on {event.value}")
        if target != self._state:
            logger.debug(
                "%s -> %s on %s (%s)",
                self._state.name, target.name, event.value, self._handle,
            )
        self._state = target

    # ------------------------------------------------------------------
    # Internal: pacing & pulling
    # ------------------------------------------------------------------
    def _schedule_pull(self, delay_ms: float) -> None:
        self._cancel_timer()
        handle = self._handle
        self._timer = self._clock.call_later(delay_ms, lambda: self._on_timer(handle))
        logger.debug("next pull for %s in %s ms", handle, delay_ms)

    def _cancel_timer(self) -> None:
        if self._timer is not None:
            self._timer.cancel()
            self._timer = None

    def _on_timer(self, handle: Optional[RunHandle]) -> None:
        if handle != self._handle or self._state != RunState.RUNNING:
            logger.debug("dropping stale timer for %s", handle)
            return
        self._timer = None
        self._pull_now()

    def _pull_now(self) -> None:
        handle = self._handle
        if self._stash is not None:
            result, self._stash = self._stash, None
            self._on_pull_result(handle, result)
            return
        if self._in_flight or self._adapter is None:
            return

        outcome = self._adapter.pull()
        if isinstance(outcome, PullResult):
            self._on_pull_result(handle, outcome)
            return

        try:
            task = self._clock.spawn(outcome, lambda r: self._on_async_result(handle, r))
        except (NotImplementedError, RuntimeError) as exc:
            # no event loop to await on
            outcome.close()
            self._on_pull_result(handle, PullResult(error=exc))
            return
        self._in_flight = True
        self._pull_task = task

    def _on_async_result(self, handle: Optional[RunHandle], result: PullResult) -> None:
        if handle != self._handle or self._state not in LIVE_STATES:
            logger.debug("dropping stale pull result for %s", handle)
            return
        self._in_flight = False
        self._pull_task = None
        if self._state == RunState.PAUSED:
            # paused while the pull was out; hand it to the next step/resume
            self._stash = result
            return
        self._on_pull_result(handle, result)

    def _on_pull_result(self, handle: Optional[RunHandle], result: PullResult) -> None:
        if handle != self._handle:
            logger.debug("dropping stale pull result for %s", handle)
            return

        if result.error is not None:
            self._fail(result.error)
            return
        if result.exhausted:
            self._complete()
            return

        step = Step(
            value=result.value,
            sequence=self._sequence,
            is_final=result.is_final,
            run_id=handle.run_id if handle is not None else 0,
        )
        self._sequence += 1
        self._last_step = step

        if step.is_final:
            self._complete(step)
            return

        self._transition(Signal.RECEIVED)
        self._emit_step(step)
        # a renderer may have paused or cancelled us
        if handle == self._handle and self._state == RunState.RUNNING:
            self._schedule_pull(self._speed_ms)

    def _complete(self, step: Optional[Step] = None) -> None:
        self._transition(Signal.FINAL)
        self._release()
        self._runs_completed += 1
        logger.info("%s completed after %d step(s)", self._handle, self._sequence)
        if step is not None:
            self._emit_step(step)
        self._emit_lifecycle(LifecycleKind.COMPLETED, detail={"steps": self._sequence})

    def _fail(self, cause: BaseException) -> None:
        error = StepSourceError(cause, run_id=self._run_id, sequence=self._sequence)
        self._transition(Signal.THREW)
        self._release()
        self._error = error
        self._runs_failed += 1
        logger.error("%s failed: %s", self._handle, error.message, exc_info=cause)
        self._emit_lifecycle(LifecycleKind.FAILED, error=error)

    # ------------------------------------------------------------------
    # Internal: rejection & notification
    # ------------------------------------------------------------------
    def _reject(
        self,
        command: Command,
        reason: Optional[str] = None,
        level: int = logging.DEBUG,
    ) -> bool:
        error = InvalidTransition(self._state, command, message=reason)
        self.last_rejection = error
        logger.log(level, "rejected: %s", error.message)
        if self.config.events.warn_on_invalid:
            self._emit_lifecycle(LifecycleKind.REJECTED, error=error)
        return False

    def _record(self, error: PlaybackError) -> None:
        self.last_rejection = error
        logger.warning("%s", error.message)

    def _emit_step(self, step: Step) -> None:
        for renderer in list(self._renderers):
            try:
                renderer.on_step(step, self._state)
            except Exception:
                logger.exception("renderer %r failed on step %d", renderer, step.sequence)

    def _emit_lifecycle(
        self,
        kind: LifecycleKind,
        run_id: Optional[int] = None,
        error: Optional[BaseException] = None,
        detail: Optional[Dict[str, Any]] = None,
    ) -> None:
        event = LifecycleEvent(
            kind=kind,
            state=self._state,
            run_id=run_id if run_id is not None else self._run_id,
            error=error,
            detail=detail or {},
        )
        for renderer in list(self._renderers):
            try:
                renderer.on_lifecycle(event)
            except Exception:
                logger.exception("renderer %r failed on %s", renderer, kind.value)


__all__ = ["PlaybackController", "SourceFactory"]
