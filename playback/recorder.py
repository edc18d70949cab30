"""
recorder.py — Run Recorder
===========================
A renderer that simply remembers what it was shown.  Useful for tests,
for exporting a finished run, and for hosts that render by polling
(the web app reads the recorder's event log instead of being pushed to).

Usage:
    rec = RunRecorder()
    controller.subscribe(rec)
    …
    rec.steps            # every Step of the current run, in order
    rec.metrics()        # summary card
    rec.export()         # JSON-serialisable snapshot

One-shot:
    rec = run_to_completion(bubble_sort([3, 1, 2]))
"""

import time
from dataclasses import asdict, dataclass, field, is_dataclass
from typing import Any, Dict, List, Optional

from playback.clock import ManualClock
from playback.config import PlaybackConfig
from playback.controller import PlaybackController
from playback.events import LifecycleEvent, Step
from playback.states import LifecycleKind, RunState


# ---------------------------------------------------------------------------
# Metrics dataclass — the summary card
# ---------------------------------------------------------------------------
@dataclass
class RunMetrics:
    run_id:       Optional[int] = None
    total_steps:  int           = 0
    final_state:  str           = RunState.IDLE.value
    completed:    bool          = False
    failed:       bool          = False
    error:        str           = ""
    wall_time_ms: float         = 0.0      # from `started` to the terminal event
    lifecycle:    List[str]     = field(default_factory=list)


# ---------------------------------------------------------------------------
# Recorder
# ---------------------------------------------------------------------------
class RunRecorder:
    """
    Attributes:
        steps  : Steps of the current run, in delivery order.
        events : Lifecycle events of the current run.
        log    : Every notification since creation, with a monotonically
                 increasing cursor; never cleared by a new run.  `kind` is
                 "step" or "lifecycle"; lifecycle entries name the event
                 under `event`.
        state  : RunState seen with the most recent notification.
    """

    def __init__(self, max_log: int = 10_000):
        self.steps:  List[Step]           = []
        self.events: List[LifecycleEvent] = []
        self.log:    List[Dict[str, Any]] = []
        self.state:  RunState             = RunState.IDLE

        self._max_log    = max_log
        self._cursor     = 0
        self._started_at: Optional[float] = None
        self._ended_at:   Optional[float] = None

    # ------------------------------------------------------------------
    # Renderer contract
    # ------------------------------------------------------------------
    def on_step(self, step: Step, state: RunState) -> None:
        self.state = state
        self.steps.append(step)
        self._append_log("step", {
            "sequence": step.sequence,
            "is_final": step.is_final,
            "run_id":   step.run_id,
            "state":    state.value,
            "value":    _plain(step.value),
        })

    def on_lifecycle(self, event: LifecycleEvent) -> None:
        self.state = event.state
        if event.kind == LifecycleKind.STARTED:
            self.steps = []
            self.events = []
            self._started_at = time.monotonic()
            self._ended_at = None
        elif event.kind in (LifecycleKind.COMPLETED, LifecycleKind.FAILED):
            self._ended_at = time.monotonic()
        self.events.append(event)
        payload = event.to_dict()
        payload["event"] = payload.pop("kind")
        self._append_log("lifecycle", payload)

    # ------------------------------------------------------------------
    # Queries
    # ------------------------------------------------------------------
    @property
    def cursor(self) -> int:
        """Cursor of the last log entry; pass it back to since()."""
        return self._cursor

    def since(self, cursor: int) -> List[Dict[str, Any]]:
        """Log entries strictly after `cursor`."""
        return [entry for entry in self.log if entry["cursor"] > cursor]

    def kinds(self) -> List[str]:
        return [e.kind.value for e in self.events]

    def metrics(self) -> RunMetrics:
        kinds = self.kinds()
        failure = next((e for e in self.events if e.kind == LifecycleKind.FAILED), None)
        wall_ms = 0.0
        if self._started_at is not None:
            end = self._ended_at if self._ended_at is not None else time.monotonic()
            wall_ms = (end - self._started_at) * 1000
        return RunMetrics(
            run_id=self.steps[0].run_id if self.steps else (
                self.events[0].run_id if self.events else None
            ),
            total_steps=len(self.steps),
            final_state=self.state.value,
            completed=LifecycleKind.COMPLETED.value in kinds,
            failed=failure is not None,
            error=str(failure.error) if failure is not None and failure.error else "",
            wall_time_ms=round(wall_ms, 2),
            lifecycle=kinds,
        )

    # ------------------------------------------------------------------
    # Export (serialisable snapshot)
    # ------------------------------------------------------------------
    def export(self) -> Dict[str, Any]:
        return {
            "metrics": asdict(self.metrics()),
            "steps": [
                {
                    "sequence": s.sequence,
                    "is_final": s.is_final,
                    "run_id":   s.run_id,
                    "value":    _plain(s.value),
                }
                for s in self.steps
            ],
            "events": [e.to_dict() for e in self.events],
        }

    # ------------------------------------------------------------------
    # Internal
    # ------------------------------------------------------------------
    def _append_log(self, kind: str, payload: Dict[str, Any]) -> None:
        self._cursor += 1
        self.log.append({"cursor": self._cursor, "kind": kind, **payload})
        if len(self.log) > self._max_log:
            del self.log[: len(self.log) - self._max_log]


def _plain(value: Any) -> Any:
    """Best-effort conversion of a step value to JSON-friendly data."""
    to_dict = getattr(value, "to_dict", None)
    if callable(to_dict):
        return to_dict()
    if is_dataclass(value) and not isinstance(value, type):
        return asdict(value)
    if isinstance(value, (list, tuple)):
        return [_plain(v) for v in value]
    if isinstance(value, dict):
        return {str(k): _plain(v) for k, v in value.items()}
    if value is None or isinstance(value, (str, int, float, bool)):
        return value
    return repr(value)


# ---------------------------------------------------------------------------
# One-shot helper
# ---------------------------------------------------------------------------
def run_to_completion(
    source: Any,
    config: Optional[PlaybackConfig] = None,
    max_callbacks: int = 100_000,
) -> RunRecorder:
    """Play `source` on a virtual clock until it completes or fails."""
    clock = ManualClock()
    recorder = RunRecorder()
    controller = PlaybackController(clock=clock, config=config, renderers=[recorder])
    controller.start(source)
    clock.run_until_idle(max_callbacks=max_callbacks)
    return recorder


__all__ = ["RunMetrics", "RunRecorder", "run_to_completion"]
