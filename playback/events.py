"""
events.py — Values the Controller Hands Out
============================================
Everything here is a frozen snapshot.  Renderers and algorithm code
receive these and must treat them as read-only; the controller never
reads anything back from them.

    Step              – one unit of algorithm progress, numbered per run
    RunHandle         – identity of one run attempt
    LifecycleEvent    – started / paused / resumed / completed / failed / …
    PlaybackSnapshot  – the controller's state in one immutable value
"""

import itertools
from dataclasses import dataclass, field
from typing import Any, Dict, Optional

from playback.states import LifecycleKind, RunState


# ---------------------------------------------------------------------------
# RunHandle
# ---------------------------------------------------------------------------
_run_ids = itertools.count(1)


@dataclass(frozen=True)
class RunHandle:
    """
    Identity token for one playback attempt.

    Compared by `run_id` only.  Timers and in-flight pulls carry the
    handle they were created under; the controller drops any result
    whose handle is no longer the current one.
    """

    run_id: int = field(default_factory=lambda: next(_run_ids))

    def __str__(self) -> str:
        return f"run {self.run_id}"


# ---------------------------------------------------------------------------
# Step
# ---------------------------------------------------------------------------
@dataclass(frozen=True)
class Step:
    """
    Attributes:
        value    : Whatever the algorithm yielded.  Opaque to the engine.
        sequence : 0-based position within the run.
        is_final : True on the last step of a successful run.
        run_id   : The RunHandle this step was pulled under.
    """

    value:    Any
    sequence: int  = 0
    is_final: bool = False
    run_id:   int  = 0


# ---------------------------------------------------------------------------
# Lifecycle events
# ---------------------------------------------------------------------------
@dataclass(frozen=True)
class LifecycleEvent:
    kind:   LifecycleKind
    state:  RunState
    run_id: Optional[int]             = None
    error:  Optional[BaseException]   = None
    detail: Dict[str, Any]            = field(default_factory=dict)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "kind":   self.kind.value,
            "state":  self.state.value,
            "run_id": self.run_id,
            "error":  str(self.error) if self.error is not None else None,
            "detail": dict(self.detail),
        }


# ---------------------------------------------------------------------------
# Snapshot
# ---------------------------------------------------------------------------
@dataclass(frozen=True)
class PlaybackSnapshot:
    state:         RunState
    run_id:        Optional[int]
    speed_ms:      float
    steps_emitted: int
    last_step:     Optional[Step] = None
    error:         Optional[str]  = None

    @property
    def is_playing(self) -> bool:
        return self.state == RunState.RUNNING

    @property
    def is_finished(self) -> bool:
        return self.state.is_terminal


__all__ = [
    "RunHandle",
    "Step",
    "LifecycleEvent",
    "PlaybackSnapshot",
]
