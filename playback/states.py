"""
states.py — Run States & Transition Table
==========================================
The controller's finite-state machine, expressed as data so the
controller, the tests and the web layer all read the same table.

    IDLE       →  start     →  RUNNING
    IDLE       →  step      →  STEPPING
    RUNNING    →  pause     →  PAUSED
    RUNNING    →  received  →  RUNNING | COMPLETED
    RUNNING    →  threw     →  FAILED
    PAUSED     →  resume    →  RUNNING
    PAUSED     →  step      →  STEPPING
    STEPPING   →  received  →  PAUSED  | COMPLETED
    STEPPING   →  threw     →  FAILED
    COMPLETED  →  start     →  RUNNING
    FAILED     →  start     →  RUNNING
    any        →  cancel / reset  →  IDLE

Anything not in the table is rejected without side effects.
"""

from enum import Enum
from typing import Dict, FrozenSet, Optional, Tuple


# ---------------------------------------------------------------------------
# States
# ---------------------------------------------------------------------------
class RunState(Enum):
    IDLE      = "idle"
    RUNNING   = "running"
    PAUSED    = "paused"
    STEPPING  = "stepping"
    COMPLETED = "completed"
    FAILED    = "failed"

    @property
    def holds_source(self) -> bool:
        """True while a Step Source is attached to the run."""
        return self in LIVE_STATES

    @property
    def is_terminal(self) -> bool:
        return self in (RunState.COMPLETED, RunState.FAILED)


LIVE_STATES: FrozenSet[RunState] = frozenset(
    {RunState.RUNNING, RunState.PAUSED, RunState.STEPPING}
)


# ---------------------------------------------------------------------------
# Commands & internal events
# ---------------------------------------------------------------------------
class Command(Enum):
    START  = "start"
    PAUSE  = "pause"
    RESUME = "resume"
    STEP   = "step"
    CANCEL = "cancel"
    RESET  = "reset"
    SPEED  = "set_speed"


class Signal(Enum):
    """Events the controller raises for itself (timer / pull follow-through)."""
    RECEIVED = "step_received"
    FINAL    = "final_received"
    THREW    = "source_threw"


# ---------------------------------------------------------------------------
# Lifecycle events delivered to renderers
# ---------------------------------------------------------------------------
class LifecycleKind(Enum):
    STARTED   = "started"
    PAUSED    = "paused"
    RESUMED   = "resumed"
    COMPLETED = "completed"
    FAILED    = "failed"
    RESET     = "reset"
    CANCELLED = "cancelled"
    REJECTED  = "rejected"    # optional warning, off by default


# ---------------------------------------------------------------------------
# THE TABLE
# ---------------------------------------------------------------------------
Edge = Tuple[RunState, Enum]

TRANSITIONS: Dict[Edge, RunState] = {
    (RunState.IDLE,      Command.START):   RunState.RUNNING,
    (RunState.COMPLETED, Command.START):   RunState.RUNNING,
    (RunState.FAILED,    Command.START):   RunState.RUNNING,

    (RunState.IDLE,      Command.STEP):    RunState.STEPPING,
    (RunState.PAUSED,    Command.STEP):    RunState.STEPPING,

    (RunState.RUNNING,   Command.PAUSE):   RunState.PAUSED,
    (RunState.PAUSED,    Command.RESUME):  RunState.RUNNING,

    (RunState.RUNNING,   Signal.RECEIVED): RunState.RUNNING,
    (RunState.RUNNING,   Signal.FINAL):    RunState.COMPLETED,
    (RunState.RUNNING,   Signal.THREW):    RunState.FAILED,

    (RunState.STEPPING,  Signal.RECEIVED): RunState.PAUSED,
    (RunState.STEPPING,  Signal.FINAL):    RunState.COMPLETED,
    (RunState.STEPPING,  Signal.THREW):    RunState.FAILED,
}

# cancel / reset are legal from every state
for _state in RunState:
    TRANSITIONS[(_state, Command.CANCEL)] = RunState.IDLE
    TRANSITIONS[(_state, Command.RESET)]  = RunState.IDLE
del _state


def next_state(state: RunState, event: Enum) -> Optional[RunState]:
    """Return the target state for (state, event), or None if illegal."""
    return TRANSITIONS.get((state, event))


def is_legal(state: RunState, event: Enum) -> bool:
    return (state, event) in TRANSITIONS


__all__ = [
    "RunState",
    "LIVE_STATES",
    "Command",
    "Signal",
    "LifecycleKind",
    "TRANSITIONS",
    "next_state",
    "is_legal",
]
