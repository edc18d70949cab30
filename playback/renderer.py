"""Renderer contract consumed by the playback controller."""

from __future__ import annotations

from typing import Callable, Optional, Protocol, runtime_checkable

from playback.events import LifecycleEvent, Step
from playback.states import RunState


@runtime_checkable
class Renderer(Protocol):
    """Anything that can draw steps and react to lifecycle changes.

    Renderers receive immutable values.  They may issue commands (pause,
    cancel, reset) from inside a notification; the controller re-checks its
    state afterwards and will not schedule past a pause or a dropped run.
    """

    def on_step(self, step: Step, state: RunState) -> None:
        ...

    def on_lifecycle(self, event: LifecycleEvent) -> None:
        ...


class CallbackRenderer:
    """Adapts plain callables to the Renderer contract."""

    def __init__(
        self,
        on_step: Optional[Callable[[Step, RunState], None]] = None,
        on_lifecycle: Optional[Callable[[LifecycleEvent], None]] = None,
    ):
        self._on_step = on_step
        self._on_lifecycle = on_lifecycle

    def on_step(self, step: Step, state: RunState) -> None:
        if self._on_step is not None:
            self._on_step(step, state)

    def on_lifecycle(self, event: LifecycleEvent) -> None:
        if self._on_lifecycle is not None:
            self._on_lifecycle(event)


__all__ = ["Renderer", "CallbackRenderer"]
