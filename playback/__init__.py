"""
playback/
---------
Stepwise algorithm playback engine.

    from playback import PlaybackController, ManualClock, RunRecorder
"""

from playback.states     import RunState, LifecycleKind
from playback.events     import Step, RunHandle, LifecycleEvent, PlaybackSnapshot
from playback.exceptions import PlaybackError, InvalidTransition, StepSourceError, ConfigurationError
from playback.clock      import Clock, TimerHandle, ManualClock, PollingClock, AsyncioClock
from playback.config     import PlaybackConfig, SpeedConfig, EventsConfig, load_config, get_config
from playback.source     import StepSourceAdapter, PullResult
from playback.renderer   import Renderer, CallbackRenderer
from playback.controller import PlaybackController
from playback.recorder   import RunRecorder, RunMetrics, run_to_completion

__all__ = [
    "RunState",
    "LifecycleKind",
    "Step",
    "RunHandle",
    "LifecycleEvent",
    "PlaybackSnapshot",
    "PlaybackError",
    "InvalidTransition",
    "StepSourceError",
    "ConfigurationError",
    "Clock",
    "TimerHandle",
    "ManualClock",
    "PollingClock",
    "AsyncioClock",
    "PlaybackConfig",
    "SpeedConfig",
    "EventsConfig",
    "load_config",
    "get_config",
    "StepSourceAdapter",
    "PullResult",
    "Renderer",
    "CallbackRenderer",
    "PlaybackController",
    "RunRecorder",
    "RunMetrics",
    "run_to_completion",
]
