"""
ui/
---
Presentation layer.

    from ui import render_frame
    from ui import playback_controls, algorithm_selector, …
"""

from ui.canvas import render_frame, CanvasConfig

from ui.controls import (
    playback_controls,
    algorithm_selector,
    pseudocode_viewer,
    explanation_panel,
    status_panel,
)

__all__ = [
    "render_frame",
    "CanvasConfig",
    "playback_controls",
    "algorithm_selector",
    "pseudocode_viewer",
    "explanation_panel",
    "status_panel",
]
