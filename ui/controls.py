"""
controls.py — UI Control Panels
=================================
Every UI panel is a pure function that takes state and returns HTML.

Panels:
  • playback_controls   – start/pause/resume/step/reset/cancel + speed
  • algorithm_selector  – dropdown of registered step sources
  • pseudocode_viewer   – with live line highlighting
  • explanation_panel   – "what just happened" text for the current frame
  • status_panel        – run state, step counter, last error

Design:
  - All panels are stateless render functions.
  - Output is raw HTML strings; the main app stitches them together.
"""

from html import escape
from typing import Dict, List, Optional

from algorithms import AlgoInfo
from playback import PlaybackSnapshot, RunState


# ---------------------------------------------------------------------------
# Playback Controls
# ---------------------------------------------------------------------------
def playback_controls(
    snapshot: PlaybackSnapshot,
    presets: Optional[Dict[str, float]] = None,
) -> str:
    state = snapshot.state
    can_start  = state in (RunState.IDLE, RunState.COMPLETED, RunState.FAILED)
    can_pause  = state == RunState.RUNNING
    can_resume = state == RunState.PAUSED
    can_step   = state in (RunState.IDLE, RunState.PAUSED)

    def button(btn_id: str, label: str, title: str, enabled: bool) -> str:
        disabled = "" if enabled else " disabled"
        return f'<button id="{btn_id}" title="{title}"{disabled}>{label}</button>'

    options = []
    for name, ms in (presets or {}).items():
        sel = "selected" if ms == snapshot.speed_ms else ""
        options.append(f'<option value="{ms:g}" {sel}>{escape(name.capitalize())} ({ms:g} ms)</option>')

    return f"""
    <div class="panel playback-controls">
      <h3>⏯ Playback</h3>
      <div class="button-row">
        {button("btn-start", "▶ Start", "Start a new run", can_start)}
        {button("btn-pause", "⏸", "Pause", can_pause)}
        {button("btn-resume", "⏵", "Resume", can_resume)}
        {button("btn-step", "⏭ Step", "Advance one step", can_step)}
        {button("btn-reset", "⟲ Reset", "Reset", True)}
        {button("btn-cancel", "✕", "Cancel run", state != RunState.IDLE)}
      </div>
      <div class="speed-control">
        <label for="speed-selector">Speed:</label>
        <select id="speed-selector">
          {''.join(options)}
        </select>
      </div>
    </div>
    """


# ---------------------------------------------------------------------------
# Algorithm Selector
# ---------------------------------------------------------------------------
def algorithm_selector(algorithms: List[AlgoInfo], selected_key: str = "bubble_sort") -> str:
    options = []
    for algo in algorithms:
        sel = 'selected' if algo.key == selected_key else ''
        options.append(
            f'<option value="{algo.key}" data-kind="{algo.kind}" {sel}>'
            f'{escape(algo.label)} — {escape(algo.complexity_time)}</option>'
        )

    return f"""
    <div class="panel algorithm-selector">
      <h3>🧠 Algorithm</h3>
      <select id="algo-selector">
        {''.join(options)}
      </select>
      <textarea id="algo-params" rows="4" placeholder='{{"values": [5, 3, 8, 1]}}'></textarea>
    </div>
    """


# ---------------------------------------------------------------------------
# Pseudocode Viewer
# ---------------------------------------------------------------------------
def pseudocode_viewer(pseudocode_lines: List[str], current_line: int = -1) -> str:
    if not pseudocode_lines:
        return '<div class="code-block placeholder">Select an algorithm to view pseudocode</div>'

    lines_html = []
    for i, line in enumerate(pseudocode_lines):
        highlight = 'highlight' if i == current_line else ''
        lines_html.append(f'<div class="code-line {highlight}" data-line="{i}">{escape(line)}</div>')

    return f"""
    <div class="code-block">
      {''.join(lines_html)}
    </div>
    """


# ---------------------------------------------------------------------------
# Explanation Panel
# ---------------------------------------------------------------------------
def explanation_panel(explanation: str = "") -> str:
    if not explanation:
        return '<div class="explanation-text">▶ Press <strong>Start</strong> or <strong>Step</strong>.</div>'
    return f'<div class="explanation-text">{escape(explanation)}</div>'


# ---------------------------------------------------------------------------
# Status Panel
# ---------------------------------------------------------------------------
def status_panel(snapshot: PlaybackSnapshot) -> str:
    error = ""
    if snapshot.error:
        error = f'<div class="error" role="alert">{escape(snapshot.error)}</div>'
    final = ' <span class="finished-badge">FINISHED</span>' if snapshot.is_finished else ''
    return f"""
    <div class="panel status-panel" role="status">
      State: <strong id="run-state">{snapshot.state.value}</strong>{final}
      · Steps: <span id="steps-emitted">{snapshot.steps_emitted}</span>
      · Speed: <span id="speed-ms">{snapshot.speed_ms:g}</span> ms
      {error}
    </div>
    """
