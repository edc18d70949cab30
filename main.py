"""
main.py — Algorithm Playback Flask App
========================================
A thin web surface over one PlaybackController.

Routes:
  GET  /                  – main UI
  GET  /api/algorithms    – registered step sources
  POST /api/start         – start a run   {algo, params}
  POST /api/step          – one step      {algo?, params?}
  POST /api/pause         – pause
  POST /api/resume        – resume
  POST /api/cancel        – cancel the run
  POST /api/reset         – reset run and counters
  POST /api/speed         – {ms} or {preset}
  GET  /api/state?since=N – fire due timers, return snapshot, panels + events after N

State management:
  The controller runs on a PollingClock: nothing advances between
  requests, and every /api/state poll fires whatever became due.  All
  controller access goes through one lock, so requests from Flask's
  worker threads are processed one at a time, to completion.

  Commands the controller refuses come back as HTTP 200 with
  "accepted": false; only malformed requests are 400s.
"""

import logging
import threading
from typing import Any, Dict, Optional, Tuple

from flask import Flask, current_app, jsonify, render_template_string, request

from algorithms import build_source, get_algorithm, list_algorithms
from playback import (
    PlaybackConfig,
    PlaybackController,
    PlaybackSnapshot,
    PollingClock,
    RunRecorder,
    RunState,
    get_config,
)
from playback.clock import Clock
from ui import (
    algorithm_selector,
    explanation_panel,
    playback_controls,
    pseudocode_viewer,
    render_frame,
    status_panel,
)

logger = logging.getLogger(__name__)

DEFAULT_PARAMS: Dict[str, Dict[str, Any]] = {
    "array": {"values": [5, 3, 8, 1, 9, 2, 7]},
    "graph": {
        "graph": {"A": ["B", "C"], "B": ["D"], "C": ["D", "E"], "D": ["F"], "E": ["F"], "F": []},
        "source": "A",
        "target": "F",
    },
    "tree": {"tree": [4, 2, 6, 1, 3, 5, 7]},
}


# ---------------------------------------------------------------------------
# Session
# ---------------------------------------------------------------------------
class PlaybackSession:
    """One controller, its recorder, and the currently selected algorithm."""

    def __init__(self, config: PlaybackConfig, clock: Optional[Clock] = None):
        self.lock     = threading.RLock()
        self.recorder = RunRecorder()
        self.algo_key = "bubble_sort"
        self.params: Dict[str, Any] = dict(DEFAULT_PARAMS["array"])

        self.controller = PlaybackController(
            clock=clock or PollingClock(),
            config=config,
            source_factory=self._build,
            renderers=[self.recorder],
        )

    def resolve(self, algo_key: str, params: Optional[Dict[str, Any]]) -> Tuple[str, Dict[str, Any]]:
        """Validate a selection without committing it.  Raises ValueError."""
        info = get_algorithm(algo_key)
        if info is None:
            raise ValueError(f"Unknown algorithm: {algo_key}")
        if params is None:
            params = DEFAULT_PARAMS[info.kind]
        build_source(algo_key, params)      # validation only; generator is discarded
        return algo_key, dict(params)

    def can_begin_run(self, step: bool) -> bool:
        """True if start (or step) would begin a new run right now."""
        state = self.controller.state
        if step:
            return state == RunState.IDLE
        return state in (RunState.IDLE, RunState.COMPLETED, RunState.FAILED)

    def _build(self):
        return build_source(self.algo_key, self.params)


def _session() -> PlaybackSession:
    return current_app.extensions["playback"]


# ---------------------------------------------------------------------------
# Payload helpers
# ---------------------------------------------------------------------------
def snapshot_dict(snapshot: PlaybackSnapshot) -> Dict[str, Any]:
    last = snapshot.last_step
    return {
        "state":         snapshot.state.value,
        "run_id":        snapshot.run_id,
        "speed_ms":      snapshot.speed_ms,
        "steps_emitted": snapshot.steps_emitted,
        "error":         snapshot.error,
        "last_sequence": last.sequence if last is not None else None,
        "is_final":      last.is_final if last is not None else False,
    }


def _command_response(accepted: bool) -> Any:
    sess = _session()
    body = {"accepted": accepted, **snapshot_dict(sess.controller.snapshot())}
    if not accepted and sess.controller.last_rejection is not None:
        body["reason"] = sess.controller.last_rejection.message
    return jsonify(body)


def _json_body() -> Dict[str, Any]:
    data = request.get_json(silent=True)
    return data if isinstance(data, dict) else {}


# ---------------------------------------------------------------------------
# App factory
# ---------------------------------------------------------------------------
def create_app(
    config: Optional[PlaybackConfig] = None,
    clock: Optional[Clock] = None,
) -> Flask:
    app = Flask(__name__)
    cfg = config or get_config()
    app.extensions["playback"] = PlaybackSession(cfg, clock=clock)

    # -----------------------------------------------------------------
    # Main UI
    # -----------------------------------------------------------------
    @app.route("/")
    def index():
        sess = _session()
        with sess.lock:
            snapshot = sess.controller.snapshot()
            info = get_algorithm(sess.algo_key)
            return render_template_string(
                INDEX_TEMPLATE,
                algo_selector=algorithm_selector(list_algorithms(), sess.algo_key),
                playback=playback_controls(snapshot, cfg.speed.presets),
                status=status_panel(snapshot),
                svg=render_frame(None),
                pseudocode=pseudocode_viewer(info.pseudocode if info else []),
                explanation=explanation_panel(),
            )

    @app.route("/api/algorithms")
    def api_algorithms():
        return jsonify([
            {
                "key": a.key,
                "label": a.label,
                "kind": a.kind,
                "tags": a.tags,
                "complexity_time": a.complexity_time,
                "description": a.description,
                "pseudocode": a.pseudocode,
                "default_params": DEFAULT_PARAMS[a.kind],
            }
            for a in list_algorithms()
        ])

    # -----------------------------------------------------------------
    # Commands
    # -----------------------------------------------------------------
    @app.route("/api/start", methods=["POST"])
    def api_start():
        return _start_or_step(step=False)

    @app.route("/api/step", methods=["POST"])
    def api_step():
        return _start_or_step(step=True)

    def _start_or_step(step: bool):
        sess = _session()
        data = _json_body()
        with sess.lock:
            if "algo" in data:
                try:
                    selection = sess.resolve(str(data["algo"]), data.get("params"))
                except (ValueError, KeyError, TypeError, AttributeError) as e:
                    return jsonify({"error": str(e)}), 400
                # the running algorithm keeps its pseudocode until a new run begins
                if sess.can_begin_run(step):
                    sess.algo_key, sess.params = selection
            controller = sess.controller
            accepted = controller.step() if step else controller.start()
            return _command_response(accepted)

    @app.route("/api/pause", methods=["POST"])
    def api_pause():
        sess = _session()
        with sess.lock:
            return _command_response(sess.controller.pause())

    @app.route("/api/resume", methods=["POST"])
    def api_resume():
        sess = _session()
        with sess.lock:
            return _command_response(sess.controller.resume())

    @app.route("/api/cancel", methods=["POST"])
    def api_cancel():
        sess = _session()
        with sess.lock:
            return _command_response(sess.controller.cancel())

    @app.route("/api/reset", methods=["POST"])
    def api_reset():
        sess = _session()
        with sess.lock:
            return _command_response(sess.controller.reset())

    @app.route("/api/speed", methods=["POST"])
    def api_speed():
        sess = _session()
        data = _json_body()
        with sess.lock:
            if "preset" in data:
                accepted = sess.controller.set_speed_preset(str(data["preset"]))
                return _command_response(accepted)
            if "ms" in data:
                requested = data["ms"]
                if isinstance(requested, bool) or not isinstance(requested, (int, float)):
                    return jsonify({"error": "'ms' must be a number"}), 400
                sess.controller.set_speed(requested)
                return _command_response(True)
        return jsonify({"error": "Provide 'ms' or 'preset'"}), 400

    # -----------------------------------------------------------------
    # Polling
    # -----------------------------------------------------------------
    @app.route("/api/state")
    def api_state():
        sess = _session()
        since = request.args.get("since", default=0, type=int)
        with sess.lock:
            sess.controller.tick()
            snapshot = sess.controller.snapshot()
            events = sess.recorder.since(since)
            body = {
                **snapshot_dict(snapshot),
                "algo": sess.algo_key,
                "cursor": sess.recorder.cursor,
                "events": events,
                "status": status_panel(snapshot),
                "playback": playback_controls(snapshot, cfg.speed.presets),
            }
            last = snapshot.last_step
            if last is not None:
                info = get_algorithm(sess.algo_key)
                frame = last.value
                body["svg"] = render_frame(frame)
                body["pseudocode"] = pseudocode_viewer(
                    info.pseudocode if info else [],
                    current_line=getattr(frame, "pseudocode_line", -1),
                )
                body["explanation"] = explanation_panel(getattr(frame, "explanation", ""))
        return jsonify(body)

    return app


# ---------------------------------------------------------------------------
# HTML Template
# ---------------------------------------------------------------------------
INDEX_TEMPLATE = """
<!DOCTYPE html>
<html lang="en">
<head>
  <meta charset="UTF-8">
  <title>Algorithm Playback</title>
  <style>
    body { font-family: sans-serif; background: #010409; color: #e6edf3; display: flex; margin: 0; }
    #sidebar { width: 340px; padding: 16px; background: #0d1117; border-right: 1px solid #30363d; }
    #main { flex: 1; display: flex; flex-direction: column; }
    .panel { margin-bottom: 16px; }
    button[disabled] { opacity: 0.4; }
    .code-line.highlight { background: #1c2128; color: #0ea5e9; }
    .error { color: #f43f5e; }
    textarea { width: 100%; }
  </style>
</head>
<body>
  <div id="sidebar">
    <div id="algo">{{ algo_selector|safe }}</div>
    <div id="playback">{{ playback|safe }}</div>
    <div id="status">{{ status|safe }}</div>
  </div>
  <div id="main">
    <div id="canvas">{{ svg|safe }}</div>
    <div id="pseudocode">{{ pseudocode|safe }}</div>
    <div id="explanation">{{ explanation|safe }}</div>
  </div>

  <script>
    let cursor = 0;

    async function post(url, data) {
      const res = await fetch(url, {
        method: 'POST',
        headers: {'Content-Type': 'application/json'},
        body: JSON.stringify(data || {}),
      });
      return await res.json();
    }

    function selection() {
      const body = {algo: document.getElementById('algo-selector').value};
      const raw = document.getElementById('algo-params').value.trim();
      if (raw) body.params = JSON.parse(raw);
      return body;
    }

    let controls = null;

    async function poll() {
      const res = await fetch('/api/state?since=' + cursor);
      const data = await res.json();
      cursor = data.cursor;
      if (data.svg) document.getElementById('canvas').innerHTML = data.svg;
      if (data.pseudocode) document.getElementById('pseudocode').innerHTML = data.pseudocode;
      if (data.explanation) document.getElementById('explanation').innerHTML = data.explanation;
      document.getElementById('status').innerHTML = data.status;
      // only swap when it changed, so an open speed dropdown survives polling
      if (data.playback !== controls) {
        controls = data.playback;
        document.getElementById('playback').innerHTML = controls;
      }
    }

    // delegated: the playback panel is replaced as the run state changes
    const ACTIONS = {
      'btn-start':  () => post('/api/start', selection()),
      'btn-step':   () => post('/api/step', selection()),
      'btn-pause':  () => post('/api/pause'),
      'btn-resume': () => post('/api/resume'),
      'btn-reset':  () => post('/api/reset'),
      'btn-cancel': () => post('/api/cancel'),
    };
    document.addEventListener('click', (e) => {
      const btn = e.target.closest('button');
      if (btn && !btn.disabled && ACTIONS[btn.id]) ACTIONS[btn.id]();
    });
    document.addEventListener('change', (e) => {
      if (e.target.id === 'speed-selector') post('/api/speed', {ms: +e.target.value});
    });

    setInterval(poll, 50);
  </script>
</body>
</html>
"""


# ---------------------------------------------------------------------------
# Run
# ---------------------------------------------------------------------------
if __name__ == "__main__":
    logging.basicConfig(level=logging.INFO, format="%(asctime)s %(name)s %(levelname)s %(message)s")
    logger.info("Algorithm Playback on http://localhost:5000")
    create_app().run(debug=True, host="0.0.0.0", port=5000)
