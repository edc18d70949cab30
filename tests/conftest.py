"""
Pytest configuration and shared fixtures for the playback test suite.
"""

import sys
import tempfile
from pathlib import Path

import pytest

# Ensure project root is on PYTHONPATH so 'playback' can be imported
PROJECT_ROOT = Path(__file__).resolve().parent.parent
if str(PROJECT_ROOT) not in sys.path:
    sys.path.insert(0, str(PROJECT_ROOT))

from playback import ManualClock, PlaybackConfig, PlaybackController, RunRecorder  # noqa: E402


@pytest.fixture
def temp_yaml_file():
    """
    Fixture that provides a temporary YAML file.

    Yields:
        Path: Path to the temporary YAML file
    """
    with tempfile.NamedTemporaryFile(
        mode="w",
        suffix=".yaml",
        delete=False,
    ) as f:
        temp_path = Path(f.name)

    yield temp_path

    # Cleanup
    if temp_path.exists():
        temp_path.unlink()


PLAYBACK_CFG = {
    "speed": {
        "default_ms": 100,
        "min_ms": 0,
        "max_ms": 1000,
        "presets": {"slow": 500, "fast": 20},
    },
    "events": {"warn_on_invalid": False},
}


@pytest.fixture
def config():
    return PlaybackConfig.from_dict(PLAYBACK_CFG)


@pytest.fixture
def clock():
    return ManualClock()


@pytest.fixture
def recorder():
    return RunRecorder()


@pytest.fixture
def make_controller(clock, recorder, config):
    """Factory for controllers on the shared ManualClock and RunRecorder."""

    def _make(**kwargs):
        kwargs.setdefault("clock", clock)
        kwargs.setdefault("config", config)
        kwargs.setdefault("renderers", [recorder])
        return PlaybackController(**kwargs)

    return _make


@pytest.fixture
def controller(make_controller):
    return make_controller()


def numbers(n):
    """A plain generator yielding 0..n-1."""
    yield from range(n)


def failing_after(values, exc):
    """Yields `values`, then raises `exc`."""
    yield from values
    raise exc
