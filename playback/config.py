"""Helpers for loading and validating playback configuration."""

from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Optional
import logging
import threading

import yaml  # type: ignore[import-untyped]

from playback.exceptions import ConfigurationError

logger = logging.getLogger(__name__)

DEFAULT_CONFIG_PATH = Path(__file__).parent / "config.yaml"


@dataclass(frozen=True)
class SpeedConfig:
    default_ms: float = 400.0
    min_ms: float = 0.0
    max_ms: float = 5000.0
    presets: dict[str, float] = field(default_factory=lambda: {
        "slow": 1000.0,
        "medium": 400.0,
        "fast": 150.0,
        "turbo": 50.0,
    })

    def clamp(self, ms: float) -> float:
        return min(self.max_ms, max(self.min_ms, float(ms)))


@dataclass(frozen=True)
class EventsConfig:
    warn_on_invalid: bool = False


@dataclass(frozen=True)
class PlaybackConfig:
    speed: SpeedConfig = field(default_factory=SpeedConfig)
    events: EventsConfig = field(default_factory=EventsConfig)

    @classmethod
    def from_dict(cls, raw: Optional[dict[str, Any]]) -> "PlaybackConfig":
        """Build a validated config from a parsed YAML mapping.

        Missing sections fall back to the defaults above.
        """
        return _parse_playback_cfg_from_dict(raw or {})


# Configuration cache with thread safety
_LOADER_CACHE: dict[str, PlaybackConfig] = {}
_CACHE_LOCK = threading.RLock()


def _load_yaml_file(path: Path) -> dict[str, Any]:
    try:
        with path.open("r", encoding="utf-8") as fh:
            raw = yaml.safe_load(fh)
    except (OSError, yaml.YAMLError) as exc:
        raise ConfigurationError(f"Failed to parse config: {exc}") from exc

    if raw is None:
        return {}
    if not isinstance(raw, dict):
        raise ConfigurationError("top level of the config must be a mapping")
    return raw


def _build_speed_cfg(speed_raw: dict[str, Any]) -> SpeedConfig:
    defaults = SpeedConfig()
    presets_raw = speed_raw.get("presets", defaults.presets)
    if not isinstance(presets_raw, dict):
        raise ConfigurationError("speed.presets", "must be a mapping of name to delay")

    return SpeedConfig(
        default_ms=float(speed_raw.get("default_ms", defaults.default_ms)),
        min_ms=float(speed_raw.get("min_ms", defaults.min_ms)),
        max_ms=float(speed_raw.get("max_ms", defaults.max_ms)),
        presets={str(k): float(v) for k, v in presets_raw.items()},
    )


def _parse_playback_cfg_from_dict(raw: dict[str, Any]) -> PlaybackConfig:
    try:
        speed_raw = raw.get("speed") or {}
        events_raw = raw.get("events") or {}

        cfg = PlaybackConfig(
            speed=_build_speed_cfg(speed_raw),
            events=EventsConfig(
                warn_on_invalid=bool(events_raw.get("warn_on_invalid", False)),
            ),
        )
    except AttributeError as exc:
        raise ConfigurationError(f"Invalid config schema: {exc}") from exc
    except (TypeError, ValueError) as exc:
        raise ConfigurationError(f"Invalid config value: {exc}") from exc

    _validate_speed_config(cfg.speed)
    return cfg


def _validate_speed_config(speed: SpeedConfig) -> None:
    """Fail fast on bounds that contradict each other."""
    if speed.min_ms < 0:
        raise ConfigurationError("speed.min_ms", "must be >= 0")
    if speed.min_ms > speed.max_ms:
        raise ConfigurationError("speed.max_ms", "must be >= speed.min_ms")
    if not speed.min_ms <= speed.default_ms <= speed.max_ms:
        raise ConfigurationError("speed.default_ms", "must lie within [min_ms, max_ms]")

    for name, delay in speed.presets.items():
        if not speed.min_ms <= delay <= speed.max_ms:
            raise ConfigurationError(
                f"speed.presets.{name}",
                f"{delay} ms is outside [{speed.min_ms}, {speed.max_ms}]",
            )


def load_config(path: Optional[str] = None) -> PlaybackConfig:
    """Load and validate configuration from a YAML file.

    Args:
        path: Optional path to YAML config. If None, load the bundled
            playback/config.yaml.

    Returns:
        PlaybackConfig instance

    Raises:
        ConfigurationError: on parse or validation errors
    """

    p = Path(path) if path is not None else DEFAULT_CONFIG_PATH
    logger.debug("loading playback config from %s", p)
    return _parse_playback_cfg_from_dict(_load_yaml_file(p))


def get_config(path: Optional[str] = None) -> PlaybackConfig:
    """Return the loaded config for `path`, loading and caching if necessary.

    THREAD SAFETY: This function is thread-safe.
    """
    key = str(path) if path is not None else str(DEFAULT_CONFIG_PATH)
    with _CACHE_LOCK:
        if key not in _LOADER_CACHE:
            _LOADER_CACHE[key] = load_config(path)
        return _LOADER_CACHE[key]


def clear_config_cache() -> None:
    """Clear all cached configurations.

    All subsequent calls to get_config() will reload from disk.
    """
    with _CACHE_LOCK:
        _LOADER_CACHE.clear()


__all__ = [
    "SpeedConfig",
    "EventsConfig",
    "PlaybackConfig",
    "load_config",
    "get_config",
    "clear_config_cache",
]
