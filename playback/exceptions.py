"""Exceptions used throughout the playback package.

None of these ever escape a Command Surface call. They are carried on
lifecycle events, stored on the controller, or raised by the config loader.
"""

from typing import Any, Optional


class PlaybackError(Exception):
    """Base exception for all playback errors.

    Catch this to handle any playback-specific failure in one clause.
    """

    def __init__(self, message: str, details: Optional[dict[str, Any]] = None):
        """Initialize the exception.

        Args:
            message: Human-readable error message
            details: Additional context about the error
        """

        super().__init__(message)
        self.message = message
        self.details = details or {}


class InvalidTransition(PlaybackError):
    """A command was issued that is not legal in the current RunState.

    Examples:
    - start() while RUNNING
    - step() after COMPLETED
    """

    def __init__(
        self,
        state: Any,
        command: Any,
        message: Optional[str] = None,
        details: Optional[dict[str, Any]] = None,
    ):
        state_name = getattr(state, "value", state)
        command_name = getattr(command, "value", command)
        if message is None:
            message = f"'{command_name}' is not allowed while {state_name}"
        details = details or {}
        details.setdefault("state", state_name)
        details.setdefault("command", command_name)
        super().__init__(message=message, details=details)
        self.state = state
        self.command = command


class StepSourceError(PlaybackError):
    """The algorithm's step source raised while being pulled.

    The original exception is kept on ``cause`` and chained as
    ``__cause__`` so tracebacks survive.
    """

    def __init__(
        self,
        cause: BaseException,
        run_id: Optional[int] = None,
        sequence: Optional[int] = None,
        details: Optional[dict[str, Any]] = None,
    ):
        message = f"Step source failed: {type(cause).__name__}: {cause}"
        details = details or {}
        if run_id is not None:
            details["run_id"] = run_id
        if sequence is not None:
            details["sequence"] = sequence
        super().__init__(message=message, details=details)
        self.__cause__ = cause
        self.cause = cause
        self.run_id = run_id
        self.sequence = sequence


class ConfigurationError(PlaybackError):
    """Raised when there's an error in configuration.

    This includes:
    - Unreadable or malformed YAML
    - Missing required keys
    - Speed bounds that contradict each other

    Out-of-range speeds passed to set_speed() are clamped, not raised.
    """

    def __init__(
        self,
        config_key: Optional[str] = None,
        message: Optional[str] = None,
        details: Optional[dict[str, Any]] = None,
    ):
        """Initialize configuration error.

        Args:
            config_key: The configuration key that caused the error
            message: Description of what's wrong. If omitted, config_key is
                treated as the message and the key defaults to "configuration".
            details: Additional context
        """
        if message is None:
            message = config_key or "Invalid configuration"
            config_key = "configuration"
        if config_key is None:
            config_key = "configuration"

        full_message = f"Configuration error for '{config_key}': {message}"
        super().__init__(message=full_message, details=details)
        self.config_key = config_key


__all__ = [
    "PlaybackError",
    "InvalidTransition",
    "StepSourceError",
    "ConfigurationError",
]
