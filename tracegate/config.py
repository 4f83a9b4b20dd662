"""config.py - Process-wide log level that gates trace instrumentation.

The log level is read in two places:

    Decoration time: ``@traced`` consults ``tracing_enabled()`` once, when it
                     recompiles a function, and either keeps or strips every
                     ``trace(...)`` call site in that function.

    Run time:        the ``trace(...)`` fallback used outside ``@traced``
                     functions checks the level on each call.

Only ``LogLevel.DEBUG`` turns tracing on. The levels are ordered so that
sinks can map them onto ``logging`` severities, but nothing here treats a
level as "at least debug".

The initial level comes from the ``TRACEGATE_LOG_LEVEL`` environment
variable, falling back to ``INFO``.
"""

import enum
import logging
import os
from typing import Optional, Union

ENV_VAR = "TRACEGATE_LOG_LEVEL"


class LogLevel(enum.IntEnum):
    """Ordered severity tag for trace output."""

    OFF = 0
    ERROR = 1
    WARNING = 2
    INFO = 3
    DEBUG = 4

    def to_logging_level(self) -> int:
        """Return the standard ``logging`` level that corresponds to this tag.

        ``OFF`` maps above ``CRITICAL`` so that a record tagged with it is
        never shown by a normally configured logger.
        """
        return _LOGGING_LEVELS[self]

    @classmethod
    def parse(cls, value: Union["LogLevel", str]) -> "LogLevel":
        """Coerce a LogLevel or a case-insensitive level name to a LogLevel.

        Raises:
            ValueError: If ``value`` names no known level.
        """
        if isinstance(value, cls):
            return value
        try:
            return cls[str(value).strip().upper()]
        except KeyError:
            raise ValueError(f"unknown log level: {value!r}") from None


_LOGGING_LEVELS = {
    LogLevel.OFF: logging.CRITICAL + 10,
    LogLevel.ERROR: logging.ERROR,
    LogLevel.WARNING: logging.WARNING,
    LogLevel.INFO: logging.INFO,
    LogLevel.DEBUG: logging.DEBUG,
}


def resolve_env_log_level() -> Optional[LogLevel]:
    """Return the level named by ``TRACEGATE_LOG_LEVEL``, or None.

    Unset, empty and unrecognised values all yield None.
    """
    val = os.environ.get(ENV_VAR)
    if not val:
        return None
    try:
        return LogLevel.parse(val)
    except ValueError:
        return None


def initial_log_level() -> LogLevel:
    """Return the level named by the environment, or ``INFO`` when it names none."""
    level = resolve_env_log_level()
    return LogLevel.INFO if level is None else level


_level: LogLevel = initial_log_level()


def get_log_level() -> LogLevel:
    """Return the current process-wide log level."""
    return _level


def set_log_level(level: Union[LogLevel, str]) -> LogLevel:
    """Set the process-wide log level and return the previous one.

    Functions already decorated with ``@traced`` keep the instrumentation
    decision made when they were decorated.
    """
    global _level
    previous = _level
    _level = LogLevel.parse(level)
    return previous


def tracing_enabled() -> bool:
    """True only when the current level is exactly ``LogLevel.DEBUG``."""
    return _level is LogLevel.DEBUG
