"""tracegate/__init__.py - Public API for the tracegate package.

tracegate provides two facilities for long-running client code:

    Debug-only tracing   ``trace(...)`` call sites inside ``@traced`` functions
                         are compiled in only when the log level is DEBUG at
                         decoration time; otherwise they vanish from the
                         bytecode, arguments and all.

    Scoped progress      ``with_progress(...)`` installs a progress-update hook
                         for the extent of a ``with`` block and restores the
                         previous hook on every exit path.

Quick start:
    from tracegate import set_log_level, trace, traced, update_progress, with_progress

    # 1. Choose the level before importing/decorating instrumented code
    #    (or export TRACEGATE_LOG_LEVEL=debug)
    set_log_level("debug")

    # 2. Annotate functions and drop trace() calls where useful
    @traced
    def fetch(item):
        trace("fetching", item)          # fetching ITEM:42
        update_progress()

    # 3. Wrap the long operation
    with with_progress("Fetching", 0, len(items)):
        for item in items:
            fetch(item)

Exported names:
    trace, traced:          The trace marker and the decorator that compiles it.
    LogLevel:               Ordered level tag; only DEBUG enables tracing.
    with_progress:          Context manager for a progress scope.
    update_progress:        Report progress through the installed hook.
    TraceSink and friends:  Destinations for trace messages.
"""

from .arguments import FormSummary, Literal, NamedValue, format_message
from .buffer import RingBuffer, TraceRecord
from .config import LogLevel, get_log_level, set_log_level, tracing_enabled
from .context import HookSlot, current_hook, noop_hook, update_progress
from .instrument import TraceConstructionError, Tracer, trace, traced
from .progress import (
    LoggingProgressUI,
    ProgressConfig,
    ProgressConfigError,
    ProgressReporterState,
    ProgressUI,
    get_progress_ui,
    progress_scope,
    run_with_progress,
    set_progress_ui,
    with_progress,
)
from .sinks import (
    BufferSink,
    LoggingSink,
    StreamSink,
    TraceSink,
    get_default_sink,
    set_default_sink,
)
from .util import build_mapping, find_first, tap

__all__ = [
    "trace",
    "traced",
    "Tracer",
    "TraceConstructionError",
    "LogLevel",
    "get_log_level",
    "set_log_level",
    "tracing_enabled",
    "Literal",
    "NamedValue",
    "FormSummary",
    "format_message",
    "HookSlot",
    "current_hook",
    "noop_hook",
    "update_progress",
    "with_progress",
    "progress_scope",
    "run_with_progress",
    "ProgressConfig",
    "ProgressConfigError",
    "ProgressReporterState",
    "ProgressUI",
    "LoggingProgressUI",
    "get_progress_ui",
    "set_progress_ui",
    "TraceSink",
    "LoggingSink",
    "StreamSink",
    "BufferSink",
    "get_default_sink",
    "set_default_sink",
    "RingBuffer",
    "TraceRecord",
    "build_mapping",
    "find_first",
    "tap",
]
__version__ = "0.1.0"
