"""progress.py - Scoped progress reporting through the shared hook.

``with_progress`` creates a progress indicator, installs an update callback
into the shared hook slot for the duration of a ``with`` block, and puts the
previous callback back when the block exits, whether it returns, breaks out
or raises. Code inside the block can use the yielded callback directly or
call ``tracegate.update_progress()`` from anywhere further down the stack.

Usage:
    from tracegate import update_progress, with_progress

    def index_file(path):
        ...
        update_progress()            # advance by one

    with with_progress("Indexing", 0, len(paths)):
        for path in paths:
            index_file(path)

Update semantics:
    ``update()``   - current value += 1, then report it.
    ``update(v)``  - current value = v, then report it. Later bare calls
                     continue counting from v.

On exit the elapsed time is traced (visible only at ``LogLevel.DEBUG``),
also when reporting was disabled with ``enable_when``.
"""

import logging
import numbers
import time
from abc import ABC, abstractmethod
from contextlib import contextmanager
from dataclasses import dataclass
from typing import Any, Callable, ContextManager, Dict, Iterator, Optional, TypeVar, Union

from .config import tracing_enabled
from .context import HookSlot, UpdateHook, noop_hook
from .instrument import trace, traced

T = TypeVar("T")
Condition = Union[bool, Callable[[], bool]]

_slot = HookSlot()


class ProgressConfigError(TypeError):
    """A progress scope was configured with values of the wrong type."""


class ProgressUI(ABC):
    """Renders progress indicators for ``with_progress``."""

    @abstractmethod
    def create(self, label: str, min_value: float, max_value: float) -> Any:
        """Allocate an indicator and return a handle for later updates."""

    @abstractmethod
    def update(self, handle: Any, value: float) -> None:
        """Show ``value`` on the indicator identified by ``handle``."""


@dataclass
class _Indicator:
    label: str
    min_value: float
    max_value: float
    percent: Optional[int] = None


class LoggingProgressUI(ProgressUI):
    """Log ``<label>...<pct>%`` lines, one per change of the whole percentage.

    Example output on the ``tracegate.progress`` logger::

        Indexing...0%
        Indexing...50%
        Indexing...100%
    """

    def __init__(self, logger: Optional[logging.Logger] = None) -> None:
        self._logger = logger or logging.getLogger("tracegate.progress")

    def create(self, label: str, min_value: float, max_value: float) -> _Indicator:
        return _Indicator(label, min_value, max_value)

    def update(self, handle: _Indicator, value: float) -> None:
        span = handle.max_value - handle.min_value
        if span <= 0:
            percent = 100
        else:
            percent = int((value - handle.min_value) * 100 / span)
        if percent == handle.percent:
            return
        handle.percent = percent
        self._logger.info("%s...%d%%", handle.label, percent)


_default_ui: ProgressUI = LoggingProgressUI()


def get_progress_ui() -> ProgressUI:
    """Return the UI used by scopes that do not name one."""
    return _default_ui


def set_progress_ui(ui: ProgressUI) -> ProgressUI:
    """Replace the default progress UI and return the previous one."""
    global _default_ui
    previous = _default_ui
    _default_ui = ui
    return previous


@dataclass(frozen=True)
class ProgressConfig:
    """Validated settings of one progress scope.

    Attributes:
        label: Text shown next to the indicator.
        min_value: Value the indicator starts at.
        max_value: Value that means complete.
        enable_when: ``bool``, or a zero-argument callable returning one,
            evaluated when the scope is entered. False installs a no-op hook
            and creates no indicator.

    Raises:
        ProgressConfigError: On construction, if a field has the wrong type.
    """

    label: str
    min_value: float
    max_value: float
    enable_when: Condition = True

    def __post_init__(self) -> None:
        if not isinstance(self.label, str):
            raise ProgressConfigError(f"label must be a str, got {self.label!r}")
        for name in ("min_value", "max_value"):
            value = getattr(self, name)
            if isinstance(value, bool) or not isinstance(value, numbers.Real):
                raise ProgressConfigError(f"{name} must be a number, got {value!r}")
        if not isinstance(self.enable_when, bool) and not callable(self.enable_when):
            raise ProgressConfigError(
                f"enable_when must be a bool or a callable, got {self.enable_when!r}"
            )

    def is_enabled(self) -> bool:
        """Evaluate ``enable_when``.

        Raises:
            ProgressConfigError: If a callable condition returns a non-bool.
        """
        condition = self.enable_when
        result = condition() if callable(condition) else condition
        if not isinstance(result, bool):
            raise ProgressConfigError(f"enable_when returned {result!r}, expected a bool")
        return result


@dataclass
class ProgressReporterState:
    """Mutable state of one enabled progress scope."""

    label: str
    min_value: float
    max_value: float
    current_value: float
    start_time: float
    handle: Any = None

    def advance(self, value: Optional[float] = None) -> float:
        """Step by one, or jump to ``value``, and return the new current value."""
        if value is None:
            self.current_value += 1
        else:
            self.current_value = value
        return self.current_value


def _progress_scope(config: ProgressConfig, ui: Optional[ProgressUI] = None) -> Iterator[UpdateHook]:
    started = time.monotonic()
    if config.is_enabled():
        if ui is None:
            ui = get_progress_ui()
        state = ProgressReporterState(
            config.label,
            config.min_value,
            config.max_value,
            current_value=config.min_value,
            start_time=started,
            handle=ui.create(config.label, config.min_value, config.max_value),
        )

        def update(value: Optional[float] = None) -> None:
            value = state.advance(value)
            ui.update(state.handle, value)
            trace("progress", value)

        hook = update
    else:
        hook = noop_hook

    token = _slot.install(hook)
    try:
        yield hook
    finally:
        _slot.restore(token)
        seconds = "%.2f" % (time.monotonic() - started)
        trace(f"{config.label} elapsed {seconds}s")


# Instrumented builds of _progress_scope, keyed by tracing_enabled() at the
# time a scope is created.
_scope_builds: Dict[bool, Callable[..., ContextManager[UpdateHook]]] = {}


def _scope_factory() -> Callable[..., ContextManager[UpdateHook]]:
    enabled = tracing_enabled()
    factory = _scope_builds.get(enabled)
    if factory is None:
        factory = _scope_builds[enabled] = contextmanager(traced(_progress_scope))
    return factory


def progress_scope(
    config: ProgressConfig, ui: Optional[ProgressUI] = None
) -> ContextManager[UpdateHook]:
    """Install a progress hook for the body of a ``with`` block.

    The scope's own traces (each update and the elapsed time on exit) follow
    the log level current when the scope is created.

    Args:
        config: Validated scope settings.
        ui: Indicator renderer; defaults to ``get_progress_ui()``.

    Returns:
        A context manager yielding the installed update callback (the no-op
        when disabled).
    """
    return _scope_factory()(config, ui)


def with_progress(
    label: str,
    min_value: float,
    max_value: float,
    *,
    enable_when: Condition = True,
    ui: Optional[ProgressUI] = None,
):
    """Context manager reporting progress from ``min_value`` to ``max_value``.

    The configuration is validated here, before the ``with`` body can run.

    Example:
        >>> with with_progress("Copying", 0, 3) as update:
        ...     for _ in range(3):
        ...         update()
    """
    return progress_scope(ProgressConfig(label, min_value, max_value, enable_when), ui=ui)


def run_with_progress(
    config: ProgressConfig,
    body: Callable[[UpdateHook], T],
    ui: Optional[ProgressUI] = None,
) -> T:
    """Run ``body(update)`` inside a progress scope and return its result."""
    with progress_scope(config, ui=ui) as update:
        return body(update)
