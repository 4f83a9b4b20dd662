"""context.py - The shared progress-update hook.

HookSlot holds the one callback that long-running code calls to report
progress. ``with_progress`` installs a callback for the extent of its block
and puts the previous one back on exit; code anywhere below that block
reports through ``update_progress()`` without being handed the callback.

The slot is a ``contextvars.ContextVar``, which gives:

    Isolation:  each thread starts with the no-op hook, and each asyncio Task
                works on its own copy of the slot.

    Nesting:    ``install()`` returns the Token from ``ContextVar.set`` and
                ``restore()`` hands it to ``ContextVar.reset``, which brings
                back exactly the value seen before that ``install()``. Inner
                scopes are therefore always undone before outer ones.
"""

import contextvars
from typing import Callable, Optional

UpdateHook = Callable[..., None]


def noop_hook(value: Optional[float] = None) -> None:
    """The hook installed when no progress scope is active."""
    return None


class HookSlot:
    """Stateless facade over the module-level hook ContextVar.

    Every HookSlot instance reads and writes the same ContextVar, so
    ``progress.py`` and application code can each hold their own instance.

    Example:
        >>> slot = HookSlot()
        >>> slot.get() is noop_hook
        True
        >>> token = slot.install(print)
        >>> slot.get() is print
        True
        >>> slot.restore(token)
        >>> slot.get() is noop_hook
        True
    """

    _hook: contextvars.ContextVar[UpdateHook] = contextvars.ContextVar(
        "tracegate_progress_hook", default=noop_hook
    )

    def get(self) -> UpdateHook:
        """Return the hook installed in the current context."""
        return self._hook.get()

    def install(self, hook: UpdateHook) -> contextvars.Token:
        """Install ``hook`` and return the token needed to undo it."""
        return self._hook.set(hook)

    def restore(self, token: contextvars.Token) -> None:
        """Put back the hook that was current before ``install`` returned ``token``.

        Raises:
            ValueError: If the token was created in a different Context.
            RuntimeError: If the token has already been used.
        """
        self._hook.reset(token)


_slot = HookSlot()


def current_hook() -> UpdateHook:
    """Return the hook installed in the current context."""
    return _slot.get()


def update_progress(value: Optional[float] = None) -> None:
    """Report progress through whatever hook is installed.

    Outside any ``with_progress`` block this does nothing.

    Args:
        value: New absolute progress value, or None to advance by one.
    """
    _slot.get()(value)
