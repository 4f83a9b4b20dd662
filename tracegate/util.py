"""util.py - Small helpers that live alongside the tracing code."""

from typing import Any, Callable, Dict, Iterable, Optional, TypeVar

T = TypeVar("T")


def build_mapping(*flat: Any) -> Dict[Any, Any]:
    """Build a dict from alternating keys and values.

    Pairs keep their order; a repeated key keeps its last value.

    Example:
        >>> build_mapping("a", 1, "b", 2, "a", 3)
        {'a': 3, 'b': 2}

    Raises:
        ValueError: If an odd number of arguments is given.
    """
    if len(flat) % 2:
        raise ValueError(f"build_mapping() needs key/value pairs, got {len(flat)} arguments")
    return dict(zip(flat[::2], flat[1::2]))


def find_first(
    predicate: Callable[[T], Any],
    iterable: Iterable[T],
    default: Optional[T] = None,
) -> Optional[T]:
    """Return the first item for which ``predicate`` is truthy, else ``default``."""
    return next((item for item in iterable if predicate(item)), default)


def tap(value: T, fn: Callable[[T], Any]) -> T:
    """Call ``fn(value)`` for its side effect and return ``value``."""
    fn(value)
    return value
