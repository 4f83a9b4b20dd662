"""arguments.py - Rendering rules for traced expressions.

Each argument of a ``trace(...)`` call is tagged with one of three rules when
the enclosing function is decorated:

    Literal      ``trace("loading")``   -> ``loading``
                 ``trace(f"{n} rows")`` -> ``3 rows``
    NamedValue   ``trace(count)``       -> ``COUNT:3``
    FormSummary  ``trace(f(a, b))``     -> ``(F...):7``
                 ``trace(f(a))``        -> ``(F):7``

The message handed to a sink is every rendering followed by one space, so
``trace("hello")`` produces ``"hello "``.
"""

from dataclasses import dataclass
from typing import Any, Iterable, Union


@dataclass(frozen=True)
class Literal:
    """Constant text, rendered as-is."""

    text: str

    def render(self) -> str:
        return self.text


@dataclass(frozen=True)
class NamedValue:
    """A simple reference, rendered as ``NAME:value``."""

    name: str
    value: Any

    def render(self) -> str:
        return f"{self.name.upper()}:{self.value}"


@dataclass(frozen=True)
class FormSummary:
    """A compound expression, summarised by its head and its value.

    Attributes:
        head: Source text of the callee, or the operator / node kind.
        arity: Number of sub-elements after the head. More than one is shown
            as ``HEAD...``.
        value: The evaluated result of the expression.
    """

    head: str
    arity: int
    value: Any

    def render(self) -> str:
        head = self.head.upper()
        if self.arity > 1:
            head += "..."
        return f"({head}):{self.value}"


TraceArgument = Union[Literal, NamedValue, FormSummary]


def format_message(arguments: Iterable[TraceArgument]) -> str:
    """Join the renderings of ``arguments``, each followed by a single space."""
    return "".join(f"{arg.render()} " for arg in arguments)
