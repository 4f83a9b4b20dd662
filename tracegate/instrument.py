"""instrument.py - Debug-only trace call sites.

``trace(...)`` marks a diagnostic in application code. Whether it costs
anything is decided once, when the enclosing function is decorated with
``@traced``:

    LogLevel != DEBUG   Every ``trace(...)`` call in the function is replaced
                        by the constant ``None`` before the function is
                        recompiled. No argument is evaluated, no reference to
                        ``trace`` remains in the bytecode, and a statement-level
                        call disappears entirely.

    LogLevel == DEBUG   Every ``trace(...)`` call is rewritten to
                        ``trace.emit("<qualname>", ...)`` where each argument
                        is wrapped in its rendering rule (``trace.literal``,
                        ``trace.named`` or ``trace.form``), chosen from the
                        argument's syntax. The qualified name of the enclosing
                        function is baked in as a string constant.

Usage:
    from tracegate import trace, traced

    @traced
    def load_index(path):
        entries = read_entries(path)
        trace("loaded", path, len(entries))   # loaded PATH:/tmp/x (LEN):12
        return entries

``@traced`` must be the innermost decorator (directly above ``def``) so that
it sees the function as written. Other decorators above it apply to the
rewritten function as usual.

Note:
    A call inside a ``@traced`` function is a call site only if its callee
    resolves, when the function is decorated, to a ``Tracer``: a global or
    closure name bound to one, or an attribute of an imported module such as
    ``tracegate.trace``. Other calls, ``obj.trace()`` on arbitrary objects
    included, are left alone.

    ``trace(...)`` in a function without ``@traced`` still works, as a plain
    runtime call. It returns immediately unless tracing is enabled, but its
    arguments have already been evaluated by then.
"""

import ast
import copy
import functools
import inspect
import logging
import types
from typing import Any, Callable, List, Optional, Tuple, Union

from .arguments import FormSummary, Literal, NamedValue, TraceArgument, format_message
from .config import LogLevel, tracing_enabled
from .sinks import TraceSink, get_default_sink

_LOGGER = logging.getLogger("tracegate")

OPTIONS = frozenset({"sink", "level"})

_FACTORY = "__tracegate_factory__"

_OPERATORS = {
    ast.Add: "+",
    ast.Sub: "-",
    ast.Mult: "*",
    ast.MatMult: "@",
    ast.Div: "/",
    ast.FloorDiv: "//",
    ast.Mod: "%",
    ast.Pow: "**",
    ast.LShift: "<<",
    ast.RShift: ">>",
    ast.BitOr: "|",
    ast.BitXor: "^",
    ast.BitAnd: "&",
    ast.And: "and",
    ast.Or: "or",
    ast.Not: "not",
    ast.Invert: "~",
    ast.UAdd: "+",
    ast.USub: "-",
    ast.Eq: "==",
    ast.NotEq: "!=",
    ast.Lt: "<",
    ast.LtE: "<=",
    ast.Gt: ">",
    ast.GtE: ">=",
    ast.Is: "is",
    ast.IsNot: "is not",
    ast.In: "in",
    ast.NotIn: "not in",
}


class TraceConstructionError(SyntaxError):
    """A function or one of its trace call sites cannot be instrumented.

    Raised by ``@traced`` while decorating, never by the traced function
    itself.
    """


class Tracer:
    """The object bound to ``trace``.

    Rewritten call sites use ``emit`` and the three wrapping helpers.
    Calling the tracer directly is the runtime fallback for code that is not
    decorated with ``@traced``.
    """

    def __call__(
        self,
        *arguments: Any,
        sink: Optional[TraceSink] = None,
        level: Union[LogLevel, str] = LogLevel.DEBUG,
    ) -> None:
        if not tracing_enabled():
            return None
        self.emit(
            _caller_name(),
            *(_runtime_argument(arg) for arg in arguments),
            sink=sink,
            level=level,
        )
        return None

    def emit(
        self,
        source: str,
        *arguments: TraceArgument,
        sink: Optional[TraceSink] = None,
        level: Union[LogLevel, str] = LogLevel.DEBUG,
    ) -> None:
        """Render ``arguments`` and hand the message to a sink.

        Args:
            source: Qualified name of the function containing the call site.
            *arguments: Tagged arguments, rendered in order.
            sink: Destination; defaults to ``get_default_sink()``.
            level: Severity passed through to the sink.

        Returns:
            None, always. A failing sink is logged on the ``tracegate``
            logger and does not reach the caller.
        """
        target = get_default_sink() if sink is None else sink
        try:
            target.display(source, format_message(arguments), LogLevel.parse(level))
        except Exception:
            _LOGGER.exception("trace sink %r failed for %s", target, source)
        return None

    def literal(self, text: str) -> Literal:
        return Literal(text)

    def named(self, name: str, value: Any) -> NamedValue:
        return NamedValue(name, value)

    def form(self, head: str, arity: int, value: Any) -> FormSummary:
        return FormSummary(head, arity, value)


trace = Tracer()


def _caller_name() -> str:
    # Two frames up: _caller_name <- Tracer.__call__ <- call site.
    frame = inspect.currentframe()
    try:
        caller = frame.f_back.f_back if frame is not None else None
        if caller is None:
            return "<unknown>"
        code = caller.f_code
        return getattr(code, "co_qualname", code.co_name)
    finally:
        del frame


def _runtime_argument(value: Any) -> TraceArgument:
    if isinstance(value, (Literal, NamedValue, FormSummary)):
        return value
    return Literal(value if isinstance(value, str) else str(value))


def summarise(node: ast.expr) -> Tuple[str, int]:
    """Return the ``(head, arity)`` summary of a compound expression node.

    Calls are summarised by their callee's source text and argument count,
    operator expressions by their operator and operand count, and anything
    else by its node type and number of direct sub-expressions.
    """
    if isinstance(node, ast.Call):
        return ast.unparse(node.func), len(node.args) + len(node.keywords)
    if isinstance(node, ast.BinOp):
        return _operator(node.op), 2
    if isinstance(node, ast.BoolOp):
        return _operator(node.op), len(node.values)
    if isinstance(node, ast.UnaryOp):
        return _operator(node.op), 1
    if isinstance(node, ast.Compare):
        return _operator(node.ops[0]), len(node.comparators) + 1
    children = [child for child in ast.iter_child_nodes(node) if isinstance(child, ast.expr)]
    return type(node).__name__.lower(), len(children)


def _operator(op: ast.AST) -> str:
    return _OPERATORS.get(type(op), type(op).__name__.lower())


class TraceRewriter(ast.NodeTransformer):
    """Rewrite the ``trace(...)`` call sites of one function definition.

    Attributes:
        enabled (bool): Whether call sites are expanded (True) or removed.
        rewritten (int): Number of call sites seen so far.
    """

    def __init__(
        self,
        root: ast.AST,
        qualname: str,
        enabled: bool,
        filename: str,
        resolve: Callable[[ast.expr], Any],
    ) -> None:
        self.enabled = enabled
        self.rewritten = 0
        self._root = root
        self._filename = filename
        self._resolve = resolve
        # (qualified name, is a function scope)
        self._scopes: List[Tuple[str, bool]] = [(qualname, True)]

    # ---------------------------------------------------------------------- #
    # Scope tracking for the baked-in source name
    # ---------------------------------------------------------------------- #

    def _nested(self, node: ast.AST, name: str, is_function: bool) -> ast.AST:
        parent, parent_is_function = self._scopes[-1]
        sep = ".<locals>." if parent_is_function else "."
        self._scopes.append((f"{parent}{sep}{name}", is_function))
        try:
            return self.generic_visit(node)
        finally:
            self._scopes.pop()

    def visit_FunctionDef(self, node: ast.FunctionDef) -> ast.AST:
        if node is self._root:
            return self.generic_visit(node)
        return self._nested(node, node.name, True)

    visit_AsyncFunctionDef = visit_FunctionDef

    def visit_ClassDef(self, node: ast.ClassDef) -> ast.AST:
        return self._nested(node, node.name, False)

    def visit_Lambda(self, node: ast.Lambda) -> ast.AST:
        return self._nested(node, "<lambda>", True)

    # ---------------------------------------------------------------------- #
    # Call sites
    # ---------------------------------------------------------------------- #

    def visit_Call(self, node: ast.Call) -> ast.AST:
        if not isinstance(self._resolve(node.func), Tracer):
            return self.generic_visit(node)
        self._check(node)
        self.rewritten += 1
        if not self.enabled:
            return ast.copy_location(ast.Constant(value=None), node)

        node = self.generic_visit(node)
        callee = node.func
        emit = ast.Call(
            func=_member(callee, "emit"),
            args=[ast.Constant(self._scopes[-1][0])]
            + [self._tag(callee, arg) for arg in node.args],
            keywords=node.keywords,
        )
        return ast.copy_location(emit, node)

    def _tag(self, callee: ast.expr, arg: ast.expr) -> ast.expr:
        if isinstance(arg, ast.Constant):
            text = arg.value if isinstance(arg.value, str) else str(arg.value)
            wrapped = _helper(callee, "literal", ast.Constant(text))
        elif isinstance(arg, ast.JoinedStr):
            # f-strings are literal text with interpolated values
            wrapped = _helper(callee, "literal", arg)
        elif isinstance(arg, (ast.Name, ast.Attribute)):
            wrapped = _helper(callee, "named", ast.Constant(ast.unparse(arg)), arg)
        else:
            head, arity = summarise(arg)
            wrapped = _helper(callee, "form", ast.Constant(head), ast.Constant(arity), arg)
        return ast.copy_location(wrapped, arg)

    def _check(self, node: ast.Call) -> None:
        for arg in node.args:
            if isinstance(arg, ast.Starred):
                raise self._error("trace() does not accept *arguments", arg)
        for kw in node.keywords:
            if kw.arg is None:
                raise self._error("trace() does not accept **options", kw)
            if kw.arg not in OPTIONS:
                raise self._error(f"unknown trace() option {kw.arg!r}", kw)

    def _error(self, msg: str, node: ast.AST) -> TraceConstructionError:
        return TraceConstructionError(
            msg,
            (
                self._filename,
                getattr(node, "lineno", None),
                getattr(node, "col_offset", 0) + 1,
                None,
            ),
        )


def _resolver(func: types.FunctionType) -> Callable[[ast.expr], Any]:
    """Return a callable that looks up a callee expression in ``func``'s scope.

    Names are resolved through the closure cells, then the globals. Names
    bound locally in ``func`` resolve to nothing, as does any attribute whose
    owner is not a module.
    """
    code = func.__code__
    local = set(code.co_varnames) | set(code.co_cellvars)
    cells = dict(zip(code.co_freevars, func.__closure__ or ()))

    def resolve(node: ast.expr) -> Any:
        if isinstance(node, ast.Name):
            if node.id in cells:
                try:
                    return cells[node.id].cell_contents
                except ValueError:
                    return None
            if node.id in local:
                return None
            return func.__globals__.get(node.id)
        if isinstance(node, ast.Attribute):
            owner = resolve(node.value)
            if isinstance(owner, types.ModuleType):
                return getattr(owner, node.attr, None)
        return None

    return resolve


def _member(callee: ast.expr, attr: str) -> ast.Attribute:
    return ast.Attribute(value=copy.deepcopy(callee), attr=attr, ctx=ast.Load())


def _helper(callee: ast.expr, attr: str, *args: ast.expr) -> ast.Call:
    return ast.Call(func=_member(callee, attr), args=list(args), keywords=[])


def traced(func: Callable) -> Callable:
    """Decorator that compiles the ``trace(...)`` call sites of ``func``.

    The function's source is parsed, its trace call sites are expanded or
    removed according to the current log level, and a new function is built
    from the result with the original globals, closure cells, defaults and
    metadata. A function without trace call sites is returned unchanged.

    Args:
        func: A plain ``def`` function or method (sync, async or generator)
            whose source is available.

    Returns:
        The recompiled function.

    Raises:
        TraceConstructionError: If the source is unavailable, ``func`` is not
            a ``def`` function, another decorator already wrapped it, or a
            call site uses ``*args``, ``**kwargs`` or an unknown option.

    Example:
        >>> @traced
        ... def divide(a, b):
        ...     trace(a, b)
        ...     return a / b
    """
    if not isinstance(func, types.FunctionType) or func.__name__ == "<lambda>":
        raise TraceConstructionError(f"@traced expects a def function, got {func!r}")
    if hasattr(func, "__wrapped__"):
        raise TraceConstructionError(
            f"@traced must be the innermost decorator of {func.__qualname__}"
        )

    filename = func.__code__.co_filename
    fndef = _parse_definition(func, filename)
    fndef.decorator_list = []

    rewriter = TraceRewriter(
        fndef, func.__qualname__, tracing_enabled(), filename, _resolver(func)
    )
    rewriter.visit(fndef)
    if not rewriter.rewritten:
        return func

    module = _enclose(fndef, func.__code__.co_freevars)
    ast.fix_missing_locations(module)
    code = _find_code(compile(module, filename, "exec"), func.__code__.co_name)
    if code is None:
        raise TraceConstructionError(
            f"recompiled code for {func.__qualname__} not found"
        )

    cells = dict(zip(func.__code__.co_freevars, func.__closure__ or ()))
    closure = tuple(cells[name] for name in code.co_freevars) or None
    rebuilt = types.FunctionType(code, func.__globals__, func.__name__, func.__defaults__, closure)
    rebuilt.__kwdefaults__ = func.__kwdefaults__
    functools.update_wrapper(rebuilt, func)

    _LOGGER.debug(
        "%s %d trace call(s) in %s",
        "expanded" if rewriter.enabled else "removed",
        rewriter.rewritten,
        func.__qualname__,
    )
    return rebuilt


def _parse_definition(func: Callable, filename: str) -> ast.AST:
    try:
        lines, first_line = inspect.getsourcelines(func)
    except (OSError, TypeError) as exc:
        raise TraceConstructionError(
            f"cannot read the source of {func.__qualname__}"
        ) from exc

    source = "".join(lines)
    indented = source[:1].isspace()
    if indented:
        # Methods and nested functions: parse under a dummy block instead of
        # dedenting, which breaks on unindented multi-line strings.
        source = "if 1:\n" + source
    tree = ast.parse(source, filename=filename)
    ast.increment_lineno(tree, first_line - (2 if indented else 1))

    node = tree.body[0].body[0] if indented else tree.body[0]
    if not isinstance(node, (ast.FunctionDef, ast.AsyncFunctionDef)):
        raise TraceConstructionError(f"@traced expects a def function: {func.__qualname__}")
    return node


def _enclose(fndef: ast.AST, freevars: Tuple[str, ...]) -> ast.Module:
    # Free variables only stay free if the definition is compiled inside a
    # scope that binds them; the factory is never called.
    # TODO: methods using private names (self.__x) lose class name mangling
    # here; wrap them in a ClassDef named after the owning class instead.
    if not freevars:
        return ast.Module(body=[fndef], type_ignores=[])
    factory = ast.parse(f"def {_FACTORY}({', '.join(freevars)}):\n    pass").body[0]
    factory.body = [fndef, ast.Return(value=ast.Name(id=fndef.name, ctx=ast.Load()))]
    return ast.Module(body=[factory], type_ignores=[])


def _find_code(code: types.CodeType, name: str) -> Optional[types.CodeType]:
    for const in code.co_consts:
        if not isinstance(const, types.CodeType):
            continue
        if const.co_name == name:
            return const
        found = _find_code(const, name)
        if found is not None:
            return found
    return None
