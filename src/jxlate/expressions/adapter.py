"""Expression adapter - compiles and evaluates Jinja2 expressions."""

from __future__ import annotations

import logging
from collections.abc import Mapping
from dataclasses import dataclass, field
from typing import Any, Callable, Dict, Optional

from jinja2 import (
    ChainableUndefined,
    Environment,
    StrictUndefined,
    TemplateError,
    Undefined,
    UndefinedError,
)
from jinja2.environment import TemplateExpression

from jxlate.exceptions import CompilationError, ConfigurationError, EvaluationError
from jxlate.expressions.extensions import (
    RESERVED_NAMES,
    BinaryOperatorExtension,
    OperatorSpec,
)

log = logging.getLogger(__name__)


class ComparableUndefined(ChainableUndefined):
    """Undefined value that orders as false against anything.

    Lets conditions such as ``age > 25`` evaluate to False on records
    without ``age`` instead of failing. Arithmetic and calls still raise.
    """

    __slots__ = ()

    def __lt__(self, other: Any) -> bool:
        return False

    __le__ = __gt__ = __ge__ = __lt__


@dataclass(frozen=True)
class CompiledExpression:
    """An expression compiled once and evaluated many times."""

    source: str
    _expression: TemplateExpression = field(repr=False, compare=False)


class ExpressionAdapter:
    """Owns a Jinja2 environment and the names registered on it.

    Functions become Jinja globals (``concat(a, b)``), transforms become
    filters (``name|upper``) and binary operators are handled by
    ``BinaryOperatorExtension`` (``age plus 10``).

    Each engine builds its own adapter. When one adapter is shared between
    engines, registering a name twice keeps the latest registration.
    Filters and operators are resolved at compile time, so they must be
    registered before compiling expressions that use them.

    Missing names resolve to absent, and ordering comparisons against
    them are False.

    Args:
        strict: When True, names missing from the data raise instead of
            resolving to an absent value.
    """

    def __init__(self, strict: bool = False):
        self.strict = strict
        self.env = Environment(
            extensions=[BinaryOperatorExtension],
            undefined=StrictUndefined if strict else ComparableUndefined,
            autoescape=False,
        )

    def add_function(self, name: str, fn: Callable[..., Any]) -> None:
        self._check_name(name, "function")
        self.env.globals[name] = fn

    def add_transform(self, name: str, fn: Callable[..., Any]) -> None:
        self._check_name(name, "transform")
        self.env.filters[name] = fn

    def add_binary_operator(
        self, name: str, precedence: int, fn: Callable[[Any, Any], Any]
    ) -> None:
        self._check_name(name, "binary operator")
        self.env.binary_operators[name] = OperatorSpec(precedence, fn)  # type: ignore[attr-defined]

    def register(
        self,
        functions: Optional[Dict[str, Callable[..., Any]]] = None,
        transforms: Optional[Dict[str, Callable[..., Any]]] = None,
        binary_ops: Optional[Dict[str, Any]] = None,
    ) -> None:
        """Register several names at once.

        ``binary_ops`` values are anything with ``precedence`` and ``fn``
        attributes, such as ``jxlate.config.BinaryOperator``.
        """
        for name, fn in (functions or {}).items():
            self.add_function(name, fn)
        for name, fn in (transforms or {}).items():
            self.add_transform(name, fn)
        for name, op in (binary_ops or {}).items():
            self.add_binary_operator(name, op.precedence, op.fn)
        log.debug(
            "Registered %d functions, %d transforms, %d binary operators",
            len(functions or {}),
            len(transforms or {}),
            len(binary_ops or {}),
        )

    def compile(self, text: str) -> CompiledExpression:
        """Compile expression text.

        Raises:
            CompilationError: If the text is not a valid expression.
        """
        try:
            expression = self.env.compile_expression(text, undefined_to_none=False)
        except TemplateError as e:
            raise CompilationError(text, str(e)) from e
        return CompiledExpression(source=text, _expression=expression)

    def evaluate(self, compiled: CompiledExpression, data: Any, **extra: Any) -> Any:
        """Evaluate a compiled expression against one data record.

        Non-mapping records (list elements such as plain strings) expose no
        names. Undefined results come back as None.

        Raises:
            EvaluationError: Wrapping whatever the expression raised.
        """
        scope = dict(data) if isinstance(data, Mapping) else {}
        scope.update(extra)
        try:
            result = compiled._expression(scope)
            if isinstance(result, Undefined):
                if self.strict:
                    raise UndefinedError(f"'{compiled.source}' is undefined")
                return None
            return result
        except Exception as e:
            raise EvaluationError(compiled.source, e) from e

    def evaluate_string(self, text: str, data: Any, **extra: Any) -> Any:
        return self.evaluate(self.compile(text), data, **extra)

    def _check_name(self, name: str, what: str) -> None:
        if not isinstance(name, str) or not name.isidentifier():
            raise ConfigurationError(f"Invalid {what} name: {name!r}")
        if name in RESERVED_NAMES:
            raise ConfigurationError(f"Reserved {what} name: {name!r}")
