"""Sandboxed evaluation of template conditions and collection expressions.

``@if(...)`` conditions and ``@each(... in ...)`` collections are Jinja
expressions evaluated against the render scope, e.g. ``user.admin and
posts|length > 2``. Expressions run in a :class:`SandboxedEnvironment`, so
templates can read data but cannot reach into Python internals.

Compiled expressions are cached by their literal text. Scopes differ between
calls, so only the compiled callable is reused; values are computed afresh
every time.

Examples
--------
>>> evaluator = ExpressionEvaluator()
>>> evaluator.evaluate("count > 1", {"count": 2})
True
>>> evaluator.evaluate("items[0].name", {"items": [{"name": "a"}]})
'a'
"""

from __future__ import annotations

import typing as typ

from jinja2 import TemplateError
from jinja2.sandbox import SandboxedEnvironment

if typ.TYPE_CHECKING:
    import collections.abc as cabc

    from jinja2.environment import TemplateExpression

EXPRESSION_ERRORS: tuple[type[Exception], ...] = (
    TemplateError,
    ArithmeticError,
    AttributeError,
    KeyError,
    IndexError,
    TypeError,
    ValueError,
)


class ExpressionEvaluator:
    """Compile and evaluate expressions with a per-text compilation cache."""

    def __init__(self, environment: SandboxedEnvironment | None = None) -> None:
        self.environment = environment or SandboxedEnvironment()
        self._compiled: dict[str, TemplateExpression] = {}

    def compile(self, expression: str) -> TemplateExpression:
        """Return the compiled form of ``expression``, compiling at most once."""
        compiled = self._compiled.get(expression)
        if compiled is None:
            compiled = self.environment.compile_expression(
                expression, undefined_to_none=False
            )
            self._compiled[expression] = compiled
        return compiled

    def evaluate(self, expression: str, scope: cabc.Mapping[str, typ.Any]) -> typ.Any:
        """Evaluate ``expression`` with ``scope`` as its variable namespace.

        Raises
        ------
        TemplateError
            When the expression cannot be parsed or touches an undefined value
            in an unsupported way.
        ArithmeticError, TypeError, ValueError, ...
            Whatever the evaluated operation raises; see ``EXPRESSION_ERRORS``.
        """
        return self.compile(expression)(scope)

    def cache_size(self) -> int:
        """Return the number of distinct expressions compiled so far."""
        return len(self._compiled)

    def clear(self) -> None:
        """Drop every cached compilation."""
        self._compiled.clear()


default_evaluator = ExpressionEvaluator()


__all__ = ["EXPRESSION_ERRORS", "ExpressionEvaluator", "default_evaluator"]
