"""Evaluate the embedded template language against a render scope.

One pass applies, in this order and over the whole markup string:

1. Conditionals: ``@if(expr) ... @else ... @endif``, nested to any depth.
2. Iterations: ``@each(item in expr) ... @end``.
3. Placeholders: ``@[dotted.key.path]``.

Conditionals are found by a scanner that tracks nesting depth, so an
``@else`` or ``@endif`` that belongs to an inner block never closes an outer
one. Iterations use a single flat regex pass instead. A loop body therefore
ends at the first ``@end`` it contains, and conditionals inside a body are
resolved before the loop variable exists. Keep loop bodies to placeholders.

Examples
--------
>>> parse_logic_blocks("@if(n > 1)many@else one@endif", {"n": 3})
'many'
>>> parse_logic_blocks("@each(t in tags)<i>@[t]</i>@end", {"tags": ["a", "b"]})
'<i>a</i><i>b</i>'
>>> parse_logic_blocks("Hi @[user.name]@[user.missing]", {"user": {"name": "Ada"}})
'Hi Ada'
"""

from __future__ import annotations

import collections.abc as cabc
import dataclasses as dc
import json
import logging
import re
import typing as typ

from .expressions import EXPRESSION_ERRORS, ExpressionEvaluator, default_evaluator

logger = logging.getLogger(__name__)

IF_OPEN = "@if("
ELSE_MARKER = "@else"
IF_CLOSE = "@endif"
EACH_PATTERN = re.compile(r"@each\((\w+)\s+in\s+([^\n]+?)\)([\s\S]*?)@end")
PLACEHOLDER_PATTERN = re.compile(r"@\[(.+?)\]")
UNRESOLVED_TEMPLATE = "[[UNRESOLVED:{path}]]"

Scope = cabc.Mapping[str, typ.Any]
PlaceholderStrategy = cabc.Callable[[str, Scope], str]


class _Missing:
    """Sentinel for a key path that does not resolve."""

    def __repr__(self) -> str:
        return "MISSING"


MISSING: typ.Any = _Missing()


@dc.dataclass(slots=True)
class ConditionalBlock:
    """One parsed ``@if`` block and the offsets it spans in its source."""

    condition: str
    true_branch: str
    false_branch: str
    start: int
    end: int


def scan_conditional(markup: str, start: int) -> ConditionalBlock | None:
    """Parse the conditional whose ``@if(`` marker sits at ``start``.

    Markers after the condition are visited in occurrence order: ``@if(``
    raises the depth, ``@endif`` lowers it, and only the first ``@else`` met
    at depth 1 splits the branches. Returns ``None`` when the condition has
    no closing parenthesis or the block is never closed.
    """
    cond_start = start + len(IF_OPEN)
    cond_end = markup.find(")", cond_start)
    if cond_end == -1:
        return None
    body_start = cond_end + 1
    depth = 1
    cursor = body_start
    else_at = -1
    while depth:
        marker, position = _next_marker(markup, cursor)
        if marker is None:
            return None
        if marker == IF_OPEN:
            depth += 1
        elif marker == ELSE_MARKER:
            if depth == 1 and else_at == -1:
                else_at = position
        else:
            depth -= 1
        cursor = position + len(marker)

    close_at = cursor - len(IF_CLOSE)
    if else_at == -1:
        true_branch, false_branch = markup[body_start:close_at], ""
    else:
        true_branch = markup[body_start:else_at]
        false_branch = markup[else_at + len(ELSE_MARKER) : close_at]
    return ConditionalBlock(
        condition=markup[cond_start:cond_end].strip(),
        true_branch=true_branch,
        false_branch=false_branch,
        start=start,
        end=cursor,
    )


def _next_marker(markup: str, cursor: int) -> tuple[str | None, int]:
    """Return the earliest conditional marker at or after ``cursor``."""
    found: tuple[str | None, int] = (None, -1)
    for marker in (IF_OPEN, ELSE_MARKER, IF_CLOSE):
        position = markup.find(marker, cursor)
        if position != -1 and (found[0] is None or position < found[1]):
            found = (marker, position)
    return found


def parse_if_blocks(
    markup: str, scope: Scope, evaluator: ExpressionEvaluator | None = None
) -> str:
    """Resolve every conditional block in ``markup`` against ``scope``."""
    evaluator = evaluator or default_evaluator
    output: list[str] = []
    index = 0
    while True:
        start = markup.find(IF_OPEN, index)
        if start == -1:
            output.append(markup[index:])
            break
        output.append(markup[index:start])
        block = scan_conditional(markup, start)
        if block is None:
            logger.warning("Unclosed @if at offset %d; left unrendered.", start)
            output.append(markup[start:])
            break
        if _is_truthy(block.condition, scope, evaluator):
            branch = block.true_branch
        else:
            branch = block.false_branch
        output.append(parse_if_blocks(branch, scope, evaluator))
        index = block.end
    return "".join(output)


def _is_truthy(condition: str, scope: Scope, evaluator: ExpressionEvaluator) -> bool:
    try:
        return bool(evaluator.evaluate(condition, scope))
    except EXPRESSION_ERRORS as exc:
        logger.warning("Invalid condition %r treated as false: %s", condition, exc)
        return False


def parse_each_blocks(
    markup: str,
    scope: Scope,
    evaluator: ExpressionEvaluator | None = None,
    substitute: PlaceholderStrategy | None = None,
) -> str:
    """Expand every ``@each`` block, substituting placeholders per element."""
    evaluator = evaluator or default_evaluator
    substitute = substitute or replace_placeholders

    def _expand(match: re.Match[str]) -> str:
        name, expression, body = match.groups()
        try:
            collection = evaluator.evaluate(expression, scope)
        except EXPRESSION_ERRORS as exc:
            logger.warning(
                "Failed to evaluate @each(%s in %s): %s", name, expression, exc
            )
            return ""
        if not isinstance(collection, (list, tuple)):
            logger.warning(
                "@each(%s in %s) expected a sequence, got %s",
                name,
                expression,
                type(collection).__name__,
            )
            return ""
        return "".join(substitute(body, {**scope, name: item}) for item in collection)

    return EACH_PATTERN.sub(_expand, markup)


def resolve_path(scope: Scope, path: str) -> typ.Any:
    """Walk a dotted key path through ``scope``, returning ``MISSING`` on a miss.

    Mappings are indexed by key and sequences by integer segments, so both
    ``user.name`` and ``items.0.title`` resolve.
    """
    current: typ.Any = scope
    for segment in path.strip().split("."):
        if isinstance(current, cabc.Mapping):
            if segment not in current:
                return MISSING
            current = current[segment]
        elif isinstance(current, (list, tuple)) and segment.isdigit():
            position = int(segment)
            if position >= len(current):
                return MISSING
            current = current[position]
        else:
            return MISSING
    return current


def stringify(value: typ.Any) -> str:
    """Render a scope value the way it should appear in markup."""
    match value:
        case None:
            return ""
        case bool():
            return "true" if value else "false"
        case str():
            return value
        case list() | tuple():
            return ",".join(stringify(item) for item in value)
        case cabc.Mapping():
            return json.dumps(value, default=str)
        case _:
            return str(value)


def replace_placeholders(markup: str, scope: Scope) -> str:
    """Substitute ``@[path]`` placeholders, leaving unresolved paths empty."""

    def _replace(match: re.Match[str]) -> str:
        value = resolve_path(scope, match.group(1))
        return "" if value is MISSING else stringify(value)

    return PLACEHOLDER_PATTERN.sub(_replace, markup)


def replace_placeholders_strict(markup: str, scope: Scope) -> str:
    """Substitute ``@[path]`` placeholders, marking unresolved paths visibly."""

    def _replace(match: re.Match[str]) -> str:
        path = match.group(1)
        value = resolve_path(scope, path)
        if value is MISSING:
            return UNRESOLVED_TEMPLATE.format(path=path)
        return stringify(value)

    return PLACEHOLDER_PATTERN.sub(_replace, markup)


class LogicEngine:
    """Bundle an evaluator and a placeholder strategy for repeated passes."""

    def __init__(
        self, evaluator: ExpressionEvaluator | None = None, *, strict: bool = False
    ) -> None:
        self.evaluator = evaluator or default_evaluator
        self.strict = strict
        self.substitute: PlaceholderStrategy = (
            replace_placeholders_strict if strict else replace_placeholders
        )

    def render(self, markup: str, scope: Scope) -> str:
        """Run conditionals, then iterations, then placeholders over ``markup``."""
        result = parse_if_blocks(markup, scope, self.evaluator)
        result = parse_each_blocks(result, scope, self.evaluator, self.substitute)
        return self.substitute(result, scope)


def parse_logic_blocks(
    markup: str,
    scope: Scope,
    *,
    evaluator: ExpressionEvaluator | None = None,
    strict: bool = False,
) -> str:
    """Run one full logic pass over ``markup``; see :class:`LogicEngine`."""
    return LogicEngine(evaluator, strict=strict).render(markup, scope)


__all__ = [
    "EACH_PATTERN",
    "MISSING",
    "PLACEHOLDER_PATTERN",
    "ConditionalBlock",
    "LogicEngine",
    "parse_each_blocks",
    "parse_if_blocks",
    "parse_logic_blocks",
    "replace_placeholders",
    "replace_placeholders_strict",
    "resolve_path",
    "scan_conditional",
    "stringify",
]
