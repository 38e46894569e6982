"""Rule checks run against every rendered component.

A rule inspects the rendered markup and its descriptor and returns a failure
message, or a falsy value when the component passes. Rule sources may export:

- a plain function ``check(markup, descriptor)``; its name and docstring
  become the rule's name and description;
- an object (or mapping) with ``name``, ``description`` and ``check``;
- a list of either, or a module whose ``RULES`` attribute is such a list.

Everything is normalised into :class:`Rule` when the checker is built, so
running the rules never has to guess at shapes.
"""

from __future__ import annotations

import collections.abc as cabc
import dataclasses as dc
import inspect
import logging
import typing as typ
from types import ModuleType

from essencekit.errors import PluginLoadError

from . import load_source

if typ.TYPE_CHECKING:
    from pathlib import Path

    from essencekit.compiler.models import ComponentDescriptor
    from essencekit.config import RulesConfig

logger = logging.getLogger(__name__)

RuleCheck = cabc.Callable[[str, typ.Any], typ.Any]
UNNAMED_RULE = "unnamed-rule"


@dc.dataclass(frozen=True, slots=True)
class Rule:
    """A named check applied to rendered component markup."""

    name: str
    description: str
    check: RuleCheck


@dc.dataclass(frozen=True, slots=True)
class RuleFailure:
    """A rule that flagged a component, with the message it produced."""

    name: str
    description: str
    message: str

    def __str__(self) -> str:
        return f"{self.name}: {self.message}"


def _from_object(obj: typ.Any) -> Rule | None:
    if isinstance(obj, cabc.Mapping):
        check = obj.get("check")
        name = obj.get("name")
        description = obj.get("description")
    else:
        check = getattr(obj, "check", None)
        name = getattr(obj, "name", None)
        description = getattr(obj, "description", None)
    if not callable(check):
        return None
    return Rule(
        name=str(name or UNNAMED_RULE),
        description=str(description or ""),
        check=check,
    )


def coerce_rules(obj: typ.Any, source: str) -> list[Rule]:
    """Normalise whatever ``source`` exported into a list of rules.

    Raises
    ------
    PluginLoadError
        If ``obj`` (or an item inside it) is not a recognisable rule.
    """
    if isinstance(obj, ModuleType):
        exported = getattr(obj, "RULES", None)
        if exported is None:
            msg = f"Rule module {source!r} does not export RULES"
            raise PluginLoadError(msg)
        obj = exported
    if isinstance(obj, Rule):
        return [obj]
    if isinstance(obj, list | tuple):
        return [rule for item in obj for rule in coerce_rules(item, source)]
    rule = _from_object(obj)
    if rule is not None:
        return [rule]
    if callable(obj):
        name = getattr(obj, "__name__", UNNAMED_RULE).replace("_", "-")
        return [Rule(name=name, description=inspect.getdoc(obj) or "", check=obj)]
    msg = f"Rule source {source!r} exported an unsupported object: {obj!r}"
    raise PluginLoadError(msg)


class RuleChecker:
    """Load configured rules once and run them against rendered markup."""

    def __init__(self, config: RulesConfig, base_dir: Path) -> None:
        self.config = config
        self.base_dir = base_dir
        self.rules: list[Rule] = self._load() if config.enabled else []

    def _load(self) -> list[Rule]:
        rules: list[Rule] = []
        for source in self.config.sources:
            try:
                rules.extend(coerce_rules(load_source(source, self.base_dir), source))
            except PluginLoadError as exc:
                logger.warning("Failed to load rule source %s: %s", source, exc)
        logger.debug("Loaded %d rule(s).", len(rules))
        return rules

    def run(self, markup: str, descriptor: ComponentDescriptor) -> list[RuleFailure]:
        """Return the failures every loaded rule reports for ``descriptor``."""
        failures: list[RuleFailure] = []
        for rule in self.rules:
            try:
                result = rule.check(markup, descriptor)
            except Exception:  # noqa: BLE001
                logger.warning(
                    'Rule "%s" raised while checking %s; skipping it.',
                    rule.name,
                    descriptor.name,
                    exc_info=True,
                )
                continue
            if result:
                failures.append(RuleFailure(rule.name, rule.description, str(result)))
        return failures


__all__ = ["Rule", "RuleChecker", "RuleFailure", "coerce_rules"]
