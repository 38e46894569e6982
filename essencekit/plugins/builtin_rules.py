"""Rules shipped with essencekit.

Enable them from ``essencekit.yaml``::

    rules:
      enabled: true
      sources:
        - essencekit.plugins.builtin_rules
"""

from __future__ import annotations

import typing as typ

from .rules import Rule

if typ.TYPE_CHECKING:
    import collections.abc as cabc

    from essencekit.compiler.models import ComponentDescriptor


def _require_config_key(
    key: str,
) -> cabc.Callable[[str, ComponentDescriptor], str | None]:
    def check(markup: str, descriptor: ComponentDescriptor) -> str | None:
        if not descriptor.config.get(key):
            return f"Missing {key} in component: {descriptor.name}"
        return None

    return check


RULES = [
    Rule(
        name="title-required",
        description="Component config must have a title.",
        check=_require_config_key("title"),
    ),
    Rule(
        name="description-required",
        description="Component config must have a description.",
        check=_require_config_key("description"),
    ),
]

__all__ = ["RULES"]
