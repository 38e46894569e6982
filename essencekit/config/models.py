"""Typed dataclasses describing essencekit site configuration."""

from __future__ import annotations

import dataclasses as dc
import typing as typ
from pathlib import Path

from essencekit._constants import DEFAULT_MAX_DEPTH

PLACEHOLDER_MODES = ("silent", "strict")


class SiteConfigError(ValueError):
    """Raised when the site configuration is invalid or incomplete."""


@dc.dataclass(slots=True)
class RulesConfig:
    """Rule checking applied to every rendered component."""

    enabled: bool = False
    strict: bool = False
    sources: list[str] = dc.field(default_factory=list)


@dc.dataclass(slots=True)
class PostProcessConfig:
    """Post-processors applied to rendered markup before it is written."""

    enabled: bool = False
    sources: list[str] = dc.field(default_factory=list)


@dc.dataclass(slots=True)
class SiteConfig:
    """A fully resolved site configuration.

    Attributes
    ----------
    project_root : Path
        Directory every relative path and plugin source is resolved against.
    components_dir : Path
        Root scanned for project components.
    output_dir : Path
        Build root; each environment is written to ``output_dir / env``.
    assets_dir : Path
        Project assets copied to ``output_dir / env / "assets"``.
    placeholders : str
        ``"silent"`` renders unresolved placeholders empty, ``"strict"``
        renders a visible ``[[UNRESOLVED:path]]`` marker instead.
    max_depth : int
        Longest chain of nested/base components a render may follow.
    rules : RulesConfig
        Rule checking settings.
    post_process : PostProcessConfig
        Post-processing settings.
    api_groups : dict[str, str]
        Base URL per API group used by component data sources.
    api_auth : dict[str, dict[str, str]]
        Per-group auth settings; ``token`` names an environment variable.
    auth_endpoint : str | None
        Login endpoint used by the injected client auth helper.
    """

    project_root: Path = Path()
    components_dir: Path = Path("components")
    output_dir: Path = Path("public")
    assets_dir: Path = Path("assets")
    placeholders: str = "silent"
    max_depth: int = DEFAULT_MAX_DEPTH
    rules: RulesConfig = dc.field(default_factory=RulesConfig)
    post_process: PostProcessConfig = dc.field(default_factory=PostProcessConfig)
    api_groups: dict[str, str] = dc.field(default_factory=dict)
    api_auth: dict[str, dict[str, typ.Any]] = dc.field(default_factory=dict)
    auth_endpoint: str | None = None

    @property
    def strict_placeholders(self) -> bool:
        """Return ``True`` when unresolved placeholders should stay visible."""
        return self.placeholders == "strict"

    def resolve(self, path: Path) -> Path:
        """Return ``path`` anchored at the project root when it is relative."""
        return path if path.is_absolute() else self.project_root / path

    def is_strict_build(self, env: str) -> bool:
        """Return ``True`` when rule failures should abort a build for ``env``."""
        return env == "prod" or self.rules.strict


__all__ = [
    "PLACEHOLDER_MODES",
    "PostProcessConfig",
    "RulesConfig",
    "SiteConfig",
    "SiteConfigError",
]
