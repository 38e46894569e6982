"""Load site configuration YAML into typed dataclasses."""

from __future__ import annotations

import logging
import typing as typ
from pathlib import Path

from ruamel.yaml import YAML

from essencekit._constants import DEFAULT_MAX_DEPTH

from .helpers import (
    _as_bool,
    _mapping,
    _optional_str,
    _string_list,
    _string_mapping,
)
from .models import (
    PLACEHOLDER_MODES,
    PostProcessConfig,
    RulesConfig,
    SiteConfig,
    SiteConfigError,
)

logger = logging.getLogger(__name__)


def load_site_config(
    path: Path, *, project_root: Path | None = None, missing_ok: bool = False
) -> SiteConfig:
    """Load the YAML configuration describing how a site is built.

    Parameters
    ----------
    path : Path
        Filesystem path to the configuration file (for example,
        ``essencekit.yaml``). JSON files load too, as YAML 1.2 is a superset.
    project_root : Path, optional
        Directory relative paths are resolved against. Defaults to the
        directory containing ``path``.
    missing_ok : bool, optional
        Return the default configuration instead of raising when ``path``
        does not exist.

    Returns
    -------
    SiteConfig
        Parsed site configuration with defaults applied.

    Raises
    ------
    FileNotFoundError
        If the configuration file does not exist and ``missing_ok`` is false.
    TypeError
        If the top-level YAML structure is not a mapping.
    SiteConfigError
        If a section has the wrong shape or an unknown placeholder mode.
    YAMLError
        If the YAML content cannot be parsed by the underlying loader.

    Examples
    --------
    >>> from pathlib import Path
    >>> config = load_site_config(Path("essencekit.yaml"))  # doctest: +SKIP
    >>> config.output_dir  # doctest: +SKIP
    PosixPath('public')
    """
    root = project_root if project_root is not None else path.parent
    if not path.exists():
        if missing_ok:
            logger.info("No config file found at %s; using defaults.", path)
            return SiteConfig(project_root=root)
        msg = f"Configuration file '{path}' not found."
        raise FileNotFoundError(msg)

    loader = YAML(typ="safe")
    loader.version = (1, 2)
    with path.open("r", encoding="utf-8") as handle:
        loaded = loader.load(handle) or {}
    if not isinstance(loaded, dict):  # pragma: no cover - config error guard
        msg = "Top-level YAML structure must be a mapping."
        raise TypeError(msg)
    return build_site_config(dict(loaded), project_root=root)


def build_site_config(
    raw: typ.Mapping[str, typ.Any], *, project_root: Path = Path()
) -> SiteConfig:
    """Build a :class:`SiteConfig` from an already parsed mapping."""
    defaults = SiteConfig()
    placeholders = _optional_str(raw.get("placeholders")) or defaults.placeholders
    if placeholders not in PLACEHOLDER_MODES:
        msg = (
            f"Unknown placeholder mode '{placeholders}'. "
            f"Expected one of: {', '.join(PLACEHOLDER_MODES)}"
        )
        raise SiteConfigError(msg)

    max_depth = raw.get("max_depth", DEFAULT_MAX_DEPTH)
    if not isinstance(max_depth, int) or isinstance(max_depth, bool) or max_depth < 1:
        msg = f"'max_depth' must be a positive integer, got {max_depth!r}."
        raise SiteConfigError(msg)

    auth = _mapping(raw.get("auth"), field="auth")
    return SiteConfig(
        project_root=project_root,
        components_dir=_path(raw, "components_dir", defaults.components_dir),
        output_dir=_path(raw, "output_dir", defaults.output_dir),
        assets_dir=_path(raw, "assets_dir", defaults.assets_dir),
        placeholders=placeholders,
        max_depth=max_depth,
        rules=_build_rules_config(_mapping(raw.get("rules"), field="rules")),
        post_process=_build_post_process_config(
            _mapping(_pick(raw, "post_process", "postProcess"), field="post_process")
        ),
        api_groups=_string_mapping(
            _pick(raw, "api_groups", "apiGroups"), field="api_groups"
        ),
        api_auth=_mapping(_pick(raw, "api_auth", "apiAuth"), field="api_auth"),
        auth_endpoint=_optional_str(auth.get("endpoint")),
    )


def _pick(raw: typ.Mapping[str, typ.Any], *keys: str) -> typ.Any:
    """Return the value of the first key present in ``raw``."""
    for key in keys:
        if key in raw:
            return raw[key]
    return None


def _path(raw: typ.Mapping[str, typ.Any], key: str, default: Path) -> Path:
    value = _optional_str(raw.get(key))
    return Path(value) if value else default


def _build_rules_config(payload: typ.Mapping[str, typ.Any]) -> RulesConfig:
    return RulesConfig(
        enabled=_as_bool(payload.get("enabled"), field="rules.enabled"),
        strict=_as_bool(payload.get("strict"), field="rules.strict"),
        sources=_string_list(payload.get("sources"), field="rules.sources"),
    )


def _build_post_process_config(
    payload: typ.Mapping[str, typ.Any],
) -> PostProcessConfig:
    return PostProcessConfig(
        enabled=_as_bool(payload.get("enabled"), field="post_process.enabled"),
        sources=_string_list(payload.get("sources"), field="post_process.sources"),
    )


__all__ = ["build_site_config", "load_site_config"]
