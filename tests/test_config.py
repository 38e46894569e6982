"""Unit tests for the site configuration loader."""

from __future__ import annotations

import typing as typ
from pathlib import Path
from textwrap import dedent

import pytest

from essencekit.config import (
    SiteConfig,
    SiteConfigError,
    build_site_config,
    load_site_config,
)

if typ.TYPE_CHECKING:
    import collections.abc as cabc


def _write(path: Path, text: str) -> Path:
    path.write_text(dedent(text).strip() + "\n", encoding="utf-8")
    return path


def test_load_site_config_reads_every_section(tmp_path: Path) -> None:
    """All documented keys should land on the typed config."""
    config_path = _write(
        tmp_path / "essencekit.yaml",
        """
        components_dir: src/components
        output_dir: dist
        assets_dir: static
        placeholders: strict
        max_depth: 12
        rules:
          enabled: true
          strict: false
          sources:
            - essencekit.plugins.builtin_rules
        post_process:
          enabled: true
          sources: essencekit.plugins.minify:minify_html
        api_groups:
          cms: https://cms.example
        api_auth:
          cms:
            token: CMS_TOKEN
        auth:
          endpoint: /api/login
        """,
    )

    config = load_site_config(config_path)

    assert config.project_root == tmp_path, "expected the config's folder as root"
    assert config.components_dir == Path("src/components"), "unexpected components"
    assert config.output_dir == Path("dist"), "unexpected output_dir"
    assert config.assets_dir == Path("static"), "unexpected assets_dir"
    assert config.strict_placeholders, "expected strict placeholders"
    assert config.max_depth == 12, f"unexpected max_depth {config.max_depth}"
    assert config.rules.enabled, "expected rules to be enabled"
    assert config.rules.sources == ["essencekit.plugins.builtin_rules"], (
        f"unexpected rule sources {config.rules.sources!r}"
    )
    assert config.post_process.sources == ["essencekit.plugins.minify:minify_html"], (
        "expected a single source string to become a list"
    )
    assert config.api_groups == {"cms": "https://cms.example"}, "unexpected groups"
    assert config.api_auth == {"cms": {"token": "CMS_TOKEN"}}, "unexpected api auth"
    assert config.auth_endpoint == "/api/login", "unexpected auth endpoint"


def test_missing_config_uses_defaults_when_allowed(tmp_path: Path) -> None:
    """missing_ok returns defaults anchored at the project root."""
    config = load_site_config(tmp_path / "absent.yaml", missing_ok=True)

    assert config == SiteConfig(project_root=tmp_path), f"unexpected {config!r}"
    assert not config.strict_placeholders, "expected silent placeholders by default"


def test_missing_config_raises_by_default(tmp_path: Path) -> None:
    """Without missing_ok an absent file is an error."""
    with pytest.raises(FileNotFoundError):
        load_site_config(tmp_path / "absent.yaml")


def test_json_config_loads_with_camel_case_keys(tmp_path: Path) -> None:
    """JSON is valid YAML 1.2, and camelCase section names are accepted."""
    config_path = tmp_path / "config.json"
    config_path.write_text(
        '{"postProcess": {"enabled": true, "sources": ["a.b"]},'
        ' "apiGroups": {"x": "https://x.example"}}',
        encoding="utf-8",
    )

    config = load_site_config(config_path)

    assert config.post_process.enabled, "expected postProcess to be read"
    assert config.api_groups == {"x": "https://x.example"}, "expected apiGroups"


@pytest.mark.parametrize(
    ("raw", "message"),
    [
        ({"placeholders": "loud"}, "Unknown placeholder mode"),
        ({"max_depth": 0}, "max_depth"),
        ({"max_depth": True}, "max_depth"),
        ({"rules": ["x"]}, "'rules' must be a mapping"),
        ({"rules": {"enabled": "yes"}}, "rules.enabled"),
        ({"post_process": {"sources": 3}}, "post_process.sources"),
    ],
)
def test_invalid_values_raise_site_config_error(
    raw: cabc.Mapping[str, typ.Any], message: str
) -> None:
    """Bad shapes are rejected with a message naming the field."""
    with pytest.raises(SiteConfigError, match=message):
        build_site_config(raw)


@pytest.mark.parametrize(
    ("env", "strict_rules", "expected"),
    [
        ("dev", False, False),
        ("prod", False, True),
        ("staging", True, True),
    ],
)
def test_strict_build_follows_env_and_rules(
    env: str, strict_rules: bool, expected: bool
) -> None:
    """Production builds and rules.strict both make rule failures fatal."""
    config = build_site_config({"rules": {"strict": strict_rules}})

    assert config.is_strict_build(env) is expected, f"unexpected strictness for {env}"


def test_resolve_anchors_relative_paths(tmp_path: Path) -> None:
    """Relative paths resolve against the project root; absolute ones stay."""
    config = build_site_config({}, project_root=tmp_path)

    assert config.resolve(Path("public")) == tmp_path / "public", "expected anchoring"
    assert config.resolve(tmp_path / "x") == tmp_path / "x", "expected no change"
