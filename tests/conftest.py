"""Shared fixtures for essencekit tests."""

from __future__ import annotations

import json
import typing as typ

import pytest

if typ.TYPE_CHECKING:
    from pathlib import Path


class ComponentFactory(typ.Protocol):
    def __call__(
        self,
        name: str,
        markup: str,
        config: dict[str, typ.Any] | None = None,
        *,
        folder: str | None = None,
    ) -> Path: ...


@pytest.fixture
def components_dir(tmp_path: Path) -> Path:
    """Return an empty components root inside ``tmp_path``."""
    path = tmp_path / "components"
    path.mkdir()
    return path


@pytest.fixture
def make_component(components_dir: Path) -> ComponentFactory:
    """Write ``<folder>/index.html`` (and ``config.json``) under the root.

    ``folder`` defaults to ``name`` and may contain slashes for nested
    component folders.
    """

    def _make(
        name: str,
        markup: str,
        config: dict[str, typ.Any] | None = None,
        *,
        folder: str | None = None,
    ) -> Path:
        directory = components_dir / (folder or name)
        directory.mkdir(parents=True, exist_ok=True)
        (directory / "index.html").write_text(markup, encoding="utf-8")
        if config is not None:
            (directory / "config.json").write_text(json.dumps(config), encoding="utf-8")
        return directory

    return _make
