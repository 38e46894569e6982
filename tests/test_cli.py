"""Unit tests for the essencekit command-line commands."""

from __future__ import annotations

import typing as typ

import pytest

from essencekit import cli

if typ.TYPE_CHECKING:
    from pathlib import Path

    from conftest import ComponentFactory


def test_build_prints_written_paths(
    tmp_path: Path,
    make_component: ComponentFactory,
    capsys: pytest.CaptureFixture[str],
) -> None:
    """``essencekit build`` reports each file it wrote."""
    make_component("Home", "<p>@ENV@</p>", {"render": True})

    cli.build("staging", project_root=tmp_path)

    out = capsys.readouterr().out
    written = tmp_path / "public" / "staging" / "Home" / "index.html"
    assert out.startswith("wrote "), f"expected a 'wrote' line, got {out!r}"
    assert written.name in out, "expected the written file in the output"
    assert written.read_text(encoding="utf-8") == "<p>staging</p>", (
        "expected the environment to be substituted"
    )


def test_build_reads_config_relative_to_project_root(
    tmp_path: Path,
    make_component: ComponentFactory,
    capsys: pytest.CaptureFixture[str],
) -> None:
    """The config file path resolves against the project root."""
    make_component("Home", "x", {"render": True})
    (tmp_path / "site.yaml").write_text("output_dir: dist\n", encoding="utf-8")

    cli.build(config=tmp_path / "site.yaml", project_root=tmp_path)

    assert (tmp_path / "dist" / "dev" / "Home" / "index.html").exists(), (
        "expected output_dir from the config file"
    )
    capsys.readouterr()


def test_build_exits_non_zero_on_invalid_config(tmp_path: Path) -> None:
    """Configuration errors stop the command with status 1."""
    (tmp_path / "essencekit.yaml").write_text("placeholders: loud\n", encoding="utf-8")

    with pytest.raises(SystemExit) as excinfo:
        cli.build(project_root=tmp_path)

    assert excinfo.value.code == 1, f"unexpected exit code {excinfo.value.code!r}"


def test_build_exits_non_zero_on_component_cycle(
    tmp_path: Path, make_component: ComponentFactory
) -> None:
    """Render errors are reported as a failed command."""
    make_component("A", "@{B}", {"render": True})
    make_component("B", "@{A}")

    with pytest.raises(SystemExit) as excinfo:
        cli.build(project_root=tmp_path)

    assert excinfo.value.code == 1, "expected a cycle to fail the build"


def test_render_prints_component_markup(
    tmp_path: Path,
    make_component: ComponentFactory,
    capsys: pytest.CaptureFixture[str],
) -> None:
    """``essencekit render`` prints a single component to stdout."""
    make_component("Card", "<b>@[label]</b>", {"label": "hi"})

    cli.render("Card", project_root=tmp_path)

    assert capsys.readouterr().out == "<b>hi</b>\n", "expected the rendered card"


def test_render_exits_non_zero_for_unknown_component(tmp_path: Path) -> None:
    """Unknown component names fail the command."""
    (tmp_path / "components").mkdir()

    with pytest.raises(SystemExit) as excinfo:
        cli.render("Ghost", project_root=tmp_path)

    assert excinfo.value.code == 1, "expected an unknown component to fail"
