"""Unit tests for the recursive component renderer."""

from __future__ import annotations

import logging
import typing as typ

import pytest

from essencekit.compiler import (
    BlockStore,
    ComponentDescriptor,
    ComponentRenderer,
    LogicEngine,
    discover_components,
)
from essencekit.compiler.renderer import find_component_references
from essencekit.errors import ComponentCycleError, RenderDepthError

if typ.TYPE_CHECKING:
    from pathlib import Path

    from conftest import ComponentFactory


class RecordingLoader:
    """Data loader stub that records the order components are loaded in."""

    def __init__(self, data: dict[str, dict[str, typ.Any]] | None = None) -> None:
        self.calls: list[str] = []
        self.data = data or {}

    def populate(self, descriptor: ComponentDescriptor) -> None:
        self.calls.append(descriptor.name)
        descriptor.fetched_data.update(self.data.get(descriptor.name, {}))


def _renderer(components_dir: Path, **kwargs: typ.Any) -> ComponentRenderer:
    return ComponentRenderer(discover_components([components_dir]), **kwargs)


def _render(components_dir: Path, name: str, **kwargs: typ.Any) -> str:
    renderer = _renderer(components_dir, **kwargs)
    descriptor = renderer.registry.find_by_name(name)
    assert descriptor is not None, f"expected component {name!r} to be discovered"
    return renderer.render(descriptor)


def test_page_renders_through_its_base(
    components_dir: Path, make_component: ComponentFactory
) -> None:
    """A page should resolve its logic and then be wrapped by its base."""
    make_component("Base", "<html>@[content]</html>")
    make_component(
        "Home",
        "<h1>@[title]</h1>@if(title)<p>yes</p>@else<p>no</p>@endif",
        {"extends": "Base", "title": "Hi"},
    )

    html = _render(components_dir, "Home")

    assert html == "<html><h1>Hi</h1><p>yes</p></html>", f"unexpected page {html!r}"


def test_base_chain_of_two_levels_sees_page_data(
    components_dir: Path, make_component: ComponentFactory
) -> None:
    """Bases wrap outward and resolve placeholders from the page's scope."""
    make_component("Shell", "<html>@[content]</html>")
    make_component(
        "Layout", '<main data-title="@[title]">@[content]</main>', {"extends": "Shell"}
    )
    make_component("Page", "<p>@[title]</p>", {"extends": "Layout", "title": "T"})

    html = _render(components_dir, "Page")

    assert html == '<html><main data-title="T"><p>T</p></main></html>', (
        f"unexpected layered output {html!r}"
    )


def test_nested_components_render_with_inline_data(
    components_dir: Path, make_component: ComponentFactory
) -> None:
    """Inline JSON, nested objects included, becomes the child's override data."""
    make_component("Card", "<b>@[label]-@[meta.n]</b>", {"label": "default"})
    make_component("Home", '@{Card}|@{Card: {"label": "x", "meta": {"n": 2}}}')

    html = _render(components_dir, "Home")

    assert html == "<b>default-</b>|<b>x-2</b>", f"unexpected nested output {html!r}"


def test_child_data_does_not_leak_into_parent(
    components_dir: Path, make_component: ComponentFactory
) -> None:
    """Each component gets its own scope; overrides stay with the child."""
    make_component("Child", "@[title]")
    make_component("Home", '@{Child: {"title": "Kid"}}|@[title]', {"title": "Parent"})

    assert _render(components_dir, "Home") == "Kid|Parent", (
        "expected the parent's title to survive the child's override"
    )


def test_missing_nested_component_is_dropped_with_warning(
    components_dir: Path,
    make_component: ComponentFactory,
    caplog: pytest.LogCaptureFixture,
) -> None:
    """Unknown references render as nothing and are logged."""
    caplog.set_level(logging.WARNING)
    make_component("Home", "a@{Ghost}b")

    assert _render(components_dir, "Home") == "ab", "expected the reference removed"
    assert 'Component "Ghost" not found.' in caplog.text, "expected a lookup warning"


def test_missing_base_leaves_markup_unwrapped(
    components_dir: Path,
    make_component: ComponentFactory,
    caplog: pytest.LogCaptureFixture,
) -> None:
    """A missing base is logged and the component renders on its own."""
    caplog.set_level(logging.WARNING)
    make_component("Home", "<p>@[title]</p>", {"extends": "Nope", "title": "x"})

    assert _render(components_dir, "Home") == "<p>x</p>", "expected unwrapped markup"
    assert 'Base component "Nope"' in caplog.text, "expected a missing base warning"


def test_malformed_inline_json_is_ignored(
    components_dir: Path,
    make_component: ComponentFactory,
    caplog: pytest.LogCaptureFixture,
) -> None:
    """Bad inline data is logged and the component renders without it."""
    caplog.set_level(logging.WARNING)
    make_component("Card", "<b>@[label]</b>")
    make_component("Home", "@{Card: {bad json}}")

    assert _render(components_dir, "Home") == "<b></b>", "expected empty label"
    assert 'JSON parsing error for "Card"' in caplog.text, "expected a JSON warning"


def test_find_component_references_reports_spans_in_order() -> None:
    """References are collected left to right with their exact spans."""
    markup = 'x@{A}y@{B: {"k": "}"}}z'

    references = find_component_references(markup)

    assert [ref.name for ref in references] == ["A", "B"], "expected both references"
    assert references[1].data == {"k": "}"}, "expected braces inside strings to parse"
    assert markup[references[1].end :] == "z", "expected the span to end after '}'"


def test_verbatim_blocks_survive_nesting_and_bases(
    components_dir: Path, make_component: ComponentFactory
) -> None:
    """Verbatim markup anywhere in the tree is emitted exactly once, untouched."""
    make_component("Shell", "<html><textarea>@[content]</textarea>@[content]</html>")
    make_component("Snippet", "<code>@[title] @if(x)y@endif</code>")
    make_component(
        "Home", "<pre>@[title]</pre>@{Snippet}", {"extends": "Shell", "title": "T"}
    )

    html = _render(components_dir, "Home")

    assert html == (
        "<html><textarea>@[content]</textarea>"
        "<pre>@[title]</pre><code>@[title] @if(x)y@endif</code></html>"
    ), f"unexpected verbatim handling {html!r}"
    assert "%%VERBATIM" not in html, "expected every token to be restored"


def test_comments_are_stripped_outside_verbatim_blocks(
    components_dir: Path, make_component: ComponentFactory
) -> None:
    """Comments disappear from markup but are kept inside verbatim elements."""
    make_component("Home", "<!-- drop -->a<pre><!-- keep --></pre>")

    assert _render(components_dir, "Home") == "a<pre><!-- keep --></pre>", (
        "expected only the comment outside <pre> to be removed"
    )


def test_environment_tokens_are_substituted(
    components_dir: Path, make_component: ComponentFactory
) -> None:
    """@ENV@ and @ASSETS@ resolve from the renderer's environment."""
    make_component("Home", '<link href="@ASSETS@/a.css" data-env="@ENV@">')

    html = _render(components_dir, "Home", env="prod")

    assert html == '<link href="/prod/assets/a.css" data-env="prod">', (
        f"unexpected environment substitution {html!r}"
    )


def test_data_loader_runs_once_per_component_left_to_right(
    components_dir: Path, make_component: ComponentFactory
) -> None:
    """The loader runs once per component, in depth-first render order."""
    make_component("A", "a@[n]")
    make_component("B", "b")
    make_component("Home", "@{A}@{B}@{A}")
    loader = RecordingLoader({"A": {"n": 1}})

    html = _render(components_dir, "Home", data_loader=loader)

    assert html == "a1ba1", f"unexpected output {html!r}"
    assert loader.calls == ["Home", "A", "BaseComponent", "B"], (
        f"unexpected loader order {loader.calls!r}"
    )


def test_scope_precedence_is_config_then_fetched_then_data(tmp_path: Path) -> None:
    """Later sources win when building a component's scope."""
    descriptor = ComponentDescriptor(
        name="X",
        source_dir=tmp_path,
        config={"a": "config", "b": "config", "c": "config"},
        fetched_data={"b": "fetched", "c": "fetched"},
    )
    renderer = ComponentRenderer(discover_components([], include_builtin=False))

    scope = renderer.build_scope(descriptor, {"c": "data"})

    assert (scope["a"], scope["b"], scope["c"]) == ("config", "fetched", "data"), (
        f"unexpected precedence {scope!r}"
    )


def test_strict_engine_marks_unresolved_placeholders(
    components_dir: Path, make_component: ComponentFactory
) -> None:
    """The renderer uses whatever placeholder strategy its engine carries."""
    make_component("Home", "@[missing]")

    html = _render(components_dir, "Home", engine=LogicEngine(strict=True))

    assert html == "[[UNRESOLVED:missing]]", f"unexpected strict output {html!r}"


def test_mutual_nesting_raises_cycle_error(
    components_dir: Path, make_component: ComponentFactory
) -> None:
    """Two components that include each other cannot be rendered."""
    make_component("A", "@{B}")
    make_component("B", "@{A}")

    with pytest.raises(ComponentCycleError) as excinfo:
        _render(components_dir, "A")

    assert excinfo.value.chain == ("A", "B", "A"), (
        f"unexpected cycle chain {excinfo.value.chain!r}"
    )


def test_self_extension_raises_cycle_error(
    components_dir: Path, make_component: ComponentFactory
) -> None:
    """A component that extends itself is a cycle, not infinite recursion."""
    make_component("Loop", "@[content]", {"extends": "Loop"})

    with pytest.raises(ComponentCycleError):
        _render(components_dir, "Loop")


def test_deep_nesting_raises_depth_error(
    components_dir: Path, make_component: ComponentFactory
) -> None:
    """Chains longer than max_depth stop with a clear error."""
    for index in range(4):
        make_component(f"L{index}", f"@{{L{index + 1}}}")

    with pytest.raises(RenderDepthError) as excinfo:
        _render(components_dir, "L0", max_depth=3)

    assert excinfo.value.max_depth == 3, "expected the configured limit on the error"


def test_nested_render_requires_shared_store(tmp_path: Path) -> None:
    """Only the root call may create the block store."""
    renderer = ComponentRenderer(discover_components([], include_builtin=False))
    descriptor = ComponentDescriptor(name="X", source_dir=tmp_path)

    with pytest.raises(ValueError, match="block store"):
        renderer.render_component(descriptor, is_root=False)


def test_non_root_render_keeps_tokens_for_the_caller(
    components_dir: Path, make_component: ComponentFactory
) -> None:
    """A nested call leaves tokens in place; the caller restores them."""
    make_component("Home", "<pre>x</pre>")
    renderer = _renderer(components_dir)
    descriptor = renderer.registry.find_by_name("Home")
    assert descriptor is not None, "expected Home to be discovered"
    store = BlockStore()

    html = renderer.render_component(descriptor, store=store, is_root=False)

    assert html == store.token(0), f"expected the raw token, got {html!r}"


def test_explicit_null_extends_ends_the_base_chain(
    components_dir: Path, make_component: ComponentFactory
) -> None:
    """A base with ``extends: null`` is the outermost render level."""
    make_component("BaseComponent", "<outer>@[content]</outer>")
    make_component("Base", "<html>@[content]</html>", {"extends": None})
    make_component("Home", "<p>hi</p>", {"extends": "Base"})
    loader = RecordingLoader()

    html = _render(components_dir, "Home", data_loader=loader)

    assert html == "<html><p>hi</p></html>", f"unexpected page {html!r}"
    assert loader.calls == ["Home", "Base"], (
        f"expected exactly two render levels, got {loader.calls!r}"
    )


def test_empty_child_leaves_content_slot_to_the_scope(
    components_dir: Path, make_component: ComponentFactory
) -> None:
    """An empty page leaves ``@[content]`` for the placeholder pass to fill."""
    make_component("Base", "<main>@[content]</main>", {"extends": None})
    make_component(
        "Home",
        "@if(False)<p>hidden</p>@endif",
        {"extends": "Base", "content": "from-config"},
    )

    html = _render(components_dir, "Home")

    assert html == "<main>from-config</main>", f"unexpected page {html!r}"
