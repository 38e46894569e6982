"""Recursive component renderer.

:class:`ComponentRenderer` turns one component into static markup. For every
component in the tree it:

1. loads the markup and swaps verbatim blocks for tokens in the shared store;
2. strips HTML comments;
3. lets the data loader populate ``fetched_data`` once per pass;
4. builds the render scope: ``config``, then ``fetched_data``, then the
   caller's data, later sources winning;
5. expands ``@{Name}`` / ``@{Name: {json}}`` references left to right, each
   as a full nested render;
6. fills the ``@[content]`` slot with the content handed down by a child;
7. runs the logic engine over the result;
8. renders the ``extends`` base with this markup as its content;
9. substitutes ``@ENV@`` and ``@ASSETS@``;
10. restores verbatim blocks, at the root call only.

Missing components, missing bases, malformed inline JSON, and failing
expressions only log warnings. Reference cycles and runaway nesting raise
:class:`~essencekit.errors.ComponentCycleError` and
:class:`~essencekit.errors.RenderDepthError`.

Example
-------
>>> from pathlib import Path
>>> from essencekit.compiler import ComponentRenderer, discover_components
>>> registry = discover_components([Path("components")])  # doctest: +SKIP
>>> renderer = ComponentRenderer(registry, env="prod")  # doctest: +SKIP
>>> html = renderer.render(registry.find_by_name("Home"))  # doctest: +SKIP
"""

from __future__ import annotations

import dataclasses as dc
import json
import logging
import re
import typing as typ

from essencekit._constants import CONTENT_SLOT, DEFAULT_MAX_DEPTH
from essencekit.errors import ComponentCycleError, RenderDepthError

from .environment import substitute_environment
from .logic import LogicEngine
from .markup import BlockStore, protect_blocks, restore_blocks, strip_comments

if typ.TYPE_CHECKING:
    import collections.abc as cabc

    from .models import ComponentDescriptor
    from .registry import ComponentRegistry

logger = logging.getLogger(__name__)

COMPONENT_PATTERN = re.compile(r"@\{([\w-]+)(?::\s*(\{.*?\}))?\}", re.DOTALL)
_JSON_DECODER = json.JSONDecoder()


class DataLoader(typ.Protocol):
    """Populates ``fetched_data`` and ``client_scripts`` on a descriptor."""

    def populate(self, descriptor: ComponentDescriptor) -> None:
        """Fill loader results in place; must not raise."""
        ...


@dc.dataclass(slots=True)
class ComponentReference:
    """A nested ``@{Name}`` reference and the span it occupies."""

    name: str
    start: int
    end: int
    data: dict[str, typ.Any] = dc.field(default_factory=dict)


def find_component_references(markup: str) -> list[ComponentReference]:
    """Collect every nested component reference in ``markup`` in one scan.

    Inline data is decoded as a complete JSON object, so literals that hold
    nested objects or braces inside strings are read in full. Undecodable
    literals are logged and the reference is kept without data.
    """
    references: list[ComponentReference] = []
    position = 0
    while match := COMPONENT_PATTERN.search(markup, position):
        name = match.group(1)
        data: dict[str, typ.Any] = {}
        end = match.end()
        if match.group(2) is not None:
            data, end = _decode_inline_data(markup, match)
        references.append(ComponentReference(name, match.start(), end, data))
        position = end
    return references


def _decode_inline_data(
    markup: str, match: re.Match[str]
) -> tuple[dict[str, typ.Any], int]:
    name = match.group(1)
    try:
        value, literal_end = _JSON_DECODER.raw_decode(markup, match.start(2))
    except json.JSONDecodeError as exc:
        logger.warning('JSON parsing error for "%s": %s', name, exc)
        return {}, match.end()
    close = literal_end
    while close < len(markup) and markup[close].isspace():
        close += 1
    if close < len(markup) and markup[close] == "}":
        return value, close + 1
    logger.warning('Unterminated data literal for "%s"; ignoring it.', name)
    return {}, match.end()


class ComponentRenderer:
    """Render components from a registry for one target environment."""

    def __init__(
        self,
        registry: ComponentRegistry,
        *,
        env: str = "dev",
        data_loader: DataLoader | None = None,
        engine: LogicEngine | None = None,
        max_depth: int = DEFAULT_MAX_DEPTH,
    ) -> None:
        """Initialize the renderer.

        Parameters
        ----------
        registry : ComponentRegistry
            Source of nested and base components, searched first-match.
        env : str, optional
            Environment name substituted for ``@ENV@``. Defaults to ``"dev"``.
        data_loader : DataLoader, optional
            Collaborator that fetches component data; skipped when ``None``.
        engine : LogicEngine, optional
            Logic engine used for conditionals, loops, and placeholders.
        max_depth : int, optional
            Maximum number of components on one render chain.
        """
        self.registry = registry
        self.env = env
        self.data_loader = data_loader
        self.engine = engine or LogicEngine()
        self.max_depth = max_depth

    def render(
        self,
        descriptor: ComponentDescriptor,
        data: cabc.Mapping[str, typ.Any] | None = None,
    ) -> str:
        """Render ``descriptor`` as the root of a fresh render tree."""
        return self.render_component(descriptor, data)

    def render_component(
        self,
        descriptor: ComponentDescriptor,
        data: cabc.Mapping[str, typ.Any] | None = None,
        inner_content: str = "",
        store: BlockStore | None = None,
        *,
        is_root: bool = True,
    ) -> str:
        """Render ``descriptor`` with override data and an optional content slot.

        Parameters
        ----------
        descriptor : ComponentDescriptor
            Component to render.
        data : Mapping, optional
            Override data; wins over the component's config and fetched data.
        inner_content : str, optional
            Markup substituted once for ``@[content]``.
        store : BlockStore, optional
            Verbatim block store shared by the whole tree. Root calls create
            one when omitted; nested calls must pass the root's store.
        is_root : bool, optional
            Whether this call owns the store and restores verbatim blocks.

        Returns
        -------
        str
            The rendered markup.

        Raises
        ------
        ValueError
            If a non-root call is made without the shared store.
        ComponentCycleError
            If a component is reached again through its own nesting chain.
        RenderDepthError
            If the render chain grows beyond ``max_depth`` components.
        """
        if store is None:
            if not is_root:
                msg = "Nested renders must share the root call's block store."
                raise ValueError(msg)
            store = BlockStore()
        return self._render(descriptor, data or {}, inner_content, store, is_root, ())

    def build_scope(
        self,
        descriptor: ComponentDescriptor,
        data: cabc.Mapping[str, typ.Any] | None = None,
    ) -> dict[str, typ.Any]:
        """Merge config, fetched data, and override data into a new scope."""
        return {**descriptor.config, **descriptor.fetched_data, **(data or {})}

    def _render(
        self,
        descriptor: ComponentDescriptor,
        data: cabc.Mapping[str, typ.Any],
        inner_content: str,
        store: BlockStore,
        is_root: bool,
        chain: tuple[ComponentDescriptor, ...],
    ) -> str:
        chain = self._enter(descriptor, chain)
        markup = protect_blocks(descriptor.read_markup(), store)
        markup = strip_comments(markup)
        self._load_data(descriptor)
        scope = self.build_scope(descriptor, data)

        markup = self._expand_components(markup, store, chain)
        if inner_content:
            markup = markup.replace(CONTENT_SLOT, inner_content, 1)
        markup = self.engine.render(markup, scope)
        markup = self._apply_base(descriptor, markup, scope, store, chain)
        markup = substitute_environment(markup, self.env)

        if is_root:
            markup = restore_blocks(markup, store)
        return markup

    def _enter(
        self,
        descriptor: ComponentDescriptor,
        chain: tuple[ComponentDescriptor, ...],
    ) -> tuple[ComponentDescriptor, ...]:
        """Push ``descriptor`` on the chain, rejecting cycles and deep nesting."""
        names = tuple(item.name for item in chain) + (descriptor.name,)
        if any(item is descriptor for item in chain):
            raise ComponentCycleError(names)
        if len(names) > self.max_depth:
            raise RenderDepthError(names, self.max_depth)
        return (*chain, descriptor)

    def _load_data(self, descriptor: ComponentDescriptor) -> None:
        if self.data_loader is None or descriptor.data_loaded:
            return
        self.data_loader.populate(descriptor)
        descriptor.data_loaded = True

    def _expand_components(
        self,
        markup: str,
        store: BlockStore,
        chain: tuple[ComponentDescriptor, ...],
    ) -> str:
        """Splice rendered nested components over their references."""
        references = find_component_references(markup)
        if not references:
            return markup
        parts: list[str] = []
        cursor = 0
        for reference in references:
            parts.append(markup[cursor : reference.start])
            nested = self.registry.find_by_name(reference.name)
            if nested is None:
                logger.warning('Component "%s" not found.', reference.name)
            else:
                parts.append(
                    self._render(nested, reference.data, "", store, False, chain)
                )
            cursor = reference.end
        parts.append(markup[cursor:])
        return "".join(parts)

    def _apply_base(
        self,
        descriptor: ComponentDescriptor,
        markup: str,
        scope: dict[str, typ.Any],
        store: BlockStore,
        chain: tuple[ComponentDescriptor, ...],
    ) -> str:
        """Wrap ``markup`` in the descriptor's base component, if it has one."""
        base_name = descriptor.extends
        if not base_name:
            return markup
        base = self.registry.find_by_name(base_name)
        if base is None:
            logger.warning(
                'Base component "%s" for "%s" not found.', base_name, descriptor.name
            )
            return markup
        return self._render(base, scope, markup, store, False, chain)


__all__ = [
    "COMPONENT_PATTERN",
    "ComponentReference",
    "ComponentRenderer",
    "DataLoader",
    "find_component_references",
]
