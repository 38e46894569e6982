"""Discover components on disk and look them up by name.

A component is any ``.html`` file below a components root. ``index.html``
names its component after the enclosing folder; any other ``card.html`` is a
standalone component called ``card``. Every markup file in a folder shares
that folder's ``config.json``.

Example
-------
>>> from pathlib import Path
>>> registry = discover_components([Path("components")])  # doctest: +SKIP
>>> registry.find_by_name("Home").output_path  # doctest: +SKIP
PosixPath('Home/index.html')
"""

from __future__ import annotations

import json
import logging
import typing as typ
from pathlib import Path

from essencekit._constants import (
    COMPONENT_CONFIG_FILE,
    DEFAULT_BASE_COMPONENT,
    INDEX_FILE,
    ROOT_BASE_COMPONENTS,
)

from .models import ComponentDescriptor

if typ.TYPE_CHECKING:
    import collections.abc as cabc

logger = logging.getLogger(__name__)

BUILTIN_COMPONENTS_DIR = Path(__file__).resolve().parents[1] / "components"


class ComponentRegistry:
    """Ordered collection of component descriptors.

    Names are not required to be unique; lookups return the first match in
    registry order, which is stable for the lifetime of a build pass.
    """

    def __init__(self, descriptors: cabc.Iterable[ComponentDescriptor] = ()) -> None:
        self._descriptors: list[ComponentDescriptor] = list(descriptors)

    def __iter__(self) -> cabc.Iterator[ComponentDescriptor]:
        return iter(self._descriptors)

    def __len__(self) -> int:
        return len(self._descriptors)

    def __contains__(self, name: object) -> bool:
        return isinstance(name, str) and self.find_by_name(name) is not None

    def add(self, descriptor: ComponentDescriptor) -> None:
        """Append ``descriptor`` after every existing entry."""
        self._descriptors.append(descriptor)

    def find_by_name(self, name: str) -> ComponentDescriptor | None:
        """Return the first descriptor called ``name``, or ``None``."""
        return next((item for item in self._descriptors if item.name == name), None)

    def renderable(self) -> list[ComponentDescriptor]:
        """Return descriptors whose config opts into standalone rendering."""
        return [item for item in self._descriptors if item.should_render]

    def reset_data(self) -> None:
        """Clear loader results on every descriptor before a new pass."""
        for item in self._descriptors:
            item.reset_data()


def discover_components(
    roots: cabc.Iterable[Path], *, include_builtin: bool = True
) -> ComponentRegistry:
    """Scan ``roots`` in order (then the built-in components) into a registry."""
    registry = ComponentRegistry()
    search = list(roots)
    if include_builtin:
        search.append(BUILTIN_COMPONENTS_DIR)
    for root in search:
        if not root.is_dir():
            logger.warning("Components directory not found at %s.", root)
            continue
        _traverse(root, root, registry)
    return registry


def _traverse(current: Path, root: Path, registry: ComponentRegistry) -> None:
    """Collect markup files in ``current``, then recurse into sub-folders."""
    entries = sorted(current.iterdir(), key=lambda entry: entry.name)
    for entry in entries:
        if not (entry.is_file() and entry.suffix == ".html"):
            continue
        relative_dir = current.relative_to(root)
        if entry.name == INDEX_FILE:
            name = current.name
            output_path = relative_dir / INDEX_FILE
        else:
            name = entry.stem
            output_path = relative_dir / entry.stem / INDEX_FILE
        descriptor = ComponentDescriptor(
            name=name,
            source_dir=current,
            entry_file=entry.name,
            output_path=output_path,
            config=load_component_config(current, name),
        )
        registry.add(descriptor)
        logger.info("Component added: %s -> %s", name, output_path)

    for entry in entries:
        if entry.is_dir():
            _traverse(entry, root, registry)


def load_component_config(directory: Path, name: str) -> dict[str, typ.Any]:
    """Load ``config.json`` from ``directory`` and resolve its ``extends`` key.

    The designated root bases never extend anything. Every other component
    extends ``BaseComponent`` unless it names a base or sets ``extends`` to
    ``null``.
    """
    config: dict[str, typ.Any] = {}
    path = directory / COMPONENT_CONFIG_FILE
    if path.exists():
        try:
            loaded = json.loads(path.read_text(encoding="utf-8"))
        except (OSError, json.JSONDecodeError) as exc:
            logger.error("Error parsing %s: %s", path, exc)
        else:
            if isinstance(loaded, dict):
                config = loaded
            else:
                logger.error("Ignoring %s: top-level JSON must be an object.", path)
    return resolve_extends(name, config)


def resolve_extends(name: str, config: dict[str, typ.Any]) -> dict[str, typ.Any]:
    """Return a copy of ``config`` whose ``extends`` key is always present.

    A missing or empty ``extends`` defaults to ``BaseComponent``; an explicit
    ``None`` ends the chain at this component.
    """
    resolved = dict(config)
    if name in ROOT_BASE_COMPONENTS:
        resolved["extends"] = None
    elif resolved.get("extends", "") == "":
        resolved["extends"] = DEFAULT_BASE_COMPONENT
    return resolved


__all__ = [
    "BUILTIN_COMPONENTS_DIR",
    "ComponentRegistry",
    "discover_components",
    "load_component_config",
    "resolve_extends",
]
