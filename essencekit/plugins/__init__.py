"""Load project-supplied rule and post-process plugins.

A plugin source is either an importable dotted module path or a ``.py`` file
relative to the project root, optionally followed by ``:attribute`` to select
one exported object::

    essencekit.plugins.builtin_rules
    essencekit.plugins.minify:minify_html
    plugins/house_rules.py:RULES

Examples
--------
>>> from pathlib import Path
>>> from essencekit.plugins import load_source
>>> load_source("essencekit.plugins.minify:minify_html", Path("."))  # doctest: +SKIP
<function minify_html at 0x...>
"""

from __future__ import annotations

import importlib
import importlib.util
import typing as typ
from pathlib import Path

from essencekit.errors import PluginLoadError

if typ.TYPE_CHECKING:
    from types import ModuleType

PLUGIN_NAMESPACE = "essencekit.plugins.loaded"


def _is_file_source(reference: str) -> bool:
    return reference.endswith(".py") or reference.startswith((".", "/"))


def _load_file(path: Path) -> ModuleType:
    """Execute the Python file at ``path`` as a standalone module."""
    if not path.is_file():
        msg = f"Plugin file not found: {path}"
        raise PluginLoadError(msg)
    module_spec = importlib.util.spec_from_file_location(
        f"{PLUGIN_NAMESPACE}.{path.stem}", path
    )
    if module_spec is None or module_spec.loader is None:
        msg = f"Cannot load plugin file: {path}"
        raise PluginLoadError(msg)
    module = importlib.util.module_from_spec(module_spec)
    try:
        module_spec.loader.exec_module(module)
    except Exception as exc:
        msg = f"Plugin file {path} failed to import: {exc}"
        raise PluginLoadError(msg) from exc
    return module


def _import(reference: str) -> ModuleType:
    try:
        return importlib.import_module(reference)
    except ImportError as exc:
        msg = f"Cannot import plugin module {reference!r}: {exc}"
        raise PluginLoadError(msg) from exc


def load_source(source: str, base_dir: Path) -> typ.Any:
    """Return the object a plugin ``source`` refers to.

    Parameters
    ----------
    source : str
        ``package.module``, ``path/to/file.py``, either optionally suffixed
        with ``:attribute``.
    base_dir : Path
        Directory relative file sources are resolved against.

    Returns
    -------
    Any
        The named attribute, or the module itself when no attribute is given.

    Raises
    ------
    PluginLoadError
        If the module cannot be imported or lacks the named attribute.
    """
    reference, _, attribute = source.partition(":")
    reference = reference.strip()
    if not reference:
        msg = f"Empty plugin source: {source!r}"
        raise PluginLoadError(msg)

    if _is_file_source(reference):
        path = Path(reference)
        module = _load_file(path if path.is_absolute() else base_dir / path)
    else:
        module = _import(reference)

    if not attribute:
        return module
    try:
        return getattr(module, attribute)
    except AttributeError as exc:
        msg = f"Plugin source {source!r} has no attribute {attribute!r}"
        raise PluginLoadError(msg) from exc


__all__ = ["PLUGIN_NAMESPACE", "load_source"]
