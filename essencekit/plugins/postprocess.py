"""Post-processors applied to rendered markup just before it is written.

A post-process source exports either a callable
``process(markup, descriptor, output_path) -> str`` or an object with such a
``process`` method. Modules are searched for a ``process`` function.
"""

from __future__ import annotations

import collections.abc as cabc
import logging
import typing as typ
from types import ModuleType

from essencekit.errors import PluginLoadError

from . import load_source

if typ.TYPE_CHECKING:
    from pathlib import Path

    from essencekit.compiler.models import ComponentDescriptor
    from essencekit.config import PostProcessConfig

logger = logging.getLogger(__name__)

Processor = cabc.Callable[[str, typ.Any, typ.Any], str]


def coerce_processor(obj: typ.Any, source: str) -> Processor:
    """Return the callable entry point ``source`` exported.

    Raises
    ------
    PluginLoadError
        If no callable entry point can be found.
    """
    if isinstance(obj, ModuleType):
        obj = getattr(obj, "process", None)
    process = getattr(obj, "process", None)
    if callable(process):
        return process
    if callable(obj) and not isinstance(obj, type):
        return obj
    msg = f"Post-process source {source!r} has no callable entry point"
    raise PluginLoadError(msg)


class PostProcessor:
    """Apply the configured post-processors in order."""

    def __init__(self, config: PostProcessConfig, base_dir: Path) -> None:
        self.config = config
        self.base_dir = base_dir
        self.processors: list[tuple[str, Processor]] = (
            self._load() if config.enabled else []
        )

    def _load(self) -> list[tuple[str, Processor]]:
        processors: list[tuple[str, Processor]] = []
        for source in self.config.sources:
            try:
                exported = load_source(source, self.base_dir)
                processors.append((source, coerce_processor(exported, source)))
            except PluginLoadError as exc:
                logger.warning("Failed to load post-process source %s: %s", source, exc)
        return processors

    def run(
        self, markup: str, descriptor: ComponentDescriptor, output_path: Path
    ) -> str:
        """Return ``markup`` after every processor has had its turn.

        A processor that raises or returns something other than a string is
        logged and skipped; the markup it was given carries on to the next one.
        """
        result = markup
        for source, process in self.processors:
            try:
                processed = process(result, descriptor, output_path)
            except Exception:  # noqa: BLE001
                logger.error(
                    'Post-process "%s" failed for %s.',
                    source,
                    descriptor.name,
                    exc_info=True,
                )
                continue
            if not isinstance(processed, str):
                logger.warning(
                    'Post-process "%s" returned %s instead of markup; ignoring it.',
                    source,
                    type(processed).__name__,
                )
                continue
            result = processed
        return result


__all__ = ["PostProcessor", "Processor", "coerce_processor"]
