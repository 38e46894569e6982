"""Shared dataclasses used by the component compiler."""

from __future__ import annotations

import dataclasses as dc
import typing as typ
from pathlib import Path

from essencekit._constants import INDEX_FILE


@dc.dataclass(slots=True)
class ComponentDescriptor:
    """A single renderable component discovered on disk.

    Attributes
    ----------
    name : str
        Lookup key used by ``@{Name}`` references and ``extends``. Not unique;
        the registry returns the first match in discovery order.
    source_dir : Path
        Directory holding the markup file and its ``config.json``.
    entry_file : str
        Markup filename inside ``source_dir``.
    output_path : Path
        Destination of the rendered artifact, relative to the build root.
    config : dict[str, Any]
        Component configuration with a resolved ``extends`` key and an
        optional ``render`` gate.
    fetched_data : dict[str, Any]
        Data populated by the API loader before the first render of a pass.
    client_scripts : list[str]
        Script fragments produced by the API loader for injection.
    data_loaded : bool
        Whether the API loader already ran for this descriptor in this pass.
    """

    name: str
    source_dir: Path
    entry_file: str = INDEX_FILE
    output_path: Path = Path(INDEX_FILE)
    config: dict[str, typ.Any] = dc.field(default_factory=dict)
    fetched_data: dict[str, typ.Any] = dc.field(default_factory=dict)
    client_scripts: list[str] = dc.field(default_factory=list)
    data_loaded: bool = False

    @property
    def entry_path(self) -> Path:
        """Return the absolute path of the component markup."""
        return self.source_dir / self.entry_file

    @property
    def extends(self) -> str | None:
        """Return the resolved base component name, if any."""
        value = self.config.get("extends")
        return value if isinstance(value, str) and value else None

    @property
    def should_render(self) -> bool:
        """Return ``True`` when the component opts into standalone output."""
        return self.config.get("render") is True

    def read_markup(self) -> str:
        """Load the raw component markup."""
        return self.entry_path.read_text(encoding="utf-8")

    def reset_data(self) -> None:
        """Forget loader results so the next pass fetches afresh."""
        self.fetched_data = {}
        self.client_scripts = []
        self.data_loaded = False


__all__ = ["ComponentDescriptor"]
