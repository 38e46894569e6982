"""Cyclopts CLI entrypoint for building essencekit sites.

The ``essencekit`` console script defined here builds every renderable
component of a project into ``<output_dir>/<env>`` and can print a single
rendered component for quick inspection. Settings come from
``essencekit.yaml`` in the project root; a missing file means defaults.

Examples
--------
Build the default ``dev`` environment:

>>> from essencekit.cli import main
>>> main()  # doctest: +SKIP

Build for production from another directory:

>>> from essencekit.cli import app
>>> app(["build", "prod", "--project-root", "site"])  # doctest: +SKIP
"""

from __future__ import annotations

import logging
import sys
import typing as typ
from pathlib import Path

from cyclopts import App, Parameter

from ._constants import DEFAULT_CONFIG_FILE
from .build import SiteBuilder
from .config import SiteConfigError, load_site_config
from .errors import EssenceError

if typ.TYPE_CHECKING:
    from .config import SiteConfig

logger = logging.getLogger("essencekit")

app = App(name="essencekit", help="Compile component trees into static HTML.")


def _format_path(path: Path) -> str:
    """Return a cwd-relative path when possible, otherwise the absolute path."""
    if path.is_absolute():
        try:
            return str(path.relative_to(Path.cwd()))
        except ValueError:  # pragma: no cover - fallback for different roots
            return str(path)
    return str(path)


def _configure_logging(*, verbose: bool) -> None:
    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.INFO,
        format="%(levelname)s: %(message)s",
    )


def _load_config(config: Path, project_root: Path) -> SiteConfig:
    path = config if config.is_absolute() else project_root / config
    return load_site_config(path, project_root=project_root, missing_ok=True)


@app.command(help="Build every renderable component for an environment.")
def build(
    env: typ.Annotated[str, Parameter(help="Target environment name")] = "dev",
    *,
    config: typ.Annotated[
        Path, Parameter(help="Path to the site config, relative to the project root")
    ] = Path(DEFAULT_CONFIG_FILE),
    project_root: typ.Annotated[
        Path, Parameter(help="Directory holding components and assets")
    ] = Path(),
    verbose: typ.Annotated[bool, Parameter(help="Log debug output")] = False,
) -> None:
    """Build the site for ``env`` and print every written path.

    Parameters
    ----------
    env : str, optional
        Target environment; output lands in ``<output_dir>/<env>``. ``prod``
        turns rule failures into build errors.
    config : Path, optional
        Site configuration file. Defaults to ``essencekit.yaml``.
    project_root : Path, optional
        Root that components, assets, output, and plugin files resolve
        against. Defaults to the current directory.
    verbose : bool, optional
        Enable debug logging.

    Raises
    ------
    SystemExit
        With status 1 when the configuration is invalid or the build fails.
    """
    _configure_logging(verbose=verbose)
    try:
        site_config = _load_config(config, project_root)
        written = SiteBuilder(site_config, env=env).run()
    except (EssenceError, SiteConfigError) as exc:
        logger.error("%s", exc)
        sys.exit(1)
    for path in written:
        print(f"wrote {_format_path(path)}")


@app.command(help="Render one component and print the HTML.")
def render(
    component: typ.Annotated[str, Parameter(help="Component name")],
    *,
    env: typ.Annotated[str, Parameter(help="Target environment name")] = "dev",
    config: typ.Annotated[
        Path, Parameter(help="Path to the site config, relative to the project root")
    ] = Path(DEFAULT_CONFIG_FILE),
    project_root: typ.Annotated[
        Path, Parameter(help="Directory holding components and assets")
    ] = Path(),
    verbose: typ.Annotated[bool, Parameter(help="Log debug output")] = False,
) -> None:
    """Print the rendered markup of ``component`` to stdout."""
    _configure_logging(verbose=verbose)
    try:
        site_config = _load_config(config, project_root)
        markup = SiteBuilder(site_config, env=env).render_component(component)
    except (EssenceError, SiteConfigError) as exc:
        logger.error("%s", exc)
        sys.exit(1)
    print(markup)


def main() -> None:
    """Invoke the Cyclopts application that powers the ``essencekit`` command.

    Examples
    --------
    >>> main()  # doctest: +SKIP
    """
    app()


if __name__ == "__main__":  # pragma: no cover - manual invocation helper
    main()
