"""Static-site compiler for HTML component trees.

This package exposes the CLI entry points used by ``essencekit build`` to
expand a project's components, with their conditionals, loops, placeholders,
nested components, and base layouts, into plain static HTML.

Exports
-------
- ``app``: Cyclopts application entry for subcommands.
- ``main``: Convenience function that invokes the Cyclopts app.

Examples
--------
>>> from essencekit import main
>>> main()  # doctest: +SKIP
"""

from __future__ import annotations

from .cli import app, main

__all__ = ["app", "main"]
