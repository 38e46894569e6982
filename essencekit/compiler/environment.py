"""Substitute the build environment tokens ``@ENV@`` and ``@ASSETS@``."""

from __future__ import annotations

from essencekit._constants import ASSETS_TOKEN, ENV_TOKEN


def assets_path(env: str) -> str:
    """Return the public asset base path for ``env``."""
    return f"/{env}/assets"


def substitute_environment(markup: str, env: str) -> str:
    """Replace every environment token in ``markup``, independent of scope.

    >>> substitute_environment('<link href="@ASSETS@/site.css">@ENV@', "prod")
    '<link href="/prod/assets/site.css">prod'
    """
    return markup.replace(ENV_TOKEN, env).replace(ASSETS_TOKEN, assets_path(env))


__all__ = ["assets_path", "substitute_environment"]
