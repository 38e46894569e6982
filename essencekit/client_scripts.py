"""Render the client-side helper scripts injected into built pages.

Two helpers exist: the auth helper (``window.essenceAuth``) for components
that set ``"auth": true``, and one POST helper per ``post_type`` API entry
(``window.essenceAPI[name]``). Both are Jinja templates shipped in
``essencekit/templates``; every interpolated value goes through ``tojson`` so
it lands in the script as a safe JavaScript literal.
"""

from __future__ import annotations

import functools
from pathlib import Path

from jinja2 import Environment, FileSystemLoader, select_autoescape

TEMPLATES_DIR = Path(__file__).parent / "templates"


@functools.cache
def _environment(templates_dir: Path = TEMPLATES_DIR) -> Environment:
    return Environment(
        loader=FileSystemLoader(str(templates_dir)),
        autoescape=select_autoescape(["html", "xml"]),
        trim_blocks=True,
        lstrip_blocks=True,
        keep_trailing_newline=False,
    )


def build_auth_script(endpoint: str) -> str:
    """Return the ``<script>`` block exposing ``window.essenceAuth``."""
    template = _environment().get_template("auth_script.jinja")
    return template.render(endpoint=endpoint)


def build_post_script(name: str, base_url: str, endpoint: str, token: str) -> str:
    """Return a ``<script>`` block registering a POST helper under ``name``.

    Parameters
    ----------
    name : str
        Key under ``window.essenceAPI`` the helper is assigned to.
    base_url : str
        Base URL of the API group.
    endpoint : str
        Path appended to ``base_url``.
    token : str
        Bearer token sent in the ``Authorization`` header; may be empty.
    """
    template = _environment().get_template("api_post.jinja")
    return template.render(name=name, url=f"{base_url}{endpoint}", token=token)


__all__ = ["TEMPLATES_DIR", "build_auth_script", "build_post_script"]
