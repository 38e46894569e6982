"""Collapse insignificant whitespace in rendered HTML.

Use it as a post-processor::

    post_process:
      enabled: true
      sources:
        - essencekit.plugins.minify:minify_html

Examples
--------
>>> minify_html("<ul>\\n  <li>a</li>\\n  <li>b</li>\\n</ul>")
'<ul><li>a</li><li>b</li></ul>'
"""

from __future__ import annotations

import re
import typing as typ

from essencekit.compiler.markup import (
    VERBATIM_TAGS,
    BlockStore,
    restore_blocks,
    strip_comments,
)

if typ.TYPE_CHECKING:
    from pathlib import Path

    from essencekit.compiler.models import ComponentDescriptor

# Line comments in scripts end at a newline, so scripts and styles are kept too.
PRESERVED_TAGS = (*VERBATIM_TAGS, "script", "style")
PRESERVED_PATTERN = re.compile(
    rf"<({'|'.join(PRESERVED_TAGS)})(?:\s[^>]*)?>.*?</\1\s*>",
    re.IGNORECASE | re.DOTALL,
)
# Preserved blocks become %%-delimited tokens, which count as tag boundaries.
_BETWEEN_TAGS = re.compile(r"(>|%%)\s+(<|%%)")
_WHITESPACE_RUN = re.compile(r"\s{2,}")


def minify_html(
    markup: str,
    descriptor: ComponentDescriptor | None = None,
    output_path: Path | None = None,
) -> str:
    """Return ``markup`` without comments and redundant whitespace.

    ``<pre>``, ``<code>``, ``<textarea>``, ``<script>`` and ``<style>``
    contents are kept byte for byte.
    """
    store = BlockStore()
    markup = PRESERVED_PATTERN.sub(lambda match: store.add(match.group(0)), markup)
    markup = strip_comments(markup)
    markup = _BETWEEN_TAGS.sub(r"\1\2", markup)
    markup = _WHITESPACE_RUN.sub(" ", markup).strip()
    return restore_blocks(markup, store)


__all__ = ["PRESERVED_PATTERN", "PRESERVED_TAGS", "minify_html"]
