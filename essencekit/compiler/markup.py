"""Protect whitespace-sensitive blocks from template passes and restore them.

``<pre>``, ``<code>`` and ``<textarea>`` elements are swapped for numbered
tokens before any template processing so nothing inside them is touched, and
swapped back once the whole component tree has been rendered.

Examples
--------
>>> store = BlockStore()
>>> safe = protect_blocks("<p>@[x]</p><pre>@[x]</pre>", store)
>>> "<pre>" in safe
False
>>> restore_blocks(safe, store)
'<p>@[x]</p><pre>@[x]</pre>'
"""

from __future__ import annotations

import re
import secrets

VERBATIM_TAGS = ("pre", "code", "textarea")
VERBATIM_PATTERN = re.compile(
    rf"<({'|'.join(VERBATIM_TAGS)})(?:\s[^>]*)?>.*?</\1\s*>",
    re.IGNORECASE | re.DOTALL,
)
COMMENT_PATTERN = re.compile(r"<!--.*?-->", re.DOTALL)


class BlockStore:
    """Ordered store of verbatim fragments shared by one render tree.

    Each store carries a random nonce that is embedded in its tokens, so a
    token can never match text an author wrote by hand.
    """

    def __init__(self) -> None:
        self.nonce = secrets.token_hex(4)
        self._blocks: list[str] = []
        self._token_pattern = re.compile(rf"%%VERBATIM_{self.nonce}_(\d+)%%")

    def __len__(self) -> int:
        return len(self._blocks)

    def __getitem__(self, index: int) -> str:
        return self._blocks[index]

    def add(self, fragment: str) -> str:
        """Append ``fragment`` and return the token that stands in for it."""
        self._blocks.append(fragment)
        return self.token(len(self._blocks) - 1)

    def token(self, index: int) -> str:
        """Return the token for the fragment at ``index``."""
        return f"%%VERBATIM_{self.nonce}_{index}%%"

    @property
    def token_pattern(self) -> re.Pattern[str]:
        """Regex matching this store's tokens, capturing the index."""
        return self._token_pattern


def protect_blocks(markup: str, store: BlockStore) -> str:
    """Replace every verbatim element in ``markup`` with a token from ``store``."""
    return VERBATIM_PATTERN.sub(lambda match: store.add(match.group(0)), markup)


def restore_blocks(markup: str, store: BlockStore) -> str:
    """Swap every token of ``store`` in ``markup`` back to its fragment."""
    if not len(store):
        return markup
    return store.token_pattern.sub(lambda match: store[int(match.group(1))], markup)


def strip_comments(markup: str) -> str:
    """Remove HTML comments from ``markup``."""
    return COMMENT_PATTERN.sub("", markup)


__all__ = [
    "COMMENT_PATTERN",
    "VERBATIM_PATTERN",
    "VERBATIM_TAGS",
    "BlockStore",
    "protect_blocks",
    "restore_blocks",
    "strip_comments",
]
