"""Rewrite IRC text for Discord: emphasis for notices/actions, mention re-injection."""

from __future__ import annotations

import re
from collections.abc import Callable

# @name up to the last word boundary, so trailing punctuation is not part of the name
_AT_PATTERN = re.compile(r"@(\S+)\b")


def reinject_mentions(content: str, lookup: Callable[[str], str | None]) -> str:
    """Replace @name with the native Discord mention when lookup knows the name.

    Unmatched tokens are left verbatim.
    """
    if not content:
        return content

    def _replace(match: re.Match[str]) -> str:
        mention = lookup(match.group(1))
        return mention if mention else match.group(0)

    return _AT_PATTERN.sub(_replace, content)


def emphasize(content: str, kind: str) -> str:
    """Notices become *italic*, actions _italic_, plain messages pass through."""
    if kind == "notice":
        return f"*{content}*"
    if kind == "action":
        return f"_{content}_"
    return content
