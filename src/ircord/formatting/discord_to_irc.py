"""Rewrite Discord message content into single-line IRC text."""

from __future__ import annotations

import re
from collections.abc import Iterable, Mapping

from ircord.events import Mention

_LINE_BREAK = re.compile(r"\r\n|\r|\n")
_CHANNEL_REF = re.compile(r"<#(\d+)>")


def resolve_mentions(content: str, mentions: Iterable[Mention]) -> str:
    """Replace <@id> and <@!id> with @name for every carried mention.

    Only identities carried with the message are resolved; other tokens stay as-is.
    """
    for mention in mentions:
        replacement = f"@{mention.name}"
        content = content.replace(f"<@{mention.user_id}>", replacement)
        content = content.replace(f"<@!{mention.user_id}>", replacement)
    return content


def fold_lines(content: str) -> str:
    """Collapse LF, CR and CRLF into single spaces."""
    return _LINE_BREAK.sub(" ", content)


def expand_channel_refs(content: str, channel_names: Mapping[str, str]) -> str:
    """Rewrite <#id> as #name. Unknown ids are left raw."""

    def _replace(match: re.Match[str]) -> str:
        name = channel_names.get(match.group(1))
        if name is None:
            return match.group(0)
        return f"#{name}"

    return _CHANNEL_REF.sub(_replace, content)


def discord_to_irc(
    content: str,
    mentions: Iterable[Mention] = (),
    channel_names: Mapping[str, str] | None = None,
) -> str:
    """Full Discord -> IRC pipeline: mentions, line folding, channel references."""
    if not content:
        return content
    text = resolve_mentions(content, mentions)
    text = fold_lines(text)
    return expand_channel_refs(text, channel_names or {})
