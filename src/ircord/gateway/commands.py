"""Relay commands typed on Discord (e.g. '.names')."""

from __future__ import annotations

from collections.abc import Callable, Iterable

from loguru import logger

HELP_AUTHOR = "Relay/Help"


class CommandDispatcher:
    """Recognizes prefixed Discord messages and routes them.

    Built-ins: ``names`` (raw NAMES on the mapped IRC channel) and ``help`` (usage
    reply on Discord). Anything else is announced on IRC and passed through verbatim
    so IRC-side bots can be driven from Discord.
    """

    def __init__(
        self,
        command_characters: Iterable[str],
        *,
        send_raw: Callable[..., None],
        send_to_irc: Callable[[str, str, str], None],
        send_to_discord: Callable[[str, str, str], None],
    ) -> None:
        self._prefixes = frozenset(command_characters)
        self._send_raw = send_raw
        self._send_to_irc = send_to_irc
        self._send_to_discord = send_to_discord
        self._builtins: dict[str, Callable[[str, str, str], None]] = {
            "names": self._names,
            "help": self._help,
        }

    def is_command(self, text: str) -> bool:
        """True when text starts with a configured command character."""
        return bool(text) and text[0] in self._prefixes

    def dispatch(self, text: str, *, author: str, irc_channel: str) -> bool:
        """Run text as a command. Returns False when text is not a command."""
        if not self.is_command(text):
            return False
        prefix, name = text[0], text[1:].strip()
        handler = self._builtins.get(name)
        if handler is not None:
            handler(prefix, author, irc_channel)
        else:
            self._passthrough(text, author, irc_channel)
        return True

    def _names(self, prefix: str, author: str, irc_channel: str) -> None:
        logger.debug("Sending raw command to IRC: NAMES {}", irc_channel)
        self._send_raw("NAMES", irc_channel)

    def _help(self, prefix: str, author: str, irc_channel: str) -> None:
        self._send_to_discord(HELP_AUTHOR, irc_channel, f"Type {prefix}names to list users in this channel")

    def _passthrough(self, text: str, author: str, irc_channel: str) -> None:
        self._send_to_irc(irc_channel, author, f"Command sent from Discord by {author}:")
        self._send_to_irc(irc_channel, author, text)
