"""Message formatting for cross-protocol bridging."""

from ircord.formatting.colors import NICK_COLORS, colorize, nick_color
from ircord.formatting.discord_to_irc import discord_to_irc, expand_channel_refs, fold_lines, resolve_mentions
from ircord.formatting.irc_to_discord import emphasize, reinject_mentions

__all__ = [
    "NICK_COLORS",
    "colorize",
    "discord_to_irc",
    "emphasize",
    "expand_channel_refs",
    "fold_lines",
    "nick_color",
    "reinject_mentions",
    "resolve_mentions",
]
