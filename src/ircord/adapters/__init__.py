"""Protocol adapters. Each implements EventTarget plus name, start, stop."""

from ircord.adapters.base import AdapterBase, ConnectionState
from ircord.adapters.disc import DiscordAdapter
from ircord.adapters.irc import IRCAdapter

__all__ = ["AdapterBase", "ConnectionState", "DiscordAdapter", "IRCAdapter"]
