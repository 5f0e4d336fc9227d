"""Gateway: event bus, channel router, relay controller."""

from ircord.gateway.bus import Bus
from ircord.gateway.relay import DiscordDirectory, Relay
from ircord.gateway.router import ChannelMapping, ChannelRouter

__all__ = ["Bus", "ChannelMapping", "ChannelRouter", "DiscordDirectory", "Relay"]
