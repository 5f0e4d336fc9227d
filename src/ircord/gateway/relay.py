"""Relay controller: inbound events from either network -> outbound events for the other."""

from __future__ import annotations

from typing import Protocol

from loguru import logger

from ircord.config import Config
from ircord.events import (
    Connected,
    Disconnected,
    IdentityChanged,
    Invite,
    Join,
    Kick,
    Kill,
    MessageIn,
    Names,
    Part,
    Quit,
    TransportError,
    join_out,
    message_out,
    raw_command_out,
)
from ircord.formatting.colors import colorize
from ircord.formatting.discord_to_irc import discord_to_irc
from ircord.formatting.irc_to_discord import emphasize, reinject_mentions
from ircord.gateway.bus import Bus
from ircord.gateway.commands import CommandDispatcher
from ircord.gateway.policy import EventRelayPolicy
from ircord.gateway.router import ChannelRouter

_MEMBERSHIP_EVENTS = (Join, Part, Kick, Quit, Kill, Names)
_INBOUND_EVENTS = (
    MessageIn,
    *_MEMBERSHIP_EVENTS,
    Invite,
    Connected,
    IdentityChanged,
    Disconnected,
    TransportError,
)


class DiscordDirectory(Protocol):
    """Lookups into live Discord state, provided by the Discord adapter."""

    def has_channel(self, channel: str) -> bool:
        """True if the bot can post in channel ('#name')."""
        ...

    def find_user_mention(self, name: str) -> str | None:
        """Native mention (e.g. '<@123>') for a user name, or None."""
        ...


class Relay:
    """Relays Discord messages to IRC and IRC messages/events to Discord.

    Consumes inbound events from the bus and publishes MessageOut/RawCommandOut/JoinOut
    for the adapters. No adapter-to-adapter coupling: the Discord adapter is only used
    through the DiscordDirectory lookups.
    """

    def __init__(
        self,
        bus: Bus,
        router: ChannelRouter,
        config: Config,
        directory: DiscordDirectory | None = None,
    ) -> None:
        self._bus = bus
        self._router = router
        self._directory = directory
        self._policy = EventRelayPolicy.from_config(config)
        self._irc_nick_color = config.irc_nick_color
        self._auto_send_commands = config.auto_send_commands
        self._identities: dict[str, str] = {}
        self._commands = CommandDispatcher(
            config.command_characters,
            send_raw=self._send_raw_to_irc,
            send_to_irc=self._say_to_irc,
            send_to_discord=self.send_to_discord,
        )

    def accept_event(self, source: str, evt: object) -> bool:
        return isinstance(evt, _INBOUND_EVENTS)

    def push_event(self, source: str, evt: object) -> None:
        if isinstance(evt, MessageIn):
            if self._is_own_message(evt):
                logger.debug("Relay: ignoring own {} message in {}", evt.origin, evt.channel_id)
                return
            if evt.origin == "discord":
                self.send_to_irc(evt)
            elif evt.origin == "irc":
                self.send_to_discord(evt.author_display, evt.channel_id, emphasize(evt.content, evt.kind))
            return
        if isinstance(evt, _MEMBERSHIP_EVENTS):
            self._relay_membership(evt)
            return
        if isinstance(evt, Invite):
            self._handle_invite(evt)
            return
        if isinstance(evt, Connected):
            self._handle_connected(evt)
            return
        if isinstance(evt, IdentityChanged):
            self._identities[evt.origin] = evt.identity
            logger.info("Relay: own {} identity is now {}", evt.origin, evt.identity)
            return
        if isinstance(evt, Disconnected):
            logger.warning("Relay: {} disconnected (expected={})", evt.origin, evt.expected)
            return
        if isinstance(evt, TransportError):
            logger.error("Received error event from {}: {}", evt.origin, evt.error)
            return
        logger.warning("Relay: unhandled event {}", type(evt).__name__)

    def _is_own_message(self, evt: MessageIn) -> bool:
        own = self._identities.get(evt.origin)
        if not own:
            return False
        if evt.origin == "irc":
            return evt.author_id.lower() == own.lower()
        return evt.author_id == own

    def send_to_irc(self, evt: MessageIn) -> None:
        """Relay a Discord message: transform, run commands, or send author-prefixed lines."""
        irc_channel = self._router.resolve_outbound(evt.channel_id)
        if irc_channel is None:
            logger.info("Relay: no mapping for Discord channel {}; dropping", evt.channel_id)
            return

        author = evt.author_display
        text = discord_to_irc(evt.content, evt.mentions, evt.channel_names)
        if self._commands.dispatch(text, author=author, irc_channel=irc_channel):
            return

        display = colorize(author) if self._irc_nick_color else author
        if text:
            self._say_to_irc(irc_channel, author, f"<{display}> {text}")
        for url in evt.attachments:
            self._say_to_irc(irc_channel, author, f"<{display}> {url}")

    def send_to_discord(self, author: str, irc_channel: str, text: str) -> None:
        """Relay text from an IRC channel to its Discord channel as '**<author>** text'."""
        discord_channel = self._router.resolve_inbound(irc_channel)
        if discord_channel is None:
            logger.info("Relay: no mapping for IRC channel {}; dropping", irc_channel)
            return

        if self._directory is not None:
            if not self._directory.has_channel(discord_channel):
                logger.info("Relay: tried to send to Discord channel {} the bot isn't in", discord_channel)
                return
            text = reinject_mentions(text, self._directory.find_user_mention)

        content = f"**<{author}>** {text}"
        logger.debug("Relay: IRC {} -> Discord {}: {}", irc_channel, discord_channel, content)
        _, out_evt = message_out("discord", discord_channel, author, content)
        self._bus.publish("relay", out_evt)

    def _say_to_irc(self, irc_channel: str, author: str, line: str) -> None:
        logger.debug("Relay: Discord -> IRC {}: {}", irc_channel, line)
        _, out_evt = message_out("irc", irc_channel, author, line)
        self._bus.publish("relay", out_evt)

    def _send_raw_to_irc(self, command: str, *args: str) -> None:
        _, out_evt = raw_command_out("irc", command, *args)
        self._bus.publish("relay", out_evt)

    def _relay_membership(self, evt: object) -> None:
        logger.debug("Relay: IRC membership event {}", evt)
        for author, irc_channel, text in self._policy.render(evt):
            self.send_to_discord(author, irc_channel, text)

    def _handle_invite(self, evt: Invite) -> None:
        if self._router.resolve_inbound(evt.channel_id) is None:
            logger.debug("Channel not found in config, not joining: {} (invited by {})", evt.channel_id, evt.by)
            return
        logger.info("Joining {} after invite from {}", evt.channel_id, evt.by)
        _, out_evt = join_out("irc", evt.channel_id)
        self._bus.publish("relay", out_evt)

    def _handle_connected(self, evt: Connected) -> None:
        self._identities[evt.origin] = evt.identity
        logger.info("Relay: connected to {} as {}", evt.origin, evt.identity)
        if evt.origin != "irc":
            return
        for command in self._auto_send_commands:
            logger.debug("Relay: auto-sending {}", command)
            self._send_raw_to_irc(*command)
