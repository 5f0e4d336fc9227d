"""Bot: one Discord <-> IRC bridge instance, wiring bus, router, relay and adapters."""

from __future__ import annotations

from typing import Any

from loguru import logger

from ircord.adapters.disc import DiscordAdapter
from ircord.adapters.irc import IRCAdapter
from ircord.config import Config
from ircord.errors import ConfigurationError
from ircord.gateway import Bus, ChannelRouter, Relay
from ircord.gateway.router import join_targets


class Bot:
    """One bridge between a Discord bot account and an IRC server.

    Construction validates the config and fails fast with ConfigurationError;
    nothing connects until connect() is awaited.
    """

    def __init__(self, options: dict[str, Any]) -> None:
        self.config = Config(options)
        self.config.validate()

        self.bus = Bus()
        self.router = ChannelRouter.from_config(self.config.channel_mapping)
        self.discord = DiscordAdapter(self.bus, self.config.discord_token)
        self.irc = IRCAdapter(
            self.bus,
            self.config.server,
            self.config.nickname,
            join_targets(self.config.channel_mapping),
            self.config.irc_options,
        )
        self.relay = Relay(self.bus, self.router, self.config, directory=self.discord)
        self.bus.register(self.relay)

    async def connect(self) -> None:
        """Start both adapters. Each reconnects on its own afterwards."""
        logger.info("Connecting bridge {} <-> Discord as {}", self.config.server, self.config.nickname)
        await self.discord.start()
        await self.irc.start()

    async def disconnect(self) -> None:
        """Stop both adapters."""
        logger.info("Disconnecting bridge for {}", self.config.server)
        for adapter in (self.discord, self.irc):
            logger.info("Stopping {} adapter", adapter.name)
            await adapter.stop()


def create_bots(data: object) -> list[Bot]:
    """One Bot for a config mapping, one per entry for a list of mappings."""
    if isinstance(data, dict):
        return [Bot(data)]
    if isinstance(data, list):
        return [Bot(options) for options in data]
    raise ConfigurationError("Invalid configuration file given", code="invalid_config")
