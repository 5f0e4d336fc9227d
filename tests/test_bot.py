"""Tests for Bot wiring and create_bots."""

from __future__ import annotations

from unittest.mock import AsyncMock

import pytest

from ircord.adapters.disc import DiscordAdapter
from ircord.adapters.irc import IRCAdapter
from ircord.bot import Bot, create_bots
from ircord.errors import ConfigurationError
from ircord.events import MessageOut, message_in
from tests.mocks import base_options


class TestBot:
    def test_wires_components(self):
        # Act
        bot = Bot(base_options(channel_mapping={"#general": "#Relay key"}))

        # Assert
        assert isinstance(bot.discord, DiscordAdapter)
        assert isinstance(bot.irc, IRCAdapter)
        assert bot.router.resolve_outbound("#general") == "#relay"
        assert bot.irc._channels == [("#Relay", "key")]

    def test_relay_is_registered_on_bus(self):
        # Arrange
        bot = Bot(base_options())
        published = []
        bot.bus.register(type("Spy", (), {
            "accept_event": lambda self, s, e: isinstance(e, MessageOut),
            "push_event": lambda self, s, e: published.append(e),
        })())

        # Act
        _, evt = message_in("discord", "#general", "100", "alice", "hi")
        bot.bus.publish("discord", evt)

        # Assert
        assert [(e.target_origin, e.channel_id) for e in published] == [("irc", "#relay")]

    def test_relay_uses_discord_directory(self):
        # Arrange
        bot = Bot(base_options())
        published = []
        bot.bus.register(type("Spy", (), {
            "accept_event": lambda self, s, e: True,
            "push_event": lambda self, s, e: published.append(e),
        })())

        # Act: no Discord client yet, so the channel is unavailable and nothing is sent
        _, evt = message_in("irc", "#relay", "bob", "bob", "hi")
        bot.bus.publish("irc", evt)

        # Assert
        assert published == [evt]

    def test_missing_field_fails_fast(self, monkeypatch):
        monkeypatch.delenv("DISCORD_TOKEN", raising=False)
        options = base_options()
        del options["server"]
        with pytest.raises(ConfigurationError, match="Missing configuration field server"):
            Bot(options)

    @pytest.mark.asyncio
    async def test_connect_and_disconnect_drive_both_adapters(self):
        # Arrange
        bot = Bot(base_options())
        bot.discord.start = AsyncMock()
        bot.discord.stop = AsyncMock()
        bot.irc.start = AsyncMock()
        bot.irc.stop = AsyncMock()

        # Act
        await bot.connect()
        await bot.disconnect()

        # Assert
        bot.discord.start.assert_awaited_once()
        bot.irc.start.assert_awaited_once()
        bot.discord.stop.assert_awaited_once()
        bot.irc.stop.assert_awaited_once()


class TestCreateBots:
    def test_single_mapping(self):
        assert len(create_bots(base_options())) == 1

    def test_list_of_mappings(self):
        bots = create_bots([base_options(), base_options(server="irc.other.net")])
        assert [b.config.server for b in bots] == ["irc.example.net", "irc.other.net"]

    def test_invalid_shape(self):
        with pytest.raises(ConfigurationError, match="Invalid configuration file given"):
            create_bots("not a config")

    def test_one_invalid_bot_fails_all(self):
        with pytest.raises(ConfigurationError):
            create_bots([base_options(), base_options(channel_mapping="#general")])
