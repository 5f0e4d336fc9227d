"""Tests for Discord adapter."""

from __future__ import annotations

import asyncio
from unittest.mock import AsyncMock, MagicMock

import pytest
from discord import TextChannel

from ircord.adapters.base import ConnectionState
from ircord.adapters.disc import DiscordAdapter
from ircord.events import Mention, MessageIn, connected, disconnected, message_in, message_out


def _text_channel(name: str) -> MagicMock:
    channel = MagicMock(spec=TextChannel)
    channel.name = name
    channel.send = AsyncMock()
    return channel


def _member(name: str, display_name: str, nick: str | None, mention: str) -> MagicMock:
    member = MagicMock()
    member.name = name
    member.display_name = display_name
    member.nick = nick
    member.mention = mention
    return member


@pytest.fixture
def adapter() -> DiscordAdapter:
    adapter = DiscordAdapter(MagicMock(), "token", send_delay=0)
    adapter._client = MagicMock()
    adapter._client.get_all_channels.return_value = [_text_channel("general"), _text_channel("dev")]
    adapter._client.get_all_members.return_value = [
        _member("alice_w", "Alice", None, "<@1>"),
        _member("bob", "Bobby", "bobnick", "<@2>"),
    ]
    return adapter


def test_discord_adapter_accepts_message_out_for_discord(adapter: DiscordAdapter) -> None:
    """Discord adapter accepts MessageOut with target_origin=discord."""
    assert adapter.accept_event("relay", message_out("discord", "#general", "bob", "hi")[1])
    assert not adapter.accept_event("relay", message_out("irc", "#relay", "bob", "hi")[1])
    assert not adapter.accept_event("irc", message_in("irc", "#relay", "bob", "bob", "hi")[1])
    assert adapter.accept_event("discord", connected("discord", "1")[1])
    assert not adapter.accept_event("irc", connected("irc", "relaybot")[1])


def test_lifecycle_events_drive_state(adapter: DiscordAdapter) -> None:
    adapter.push_event("discord", connected("discord", "1")[1])
    assert adapter.state == ConnectionState.CONNECTED
    adapter.push_event("discord", disconnected("discord")[1])
    assert adapter.state == ConnectionState.DEGRADED


class TestDirectory:
    def test_has_channel(self, adapter: DiscordAdapter) -> None:
        assert adapter.has_channel("#general") is True
        assert adapter.has_channel("general") is True
        assert adapter.has_channel("#random") is False

    def test_no_client_means_no_channels(self) -> None:
        adapter = DiscordAdapter(MagicMock(), "token")
        assert adapter.has_channel("#general") is False
        assert adapter.find_user_mention("alice") is None

    @pytest.mark.parametrize(
        ("name", "expected"),
        [
            ("alice_w", "<@1>"),
            ("ALICE", "<@1>"),
            ("bobnick", "<@2>"),
            ("bobby", "<@2>"),
            ("carol", None),
        ],
    )
    def test_find_user_mention(self, adapter: DiscordAdapter, name: str, expected: str | None) -> None:
        assert adapter.find_user_mention(name) == expected

    def test_everyone_and_here_never_resolved(self, adapter: DiscordAdapter) -> None:
        adapter._client.get_all_members.return_value = [_member("everyone", "everyone", None, "<@9>")]
        assert adapter.find_user_mention("everyone") is None
        assert adapter.find_user_mention("Here") is None


class TestInbound:
    def test_message_in_built_from_discord_message(self, adapter: DiscordAdapter) -> None:
        # Arrange
        mentioned_channel = MagicMock()
        mentioned_channel.name = "rules"
        adapter._client.get_channel.return_value = mentioned_channel
        mentioned_user = MagicMock(id=7, display_name="Carol C.")
        mentioned_user.name = "carol"
        attachment = MagicMock(url="https://cdn.example/a.png")
        message = MagicMock()
        message.channel.name = "general"
        message.author.id = 100
        message.author.name = "alice"
        message.author.display_name = "Alice in Chains"
        message.content = "<@7> see <#55>"
        message.mentions = [mentioned_user]
        message.raw_channel_mentions = [55]
        message.attachments = [attachment]

        # Act
        evt = adapter._to_message_in(message)

        # Assert
        assert isinstance(evt, MessageIn)
        assert evt.origin == "discord"
        assert evt.channel_id == "#general"
        assert evt.author_id == "100"
        assert evt.author_display == "alice"
        assert evt.mentions == [Mention("7", "carol")]
        assert evt.channel_names == {"55": "rules"}
        assert evt.attachments == ["https://cdn.example/a.png"]

    @pytest.mark.asyncio
    async def test_direct_messages_ignored(self, adapter: DiscordAdapter) -> None:
        # Arrange
        message = MagicMock()
        message.channel = MagicMock(spec=[])

        # Act
        await adapter._on_message(message)

        # Assert
        adapter._bus.publish.assert_not_called()


class TestOutbound:
    @pytest.mark.asyncio
    async def test_queue_consumer_sends_to_named_channel(self, adapter: DiscordAdapter) -> None:
        # Arrange
        general = adapter._client.get_all_channels.return_value[0]
        adapter.push_event("relay", message_out("discord", "#general", "bob", "**<bob>** hi")[1])
        adapter.push_event("relay", message_out("discord", "#missing", "bob", "**<bob>** lost")[1])
        adapter.push_event("relay", message_out("discord", "#general", "bob", "x" * 2100)[1])

        # Act
        task = asyncio.create_task(adapter._queue_consumer())
        for _ in range(10):
            await asyncio.sleep(0)
        task.cancel()
        await asyncio.gather(task, return_exceptions=True)

        # Assert
        sent = [c.args[0] for c in general.send.await_args_list]
        assert sent == ["**<bob>** hi", "x" * 2000]

    @pytest.mark.asyncio
    async def test_start_without_token_is_disabled(self) -> None:
        # Arrange
        bus = MagicMock()
        adapter = DiscordAdapter(bus, "")

        # Act
        await adapter.start()

        # Assert
        bus.register.assert_not_called()
        assert adapter.state == ConnectionState.UNCONNECTED
