"""Mock adapters and helpers for testing the bridge without real protocol connections."""

from __future__ import annotations

from typing import Any

from ircord.adapters.base import AdapterBase
from ircord.config import Config
from ircord.events import JoinOut, MessageOut, RawCommandOut
from ircord.gateway.bus import Bus
from ircord.gateway.relay import Relay
from ircord.gateway.router import ChannelRouter


class MockAdapter(AdapterBase):
    """Mock adapter that captures outbound events without real connections."""

    def __init__(self, name: str) -> None:
        self._name = name
        self.received_events: list[tuple[str, object]] = []
        self.sent_messages: list[MessageOut] = []
        self.raw_commands: list[RawCommandOut] = []
        self.joins: list[JoinOut] = []
        self._running = False

    @property
    def name(self) -> str:
        return self._name

    def accept_event(self, source: str, evt: object) -> bool:
        """Accept outbound events targeting this adapter."""
        return isinstance(evt, MessageOut | RawCommandOut | JoinOut) and evt.target_origin == self._name

    def push_event(self, source: str, evt: object) -> None:
        """Capture event."""
        self.received_events.append((source, evt))
        if isinstance(evt, MessageOut):
            self.sent_messages.append(evt)
        elif isinstance(evt, RawCommandOut):
            self.raw_commands.append(evt)
        elif isinstance(evt, JoinOut):
            self.joins.append(evt)

    async def start(self) -> None:
        """Mock start."""
        self._running = True

    async def stop(self) -> None:
        """Mock stop."""
        self._running = False

    def clear(self) -> None:
        """Clear captured events."""
        self.received_events.clear()
        self.sent_messages.clear()
        self.raw_commands.clear()
        self.joins.clear()


class MockDiscordAdapter(MockAdapter):
    """Mock Discord adapter."""

    def __init__(self) -> None:
        super().__init__("discord")


class MockIRCAdapter(MockAdapter):
    """Mock IRC adapter."""

    def __init__(self) -> None:
        super().__init__("irc")


class MockDirectory:
    """In-memory stand-in for the Discord adapter's channel/member lookups."""

    def __init__(self, channels: set[str] | None = None, users: dict[str, str] | None = None) -> None:
        self.channels = channels if channels is not None else {"#general"}
        self.users = {name.lower(): mention for name, mention in (users or {}).items()}

    def has_channel(self, channel: str) -> bool:
        return channel in self.channels

    def find_user_mention(self, name: str) -> str | None:
        return self.users.get(name.lower())


def base_options(**overrides: Any) -> dict[str, Any]:
    """Minimal valid bot config, '#general' <-> '#relay'."""
    options: dict[str, Any] = {
        "server": "irc.example.net",
        "nickname": "relaybot",
        "discord_token": "token",
        "channel_mapping": {"#general": "#relay"},
    }
    options.update(overrides)
    return options


def make_relay(
    directory: MockDirectory | None = None,
    **overrides: Any,
) -> tuple[Bus, Relay, MockDiscordAdapter, MockIRCAdapter]:
    """Bus with a relay and both mock adapters registered."""
    config = Config(base_options(**overrides))
    bus = Bus()
    router = ChannelRouter.from_config(config.channel_mapping)
    relay = Relay(bus, router, config, directory=directory)
    discord_adapter = MockDiscordAdapter()
    irc_adapter = MockIRCAdapter()
    bus.register(relay)
    bus.register(discord_adapter)
    bus.register(irc_adapter)
    return bus, relay, discord_adapter, irc_adapter
