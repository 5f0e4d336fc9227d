"""Discord adapter: bot client, channel and member lookups, queue for outbound."""

from __future__ import annotations

import asyncio
import contextlib

import discord
from discord import AllowedMentions, Intents, Member, Message, TextChannel
from loguru import logger

from ircord.adapters.base import AdapterBase, ConnectionState
from ircord.events import (
    Connected,
    Disconnected,
    MessageIn,
    MessageOut,
    Mention,
    TransportError,
    connected,
    disconnected,
    message_in,
    transport_error,
)
from ircord.gateway.bus import Bus

MAX_MESSAGE_LEN = 2000

# Never resolved to a member; left as plain text.
_SKIP_MENTIONS = frozenset({"everyone", "here"})

# Disable mass pings for bridged content; user mentions are allowed.
_ALLOWED_MENTIONS = AllowedMentions(everyone=False, roles=False)


def _matches_member(member: Member, name: str) -> bool:
    """Case-insensitive match on username, display name or server nick."""
    wanted = name.lower()
    candidates = (member.name, member.display_name, getattr(member, "nick", None))
    return any(c and c.lower() == wanted for c in candidates)


class DiscordAdapter(AdapterBase):
    """Discord side of the bridge. Also serves the relay's channel/member lookups."""

    def __init__(self, bus: Bus, token: str | None, *, send_delay: float = 0.25) -> None:
        self._bus = bus
        self._token = token
        self._send_delay = send_delay
        self._queue: asyncio.Queue[MessageOut] = asyncio.Queue()
        self._client: discord.Client | None = None
        self._consumer_task: asyncio.Task | None = None
        self._client_task: asyncio.Task | None = None

    @property
    def name(self) -> str:
        return "discord"

    def accept_event(self, source: str, evt: object) -> bool:
        """Accept MessageOut targeting Discord and our own lifecycle events."""
        if isinstance(evt, MessageOut):
            return evt.target_origin == "discord"
        if isinstance(evt, Connected | Disconnected | TransportError):
            return evt.origin == "discord"
        return False

    def push_event(self, source: str, evt: object) -> None:
        if isinstance(evt, Connected):
            self._set_state(ConnectionState.CONNECTED)
        elif isinstance(evt, Disconnected | TransportError):
            self._set_state(ConnectionState.DEGRADED)
        elif isinstance(evt, MessageOut):
            self._queue.put_nowait(evt)

    def _find_channel(self, channel: str) -> TextChannel | None:
        """Text channel by '#name' (or bare name) across all guilds the bot is in."""
        if self._client is None:
            return None
        wanted = channel[1:] if channel.startswith("#") else channel
        return discord.utils.find(
            lambda c: isinstance(c, TextChannel) and c.name == wanted,
            self._client.get_all_channels(),
        )

    def has_channel(self, channel: str) -> bool:
        return self._find_channel(channel) is not None

    def find_user_mention(self, name: str) -> str | None:
        """Mention markup for the first member matching name, or None."""
        if self._client is None or name.lower() in _SKIP_MENTIONS:
            return None
        member = discord.utils.find(lambda m: _matches_member(m, name), self._client.get_all_members())
        return member.mention if member else None

    async def _queue_consumer(self) -> None:
        """Background consumer: pop from queue, send to the channel with delay."""
        while True:
            try:
                evt = await self._queue.get()
                channel = self._find_channel(evt.channel_id)
                if channel is None:
                    logger.info("Discord: channel {} not available; dropping message", evt.channel_id)
                    continue
                await channel.send(evt.content[:MAX_MESSAGE_LEN], allowed_mentions=_ALLOWED_MENTIONS)
                await asyncio.sleep(self._send_delay)
            except asyncio.CancelledError:
                break
            except Exception as exc:
                logger.exception("Discord send failed: {}", exc)

    def _to_message_in(self, message: Message) -> MessageIn | None:
        """Build MessageIn from a Discord message. None for channels without a name (DMs)."""
        channel_name = getattr(message.channel, "name", None)
        if not channel_name:
            return None

        channel_names: dict[str, str] = {}
        for channel_id in message.raw_channel_mentions:
            mentioned = self._client.get_channel(channel_id) if self._client else None
            mentioned_name = getattr(mentioned, "name", None)
            if mentioned_name:
                channel_names[str(channel_id)] = mentioned_name

        author = message.author
        _, evt = message_in(
            origin="discord",
            channel_id=f"#{channel_name}",
            author_id=str(author.id),
            author_display=author.name,
            content=message.content or "",
            mentions=[Mention(str(u.id), u.name) for u in message.mentions],
            channel_names=channel_names,
            attachments=[a.url for a in message.attachments],
        )
        return evt

    async def _on_message(self, message: Message) -> None:
        """Handle incoming Discord message; emit MessageIn to bus."""
        evt = self._to_message_in(message)
        if evt is None:
            logger.debug("Discord: ignoring message outside a named channel")
            return
        self._bus.publish("discord", evt)

    async def _run_client(self, client: discord.Client, token: str) -> None:
        """Run the client; discord.py reconnects on its own, login failures end up here."""
        try:
            await client.start(token)
        except asyncio.CancelledError:
            raise
        except Exception as exc:
            logger.exception("Discord client stopped: {}", exc)
            _, evt = transport_error("discord", exc)
            self._bus.publish("discord", evt)

    async def start(self) -> None:
        """Start Discord client and queue consumer."""
        if not self._token:
            logger.warning("Discord token not set; Discord adapter disabled")
            return

        intents = Intents.default()
        intents.message_content = True
        intents.guilds = True
        intents.members = True

        client = discord.Client(intents=intents)

        @client.event
        async def on_ready() -> None:
            logger.info("Discord bot ready: {}", client.user)
            _, evt = connected("discord", str(client.user.id))
            self._bus.publish("discord", evt)

        @client.event
        async def on_resumed() -> None:
            _, evt = connected("discord", str(client.user.id))
            self._bus.publish("discord", evt)

        @client.event
        async def on_disconnect() -> None:
            _, evt = disconnected("discord")
            self._bus.publish("discord", evt)

        @client.event
        async def on_error(event_method: str, *args, **kwargs) -> None:
            logger.exception("Discord error in {}", event_method)
            _, evt = transport_error("discord", f"error in {event_method}")
            self._bus.publish("discord", evt)

        @client.event
        async def on_message(message: Message) -> None:
            await self._on_message(message)

        self._client = client
        self._bus.register(self)
        self._set_state(ConnectionState.CONNECTING)
        self._consumer_task = asyncio.create_task(self._queue_consumer())
        self._client_task = asyncio.create_task(self._run_client(client, self._token))

    async def stop(self) -> None:
        """Stop Discord client and consumer."""
        self._set_state(ConnectionState.DISCONNECTED)
        self._bus.unregister(self)
        if self._consumer_task:
            self._consumer_task.cancel()
            with contextlib.suppress(asyncio.CancelledError):
                await self._consumer_task
        if self._client:
            await self._client.close()
        if self._client_task:
            self._client_task.cancel()
            with contextlib.suppress(asyncio.CancelledError):
                await self._client_task
        self._client = None
        self._consumer_task = None
        self._client_task = None
