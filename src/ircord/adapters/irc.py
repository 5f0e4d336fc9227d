"""IRC adapter: pydle client publishing bridge events, with reconnect and flood control."""

from __future__ import annotations

import asyncio
import contextlib
import random
from collections.abc import Callable
from typing import Any

import pydle
from loguru import logger

from ircord.adapters.base import AdapterBase, ConnectionState
from ircord.adapters.irc_throttle import TokenBucket
from ircord.config import parse_bool
from ircord.events import (
    Connected,
    Disconnected,
    JoinOut,
    MessageKind,
    MessageOut,
    RawCommandOut,
    TransportError,
    connected,
    disconnected,
    identity_changed,
    invite,
    join,
    kick,
    kill,
    message_in,
    names,
    part,
    quit,
    transport_error,
)
from ircord.gateway.bus import Bus

# Backoff: min 2s, max 60s, jitter
_BACKOFF_MIN = 2
_BACKOFF_MAX = 60
_MAX_ATTEMPTS = 10

_DEFAULT_PORT = 6667
_DEFAULT_TLS_PORT = 6697
_DEFAULT_FLOOD_DELAY_MS = 500


async def _connect_with_backoff(
    client: pydle.Client,
    hostname: str,
    port: int,
    tls: bool,
    tls_verify: bool = True,
    password: str | None = None,
    max_attempts: int = _MAX_ATTEMPTS,
    on_error: Callable[[BaseException], None] | None = None,
) -> None:
    """Connect with exponential backoff and jitter on failure; reconnect on disconnect.

    Gives up (logged, not raised) after max_attempts consecutive failures.
    """
    attempt = 0
    while True:
        try:
            await client.connect(
                hostname=hostname,
                port=port,
                tls=tls,
                tls_verify=tls_verify,
                password=password,
            )
            # pydle.connect() returns immediately after spawning handle_forever.
            # Wait for actual disconnect before reconnecting.
            while client.connected:
                await asyncio.sleep(0.5)
            attempt = 0
            wait = _BACKOFF_MIN * random.uniform(0.5, 1.5)
            logger.info("IRC disconnected, reconnecting in {:.1f}s", wait)
            await asyncio.sleep(wait)
        except Exception as exc:
            attempt += 1
            if on_error is not None:
                on_error(exc)
            if attempt >= max_attempts:
                logger.error("IRC connect to {}:{} failed after {} attempts; giving up", hostname, port, attempt)
                return
            delay = min(_BACKOFF_MAX, _BACKOFF_MIN * (2 ** (attempt - 1)))
            wait = delay * random.uniform(0.5, 1.5)
            logger.warning(
                "IRC connect failed (attempt {}): {}, retrying in {:.1f}s",
                attempt,
                exc,
                wait,
            )
            await asyncio.sleep(wait)


class IRCClient(pydle.Client):
    """Pydle client that turns IRC callbacks into bridge events and drains an outbound queue."""

    # _connect_with_backoff owns reconnection.
    RECONNECT_ON_ERROR = False

    def __init__(
        self,
        bus: Bus,
        server: str,
        nick: str,
        channels: list[tuple[str, str | None]],
        throttle: TokenBucket | None = None,
        **kwargs: Any,
    ) -> None:
        super().__init__(nick, **kwargs)
        self._bus = bus
        self._server = server
        self._join_targets = channels
        self._throttle = throttle
        self._outbound: asyncio.Queue[MessageOut | RawCommandOut] = asyncio.Queue()
        self._consumer_task: asyncio.Task | None = None

    async def on_connect(self) -> None:
        """After registration, join mapped channels, start the consumer and announce identity."""
        await super().on_connect()
        logger.info("IRC connected to {} as {}", self._server, self.nickname)
        for channel, key in self._join_targets:
            await self.join(channel, password=key)
        if self._consumer_task is None or self._consumer_task.done():
            self._consumer_task = asyncio.create_task(self._consume_outbound())
        _, evt = connected("irc", self.nickname)
        self._bus.publish("irc", evt)

    async def on_disconnect(self, expected: bool) -> None:
        _, evt = disconnected("irc", expected=expected)
        self._bus.publish("irc", evt)
        await super().on_disconnect(expected)

    async def on_data_error(self, exception: BaseException) -> None:
        """Transport error from the connection; pydle disconnects, the backoff loop reconnects."""
        _, evt = transport_error("irc", exception)
        self._bus.publish("irc", evt)
        await super().on_data_error(exception)

    def _publish_message(self, target: str, by: str | None, text: str, kind: MessageKind) -> None:
        author = by or ""
        _, evt = message_in(
            origin="irc",
            channel_id=target,
            author_id=author,
            author_display=author,
            content=text,
            kind=kind,
        )
        self._bus.publish("irc", evt)

    async def on_message(self, target: str, by: str, message: str) -> None:
        await super().on_message(target, by, message)
        self._publish_message(target, by, message, "message")

    async def on_notice(self, target: str, by: str, message: str) -> None:
        await super().on_notice(target, by, message)
        self._publish_message(target, by, message, "notice")

    async def on_ctcp_action(self, by: str, target: str, contents: str) -> None:
        """Handle /me action."""
        self._publish_message(target, by, contents, "action")

    async def on_invite(self, channel: str, by: str) -> None:
        await super().on_invite(channel, by)
        logger.debug("IRC: invited to {} by {}", channel, by)
        _, evt = invite("irc", channel, by)
        self._bus.publish("irc", evt)

    async def on_join(self, channel: str, user: str) -> None:
        await super().on_join(channel, user)
        _, evt = join("irc", channel, user, user)
        self._bus.publish("irc", evt)

    async def on_part(self, channel: str, user: str, message: str | None = None) -> None:
        await super().on_part(channel, user, message)
        _, evt = part("irc", channel, user, user, reason=message)
        self._bus.publish("irc", evt)

    async def on_kick(self, channel: str, target: str, by: str, reason: str | None = None) -> None:
        await super().on_kick(channel, target, by, reason)
        _, evt = kick("irc", channel, target, target, by, reason=reason)
        self._bus.publish("irc", evt)

    def _channels_of(self, nick: str) -> list[str]:
        """Channels we share with nick, read before pydle forgets the user."""
        return [name for name, info in self.channels.items() if nick in info.get("users", ())]

    async def on_quit(self, user: str, message: str | None = None) -> None:
        channels = self._channels_of(user)
        await super().on_quit(user, message)
        _, evt = quit("irc", user, user, reason=message, channels=channels)
        self._bus.publish("irc", evt)

    async def on_kill(self, target: str, by: str, reason: str | None) -> None:
        channels = self._channels_of(target)
        await super().on_kill(target, by, reason)
        _, evt = kill("irc", target, target, by=by, reason=reason, channels=channels)
        self._bus.publish("irc", evt)

    async def on_nick_change(self, old: str, new: str) -> None:
        await super().on_nick_change(old, new)
        if self.is_same_nick(self.nickname, new):
            _, evt = identity_changed("irc", new)
            self._bus.publish("irc", evt)

    async def on_raw_366(self, message: Any) -> None:
        """RPL_ENDOFNAMES: the user list for the channel is complete."""
        params = getattr(message, "params", [])
        if len(params) < 2:
            return
        channel = params[1]
        info = self.channels.get(channel) or self.channels.get(self.normalize(channel)) or {}
        _, evt = names("irc", channel, sorted(info.get("users", ())))
        self._bus.publish("irc", evt)

    def queue(self, evt: MessageOut | RawCommandOut) -> None:
        """Queue outbound message or raw command; sent in order by the consumer."""
        self._outbound.put_nowait(evt)

    async def _consume_outbound(self) -> None:
        """Consume outbound queue with token bucket throttling."""
        while True:
            try:
                evt = await self._outbound.get()
                if self._throttle is not None:
                    wait = self._throttle.acquire()
                    if wait > 0:
                        await asyncio.sleep(wait)
                    self._throttle.use_token()
                await self._send(evt)
            except asyncio.CancelledError:
                break
            except Exception as exc:
                logger.exception("IRC send failed: {}", exc)

    async def _send(self, evt: MessageOut | RawCommandOut) -> None:
        if isinstance(evt, RawCommandOut):
            logger.debug("IRC: raw {} {}", evt.command, evt.args)
            await self.rawmsg(evt.command, *evt.args)
            return
        if not self.in_channel(evt.channel_id):
            logger.info("IRC: not in channel {}; dropping message", evt.channel_id)
            return
        await self.message(evt.channel_id, evt.content)

    async def disconnect(self, expected: bool = True) -> None:
        """Disconnect and cleanup."""
        if self._consumer_task:
            self._consumer_task.cancel()
            with contextlib.suppress(asyncio.CancelledError):
                await self._consumer_task
            self._consumer_task = None
        await super().disconnect(expected)


class IRCAdapter(AdapterBase):
    """IRC side of the bridge: owns the pydle client and its reconnect loop."""

    def __init__(
        self,
        bus: Bus,
        server: str,
        nickname: str,
        channels: list[tuple[str, str | None]],
        irc_options: dict[str, Any] | None = None,
    ) -> None:
        self._bus = bus
        self._server = server
        self._nickname = nickname
        self._channels = channels
        self._options = dict(irc_options or {})
        self._client: IRCClient | None = None
        self._task: asyncio.Task | None = None

    @property
    def name(self) -> str:
        return "irc"

    def accept_event(self, source: str, evt: object) -> bool:
        """Accept outbound events targeting IRC and our own lifecycle events."""
        if isinstance(evt, MessageOut | RawCommandOut | JoinOut):
            return evt.target_origin == "irc"
        if isinstance(evt, Connected | Disconnected | TransportError):
            return evt.origin == "irc"
        return False

    def push_event(self, source: str, evt: object) -> None:
        if isinstance(evt, Connected):
            self._set_state(ConnectionState.CONNECTED)
            return
        if isinstance(evt, Disconnected | TransportError):
            self._set_state(ConnectionState.DEGRADED)
            return
        if self._client is None:
            logger.warning("IRC {} dropped: no client", type(evt).__name__)
            return
        if isinstance(evt, JoinOut):
            asyncio.create_task(self._client.join(evt.channel_id))  # noqa: RUF006
            return
        if isinstance(evt, MessageOut | RawCommandOut):
            self._client.queue(evt)

    def _client_kwargs(self) -> dict[str, Any]:
        opts = self._options
        kwargs: dict[str, Any] = {
            "username": opts.get("username") or self._nickname,
            "realname": opts.get("realname") or self._nickname,
        }
        fallback = opts.get("fallback_nicknames")
        if isinstance(fallback, list):
            kwargs["fallback_nicknames"] = [str(n) for n in fallback]
        if opts.get("sasl_username") and opts.get("sasl_password"):
            kwargs["sasl_username"] = str(opts["sasl_username"])
            kwargs["sasl_password"] = str(opts["sasl_password"])
        return kwargs

    def _throttle(self) -> TokenBucket | None:
        if not parse_bool(self._options.get("flood_protection"), True):
            return None
        delay = float(self._options.get("flood_protection_delay", _DEFAULT_FLOOD_DELAY_MS))
        return TokenBucket.from_delay(delay)

    def _report_error(self, exc: BaseException) -> None:
        _, evt = transport_error("irc", exc)
        self._bus.publish("irc", evt)

    async def start(self) -> None:
        """Start IRC connection in the background."""
        tls = parse_bool(self._options.get("tls"), False)
        port = int(self._options.get("port") or (_DEFAULT_TLS_PORT if tls else _DEFAULT_PORT))
        self._client = IRCClient(
            bus=self._bus,
            server=self._server,
            nick=self._nickname,
            channels=self._channels,
            throttle=self._throttle(),
            **self._client_kwargs(),
        )
        self._bus.register(self)
        self._set_state(ConnectionState.CONNECTING)
        self._task = asyncio.create_task(
            _connect_with_backoff(
                self._client,
                hostname=self._server,
                port=port,
                tls=tls,
                tls_verify=parse_bool(self._options.get("tls_verify"), True),
                password=self._options.get("password"),
                max_attempts=int(self._options.get("retry_count", _MAX_ATTEMPTS)),
                on_error=self._report_error,
            )
        )
        logger.info(
            "IRC connection started: {}:{}, channels {}",
            self._server,
            port,
            [channel for channel, _ in self._channels],
        )

    async def stop(self) -> None:
        """Stop IRC connection."""
        self._set_state(ConnectionState.DISCONNECTED)
        self._bus.unregister(self)
        if self._task:
            self._task.cancel()
            with contextlib.suppress(asyncio.CancelledError):
                await self._task
        if self._client and self._client.connected:
            await self._client.disconnect()
        self._client = None
        self._task = None
