"""Event types and dispatcher: typed events, central dispatcher."""

from __future__ import annotations

import functools
from dataclasses import dataclass, field
from typing import Any, Literal, Protocol

MessageKind = Literal["message", "notice", "action"]


@dataclass(frozen=True)
class Mention:
    """A user mentioned in a Discord message, as carried alongside its content."""

    user_id: str
    name: str


@dataclass
class MessageIn:
    """Inbound message event from either network."""

    origin: str  # "discord" | "irc"
    channel_id: str
    author_id: str
    author_display: str
    content: str
    kind: MessageKind = "message"
    mentions: list[Mention] = field(default_factory=list)
    channel_names: dict[str, str] = field(default_factory=dict)  # Discord channel id -> name
    attachments: list[str] = field(default_factory=list)  # attachment URLs


@dataclass
class Join:
    """User joined a channel."""

    origin: str
    channel_id: str
    user_id: str
    display: str


@dataclass
class Part:
    """User left a channel."""

    origin: str
    channel_id: str
    user_id: str
    display: str
    reason: str | None = None


@dataclass
class Kick:
    """User was kicked from a channel."""

    origin: str
    channel_id: str
    user_id: str
    display: str
    by: str
    reason: str | None = None


@dataclass
class Quit:
    """User disconnected; may affect several channels at once."""

    origin: str
    user_id: str
    display: str
    reason: str | None = None
    channels: list[str] = field(default_factory=list)


@dataclass
class Kill:
    """User was killed by an operator; may affect several channels at once."""

    origin: str
    user_id: str
    display: str
    by: str = ""
    reason: str | None = None
    channels: list[str] = field(default_factory=list)


@dataclass
class Names:
    """Name list for a channel (reply to NAMES or sent on join)."""

    origin: str
    channel_id: str
    nicks: list[str] = field(default_factory=list)


@dataclass
class Invite:
    """The bridge was invited to a channel."""

    origin: str
    channel_id: str
    by: str


@dataclass
class Connected:
    """An adapter finished connecting; identity is the bridge's own id on that network."""

    origin: str
    identity: str


@dataclass
class IdentityChanged:
    """The bridge's own identity changed (e.g. IRC nick change)."""

    origin: str
    identity: str


@dataclass
class Disconnected:
    """An adapter lost its connection. The client reconnects on its own."""

    origin: str
    expected: bool = False


@dataclass
class TransportError:
    """Generic transport error surfaced by a protocol client."""

    origin: str
    error: str


@dataclass
class MessageOut:
    """Outbound message, fully formatted for the target network."""

    target_origin: str  # "discord" | "irc"
    channel_id: str
    author_display: str
    content: str


@dataclass
class RawCommandOut:
    """Outbound raw protocol command (e.g. IRC NAMES)."""

    target_origin: str
    command: str
    args: tuple[str, ...] = ()


@dataclass
class JoinOut:
    """Ask an adapter to join a channel."""

    target_origin: str
    channel_id: str


class EventTarget(Protocol):
    """Adapter interface: accept_event + push_event."""

    def accept_event(self, source: str, evt: object) -> bool:
        """Return True if this target wants the event."""
        ...

    def push_event(self, source: str, evt: object) -> None:
        """Handle the event (may be async via queue)."""
        ...


def event(type_name: str):
    """Decorator to mark a factory as producing an event with a given type."""

    def decorator(f: Any) -> Any:
        @functools.wraps(f)
        def wrapper(*args: Any, **kwargs: Any) -> tuple[str, object]:
            evt = f(*args, **kwargs)
            return (type_name, evt)

        wrapper.TYPE = type_name  # type: ignore[attr-defined]
        return wrapper

    return decorator


@event("message_in")
def message_in(
    origin: str,
    channel_id: str,
    author_id: str,
    author_display: str,
    content: str,
    *,
    kind: MessageKind = "message",
    mentions: list[Mention] | None = None,
    channel_names: dict[str, str] | None = None,
    attachments: list[str] | None = None,
) -> MessageIn:
    return MessageIn(
        origin=origin,
        channel_id=channel_id,
        author_id=author_id,
        author_display=author_display,
        content=content,
        kind=kind,
        mentions=mentions or [],
        channel_names=channel_names or {},
        attachments=attachments or [],
    )


@event("join")
def join(origin: str, channel_id: str, user_id: str, display: str) -> Join:
    return Join(origin=origin, channel_id=channel_id, user_id=user_id, display=display)


@event("part")
def part(
    origin: str,
    channel_id: str,
    user_id: str,
    display: str,
    *,
    reason: str | None = None,
) -> Part:
    return Part(
        origin=origin,
        channel_id=channel_id,
        user_id=user_id,
        display=display,
        reason=reason,
    )


@event("kick")
def kick(
    origin: str,
    channel_id: str,
    user_id: str,
    display: str,
    by: str,
    *,
    reason: str | None = None,
) -> Kick:
    return Kick(
        origin=origin,
        channel_id=channel_id,
        user_id=user_id,
        display=display,
        by=by,
        reason=reason,
    )


@event("quit")
def quit(
    origin: str,
    user_id: str,
    display: str,
    *,
    reason: str | None = None,
    channels: list[str] | None = None,
) -> Quit:
    return Quit(origin=origin, user_id=user_id, display=display, reason=reason, channels=channels or [])


@event("kill")
def kill(
    origin: str,
    user_id: str,
    display: str,
    *,
    by: str = "",
    reason: str | None = None,
    channels: list[str] | None = None,
) -> Kill:
    return Kill(
        origin=origin,
        user_id=user_id,
        display=display,
        by=by,
        reason=reason,
        channels=channels or [],
    )


@event("names")
def names(origin: str, channel_id: str, nicks: list[str]) -> Names:
    return Names(origin=origin, channel_id=channel_id, nicks=list(nicks))


@event("invite")
def invite(origin: str, channel_id: str, by: str) -> Invite:
    return Invite(origin=origin, channel_id=channel_id, by=by)


@event("connected")
def connected(origin: str, identity: str) -> Connected:
    return Connected(origin=origin, identity=identity)


@event("identity_changed")
def identity_changed(origin: str, identity: str) -> IdentityChanged:
    return IdentityChanged(origin=origin, identity=identity)


@event("disconnected")
def disconnected(origin: str, *, expected: bool = False) -> Disconnected:
    return Disconnected(origin=origin, expected=expected)


@event("transport_error")
def transport_error(origin: str, error: object) -> TransportError:
    return TransportError(origin=origin, error=str(error))


@event("message_out")
def message_out(target_origin: str, channel_id: str, author_display: str, content: str) -> MessageOut:
    return MessageOut(
        target_origin=target_origin,
        channel_id=channel_id,
        author_display=author_display,
        content=content,
    )


@event("raw_command_out")
def raw_command_out(target_origin: str, command: str, *args: str) -> RawCommandOut:
    return RawCommandOut(target_origin=target_origin, command=command, args=tuple(args))


@event("join_out")
def join_out(target_origin: str, channel_id: str) -> JoinOut:
    return JoinOut(target_origin=target_origin, channel_id=channel_id)


class Dispatcher:
    """Central event dispatcher; targets filter by type and receive events."""

    def __init__(self) -> None:
        self._targets: list[EventTarget] = []

    def register(self, target: EventTarget) -> None:
        """Register an event target (adapter or relay)."""
        if target not in self._targets:
            self._targets.append(target)

    def unregister(self, target: EventTarget) -> None:
        """Unregister an event target."""
        if target in self._targets:
            self._targets.remove(target)

    def dispatch(self, source: str, evt: object) -> None:
        """Dispatch event to all targets that accept it."""
        from loguru import logger

        for target in list(self._targets):
            try:
                if target.accept_event(source, evt):
                    target.push_event(source, evt)
            except Exception as exc:
                logger.exception("Failed to pass event to target {}: {}", target, exc)
