"""Which IRC membership events become synthetic Discord messages, and how they read."""

from __future__ import annotations

from dataclasses import dataclass

from ircord.config import Config
from ircord.events import Join, Kick, Kill, Names, Part, Quit

# (author, irc_channel, text)
Synthetic = tuple[str, str, str]


def _reason(reason: str | None) -> str:
    return "" if reason is None else reason


@dataclass(frozen=True)
class EventRelayPolicy:
    """Per-kind toggles, all off by default. Parts cover kicks, quits cover kills."""

    relay_joins: bool = False
    relay_parts: bool = False
    relay_quits: bool = False
    relay_names: bool = False

    @classmethod
    def from_config(cls, config: Config) -> EventRelayPolicy:
        return cls(
            relay_joins=config.relay_joins,
            relay_parts=config.relay_parts,
            relay_quits=config.relay_quits,
            relay_names=config.relay_names,
        )

    def render(self, evt: object) -> list[Synthetic]:
        """Synthetic messages to relay for evt. Empty when the toggle is off."""
        if isinstance(evt, Join):
            if not self.relay_joins:
                return []
            ch = evt.channel_id
            return [(f"{ch}/join", ch, f"{evt.display} joined {ch}")]
        if isinstance(evt, Part):
            if not self.relay_parts:
                return []
            ch = evt.channel_id
            return [(f"{ch}/part", ch, f"{evt.display} parted {ch}: {_reason(evt.reason)}")]
        if isinstance(evt, Kick):
            if not self.relay_parts:
                return []
            ch = evt.channel_id
            return [(f"{ch}/kick", ch, f"{evt.display} kicked from {ch} by {evt.by}: {_reason(evt.reason)}")]
        if isinstance(evt, Quit):
            if not self.relay_quits:
                return []
            return [(f"{ch}/quit", ch, f"{evt.display} quit: {_reason(evt.reason)}") for ch in evt.channels]
        if isinstance(evt, Kill):
            if not self.relay_quits:
                return []
            return [(f"{ch}/kill", ch, f"{evt.display} killed: {_reason(evt.reason)}") for ch in evt.channels]
        if isinstance(evt, Names):
            if not self.relay_names:
                return []
            return [(evt.channel_id, evt.channel_id, f"Users: {' '.join(evt.nicks)}")]
        return []
