"""Channel router: immutable Discord channel <-> IRC channel mapping."""

from __future__ import annotations

from collections.abc import Mapping
from dataclasses import dataclass
from types import MappingProxyType

from loguru import logger


def _split_irc_channel(value: str) -> tuple[str, str | None]:
    """Split '#chan key' into ('#chan', 'key'). Key is None when absent."""
    parts = value.split()
    if not parts:
        return "", None
    return parts[0], (parts[1] if len(parts) > 1 else None)


@dataclass(frozen=True)
class ChannelMapping:
    """Discord channel -> IRC channel table plus its inverse. Read-only after construction.

    IRC channels are stored lower-cased and without their join key. When two Discord
    channels point at the same IRC channel, the inverse keeps the last one.
    """

    forward: Mapping[str, str]
    inverse: Mapping[str, str]

    @classmethod
    def from_config(cls, channel_mapping: Mapping[str, str]) -> ChannelMapping:
        forward: dict[str, str] = {}
        for discord_channel, irc_value in channel_mapping.items():
            irc_channel, _ = _split_irc_channel(irc_value)
            forward[discord_channel] = irc_channel.lower()
        inverse = {irc: discord for discord, irc in forward.items()}
        shadowed = len(forward) - len(inverse)
        if shadowed:
            logger.warning(
                "Router: {} Discord channel(s) shadowed by a later mapping to the same IRC channel",
                shadowed,
            )
        return cls(forward=MappingProxyType(forward), inverse=MappingProxyType(inverse))


class ChannelRouter:
    """Resolves channels across the bridge. Absence of a mapping means 'not bridged'."""

    def __init__(self, mapping: ChannelMapping) -> None:
        self._mapping = mapping

    @classmethod
    def from_config(cls, channel_mapping: Mapping[str, str]) -> ChannelRouter:
        """Build the router from the validated channel_mapping config value."""
        router = cls(ChannelMapping.from_config(channel_mapping))
        logger.info("Router: loaded {} mappings", len(router.mapping.forward))
        return router

    @property
    def mapping(self) -> ChannelMapping:
        return self._mapping

    def resolve_outbound(self, discord_channel: str) -> str | None:
        """IRC channel for a Discord channel ('#name'), or None."""
        return self._mapping.forward.get(discord_channel)

    def resolve_inbound(self, irc_channel: str) -> str | None:
        """Discord channel for an IRC channel (case-insensitive), or None."""
        return self._mapping.inverse.get(irc_channel.lower())


def join_targets(channel_mapping: Mapping[str, str]) -> list[tuple[str, str | None]]:
    """IRC channels to join with their optional keys, deduplicated, in config order."""
    seen: set[str] = set()
    targets: list[tuple[str, str | None]] = []
    for irc_value in channel_mapping.values():
        channel, key = _split_irc_channel(irc_value)
        if not channel or channel.lower() in seen:
            continue
        seen.add(channel.lower())
        targets.append((channel, key))
    return targets
