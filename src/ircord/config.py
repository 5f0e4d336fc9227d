"""Configuration: YAML + env overlay, accessors and validation."""

from __future__ import annotations

import os
from collections.abc import Mapping
from pathlib import Path
from typing import Any

import yaml
from loguru import logger

from ircord.errors import ConfigurationError

REQUIRED_FIELDS = ("server", "nickname", "channel_mapping", "discord_token")


def parse_bool(val: object, default: bool) -> bool:
    """Parse a config flag. Quoted "false"/"no"/"0" are False; unrecognized strings give default."""
    if val is None:
        return default
    if isinstance(val, str):
        v = val.strip().lower()
        if v in ("1", "true", "yes"):
            return True
        if v in ("0", "false", "no"):
            return False
        return default
    return bool(val)


def load_config(path: str | Path) -> dict[str, Any] | list[dict[str, Any]]:
    """Load config from YAML (or JSON) file with SafeLoader.

    Returns one bot config (dict) or several (list of dicts).
    """
    path = Path(path)
    if not path.exists():
        logger.warning("Config file not found: {}", path)
        return {}

    try:
        with open(path) as f:
            data = yaml.safe_load(f)
    except yaml.YAMLError as exc:
        logger.error("Failed to parse config {}: {}", path, exc)
        raise

    if isinstance(data, dict):
        return data
    if isinstance(data, list) and all(isinstance(item, dict) for item in data):
        return data
    logger.warning("Config file {} has invalid structure (expected dict or list of dicts)", path)
    return {}


def load_config_with_env(path: str | Path) -> dict[str, Any] | list[dict[str, Any]]:
    """Load config from YAML after loading .env (searched from the working directory).

    Env values (e.g. DISCORD_TOKEN) are read lazily by Config accessors.
    """
    from dotenv import find_dotenv, load_dotenv

    load_dotenv(find_dotenv(usecwd=True))
    return load_config(path)


def validate_channel_mapping(mapping: object) -> None:
    """Raise ConfigurationError unless mapping is a dict of channel -> channel strings."""
    if not isinstance(mapping, Mapping):
        raise ConfigurationError("Invalid channel_mapping given", code="invalid_mapping")
    for discord_channel, irc_channel in mapping.items():
        if not isinstance(discord_channel, str) or not isinstance(irc_channel, str) or not irc_channel.strip():
            raise ConfigurationError(
                "Invalid channel_mapping given",
                code="invalid_mapping",
                details={"discord_channel": discord_channel, "irc_channel": irc_channel},
            )


class Config:
    """Config accessor for one bot, with attribute-style access and defaults."""

    def __init__(self, data: dict[str, Any] | None = None) -> None:
        self._data = data or {}

    def validate(self) -> None:
        """Fail fast on missing required fields or a malformed channel mapping."""
        values = {
            "server": self.server,
            "nickname": self.nickname,
            "channel_mapping": self._data.get("channel_mapping"),
            "discord_token": self.discord_token,
        }
        for name in REQUIRED_FIELDS:
            if not values[name]:
                raise ConfigurationError(f"Missing configuration field {name}", code="missing_field")
        validate_channel_mapping(values["channel_mapping"])

    @property
    def server(self) -> str:
        return str(self._data.get("server") or "")

    @property
    def nickname(self) -> str:
        return str(self._data.get("nickname") or "")

    @property
    def discord_token(self) -> str:
        """Discord bot token; DISCORD_TOKEN env var when not in the file."""
        return str(self._data.get("discord_token") or os.environ.get("DISCORD_TOKEN") or "")

    @property
    def channel_mapping(self) -> dict[str, str]:
        """Raw Discord channel -> 'IRC channel[ key]' mapping."""
        m = self._data.get("channel_mapping")
        return dict(m) if isinstance(m, Mapping) else {}

    @property
    def irc_options(self) -> dict[str, Any]:
        """Extra IRC connection options (port, tls, sasl, flood protection...)."""
        val = self._data.get("irc_options")
        return dict(val) if isinstance(val, Mapping) else {}

    @property
    def command_characters(self) -> frozenset[str]:
        """Prefix characters marking a Discord message as a command. Empty: no commands."""
        val = self._data.get("command_characters")
        if isinstance(val, str):
            return frozenset(val)
        if isinstance(val, list):
            return frozenset(str(c)[:1] for c in val if str(c))
        return frozenset()

    @property
    def irc_nick_color(self) -> bool:
        """Colour Discord author names on IRC."""
        return parse_bool(self._data.get("irc_nick_color"), True)

    @property
    def relay_joins(self) -> bool:
        """Relay IRC joins to Discord."""
        return parse_bool(self._data.get("relay_joins"), False)

    @property
    def relay_parts(self) -> bool:
        """Relay IRC parts and kicks to Discord."""
        return parse_bool(self._data.get("relay_parts"), False)

    @property
    def relay_quits(self) -> bool:
        """Relay IRC quits and kills to Discord."""
        return parse_bool(self._data.get("relay_quits"), False)

    @property
    def relay_names(self) -> bool:
        """Relay IRC name lists to Discord."""
        return parse_bool(self._data.get("relay_names"), False)

    @property
    def auto_send_commands(self) -> list[tuple[str, ...]]:
        """Raw IRC commands sent after each connect, e.g. [['PRIVMSG', 'NickServ', 'IDENTIFY pw']]."""
        val = self._data.get("auto_send_commands")
        if not isinstance(val, list):
            return []
        commands: list[tuple[str, ...]] = []
        for item in val:
            if isinstance(item, list | tuple) and item:
                commands.append(tuple(str(part) for part in item))
            elif isinstance(item, str) and item:
                commands.append((item,))
        return commands
