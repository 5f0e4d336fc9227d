"""Tests for the channel mapping table and router."""

from __future__ import annotations

import pytest

from ircord.gateway.router import ChannelMapping, ChannelRouter, join_targets


class TestChannelMapping:
    def test_irc_side_lowercased_and_key_stripped(self):
        # Act
        mapping = ChannelMapping.from_config({"#general": "#Relay secret"})

        # Assert
        assert dict(mapping.forward) == {"#general": "#relay"}
        assert dict(mapping.inverse) == {"#relay": "#general"}

    def test_inverse_keeps_last_duplicate(self):
        # Act
        mapping = ChannelMapping.from_config({"#a": "#relay", "#b": "#RELAY"})

        # Assert
        assert mapping.forward["#a"] == "#relay"
        assert mapping.forward["#b"] == "#relay"
        assert dict(mapping.inverse) == {"#relay": "#b"}

    def test_tables_are_read_only(self):
        mapping = ChannelMapping.from_config({"#general": "#relay"})
        with pytest.raises(TypeError):
            mapping.forward["#new"] = "#x"  # type: ignore[index]


class TestChannelRouter:
    def test_resolve_both_directions(self):
        # Arrange
        router = ChannelRouter.from_config({"#general": "#relay", "#dev": "#relay-dev key"})

        # Assert
        assert router.resolve_outbound("#general") == "#relay"
        assert router.resolve_outbound("#dev") == "#relay-dev"
        assert router.resolve_inbound("#relay") == "#general"
        assert router.resolve_inbound("#RELAY-DEV") == "#dev"

    def test_absence_means_not_bridged(self):
        router = ChannelRouter.from_config({"#general": "#relay"})
        assert router.resolve_outbound("#random") is None
        assert router.resolve_inbound("#elsewhere") is None


class TestJoinTargets:
    def test_keys_kept_and_duplicates_removed(self):
        # Act
        targets = join_targets({"#a": "#relay secret", "#b": "#Relay", "#c": "#other"})

        # Assert
        assert targets == [("#relay", "secret"), ("#other", None)]
