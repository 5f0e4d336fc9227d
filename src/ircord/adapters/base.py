"""Base adapter: thin wrapper implementing EventTarget plus connection lifecycle."""

from __future__ import annotations

from abc import ABC, abstractmethod
from enum import Enum

from loguru import logger


class ConnectionState(str, Enum):
    """Adapter lifecycle. DEGRADED heals back to CONNECTED; DISCONNECTED is terminal."""

    UNCONNECTED = "unconnected"
    CONNECTING = "connecting"
    CONNECTED = "connected"
    DEGRADED = "degraded"
    DISCONNECTED = "disconnected"


class AdapterBase(ABC):
    """Thin base for adapters. Default accept_event/push_event ignore everything."""

    _state: ConnectionState = ConnectionState.UNCONNECTED

    @property
    @abstractmethod
    def name(self) -> str:
        """Adapter identifier ('discord' or 'irc')."""
        ...

    @property
    def state(self) -> ConnectionState:
        return self._state

    def _set_state(self, state: ConnectionState) -> None:
        if state == self._state:
            return
        if self._state == ConnectionState.DISCONNECTED:
            logger.debug("{}: ignoring transition to {} after shutdown", self.name, state.value)
            return
        logger.debug("{}: {} -> {}", self.name, self._state.value, state.value)
        self._state = state

    def accept_event(self, source: str, evt: object) -> bool:
        """Return True if this adapter wants the event. Override for filtering."""
        return False

    def push_event(self, source: str, evt: object) -> None:
        """Handle event. Override to process. May queue for async handling."""
        pass

    @abstractmethod
    async def start(self) -> None:
        """Start the adapter (connect, register handlers)."""
        ...

    @abstractmethod
    async def stop(self) -> None:
        """Stop the adapter (disconnect, cleanup)."""
        ...
