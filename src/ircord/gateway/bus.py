"""Event bus: central dispatcher for adapter and relay events."""

from ircord.events import Dispatcher, EventTarget

__all__ = ["Bus", "EventTarget"]


class Bus:
    """Event bus wrapping the central dispatcher. Adapters and the relay register and receive events."""

    def __init__(self) -> None:
        self._dispatcher = Dispatcher()

    def register(self, target: EventTarget) -> None:
        """Register an event target."""
        self._dispatcher.register(target)

    def unregister(self, target: EventTarget) -> None:
        """Unregister an event target."""
        self._dispatcher.unregister(target)

    def publish(self, source: str, evt: object) -> None:
        """Publish event to all targets that accept it. Synchronous: returns once every target ran."""
        self._dispatcher.dispatch(source, evt)
