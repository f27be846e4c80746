"""Event dispatch to registered observers.

This module provides:
- Observer: Base class with one handler per dispatched event kind
- Dispatcher: Delivers each event to every observer in registration order
- DispatchStats: Delivery counters

Architecture:
    SyncEngine ─event, room_id─► Dispatcher ─► Directory
                                            ├─► MessageLogger
                                            └─► AutoJoiner ...

Each observer receives the event after the dispatcher's own base step
(debug logging and counting). An exception raised by one observer is
logged and counted; the remaining observers still receive the event.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass

from chatsync.client.events import (
    EventView,
    InviteEvent,
    RoomStateEvent,
    TimelineEvent,
)

logger = logging.getLogger(__name__)


class Observer:
    """Receiver of dispatched events.

    Subclasses override the handlers for the event kinds they care
    about; the defaults do nothing. The room id is always passed
    explicitly.
    """

    def on_timeline(self, event: TimelineEvent, room_id: str) -> None:
        """Handle a timeline event of a joined room."""

    def on_state(self, event: RoomStateEvent, room_id: str) -> None:
        """Handle a state event of a joined room."""

    def on_invite(self, event: InviteEvent, room_id: str) -> None:
        """Handle a stripped state event of an invited room."""


# View class -> Observer method name
_HANDLERS: dict[type[EventView], str] = {
    TimelineEvent: "on_timeline",
    RoomStateEvent: "on_state",
    InviteEvent: "on_invite",
}


@dataclass
class DispatchStats:
    """Counters kept by a Dispatcher."""

    events: int = 0
    delivered: int = 0
    failed: int = 0

    def reset(self) -> None:
        """Reset all counters to zero."""
        self.events = 0
        self.delivered = 0
        self.failed = 0


class Dispatcher:
    """Delivers events to observers in registration order.

    Usage:
        dispatcher = Dispatcher()
        dispatcher.register(directory)
        dispatcher.register(MessageLogger(path))

        dispatcher.dispatch(event, "!room:example.org")
    """

    def __init__(self, observers: list[Observer] | None = None) -> None:
        self._observers: list[Observer] = list(observers or [])
        self._stats = DispatchStats()

    @property
    def observers(self) -> tuple[Observer, ...]:
        """Registered observers, in delivery order."""
        return tuple(self._observers)

    @property
    def stats(self) -> DispatchStats:
        """Get dispatch statistics."""
        return self._stats

    def register(self, observer: Observer) -> None:
        """Append an observer to the delivery list."""
        self._observers.append(observer)
        logger.debug("Registered observer %s", type(observer).__name__)

    def unregister(self, observer: Observer) -> None:
        """Remove an observer; unknown observers are ignored."""
        if observer in self._observers:
            self._observers.remove(observer)

    def notify(self, observer: Observer, event: EventView, room_id: str) -> None:
        """Deliver one event to one observer.

        Args:
            observer: Receiving observer.
            event: Decoded event view.
            room_id: Room the event belongs to.

        Raises:
            TypeError: If the event kind is not dispatchable.
        """
        handler_name = _HANDLERS.get(type(event))
        if handler_name is None:
            raise TypeError(f"Cannot dispatch {type(event).__name__}")

        logger.debug(
            "%s <- %s %s in %s",
            type(observer).__name__,
            event.kind.value,
            event.get("event_type"),
            room_id,
        )
        getattr(observer, handler_name)(event, room_id)

    def dispatch(self, event: EventView, room_id: str) -> int:
        """Deliver an event to every registered observer.

        Args:
            event: Decoded event view.
            room_id: Room the event belongs to.

        Returns:
            Number of observers that handled the event without error.
        """
        self._stats.events += 1
        delivered = 0
        for observer in list(self._observers):
            try:
                self.notify(observer, event, room_id)
            except Exception:
                self._stats.failed += 1
                logger.exception(
                    "Observer %s failed on %s event in %s",
                    type(observer).__name__,
                    event.kind.value,
                    room_id,
                )
            else:
                delivered += 1
        self._stats.delivered += delivered
        return delivered
