"""Typed read-only views over decoded JSON events.

This module provides:
- SCHEMA: Declarative table of accessor name -> key path per event kind
- get_path: Generic traversal of a decoded JSON tree
- TimelineEvent, RoomStateEvent, InviteEvent: Dispatched event views
- LoginResponse, SyncResponse: Transient decode targets

A view only wraps the tree it was decoded from. Each accessor listed in
the schema becomes a read-only property that walks its key path on
access; a missing key anywhere along the path yields None.
"""

from __future__ import annotations

from collections.abc import Iterator, Mapping
from enum import Enum
from typing import Any, ClassVar


class EventKind(str, Enum):
    """Tag of an event view."""

    TIMELINE = "timeline"
    STATE = "state"
    INVITE = "invite"
    LOGIN = "login"
    SYNC = "sync"


# Well-known event types
ROOM_MESSAGE = "m.room.message"
ROOM_NAME = "m.room.name"
ROOM_MEMBER = "m.room.member"
ROOM_ALIASES = "m.room.aliases"
ROOM_JOIN_RULES = "m.room.join_rules"


SCHEMA: dict[EventKind, dict[str, tuple[str, ...]]] = {
    EventKind.TIMELINE: {
        "event_id": ("event_id",),
        "sender": ("sender",),
        "event_type": ("type",),
        "origin_server_ts": ("origin_server_ts",),
        "msgtype": ("content", "msgtype"),
        "body": ("content", "body"),
        "content": ("content",),
    },
    EventKind.STATE: {
        "sender": ("sender",),
        "event_type": ("type",),
        "state_key": ("state_key",),
        "content": ("content",),
        "prev_content": ("unsigned", "prev_content"),
    },
    EventKind.INVITE: {
        "sender": ("sender",),
        "event_type": ("type",),
        "state_key": ("state_key",),
        "content": ("content",),
    },
    EventKind.LOGIN: {
        "user_id": ("user_id",),
        "access_token": ("access_token",),
        "device_id": ("device_id",),
    },
    EventKind.SYNC: {
        "next_batch": ("next_batch",),
        "joined": ("rooms", "join"),
        "invited": ("rooms", "invite"),
        "presence_events": ("presence", "events"),
    },
}


def get_path(tree: Any, path: tuple[str, ...]) -> Any:
    """Walk a key path into a decoded JSON tree.

    Args:
        tree: Decoded JSON value.
        path: Keys to traverse in order.

    Returns:
        The value at the end of the path, or None if any key is missing
        or an intermediate value is not an object.
    """
    node = tree
    for key in path:
        if not isinstance(node, Mapping):
            return None
        node = node.get(key)
        if node is None:
            return None
    return node


def _accessor(path: tuple[str, ...]) -> property:
    def fget(self: EventView) -> Any:
        return get_path(self._tree, path)

    return property(fget, doc=f"Value at {'.'.join(path)}")


class EventView:
    """Base class for schema-driven views.

    Subclasses set ``kind``; one property per SCHEMA[kind] entry is
    installed when the subclass is created.
    """

    kind: ClassVar[EventKind]

    __slots__ = ("_tree",)

    def __init_subclass__(cls, **kwargs: Any) -> None:
        super().__init_subclass__(**kwargs)
        for name, path in SCHEMA[cls.kind].items():
            setattr(cls, name, _accessor(path))

    def __init__(self, tree: Any) -> None:
        self._tree = tree

    @property
    def raw(self) -> Any:
        """The decoded JSON tree this view wraps."""
        return self._tree

    def get(self, name: str) -> Any:
        """Resolve an accessor by name.

        Raises:
            KeyError: If the accessor is not part of this kind's schema.
        """
        return get_path(self._tree, SCHEMA[self.kind][name])

    def __repr__(self) -> str:
        return f"{type(self).__name__}({self._tree!r})"


class TimelineEvent(EventView):
    """Message or other append-only room activity.

    The room id is not part of the event; it is passed alongside it.
    """

    kind = EventKind.TIMELINE
    __slots__ = ()

    event_id: str | None
    sender: str | None
    event_type: str | None
    origin_server_ts: int | None
    msgtype: str | None
    body: str | None
    content: dict[str, Any] | None


class RoomStateEvent(EventView):
    """Change to a piece of persistent room state."""

    kind = EventKind.STATE
    __slots__ = ()

    sender: str | None
    event_type: str | None
    state_key: str | None
    content: dict[str, Any] | None
    prev_content: dict[str, Any] | None


class InviteEvent(EventView):
    """Stripped state event delivered with an invitation."""

    kind = EventKind.INVITE
    __slots__ = ()

    sender: str | None
    event_type: str | None
    state_key: str | None
    content: dict[str, Any] | None


class LoginResponse(EventView):
    """Body of a successful login."""

    kind = EventKind.LOGIN
    __slots__ = ()

    user_id: str | None
    access_token: str | None
    device_id: str | None


def _events(room: Any, *path: str) -> list[Any]:
    events = get_path(room, path)
    return events if isinstance(events, list) else []


class SyncResponse(EventView):
    """Body of a successful sync."""

    kind = EventKind.SYNC
    __slots__ = ()

    next_batch: str | None
    joined: dict[str, Any] | None
    invited: dict[str, Any] | None
    presence_events: list[Any] | None

    def joined_rooms(self) -> Iterator[tuple[str, list[TimelineEvent], list[RoomStateEvent]]]:
        """Yield (room_id, timeline events, state events) per joined room.

        Rooms and events keep the server's order.
        """
        joined = self.joined
        if not isinstance(joined, Mapping):
            return
        for room_id, room in joined.items():
            timeline = [TimelineEvent(e) for e in _events(room, "timeline", "events")]
            state = [RoomStateEvent(e) for e in _events(room, "state", "events")]
            yield room_id, timeline, state

    def invited_rooms(self) -> Iterator[tuple[str, list[InviteEvent]]]:
        """Yield (room_id, invite state events) per invited room."""
        invited = self.invited
        if not isinstance(invited, Mapping):
            return
        for room_id, room in invited.items():
            yield room_id, [InviteEvent(e) for e in _events(room, "invite_state", "events")]


def decode_timeline_event(tree: Any) -> TimelineEvent:
    return TimelineEvent(tree)


def decode_state_event(tree: Any) -> RoomStateEvent:
    return RoomStateEvent(tree)


def decode_invite_event(tree: Any) -> InviteEvent:
    return InviteEvent(tree)


def decode_login_response(tree: Any) -> LoginResponse:
    return LoginResponse(tree)


def decode_sync_response(tree: Any) -> SyncResponse:
    return SyncResponse(tree)
