"""Local directory of rooms projected from state events.

This module provides:
- Room: Name, aliases and members of one room
- Directory: Observer that folds state events into Room entries and
  answers name/contact lookups

The directory is not authoritative: it only reflects the events the
client has seen since startup. Rooms are created on first reference and
never removed. Member events only ever add their sender, so users who
left a room are still listed. Queries return copies, so Room entries
only change through the event handlers.

All name comparisons use str.casefold() on both sides, for exact and
substring matching alike.
"""

from __future__ import annotations

import logging
from collections.abc import Iterator
from dataclasses import dataclass, field, replace
from typing import TYPE_CHECKING

from chatsync.client.dispatch import Observer
from chatsync.client.events import ROOM_ALIASES, ROOM_MEMBER, ROOM_NAME

if TYPE_CHECKING:
    from chatsync.client.events import InviteEvent, RoomStateEvent, TimelineEvent

logger = logging.getLogger(__name__)


@dataclass
class Room:
    """Metadata of one room.

    Attributes:
        room_id: Server-assigned room id.
        name: Display name (empty until an m.room.name event is seen).
        aliases: Known room aliases.
        members: User ids seen as senders of member events.
    """

    room_id: str
    name: str = ""
    aliases: set[str] = field(default_factory=set)
    members: set[str] = field(default_factory=set)

    def copy(self) -> Room:
        """Return a detached copy; changes to it never reach the directory."""
        return replace(self, aliases=set(self.aliases), members=set(self.members))


def _matches(candidate: str, wanted: str, exact: bool) -> bool:
    if exact:
        return candidate.casefold() == wanted.casefold()
    return wanted.casefold() in candidate.casefold()


class Directory(Observer):
    """Room directory maintained from dispatched events."""

    def __init__(self) -> None:
        self._rooms: dict[str, Room] = {}

    def __len__(self) -> int:
        return len(self._rooms)

    def __contains__(self, room_id: object) -> bool:
        return room_id in self._rooms

    def rooms(self) -> Iterator[Room]:
        """Iterate copies of the rooms in first-reference order."""
        return iter([room.copy() for room in self._rooms.values()])

    def _ensure(self, room_id: str) -> Room:
        room = self._rooms.get(room_id)
        if room is None:
            room = Room(room_id=room_id)
            self._rooms[room_id] = room
            logger.debug("New room %s", room_id)
        return room

    # === Observer handlers ===

    def on_timeline(self, event: TimelineEvent, room_id: str) -> None:
        self._ensure(room_id)

    def on_invite(self, event: InviteEvent, room_id: str) -> None:
        self._ensure(room_id)

    def on_state(self, event: RoomStateEvent, room_id: str) -> None:
        room = self._ensure(room_id)
        event_type = event.event_type
        if event_type == ROOM_NAME:
            self._apply_name(room, event)
        elif event_type == ROOM_MEMBER:
            self._apply_member(room, event)
        elif event_type == ROOM_ALIASES:
            self._apply_aliases(room, event)

    def _apply_name(self, room: Room, event: RoomStateEvent) -> None:
        content = event.content
        name = content.get("name") if isinstance(content, dict) else None
        if not isinstance(name, str):
            logger.debug("Ignoring name event without a name in %s", room.room_id)
            return
        room.name = name

    def _apply_member(self, room: Room, event: RoomStateEvent) -> None:
        # Leaves are not told apart from joins; the set only grows.
        sender = event.sender
        if sender:
            room.members.add(sender)

    def _apply_aliases(self, room: Room, event: RoomStateEvent) -> None:
        logger.debug("Alias event in %s not applied", room.room_id)

    # === Queries ===

    def lookup(self, room_id: str) -> Room | None:
        """Get a room by id.

        Returns:
            A copy of the Room, or None if the room was never referenced.
        """
        room = self._rooms.get(room_id)
        return room.copy() if room is not None else None

    def find_rooms_by_name(
        self,
        name: str,
        exact: bool = True,
        full: bool = False,
    ) -> list[Room] | list[str]:
        """Find rooms by display name, ignoring case.

        Args:
            name: Name to look for.
            exact: Require the whole name to match; otherwise match
                any room whose name contains ``name``.
            full: Return copies of the Room objects instead of room ids.

        Returns:
            Matching rooms (or their ids) in first-reference order.
        """
        found = [room for room in self._rooms.values() if _matches(room.name, name, exact)]
        if full:
            return [room.copy() for room in found]
        return [room.room_id for room in found]

    def all_known_users(self) -> set[str]:
        """Return the member ids of every known room."""
        users: set[str] = set()
        for room in self._rooms.values():
            users.update(room.members)
        return users

    def find_contact(self, name: str, exact: bool = True) -> str | None:
        """Find a user id by name, ignoring case.

        Rooms are searched in first-reference order and each room's
        members in sorted order; the first match wins.

        Args:
            name: User id (or part of one, when exact is False).
            exact: Require the whole user id to match.

        Returns:
            The matching user id, or None.
        """
        for room in self._rooms.values():
            for member in sorted(room.members):
                if _matches(member, name, exact):
                    return member
        return None
