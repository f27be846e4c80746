"""Bot behaviours built on the observer interface.

This module provides:
- MessageLogger: Appends room messages to a log file
- AutoJoiner: Accepts invitations to invite-only rooms
"""

from __future__ import annotations

import logging
from pathlib import Path
from typing import TYPE_CHECKING, Protocol

from chatsync.client.dispatch import Observer
from chatsync.client.events import ROOM_JOIN_RULES, ROOM_MESSAGE

if TYPE_CHECKING:
    from chatsync.client.directory import Directory
    from chatsync.client.events import InviteEvent, TimelineEvent

logger = logging.getLogger(__name__)


class RoomJoiner(Protocol):
    """Anything that can join a room (SyncEngine does)."""

    def join_room(self, room_id: str) -> str:
        ...


class MessageLogger(Observer):
    """Append every room message to a text file.

    Each line is tab separated: room (name if known, else id), sender,
    message body.
    """

    def __init__(self, path: Path, directory: Directory | None = None) -> None:
        """Initialize the logger.

        Args:
            path: File to append to (created with its parent directories).
            directory: Optional directory used to print room names.
        """
        self._path = Path(path)
        self._directory = directory
        self._path.parent.mkdir(parents=True, exist_ok=True)

    @property
    def path(self) -> Path:
        return self._path

    def _room_label(self, room_id: str) -> str:
        if self._directory is not None:
            room = self._directory.lookup(room_id)
            if room is not None and room.name:
                return room.name
        return room_id

    def on_timeline(self, event: TimelineEvent, room_id: str) -> None:
        if event.event_type != ROOM_MESSAGE:
            return
        body = event.body
        if body is None:
            return
        line = "\t".join(
            (self._room_label(room_id), event.sender or "?", body.replace("\n", " "))
        )
        with self._path.open("a", encoding="utf-8") as f:
            f.write(line + "\n")


class AutoJoiner(Observer):
    """Join rooms whose invitation carries an invite-only join rule.

    Each room is joined at most once per AutoJoiner. A failed join is
    logged and may be retried on a later invitation.
    """

    def __init__(self, joiner: RoomJoiner) -> None:
        self._joiner = joiner
        self._joined: set[str] = set()

    @property
    def joined(self) -> frozenset[str]:
        """Rooms joined so far."""
        return frozenset(self._joined)

    def on_invite(self, event: InviteEvent, room_id: str) -> None:
        if event.event_type != ROOM_JOIN_RULES:
            return
        content = event.content
        if not isinstance(content, dict) or content.get("join_rule") != "invite":
            return
        if room_id in self._joined:
            return

        logger.info("Accepting invitation to %s from %s", room_id, event.sender)
        self._joiner.join_room(room_id)
        self._joined.add(room_id)
