"""Shared types for chatsync."""

from __future__ import annotations

from enum import Enum


class EngineState(str, Enum):
    """Lifecycle state of a sync engine.

    UNAUTHENTICATED -> IDLE on login, IDLE <-> POLLING for every sync
    cycle, and any state -> STOPPED once the run loop exits.
    """

    UNAUTHENTICATED = "unauthenticated"
    IDLE = "idle"
    POLLING = "polling"
    STOPPED = "stopped"
