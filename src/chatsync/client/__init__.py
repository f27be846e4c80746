"""Client module - HTTP API, event schema, dispatch, directory and sync engine."""

from chatsync.client.api import (
    APIError,
    AuthenticationError,
    HTTPClient,
    NotLoggedInError,
    SyncFailedError,
)
from chatsync.client.credentials import CredentialStore, CredentialStoreError
from chatsync.client.directory import Directory, Room
from chatsync.client.dispatch import DispatchStats, Dispatcher, Observer
from chatsync.client.engine import SyncCycleResult, SyncEngine
from chatsync.client.events import (
    InviteEvent,
    LoginResponse,
    RoomStateEvent,
    SyncResponse,
    TimelineEvent,
)
from chatsync.client.observers import AutoJoiner, MessageLogger
from chatsync.client.session import Session

__all__ = [
    # API
    "APIError",
    "AuthenticationError",
    "HTTPClient",
    "NotLoggedInError",
    "SyncFailedError",
    # Credentials and session
    "CredentialStore",
    "CredentialStoreError",
    "Session",
    # Events
    "InviteEvent",
    "LoginResponse",
    "RoomStateEvent",
    "SyncResponse",
    "TimelineEvent",
    # Dispatch and directory
    "DispatchStats",
    "Dispatcher",
    "Directory",
    "Observer",
    "Room",
    # Engine
    "SyncCycleResult",
    "SyncEngine",
    # Bots
    "AutoJoiner",
    "MessageLogger",
]
