"""Sync engine driving login and the long-poll loop.

This module provides:
- SyncEngine: Authenticates, polls /sync, advances the cursor and
  dispatches decoded events
- SyncCycleResult: Summary of one sync cycle

State machine:
    UNAUTHENTICATED ─login─► IDLE ─sync─► POLLING ─response─► IDLE
                                   (any) ─run loop exits─► STOPPED

Cursor handling:
    On success the session cursor takes the server's next_batch before
    any event is dispatched, even when the response carries no events.
    On failure the cursor is left untouched, so the next cycle asks for
    the same window again.

Delivery order within a cycle:
    For each joined room (server order): its timeline events, then its
    state events. Then the invite state events of every invited room.
"""

from __future__ import annotations

import contextlib
import logging
import threading
from collections.abc import Iterator
from dataclasses import dataclass
from typing import TYPE_CHECKING

import httpx

from chatsync.client.api import (
    DEFAULT_DEVICE_NAME,
    AuthenticationError,
    HTTPClient,
    NotLoggedInError,
    SyncFailedError,
)
from chatsync.client.credentials import CredentialStoreError
from chatsync.client.directory import Directory
from chatsync.client.dispatch import Dispatcher
from chatsync.client.events import (
    LoginResponse,
    SyncResponse,
    decode_login_response,
    decode_sync_response,
)
from chatsync.core.types import EngineState

if TYPE_CHECKING:
    from chatsync.client.credentials import CredentialStore
    from chatsync.client.dispatch import Observer
    from chatsync.client.session import Session

logger = logging.getLogger(__name__)

# Pause after a failed cycle before polling again
DEFAULT_ERROR_DELAY = 5.0


@dataclass
class SyncCycleResult:
    """Summary of one successful sync cycle."""

    previous_batch: str | None
    next_batch: str | None
    joined_rooms: int = 0
    invited_rooms: int = 0
    timeline_events: int = 0
    state_events: int = 0
    invite_events: int = 0

    @property
    def total_events(self) -> int:
        """Number of events dispatched in this cycle."""
        return self.timeline_events + self.state_events + self.invite_events


class SyncEngine:
    """Incremental sync client for one session.

    Usage:
        session = Session.from_credentials(store.load(), server_url=url)
        engine = SyncEngine(session, credential_store=store)
        engine.login("alice", password)
        engine.register(MessageLogger(log_path))

        # Blocks until stop() is called from elsewhere
        engine.run()
    """

    def __init__(
        self,
        session: Session,
        client: HTTPClient | None = None,
        dispatcher: Dispatcher | None = None,
        directory: Directory | None = None,
        credential_store: CredentialStore | None = None,
        error_delay: float = DEFAULT_ERROR_DELAY,
        verify_ssl: bool = True,
    ) -> None:
        """Initialize the engine.

        Args:
            session: Session state (server, timeout, token, cursor).
            client: HTTP client (default: built from the session).
            dispatcher: Event dispatcher (default: a new one).
            directory: Room directory (default: a new one). It is
                registered with the dispatcher if not already present.
            credential_store: Where to persist the session on shutdown.
            error_delay: Seconds to wait after a failed sync cycle.
            verify_ssl: Verify server certificates (default client only).

        Raises:
            ConfigurationError: If the session has no server address.
        """
        config = session.server_config(verify_ssl=verify_ssl)
        self._session = session
        self._owns_client = client is None
        self._client = client if client is not None else HTTPClient(config)
        self._directory = directory if directory is not None else Directory()
        self._dispatcher = dispatcher if dispatcher is not None else Dispatcher()
        if self._directory not in self._dispatcher.observers:
            self._dispatcher.register(self._directory)
        self._store = credential_store
        self._error_delay = error_delay
        self._stop_requested = threading.Event()
        self._state = (
            EngineState.IDLE if session.logged_in else EngineState.UNAUTHENTICATED
        )

    @property
    def state(self) -> EngineState:
        """Get current engine state."""
        return self._state

    @property
    def session(self) -> Session:
        return self._session

    @property
    def client(self) -> HTTPClient:
        return self._client

    @property
    def directory(self) -> Directory:
        return self._directory

    @property
    def dispatcher(self) -> Dispatcher:
        return self._dispatcher

    def register(self, observer: Observer) -> None:
        """Register an observer after the ones already registered."""
        self._dispatcher.register(observer)

    def close(self) -> None:
        """Close the HTTP client if the engine created it."""
        if self._owns_client:
            self._client.close()

    def __enter__(self) -> SyncEngine:
        return self

    def __exit__(self, *args: object) -> None:
        self.close()

    # === Authentication ===

    def login(
        self,
        user: str,
        password: str,
        device_name: str = DEFAULT_DEVICE_NAME,
    ) -> LoginResponse:
        """Log in and store the access token in the session.

        Args:
            user: User name or full user id.
            password: Account password.
            device_name: Display name for the new device.

        Returns:
            Decoded login response.

        Raises:
            AuthenticationError: If the server rejects the login. The
                engine stays UNAUTHENTICATED.
        """
        try:
            data = self._client.login(user, password, device_name=device_name)
        except AuthenticationError as e:
            logger.error("Login failed for %s (status %s)", user, e.status_code)
            raise

        response = decode_login_response(data)
        token = response.access_token
        if not token:
            raise AuthenticationError(user, 200, "no access token in response")

        self._session.access_token = token
        self._state = EngineState.IDLE
        logger.info("Logged in as %s", response.user_id or user)
        return response

    # === Sync ===

    def sync_once(self, full_state: bool = False) -> SyncCycleResult:
        """Run one sync cycle: poll, advance the cursor, dispatch.

        Args:
            full_state: Ask the server for the full state of every room.

        Returns:
            Summary of the cycle.

        Raises:
            NotLoggedInError: If the session has no access token.
            SyncFailedError: If the server answers with a non-200 status.
            httpx.TransportError: On network failure.
        """
        session = self._session
        if not session.logged_in:
            raise NotLoggedInError("Cannot sync before login")

        previous = session.next_batch
        self._state = EngineState.POLLING
        try:
            data = self._client.sync(
                session.access_token,
                since=previous,
                timeout_ms=int(session.timeout * 1000),
                full_state=full_state,
            )
        finally:
            self._state = EngineState.IDLE

        response = decode_sync_response(data)
        if response.next_batch is None:
            logger.warning("Sync response without next_batch; keeping cursor")
        else:
            session.next_batch = response.next_batch

        result = SyncCycleResult(previous_batch=previous, next_batch=session.next_batch)
        self._process(response, result)
        if result.total_events:
            logger.debug(
                "Sync %s -> %s: %d events",
                previous,
                session.next_batch,
                result.total_events,
            )
        return result

    def _process(self, response: SyncResponse, result: SyncCycleResult) -> None:
        """Dispatch the events of a decoded sync response."""
        dispatch = self._dispatcher.dispatch

        for room_id, timeline, state in response.joined_rooms():
            result.joined_rooms += 1
            for event in timeline:
                dispatch(event, room_id)
            result.timeline_events += len(timeline)
            for event in state:
                dispatch(event, room_id)
            result.state_events += len(state)

        for room_id, invites in response.invited_rooms():
            result.invited_rooms += 1
            for event in invites:
                dispatch(event, room_id)
            result.invite_events += len(invites)

    # === Run loop ===

    @contextlib.contextmanager
    def session_scope(self) -> Iterator[Session]:
        """Mark the session running and persist it on exit, however it exits.

        A stop() issued before the scope is entered is honoured: the
        session starts out not running.
        """
        self._session.running = not self._stop_requested.is_set()
        try:
            yield self._session
        finally:
            self._session.running = False
            self._state = EngineState.STOPPED
            self._persist()

    def run(self, full_state_first: bool = False) -> None:
        """Poll until stop() is called.

        Failed cycles are logged and retried after ``error_delay``
        seconds. Login errors propagate. The session is persisted when
        the loop exits.

        Args:
            full_state_first: Request full state on the first cycle.

        Raises:
            NotLoggedInError: If the session has no access token.
        """
        if not self._session.logged_in:
            raise NotLoggedInError("Cannot start sync loop before login")

        logger.info("Starting sync loop (since=%s)", self._session.next_batch)
        full_state = full_state_first
        with self.session_scope():
            while self._session.running:
                try:
                    self.sync_once(full_state=full_state)
                except (SyncFailedError, httpx.TransportError) as e:
                    logger.warning("Sync cycle failed: %s", e)
                    self._stop_requested.wait(self._error_delay)
                    continue
                full_state = False
        logger.info("Sync loop stopped at %s", self._session.next_batch)

    def stop(self) -> None:
        """Ask the loop to exit after the in-flight poll completes.

        May be called before run(); the loop then exits without polling.
        """
        self._stop_requested.set()
        self._session.running = False
        logger.info("Stopping sync loop")

    def _persist(self) -> None:
        if self._store is None:
            return
        try:
            self._store.save(self._session)
        except CredentialStoreError as e:
            logger.error("Failed to persist session: %s", e)

    # === Writes ===

    def join_room(self, room_id: str) -> str:
        """Join a room with the session's token.

        Returns:
            Id of the joined room.
        """
        return self._client.join_room(self._session.access_token, room_id)

    def send_message(self, room_id: str, body: str, msgtype: str = "m.text") -> str:
        """Send a message with a fresh transaction id.

        Returns:
            Event id assigned by the server.
        """
        txn_id = self._session.txn_ids.next()
        return self._client.send_message(
            self._session.access_token, room_id, body, txn_id, msgtype=msgtype
        )
