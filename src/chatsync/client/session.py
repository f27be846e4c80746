"""Client session state.

This module provides:
- Session: Server address, long-poll timeout, access token, sync cursor
  and the session-owned transaction id counter
"""

from __future__ import annotations

import threading
from dataclasses import dataclass, field
from typing import Any

from chatsync.core.config import ServerConfig
from chatsync.core.txn import TransactionIdGenerator


@dataclass
class Session:
    """State of one running client.

    Attributes:
        server_url: Base URL of the server.
        timeout: Long-poll timeout in seconds.
        access_token: Bearer token, None until login.
        next_batch: Sync cursor, None until the first successful sync.
        txn_ids: Transaction id generator owned by this session.
    """

    server_url: str
    timeout: float = 30.0
    access_token: str | None = None
    next_batch: str | None = None
    txn_ids: TransactionIdGenerator = field(default_factory=TransactionIdGenerator)
    _running: threading.Event = field(
        default_factory=threading.Event, init=False, repr=False, compare=False
    )

    @classmethod
    def from_credentials(
        cls,
        data: dict[str, Any] | None,
        server_url: str | None = None,
        timeout: float | None = None,
    ) -> Session:
        """Create a session from stored credentials over caller defaults.

        Args:
            data: Fields loaded from a CredentialStore, or None.
            server_url: Default server URL when none is stored.
            timeout: Default long-poll timeout when none is stored.

        Returns:
            New Session.
        """
        data = data or {}
        session_timeout = data.get("timeout")
        if session_timeout is None:
            session_timeout = timeout if timeout is not None else 30.0
        return cls(
            server_url=data.get("server_url") or server_url or "",
            timeout=float(session_timeout),
            access_token=data.get("access_token"),
            next_batch=data.get("next_batch"),
        )

    @property
    def logged_in(self) -> bool:
        """Check if the session holds an access token."""
        return self.access_token is not None

    @property
    def running(self) -> bool:
        """Check if the sync loop should keep going."""
        return self._running.is_set()

    @running.setter
    def running(self, value: bool) -> None:
        if value:
            self._running.set()
        else:
            self._running.clear()

    def server_config(self, verify_ssl: bool = True) -> ServerConfig:
        """Build the connection configuration for this session.

        Raises:
            ConfigurationError: If no server address is set.
        """
        return ServerConfig(
            server_url=self.server_url,
            timeout=self.timeout,
            verify_ssl=verify_ssl,
        )

    def to_credentials(self) -> dict[str, Any]:
        """Return the four persisted fields."""
        return {
            "server_url": self.server_url,
            "timeout": self.timeout,
            "access_token": self.access_token,
            "next_batch": self.next_batch,
        }
