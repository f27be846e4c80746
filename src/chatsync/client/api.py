"""HTTP client for the chat server's client-server API.

This module provides:
- HTTPClient: HTTP client for communicating with the server
- Login and long-poll sync calls used by the sync engine
- Join and send calls used by bot observers
"""

from __future__ import annotations

import logging
from typing import Any
from urllib.parse import quote

import httpx

from chatsync.core.config import ServerConfig

logger = logging.getLogger(__name__)

LOGIN_PATH = "/_matrix/client/v3/login"
SYNC_PATH = "/_matrix/client/v3/sync"
JOIN_PATH = "/_matrix/client/v3/join/{room_id}"
SEND_PATH = "/_matrix/client/v3/rooms/{room_id}/send/{event_type}/{txn_id}"

DEFAULT_DEVICE_NAME = "chatsync"


class APIError(Exception):
    """Base exception for API errors."""

    def __init__(self, message: str, status_code: int | None = None) -> None:
        super().__init__(message)
        self.status_code = status_code


class AuthenticationError(APIError):
    """Login was rejected by the server."""

    def __init__(self, user: str, status_code: int | None, detail: str = "") -> None:
        message = f"Login failed for user '{user}' (status {status_code})"
        if detail:
            message = f"{message}: {detail}"
        super().__init__(message, status_code)
        self.user = user


class SyncFailedError(APIError):
    """A sync request returned a non-success status."""


class NotLoggedInError(APIError):
    """An authenticated call was attempted without an access token."""


def _error_detail(response: httpx.Response) -> str:
    """Extract the server's error message from a response, if any."""
    try:
        data = response.json()
    except ValueError:
        return response.text[:200]
    if isinstance(data, dict):
        return str(data.get("error") or data.get("errcode") or "")
    return ""


def _json_object(response: httpx.Response) -> dict[str, Any] | None:
    """Decode a response body that must be a JSON object, or None if it is not."""
    try:
        data = response.json()
    except ValueError:
        return None
    return data if isinstance(data, dict) else None


class HTTPClient:
    """HTTP client for the chat server API.

    The client holds no session state: every authenticated call takes
    the access token as an argument.
    """

    def __init__(self, config: ServerConfig) -> None:
        """Initialize the HTTP client.

        Args:
            config: Server configuration with URL and timeouts.
        """
        self._config = config
        self._client = httpx.Client(
            base_url=config.server_url,
            timeout=config.request_timeout,
            verify=config.verify_ssl,
        )

    @property
    def config(self) -> ServerConfig:
        """Server configuration used by this client."""
        return self._config

    def close(self) -> None:
        """Close the HTTP client."""
        self._client.close()

    def __enter__(self) -> HTTPClient:
        """Context manager entry."""
        return self

    def __exit__(self, *args: object) -> None:
        """Context manager exit."""
        self.close()

    @staticmethod
    def _auth_headers(token: str | None) -> dict[str, str]:
        """Build the Authorization header when a token is present."""
        if token is None:
            return {}
        return {"Authorization": f"Bearer {token}"}

    def _require_token(self, token: str | None) -> str:
        if token is None:
            raise NotLoggedInError("Not logged in: no access token")
        return token

    # === Authentication ===

    def login(
        self,
        user: str,
        password: str,
        device_name: str = DEFAULT_DEVICE_NAME,
    ) -> dict[str, Any]:
        """Log in with a user name and password.

        Args:
            user: User name or full user id.
            password: Account password.
            device_name: Display name for the new device.

        Returns:
            Decoded login response ({user_id, access_token, ...}).

        Raises:
            AuthenticationError: If the server does not answer with 200
                and a JSON object.
        """
        response = self._client.post(
            LOGIN_PATH,
            json={
                "type": "m.login.password",
                "identifier": {"type": "m.id.user", "user": user},
                "password": password,
                "initial_device_display_name": device_name,
            },
        )
        if response.status_code != 200:
            raise AuthenticationError(user, response.status_code, _error_detail(response))
        result = _json_object(response)
        if result is None:
            raise AuthenticationError(user, response.status_code, "response is not a JSON object")
        return result

    # === Sync ===

    def sync(
        self,
        token: str | None,
        since: str | None = None,
        timeout_ms: int | None = None,
        full_state: bool = False,
    ) -> dict[str, Any]:
        """Long-poll the server for events since a cursor.

        Args:
            token: Access token.
            since: Cursor from the previous sync, omitted when None.
            timeout_ms: Long-poll timeout (default: configured timeout).
            full_state: Ask for the full state of every room.

        Returns:
            Decoded sync response.

        Raises:
            NotLoggedInError: If token is None.
            SyncFailedError: If the server does not answer with 200
                and a JSON object.
        """
        token = self._require_token(token)
        if timeout_ms is None:
            timeout_ms = self._config.timeout_ms

        params = {
            "full_state": "true" if full_state else "false",
            "timeout": str(timeout_ms),
        }
        if since is not None:
            params["since"] = since

        response = self._client.get(
            SYNC_PATH,
            params=params,
            headers=self._auth_headers(token),
        )
        if response.status_code != 200:
            detail = _error_detail(response)
            raise SyncFailedError(
                f"Sync failed (status {response.status_code}): {detail}",
                response.status_code,
            )
        result = _json_object(response)
        if result is None:
            # Typically an HTML page from a proxy in front of the server
            raise SyncFailedError(
                f"Sync failed (status {response.status_code}): response is not a JSON object",
                response.status_code,
            )
        return result

    # === Room operations ===

    def join_room(self, token: str | None, room_id: str) -> str:
        """Join a room the user was invited to.

        Args:
            token: Access token.
            room_id: Room id or alias.

        Returns:
            Id of the joined room.

        Raises:
            APIError: If the server refuses the join.
        """
        token = self._require_token(token)
        response = self._client.post(
            JOIN_PATH.format(room_id=quote(room_id, safe="")),
            json={},
            headers=self._auth_headers(token),
        )
        if response.status_code != 200:
            raise APIError(
                f"Cannot join {room_id}: {_error_detail(response)}",
                response.status_code,
            )
        return str((_json_object(response) or {}).get("room_id", room_id))

    def send_message(
        self,
        token: str | None,
        room_id: str,
        body: str,
        txn_id: str,
        msgtype: str = "m.text",
    ) -> str:
        """Send a message event to a room.

        Args:
            token: Access token.
            room_id: Target room id.
            body: Message text.
            txn_id: Transaction id; retrying with the same id is idempotent.
            msgtype: Message subtype.

        Returns:
            Event id assigned by the server.

        Raises:
            APIError: If the server refuses the message.
        """
        token = self._require_token(token)
        response = self._client.put(
            SEND_PATH.format(
                room_id=quote(room_id, safe=""),
                event_type="m.room.message",
                txn_id=quote(txn_id, safe=""),
            ),
            json={"msgtype": msgtype, "body": body},
            headers=self._auth_headers(token),
        )
        if response.status_code != 200:
            raise APIError(
                f"Cannot send to {room_id}: {_error_detail(response)}",
                response.status_code,
            )
        return str((_json_object(response) or {}).get("event_id", ""))
