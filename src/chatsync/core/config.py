"""Shared configuration classes for chatsync.

This module defines the connection settings used by the HTTP client
and the sync engine.
"""

from __future__ import annotations

from dataclasses import dataclass


class ConfigurationError(Exception):
    """Raised when required configuration is missing or invalid."""


@dataclass
class ServerConfig:
    """Configuration for connecting to a chat server.

    Attributes:
        server_url: Base URL of the server (e.g., "https://matrix.example.org").
        timeout: Long-poll timeout in seconds sent with every sync request.
        verify_ssl: Whether to verify SSL certificates (default True).
        request_margin: Extra seconds granted to each HTTP request on top
            of the long-poll timeout, so the server can answer before the
            client gives up.
    """

    server_url: str
    timeout: float = 30.0
    verify_ssl: bool = True
    request_margin: float = 10.0

    def __post_init__(self) -> None:
        """Validate and normalize server URL."""
        if not self.server_url or not self.server_url.strip():
            raise ConfigurationError("A server address is required")
        self.server_url = self.server_url.strip().rstrip("/")
        if self.timeout < 0:
            raise ConfigurationError(f"Invalid timeout: {self.timeout}")

    @property
    def timeout_ms(self) -> int:
        """Long-poll timeout in milliseconds, as sent to the server."""
        return int(self.timeout * 1000)

    @property
    def request_timeout(self) -> float:
        """Timeout for a single HTTP request in seconds."""
        return self.timeout + self.request_margin

    @property
    def is_secure(self) -> bool:
        """Check if using HTTPS.

        Returns:
            True if server uses HTTPS.
        """
        return self.server_url.startswith("https://")
