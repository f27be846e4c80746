"""Configuration utilities for chatsync CLI.

This module provides shared configuration functions used across CLI commands.
"""

from __future__ import annotations

import logging
import sys
from pathlib import Path

import click

from chatsync.client.credentials import CredentialStore, CredentialStoreError
from chatsync.client.session import Session

CREDENTIALS_FILE = "session.json"
MESSAGE_LOG_FILE = "messages.log"


def get_config_dir() -> Path:
    """Get the configuration directory for chatsync.

    Returns:
        Path to ~/.chatsync or equivalent.
    """
    return Path.home() / ".chatsync"


def get_credential_store(config_dir: Path | None = None) -> CredentialStore:
    """Get the credential store inside the configuration directory."""
    return CredentialStore((config_dir or get_config_dir()) / CREDENTIALS_FILE)


def setup_logging(verbose: bool = False) -> None:
    """Send chatsync log records to stderr.

    Args:
        verbose: Log at DEBUG level instead of INFO.
    """
    chatsync_logger = logging.getLogger("chatsync")
    for handler in chatsync_logger.handlers[:]:
        chatsync_logger.removeHandler(handler)

    handler = logging.StreamHandler()
    handler.setFormatter(
        logging.Formatter("%(asctime)s %(levelname)s %(name)s: %(message)s")
    )
    chatsync_logger.addHandler(handler)
    chatsync_logger.setLevel(logging.DEBUG if verbose else logging.INFO)


def require_session(config_dir: Path) -> tuple[Session, CredentialStore]:
    """Load the stored session or exit with an error.

    Args:
        config_dir: Configuration directory.

    Returns:
        The stored session and its credential store.
    """
    store = get_credential_store(config_dir)
    try:
        data = store.load()
    except CredentialStoreError as e:
        click.echo(f"Error: {e}", err=True)
        sys.exit(1)

    session = Session.from_credentials(data)
    if not session.server_url or not session.logged_in:
        click.echo("Error: Not logged in. Run 'chatsync login' first.", err=True)
        sys.exit(1)
    return session, store
