"""Persisted session credentials.

The credential record holds exactly four fields (server address,
long-poll timeout, access token and sync cursor) as a small JSON
document. Writes go to a temporary sibling file which is then renamed
over the target, so a reader never sees a partial record.
"""

from __future__ import annotations

import json
import logging
import os
from pathlib import Path
from typing import TYPE_CHECKING, Any

if TYPE_CHECKING:
    from chatsync.client.session import Session

logger = logging.getLogger(__name__)

CREDENTIAL_FIELDS = ("server_url", "timeout", "access_token", "next_batch")

# Accepted JSON types per field; every field may also be null
_FIELD_TYPES: dict[str, tuple[type, ...]] = {
    "server_url": (str,),
    "timeout": (int, float),
    "access_token": (str,),
    "next_batch": (str,),
}


class CredentialStoreError(Exception):
    """Exception raised when the credential file cannot be read or written."""


class CredentialStore:
    """JSON-file store for the persisted session fields."""

    def __init__(self, path: Path) -> None:
        """Initialize the store.

        Args:
            path: Path of the credential file.
        """
        self._path = Path(path)

    @property
    def path(self) -> Path:
        """Path of the credential file."""
        return self._path

    def exists(self) -> bool:
        """Check if a credential file has been written."""
        return self._path.exists()

    def load(self) -> dict[str, Any] | None:
        """Load the persisted fields.

        Returns:
            Dictionary with the four credential fields, or None if the
            file does not exist yet.

        Raises:
            CredentialStoreError: If the file exists but cannot be parsed
                or a field has the wrong type.
        """
        if not self._path.exists():
            logger.debug("No credential file at %s", self._path)
            return None

        try:
            data = json.loads(self._path.read_text())
        except (OSError, json.JSONDecodeError) as e:
            raise CredentialStoreError(
                f"Cannot read credentials from {self._path}: {e}"
            ) from e

        if not isinstance(data, dict):
            raise CredentialStoreError(f"Invalid credential file: {self._path}")

        record = {name: data.get(name) for name in CREDENTIAL_FIELDS}
        for name, value in record.items():
            if value is None:
                continue
            if isinstance(value, bool) or not isinstance(value, _FIELD_TYPES[name]):
                raise CredentialStoreError(
                    f"Invalid {name!r} in {self._path}: unexpected {type(value).__name__} value"
                )
        return record

    def save(self, session: Session) -> None:
        """Write the session's persisted fields in one atomic replace.

        Args:
            session: Session to persist.

        Raises:
            CredentialStoreError: If the file cannot be written.
        """
        record = {name: getattr(session, name) for name in CREDENTIAL_FIELDS}
        tmp_path = self._path.with_name(self._path.name + ".tmp")
        try:
            self._path.parent.mkdir(parents=True, exist_ok=True)
            tmp_path.write_text(json.dumps(record, indent=2))
            os.replace(tmp_path, self._path)
        except OSError as e:
            tmp_path.unlink(missing_ok=True)
            raise CredentialStoreError(
                f"Cannot write credentials to {self._path}: {e}"
            ) from e
        logger.debug("Saved credentials to %s", self._path)
