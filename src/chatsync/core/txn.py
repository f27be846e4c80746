"""Transaction ids for idempotent write requests."""

from __future__ import annotations

import time


class TransactionIdGenerator:
    """Monotonic counter rendered into opaque transaction ids.

    The server uses the transaction id to deduplicate retried writes, so
    a token must never repeat for the same access token. The counter is
    scoped to one generator (one per session); the prefix keeps tokens
    from a restarted process apart from the previous run's.

    Usage:
        txn_ids = TransactionIdGenerator()
        txn_ids.next()  # "1760900000000.0"
        txn_ids.next()  # "1760900000000.1"
    """

    def __init__(self, prefix: str | None = None, start: int = 0) -> None:
        """Initialize the generator.

        Args:
            prefix: Fixed token prefix (default: creation time in ms).
            start: First counter value.
        """
        self._prefix = prefix if prefix is not None else str(int(time.time() * 1000))
        self._counter = start

    @property
    def counter(self) -> int:
        """Counter value the next token will carry."""
        return self._counter

    def next(self) -> str:
        """Return a fresh transaction id and advance the counter."""
        value = self._counter
        self._counter += 1
        return f"{self._prefix}.{value}"
