"""Session storage behind a small key-value interface.

Route handlers only talk to a ``SessionStore`` (``get``/``set``/``update``/
``delete`` plus ``cleanup_expired``), so a persistent backend can replace the in-memory
one without touching the handlers.

The bundled ``InMemorySessionStore`` keeps records in process memory:
- Records are lost when the process restarts
- Records expire after their TTL and are then treated as absent
- Concurrent writes to the same session id are last-write-wins
"""

from __future__ import annotations

import logging
import threading
from datetime import UTC, datetime
from typing import Protocol, runtime_checkable

from gmail_oauth_app.auth.session import SessionRecord

logger = logging.getLogger(__name__)


@runtime_checkable
class SessionStore(Protocol):
    """Key-value store for session records, keyed by session id."""

    def get(self, session_id: str) -> SessionRecord | None:
        """Return the record for ``session_id`` or None if absent/expired."""
        ...

    def set(self, record: SessionRecord) -> None:
        """Create or replace the record stored under ``record.id``."""
        ...

    def update(self, record: SessionRecord) -> bool:
        """Replace the record only if it is still stored; False if it is gone."""
        ...

    def delete(self, session_id: str) -> bool:
        """Remove a record, returning True if one existed."""
        ...

    def cleanup_expired(self) -> int:
        """Drop expired records, returning how many were removed."""
        ...


class InMemorySessionStore:
    """Thread-safe, process-local session store with TTL.

    ``get`` hands out deep copies, so changes to a record only become
    visible to other requests once they are written back with ``set``.

    Example:
        >>> store = InMemorySessionStore()
        >>> record = SessionRecord(state="abc")
        >>> store.set(record)
        >>> store.get(record.id).state
        'abc'
    """

    def __init__(self) -> None:
        """Initialize an empty store."""
        self._records: dict[str, SessionRecord] = {}
        self._lock = threading.Lock()
        logger.info("InMemorySessionStore initialized")

    def get(self, session_id: str) -> SessionRecord | None:
        """Load a session record.

        Args:
            session_id: Session identifier from the cookie.

        Returns:
            A copy of the record, or None if unknown or expired.
        """
        if not session_id:
            return None

        with self._lock:
            record = self._records.get(session_id)
            if record is None:
                return None

            if record.is_expired():
                del self._records[session_id]
                logger.debug("Dropped expired session %s...", session_id[:8])
                return None

            return record.model_copy(deep=True)

    def set(self, record: SessionRecord) -> None:
        """Store a session record, replacing any existing one.

        Args:
            record: The record to store under ``record.id``.
        """
        with self._lock:
            self._records[record.id] = record.model_copy(deep=True)
        logger.debug(
            "Stored session %s... (status=%s)", record.id[:8], record.status.value
        )

    def update(self, record: SessionRecord) -> bool:
        """Replace a record that is still present.

        A record deleted (logout) or expired in the meantime stays gone.

        Args:
            record: The record to store under ``record.id``.

        Returns:
            True if the record was replaced, False if none was stored.
        """
        with self._lock:
            current = self._records.get(record.id)
            if current is None or current.is_expired():
                return False
            self._records[record.id] = record.model_copy(deep=True)

        logger.debug("Updated session %s...", record.id[:8])
        return True

    def delete(self, session_id: str) -> bool:
        """Delete a session record.

        Args:
            session_id: Session identifier from the cookie.

        Returns:
            True if a record was deleted, False if none existed.
        """
        with self._lock:
            removed = self._records.pop(session_id, None) is not None

        if removed:
            logger.debug("Deleted session %s...", session_id[:8])
        return removed

    def cleanup_expired(self) -> int:
        """Remove all expired session records.

        Returns:
            The number of records that were removed.
        """
        now = datetime.now(UTC)
        with self._lock:
            expired_ids = [
                session_id
                for session_id, record in self._records.items()
                if record.is_expired(now)
            ]
            for session_id in expired_ids:
                del self._records[session_id]

        if expired_ids:
            logger.info("Cleaned up %d expired sessions", len(expired_ids))
        return len(expired_ids)

    def __len__(self) -> int:
        with self._lock:
            return len(self._records)


__all__ = [
    "SessionStore",
    "InMemorySessionStore",
]
