"""Thread-scoped store for large tool results.

Tool wrappers park oversized results here so the model only sees a summary
while later tools can still read the full data. Entries are grouped by
thread; each thread scope expires ``ttl_seconds`` after its latest write.
"""

from __future__ import annotations

import logging
import threading
import time
from collections.abc import Callable
from dataclasses import dataclass, field
from typing import TYPE_CHECKING, Any

if TYPE_CHECKING:
    from agent_stream.models.settings import Settings

logger = logging.getLogger(__name__)

GLOBAL_SCOPE = "__global__"
DEFAULT_TTL_SECONDS = 600


@dataclass
class _Scope:
    entries: dict[str, Any] = field(default_factory=dict)
    expires_at: float = 0.0


class AttachmentDataStore:
    """Key/value store with per-thread isolation and TTL expiry."""

    def __init__(
        self,
        ttl_seconds: float = DEFAULT_TTL_SECONDS,
        clock: Callable[[], float] = time.monotonic,
    ) -> None:
        self.ttl_seconds = ttl_seconds
        self._clock = clock
        self._scopes: dict[str, _Scope] = {}
        self._lock = threading.Lock()

    @classmethod
    def from_settings(cls, settings: Settings) -> AttachmentDataStore:
        """Create a store using the configured scope TTL."""
        return cls(ttl_seconds=settings.attachment_ttl_seconds)

    def store(self, key: str, data: Any, thread_id: str | None = None) -> None:
        """Store ``data`` under ``key`` and restart the scope's expiry."""
        scope_id = thread_id or GLOBAL_SCOPE
        with self._lock:
            self._purge_expired()
            scope = self._scopes.setdefault(scope_id, _Scope())
            scope.entries[key] = data
            scope.expires_at = self._clock() + self.ttl_seconds
        logger.debug("Stored attachment data %s in scope %s", key, scope_id)

    def get(self, key: str, thread_id: str | None = None) -> Any:
        """Return the data stored under ``key``, or None when absent or expired."""
        with self._lock:
            self._purge_expired()
            scope = self._scopes.get(thread_id or GLOBAL_SCOPE)
            return scope.entries.get(key) if scope else None

    def clear(self, thread_id: str | None = None) -> None:
        """Drop one thread scope, or every scope when ``thread_id`` is None."""
        with self._lock:
            if thread_id is None:
                self._scopes.clear()
            else:
                self._scopes.pop(thread_id, None)

    def _purge_expired(self) -> None:
        now = self._clock()
        expired = [scope_id for scope_id, scope in self._scopes.items() if scope.expires_at <= now]
        for scope_id in expired:
            del self._scopes[scope_id]
            logger.debug("Attachment scope %s expired", scope_id)


default_attachment_store = AttachmentDataStore()


def store_attachment_data(key: str, data: Any, thread_id: str | None = None) -> None:
    """Store data in the process-wide attachment store."""
    default_attachment_store.store(key, data, thread_id)


def get_attachment_data(key: str, thread_id: str | None = None) -> Any:
    """Read data from the process-wide attachment store."""
    return default_attachment_store.get(key, thread_id)


def clear_attachment_data_store(thread_id: str | None = None) -> None:
    """Clear the process-wide attachment store."""
    default_attachment_store.clear(thread_id)
