"""In-memory store of transcript views with TTL cleanup.

WHY: The HTTP API keeps one TranscriptView per client transcript across
requests. Views hold live layout state, so they must be found by ID,
touched on every use, and eventually dropped when a client goes away.

HOW: Two components work together:
  ViewEntry: dataclass holding a view plus bookkeeping timestamps
  ViewStore: thread-safe dict-based store with create/get/list/delete,
    touch-on-access and TTL cleanup of idle views

RULES:
- All store mutations are protected by threading.Lock
- View IDs are UUID4 hex strings generated at creation time
- get_view() returns None for unknown IDs (no exceptions)
- Idle views (not touched for ttl_seconds) are removed by cleanup_expired()
- create_view() raises ValueError when max_views is reached
- Default TTL is 1 hour (3600 seconds)
"""

from __future__ import annotations

import logging
import threading
import time
from dataclasses import dataclass
from typing import Dict, List, Optional

from chatwrap.config import LayoutConfig
from chatwrap.core.view import TranscriptView

logger = logging.getLogger(__name__)

# Default idle time-to-live for views (seconds)
DEFAULT_TTL_SECONDS = 3600


@dataclass
class ViewEntry:
    """A stored view and when it was created and last used."""

    view: TranscriptView
    created_at: float
    updated_at: float

    @property
    def id(self) -> str:
        return self.view.id


class ViewStore:
    """Thread-safe in-memory store for transcript views.

    WHY: Concurrent API requests look up and mutate views. A central
    store with locking keeps the ID table consistent.

    HOW: Entries are stored in a plain dict keyed by view ID. Mutations of
    the dict acquire a threading.Lock. Each lookup through get_view()
    bumps updated_at so active views never expire.

    RULES:
    - create_view() builds a TranscriptView from the given config
    - get_view() touches the entry; peek() does not
    - delete_view() returns True if the view existed
    - cleanup_expired() returns the number of removed views
    """

    def __init__(
        self,
        ttl_seconds: int = DEFAULT_TTL_SECONDS,
        max_views: int = 100,
    ) -> None:
        self._views: Dict[str, ViewEntry] = {}
        self._lock = threading.Lock()
        self._ttl_seconds = ttl_seconds
        self.max_views = max_views

    def create_view(self, config: Optional[LayoutConfig] = None) -> ViewEntry:
        """Create and store a new view.

        Raises:
            ValueError: If the store already holds max_views views.
        """
        with self._lock:
            if len(self._views) >= self.max_views:
                raise ValueError(
                    "Maximum number of transcript views ({}) reached".format(
                        self.max_views
                    )
                )
            now = time.time()
            entry = ViewEntry(view=TranscriptView(config), created_at=now, updated_at=now)
            self._views[entry.id] = entry

        logger.info("Stored view %s", entry.id)
        return entry

    def get_view(self, view_id: str) -> Optional[ViewEntry]:
        with self._lock:
            entry = self._views.get(view_id)
            if entry is not None:
                entry.updated_at = time.time()
            return entry

    def peek(self, view_id: str) -> Optional[ViewEntry]:
        with self._lock:
            return self._views.get(view_id)

    def list_views(self) -> List[ViewEntry]:
        """All entries, oldest first."""
        with self._lock:
            return sorted(self._views.values(), key=lambda e: e.created_at)

    def delete_view(self, view_id: str) -> bool:
        with self._lock:
            entry = self._views.pop(view_id, None)
        if entry is None:
            return False
        logger.info("Deleted view %s", view_id)
        return True

    def clear(self) -> None:
        with self._lock:
            self._views.clear()

    def cleanup_expired(self) -> int:
        """Remove views idle for longer than the TTL."""
        now = time.time()
        with self._lock:
            expired = [
                view_id for view_id, entry in self._views.items()
                if now - entry.updated_at > self._ttl_seconds
            ]
            for view_id in expired:
                del self._views[view_id]

        for view_id in expired:
            logger.info("Expired idle view %s", view_id)
        return len(expired)
