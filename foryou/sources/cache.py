"""
Candidate cache: reuse origin results per (origin, user) for a short TTL.

Only consulted when CandidateSourceConfig.enable_real_time is off. Expiry is
checked against the pipeline clock so tests control time.
"""

import threading
from datetime import datetime
from typing import Dict, List, Optional, Tuple

from ..models.post import Post


class CandidateCache:
    """Thread-safe TTL map of (origin, user_id) -> posts."""

    def __init__(self, max_entries: int = 10_000):
        self._lock = threading.Lock()
        self._entries: Dict[Tuple[str, str], Tuple[datetime, List[Post]]] = {}
        self._max_entries = max_entries

    def get(self, origin: str, user_id: str, now: datetime, ttl_seconds: float) -> Optional[List[Post]]:
        key = (origin, user_id)
        with self._lock:
            entry = self._entries.get(key)
            if entry is None:
                return None
            stored_at, posts = entry
            if (now - stored_at).total_seconds() > ttl_seconds:
                del self._entries[key]
                return None
            return list(posts)

    def put(self, origin: str, user_id: str, posts: List[Post], now: datetime) -> None:
        with self._lock:
            if len(self._entries) >= self._max_entries:
                # Evict the oldest entry.
                oldest = min(self._entries, key=lambda k: self._entries[k][0])
                del self._entries[oldest]
            self._entries[(origin, user_id)] = (now, list(posts))

    def __len__(self) -> int:
        with self._lock:
            return len(self._entries)
