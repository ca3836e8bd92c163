"""
Rate-limit store for notifications.

Tracks when a notification type was last sent to a user. This is the one piece
of shared mutable state in the pipeline, so check-and-set must be atomic:
try_acquire decides and records in a single step.
"""

import threading
from datetime import datetime
from typing import Dict, Optional, Protocol, Tuple

from ..models.notification import NotificationType


class RateLimitStore(Protocol):
    """Protocol for per-(user, notification type) last-sent timestamps."""

    def get_last_sent(self, user_id: str, notification_type: NotificationType) -> Optional[datetime]:
        ...

    def set_last_sent(self, user_id: str, notification_type: NotificationType, sent_at: datetime) -> None:
        ...

    def try_acquire(
        self,
        user_id: str,
        notification_type: NotificationType,
        now: datetime,
        window_seconds: float,
    ) -> bool:
        """
        Atomically: if nothing was sent within window_seconds before now,
        record now as last-sent and return True; otherwise return False.
        """
        ...


class InMemoryRateLimitStore:
    """Process-local store guarded by a lock."""

    def __init__(self):
        self._lock = threading.Lock()
        self._last_sent: Dict[Tuple[str, str], datetime] = {}

    @staticmethod
    def _key(user_id: str, notification_type: NotificationType) -> Tuple[str, str]:
        return user_id, NotificationType(notification_type).value

    def get_last_sent(self, user_id: str, notification_type: NotificationType) -> Optional[datetime]:
        with self._lock:
            return self._last_sent.get(self._key(user_id, notification_type))

    def set_last_sent(self, user_id: str, notification_type: NotificationType, sent_at: datetime) -> None:
        with self._lock:
            self._last_sent[self._key(user_id, notification_type)] = sent_at

    def try_acquire(
        self,
        user_id: str,
        notification_type: NotificationType,
        now: datetime,
        window_seconds: float,
    ) -> bool:
        key = self._key(user_id, notification_type)
        with self._lock:
            last = self._last_sent.get(key)
            # A clock that moved backwards counts as inside the window.
            if last is not None and (now - last).total_seconds() < window_seconds:
                return False
            self._last_sent[key] = now
            return True

    def clear(self, user_id: Optional[str] = None) -> None:
        with self._lock:
            if user_id is None:
                self._last_sent.clear()
            else:
                for key in [k for k in self._last_sent if k[0] == user_id]:
                    del self._last_sent[key]
