"""
Notification model: a scored notification candidate for one user.
"""

import uuid
from datetime import datetime
from enum import Enum
from typing import Optional

from pydantic import BaseModel, ConfigDict, Field

from .post import utc_now


class NotificationType(str, Enum):
    LIKE = "like"
    REPOST = "repost"
    REPLY = "reply"
    MENTION = "mention"
    FOLLOW = "follow"
    TRENDING = "trending"
    BREAKING = "breaking"
    PERSONALIZED = "personalized"


class NotificationPriority(str, Enum):
    LOW = "low"
    MEDIUM = "medium"
    HIGH = "high"
    URGENT = "urgent"


def priority_for_score(score: float) -> NotificationPriority:
    """Map a notification score to a priority band."""
    if score >= 0.9:
        return NotificationPriority.URGENT
    if score >= 0.7:
        return NotificationPriority.HIGH
    if score >= 0.4:
        return NotificationPriority.MEDIUM
    return NotificationPriority.LOW


class Notification(BaseModel):
    model_config = ConfigDict(frozen=True)

    id: str = Field(default_factory=lambda: str(uuid.uuid4()))
    user_id: str
    type: NotificationType
    title: str
    body: str
    post_id: Optional[str] = None
    author_id: Optional[str] = None
    priority: NotificationPriority = NotificationPriority.MEDIUM
    score: float = Field(default=0.0, ge=0.0, le=1.0)
    created_at: datetime = Field(default_factory=utc_now)
