"""
Scoring model: Candidate, Timeline and the score/time helpers used by the pipeline.

Contains:
- Candidate: a post with its blended score, reason and features
- Timeline: the ordered, size-bounded result for one user
- hours_since, recency_score, engagement_score, clamp: used by ranking and notifications
"""

import math
import uuid
from datetime import datetime, timezone
from enum import Enum
from typing import Dict, List

from pydantic import BaseModel, ConfigDict, Field

from .post import Post, utc_now

# One week: recency decays linearly to zero over this many hours.
RECENCY_HORIZON_HOURS = 168.0
# Total engagement at which the engagement component saturates at 1.0.
ENGAGEMENT_SATURATION = 1000.0


def _new_id() -> str:
    return str(uuid.uuid4())


def hours_since(created_at: datetime, now: datetime) -> float:
    """Hours between created_at and now. Naive datetimes are treated as UTC."""
    if created_at.tzinfo is None:
        created_at = created_at.replace(tzinfo=timezone.utc)
    if now.tzinfo is None:
        now = now.replace(tzinfo=timezone.utc)
    return (now - created_at).total_seconds() / 3600.0


def recency_score(hours: float, horizon_hours: float = RECENCY_HORIZON_HOURS) -> float:
    """Linear decay: 1.0 at creation, 0.0 after horizon_hours. Future timestamps count as new."""
    return max(0.0, 1.0 - max(hours, 0.0) / horizon_hours)


def engagement_score(total_engagement: int, saturation: float = ENGAGEMENT_SATURATION) -> float:
    """Normalized engagement (0–1), saturating at `saturation` interactions."""
    return min(total_engagement / saturation, 1.0)


def clamp(value: float, low: float = 0.0, high: float = 1.0) -> float:
    """Clamp to [low, high]; NaN maps to low."""
    if math.isnan(value):
        return low
    return min(max(value, low), high)


class RecommendationReason(str, Enum):
    IN_NETWORK = "in_network"
    OUT_OF_NETWORK = "out_of_network"
    TRENDING = "trending"
    SIMILAR_USERS = "similar_users"
    TOPIC_INTEREST = "topic_interest"
    RECENCY = "recency"
    ENGAGEMENT = "engagement"
    SOCIAL_PROOF = "social_proof"
    DIVERSITY = "diversity"


class Candidate(BaseModel):
    """A post with all its scoring components."""

    model_config = ConfigDict(frozen=True)

    id: str = Field(default_factory=_new_id)
    post: Post
    score: float = Field(ge=0.0, le=1.0)
    reason: RecommendationReason
    features: Dict[str, float] = Field(default_factory=dict)
    created_at: datetime = Field(default_factory=utc_now)
    engagement_score: float = 0.0
    recency_score: float = 0.0
    relevance_score: float = 0.0
    diversity_score: float = 0.0


class Timeline(BaseModel):
    """Ordered candidates for one user, most relevant first."""

    model_config = ConfigDict(frozen=True)

    id: str = Field(default_factory=_new_id)
    user_id: str
    posts: List[Candidate] = Field(default_factory=list)
    created_at: datetime = Field(default_factory=utc_now)
    algorithm: str = "for_you"
    version: str = "1.0"

    def __len__(self) -> int:
        return len(self.posts)
