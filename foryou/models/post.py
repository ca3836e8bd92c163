"""
Post and user models: typed representation of the content the pipeline reads.

Used by every stage instead of raw dicts. Built from data-source dicts via
Post.model_validate(d) or ensure_posts(). Instances are frozen: they are owned
by the data source and never mutated by the pipeline.
"""

from datetime import datetime, timezone
from enum import Enum
from typing import Any, Dict, List, Optional, Union

from pydantic import BaseModel, ConfigDict, Field


def utc_now() -> datetime:
    """Current time as an aware UTC datetime."""
    return datetime.now(timezone.utc)


class Sentiment(str, Enum):
    POSITIVE = "positive"
    NEGATIVE = "negative"
    NEUTRAL = "neutral"
    MIXED = "mixed"


class InteractionType(str, Enum):
    LIKE = "like"
    REPOST = "repost"
    REPLY = "reply"
    QUOTE = "quote"
    BOOKMARK = "bookmark"
    SHARE = "share"
    VIEW = "view"
    CLICK = "click"
    DWELL = "dwell"
    SCROLL = "scroll"


class User(BaseModel):
    """Public profile and counters for a user."""

    model_config = ConfigDict(frozen=True)

    id: str
    username: str = ""
    display_name: str = ""
    verified: bool = False
    followers_count: int = 0
    following_count: int = 0
    posts_count: int = 0
    created_at: datetime = Field(default_factory=utc_now)
    bio: Optional[str] = None
    profile_image_url: Optional[str] = None


class Post(BaseModel):
    """
    A post as seen by the pipeline.

    Engagement counters are per type; total_engagement sums them.
    All fields except id and author_id are optional to support partial data.
    """

    model_config = ConfigDict(frozen=True)

    id: str
    author_id: str
    content: str = ""
    created_at: datetime = Field(default_factory=utc_now)
    like_count: int = 0
    repost_count: int = 0
    reply_count: int = 0
    quote_count: int = 0
    is_repost: bool = False
    original_post_id: Optional[str] = None
    media_urls: List[str] = Field(default_factory=list)
    hashtags: List[str] = Field(default_factory=list)
    mentions: List[str] = Field(default_factory=list)
    language: Optional[str] = None
    sentiment: Optional[Sentiment] = None

    @property
    def total_engagement(self) -> int:
        """Sum of like, repost, reply and quote counts."""
        return self.like_count + self.repost_count + self.reply_count + self.quote_count

    @property
    def has_media(self) -> bool:
        return bool(self.media_urls)


class Interaction(BaseModel):
    """
    A user's action on a post.

    user_id is the acting user. weight in [0, 1] expresses interaction strength
    (e.g. a dwell of a few seconds is weaker than a repost).
    """

    model_config = ConfigDict(frozen=True)

    id: str
    user_id: str
    post_id: str
    type: InteractionType
    timestamp: datetime = Field(default_factory=utc_now)
    weight: float = Field(default=1.0, ge=0.0, le=1.0)


class UserContext(BaseModel):
    """
    Per-request context about the requesting user.

    authors maps author id -> User profile for the candidate posts; the
    orchestrator fills it so author features can be extracted per post.
    """

    model_config = ConfigDict(frozen=True)

    user_id: str
    engagement_rate: float = 0.0
    activity_score: float = 0.0
    interests: List[str] = Field(default_factory=list)
    following_ids: List[str] = Field(default_factory=list)
    authors: Dict[str, User] = Field(default_factory=dict)

    def author(self, author_id: str) -> Optional[User]:
        return self.authors.get(author_id)


def ensure_posts(items: List[Union[Dict[str, Any], "Post"]]) -> List["Post"]:
    """Convert list of dicts or Posts to list of Post models for the pipeline."""
    return [
        Post.model_validate(p) if isinstance(p, dict) else p
        for p in items
    ]


def ensure_interactions(
    items: List[Union[Dict[str, Any], "Interaction"]],
) -> List["Interaction"]:
    """Convert list of dicts or Interactions to list of Interaction models."""
    return [
        Interaction.model_validate(i) if isinstance(i, dict) else i
        for i in items
    ]
