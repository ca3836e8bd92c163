"""
Feature extraction for the scoring models.

Turns a (post, user context) pair into a fixed set of 14 named features.
Every key is always present (zero when the family is disabled or the value is
unknown) so the map projects onto a fixed-length vector through FEATURE_NAMES.
"""

import math
from datetime import datetime
from typing import Dict, List, Mapping, Optional

import numpy as np

from ..models.config import FeatureExtractionConfig
from ..models.post import Post, UserContext, utc_now
from ..models.scoring import RECENCY_HORIZON_HOURS, hours_since

ENGAGEMENT_FEATURES = ("like_count", "repost_count", "reply_count", "quote_count")
TEMPORAL_FEATURES = ("hours_since_creation", "is_recent")
CONTENT_FEATURES = ("content_length", "has_media", "hashtag_count", "mention_count")
AUTHOR_FEATURES = ("author_followers", "author_verified")
USER_FEATURES = ("user_engagement_rate", "user_activity_score")

# Fixed projection order for model input vectors. Do not reorder: trained
# heavy-ranker weights depend on it.
FEATURE_NAMES: List[str] = [
    *ENGAGEMENT_FEATURES,
    *TEMPORAL_FEATURES,
    *CONTENT_FEATURES,
    *AUTHOR_FEATURES,
    *USER_FEATURES,
]

# Unbounded counts, compressed with log1p when normalizing.
_LOG_SCALED = frozenset(ENGAGEMENT_FEATURES + ("hashtag_count", "mention_count", "author_followers"))
_MAX_CONTENT_LENGTH = 280.0
RECENT_HOURS = 24.0


def _finite(value: float) -> float:
    return value if math.isfinite(value) else 0.0


class FeatureExtractor:
    """Extracts named features for a post; stateless apart from its frozen config."""

    def __init__(self, config: Optional[FeatureExtractionConfig] = None):
        self.config = config or FeatureExtractionConfig()

    def extract(
        self,
        post: Post,
        user_context: UserContext,
        now: Optional[datetime] = None,
    ) -> Dict[str, float]:
        """Return all FEATURE_NAMES keys for one post, as raw (unnormalized) values."""
        cfg = self.config
        features = dict.fromkeys(FEATURE_NAMES, 0.0)

        if cfg.enable_engagement_features:
            features["like_count"] = float(post.like_count)
            features["repost_count"] = float(post.repost_count)
            features["reply_count"] = float(post.reply_count)
            features["quote_count"] = float(post.quote_count)

        if cfg.enable_temporal_features:
            hours = hours_since(post.created_at, now or utc_now())
            features["hours_since_creation"] = hours
            features["is_recent"] = 1.0 if hours < RECENT_HOURS else 0.0

        if cfg.enable_content_features:
            features["content_length"] = float(len(post.content))
            features["has_media"] = 1.0 if post.media_urls else 0.0
            features["hashtag_count"] = float(len(post.hashtags))
            features["mention_count"] = float(len(post.mentions))

        if cfg.enable_author_features:
            author = user_context.author(post.author_id)
            if author is not None:
                features["author_followers"] = float(author.followers_count)
                features["author_verified"] = 1.0 if author.verified else 0.0

        if cfg.enable_user_features:
            features["user_engagement_rate"] = float(user_context.engagement_rate)
            features["user_activity_score"] = float(user_context.activity_score)

        return {name: _finite(value) for name, value in features.items()}

    def normalize(self, features: Mapping[str, float]) -> Dict[str, float]:
        """
        Scale raw features into comparable ranges.

        Counts go through log1p, hours are divided by one week, content length
        by the max post length. Identity when normalize_features is off.
        """
        if not self.config.normalize_features:
            return {name: float(features.get(name, 0.0)) for name in FEATURE_NAMES}
        out: Dict[str, float] = {}
        for name in FEATURE_NAMES:
            value = float(features.get(name, 0.0))
            if name in _LOG_SCALED:
                # Sign-preserving so negative inputs stay finite.
                value = math.copysign(math.log1p(abs(value)), value)
            elif name == "hours_since_creation":
                value = value / RECENCY_HORIZON_HOURS
            elif name == "content_length":
                value = value / _MAX_CONTENT_LENGTH
            out[name] = _finite(value)
        return out

    def to_vector(self, features: Mapping[str, float]) -> np.ndarray:
        """Project a feature map through FEATURE_NAMES (normalized per config)."""
        normalized = self.normalize(features)
        return np.array([normalized[name] for name in FEATURE_NAMES], dtype=float)
