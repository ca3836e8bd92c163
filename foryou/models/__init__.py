"""Data models for the feed algorithm."""

from .config import (
    DEFAULT_CONFIG,
    AlgorithmConfig,
    CandidateSourceConfig,
    FeatureExtractionConfig,
    FilteringConfig,
    MixingConfig,
    NotificationConfig,
    RankingConfig,
    load_config,
    resolve_config,
)
from .metrics import PipelineMetrics, ResourceSnapshot, take_resource_snapshot
from .notification import (
    Notification,
    NotificationPriority,
    NotificationType,
    priority_for_score,
)
from .post import (
    Interaction,
    InteractionType,
    Post,
    Sentiment,
    User,
    UserContext,
    ensure_interactions,
    ensure_posts,
    utc_now,
)
from .scoring import Candidate, RecommendationReason, Timeline

__all__ = [
    "DEFAULT_CONFIG",
    "AlgorithmConfig",
    "Candidate",
    "CandidateSourceConfig",
    "FeatureExtractionConfig",
    "FilteringConfig",
    "Interaction",
    "InteractionType",
    "MixingConfig",
    "Notification",
    "NotificationConfig",
    "NotificationPriority",
    "NotificationType",
    "PipelineMetrics",
    "Post",
    "RankingConfig",
    "RecommendationReason",
    "ResourceSnapshot",
    "Sentiment",
    "Timeline",
    "User",
    "UserContext",
    "ensure_interactions",
    "ensure_posts",
    "load_config",
    "priority_for_score",
    "resolve_config",
    "take_resource_snapshot",
    "utc_now",
]
