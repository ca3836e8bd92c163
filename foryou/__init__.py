"""
For You feed algorithm

Single entry point for the foryou package:
- models/: AlgorithmConfig, Post, User, Candidate, Timeline, Notification, PipelineMetrics
- ml/: FeatureExtractor, LightRanker, HeavyRanker, weights loading, evaluation
- stages/: candidate source, filtering, ranking, mixing, notifications, orchestrator
- sources/: DataSource implementations, rate-limit store, candidate cache, metrics sinks
"""

from .errors import (
    DataSourceError,
    FeedError,
    InvalidConfiguration,
    ModelLoadFailure,
    PipelineError,
    SourceUnavailable,
)
from .ml import FEATURE_NAMES, FeatureExtractor, HeavyRanker, JsonWeightsLoader, LightRanker
from .models import (
    DEFAULT_CONFIG,
    AlgorithmConfig,
    Candidate,
    Notification,
    PipelineMetrics,
    Post,
    Timeline,
    User,
    UserContext,
    load_config,
    resolve_config,
)
from .sources import (
    DemoDataSource,
    InMemoryDataSource,
    InMemoryRateLimitStore,
    JsonDataSource,
    LoggingMetricsSink,
    RecentMetricsSink,
)
from .stages import RecommendationOrchestrator

__version__ = "1.0.0"

__all__ = [
    "DEFAULT_CONFIG",
    "FEATURE_NAMES",
    "AlgorithmConfig",
    "Candidate",
    "DataSourceError",
    "DemoDataSource",
    "FeatureExtractor",
    "FeedError",
    "HeavyRanker",
    "InMemoryDataSource",
    "InMemoryRateLimitStore",
    "InvalidConfiguration",
    "JsonDataSource",
    "JsonWeightsLoader",
    "LightRanker",
    "LoggingMetricsSink",
    "ModelLoadFailure",
    "Notification",
    "PipelineError",
    "PipelineMetrics",
    "Post",
    "RecentMetricsSink",
    "RecommendationOrchestrator",
    "SourceUnavailable",
    "Timeline",
    "User",
    "UserContext",
    "load_config",
    "resolve_config",
]
