"""
Algorithm configuration: candidate source, filtering, ranking, mixing and
notification parameters.

Defaults are defined here. The server may pass a dict (e.g. from a JSON file
at ALGORITHM_CONFIG_PATH); AlgorithmConfig.from_dict() merges it with these
defaults. All models are frozen: configuration is immutable for the lifetime
of an orchestrator.
"""

import json
import logging
from pathlib import Path
from typing import Dict, List, Literal, Optional, Union

from pydantic import BaseModel, ConfigDict, Field, ValidationError, model_validator

from ..errors import InvalidConfiguration

logger = logging.getLogger(__name__)

ORIGINS = ("in_network", "out_of_network", "trending")

# Light ranker weights over normalized features (see ml.features.normalize_features).
DEFAULT_LIGHT_RANKER_WEIGHTS: Dict[str, float] = {
    "like_count": 0.15,
    "repost_count": 0.2,
    "reply_count": 0.1,
    "quote_count": 0.1,
    "hours_since_creation": -1.0,
    "is_recent": 0.5,
    "has_media": 0.3,
    "hashtag_count": 0.05,
    "author_followers": 0.05,
    "author_verified": 0.4,
    "user_engagement_rate": 0.5,
    "user_activity_score": 0.3,
}


class CandidateSourceConfig(BaseModel):
    """Configuration for candidate sourcing."""

    model_config = ConfigDict(frozen=True)

    # -------------------------------------------------------------------------
    # Origin split: each origin gets round(max_candidates * weight) posts.
    # Weights must sum to <= 1.0.
    # -------------------------------------------------------------------------

    in_network_weight: float = Field(default=0.5, ge=0.0, le=1.0)
    out_of_network_weight: float = Field(default=0.3, ge=0.0, le=1.0)
    trending_weight: float = Field(default=0.2, ge=0.0, le=1.0)
    max_candidates: int = Field(default=1000, ge=0)

    # -------------------------------------------------------------------------
    # Origin fetch behavior
    # -------------------------------------------------------------------------

    # Each origin fetch is cancelled after this many seconds.
    origin_timeout_seconds: float = Field(default=2.0, gt=0.0)
    # Retries for transient data-source errors (permanent errors are never retried).
    origin_retries: int = Field(default=1, ge=0)
    # "degrade": continue with surviving origins. "fail": raise SourceUnavailable.
    partial_failure_policy: Literal["degrade", "fail"] = "degrade"

    # -------------------------------------------------------------------------
    # Caching: when real-time is off, origin results are reused for
    # cache_timeout_seconds per (origin, user).
    # -------------------------------------------------------------------------

    enable_real_time: bool = True
    cache_timeout_seconds: float = Field(default=300.0, ge=0.0)

    @model_validator(mode="after")
    def weights_at_most_one(self):
        total = self.in_network_weight + self.out_of_network_weight + self.trending_weight
        if total > 1.0 + 1e-9:
            raise ValueError(f"Candidate source weights must sum to <= 1.0, got {total}")
        return self

    def origin_limits(self) -> Dict[str, int]:
        """Per-origin candidate budget, keyed by origin name."""
        return {
            "in_network": int(round(self.max_candidates * self.in_network_weight)),
            "out_of_network": int(round(self.max_candidates * self.out_of_network_weight)),
            "trending": int(round(self.max_candidates * self.trending_weight)),
        }


class RankingConfig(BaseModel):
    """Configuration for the ranking stage and its scoring model."""

    model_config = ConfigDict(frozen=True)

    # -------------------------------------------------------------------------
    # Blended Scoring Weights (expected to sum to 1.0; a different sum is
    # logged as a warning, not rejected)
    # final = w_e * engagement + w_r * recency + w_l * relevance + w_d * diversity
    # -------------------------------------------------------------------------

    engagement_weight: float = Field(default=0.4, ge=0.0, le=1.0)
    recency_weight: float = Field(default=0.3, ge=0.0, le=1.0)
    relevance_weight: float = Field(default=0.2, ge=0.0, le=1.0)
    diversity_weight: float = Field(default=0.1, ge=0.0, le=1.0)

    # -------------------------------------------------------------------------
    # Scoring model: heavy ranker when enable_ml_ranking, light ranker otherwise
    # -------------------------------------------------------------------------

    enable_ml_ranking: bool = True
    model_version: str = "1.0"
    # Heavy ranker architecture for cold start (ignored when weights are loaded).
    hidden_sizes: List[int] = Field(default_factory=lambda: [32, 16])
    hidden_activation: Literal["relu", "sigmoid", "tanh", "linear"] = "relu"
    # Seed for cold-start weight initialization.
    model_seed: int = 42
    light_ranker_weights: Dict[str, float] = Field(
        default_factory=lambda: dict(DEFAULT_LIGHT_RANKER_WEIGHTS)
    )
    light_ranker_bias: float = -1.5

    # Diversity signal D: "none" contributes 0, "author" penalizes repeat authors.
    diversity_signal: Literal["none", "author"] = "none"

    @model_validator(mode="after")
    def check_hidden_sizes(self):
        if any(size <= 0 for size in self.hidden_sizes):
            raise ValueError(f"Hidden layer sizes must be positive, got {self.hidden_sizes}")
        total = self.weight_sum()
        if abs(total - 1.0) > 1e-6:
            logger.warning("[config] ranking weights sum to %.4f, expected 1.0", total)
        return self

    def weight_sum(self) -> float:
        return (
            self.engagement_weight
            + self.recency_weight
            + self.relevance_weight
            + self.diversity_weight
        )


class FilteringConfig(BaseModel):
    """Configuration for the filter stage. Each sub-filter toggles independently."""

    model_config = ConfigDict(frozen=True)

    enable_content_filtering: bool = True
    enable_user_filtering: bool = True
    enable_engagement_filtering: bool = True
    enable_diversity_filtering: bool = True

    # Posts whose total engagement is below this are dropped.
    min_engagement_threshold: int = Field(default=0, ge=0)
    # Near-duplicate cutoff passed to the pluggable duplicate detector.
    max_similarity_threshold: float = Field(default=0.8, ge=0.0, le=1.0)
    # Content shorter than this (after stripping) is dropped.
    min_content_length: int = Field(default=11, ge=0)
    # Case-insensitive substrings that disqualify a post.
    denylist: List[str] = Field(default_factory=lambda: ["spam", "inappropriate"])


class MixingConfig(BaseModel):
    """Configuration for mixing the ranked list into a timeline."""

    model_config = ConfigDict(frozen=True)

    timeline_limit: int = Field(default=20, ge=0)
    enable_diversity: bool = True
    enable_recency: bool = True
    enable_engagement: bool = True
    diversity_threshold: float = Field(default=0.3, ge=0.0, le=1.0)
    # With enable_diversity, no more than this many consecutive posts by one
    # author. None leaves rank order untouched.
    max_consecutive_per_author: Optional[int] = Field(default=None, ge=1)
    algorithm_name: str = "for_you"


class NotificationConfig(BaseModel):
    """Configuration for the notification pipeline."""

    model_config = ConfigDict(frozen=True)

    max_notifications: int = Field(default=10, ge=0)
    enable_personalized: bool = True
    enable_trending: bool = True
    enable_engagement: bool = True
    min_score_threshold: float = Field(default=0.3, ge=0.0, le=1.0)
    # Minimum seconds between two notifications of the same type for a user.
    max_frequency_seconds: float = Field(default=3600.0, ge=0.0)
    # Candidate notifications fetched per origin.
    candidates_per_origin: int = Field(default=20, ge=0)


class FeatureExtractionConfig(BaseModel):
    """Feature families to extract; a disabled family yields zeros."""

    model_config = ConfigDict(frozen=True)

    enable_engagement_features: bool = True
    enable_temporal_features: bool = True
    enable_content_features: bool = True
    enable_author_features: bool = True
    enable_user_features: bool = True
    normalize_features: bool = True


class AlgorithmConfig(BaseModel):
    """Configuration for the whole feed algorithm."""

    model_config = ConfigDict(frozen=True)

    candidate_source: CandidateSourceConfig = Field(default_factory=CandidateSourceConfig)
    ranking: RankingConfig = Field(default_factory=RankingConfig)
    filtering: FilteringConfig = Field(default_factory=FilteringConfig)
    mixing: MixingConfig = Field(default_factory=MixingConfig)
    notifications: NotificationConfig = Field(default_factory=NotificationConfig)
    feature_extraction: FeatureExtractionConfig = Field(default_factory=FeatureExtractionConfig)

    @classmethod
    def from_dict(cls, config_dict: Dict) -> "AlgorithmConfig":
        """Create config from a nested dictionary (e.g., loaded from JSON). Unknown keys are ignored."""
        sections = {}
        for name, field in cls.model_fields.items():
            section = config_dict.get(name)
            if not isinstance(section, dict):
                continue
            allowed = set(field.annotation.model_fields)
            sections[name] = {k: v for k, v in section.items() if k in allowed}
        return cls.model_validate(sections)


DEFAULT_CONFIG = AlgorithmConfig()


def resolve_config(config: Optional[Union["AlgorithmConfig", Dict]]) -> "AlgorithmConfig":
    """
    Return config as an AlgorithmConfig, DEFAULT_CONFIG when none is provided.

    Raises InvalidConfiguration when a dict fails validation.
    """
    if config is None:
        return DEFAULT_CONFIG
    if isinstance(config, AlgorithmConfig):
        return config
    try:
        return AlgorithmConfig.from_dict(config)
    except ValidationError as e:
        raise InvalidConfiguration(f"Invalid algorithm configuration: {e}") from e


def load_config(path: Union[Path, str]) -> AlgorithmConfig:
    """Load and validate an AlgorithmConfig from a JSON file."""
    path = Path(path)
    try:
        with open(path) as f:
            data = json.load(f)
    except (OSError, json.JSONDecodeError) as e:
        raise InvalidConfiguration(f"Cannot read algorithm config {path}: {e}") from e
    if not isinstance(data, dict):
        raise InvalidConfiguration(f"Algorithm config {path} must be a JSON object")
    return resolve_config(data)
