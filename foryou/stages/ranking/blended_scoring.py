"""
Per-candidate blended scoring: engagement, recency, model relevance and diversity.

Builds a Candidate for one post given its features, model relevance and
diversity signal:

    final = engagement_weight * E + recency_weight * R
          + relevance_weight * L + diversity_weight * D

E = min(total_engagement / 1000, 1), R = max(0, 1 - hours / 168),
L = scoring model output, D = diversity signal. final is clamped to [0, 1].
"""

from datetime import datetime
from typing import Dict

from ...models.config import RankingConfig
from ...models.post import Post
from ...models.scoring import (
    Candidate,
    clamp,
    engagement_score,
    hours_since,
    recency_score,
)
from .reasons import reason_for_score


def blend(
    config: RankingConfig,
    engagement: float,
    recency: float,
    relevance: float,
    diversity: float,
) -> float:
    """Weighted sum of the four components, unclamped."""
    return (
        config.engagement_weight * engagement
        + config.recency_weight * recency
        + config.relevance_weight * relevance
        + config.diversity_weight * diversity
    )


def build_candidate(
    post: Post,
    features: Dict[str, float],
    relevance: float,
    diversity: float,
    config: RankingConfig,
    now: datetime,
    candidate_id: str,
) -> Candidate:
    """Compute E and R for one post, blend with L and D, clamp and wrap as a Candidate."""
    eng = engagement_score(post.total_engagement)
    rec = recency_score(hours_since(post.created_at, now))
    rel = clamp(relevance)
    div = clamp(diversity)
    final = clamp(blend(config, eng, rec, rel, div))
    return Candidate(
        id=candidate_id,
        post=post,
        score=final,
        reason=reason_for_score(final),
        features=features,
        created_at=now,
        engagement_score=eng,
        recency_score=rec,
        relevance_score=rel,
        diversity_score=div,
    )
