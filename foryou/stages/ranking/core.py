"""
Main ranking orchestration: extract features, score with the model, blend.

For each filtered post: raw features -> normalized features -> model relevance
L, diversity D from the configured scorer, then blended scoring into a
Candidate. Candidates are returned sorted by score descending; the sort is
stable so ties keep their input order.
Submodules used: blended_scoring, diversity, reasons.
"""

import logging
import uuid
from datetime import datetime
from typing import List, Optional

from ...ml.features import FeatureExtractor
from ...ml.model import ScoringModel
from ...models.config import RankingConfig
from ...models.post import Post, UserContext, utc_now
from ...models.scoring import Candidate
from .blended_scoring import build_candidate
from .diversity import DiversityScorer, build_diversity_scorer

logger = logging.getLogger(__name__)


def candidate_id(user_id: str, post_id: str, now: datetime, index: int) -> str:
    """Deterministic candidate id for one (user, post, run time, position)."""
    return str(uuid.uuid5(uuid.NAMESPACE_URL, f"{user_id}/{post_id}/{now.isoformat()}/{index}"))


class RankingStage:
    """Scores and orders posts for one user."""

    def __init__(
        self,
        model: ScoringModel,
        extractor: Optional[FeatureExtractor] = None,
        config: Optional[RankingConfig] = None,
        diversity_scorer: Optional[DiversityScorer] = None,
    ):
        self.model = model
        self.extractor = extractor or FeatureExtractor()
        self.config = config or RankingConfig()
        self.diversity_scorer = diversity_scorer or build_diversity_scorer(self.config)

    def rank(
        self,
        posts: List[Post],
        user_context: UserContext,
        now: Optional[datetime] = None,
    ) -> List[Candidate]:
        """
        Rank posts with blended scoring:
        w_e*engagement + w_r*recency + w_l*relevance + w_d*diversity.

        One Candidate per input post, scores in [0, 1], sorted descending.
        """
        now = now or utc_now()
        diversity = self.diversity_scorer.scores(posts, user_context)

        ranked: List[Candidate] = []
        for index, post in enumerate(posts):
            raw = self.extractor.extract(post, user_context, now)
            relevance = self.model.score(self.extractor.normalize(raw))
            ranked.append(
                build_candidate(
                    post,
                    raw,
                    relevance,
                    diversity[index],
                    self.config,
                    now,
                    candidate_id(user_context.user_id, post.id, now, index),
                )
            )

        ranked.sort(key=lambda c: c.score, reverse=True)

        if ranked:
            logger.info(
                "[ranking] user=%s ranked=%d top=%.4f bottom=%.4f",
                user_context.user_id, len(ranked), ranked[0].score, ranked[-1].score,
            )
        return ranked
