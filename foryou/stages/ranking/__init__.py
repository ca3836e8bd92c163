"""
Ranking stage: blend engagement, recency, model relevance and diversity into a sorted list.

Public API: RankingStage, reason_for_score.
- core: main orchestration (RankingStage.rank).
- Submodules: blended_scoring, diversity, reasons.
"""

from .blended_scoring import blend, build_candidate
from .core import RankingStage, candidate_id
from .diversity import (
    AuthorDiversityScorer,
    ConstantDiversityScorer,
    DiversityScorer,
    build_diversity_scorer,
)
from .reasons import reason_for_score

__all__ = [
    "AuthorDiversityScorer",
    "ConstantDiversityScorer",
    "DiversityScorer",
    "RankingStage",
    "blend",
    "build_candidate",
    "build_diversity_scorer",
    "candidate_id",
    "reason_for_score",
]
