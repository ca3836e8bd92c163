"""Pipeline stages: candidate source, filtering, ranking, mixing, notifications, orchestration."""

from .candidate_source import CandidateBatch, CandidateSource, fetch_origin, gather_origins
from .filtering import ContentHashDetector, DuplicateDetector, FilterStage
from .mixing import MixingStage, select_with_author_cap
from .notifications import NotificationBatch, NotificationPipeline
from .orchestrator import RecommendationOrchestrator
from .ranking import RankingStage, reason_for_score

__all__ = [
    "CandidateBatch",
    "CandidateSource",
    "ContentHashDetector",
    "DuplicateDetector",
    "FilterStage",
    "MixingStage",
    "NotificationBatch",
    "NotificationPipeline",
    "RankingStage",
    "RecommendationOrchestrator",
    "fetch_origin",
    "gather_origins",
    "reason_for_score",
    "select_with_author_cap",
]
