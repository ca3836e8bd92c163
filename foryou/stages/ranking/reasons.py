"""
Score-based recommendation reasons.

Presentation heuristic only: bands the final score into a reason tag shown to
the user. It does not explain what actually drove the score.
"""

from ...models.scoring import RecommendationReason


def reason_for_score(score: float) -> RecommendationReason:
    """>0.8 engagement, >0.6 recency, >0.4 similar users, else diversity."""
    if score > 0.8:
        return RecommendationReason.ENGAGEMENT
    if score > 0.6:
        return RecommendationReason.RECENCY
    if score > 0.4:
        return RecommendationReason.SIMILAR_USERS
    return RecommendationReason.DIVERSITY
