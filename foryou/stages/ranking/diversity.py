"""
Diversity signal D for the blended score.

Pluggable: the ranking stage asks a DiversityScorer for one value in [0, 1]
per post of the batch. The default contributes nothing.
"""

from collections import Counter
from typing import List, Protocol, Sequence

from ...models.config import RankingConfig
from ...models.post import Post, UserContext


class DiversityScorer(Protocol):
    def scores(self, posts: Sequence[Post], user_context: UserContext) -> List[float]:
        """One diversity value in [0, 1] per post, same order as posts."""
        ...


class ConstantDiversityScorer:
    """Pass-through signal: every post gets the same value (0.0 by default)."""

    def __init__(self, value: float = 0.0):
        self.value = value

    def scores(self, posts: Sequence[Post], user_context: UserContext) -> List[float]:
        return [self.value] * len(posts)


class AuthorDiversityScorer:
    """
    Favors authors the batch has not shown yet: the n-th post by an author (in
    input order) scores 1/n. Authors outside the user's follow graph get a
    small exploration bonus, capped at 1.0.
    """

    def __init__(self, exploration_bonus: float = 0.1):
        self.exploration_bonus = exploration_bonus

    def scores(self, posts: Sequence[Post], user_context: UserContext) -> List[float]:
        following = set(user_context.following_ids)
        seen: Counter = Counter()
        out = []
        for post in posts:
            seen[post.author_id] += 1
            value = 1.0 / seen[post.author_id]
            if post.author_id not in following:
                value += self.exploration_bonus
            out.append(min(value, 1.0))
        return out


def build_diversity_scorer(config: RankingConfig) -> DiversityScorer:
    if config.diversity_signal == "author":
        return AuthorDiversityScorer()
    return ConstantDiversityScorer(0.0)
