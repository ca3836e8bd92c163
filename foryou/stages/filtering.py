"""
Filter Stage: remove ineligible posts.

Applied in order, each toggled independently by FilteringConfig:
content policy, own-author, engagement floor, duplicates/diversity.
Every sub-filter preserves the relative order of surviving posts, and
filtering its own output is a no-op.

The public entry point is FilterStage.filter.
"""

import hashlib
import logging
import re
from typing import List, Optional, Protocol, Sequence, Set

from ..models.config import FilteringConfig
from ..models.post import Post

logger = logging.getLogger(__name__)

_WHITESPACE = re.compile(r"\s+")


class DuplicateDetector(Protocol):
    """Pluggable near-duplicate check for the diversity filter."""

    def is_duplicate(self, post: Post, kept: Sequence[Post], threshold: float) -> bool:
        """True if post is too similar to any already-kept post."""
        ...


class ContentHashDetector:
    """
    Exact-duplicate detector on normalized content (case and whitespace folded),
    plus reposts whose original is already kept or already reposted.
    Ignores threshold; similarity is all-or-nothing.
    """

    @staticmethod
    def fingerprint(content: str) -> str:
        normalized = _WHITESPACE.sub(" ", content.strip().lower())
        return hashlib.sha1(normalized.encode("utf-8")).hexdigest()

    def is_duplicate(self, post: Post, kept: Sequence[Post], threshold: float) -> bool:
        fp = self.fingerprint(post.content)
        origin = post.original_post_id or post.id
        for other in kept:
            if self.fingerprint(other.content) == fp:
                return True
            if origin == (other.original_post_id or other.id):
                return True
        return False


def _passes_content_policy(post: Post, config: FilteringConfig) -> bool:
    """True if content is long enough and contains no denylisted term."""
    content = post.content.strip()
    if len(content) < config.min_content_length:
        return False
    lowered = content.lower()
    return not any(term.lower() in lowered for term in config.denylist if term)


def _not_own_post(post: Post, user_id: str) -> bool:
    return post.author_id != user_id


def _meets_engagement_floor(post: Post, config: FilteringConfig) -> bool:
    return post.total_engagement >= config.min_engagement_threshold


class FilterStage:
    """Pure filtering over an in-memory list; holds only frozen config."""

    def __init__(
        self,
        config: Optional[FilteringConfig] = None,
        duplicate_detector: Optional[DuplicateDetector] = None,
    ):
        self.config = config or FilteringConfig()
        self.duplicate_detector = duplicate_detector

    def apply_content_filter(self, posts: List[Post]) -> List[Post]:
        return [p for p in posts if _passes_content_policy(p, self.config)]

    def apply_user_filter(self, posts: List[Post], user_id: str) -> List[Post]:
        return [p for p in posts if _not_own_post(p, user_id)]

    def apply_engagement_filter(self, posts: List[Post]) -> List[Post]:
        return [p for p in posts if _meets_engagement_floor(p, self.config)]

    def apply_diversity_filter(self, posts: List[Post]) -> List[Post]:
        """Drop repeated post ids (first wins), then consult the duplicate detector if any."""
        seen: Set[str] = set()
        kept: List[Post] = []
        for post in posts:
            if post.id in seen:
                continue
            if self.duplicate_detector is not None and self.duplicate_detector.is_duplicate(
                post, kept, self.config.max_similarity_threshold
            ):
                continue
            seen.add(post.id)
            kept.append(post)
        return kept

    def filter(self, posts: List[Post], user_id: str) -> List[Post]:
        """Apply the enabled sub-filters in order; never raises for well-formed input."""
        cfg = self.config
        result = list(posts)
        before = len(result)
        if cfg.enable_content_filtering:
            result = self.apply_content_filter(result)
        if cfg.enable_user_filtering:
            result = self.apply_user_filter(result, user_id)
        if cfg.enable_engagement_filtering:
            result = self.apply_engagement_filter(result)
        if cfg.enable_diversity_filtering:
            result = self.apply_diversity_filter(result)
        logger.info("[filtering] user=%s in=%d out=%d", user_id, before, len(result))
        return result
