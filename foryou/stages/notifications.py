"""
Notification Pipeline: score and select notifications for one user.

Three origins, each toggled by NotificationConfig and bounded by
candidates_per_origin:

- reactive: others' interactions on the user's posts
  (like / repost / reply, quote -> mention),
  score = 0.6 * weight + 0.4 * max(0, 1 - hours / 24)
- trending: trending posts, score = 0.7 * E + 0.3 * R
- personalized: out-of-network posts scored by the scoring model

Candidates under min_score_threshold are dropped, the rest sorted by score
(stable). Selection keeps at most one notification per type per call and
asks the rate-limit store, atomically, whether that type may be sent again.
Origin failures follow the candidate-source partial-failure policy.

The public entry point is NotificationPipeline.generate.
"""

import logging
import uuid
from datetime import datetime
from typing import Dict, List, Optional, Set

from pydantic import BaseModel, ConfigDict, Field

from ..ml.features import FeatureExtractor
from ..ml.model import ScoringModel
from ..models.config import CandidateSourceConfig, NotificationConfig
from ..models.notification import Notification, NotificationType, priority_for_score
from ..models.post import Interaction, InteractionType, Post, UserContext, utc_now
from ..models.scoring import clamp, engagement_score, hours_since, recency_score
from ..sources.data_source import DataSource
from ..sources.rate_limit import InMemoryRateLimitStore, RateLimitStore
from .candidate_source import OriginFetch, gather_origins

logger = logging.getLogger(__name__)

# Reactive notifications lose their recency bonus after one day.
REACTIVE_HORIZON_HOURS = 24.0

_REACTIVE_TYPES: Dict[InteractionType, NotificationType] = {
    InteractionType.LIKE: NotificationType.LIKE,
    InteractionType.REPOST: NotificationType.REPOST,
    InteractionType.REPLY: NotificationType.REPLY,
    InteractionType.QUOTE: NotificationType.MENTION,
}

_REACTIVE_TEXT = {
    NotificationType.LIKE: ("New like", "{actor} liked your post"),
    NotificationType.REPOST: ("New repost", "{actor} reposted your post"),
    NotificationType.REPLY: ("New reply", "{actor} replied to your post"),
    NotificationType.MENTION: ("New mention", "{actor} quoted your post"),
}


def reactive_score(interaction: Interaction, now: datetime) -> float:
    hours = hours_since(interaction.timestamp, now)
    return clamp(0.6 * interaction.weight + 0.4 * recency_score(hours, REACTIVE_HORIZON_HOURS))


def trending_score(post: Post, now: datetime) -> float:
    e = engagement_score(post.total_engagement)
    r = recency_score(hours_since(post.created_at, now))
    return clamp(0.7 * e + 0.3 * r)


def _preview(content: str, length: int = 80) -> str:
    content = content.strip()
    return content if len(content) <= length else content[: length - 3] + "..."


class NotificationBatch(BaseModel):
    """Selected notifications plus what the run looked like."""

    model_config = ConfigDict(frozen=True)

    notifications: List[Notification] = Field(default_factory=list)
    candidate_count: int = 0
    scored_count: int = 0
    failed_origins: List[str] = Field(default_factory=list)
    attempted_origins: int = 0

    @property
    def degraded(self) -> bool:
        return bool(self.failed_origins)


class NotificationPipeline:
    """Builds scored, rate-limited notifications from the injected data source."""

    def __init__(
        self,
        data_source: DataSource,
        model: ScoringModel,
        extractor: Optional[FeatureExtractor] = None,
        config: Optional[NotificationConfig] = None,
        source_config: Optional[CandidateSourceConfig] = None,
        rate_limit_store: Optional[RateLimitStore] = None,
    ):
        self.data_source = data_source
        self.model = model
        self.extractor = extractor or FeatureExtractor()
        self.config = config or NotificationConfig()
        self.source_config = source_config or CandidateSourceConfig()
        self.rate_limit_store = rate_limit_store if rate_limit_store is not None else InMemoryRateLimitStore()

    def _notification_id(self, user_id: str, kind: str, ref: str, now: datetime) -> str:
        return str(uuid.uuid5(uuid.NAMESPACE_URL, f"notification/{user_id}/{kind}/{ref}/{now.isoformat()}"))

    def _fetchers(self, user_id: str) -> Dict[str, OriginFetch]:
        cfg = self.config
        limit = cfg.candidates_per_origin
        fetchers: Dict[str, OriginFetch] = {}
        if limit <= 0:
            return fetchers
        if cfg.enable_engagement:
            fetchers["engagement"] = lambda: self.data_source.fetch_engagement_events(user_id, limit)
        if cfg.enable_trending:
            fetchers["trending"] = lambda: self.data_source.fetch_trending(limit)
        if cfg.enable_personalized:
            fetchers["personalized"] = lambda: self.data_source.fetch_out_of_network(user_id, limit)
        return fetchers

    def reactive_candidates(
        self, user_id: str, interactions: List[Interaction], now: datetime
    ) -> List[Notification]:
        out = []
        for interaction in interactions:
            ntype = _REACTIVE_TYPES.get(interaction.type)
            if ntype is None or interaction.user_id == user_id:
                continue
            score = reactive_score(interaction, now)
            title, body = _REACTIVE_TEXT[ntype]
            out.append(
                Notification(
                    id=self._notification_id(user_id, ntype.value, interaction.id, now),
                    user_id=user_id,
                    type=ntype,
                    title=title,
                    body=body.format(actor=interaction.user_id),
                    post_id=interaction.post_id,
                    author_id=interaction.user_id,
                    priority=priority_for_score(score),
                    score=score,
                    created_at=now,
                )
            )
        return out

    def trending_candidates(self, user_id: str, posts: List[Post], now: datetime) -> List[Notification]:
        out = []
        for post in posts:
            score = trending_score(post, now)
            out.append(
                Notification(
                    id=self._notification_id(user_id, "trending", post.id, now),
                    user_id=user_id,
                    type=NotificationType.TRENDING,
                    title="Trending now",
                    body=_preview(post.content),
                    post_id=post.id,
                    author_id=post.author_id,
                    priority=priority_for_score(score),
                    score=score,
                    created_at=now,
                )
            )
        return out

    def personalized_candidates(
        self,
        user_id: str,
        posts: List[Post],
        user_context: UserContext,
        now: datetime,
    ) -> List[Notification]:
        out = []
        for post in posts:
            if post.author_id == user_id:
                continue
            raw = self.extractor.extract(post, user_context, now)
            score = clamp(self.model.score(self.extractor.normalize(raw)))
            out.append(
                Notification(
                    id=self._notification_id(user_id, "personalized", post.id, now),
                    user_id=user_id,
                    type=NotificationType.PERSONALIZED,
                    title="Recommended for you",
                    body=_preview(post.content),
                    post_id=post.id,
                    author_id=post.author_id,
                    priority=priority_for_score(score),
                    score=score,
                    created_at=now,
                )
            )
        return out

    def select(self, user_id: str, candidates: List[Notification], now: datetime) -> List[Notification]:
        """
        Threshold, sort (stable, score desc), then keep at most one per type,
        each gated by the rate-limit store, up to max_notifications.
        """
        cfg = self.config
        eligible = [n for n in candidates if n.score >= cfg.min_score_threshold]
        eligible.sort(key=lambda n: n.score, reverse=True)

        selected: List[Notification] = []
        seen_types: Set[NotificationType] = set()
        for notification in eligible:
            if len(selected) >= cfg.max_notifications:
                break
            if notification.type in seen_types:
                continue
            seen_types.add(notification.type)
            if not self.rate_limit_store.try_acquire(
                user_id, notification.type, now, cfg.max_frequency_seconds
            ):
                logger.debug("[notifications] RATE_LIMITED user=%s type=%s", user_id, notification.type.value)
                continue
            selected.append(notification)
        return selected

    async def generate(
        self,
        user_id: str,
        user_context: Optional[UserContext] = None,
        now: Optional[datetime] = None,
    ) -> NotificationBatch:
        """Raises SourceUnavailable per the partial-failure policy."""
        now = now or utc_now()
        user_context = user_context or UserContext(user_id=user_id)
        fetchers = self._fetchers(user_id)
        results, failed = await gather_origins(fetchers, self.source_config) if fetchers else ({}, [])

        candidates: List[Notification] = []
        candidates.extend(self.reactive_candidates(user_id, list(results.get("engagement", [])), now))
        candidates.extend(self.trending_candidates(user_id, list(results.get("trending", [])), now))
        candidates.extend(
            self.personalized_candidates(user_id, list(results.get("personalized", [])), user_context, now)
        )
        selected = self.select(user_id, candidates, now)

        logger.info(
            "[notifications] user=%s candidates=%d selected=%d failed=%s",
            user_id, len(candidates), len(selected), failed,
        )
        return NotificationBatch(
            notifications=selected,
            candidate_count=sum(len(v) for v in results.values()),
            scored_count=len(candidates),
            failed_origins=failed,
            attempted_origins=len(fetchers),
        )
