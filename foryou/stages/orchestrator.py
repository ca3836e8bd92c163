"""
Pipeline orchestrator: runs candidate sourcing, filtering, ranking and mixing
to produce a Timeline, and the notification pipeline to produce notifications.

Construction resolves the configuration (InvalidConfiguration) and builds the
scoring model, loading weights when a loader is given (ModelLoadFailure), so
a misconfigured orchestrator never serves a request.

Each run records a PipelineMetrics snapshot and hands it to the metrics sink.
A Timeline is only returned when every stage completed; unexpected stage
failures surface as PipelineError(stage=...), SourceUnavailable propagates.
"""

import asyncio
import logging
import time
from datetime import datetime
from typing import Awaitable, Callable, Dict, List, Optional, Tuple, TypeVar, Union

from ..errors import DataSourceError, FeedError, PipelineError, SourceUnavailable
from ..ml.features import FeatureExtractor
from ..ml.model import build_scoring_model
from ..ml.weights import ModelWeightsLoader
from ..models.config import AlgorithmConfig, resolve_config
from ..models.metrics import PipelineMetrics, take_resource_snapshot
from ..models.notification import Notification
from ..models.post import Post, UserContext, utc_now
from ..models.scoring import Timeline
from ..sources.cache import CandidateCache
from ..sources.data_source import DataSource
from ..sources.metrics_sink import LoggingMetricsSink, MetricsSink
from ..sources.rate_limit import InMemoryRateLimitStore, RateLimitStore
from .candidate_source import CandidateSource
from .filtering import DuplicateDetector, FilterStage
from .mixing import MixingStage
from .notifications import NotificationPipeline
from .ranking import DiversityScorer, RankingStage

logger = logging.getLogger(__name__)

T = TypeVar("T")


def _ratio(numerator: int, denominator: int) -> float:
    return numerator / denominator if denominator else 0.0


def _run_stage(stage: str, fn: Callable[[], T]) -> T:
    """Run a pure stage; typed feed errors pass through, anything else becomes PipelineError."""
    try:
        return fn()
    except FeedError:
        raise
    except Exception as e:
        logger.exception("[pipeline] STAGE_FAILED stage=%s", stage)
        raise PipelineError(f"{stage} stage failed: {e}", stage=stage) from e


async def _run_async_stage(stage: str, coro: Awaitable[T]) -> T:
    try:
        return await coro
    except FeedError:
        raise
    except Exception as e:
        logger.exception("[pipeline] STAGE_FAILED stage=%s", stage)
        raise PipelineError(f"{stage} stage failed: {e}", stage=stage) from e


class RecommendationOrchestrator:
    """Wires the stages together for one data source and one configuration."""

    def __init__(
        self,
        data_source: DataSource,
        config: Optional[Union[AlgorithmConfig, Dict]] = None,
        weights_loader: Optional[ModelWeightsLoader] = None,
        rate_limit_store: Optional[RateLimitStore] = None,
        metrics_sink: Optional[MetricsSink] = None,
        cache: Optional[CandidateCache] = None,
        duplicate_detector: Optional[DuplicateDetector] = None,
        diversity_scorer: Optional[DiversityScorer] = None,
        clock: Callable[[], datetime] = utc_now,
    ):
        self.config = resolve_config(config)
        self.data_source = data_source
        self.model = build_scoring_model(self.config.ranking, weights_loader)
        self.metrics_sink = metrics_sink if metrics_sink is not None else LoggingMetricsSink()
        self.clock = clock

        cfg = self.config
        extractor = FeatureExtractor(cfg.feature_extraction)
        self.extractor = extractor
        self.candidate_source = CandidateSource(
            data_source,
            cfg.candidate_source,
            cache=cache if cache is not None else CandidateCache(),
        )
        self.filter_stage = FilterStage(cfg.filtering, duplicate_detector)
        self.ranking_stage = RankingStage(self.model, extractor, cfg.ranking, diversity_scorer)
        self.mixing_stage = MixingStage(cfg.mixing, version=cfg.ranking.model_version)
        self.notification_pipeline = NotificationPipeline(
            data_source,
            self.model,
            extractor,
            cfg.notifications,
            cfg.candidate_source,
            rate_limit_store if rate_limit_store is not None else InMemoryRateLimitStore(),
        )
        logger.info(
            "[pipeline] orchestrator ready model=%s policy=%s timeline_limit=%d",
            type(self.model).__name__,
            cfg.candidate_source.partial_failure_policy,
            cfg.mixing.timeline_limit,
        )

    # ------------------------------------------------------------------
    # Context
    # ------------------------------------------------------------------

    async def _user_context(self, user_id: str) -> Tuple[UserContext, bool]:
        """
        Fetch the user's context. Returns (context, degraded).

        Under the "degrade" policy a failed fetch falls back to an empty
        context; under "fail" it raises SourceUnavailable.
        """
        cfg = self.config.candidate_source
        try:
            context = await asyncio.wait_for(
                self.data_source.fetch_user_context(user_id),
                timeout=cfg.origin_timeout_seconds,
            )
            return context, False
        except (DataSourceError, asyncio.TimeoutError) as e:
            if cfg.partial_failure_policy == "fail":
                raise SourceUnavailable(
                    f"user context fetch failed: {e}",
                    origin="user_context",
                    transient=getattr(e, "transient", True),
                ) from e
            logger.warning("[pipeline] USER_CONTEXT_FALLBACK user=%s error=%r", user_id, e)
            return UserContext(user_id=user_id), True

    async def _with_authors(self, user_context: UserContext, posts: List[Post]) -> UserContext:
        """Attach author profiles for the given posts. A failed lookup leaves them out."""
        author_ids = sorted({p.author_id for p in posts} - set(user_context.authors))
        if not author_ids:
            return user_context
        try:
            authors = await asyncio.wait_for(
                self.data_source.fetch_authors(author_ids),
                timeout=self.config.candidate_source.origin_timeout_seconds,
            )
        except (DataSourceError, asyncio.TimeoutError) as e:
            logger.warning("[pipeline] AUTHOR_LOOKUP_FAILED user=%s error=%r", user_context.user_id, e)
            return user_context
        merged = {**user_context.authors, **authors}
        return user_context.model_copy(update={"authors": merged})

    # ------------------------------------------------------------------
    # Timeline
    # ------------------------------------------------------------------

    async def generate_timeline_with_metrics(self, user_id: str) -> Tuple[Timeline, PipelineMetrics]:
        started = time.perf_counter()
        now = self.clock()

        user_context, context_degraded = await self._user_context(user_id)
        batch = await _run_async_stage(
            "candidate_source", self.candidate_source.get_candidates(user_id, now)
        )

        filtered = _run_stage("filtering", lambda: self.filter_stage.filter(batch.posts, user_id))
        user_context = await self._with_authors(user_context, filtered)
        ranked = _run_stage("ranking", lambda: self.ranking_stage.rank(filtered, user_context, now))
        timeline = _run_stage("mixing", lambda: self.mixing_stage.mix(ranked, user_id, now))

        failed = list(batch.failed_origins) + (["user_context"] if context_degraded else [])
        snapshot = take_resource_snapshot()
        metrics = PipelineMetrics(
            pipeline="timeline",
            user_id=user_id,
            sourced_count=len(batch.posts),
            filtered_count=len(filtered),
            ranked_count=len(ranked),
            returned_count=len(timeline),
            duration_seconds=time.perf_counter() - started,
            memory_rss_bytes=snapshot.memory_rss_bytes,
            cpu_percent=snapshot.cpu_percent,
            cache_hit_rate=_ratio(batch.cache_hits, batch.lookups),
            error_rate=_ratio(len(failed), batch.lookups + 1),
            degraded=bool(failed),
            failed_origins=failed,
            timestamp=now,
        )
        self.metrics_sink.emit(metrics)
        return timeline, metrics

    async def generate_timeline(self, user_id: str) -> Timeline:
        """Produce the For You timeline for user_id."""
        timeline, _ = await self.generate_timeline_with_metrics(user_id)
        return timeline

    # ------------------------------------------------------------------
    # Notifications
    # ------------------------------------------------------------------

    async def generate_notifications_with_metrics(
        self, user_id: str
    ) -> Tuple[List[Notification], PipelineMetrics]:
        started = time.perf_counter()
        now = self.clock()

        user_context, context_degraded = await self._user_context(user_id)
        batch = await _run_async_stage(
            "notifications", self.notification_pipeline.generate(user_id, user_context, now)
        )

        failed = list(batch.failed_origins) + (["user_context"] if context_degraded else [])
        snapshot = take_resource_snapshot()
        metrics = PipelineMetrics(
            pipeline="notifications",
            user_id=user_id,
            sourced_count=batch.candidate_count,
            filtered_count=batch.scored_count,
            ranked_count=batch.scored_count,
            returned_count=len(batch.notifications),
            duration_seconds=time.perf_counter() - started,
            memory_rss_bytes=snapshot.memory_rss_bytes,
            cpu_percent=snapshot.cpu_percent,
            error_rate=_ratio(len(failed), batch.attempted_origins + 1),
            degraded=bool(failed),
            failed_origins=failed,
            timestamp=now,
        )
        self.metrics_sink.emit(metrics)
        return list(batch.notifications), metrics

    async def generate_notifications(self, user_id: str) -> List[Notification]:
        """Produce scored, rate-limited notifications for user_id."""
        notifications, _ = await self.generate_notifications_with_metrics(user_id)
        return notifications
