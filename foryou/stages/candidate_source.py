"""
Candidate Source: pull raw posts from the three origins.

Origins (in-network, out-of-network, trending) are fetched concurrently, each
bounded by round(max_candidates * origin_weight) and by its own timeout.
Results are concatenated in that order with no de-duplication (filtering
removes duplicates later).

When an origin fails, partial_failure_policy decides: "degrade" continues with
the surviving origins (logged, reported in metrics), "fail" raises
SourceUnavailable. A run where every origin fails raises in both modes.

The public entry point is CandidateSource.get_candidates.
"""

import asyncio
import logging
from datetime import datetime
from typing import Awaitable, Callable, Dict, List, Optional, Sequence, Tuple

from pydantic import BaseModel, ConfigDict, Field

from ..errors import DataSourceError, SourceUnavailable
from ..models.config import ORIGINS, CandidateSourceConfig
from ..models.post import Post, utc_now
from ..sources.cache import CandidateCache
from ..sources.data_source import DataSource

logger = logging.getLogger(__name__)

OriginFetch = Callable[[], Awaitable[list]]


class CandidateBatch(BaseModel):
    """Posts from one sourcing run plus what went wrong along the way."""

    model_config = ConfigDict(frozen=True)

    posts: List[Post] = Field(default_factory=list)
    origin_counts: Dict[str, int] = Field(default_factory=dict)
    failed_origins: List[str] = Field(default_factory=list)
    cache_hits: int = 0
    lookups: int = 0

    @property
    def degraded(self) -> bool:
        return bool(self.failed_origins)


async def fetch_origin(origin: str, fetch: OriginFetch, config: CandidateSourceConfig) -> list:
    """
    Run one origin fetch with timeout and transient-error retries.

    Raises SourceUnavailable when the fetch times out, fails permanently, or
    keeps failing transiently after origin_retries retries.
    """
    attempts = config.origin_retries + 1
    for attempt in range(1, attempts + 1):
        try:
            return await asyncio.wait_for(fetch(), timeout=config.origin_timeout_seconds)
        except asyncio.TimeoutError as e:
            raise SourceUnavailable(
                f"{origin} fetch timed out after {config.origin_timeout_seconds}s",
                origin=origin,
                transient=True,
            ) from e
        except DataSourceError as e:
            if e.transient and attempt < attempts:
                logger.warning(
                    "[candidate_source] ORIGIN_RETRY origin=%s attempt=%d/%d error=%s",
                    origin, attempt, attempts, e,
                )
                continue
            raise SourceUnavailable(
                f"{origin} fetch failed: {e}", origin=origin, transient=e.transient
            ) from e
    raise AssertionError("unreachable")


async def gather_origins(
    fetchers: Dict[str, OriginFetch],
    config: CandidateSourceConfig,
    served: Sequence[str] = (),
) -> Tuple[Dict[str, list], List[str]]:
    """
    Fetch all origins concurrently and apply the partial-failure policy.

    served names origins already answered without a fetch (cache hits); they
    count as surviving when deciding whether every origin failed.

    Returns (results_by_origin, failed_origins). Unexpected exceptions (not
    SourceUnavailable) propagate unchanged.
    """
    names = list(fetchers)
    outcomes = await asyncio.gather(
        *(fetch_origin(name, fetchers[name], config) for name in names),
        return_exceptions=True,
    )
    results: Dict[str, list] = {}
    errors: List[SourceUnavailable] = []
    for name, outcome in zip(names, outcomes):
        if isinstance(outcome, SourceUnavailable):
            errors.append(outcome)
        elif isinstance(outcome, BaseException):
            raise outcome
        else:
            results[name] = outcome

    failed = [e.origin or "unknown" for e in errors]
    if errors:
        if config.partial_failure_policy == "fail" or not (results or served):
            logger.error(
                "[candidate_source] SOURCE_UNAVAILABLE policy=%s failed=%s",
                config.partial_failure_policy, failed,
            )
            raise errors[0]
        logger.warning(
            "[candidate_source] DEGRADED_RUN failed=%s surviving=%s",
            failed, list(served) + list(results),
        )
    return results, failed


class CandidateSource:
    """Sources candidate posts for a user from the injected data source."""

    def __init__(
        self,
        data_source: DataSource,
        config: Optional[CandidateSourceConfig] = None,
        cache: Optional[CandidateCache] = None,
    ):
        self.data_source = data_source
        self.config = config or CandidateSourceConfig()
        self.cache = cache

    def _origin_fetch(self, origin: str, user_id: str, limit: int) -> OriginFetch:
        if origin == "in_network":
            return lambda: self.data_source.fetch_in_network(user_id, limit)
        if origin == "out_of_network":
            return lambda: self.data_source.fetch_out_of_network(user_id, limit)
        return lambda: self.data_source.fetch_trending(limit)

    async def get_candidates(self, user_id: str, now: Optional[datetime] = None) -> CandidateBatch:
        """
        Fetch, bound and concatenate origin posts (in-network, out-of-network, trending).

        Raises SourceUnavailable per the partial-failure policy.
        """
        now = now or utc_now()
        cfg = self.config
        limits = cfg.origin_limits()
        use_cache = self.cache is not None and not cfg.enable_real_time

        by_origin: Dict[str, List[Post]] = {}
        fetchers: Dict[str, OriginFetch] = {}
        served: List[str] = []
        cache_hits = 0
        lookups = 0
        for origin in ORIGINS:
            limit = limits[origin]
            if limit <= 0:
                by_origin[origin] = []
                continue
            lookups += 1
            if use_cache:
                cached = self.cache.get(origin, user_id, now, cfg.cache_timeout_seconds)
                if cached is not None:
                    cache_hits += 1
                    served.append(origin)
                    by_origin[origin] = cached
                    continue
            fetchers[origin] = self._origin_fetch(origin, user_id, limit)

        results, failed = await gather_origins(fetchers, cfg, served=served) if fetchers else ({}, [])
        for origin, posts in results.items():
            posts = list(posts)[: limits[origin]]
            by_origin[origin] = posts
            if use_cache:
                self.cache.put(origin, user_id, posts, now)

        combined: List[Post] = []
        for origin in ORIGINS:
            combined.extend(by_origin.get(origin, []))
        combined = combined[: cfg.max_candidates]

        logger.info(
            "[candidate_source] user=%s sourced=%d in=%d out=%d trending=%d cache_hits=%d",
            user_id, len(combined),
            len(by_origin.get("in_network", [])),
            len(by_origin.get("out_of_network", [])),
            len(by_origin.get("trending", [])),
            cache_hits,
        )
        return CandidateBatch(
            posts=combined,
            origin_counts={origin: len(by_origin.get(origin, [])) for origin in ORIGINS},
            failed_origins=failed,
            cache_hits=cache_hits,
            lookups=lookups,
        )
