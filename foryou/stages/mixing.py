"""
Mixing Stage: turn the ranked list into a bounded Timeline.

Candidates authored by the timeline's user are always dropped. The rest are
truncated to timeline_limit preserving rank order. With enable_diversity and
max_consecutive_per_author set, uses an in-processing selection loop: for each
slot, takes the highest-ranked remaining candidate that would not make one
author appear more than N times in a row. Deferred candidates stay eligible
for later slots.
"""

import logging
import uuid
from datetime import datetime
from typing import List, Optional

from ..models.config import MixingConfig
from ..models.post import utc_now
from ..models.scoring import Candidate, Timeline

logger = logging.getLogger(__name__)


def select_with_author_cap(
    ranked: List[Candidate],
    k: int,
    max_consecutive: int,
) -> List[Candidate]:
    """
    Select up to k candidates from ranked (score desc, not mutated) so that no
    author has more than max_consecutive posts in a row.

    Stops early when every remaining candidate would break the run limit.
    """
    remaining = list(ranked)
    selected: List[Candidate] = []
    last_author: Optional[str] = None
    run_length = 0

    while remaining and len(selected) < k:
        chosen_idx: Optional[int] = None
        for idx, candidate in enumerate(remaining):
            author = candidate.post.author_id
            if author == last_author and run_length >= max_consecutive:
                continue
            chosen_idx = idx
            break

        if chosen_idx is None:
            # Only the blocked author is left.
            break

        chosen = remaining.pop(chosen_idx)
        selected.append(chosen)
        author = chosen.post.author_id
        run_length = run_length + 1 if author == last_author else 1
        last_author = author

    return selected


class MixingStage:
    """Builds the final Timeline; holds only frozen config."""

    def __init__(self, config: Optional[MixingConfig] = None, version: str = "1.0"):
        self.config = config or MixingConfig()
        self.version = version

    def mix(
        self,
        candidates: List[Candidate],
        user_id: str,
        now: Optional[datetime] = None,
    ) -> Timeline:
        now = now or utc_now()
        cfg = self.config
        limit = cfg.timeline_limit

        # Own posts never reach the user's timeline, whatever the filter toggles.
        eligible = [c for c in candidates if c.post.author_id != user_id]
        if len(eligible) < len(candidates):
            logger.debug("[mixing] OWN_POSTS_DROPPED user=%s count=%d", user_id, len(candidates) - len(eligible))

        if cfg.enable_diversity and cfg.max_consecutive_per_author is not None:
            selected = select_with_author_cap(eligible, limit, cfg.max_consecutive_per_author)
        else:
            selected = eligible[:limit]

        logger.info(
            "[mixing] user=%s in=%d out=%d limit=%d", user_id, len(candidates), len(selected), limit
        )
        return Timeline(
            id=str(uuid.uuid5(uuid.NAMESPACE_URL, f"timeline/{user_id}/{now.isoformat()}")),
            user_id=user_id,
            posts=selected,
            created_at=now,
            algorithm=cfg.algorithm_name,
            version=self.version,
        )
