"""Shared fixtures: a fixed clock, post/user builders and a small social graph."""

import asyncio
from datetime import datetime, timedelta, timezone
from typing import Dict, List, Optional, Set

import pytest

from foryou.errors import DataSourceError
from foryou.models import Interaction, InteractionType, Post, User, UserContext
from foryou.sources import InMemoryDataSource

NOW = datetime(2024, 6, 1, 12, 0, 0, tzinfo=timezone.utc)


def make_post(
    post_id: str,
    author_id: str = "author",
    content: str = "a perfectly ordinary post",
    hours_ago: float = 1.0,
    likes: int = 0,
    reposts: int = 0,
    replies: int = 0,
    quotes: int = 0,
    **kwargs,
) -> Post:
    return Post(
        id=post_id,
        author_id=author_id,
        content=content,
        created_at=NOW - timedelta(hours=hours_ago),
        like_count=likes,
        repost_count=reposts,
        reply_count=replies,
        quote_count=quotes,
        **kwargs,
    )


def make_user(user_id: str, **kwargs) -> User:
    return User(id=user_id, username=user_id, display_name=user_id.title(), created_at=NOW, **kwargs)


def make_posts(prefix: str, author_id: str, n: int, start_hours: float = 1.0) -> List[Post]:
    return [
        make_post(f"{prefix}_{k}", author_id, f"post number {k} from {author_id}", hours_ago=start_hours + k)
        for k in range(n)
    ]


class FlakyDataSource:
    """
    Wraps a data source and injects failures per method name.

    fail: method -> exception to raise (every call).
    fail_times: method -> number of initial calls that raise a transient DataSourceError.
    delay: method -> seconds to sleep before delegating.
    """

    def __init__(
        self,
        inner,
        fail: Optional[Dict[str, Exception]] = None,
        fail_times: Optional[Dict[str, int]] = None,
        delay: Optional[Dict[str, float]] = None,
    ):
        self.inner = inner
        self.fail = dict(fail or {})
        self.fail_times = dict(fail_times or {})
        self.delay = dict(delay or {})
        self.calls: Dict[str, int] = {}

    async def _call(self, name: str, *args):
        self.calls[name] = self.calls.get(name, 0) + 1
        if name in self.delay:
            await asyncio.sleep(self.delay[name])
        if name in self.fail:
            raise self.fail[name]
        if self.calls[name] <= self.fail_times.get(name, 0):
            raise DataSourceError(f"{name} throttled", transient=True)
        return await getattr(self.inner, name)(*args)

    async def fetch_in_network(self, user_id, limit):
        return await self._call("fetch_in_network", user_id, limit)

    async def fetch_out_of_network(self, user_id, limit):
        return await self._call("fetch_out_of_network", user_id, limit)

    async def fetch_trending(self, limit):
        return await self._call("fetch_trending", limit)

    async def fetch_user_context(self, user_id):
        return await self._call("fetch_user_context", user_id)

    async def fetch_authors(self, author_ids):
        return await self._call("fetch_authors", author_ids)

    async def fetch_engagement_events(self, user_id, limit):
        return await self._call("fetch_engagement_events", user_id, limit)


@pytest.fixture
def now() -> datetime:
    return NOW


@pytest.fixture
def clock():
    return lambda: NOW


@pytest.fixture
def social_source() -> InMemoryDataSource:
    """
    alice follows bob and carol; dave is outside her network.
    alice has one post of her own; others interacted with it.
    """
    users = [
        make_user("alice"),
        make_user("bob", followers_count=1200, verified=True),
        make_user("carol", followers_count=40),
        make_user("dave", followers_count=5),
    ]
    posts = (
        make_posts("bob", "bob", 4)
        + make_posts("carol", "carol", 3, start_hours=2.0)
        + make_posts("dave", "dave", 3, start_hours=3.0)
        + [make_post("alice_0", "alice", "alice shares her weekend plans", hours_ago=5.0, likes=30)]
        + [make_post("viral", "dave", "a viral thread about python releases", hours_ago=2.0, likes=900, reposts=200)]
    )
    interactions = [
        Interaction(
            id="i_like", user_id="bob", post_id="alice_0", type=InteractionType.LIKE,
            timestamp=NOW - timedelta(minutes=10), weight=1.0,
        ),
        Interaction(
            id="i_reply", user_id="carol", post_id="alice_0", type=InteractionType.REPLY,
            timestamp=NOW - timedelta(hours=2), weight=0.8,
        ),
        Interaction(
            id="i_view", user_id="dave", post_id="alice_0", type=InteractionType.VIEW,
            timestamp=NOW - timedelta(minutes=5), weight=0.2,
        ),
        Interaction(
            id="i_own", user_id="alice", post_id="bob_0", type=InteractionType.LIKE,
            timestamp=NOW - timedelta(hours=1), weight=0.9,
        ),
    ]
    return InMemoryDataSource(
        users=users,
        posts=posts,
        follows={"alice": ["bob", "carol"]},
        interactions=interactions,
        trending_ids=["viral", "bob_0"],
    )


@pytest.fixture
def alice_context() -> UserContext:
    return UserContext(user_id="alice", engagement_rate=0.2, activity_score=0.5, following_ids=["bob", "carol"])


def post_ids(posts) -> List[str]:
    return [p.id for p in posts]


def author_ids(posts) -> Set[str]:
    return {p.author_id for p in posts}
