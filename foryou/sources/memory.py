"""
In-memory data sources.

InMemoryDataSource serves fixed users/posts/follows (deterministic fixtures for
tests). DemoDataSource generates a synthetic but seeded dataset for local runs;
each instance owns its data, there is no process-wide generator.
"""

import random
from datetime import datetime, timedelta
from typing import Dict, Iterable, List, Optional, Sequence

from ..errors import DataSourceError
from ..models.post import Interaction, InteractionType, Post, User, UserContext, utc_now


class InMemoryDataSource:
    """
    Data source backed by in-memory lists.

    follows maps user id -> followed author ids. trending_ids, when given,
    fixes the trending order; otherwise trending is by total engagement.
    contexts overrides the derived UserContext per user.
    """

    def __init__(
        self,
        users: Sequence[User] = (),
        posts: Sequence[Post] = (),
        follows: Optional[Dict[str, List[str]]] = None,
        interactions: Sequence[Interaction] = (),
        trending_ids: Optional[List[str]] = None,
        contexts: Optional[Dict[str, UserContext]] = None,
    ):
        self._users: Dict[str, User] = {u.id: u for u in users}
        self._posts: List[Post] = list(posts)
        self._post_by_id: Dict[str, Post] = {p.id: p for p in self._posts}
        self._follows: Dict[str, List[str]] = {k: list(v) for k, v in (follows or {}).items()}
        self._interactions: List[Interaction] = list(interactions)
        self._trending_ids = list(trending_ids) if trending_ids is not None else None
        self._contexts: Dict[str, UserContext] = dict(contexts or {})

    @property
    def posts(self) -> List[Post]:
        return list(self._posts)

    @property
    def users(self) -> List[User]:
        return list(self._users.values())

    def _newest_first(self, posts: Iterable[Post]) -> List[Post]:
        return sorted(posts, key=lambda p: p.created_at, reverse=True)

    async def fetch_in_network(self, user_id: str, limit: int) -> List[Post]:
        followed = set(self._follows.get(user_id, []))
        posts = [p for p in self._posts if p.author_id in followed]
        return self._newest_first(posts)[:limit]

    async def fetch_out_of_network(self, user_id: str, limit: int) -> List[Post]:
        followed = set(self._follows.get(user_id, []))
        posts = [p for p in self._posts if p.author_id not in followed]
        return self._newest_first(posts)[:limit]

    async def fetch_trending(self, limit: int) -> List[Post]:
        if self._trending_ids is not None:
            posts = [self._post_by_id[pid] for pid in self._trending_ids if pid in self._post_by_id]
        else:
            posts = sorted(self._posts, key=lambda p: p.total_engagement, reverse=True)
        return posts[:limit]

    async def fetch_user_context(self, user_id: str) -> UserContext:
        if user_id in self._contexts:
            return self._contexts[user_id]
        if self._users and user_id not in self._users:
            raise DataSourceError(f"Unknown user: {user_id}", transient=False)
        own = [i for i in self._interactions if i.user_id == user_id]
        # Interactions per post available, capped at 1.
        engagement_rate = min(len(own) / len(self._posts), 1.0) if self._posts else 0.0
        activity_score = min(sum(i.weight for i in own) / 100.0, 1.0)
        return UserContext(
            user_id=user_id,
            engagement_rate=engagement_rate,
            activity_score=activity_score,
            following_ids=self._follows.get(user_id, []),
        )

    async def fetch_authors(self, author_ids: Iterable[str]) -> Dict[str, User]:
        return {aid: self._users[aid] for aid in set(author_ids) if aid in self._users}

    async def fetch_engagement_events(self, user_id: str, limit: int) -> List[Interaction]:
        own_post_ids = {p.id for p in self._posts if p.author_id == user_id}
        events = [
            i for i in self._interactions
            if i.post_id in own_post_ids and i.user_id != user_id
        ]
        events.sort(key=lambda i: i.timestamp, reverse=True)
        return events[:limit]


_DEMO_WORDS = [
    "launch", "update", "thread", "markets", "python", "release", "weekend",
    "music", "travel", "coffee", "design", "research", "football", "election",
    "climate", "startup", "recipe", "photo", "podcast", "tutorial",
]
_DEMO_INTERACTIONS = [
    InteractionType.LIKE,
    InteractionType.REPOST,
    InteractionType.REPLY,
    InteractionType.QUOTE,
    InteractionType.VIEW,
]


class DemoDataSource(InMemoryDataSource):
    """
    Seeded synthetic dataset: users, a follow graph, posts spread over the last
    week and interactions. The same seed and `now` always give the same data.
    """

    def __init__(
        self,
        seed: int = 7,
        num_users: int = 50,
        posts_per_user: int = 6,
        follows_per_user: int = 10,
        interactions_per_user: int = 15,
        now: Optional[datetime] = None,
    ):
        rng = random.Random(seed)
        now = now or utc_now()

        users = [
            User(
                id=f"user_{n}",
                username=f"user{n}",
                display_name=f"User {n}",
                verified=rng.random() < 0.1,
                followers_count=int(rng.paretovariate(1.2) * 50),
                following_count=follows_per_user,
                posts_count=posts_per_user,
                created_at=now - timedelta(days=rng.randint(30, 2000)),
            )
            for n in range(num_users)
        ]
        user_ids = [u.id for u in users]

        follows = {
            uid: rng.sample([o for o in user_ids if o != uid], min(follows_per_user, num_users - 1))
            for uid in user_ids
        }

        posts = []
        for user in users:
            for k in range(posts_per_user):
                words = rng.sample(_DEMO_WORDS, rng.randint(3, 8))
                hashtags = [f"#{w}" for w in rng.sample(words, rng.randint(0, 2))]
                posts.append(
                    Post(
                        id=f"{user.id}_post_{k}",
                        author_id=user.id,
                        content=" ".join(words + hashtags),
                        created_at=now - timedelta(hours=rng.uniform(0, 168)),
                        like_count=rng.randint(0, 1000),
                        repost_count=rng.randint(0, 100),
                        reply_count=rng.randint(0, 50),
                        quote_count=rng.randint(0, 20),
                        media_urls=[f"https://example.com/{user.id}/{k}.jpg"] if rng.random() < 0.3 else [],
                        hashtags=hashtags,
                        mentions=[f"@{rng.choice(user_ids)}"] if rng.random() < 0.2 else [],
                        language="en",
                    )
                )

        interactions = []
        for user in users:
            for k in range(interactions_per_user):
                post = rng.choice(posts)
                interactions.append(
                    Interaction(
                        id=f"{user.id}_int_{k}",
                        user_id=user.id,
                        post_id=post.id,
                        type=rng.choice(_DEMO_INTERACTIONS),
                        timestamp=now - timedelta(hours=rng.uniform(0, 48)),
                        weight=round(rng.uniform(0.1, 1.0), 2),
                    )
                )

        super().__init__(users=users, posts=posts, follows=follows, interactions=interactions)
        self.seed = seed
