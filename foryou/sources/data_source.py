"""
Data Source abstraction.

Supplies posts, user context and author profiles to the pipeline. The core
only reads through this protocol; storage lives elsewhere. Implementations:
in-memory fixtures (tests), seeded demo generator (local runs), JSON file.
Swap via server config.

All methods are coroutines so origin fetches can run concurrently. Failures
raise DataSourceError with transient=True (worth retrying) or False.
"""

from typing import Dict, Iterable, List, Protocol

from ..models.post import Interaction, Post, User, UserContext


class DataSource(Protocol):
    """Protocol for read-only access to posts and users."""

    async def fetch_in_network(self, user_id: str, limit: int) -> List[Post]:
        """Recent posts from authors the user follows."""
        ...

    async def fetch_out_of_network(self, user_id: str, limit: int) -> List[Post]:
        """Exploration posts from authors the user does not follow."""
        ...

    async def fetch_trending(self, limit: int) -> List[Post]:
        """Globally popular posts."""
        ...

    async def fetch_user_context(self, user_id: str) -> UserContext:
        """Engagement rate, activity and interests of the requesting user."""
        ...

    async def fetch_authors(self, author_ids: Iterable[str]) -> Dict[str, User]:
        """Profiles for the given author ids; unknown ids are omitted."""
        ...

    async def fetch_engagement_events(self, user_id: str, limit: int) -> List[Interaction]:
        """Other users' interactions on this user's posts, newest first."""
        ...
