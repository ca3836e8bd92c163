"""
JSON file data source.

Used when DATA_SOURCE=json; the path comes from DATA_JSON_PATH. Expected layout:

    {
      "users": [{"id": "alice", "followers_count": 10, ...}],
      "posts": [{"id": "p1", "author_id": "alice", "content": "...", ...}],
      "follows": {"bob": ["alice"]},
      "interactions": [{"id": "i1", "user_id": "bob", "post_id": "p1", "type": "like"}],
      "trending": ["p1"],
      "contexts": {"bob": {"engagement_rate": 0.2, "activity_score": 0.5}}
    }

Every section is optional.
"""

import json
from pathlib import Path
from typing import Union

from pydantic import ValidationError

from ..errors import DataSourceError
from ..models.post import User, UserContext, ensure_interactions, ensure_posts
from .memory import InMemoryDataSource


class JsonDataSource(InMemoryDataSource):
    """Data source loaded once from a JSON file."""

    def __init__(self, path: Union[Path, str]):
        self._path = Path(path)
        if not self._path.exists():
            raise FileNotFoundError(f"Data JSON not found: {self._path}")
        with open(self._path) as f:
            data = json.load(f)
        if not isinstance(data, dict):
            raise DataSourceError(f"Data JSON {self._path} must be an object", transient=False)
        try:
            users = [User.model_validate(u) for u in data.get("users", [])]
            posts = ensure_posts(data.get("posts", []))
            interactions = ensure_interactions(data.get("interactions", []))
            contexts = {
                uid: UserContext.model_validate({"user_id": uid, **ctx})
                for uid, ctx in (data.get("contexts") or {}).items()
            }
        except ValidationError as e:
            raise DataSourceError(f"Malformed data in {self._path}: {e}", transient=False) from e
        super().__init__(
            users=users,
            posts=posts,
            follows=data.get("follows") or {},
            interactions=interactions,
            trending_ids=data.get("trending"),
            contexts=contexts,
        )

    @property
    def path(self) -> Path:
        return self._path
