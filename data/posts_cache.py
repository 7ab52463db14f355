"""
Posts Cache Module

Keeps the last feed received from the API so it can be shown instantly on the
next launch, before the network confirms it.
"""

import json
from typing import Iterable, List, Optional

from config import settings
from data.models import Post
from data.protocols import KeyValueStorage
from utils.exceptions import ApiError
from utils.logger import get_logger

logger = get_logger(__name__)


class PostsCache:
    """Durable snapshot of the post feed. Every save replaces the whole snapshot."""

    def __init__(self, storage: KeyValueStorage, key: Optional[str] = None):
        self.storage = storage
        self.key = key or settings.POSTS_KEY

    def load(self) -> List[Post]:
        """
        Read the cached posts in the order they were saved.

        Returns:
            List[Post]: Cached posts, empty if nothing is cached or the snapshot is unreadable.
        """
        raw = self.storage.get(self.key)
        if raw is None:
            return []

        try:
            posts = [Post.from_dict(item) for item in json.loads(raw)]
        except (ValueError, TypeError, ApiError) as e:
            logger.warning(f"Discarding unreadable posts cache: {e}")
            return []

        logger.debug(f"Loaded {len(posts)} posts from cache")
        return posts

    def save(self, posts: Iterable[Post]) -> None:
        """Replace the cached feed with the given posts."""
        posts = list(posts)
        self.storage.set(self.key, json.dumps([post.to_dict() for post in posts]))
        logger.debug(f"Cached {len(posts)} posts")

    def clear(self) -> None:
        self.storage.delete(self.key)
