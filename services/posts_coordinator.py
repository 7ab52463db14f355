"""
Posts Coordinator Module

Orchestrates everything to do with posts: stale-while-revalidate feed
refresh, post creation with upload progress, and pin/delete mutations.
Results are broadcast to every subscribed observer.
"""

import asyncio
from typing import Callable, List, Optional, Sequence

from data.models import Post, PostFeed, partition_posts
from data.protocols import PostStorage
from services.events import EventEmitter, PostEvents
from services.protocols import ApiClientProtocol
from utils.exceptions import ApiError, ApiErrorKind
from utils.logger import get_logger

logger = get_logger(__name__)


class PostsCoordinator(EventEmitter):
    """
    Keeps the post feed in step between the local cache and the API.

    Emits:
        posts.received(PostFeed), posts.error(ApiError),
        posts.create_progress(float), posts.created(Post), posts.create_failed(ApiError),
        posts.pinned(post_id, pinned), posts.pin_failed(post_id, ApiError),
        posts.deleted(post_id), posts.delete_failed(post_id, ApiError)
    """

    def __init__(self, api: ApiClientProtocol, cache: PostStorage, auth=None):
        """
        Initialize the coordinator.

        Args:
            api: The API transport.
            cache: Persisted feed snapshot.
            auth: Optional AuthCoordinator, signed out when a call is rejected
                with INVALID_CREDENTIALS.
        """
        super().__init__("PostsCoordinator")
        self.api = api
        self.cache = cache
        self.auth = auth
        self._posts: List[Post] = []

    @property
    def feed(self) -> PostFeed:
        """The most recently reported feed, partitioned."""
        return partition_posts(self._posts)

    def _handle_error(self, error: ApiError) -> None:
        if error.kind == ApiErrorKind.INVALID_CREDENTIALS and self.auth is not None:
            self.auth.invalidate()

    def _notify_posts(self, posts: List[Post]) -> PostFeed:
        self._posts = list(posts)
        feed = partition_posts(self._posts)
        self.emit(PostEvents.RECEIVED, feed)
        return feed

    async def refresh_feed(self, excluding_cache: bool = False) -> Optional[PostFeed]:
        """
        Report the cached feed, then replace it with the server's.

        Unless excluding_cache is set, a non-empty cache is emitted before the
        first network suspension. On success the cache is replaced wholesale
        and the new feed emitted; on failure the error is emitted and the
        cache left as it was.

        Returns:
            Optional[PostFeed]: The server feed, or None if the refresh failed.
        """
        if not excluding_cache:
            cached = self.cache.load()
            if cached:
                self._notify_posts(cached)

        try:
            posts = await asyncio.to_thread(self.api.fetch_posts)
        except ApiError as e:
            logger.warning(f"Feed refresh failed: {e.kind.value}")
            self._handle_error(e)
            self.emit(PostEvents.ERROR, e)
            return None

        self.cache.save(posts)
        logger.info(f"Received {len(posts)} posts")
        return self._notify_posts(posts)

    async def create_post(self, title: str, content: str,
                          images: Sequence[bytes] = ()) -> Optional[Post]:
        """
        Upload a post and report the created post.

        Upload progress is emitted on posts.create_progress, always before the
        single terminal posts.created or posts.create_failed event.

        Returns:
            Optional[Post]: The created post as stored by the server, or None on failure.
        """
        loop = asyncio.get_running_loop()
        terminal = False

        def forward_progress(fraction: float) -> None:
            if not terminal:
                self.emit(PostEvents.CREATE_PROGRESS, fraction)

        def on_progress(fraction: float) -> None:
            # Called on the upload thread
            loop.call_soon_threadsafe(forward_progress, fraction)

        try:
            post_id = await asyncio.to_thread(self.api.create_post, title, content,
                                              list(images), on_progress)
            post = await asyncio.to_thread(self.api.fetch_post, post_id)
        except ApiError as e:
            terminal = True
            logger.error(f"Failed to create post '{title}': {e.kind.value}")
            self._handle_error(e)
            self.emit(PostEvents.CREATE_FAILED, e)
            return None

        terminal = True
        logger.info(f"Created post {post.id}")
        self.emit(PostEvents.CREATED, post)
        return post

    async def set_pinned(self, post_id: str, pinned: bool) -> bool:
        """
        Pin or unpin a post.

        On success the cached snapshot is updated in place and, if the post
        was cached, the updated feed is emitted after posts.pinned.
        """
        try:
            await asyncio.to_thread(self.api.set_pinned, post_id, pinned)
        except ApiError as e:
            logger.warning(f"Failed to set pinned={pinned} on {post_id}: {e.kind.value}")
            self._handle_error(e)
            self.emit(PostEvents.PIN_FAILED, post_id, e)
            return False

        logger.info(f"Post {post_id} pinned={pinned}")
        self.emit(PostEvents.PINNED, post_id, pinned)
        self._apply_to_cache(
            post_id,
            lambda posts: [post.with_pinned(pinned) if post.id == post_id else post for post in posts],
        )
        return True

    async def delete_post(self, post_id: str) -> bool:
        """
        Delete a post.

        On success the post is dropped from the cached snapshot and, if it was
        cached, the updated feed is emitted after posts.deleted.
        """
        try:
            await asyncio.to_thread(self.api.delete_post, post_id)
        except ApiError as e:
            logger.warning(f"Failed to delete {post_id}: {e.kind.value}")
            self._handle_error(e)
            self.emit(PostEvents.DELETE_FAILED, post_id, e)
            return False

        logger.info(f"Deleted post {post_id}")
        self.emit(PostEvents.DELETED, post_id)
        self._apply_to_cache(post_id, lambda posts: [post for post in posts if post.id != post_id])
        return True

    def _apply_to_cache(self, post_id: str, change: Callable[[List[Post]], List[Post]]) -> None:
        """Apply a local change to the snapshot, if the post is part of it."""
        posts = self.cache.load() or self._posts
        if not any(post.id == post_id for post in posts):
            return
        updated = change(posts)
        self.cache.save(updated)
        self._notify_posts(updated)
