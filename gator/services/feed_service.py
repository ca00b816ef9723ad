"""
Feed Service
============

Feed registration, follows and browsing. Conflicts are detected with typed
lookups before writing, never by inspecting database error text.
"""

from dataclasses import dataclass
from typing import List, Optional

from ..database.models import Feed, FeedFollowView, FeedWithOwner, PostWithFeed, User
from ..storage.feed_repository import FeedRepository
from ..storage.follow_repository import FollowRepository
from ..storage.post_repository import PostRepository
from ..utils.logging import get_logger_for_component
from ..utils.validators import URLValidator, validate_name
from ..utils.exceptions import (
    AlreadyExistsError,
    ErrorCode,
    NotFoundError,
    UnknownFeedError,
    ValidationError,
)


@dataclass
class AddFeedResult:
    """A newly created feed and the owner's follow of it."""
    feed: Feed
    follow: FeedFollowView


class FeedService:
    """Service for feeds, follows and browsing posts."""

    def __init__(
        self,
        feed_repository: FeedRepository,
        follow_repository: FollowRepository,
        post_repository: PostRepository,
        browse_limit: int = 2,
    ):
        self.feeds = feed_repository
        self.follows = follow_repository
        self.posts = post_repository
        self.browse_limit = browse_limit
        self.logger = get_logger_for_component("feed_service")

    def add_feed(self, user: User, name: str, url: str) -> AddFeedResult:
        """Register a feed owned by ``user`` and follow it.

        Both rows are written in one transaction; a failed follow leaves no feed.

        Raises:
            ValidationError: Blank name or invalid URL
            AlreadyExistsError: URL already registered, or the user already
                has a feed with this name
        """
        name = validate_name(name, "feed name")
        url = URLValidator.validate_feed_url(url)

        if self.feeds.get_feed_by_url(url) is not None:
            raise AlreadyExistsError(
                f"A feed with URL {url} already exists", resource="feed",
                user_message=f"A feed with URL {url} already exists. Use 'follow' instead.",
            )
        if self.feeds.get_feed_by_name_for_user(user.id, name) is not None:
            raise AlreadyExistsError(
                f"You already have a feed named {name}", resource="feed"
            )

        with self.feeds.db.transaction() as conn:
            feed = self.feeds.create_feed(name=name, url=url, user_id=user.id, conn=conn)
            follow = self.follows.create_follow(user.id, feed.id, conn=conn)
        self.logger.info(f"{user.name} added feed {feed.name}")
        return AddFeedResult(feed=feed, follow=follow)

    def list_feeds(self) -> List[FeedWithOwner]:
        return self.feeds.list_feeds_with_owner()

    def follow(self, user: User, url: str) -> FeedFollowView:
        """Follow an existing feed by URL.

        Raises:
            UnknownFeedError: No feed has this URL
            AlreadyExistsError: The user already follows it
        """
        feed = self._feed_for_url(url)
        if self.follows.get_follow(user.id, feed.id) is not None:
            raise AlreadyExistsError(
                f"{user.name} already follows {feed.name}", resource="feed_follow"
            )
        return self.follows.create_follow(user.id, feed.id)

    def following(self, user: User) -> List[FeedFollowView]:
        return self.follows.list_follows_for_user(user.id)

    def unfollow(self, user: User, url: str) -> Feed:
        """Stop following a feed.

        Raises:
            UnknownFeedError: No feed has this URL
            NotFoundError: The user does not follow it
        """
        feed = self._feed_for_url(url)
        if not self.follows.delete_follow(user.id, feed.id):
            raise NotFoundError(
                f"{user.name} does not follow {feed.name}", resource="feed_follow"
            )
        return feed

    def browse(self, user: User, limit: Optional[int] = None) -> List[PostWithFeed]:
        """Newest posts from followed feeds.

        Args:
            user: Reader
            limit: Number of posts, defaults to the configured browse limit
        """
        limit = self.browse_limit if limit is None else limit
        if limit < 1:
            raise ValidationError(
                f"limit must be at least 1, got {limit}",
                field_name="limit",
                error_code=ErrorCode.VALIDATION_OUT_OF_RANGE,
            )
        return self.posts.get_posts_for_user(user.id, limit)

    def _feed_for_url(self, url: str) -> Feed:
        url = URLValidator.validate_feed_url(url)
        feed = self.feeds.get_feed_by_url(url)
        if feed is None:
            raise UnknownFeedError(url)
        return feed
