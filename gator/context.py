"""
Application context passed to every command.

Holds the settings, the open database and the user config, and builds the
repositories and services on top of them. ``open_app_context`` owns the
database lifetime.
"""

from contextlib import contextmanager
from dataclasses import dataclass, field
from typing import Iterator, Optional

from .config.settings import GatorSettings
from .config.user_config import UserConfig
from .database.connection import DatabaseConnection
from .database.models import User
from .database.schema import DatabaseSchema
from .processing.feed_fetcher import FeedFetcher
from .processing.pipeline import IngestionPipeline
from .scheduler.feed_scheduler import FeedScheduler
from .scheduler.poll_loop import PollLoop
from .services.feed_service import FeedService
from .services.user_service import UserService
from .storage import FeedRepository, FollowRepository, PostRepository, UserRepository


@dataclass
class AppContext:
    settings: GatorSettings
    db: DatabaseConnection
    user_config: UserConfig
    users: UserRepository = field(init=False)
    feeds: FeedRepository = field(init=False)
    follows: FollowRepository = field(init=False)
    posts: PostRepository = field(init=False)

    def __post_init__(self):
        self.users = UserRepository(self.db)
        self.feeds = FeedRepository(self.db)
        self.follows = FollowRepository(self.db)
        self.posts = PostRepository(self.db)

    def user_service(self) -> UserService:
        return UserService(self.users, self.user_config)

    def feed_service(self) -> FeedService:
        return FeedService(
            self.feeds,
            self.follows,
            self.posts,
            browse_limit=self.settings.polling.browse_limit,
        )

    def current_user(self) -> User:
        """The logged-in user; raises if nobody is logged in."""
        return self.user_service().current_user()

    def current_user_or_none(self) -> Optional[User]:
        return self.user_service().current_user_or_none()

    def pipeline(self, fetcher: Optional[FeedFetcher] = None) -> IngestionPipeline:
        return IngestionPipeline(
            feed_repository=self.feeds,
            post_repository=self.posts,
            fetcher=fetcher or FeedFetcher(self.settings.polling),
            scheduler=FeedScheduler(self.feeds),
            fetch_timeout=self.settings.polling.request_timeout,
        )

    def poll_loop(self, fetcher: Optional[FeedFetcher] = None, **callbacks) -> PollLoop:
        return PollLoop(self.pipeline(fetcher), **callbacks)


@contextmanager
def open_app_context(settings: GatorSettings) -> Iterator[AppContext]:
    """Create the schema, open the database and load the user config."""
    DatabaseSchema(settings.database.path).create_tables()
    db = DatabaseConnection(settings.database.path, pool_size=settings.database.pool_size)
    try:
        user_config = UserConfig.read(settings.resolved_user_config_path())
        yield AppContext(settings=settings, db=db, user_config=user_config)
    finally:
        db.close_all_connections()
