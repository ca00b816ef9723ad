"""
Feed Scheduler
==============

Selects the single feed most overdue for a refresh.
"""

from typing import Optional

from ..database.models import User
from ..storage.feed_repository import FeedRepository
from ..utils.logging import get_logger_for_component
from ..utils.exceptions import NoFeedsAvailableError


class FeedScheduler:
    """Least-recently-fetched feed selection."""

    def __init__(self, feed_repository: FeedRepository):
        self.feed_repository = feed_repository
        self.logger = get_logger_for_component("feed_scheduler")

    def next_feed_url(self, user: Optional[User] = None) -> str:
        """URL of the next feed to fetch.

        Feeds never fetched come first, then the oldest fetch; ties are broken
        by feed id. Repeated cycles therefore rotate through every feed.

        Args:
            user: Only consider feeds this user follows; None for all feeds

        Raises:
            NoFeedsAvailableError: If no feed is in scope
        """
        url = self.feed_repository.next_due_feed_url(user.id if user else None)
        if url is None:
            scope = f"user {user.name}" if user else "any user"
            raise NoFeedsAvailableError(f"No feeds to fetch for {scope}")

        self.logger.debug(f"Next feed to fetch: {url}")
        return url
