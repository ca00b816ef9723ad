"""
Ingestion Pipeline
==================

One ingestion cycle: pick the most overdue feed, fetch it, persist every item
as a post and record the fetch time.

A fetch failure aborts the cycle before anything is written, so the feed keeps
its old ``last_fetched_at`` and stays first in line for the next cycle.
Per-item problems never abort the cycle: an unparseable date falls back to the
current time, an existing URL counts as already ingested and any other
persistence error is logged and the item skipped.
"""

from dataclasses import dataclass, field
from datetime import datetime
from typing import Callable, List, Optional

from ..database.models import InsertOutcome, User, utc_now
from ..storage.feed_repository import FeedRepository
from ..storage.post_repository import PostRepository
from ..scheduler.feed_scheduler import FeedScheduler
from ..utils.logging import get_logger_for_component, PerformanceLogger
from ..utils.exceptions import DatabaseError, UnknownFeedError, UnparseableDateError

from .date_normalizer import DateNormalizer
from .feed_fetcher import FeedFetcher, FeedItem


@dataclass
class CycleReport:
    """Outcome of one ingestion cycle."""

    feed_name: str
    feed_url: str
    fetched_at: datetime
    items_seen: int = 0
    items_inserted: int = 0
    items_duplicate: int = 0
    items_failed: int = 0
    items_skipped: int = 0
    item_titles: List[str] = field(default_factory=list)


class IngestionPipeline:
    """Scheduler, fetcher and store wired into a single cycle."""

    def __init__(
        self,
        feed_repository: FeedRepository,
        post_repository: PostRepository,
        fetcher: FeedFetcher,
        scheduler: Optional[FeedScheduler] = None,
        date_normalizer: Optional[DateNormalizer] = None,
        fetch_timeout: Optional[float] = None,
        clock: Callable[[], datetime] = utc_now,
    ):
        """Initialize the pipeline.

        Args:
            feed_repository: Feed lookups and fetch-time updates
            post_repository: Post persistence
            fetcher: Anything with an async ``fetch(url, timeout=...)``
            scheduler: Feed selection, defaults to one over feed_repository
            date_normalizer: Publication date parsing
            fetch_timeout: Deadline per fetch, None for the fetcher default
            clock: Source of "now", injectable for tests
        """
        self.feed_repository = feed_repository
        self.post_repository = post_repository
        self.fetcher = fetcher
        self.scheduler = scheduler or FeedScheduler(feed_repository)
        self.date_normalizer = date_normalizer or DateNormalizer()
        self.fetch_timeout = fetch_timeout
        self.clock = clock
        self.logger = get_logger_for_component("pipeline")

    async def run_one_cycle(self, user: Optional[User] = None) -> CycleReport:
        """Run one ingestion cycle.

        Args:
            user: Restrict scheduling to feeds this user follows; None for all

        Returns:
            CycleReport for the processed feed

        Raises:
            NoFeedsAvailableError: Nothing to fetch
            NetworkError, HTTPError, ParseError: Fetch failed; nothing was written
            UnknownFeedError: The scheduled URL matches no registered feed
            DatabaseError: Marking the feed fetched failed
        """
        url = self.scheduler.next_feed_url(user)

        with PerformanceLogger(self.logger, "ingestion cycle", feed_url=url):
            document = await self.fetcher.fetch(url, timeout=self.fetch_timeout)

            feed = self.feed_repository.get_feed_by_url(url)
            if feed is None:
                raise UnknownFeedError(url)

            report = CycleReport(feed_name=feed.name, feed_url=url, fetched_at=self.clock())

            for item in document.items:
                report.items_seen += 1
                report.item_titles.append(item.title)
                self._ingest_item(feed.id, item, report)

            fetched_at = self.clock()
            self.feed_repository.mark_fetched(feed.id, fetched_at)
            report.fetched_at = fetched_at

        self.logger.info(
            f"Feed {feed.name}: {report.items_seen} items, "
            f"{report.items_inserted} new, {report.items_duplicate} already stored",
            extra={"feed_url": url},
        )
        return report

    def _ingest_item(self, feed_id: str, item: FeedItem, report: CycleReport) -> None:
        if not item.link:
            self.logger.warning(f"Skipping item without link: {item.title!r}")
            report.items_skipped += 1
            return

        try:
            published_at = self.date_normalizer.parse(item.pub_date)
        except UnparseableDateError:
            self.logger.warning(
                f"Could not parse date {item.pub_date!r} for {item.link}, using current time"
            )
            published_at = self.clock()

        try:
            outcome = self.post_repository.insert_post(
                feed_id=feed_id,
                title=item.title,
                url=item.link,
                description=item.description,
                published_at=published_at,
            )
        except DatabaseError as e:
            self.logger.error(f"Failed to store post {item.link}: {e}")
            report.items_failed += 1
            return

        if outcome is InsertOutcome.CREATED:
            report.items_inserted += 1
        else:
            report.items_duplicate += 1
