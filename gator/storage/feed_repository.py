"""
Feed Repository
===============

Repository pattern implementation for RSS feed data management, including
the queries the poll scheduler uses to pick the most overdue feed.
"""

import sqlite3
from datetime import datetime
from typing import List, Optional

from ..database.connection import DatabaseConnection
from ..database.models import Feed, FeedWithOwner, to_db_timestamp
from ..utils.logging import get_logger_for_component
from ..utils.exceptions import DatabaseError, ErrorCode

# Never-fetched feeds first, then oldest fetch, ties broken by id.
_DUE_ORDER = "ORDER BY f.last_fetched_at IS NOT NULL, f.last_fetched_at, f.id LIMIT 1"


class FeedRepository:
    """Repository for managing RSS feed data in the database."""

    def __init__(self, db_connection: DatabaseConnection):
        """Initialize feed repository.

        Args:
            db_connection: Database connection manager
        """
        self.db = db_connection
        self.logger = get_logger_for_component("feed_repository")

    def create_feed(
        self,
        name: str,
        url: str,
        user_id: str,
        conn: Optional[sqlite3.Connection] = None,
    ) -> Feed:
        """Create a new feed owned by a user.

        Args:
            name: Display name
            url: Feed URL (unique across all users)
            user_id: Owning user
            conn: Open transaction to insert on; the caller commits it

        Returns:
            The created Feed

        Raises:
            DatabaseError: If database operation fails
        """
        feed = Feed(name=name, url=url, user_id=user_id)
        try:
            if conn is not None:
                self._insert_feed(conn, feed)
            else:
                with self.db.get_connection() as own_conn:
                    self._insert_feed(own_conn, feed)
                    own_conn.commit()

        except sqlite3.IntegrityError as e:
            raise DatabaseError(
                f"Failed to create feed {url}: {e}",
                error_code=ErrorCode.DATABASE_CONSTRAINT,
            ) from e
        except sqlite3.Error as e:
            self.logger.error(f"Failed to create feed: {e}")
            raise DatabaseError(
                f"Failed to create feed: {e}", error_code=ErrorCode.DATABASE_ERROR
            ) from e

        self.logger.info(f"Created feed {feed.name}: {feed.url}")
        return feed

    @staticmethod
    def _insert_feed(conn: sqlite3.Connection, feed: Feed) -> None:
        conn.execute(
            """
            INSERT INTO feeds (
                id, name, url, user_id, last_fetched_at, created_at, updated_at
            ) VALUES (?, ?, ?, ?, NULL, ?, ?)
        """,
            (
                feed.id,
                feed.name,
                feed.url,
                feed.user_id,
                to_db_timestamp(feed.created_at),
                to_db_timestamp(feed.updated_at),
            ),
        )

    def get_feed_by_id(self, feed_id: str) -> Optional[Feed]:
        return self._fetch_one("SELECT * FROM feeds WHERE id = ?", (feed_id,))

    def get_feed_by_url(self, url: str) -> Optional[Feed]:
        """Get feed by URL.

        Returns:
            Feed object if found, None otherwise
        """
        return self._fetch_one("SELECT * FROM feeds WHERE url = ?", (url,))

    def get_feed_by_name_for_user(self, user_id: str, name: str) -> Optional[Feed]:
        return self._fetch_one(
            "SELECT * FROM feeds WHERE user_id = ? AND name = ?", (user_id, name)
        )

    def list_feeds_with_owner(self) -> List[FeedWithOwner]:
        """All feeds with the name of the user who added them."""
        try:
            rows = self.db.execute_query(
                """
                SELECT f.*, u.name AS user_name
                FROM feeds f JOIN users u ON u.id = f.user_id
                ORDER BY f.created_at, f.name
            """
            )
        except sqlite3.Error as e:
            raise DatabaseError(
                f"Failed to list feeds: {e}", error_code=ErrorCode.DATABASE_ERROR
            ) from e
        return [FeedWithOwner(**dict(row)) for row in rows]

    def next_due_feed_url(self, user_id: Optional[str] = None) -> Optional[str]:
        """URL of the feed most overdue for a fetch.

        Args:
            user_id: Restrict to feeds this user follows; None means all feeds

        Returns:
            Feed URL, or None when no feed is in scope
        """
        if user_id is None:
            query = f"SELECT f.url FROM feeds f {_DUE_ORDER}"
            params: tuple = ()
        else:
            query = f"""
                SELECT f.url FROM feeds f
                JOIN feed_follows ff ON ff.feed_id = f.id
                WHERE ff.user_id = ?
                {_DUE_ORDER}
            """
            params = (user_id,)

        try:
            row = self.db.execute_one(query, params)
        except sqlite3.Error as e:
            raise DatabaseError(
                f"Failed to select next feed: {e}",
                query=query,
                error_code=ErrorCode.DATABASE_ERROR,
            ) from e
        return row["url"] if row else None

    def mark_fetched(self, feed_id: str, fetched_at: datetime) -> bool:
        """Record a completed fetch cycle.

        Args:
            feed_id: Feed ID
            fetched_at: Fetch time, stored as both last_fetched_at and updated_at

        Returns:
            True if the feed exists and was updated
        """
        timestamp = to_db_timestamp(fetched_at)
        try:
            updated = self.db.execute_update(
                "UPDATE feeds SET last_fetched_at = ?, updated_at = ? WHERE id = ?",
                (timestamp, timestamp, feed_id),
            )
        except sqlite3.Error as e:
            self.logger.error(f"Failed to mark feed {feed_id} fetched: {e}")
            raise DatabaseError(
                f"Failed to mark feed fetched: {e}",
                error_code=ErrorCode.DATABASE_ERROR,
            ) from e

        return updated > 0

    def _fetch_one(self, query: str, params: tuple) -> Optional[Feed]:
        try:
            row = self.db.execute_one(query, params)
        except sqlite3.Error as e:
            raise DatabaseError(
                f"Failed to load feed: {e}",
                query=query,
                error_code=ErrorCode.DATABASE_ERROR,
            ) from e
        return Feed.from_db_row(row) if row else None
