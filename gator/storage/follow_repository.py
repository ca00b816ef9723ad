"""
Follow Repository
=================

Database access for the user-follows-feed relation.
"""

import sqlite3
from typing import List, Optional

from ..database.connection import DatabaseConnection
from ..database.models import FeedFollow, FeedFollowView, to_db_timestamp
from ..utils.logging import get_logger_for_component
from ..utils.exceptions import DatabaseError, ErrorCode

_VIEW_QUERY = """
    SELECT ff.id, u.name AS user_name, f.name AS feed_name, f.url AS feed_url
    FROM feed_follows ff
    JOIN users u ON u.id = ff.user_id
    JOIN feeds f ON f.id = ff.feed_id
"""


class FollowRepository:
    """Repository for feed follows."""

    def __init__(self, db_connection: DatabaseConnection):
        self.db = db_connection
        self.logger = get_logger_for_component("follow_repository")

    def create_follow(
        self, user_id: str, feed_id: str, conn: Optional[sqlite3.Connection] = None
    ) -> FeedFollowView:
        """Make a user follow a feed.

        When conn is given the insert joins that open transaction and is not
        committed here.

        Returns:
            The follow joined with user and feed names

        Raises:
            DatabaseError: If the insert fails, including an existing follow
        """
        follow = FeedFollow(user_id=user_id, feed_id=feed_id)
        insert = """
            INSERT INTO feed_follows (id, user_id, feed_id, created_at, updated_at)
            VALUES (?, ?, ?, ?, ?)
        """
        params = (
            follow.id,
            follow.user_id,
            follow.feed_id,
            to_db_timestamp(follow.created_at),
            to_db_timestamp(follow.updated_at),
        )
        view_query = f"{_VIEW_QUERY} WHERE ff.id = ?"
        try:
            if conn is not None:
                conn.execute(insert, params)
                row = conn.execute(view_query, (follow.id,)).fetchone()
            else:
                self.db.execute_update(insert, params)
                row = self.db.execute_one(view_query, (follow.id,))
        except sqlite3.IntegrityError as e:
            raise DatabaseError(
                f"Failed to create follow: {e}",
                error_code=ErrorCode.DATABASE_CONSTRAINT,
            ) from e
        except sqlite3.Error as e:
            self.logger.error(f"Failed to create follow: {e}")
            raise DatabaseError(
                f"Failed to create follow: {e}", error_code=ErrorCode.DATABASE_ERROR
            ) from e

        return FeedFollowView.from_db_row(row)

    def get_follow(self, user_id: str, feed_id: str) -> Optional[FeedFollow]:
        try:
            row = self.db.execute_one(
                "SELECT * FROM feed_follows WHERE user_id = ? AND feed_id = ?",
                (user_id, feed_id),
            )
        except sqlite3.Error as e:
            raise DatabaseError(
                f"Failed to get follow: {e}", error_code=ErrorCode.DATABASE_ERROR
            ) from e
        return FeedFollow.from_db_row(row) if row else None

    def list_follows_for_user(self, user_id: str) -> List[FeedFollowView]:
        """Follows of a user, oldest first."""
        try:
            rows = self.db.execute_query(
                f"{_VIEW_QUERY} WHERE ff.user_id = ? ORDER BY ff.created_at, f.name",
                (user_id,),
            )
        except sqlite3.Error as e:
            raise DatabaseError(
                f"Failed to list follows: {e}", error_code=ErrorCode.DATABASE_ERROR
            ) from e
        return [FeedFollowView.from_db_row(row) for row in rows]

    def delete_follow(self, user_id: str, feed_id: str) -> bool:
        """Remove a follow. Returns False if the user did not follow the feed."""
        try:
            deleted = self.db.execute_update(
                "DELETE FROM feed_follows WHERE user_id = ? AND feed_id = ?",
                (user_id, feed_id),
            )
        except sqlite3.Error as e:
            self.logger.error(f"Failed to delete follow: {e}")
            raise DatabaseError(
                f"Failed to delete follow: {e}", error_code=ErrorCode.DATABASE_ERROR
            ) from e
        return deleted > 0
