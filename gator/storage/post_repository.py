"""
Post Repository
===============

Persistence for ingested posts. Inserting a post whose URL is already stored
is reported as ``InsertOutcome.DUPLICATE_URL`` rather than an error, which
makes repeated ingestion of the same feed idempotent.
"""

import sqlite3
from datetime import datetime
from typing import List, Optional

from ..database.connection import DatabaseConnection
from ..database.models import (
    InsertOutcome,
    Post,
    PostWithFeed,
    to_db_timestamp,
)
from ..utils.logging import get_logger_for_component
from ..utils.exceptions import DatabaseError, ErrorCode


class PostRepository:
    """Repository for posts created by the ingestion pipeline."""

    def __init__(self, db_connection: DatabaseConnection):
        """Initialize post repository.

        Args:
            db_connection: Database connection manager
        """
        self.db = db_connection
        self.logger = get_logger_for_component("post_repository")

    def insert_post(
        self,
        feed_id: str,
        title: str,
        url: str,
        description: str,
        published_at: datetime,
    ) -> InsertOutcome:
        """Insert a post unless one with the same URL exists.

        Args:
            feed_id: Feed the post came from
            title: Post title
            url: Post URL, the uniqueness key
            description: Post description
            published_at: Normalized publication time

        Returns:
            CREATED, or DUPLICATE_URL when the URL is already stored

        Raises:
            DatabaseError: For any other persistence failure
        """
        post = Post(
            feed_id=feed_id,
            title=title,
            url=url,
            description=description,
            published_at=published_at,
        )
        try:
            inserted = self.db.execute_update(
                """
                INSERT INTO posts (
                    id, feed_id, title, url, description, published_at,
                    created_at, updated_at
                ) VALUES (?, ?, ?, ?, ?, ?, ?, ?)
                ON CONFLICT(url) DO NOTHING
            """,
                (
                    post.id,
                    post.feed_id,
                    post.title,
                    post.url,
                    post.description,
                    to_db_timestamp(post.published_at),
                    to_db_timestamp(post.created_at),
                    to_db_timestamp(post.updated_at),
                ),
            )
        except sqlite3.Error as e:
            raise DatabaseError(
                f"Failed to create post {url}: {e}",
                error_code=ErrorCode.DATABASE_ERROR,
            ) from e

        if inserted == 0:
            return InsertOutcome.DUPLICATE_URL

        self.logger.debug(f"Created post: {post.url}")
        return InsertOutcome.CREATED

    def get_post_by_url(self, url: str) -> Optional[Post]:
        try:
            row = self.db.execute_one("SELECT * FROM posts WHERE url = ?", (url,))
        except sqlite3.Error as e:
            raise DatabaseError(
                f"Failed to get post: {e}", error_code=ErrorCode.DATABASE_ERROR
            ) from e
        return Post.from_db_row(row) if row else None

    def get_posts_for_user(self, user_id: str, limit: int = 2) -> List[PostWithFeed]:
        """Newest posts from the feeds a user follows.

        Args:
            user_id: Reader
            limit: Maximum number of posts

        Returns:
            Posts ordered by publication time, newest first
        """
        try:
            rows = self.db.execute_query(
                """
                SELECT p.*, f.name AS feed_name
                FROM posts p
                JOIN feeds f ON f.id = p.feed_id
                JOIN feed_follows ff ON ff.feed_id = p.feed_id
                WHERE ff.user_id = ?
                ORDER BY p.published_at DESC, p.created_at DESC
                LIMIT ?
            """,
                (user_id, limit),
            )
        except sqlite3.Error as e:
            raise DatabaseError(
                f"Failed to get posts for user: {e}",
                error_code=ErrorCode.DATABASE_ERROR,
            ) from e
        return [PostWithFeed(**dict(row)) for row in rows]

    def count_posts(self, feed_id: Optional[str] = None) -> int:
        """Number of stored posts, optionally for one feed."""
        if feed_id is None:
            query, params = "SELECT COUNT(*) AS n FROM posts", ()
        else:
            query, params = "SELECT COUNT(*) AS n FROM posts WHERE feed_id = ?", (feed_id,)
        try:
            row = self.db.execute_one(query, params)
        except sqlite3.Error as e:
            raise DatabaseError(
                f"Failed to count posts: {e}", error_code=ErrorCode.DATABASE_ERROR
            ) from e
        return row["n"]
