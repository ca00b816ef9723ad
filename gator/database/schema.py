"""
Gator Database Schema
=====================

SQLite schema with foreign key constraints and indexes:
- users: registered CLI users
- feeds: RSS feed sources, each owned by a user
- feed_follows: which users follow which feeds
- posts: items ingested from feeds, unique by URL
"""

import sqlite3
import logging
from contextlib import closing
from pathlib import Path

logger = logging.getLogger(__name__)

EXPECTED_TABLES = {"users", "feeds", "feed_follows", "posts"}


class DatabaseSchema:
    """Database schema manager for the Gator SQLite database."""

    def __init__(self, db_path: str = "data/gator.db"):
        self.db_path = Path(db_path)
        self.db_path.parent.mkdir(parents=True, exist_ok=True)

    def create_tables(self) -> None:
        """Create all database tables. Safe to call on an existing database."""
        with closing(self.get_connection()) as conn:
            self._create_users_table(conn)
            self._create_feeds_table(conn)
            self._create_feed_follows_table(conn)
            self._create_posts_table(conn)

            self._create_indexes(conn)

            conn.commit()
            logger.debug("Database schema created successfully")

    def _create_users_table(self, conn: sqlite3.Connection) -> None:
        conn.execute(
            """
            CREATE TABLE IF NOT EXISTS users (
                id TEXT PRIMARY KEY,
                name TEXT UNIQUE NOT NULL,
                created_at TIMESTAMP NOT NULL,
                updated_at TIMESTAMP NOT NULL
            )
        """
        )

    def _create_feeds_table(self, conn: sqlite3.Connection) -> None:
        """Create feeds table. last_fetched_at stays NULL until the first successful cycle."""
        conn.execute(
            """
            CREATE TABLE IF NOT EXISTS feeds (
                id TEXT PRIMARY KEY,
                name TEXT NOT NULL,
                url TEXT UNIQUE NOT NULL,
                user_id TEXT NOT NULL,
                last_fetched_at TIMESTAMP,
                created_at TIMESTAMP NOT NULL,
                updated_at TIMESTAMP NOT NULL,
                FOREIGN KEY (user_id) REFERENCES users(id) ON DELETE CASCADE
            )
        """
        )

    def _create_feed_follows_table(self, conn: sqlite3.Connection) -> None:
        conn.execute(
            """
            CREATE TABLE IF NOT EXISTS feed_follows (
                id TEXT PRIMARY KEY,
                user_id TEXT NOT NULL,
                feed_id TEXT NOT NULL,
                created_at TIMESTAMP NOT NULL,
                updated_at TIMESTAMP NOT NULL,
                UNIQUE (user_id, feed_id),
                FOREIGN KEY (user_id) REFERENCES users(id) ON DELETE CASCADE,
                FOREIGN KEY (feed_id) REFERENCES feeds(id) ON DELETE CASCADE
            )
        """
        )

    def _create_posts_table(self, conn: sqlite3.Connection) -> None:
        """Create posts table. The unique url is the ingestion idempotency key."""
        conn.execute(
            """
            CREATE TABLE IF NOT EXISTS posts (
                id TEXT PRIMARY KEY,
                feed_id TEXT NOT NULL,
                title TEXT NOT NULL DEFAULT '',
                url TEXT UNIQUE NOT NULL,
                description TEXT NOT NULL DEFAULT '',
                published_at TIMESTAMP NOT NULL,
                created_at TIMESTAMP NOT NULL,
                updated_at TIMESTAMP NOT NULL,
                FOREIGN KEY (feed_id) REFERENCES feeds(id) ON DELETE CASCADE
            )
        """
        )

    def _create_indexes(self, conn: sqlite3.Connection) -> None:
        indexes = [
            "CREATE INDEX IF NOT EXISTS idx_feeds_last_fetched ON feeds(last_fetched_at)",
            "CREATE INDEX IF NOT EXISTS idx_feeds_user ON feeds(user_id)",
            "CREATE INDEX IF NOT EXISTS idx_feed_follows_feed ON feed_follows(feed_id)",
            "CREATE INDEX IF NOT EXISTS idx_posts_feed_published ON posts(feed_id, published_at)",
        ]

        for index_sql in indexes:
            conn.execute(index_sql)

    def drop_tables(self) -> None:
        """Drop all tables (for testing/reset purposes)."""
        with closing(self.get_connection()) as conn:
            for table in ("posts", "feed_follows", "feeds", "users"):
                conn.execute(f"DROP TABLE IF EXISTS {table}")

            conn.commit()
            logger.info("All database tables dropped")

    def get_connection(self) -> sqlite3.Connection:
        """Get database connection with foreign keys enabled."""
        conn = sqlite3.connect(self.db_path)
        conn.execute("PRAGMA foreign_keys = ON")
        conn.row_factory = sqlite3.Row
        return conn

    def verify_schema(self) -> bool:
        """Verify that every expected table exists."""
        try:
            with closing(self.get_connection()) as conn:
                cursor = conn.execute(
                    """
                    SELECT name FROM sqlite_master
                    WHERE type='table' AND name NOT LIKE 'sqlite_%'
                """
                )
                tables = {row[0] for row in cursor.fetchall()}

                missing = EXPECTED_TABLES - tables
                if missing:
                    logger.error(f"Missing tables: {sorted(missing)}")
                    return False

                conn.execute("PRAGMA foreign_key_check")
                return True

        except sqlite3.Error as e:
            logger.error(f"Schema verification failed: {e}")
            return False
