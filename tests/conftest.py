"""
PyTest Configuration and Fixtures
=================================

Shared fixtures and configuration for Gator tests.
"""

import pytest
import os
import sys
from datetime import datetime, timezone
from pathlib import Path

# Add project root to Python path
sys.path.insert(0, str(Path(__file__).parent.parent))

# Set test environment variables before any imports
os.environ["GATOR_LOGGING__FILE_PATH"] = ""
os.environ["GATOR_LOGGING__CONSOLE_LOGGING"] = "false"

T0 = datetime(2024, 9, 5, 12, 0, 0, tzinfo=timezone.utc)


# ============================================================================
# Database Fixtures
# ============================================================================


@pytest.fixture
def temp_db(tmp_path):
    """Fresh database file with the schema created."""
    from gator.database.schema import DatabaseSchema

    db_path = tmp_path / "gator_test.db"
    DatabaseSchema(str(db_path)).create_tables()
    yield str(db_path)


@pytest.fixture
def db_connection(temp_db):
    from gator.database.connection import DatabaseConnection

    conn = DatabaseConnection(temp_db, pool_size=2)
    yield conn
    conn.close_all_connections()


@pytest.fixture
def user_repo(db_connection):
    from gator.storage.user_repository import UserRepository

    return UserRepository(db_connection)


@pytest.fixture
def feed_repo(db_connection):
    from gator.storage.feed_repository import FeedRepository

    return FeedRepository(db_connection)


@pytest.fixture
def follow_repo(db_connection):
    from gator.storage.follow_repository import FollowRepository

    return FollowRepository(db_connection)


@pytest.fixture
def post_repo(db_connection):
    from gator.storage.post_repository import PostRepository

    return PostRepository(db_connection)


# ============================================================================
# Data Fixtures
# ============================================================================


@pytest.fixture
def sample_user(user_repo):
    return user_repo.create_user("alice")


@pytest.fixture
def sample_feeds(feed_repo, follow_repo, sample_user):
    """Two feeds owned and followed by the sample user."""
    feeds = [
        feed_repo.create_feed("Alpha", "https://alpha.example.com/rss", sample_user.id),
        feed_repo.create_feed("Beta", "https://beta.example.com/rss", sample_user.id),
    ]
    for feed in feeds:
        follow_repo.create_follow(sample_user.id, feed.id)
    return feeds


# ============================================================================
# Configuration Fixtures
# ============================================================================


@pytest.fixture
def test_settings(tmp_path):
    """Settings pointing the database and user config into tmp_path."""
    from gator.config.settings import load_settings

    return load_settings(
        database={"path": str(tmp_path / "data" / "gator.db"), "pool_size": 2},
        user_config_path=str(tmp_path / "gatorconfig.json"),
    )


@pytest.fixture
def cli_env(tmp_path):
    """Environment for CliRunner invocations."""
    return {
        "GATOR_DATABASE__PATH": str(tmp_path / "cli" / "gator.db"),
        "GATOR_USER_CONFIG_PATH": str(tmp_path / "cli" / "gatorconfig.json"),
        "GATOR_LOGGING__FILE_PATH": "",
        "GATOR_LOGGING__CONSOLE_LOGGING": "false",
    }


# ============================================================================
# Feed Content
# ============================================================================


def build_rss(items, title="Test RSS Feed"):
    """Build an RSS 2.0 document from (title, link, pub_date) tuples."""
    entries = "".join(
        f"""
        <item>
            <title>{item_title}</title>
            <link>{link}</link>
            <description>Description of {item_title}</description>
            <pubDate>{pub_date}</pubDate>
        </item>"""
        for item_title, link, pub_date in items
    )
    return f"""<?xml version="1.0" encoding="UTF-8"?>
<rss version="2.0">
    <channel>
        <title>{title}</title>
        <link>http://example.com</link>
        <description>Test feed for unit testing</description>{entries}
    </channel>
</rss>"""


@pytest.fixture
def rss_builder():
    return build_rss


@pytest.fixture
def t0():
    return T0
