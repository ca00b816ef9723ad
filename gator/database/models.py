"""
Gator Data Models
=================

Pydantic models mirroring the database tables. Timestamps are stored as
fixed-width ISO-8601 UTC text so that string order matches time order.
"""

from datetime import datetime, timezone
from enum import Enum
from typing import Optional, Dict, Any
from pydantic import BaseModel, Field, field_validator
import uuid


def utc_now() -> datetime:
    """Current time as an aware UTC datetime."""
    return datetime.now(timezone.utc)


def to_db_timestamp(value: datetime) -> str:
    """Serialize a datetime for storage. Naive values are taken as UTC."""
    if value.tzinfo is None:
        value = value.replace(tzinfo=timezone.utc)
    return value.astimezone(timezone.utc).isoformat(timespec="microseconds")


def _new_id() -> str:
    return str(uuid.uuid4())


class InsertOutcome(str, Enum):
    """Result of inserting a post."""
    CREATED = "created"
    DUPLICATE_URL = "duplicate_url"


class _Row(BaseModel):
    """Shared id and timestamp columns."""
    id: str = Field(default_factory=_new_id, description="UUID primary key")
    created_at: datetime = Field(default_factory=utc_now)
    updated_at: datetime = Field(default_factory=utc_now)

    @classmethod
    def from_db_row(cls, row: Any):
        """Build a model from a sqlite3.Row or mapping."""
        return cls(**dict(row))


class User(_Row):
    """Registered CLI user."""
    name: str = Field(..., min_length=1, max_length=255)

    @field_validator('name')
    @classmethod
    def validate_name(cls, v):
        v = v.strip()
        if not v:
            raise ValueError("User name cannot be empty")
        return v

    def __str__(self) -> str:
        return f"User({self.name})"


class Feed(_Row):
    """RSS feed source owned by a user."""
    name: str = Field(..., min_length=1, max_length=255)
    url: str = Field(..., min_length=1, description="Feed URL, unique across the system")
    user_id: str = Field(..., description="Owning user id")
    last_fetched_at: Optional[datetime] = Field(default=None, description="Last completed fetch cycle")

    def __str__(self) -> str:
        return f"Feed({self.name}:{self.url})"


class FeedWithOwner(Feed):
    """Feed joined with its owner's name."""
    user_name: str


class FeedFollow(_Row):
    """A user following a feed."""
    user_id: str
    feed_id: str


class FeedFollowView(BaseModel):
    """A follow joined with user and feed names."""
    id: str
    user_name: str
    feed_name: str
    feed_url: str

    @classmethod
    def from_db_row(cls, row: Any) -> "FeedFollowView":
        return cls(**dict(row))


class Post(_Row):
    """A feed item persisted by the ingestion pipeline."""
    feed_id: str
    title: str = ""
    url: str = Field(..., min_length=1)
    description: str = ""
    published_at: datetime

    def __str__(self) -> str:
        return f"Post({self.title[:50]})"


class PostWithFeed(Post):
    """Post joined with the name of its feed, as shown by browse."""
    feed_name: str

    def to_display(self) -> Dict[str, Any]:
        return {
            "feed": self.feed_name,
            "title": self.title,
            "url": self.url,
            "published_at": self.published_at.isoformat(),
        }
