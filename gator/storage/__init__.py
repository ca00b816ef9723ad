"""
Gator Storage Layer
===================

Repository pattern implementations for data access abstraction.

This module provides:
- User repository for registration and login lookups
- Feed repository, including the most-overdue feed query
- Follow repository for the user/feed relation
- Post repository with duplicate-URL detection
"""

from .user_repository import UserRepository
from .feed_repository import FeedRepository
from .follow_repository import FollowRepository
from .post_repository import PostRepository

__all__ = [
    "UserRepository",
    "FeedRepository",
    "FollowRepository",
    "PostRepository",
]
