"""
Gator Services
==============

Business logic shared by the CLI commands.
"""

from .user_service import UserService
from .feed_service import FeedService, AddFeedResult

__all__ = [
    'UserService',
    'FeedService',
    'AddFeedResult',
]
