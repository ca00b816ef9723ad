"""
Gator - RSS Feed Aggregator
===========================

Command-line RSS aggregator: users register, add and follow feeds, and a
long-running ``agg`` command polls feeds and stores new posts for browsing.

Main Components:
- Database: SQLite with connection pooling and schema management
- Configuration: environment variables with Pydantic validation, plus a JSON
  file remembering the logged-in user
- Processing: date normalization, feed fetching and the ingestion pipeline
- Scheduler: most-overdue feed selection and the periodic poll loop
"""

__version__ = "1.0.0"
__author__ = "Gator Development Team"
__description__ = "Command-line RSS feed aggregator"

from .config.settings import load_settings
from .database.schema import DatabaseSchema
from .utils.logging import configure_application_logging, get_logger_for_component
from .utils.exceptions import GatorError

__all__ = [
    "load_settings",
    "DatabaseSchema",
    "configure_application_logging",
    "get_logger_for_component",
    "GatorError",
]
