"""
Gator Processing Module
=======================

Feed ingestion components: date normalization, fetching and parsing, and the
single-cycle ingestion pipeline.
"""

from .date_normalizer import DateNormalizer
from .feed_fetcher import FeedFetcher, FeedDocument, FeedItem
from .pipeline import IngestionPipeline, CycleReport

__all__ = [
    'DateNormalizer',
    'FeedFetcher',
    'FeedDocument',
    'FeedItem',
    'IngestionPipeline',
    'CycleReport',
]
