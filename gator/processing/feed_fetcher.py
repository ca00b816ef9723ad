"""
RSS Feed Fetcher
================

Fetches one feed over HTTP with a bounded deadline, validates the response
status, parses the XML with feedparser and returns a FeedDocument whose text
fields have been HTML-unescaped exactly once.
"""

import asyncio
import html
import ssl
import xml.sax
from contextlib import asynccontextmanager
from dataclasses import dataclass, field, replace
from typing import Any, List, Optional

import aiohttp
import certifi
import feedparser

from ..config.settings import PollingSettings
from ..utils.logging import get_logger_for_component
from ..utils.exceptions import ErrorCode, HTTPError, NetworkError, ParseError


@dataclass
class FeedItem:
    """One item of a feed. pub_date is the raw date text from the document."""

    title: str = ""
    link: str = ""
    description: str = ""
    pub_date: str = ""


@dataclass
class FeedDocument:
    """Parsed feed: channel metadata plus items in document order."""

    title: str = ""
    link: str = ""
    description: str = ""
    items: List[FeedItem] = field(default_factory=list)


def unescape_document(document: FeedDocument) -> FeedDocument:
    """Apply one HTML-entity unescape pass to channel and item title/description."""
    return replace(
        document,
        title=html.unescape(document.title),
        description=html.unescape(document.description),
        items=[
            replace(
                item,
                title=html.unescape(item.title),
                description=html.unescape(item.description),
            )
            for item in document.items
        ],
    )


class FeedFetcher:
    """Async single-feed fetcher built on aiohttp and feedparser."""

    def __init__(self, settings: Optional[PollingSettings] = None):
        """Initialize feed fetcher.

        Args:
            settings: Polling settings supplying timeout and user agent
        """
        self.settings = settings or PollingSettings()
        self.timeout = self.settings.request_timeout
        self.user_agent = self.settings.user_agent
        self.logger = get_logger_for_component("feed_fetcher")

        self.ssl_context = ssl.create_default_context(cafile=certifi.where())

    @asynccontextmanager
    async def get_session(self):
        """Get configured aiohttp session."""
        connector = aiohttp.TCPConnector(ssl=self.ssl_context, limit_per_host=2)

        async with aiohttp.ClientSession(connector=connector) as session:
            yield session

    def _request_headers(self) -> dict:
        return {
            "User-Agent": self.user_agent,
            "Accept": "application/rss+xml, application/xml, text/xml, */*",
        }

    async def fetch(self, url: str, timeout: Optional[float] = None) -> FeedDocument:
        """Fetch and parse a feed using a short-lived session.

        Args:
            url: Feed URL
            timeout: Deadline in seconds, defaults to the configured request timeout

        Raises:
            NetworkError: Transport failure or deadline exceeded
            HTTPError: Status outside 200..299
            ParseError: Body is not a well-formed feed
        """
        async with self.get_session() as session:
            return await self.fetch_with_session(url, session, timeout=timeout)

    async def fetch_with_session(
        self,
        url: str,
        session: aiohttp.ClientSession,
        timeout: Optional[float] = None,
    ) -> FeedDocument:
        """Fetch and parse a feed with an existing session."""
        deadline = timeout if timeout is not None else self.timeout
        self.logger.debug(f"Fetching feed: {url}")

        try:
            async with session.get(
                url,
                headers=self._request_headers(),
                timeout=aiohttp.ClientTimeout(total=deadline),
            ) as response:
                if not 200 <= response.status <= 299:
                    raise HTTPError(
                        f"HTTP {response.status} fetching {url}",
                        status=response.status,
                        feed_url=url,
                        user_message=f"Feed returned HTTP {response.status}",
                    )

                body = await response.read()
                content_type = response.headers.get("Content-Type", "")

        except asyncio.TimeoutError as e:
            raise NetworkError(
                f"Request timeout after {deadline}s", feed_url=url,
                error_code=ErrorCode.FEED_FETCH_TIMEOUT,
                user_message=f"Timed out fetching {url}",
            ) from e
        except aiohttp.ClientError as e:
            raise NetworkError(
                f"Network error fetching {url}: {e}", feed_url=url,
                user_message=f"Could not reach {url}",
            ) from e

        document = self._parse(body, content_type, url)
        self.logger.info(f"Fetched {len(document.items)} items from {url}")
        return document

    def _parse(self, body: bytes, content_type: str, url: str) -> FeedDocument:
        headers = {"content-type": content_type} if content_type else {}
        parsed = feedparser.parse(
            body,
            response_headers=headers,
            sanitize_html=False,
            resolve_relative_uris=False,
        )

        if parsed.get("bozo") and isinstance(
            parsed.get("bozo_exception"), xml.sax.SAXException
        ):
            raise ParseError(
                f"Malformed feed XML: {parsed.bozo_exception}", feed_url=url,
                user_message=f"{url} is not a valid feed",
            )

        if not parsed.get("version"):
            raise ParseError(
                "Document is not a recognised RSS or Atom feed", feed_url=url,
                user_message=f"{url} is not a valid feed",
            )

        return unescape_document(self._to_document(parsed))

    def _to_document(self, parsed: Any) -> FeedDocument:
        channel = parsed.feed
        return FeedDocument(
            title=channel.get("title", ""),
            link=channel.get("link", ""),
            description=channel.get("subtitle", ""),
            items=[
                FeedItem(
                    title=entry.get("title", ""),
                    link=entry.get("link", ""),
                    description=entry.get("summary", ""),
                    pub_date=entry.get("published") or entry.get("updated") or "",
                )
                for entry in parsed.entries
            ],
        )
