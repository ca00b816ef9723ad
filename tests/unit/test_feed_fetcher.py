"""
Unit Tests for FeedFetcher
==========================

Tests for HTTP status handling, transport errors, XML parsing and the single
HTML-unescape pass, with the aiohttp session mocked.
"""

import pytest
import asyncio
import html
from unittest.mock import AsyncMock, MagicMock, patch

import aiohttp

from gator.config.settings import PollingSettings
from gator.processing.feed_fetcher import (
    FeedFetcher,
    FeedDocument,
    FeedItem,
    unescape_document,
)
from gator.utils.exceptions import HTTPError, NetworkError, ParseError, ErrorCode


FEED_URL = "https://example.com/rss"

SAMPLE_RSS_FEED = """<?xml version="1.0" encoding="UTF-8"?>
<rss version="2.0">
    <channel>
        <title>&amp;Example&amp;</title>
        <link>http://example.com</link>
        <description>Test feed for unit testing</description>
        <item>
            <title>First Post</title>
            <link>http://example.com/first</link>
            <description>The first post</description>
            <pubDate>Thu, 05 Sep 2024 12:00:00 GMT</pubDate>
        </item>
        <item>
            <title>Second Post</title>
            <link>http://example.com/second</link>
            <description>The second post</description>
            <pubDate>Wed, 04 Sep 2024 15:30:00 GMT</pubDate>
        </item>
        <item>
            <title>Third Post</title>
            <link>http://example.com/third</link>
        </item>
    </channel>
</rss>"""

SAMPLE_ATOM_FEED = """<?xml version="1.0" encoding="UTF-8"?>
<feed xmlns="http://www.w3.org/2005/Atom">
    <title>Test Atom Feed</title>
    <link href="http://example.com"/>
    <id>http://example.com/feed</id>
    <updated>2024-09-07T00:00:01Z</updated>
    <entry>
        <title>Atom Test Article</title>
        <link href="http://example.com/atom-article"/>
        <id>http://example.com/atom-article</id>
        <updated>2024-09-05T12:00:00Z</updated>
        <summary>This is an Atom article summary</summary>
    </entry>
</feed>"""

MALFORMED_XML = """<?xml version="1.0" encoding="UTF-8"?>
<rss version="2.0"><channel><title>Broken</channel></rss>"""

HTML_PAGE = "<html><head><title>Home</title></head><body><p>Not a feed</p></body></html>"

ENCODED_TITLES_FEED = """<?xml version="1.0" encoding="UTF-8"?>
<rss version="2.0">
    <channel>
        <title>Entities</title>
        <link>http://example.com</link>
        <item>
            <title>&amp;amp;Example&amp;amp;</title>
            <link>http://example.com/double</link>
        </item>
        <item>
            <title>&amp;amp;amp;</title>
            <link>http://example.com/triple</link>
        </item>
    </channel>
</rss>"""

MARKUP_DESCRIPTION = '<p style="color:red">Hi</p> <script>x()</script> <a href="/rel">r</a>'

MARKUP_FEED = f"""<?xml version="1.0" encoding="UTF-8"?>
<rss version="2.0">
    <channel>
        <title>Markup</title>
        <link>http://example.com</link>
        <item>
            <title>Styled</title>
            <link>http://example.com/styled</link>
            <description>{html.escape(MARKUP_DESCRIPTION, quote=False)}</description>
        </item>
    </channel>
</rss>"""


def make_session(status=200, body="", content_type="application/rss+xml", error=None):
    """Mock aiohttp session whose get() yields one response."""
    mock_response = AsyncMock()
    mock_response.status = status
    mock_response.read = AsyncMock(return_value=body.encode("utf-8"))
    mock_response.headers = {"Content-Type": content_type}

    context_manager = MagicMock()
    if error is not None:
        context_manager.__aenter__ = AsyncMock(side_effect=error)
    else:
        context_manager.__aenter__ = AsyncMock(return_value=mock_response)
    context_manager.__aexit__ = AsyncMock(return_value=False)

    mock_session = MagicMock()
    mock_session.get = MagicMock(return_value=context_manager)
    return mock_session


class TestFeedFetcher:
    """Test suite for FeedFetcher."""

    @pytest.fixture
    def fetcher(self):
        return FeedFetcher(PollingSettings(request_timeout=5, user_agent="gator"))

    @pytest.mark.asyncio
    async def test_fetch_rss_success(self, fetcher):
        session = make_session(body=SAMPLE_RSS_FEED)

        document = await fetcher.fetch_with_session(FEED_URL, session)

        assert isinstance(document, FeedDocument)
        assert document.link == "http://example.com"
        assert document.description == "Test feed for unit testing"
        assert [item.title for item in document.items] == [
            "First Post",
            "Second Post",
            "Third Post",
        ]
        assert document.items[0].link == "http://example.com/first"
        assert document.items[0].description == "The first post"
        assert document.items[0].pub_date == "Thu, 05 Sep 2024 12:00:00 GMT"
        assert document.items[2].pub_date == ""
        assert document.items[2].description == ""

    @pytest.mark.asyncio
    async def test_channel_title_unescaped_once(self, fetcher):
        session = make_session(body=SAMPLE_RSS_FEED)

        document = await fetcher.fetch_with_session(FEED_URL, session)

        assert document.title == "&Example&"

    @pytest.mark.asyncio
    async def test_item_titles_unescaped_once(self, fetcher):
        session = make_session(body=ENCODED_TITLES_FEED)

        document = await fetcher.fetch_with_session(FEED_URL, session)

        assert [item.title for item in document.items] == ["&Example&", "&amp;"]

    @pytest.mark.asyncio
    async def test_description_markup_kept_verbatim(self, fetcher):
        session = make_session(body=MARKUP_FEED)

        document = await fetcher.fetch_with_session(FEED_URL, session)

        assert document.items[0].description == MARKUP_DESCRIPTION

    @pytest.mark.asyncio
    async def test_fetch_atom_feed(self, fetcher):
        session = make_session(body=SAMPLE_ATOM_FEED, content_type="application/atom+xml")

        document = await fetcher.fetch_with_session(FEED_URL, session)

        assert document.title == "Test Atom Feed"
        assert len(document.items) == 1
        assert document.items[0].link == "http://example.com/atom-article"
        assert document.items[0].pub_date == "2024-09-05T12:00:00Z"

    @pytest.mark.asyncio
    async def test_request_headers_and_timeout(self, fetcher):
        session = make_session(body=SAMPLE_RSS_FEED)

        await fetcher.fetch_with_session(FEED_URL, session)

        args, kwargs = session.get.call_args
        assert args[0] == FEED_URL
        assert kwargs["headers"]["User-Agent"] == "gator"
        assert kwargs["timeout"].total == 5

    @pytest.mark.asyncio
    async def test_explicit_timeout_overrides_default(self, fetcher):
        session = make_session(body=SAMPLE_RSS_FEED)

        await fetcher.fetch_with_session(FEED_URL, session, timeout=1.5)

        assert session.get.call_args.kwargs["timeout"].total == 1.5

    @pytest.mark.asyncio
    @pytest.mark.parametrize("status", [404, 500, 302, 199])
    async def test_non_2xx_status(self, fetcher, status):
        session = make_session(status=status, body=SAMPLE_RSS_FEED)

        with pytest.raises(HTTPError) as exc_info:
            await fetcher.fetch_with_session(FEED_URL, session)

        assert exc_info.value.status == status
        assert exc_info.value.error_code == ErrorCode.FEED_HTTP_STATUS
        assert exc_info.value.context["feed_url"] == FEED_URL

    @pytest.mark.asyncio
    async def test_connection_error(self, fetcher):
        session = make_session(error=aiohttp.ClientConnectionError("refused"))

        with pytest.raises(NetworkError) as exc_info:
            await fetcher.fetch_with_session(FEED_URL, session)

        assert exc_info.value.error_code == ErrorCode.FEED_NETWORK_ERROR

    @pytest.mark.asyncio
    async def test_timeout(self, fetcher):
        session = make_session(error=asyncio.TimeoutError())

        with pytest.raises(NetworkError) as exc_info:
            await fetcher.fetch_with_session(FEED_URL, session)

        assert exc_info.value.error_code == ErrorCode.FEED_FETCH_TIMEOUT
        assert "timeout" in str(exc_info.value).lower()

    @pytest.mark.asyncio
    async def test_malformed_xml(self, fetcher):
        session = make_session(body=MALFORMED_XML)

        with pytest.raises(ParseError) as exc_info:
            await fetcher.fetch_with_session(FEED_URL, session)

        assert exc_info.value.error_code == ErrorCode.FEED_PARSE_ERROR

    @pytest.mark.asyncio
    async def test_html_page_is_not_a_feed(self, fetcher):
        session = make_session(body=HTML_PAGE, content_type="text/html")

        with pytest.raises(ParseError):
            await fetcher.fetch_with_session(FEED_URL, session)

    @pytest.mark.asyncio
    async def test_fetch_uses_own_session(self, fetcher):
        expected = FeedDocument(title="Stub")

        with patch.object(
            fetcher, "fetch_with_session", AsyncMock(return_value=expected)
        ) as mock_fetch:
            document = await fetcher.fetch(FEED_URL, timeout=2)

        assert document is expected
        assert mock_fetch.call_args.args[0] == FEED_URL
        assert mock_fetch.call_args.kwargs["timeout"] == 2

    def test_default_settings(self):
        fetcher = FeedFetcher()
        assert fetcher.user_agent == "gator"
        assert fetcher.timeout == 10.0


class TestUnescapeDocument:
    """The unescape pass runs exactly once over titles and descriptions."""

    def test_single_pass(self):
        document = FeedDocument(
            title="&amp;amp;",
            link="http://example.com/?a=1&amp;b=2",
            description="Tom &amp; Jerry",
            items=[FeedItem(title="&lt;b&gt;", link="x", description="&quot;hi&quot;")],
        )

        result = unescape_document(document)

        assert result.title == "&amp;"
        assert result.description == "Tom & Jerry"
        assert result.items[0].title == "<b>"
        assert result.items[0].description == '"hi"'

    def test_links_and_dates_untouched(self):
        document = FeedDocument(
            link="http://example.com/?a=1&amp;b=2",
            items=[FeedItem(link="http://example.com/?x=1&amp;y=2", pub_date="&amp;")],
        )

        result = unescape_document(document)

        assert result.link == "http://example.com/?a=1&amp;b=2"
        assert result.items[0].link == "http://example.com/?x=1&amp;y=2"
        assert result.items[0].pub_date == "&amp;"

    def test_original_not_mutated(self):
        document = FeedDocument(title="&amp;")
        unescape_document(document)
        assert document.title == "&amp;"
