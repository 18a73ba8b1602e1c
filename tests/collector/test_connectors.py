from __future__ import annotations

import asyncio
import time
from typing import List

import httpx
import pytest

pytest.importorskip("pytest_httpx")

from collector.connectors.arxiv import ARXIV_ENDPOINT, ArxivSource
from collector.connectors.guardian import GUARDIAN_ENDPOINT, GuardianSource
from collector.connectors.http import SourceHttp
from collector.connectors.news_api import NEWSAPI_ENDPOINT, NewsAPISource
from collector.connectors.rss import FeedSource
from collector.models.domain import License
from collector.services.deduplicator import derive_id
from collector.services.rate_limiter import HostRateLimiter

FEED_URL = "https://feeds.example.com/rss.xml"

RSS_FEED = b"""<?xml version="1.0" encoding="UTF-8"?>
<rss version="2.0"><channel><title>Example</title>
<item><title>First &amp; best</title><link>https://example.com/one</link>
<description>&lt;p&gt;Body &lt;b&gt;one&lt;/b&gt;&lt;/p&gt;</description>
<pubDate>Tue, 10 Jun 2025 12:00:00 GMT</pubDate></item>
<item><title>No link here</title><description>orphan</description></item>
<item><title>Second</title><link>https://example.com/two</link><description>Body two</description></item>
</channel></rss>
"""

ARXIV_FEED = b"""<?xml version="1.0" encoding="UTF-8"?>
<feed xmlns="http://www.w3.org/2005/Atom">
<title>ArXiv Query</title>
<entry>
<id>http://arxiv.org/abs/2501.00001v1</id>
<published>2025-01-01T00:00:00Z</published>
<title>Learning Things</title>
<summary>We learn things about things.</summary>
<link href="http://arxiv.org/abs/2501.00001v1" rel="alternate" type="text/html"/>
</entry>
</feed>
"""


class _Sleeps:
    def __init__(self) -> None:
        self.delays: List[float] = []

    async def __call__(self, delay: float) -> None:
        self.delays.append(delay)


def _http(client: httpx.AsyncClient) -> SourceHttp:
    return SourceHttp(client, HostRateLimiter(100), timeout_seconds=10.0)


def _newsapi_url(topic: str) -> httpx.URL:
    return httpx.URL(NEWSAPI_ENDPOINT, params={"q": topic, "sortBy": "publishedAt", "pageSize": 50})


@pytest.mark.asyncio
async def test_feed_source_maps_entries_with_links(httpx_mock):
    httpx_mock.add_response(method="GET", url=FEED_URL, content=RSS_FEED)

    async with httpx.AsyncClient() as client:
        result = await FeedSource(_http(client), FEED_URL, ["News", "world"]).fetch()

    assert result.success and result.source == FEED_URL
    assert [r.article_url for r in result.items] == ["https://example.com/one", "https://example.com/two"]
    first = result.items[0]
    assert first.id == derive_id("https://example.com/one")
    assert first.title == "First & best"
    assert first.excerpt == "Body one"
    assert first.tags == ["news", "world"]
    assert first.license is License.RSS
    assert first.published_at.year == 2025 and first.published_at.month == 6


@pytest.mark.asyncio
async def test_feed_source_reports_http_failure(httpx_mock):
    httpx_mock.add_response(method="GET", url=FEED_URL, status_code=404)

    async with httpx.AsyncClient() as client:
        result = await FeedSource(_http(client), FEED_URL, ["news"]).fetch()

    assert not result.success
    assert "404" in result.error
    assert result.items == []


@pytest.mark.asyncio
async def test_feed_source_reports_timeout(httpx_mock):
    httpx_mock.add_exception(httpx.ReadTimeout("too slow"), url=FEED_URL)

    async with httpx.AsyncClient() as client:
        result = await FeedSource(_http(client), FEED_URL, ["news"]).fetch()

    assert not result.success
    assert "timeout" in result.error


class _DripStream(httpx.AsyncByteStream):
    """Body that trickles one byte at a time so no single read ever times out."""

    async def __aiter__(self):
        for _ in range(50):
            await asyncio.sleep(0.1)
            yield b"<"


@pytest.mark.asyncio
async def test_feed_source_deadline_covers_slow_body():
    def handler(request: httpx.Request) -> httpx.Response:
        return httpx.Response(200, stream=_DripStream())

    async with httpx.AsyncClient(transport=httpx.MockTransport(handler)) as client:
        http = SourceHttp(client, HostRateLimiter(100), timeout_seconds=0.5)
        started = time.monotonic()
        result = await FeedSource(http, FEED_URL, ["news"]).fetch()
        elapsed = time.monotonic() - started

    assert not result.success
    assert "timeout" in result.error
    assert elapsed < 2.0


@pytest.mark.asyncio
async def test_feed_source_rejects_malformed_payload(httpx_mock):
    httpx_mock.add_response(method="GET", url=FEED_URL, content=b"this is not a feed")

    async with httpx.AsyncClient() as client:
        result = await FeedSource(_http(client), FEED_URL, ["news"]).fetch()

    assert not result.success
    assert "malformed" in result.error


@pytest.mark.asyncio
async def test_newsapi_without_key_fails_fast():
    async with httpx.AsyncClient() as client:
        result = await NewsAPISource(_http(client), None).fetch()

    assert not result.success
    assert result.error == "API key not configured"


@pytest.mark.asyncio
async def test_newsapi_queries_each_topic(httpx_mock):
    for topic in ("science", "technology"):
        httpx_mock.add_response(
            method="GET",
            url=_newsapi_url(topic),
            match_headers={"X-Api-Key": "news-key"},
            json={
                "status": "ok",
                "articles": [
                    {
                        "title": f"{topic} headline",
                        "description": "<p>details</p>",
                        "url": f"https://news.example.com/{topic}",
                        "publishedAt": "2025-05-01T00:00:00Z",
                    },
                    {"title": "no url"},
                ],
            },
        )

    async with httpx.AsyncClient() as client:
        result = await NewsAPISource(_http(client), "news-key").fetch()

    assert result.success and result.error is None
    assert [r.tags for r in result.items] == [["news", "science"], ["news", "technology"]]
    assert all(r.license is License.API for r in result.items)


@pytest.mark.asyncio
async def test_newsapi_retries_rate_limited_topic(httpx_mock):
    url = _newsapi_url("science")
    httpx_mock.add_response(method="GET", url=url, status_code=429, json={"status": "error"})
    httpx_mock.add_response(
        method="GET",
        url=url,
        json={"status": "ok", "articles": [{"title": "ok", "url": "https://news.example.com/ok"}]},
    )
    sleeps = _Sleeps()

    async with httpx.AsyncClient() as client:
        result = await NewsAPISource(_http(client), "news-key", topics=("science",), sleep=sleeps).fetch()

    assert result.success
    assert len(result.items) == 1
    assert sleeps.delays == [1.0]


@pytest.mark.asyncio
async def test_newsapi_keeps_successful_topics_when_one_fails(httpx_mock):
    httpx_mock.add_response(method="GET", url=_newsapi_url("science"), status_code=401, json={"status": "error"})
    httpx_mock.add_response(
        method="GET",
        url=_newsapi_url("technology"),
        json={"status": "ok", "articles": [{"title": "chips", "url": "https://news.example.com/chips"}]},
    )

    async with httpx.AsyncClient() as client:
        result = await NewsAPISource(_http(client), "news-key").fetch()

    assert result.success
    assert len(result.items) == 1
    assert result.error.startswith("science:")


@pytest.mark.asyncio
async def test_guardian_tags_by_section(httpx_mock):
    httpx_mock.add_response(
        method="GET",
        url=httpx.URL(
            GUARDIAN_ENDPOINT,
            params={
                "section": "science|technology",
                "page-size": 50,
                "show-fields": "trailText",
                "api-key": "g-key",
            },
        ),
        json={
            "response": {
                "results": [
                    {
                        "webUrl": "https://www.theguardian.com/science/comet",
                        "webTitle": "Comet returns",
                        "sectionName": "Science",
                        "webPublicationDate": "2025-05-01T10:00:00Z",
                        "fields": {"trailText": "<strong>Bright</strong> comet"},
                    },
                    {"webTitle": "missing url"},
                ]
            }
        },
    )

    async with httpx.AsyncClient() as client:
        result = await GuardianSource(_http(client), "g-key").fetch()

    assert result.success
    assert len(result.items) == 1
    assert result.items[0].tags == ["news", "science"]
    assert result.items[0].excerpt == "Bright comet"


@pytest.mark.asyncio
async def test_guardian_without_key_fails_fast():
    async with httpx.AsyncClient() as client:
        result = await GuardianSource(_http(client), None).fetch()

    assert result.error == "API key not configured"


@pytest.mark.asyncio
async def test_arxiv_uses_entry_id_as_link(httpx_mock):
    httpx_mock.add_response(
        method="GET",
        url=httpx.URL(
            ARXIV_ENDPOINT,
            params={
                "search_query": "all:AI",
                "max_results": 50,
                "sortBy": "submittedDate",
                "sortOrder": "descending",
            },
        ),
        content=ARXIV_FEED,
    )

    async with httpx.AsyncClient() as client:
        result = await ArxivSource(_http(client)).fetch()

    assert result.success
    record = result.items[0]
    assert record.article_url == "http://arxiv.org/abs/2501.00001v1"
    assert record.license is License.RESTRICTED
    assert "research" in record.tags
    assert record.full_text == record.excerpt
