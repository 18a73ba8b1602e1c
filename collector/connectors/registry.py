"""Catalog of configured sources, grouped the way the orchestrator schedules them."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Callable, Dict, List, Optional, Sequence, Tuple

from collector.models.domain import ContentType
from collector.services.retry import SleepFn
from collector.settings import Settings

from .arxiv import ArxivSource
from .base import Source, SourceGroup
from .guardian import GuardianSource
from .http import SourceHttp
from .news_api import NewsAPISource
from .rss import FeedSource


@dataclass(frozen=True)
class FeedSpec:
    url: str
    tags: Tuple[str, ...]
    content_type: ContentType = ContentType.ARTICLE


def _feeds(*rows: Tuple) -> Tuple[FeedSpec, ...]:
    return tuple(FeedSpec(row[0], tuple(row[1]), *row[2:]) for row in rows)


FEED_GROUPS: Dict[str, Tuple[FeedSpec, ...]] = {
    "news": _feeds(
        ("http://feeds.bbci.co.uk/news/rss.xml", ["news", "world"]),
        ("https://www.reutersagency.com/feed/?best-topics=world-news", ["news", "world"]),
        ("http://rss.cnn.com/rss/cnn_topstories.rss", ["news", "world"]),
        ("https://feeds.npr.org/1001/rss.xml", ["news", "world"]),
        ("https://www.aljazeera.com/xml/rss/all.xml", ["news", "world", "international"]),
        ("https://www.cbsnews.com/latest/rss/main", ["news", "world"]),
        ("https://abcnews.go.com/abcnews/topstories", ["news", "world"]),
        ("https://feeds.a.dj.com/rss/RSSWorldNews.xml", ["news", "world", "business"]),
        ("https://www.economist.com/the-world-this-week/rss.xml", ["news", "world", "business"]),
        ("https://www.ft.com/?format=rss", ["news", "business", "finance"]),
    ),
    "ai-tech": _feeds(
        ("https://medium.com/feed/tag/artificial-intelligence", ["ai", "technology"]),
        ("https://towardsdatascience.com/feed", ["ai", "data-science", "technology"]),
        ("https://machinelearningmastery.com/feed/", ["ai", "machine-learning", "technology"]),
        ("https://www.kdnuggets.com/feed", ["ai", "data-science", "machine-learning"]),
        ("https://www.theverge.com/rss/index.xml", ["technology", "gadgets"]),
        ("https://feeds.arstechnica.com/arstechnica/index", ["technology", "science"]),
        ("https://techcrunch.com/feed/", ["technology", "startups", "business"]),
        ("https://www.wired.com/feed/rss", ["technology", "science", "culture"]),
        ("https://www.engadget.com/rss.xml", ["technology", "gadgets"]),
        ("https://www.cnet.com/rss/news/", ["technology", "gadgets"]),
        ("https://www.zdnet.com/news/rss.xml", ["technology", "business"]),
        ("https://www.technologyreview.com/feed/", ["technology", "science", "innovation"]),
        ("https://www.theguardian.com/technology/rss", ["technology", "news"]),
        ("https://dev.to/feed", ["technology", "programming", "development"]),
        ("https://news.ycombinator.com/rss", ["technology", "startups", "programming"]),
        ("https://www.smashingmagazine.com/feed/", ["technology", "design", "development"]),
    ),
    "science": _feeds(
        ("https://www.sciencedaily.com/rss/top/science.xml", ["science", "research"]),
        ("https://www.nature.com/feeds/newsroom.xml", ["science", "research", "academic"]),
        ("https://www.scientificamerican.com/feed/", ["science", "research"]),
        ("https://www.newscientist.com/feed/home", ["science", "research", "technology"]),
        ("https://phys.org/rss-feed/", ["science", "physics", "research"]),
        ("https://www.sciencenews.org/feed", ["science", "research"]),
        ("https://www.space.com/feeds/all", ["science", "space", "astronomy"]),
        ("https://www.livescience.com/feeds/all", ["science", "research"]),
    ),
    "poetry": _feeds(
        ("https://www.poetryfoundation.org/rss/poems", ["poetry", "literature"], ContentType.POEM),
        ("https://www.themarginalian.org/feed/", ["literature", "essays", "culture"]),
    ),
    "environment": _feeds(
        ("https://earthobservatory.nasa.gov/feeds/rss/eo.rss", ["environment", "climate", "nasa"]),
        ("https://www.unep.org/rss.xml", ["environment", "climate", "sustainability"]),
    ),
    "business": _feeds(
        ("https://feeds.bloomberg.com/markets/news.rss", ["business", "finance", "markets"]),
        ("https://www.forbes.com/real-time/feed2/", ["business", "finance", "entrepreneurship"]),
        ("https://fortune.com/feed/", ["business", "finance", "leadership"]),
        ("https://hbr.org/feed", ["business", "management", "leadership"]),
        ("https://www.entrepreneur.com/latest.rss", ["business", "startups", "entrepreneurship"]),
        ("https://www.inc.com/rss/", ["business", "startups", "growth"]),
        ("https://www.fastcompany.com/latest/rss", ["business", "innovation", "technology"]),
    ),
    "design": _feeds(
        ("https://www.designboom.com/feed/", ["design", "architecture", "art"]),
        ("https://www.dezeen.com/feed/", ["design", "architecture", "interiors"]),
        ("https://www.creativebloq.com/feed", ["design", "creativity", "art"]),
        ("https://www.itsnicethat.com/feed", ["design", "art", "creativity"]),
        ("https://www.behance.net/feeds/projects", ["design", "art", "creativity"]),
        ("https://dribbble.com/stories.rss", ["design", "ui", "ux"]),
        ("https://sidebar.io/feed", ["design", "ui", "ux"]),
    ),
    "health": _feeds(
        ("https://www.health.harvard.edu/blog/feed", ["health", "wellness", "medicine"]),
        ("https://www.medicalnewstoday.com/rss/news.xml", ["health", "medicine", "research"]),
        ("https://www.webmd.com/rss/rss.aspx?RSSSource=RSS_PUBLIC", ["health", "wellness"]),
        ("https://www.healthline.com/rss", ["health", "wellness", "nutrition"]),
        ("https://www.psychologytoday.com/us/blog/feed", ["psychology", "mental-health", "wellness"]),
    ),
}

API_GROUPS = ("newsapi", "guardian")
GROUP_NAMES: Tuple[str, ...] = tuple(FEED_GROUPS) + API_GROUPS


def _secret(value) -> Optional[str]:
    return value.get_secret_value() if value is not None else None


class SourceCatalog:
    """Builds source groups and single test sources against one HTTP gateway."""

    def __init__(self, http: SourceHttp, settings: Settings, *, sleep: Optional[SleepFn] = None) -> None:
        self._http = http
        self._settings = settings
        self._sleep = sleep

    def feed(self, spec: FeedSpec) -> FeedSource:
        return FeedSource(self._http, spec.url, spec.tags, content_type=spec.content_type)

    def newsapi(self) -> NewsAPISource:
        return NewsAPISource(
            self._http,
            _secret(self._settings.newsapi_key),
            max_attempts=self._settings.retry_max_attempts,
            sleep=self._sleep,
        )

    def guardian(self) -> GuardianSource:
        return GuardianSource(
            self._http,
            _secret(self._settings.guardian_api_key),
            max_attempts=self._settings.retry_max_attempts,
            sleep=self._sleep,
        )

    def arxiv(self) -> ArxivSource:
        return ArxivSource(self._http, max_attempts=self._settings.retry_max_attempts, sleep=self._sleep)

    def groups(self) -> List[SourceGroup]:
        groups = [SourceGroup(name, [self.feed(spec) for spec in specs]) for name, specs in FEED_GROUPS.items()]
        for group in groups:
            if group.name == "science":
                group.sources.append(self.arxiv())
        groups.append(SourceGroup("newsapi", [self.newsapi()]))
        groups.append(SourceGroup("guardian", [self.guardian()]))
        return groups

    def test_aliases(self) -> Dict[str, Callable[[], Source]]:
        return {
            "bbc": lambda: self.feed(FeedSpec("http://feeds.bbci.co.uk/news/rss.xml", ("news",))),
            "reuters": lambda: self.feed(FeedSpec("https://www.reutersagency.com/feed/?best-topics=world-news", ("news",))),
            "medium": lambda: self.feed(FeedSpec("https://medium.com/feed/tag/artificial-intelligence", ("ai",))),
            "verge": lambda: self.feed(FeedSpec("https://www.theverge.com/rss/index.xml", ("technology",))),
            "arxiv": self.arxiv,
            "newsapi": self.newsapi,
            "guardian": self.guardian,
        }

    def test_source(self, name: str) -> Optional[Source]:
        """Resolve an alias, or treat an absolute http(s) URL as an ad-hoc feed."""
        key = name.strip()
        factory = self.test_aliases().get(key.lower())
        if factory is not None:
            return factory()
        if key.startswith(("http://", "https://")):
            return self.feed(FeedSpec(key, ()))
        return None


def select_groups(groups: Sequence[SourceGroup], names: Optional[Sequence[str]]) -> List[SourceGroup]:
    if not names:
        return list(groups)
    wanted = {n.strip().lower() for n in names}
    return [g for g in groups if g.name in wanted]
