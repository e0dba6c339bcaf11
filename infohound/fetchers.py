##########################################################################################
#
# Script name: fetchers.py
#
# Description: Collectors that fetch and normalize articles from RSS feeds and Hacker News.
#
##########################################################################################

import json
import logging
from datetime import datetime, timedelta, timezone

import feedparser
import requests
from dateutil import parser as date_parser

from .cache import ContentCache
from .models import RawArticle, SourceConfig
from .scraper import scrape_article
from .utils import stable_id, strip_html


# ****************************************************************************************
# Global data and configuration
# ****************************************************************************************

log = logging.getLogger(__name__)
USER_AGENT = 'InfoHound/1.0 (Daily Tech Digest)'

FEED_TIMEOUT_SECONDS = 30
HN_TIMEOUT_SECONDS = 15
HN_TOP_STORY_LIMIT = 50
HN_DEFAULT_MIN_SCORE = 100
HN_ITEM_CACHE_TTL_HOURS = 1

RSS_MAX_AGE_HOURS = 48
RSS_MIN_INLINE_CHARS = 500
RSS_SCRAPE_MAX_CHARS = 10_000
RSS_CONTENT_MAX_CHARS = 15_000
HN_SCRAPE_MAX_CHARS = 15_000


# ****************************************************************************************
# Functions
# ****************************************************************************************


def parse_published(entry: dict) -> datetime | None:
    candidates = [
        entry.get('published'),
        entry.get('updated'),
        entry.get('created'),
    ]
    for candidate in candidates:
        if not candidate:
            continue
        try:
            parsed = date_parser.parse(candidate)
            if parsed.tzinfo is None:
                parsed = parsed.replace(tzinfo=timezone.utc)
            return parsed.astimezone(timezone.utc)
        except (ValueError, TypeError, OverflowError):
            continue
    return None


def _inline_content(entry: dict) -> str:
    '''Full body from content:encoded or Atom content, else the RSS description.'''
    for block in entry.get('content') or []:
        value = block.get('value') if isinstance(block, dict) else None
        if value:
            return strip_html(value)
    return strip_html(entry.get('summary') or '')


# ****************************************************************************************
# Classes
# ****************************************************************************************


class Collector:
    '''
    Base class for a source of raw articles. Subclasses implement fetch().

    fetch() never raises for network or parse problems; it logs and returns
    whatever it managed to collect, capped at max_per_day.
    '''

    def __init__(
        self,
        source: SourceConfig,
        cache: ContentCache | None = None,
        session=None,
        logger: logging.Logger | None = None,
    ) -> None:
        self.source = source
        self.id = source.id
        self.name = source.name
        self.category = source.category
        self.weight = source.weight
        self.max_per_day = source.max_per_day
        self.cache = cache or ContentCache()
        self.session = session or requests.Session()
        self.log = logger or log

    def fetch(self) -> list[RawArticle]:
        raise NotImplementedError


class RSSCollector(Collector):

    def _download_feed(self):
        response = self.session.get(
            self.source.url,
            timeout=FEED_TIMEOUT_SECONDS,
            headers={'User-Agent': USER_AGENT},
        )
        response.raise_for_status()
        parsed = feedparser.parse(response.content)
        if getattr(parsed, 'bozo', False):
            self.log.warning('RSS parse warning for %s', self.id)
        return parsed

    def fetch(self) -> list[RawArticle]:
        self.log.info('Fetching RSS from %s...', self.name)
        try:
            parsed = self._download_feed()
        except Exception as exc:  # noqa: BLE001
            self.log.error('Error fetching %s: %s', self.name, exc)
            return []

        now = datetime.now(timezone.utc)
        cutoff = now - timedelta(hours=RSS_MAX_AGE_HOURS)
        articles: list[RawArticle] = []
        for entry in parsed.entries[: self.max_per_day * 2]:
            title = strip_html(entry.get('title', ''))
            link = (entry.get('link') or '').strip()
            if not title or not link:
                continue
            published_at = parse_published(entry) or now
            if published_at < cutoff:
                continue

            content = _inline_content(entry)
            if len(content) < RSS_MIN_INLINE_CHARS:
                try:
                    content = scrape_article(link, self.session, self.cache, RSS_SCRAPE_MAX_CHARS)
                except Exception as exc:  # noqa: BLE001
                    self.log.warning('Failed to fetch content for %s: %s', link, exc)

            articles.append(
                RawArticle(
                    id=stable_id(link, length=12),
                    title=title,
                    url=link,
                    published_at=published_at,
                    source=self.id,
                    source_name=self.name,
                    category=self.category,
                    content=content[:RSS_CONTENT_MAX_CHARS],
                    description=strip_html(entry.get('summary') or entry.get('description') or ''),
                )
            )
            if len(articles) >= self.max_per_day:
                break

        self.log.info('Fetched %d articles from %s', len(articles), self.name)
        return articles


class HackerNewsCollector(Collector):

    def __init__(self, source: SourceConfig, **kwargs) -> None:
        super().__init__(source, **kwargs)
        self.api_base = source.url.rstrip('/')
        min_score = source.filter.min_score if source.filter else None
        self.min_score = min_score or HN_DEFAULT_MIN_SCORE

    def _get_json(self, url: str):
        response = self.session.get(url, timeout=HN_TIMEOUT_SECONDS, headers={'User-Agent': USER_AGENT})
        response.raise_for_status()
        return response.json()

    def _fetch_item(self, story_id: int) -> dict | None:
        cache_key = f'hn-item-{story_id}'
        cached = self.cache.get(cache_key)
        if cached:
            return json.loads(cached)
        item = self._get_json(f'{self.api_base}/item/{story_id}.json')
        if item is not None:
            self.cache.set(cache_key, json.dumps(item), HN_ITEM_CACHE_TTL_HOURS)
        return item

    def fetch(self) -> list[RawArticle]:
        self.log.info('Fetching top stories from Hacker News...')
        try:
            top_ids = (self._get_json(f'{self.api_base}/topstories.json') or [])[:HN_TOP_STORY_LIMIT]
        except Exception as exc:  # noqa: BLE001
            self.log.error('Error fetching Hacker News: %s', exc)
            return []

        articles: list[RawArticle] = []
        for story_id in top_ids:
            if len(articles) >= self.max_per_day:
                break
            try:
                item = self._fetch_item(story_id)
                if not item or not item.get('url'):
                    continue
                score = item.get('score') or 0
                if score < self.min_score:
                    continue

                content = ''
                try:
                    content = scrape_article(item['url'], self.session, self.cache, HN_SCRAPE_MAX_CHARS)
                except Exception as exc:  # noqa: BLE001
                    self.log.debug('Could not scrape %s: %s', item['url'], exc)

                articles.append(
                    RawArticle(
                        id=f'hn-{item["id"]}',
                        title=(item.get('title') or '').strip(),
                        url=item['url'],
                        published_at=datetime.fromtimestamp(item.get('time') or 0, tz=timezone.utc),
                        source=self.id,
                        source_name=self.name,
                        category=self.category,
                        content=content[:HN_SCRAPE_MAX_CHARS],
                        metadata={
                            'score': score,
                            'comments': item.get('descendants'),
                            'author': item.get('by'),
                        },
                    )
                )
            except Exception as exc:  # noqa: BLE001
                self.log.warning('Failed to fetch HN item %s: %s', story_id, exc)
                continue

        self.log.info('Fetched %d articles from Hacker News', len(articles))
        return articles


# Registry lookups: source id first, then fetch type.
COLLECTORS_BY_ID: dict[str, type[Collector]] = {
    'hackernews': HackerNewsCollector,
}
COLLECTORS_BY_TYPE: dict[str, type[Collector]] = {
    'rss': RSSCollector,
}


def create_collector(
    source: SourceConfig,
    cache: ContentCache | None = None,
    session=None,
    logger: logging.Logger | None = None,
) -> Collector:
    collector_cls = COLLECTORS_BY_ID.get(source.id) or COLLECTORS_BY_TYPE.get(source.type)
    if collector_cls is None:
        raise ValueError(f'Unknown collector type for source: {source.id}')
    return collector_cls(source, cache=cache, session=session, logger=logger)


def build_sample_articles() -> list[RawArticle]:
    now = datetime.now(timezone.utc)
    templates = [
        ('Scaling a Postgres fleet to a million writes per second', 'tech-deep'),
        ('What we learned pricing a developer tool from zero to $1M ARR', 'product'),
        ('Small language models beat larger ones on structured extraction', 'ai'),
        ('大型分布式缓存系统的一致性实践', 'chinese'),
    ]
    articles: list[RawArticle] = []
    for idx in range(12):
        title, category = templates[idx % len(templates)]
        url = f'https://example.com/post-{idx}'
        articles.append(
            RawArticle(
                id=stable_id(url, length=12),
                title=f'{title} ({idx + 1})',
                url=url,
                published_at=now,
                source='sample',
                source_name='Sample Source',
                category=category,
                content=f'Sample long-form content for the {category} category. ' * 20,
                description=f'Sample content for {category}.',
            )
        )
    return articles
