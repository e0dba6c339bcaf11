##########################################################################################
#
# Script name: pipeline.py
#
# Description: Fetch, dedupe, evaluate, filter, summarize, and assemble the daily digest.
#
##########################################################################################

import logging
from concurrent.futures import ThreadPoolExecutor
from datetime import date
from typing import Callable, Iterable, TypeVar

from .cache import ContentCache
from .config import PipelineSettings
from .curation import dedupe_articles, filter_quality, orchestrate
from .fetchers import Collector, create_collector
from .models import (
    ArticleScore,
    ArticleWithScore,
    ArticleWithSummary,
    DailyDigest,
    RawArticle,
    SourceConfig,
)
from .summarizer import AIService, default_summary


# ****************************************************************************************
# Global data and configuration
# ****************************************************************************************

log = logging.getLogger(__name__)

T = TypeVar('T')
R = TypeVar('R')


# ****************************************************************************************
# Functions
# ****************************************************************************************


def run_bounded(func: Callable[[T], R], items: Iterable[T], max_workers: int) -> list[R]:
    '''
    Apply func to every item with at most max_workers calls in flight.

    Results come back in input order regardless of completion order. func is
    expected to handle its own errors; an exception escaping func propagates.
    '''
    items = list(items)
    if not items:
        return []
    with ThreadPoolExecutor(max_workers=max_workers) as pool:
        return list(pool.map(func, items))


def fetch_articles(
    sources: list[SourceConfig],
    collector_factory: Callable[[SourceConfig], Collector],
    logger: logging.Logger | None = None,
) -> list[RawArticle]:
    logger = logger or log
    articles: list[RawArticle] = []
    for source in sources:
        try:
            collector = collector_factory(source)
            source_articles = collector.fetch()
        except Exception as exc:  # noqa: BLE001
            logger.error('Failed to fetch from %s: %s', source.name, exc)
            continue
        articles.extend(source_articles)
        logger.info('Collected %d articles from %s', len(source_articles), source.name)

    unique = dedupe_articles(articles)
    logger.info('Total unique articles: %d', len(unique))
    return unique


def evaluate_articles(
    articles: list[RawArticle],
    service: AIService,
    concurrency: int = 3,
    logger: logging.Logger | None = None,
) -> list[ArticleWithScore]:
    logger = logger or log

    def _evaluate(article: RawArticle) -> ArticleWithScore:
        try:
            scores = service.evaluate(article)
        except Exception as exc:  # noqa: BLE001
            logger.error('Failed to evaluate %s: %s', article.title, exc)
            scores = ArticleScore.default()
        return ArticleWithScore.from_raw(article, scores)

    return run_bounded(_evaluate, articles, concurrency)


def summarize_articles(
    articles: list[ArticleWithScore],
    service: AIService,
    concurrency: int = 3,
    logger: logging.Logger | None = None,
) -> list[ArticleWithSummary]:
    logger = logger or log

    def _summarize(article: ArticleWithScore) -> ArticleWithSummary:
        try:
            summary = service.summarize(article)
        except Exception as exc:  # noqa: BLE001
            logger.error('Failed to summarize %s: %s', article.title, exc)
            summary = default_summary(article)
        return ArticleWithSummary.from_scored(article, summary)

    return run_bounded(_summarize, articles, concurrency)


def generate_digest(
    sources: list[SourceConfig],
    service: AIService,
    digest_date: date,
    settings: PipelineSettings | None = None,
    collector_factory: Callable[[SourceConfig], Collector] | None = None,
    cache: ContentCache | None = None,
    raw_articles: list[RawArticle] | None = None,
    logger: logging.Logger | None = None,
) -> DailyDigest | None:
    '''
    Run the fetch -> evaluate -> filter -> summarize -> orchestrate stages.

    Returns None when nothing was fetched or nothing passed the quality
    threshold; that is a normal early exit, not an error. Passing
    raw_articles skips the fetch stage.
    '''
    logger = logger or log
    settings = settings or PipelineSettings()

    logger.info('Step 1: Fetching articles...')
    if raw_articles is None:
        if collector_factory is None:
            shared_cache = cache or ContentCache()

            def collector_factory(source: SourceConfig) -> Collector:
                return create_collector(source, cache=shared_cache, logger=logger)

        raw_articles = fetch_articles(sources, collector_factory, logger=logger)
    else:
        raw_articles = dedupe_articles(raw_articles)
    if not raw_articles:
        logger.warning('No articles found')
        return None

    logger.info('Step 2: Evaluating article quality...')
    evaluated = evaluate_articles(
        raw_articles[: settings.max_evaluate],
        service,
        concurrency=settings.ai_concurrency,
        logger=logger,
    )
    quality = filter_quality(evaluated, settings.quality_threshold)
    logger.info('Articles passing quality threshold (>=%s): %d', settings.quality_threshold, len(quality))
    if not quality:
        logger.warning('No articles passed quality threshold')
        return None

    logger.info('Step 3: Generating summaries...')
    summarized = summarize_articles(
        quality[: settings.max_summarize],
        service,
        concurrency=settings.ai_concurrency,
        logger=logger,
    )

    logger.info('Step 4: Orchestrating digest...')
    return orchestrate(summarized, digest_date)
