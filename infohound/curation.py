from __future__ import annotations

import math
from collections import defaultdict
from datetime import date

from .config import CATEGORIES, MAX_SECTION_ARTICLES, READ_MINUTES_PER_ARTICLE
from .models import ArticleWithScore, ArticleWithSummary, DailyDigest, DigestStats, RawArticle, Section
from .utils import utc_now_iso


def dedupe_articles(articles: list[RawArticle]) -> list[RawArticle]:
    seen: set[str] = set()
    unique: list[RawArticle] = []
    for article in articles:
        if article.url in seen:
            continue
        seen.add(article.url)
        unique.append(article)
    return unique


def filter_quality(articles: list[ArticleWithScore], threshold: float = 7.0) -> list[ArticleWithScore]:
    return [article for article in articles if article.overall_score >= threshold]


def average_score(articles: list[ArticleWithSummary]) -> float:
    if not articles:
        return 0
    return round(sum(article.overall_score for article in articles) / len(articles), 1)


def _group_by_category(articles: list[ArticleWithSummary]) -> dict[str, list[ArticleWithSummary]]:
    grouped: defaultdict[str, list[ArticleWithSummary]] = defaultdict(list)
    for article in articles:
        grouped[article.category].append(article)
    return grouped


def orchestrate(articles: list[ArticleWithSummary], digest_date: date | None = None) -> DailyDigest:
    """Rank summarized articles into a headline, category sections, and stats.

    ``sorted`` is stable, so ties keep their input order and the first of
    several equal top scores becomes the headline.
    """
    if not articles:
        raise ValueError("cannot build a digest from zero articles")

    ranked = sorted(articles, key=lambda item: item.overall_score, reverse=True)
    headline = ranked[0]
    grouped = _group_by_category(ranked[1:])

    sections: list[Section] = []
    for category in CATEGORIES:
        picks = grouped.get(category.slug, [])[:MAX_SECTION_ARTICLES]
        if picks:
            sections.append(Section(slug=category.slug, name=category.name, icon=category.icon, articles=picks))

    stats = DigestStats(
        total_articles=len(articles),
        average_score=average_score(articles),
        estimated_read_time=math.ceil(len(articles) * READ_MINUTES_PER_ARTICLE),
    )
    return DailyDigest(
        date=digest_date or date.today(),
        headline=headline,
        sections=sections,
        stats=stats,
        generated_at=utc_now_iso(),
    )
