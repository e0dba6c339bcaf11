from __future__ import annotations

from dataclasses import dataclass, field, fields
from datetime import date, datetime

SCORE_WEIGHTS = {"novelty": 0.2, "depth": 0.3, "practicality": 0.3, "relevance": 0.2}


@dataclass(frozen=True)
class SourceFilter:
    min_score: int | None = None
    keywords: list[str] = field(default_factory=list)
    exclude_keywords: list[str] = field(default_factory=list)


@dataclass(frozen=True)
class SourceConfig:
    id: str
    name: str
    type: str
    url: str
    category: str
    weight: float = 1.0
    max_per_day: int = 10
    filter: SourceFilter | None = None


@dataclass(frozen=True)
class AppSettings:
    max_articles_per_source: int = 10
    max_articles_per_day: int = 20
    retention_days: int = 30
    categories: list[str] = field(default_factory=list)


@dataclass(frozen=True)
class AppConfig:
    sources: list[SourceConfig]
    settings: AppSettings = field(default_factory=AppSettings)


@dataclass
class RawArticle:
    id: str
    title: str
    url: str
    published_at: datetime
    source: str
    source_name: str
    category: str
    content: str = ""
    description: str = ""
    metadata: dict = field(default_factory=dict)

    def base_fields(self) -> dict:
        return {f.name: getattr(self, f.name) for f in fields(RawArticle)}


@dataclass(frozen=True)
class ArticleScore:
    novelty: float
    depth: float
    practicality: float
    relevance: float
    overall: float

    @classmethod
    def from_ratings(cls, novelty: float, depth: float, practicality: float, relevance: float) -> ArticleScore:
        overall = round(
            novelty * SCORE_WEIGHTS["novelty"]
            + depth * SCORE_WEIGHTS["depth"]
            + practicality * SCORE_WEIGHTS["practicality"]
            + relevance * SCORE_WEIGHTS["relevance"],
            1,
        )
        return cls(novelty, depth, practicality, relevance, overall)

    @classmethod
    def default(cls) -> ArticleScore:
        return cls(5.0, 5.0, 5.0, 5.0, 5.0)


@dataclass
class ArticleWithScore(RawArticle):
    scores: ArticleScore = field(default_factory=ArticleScore.default)
    overall_score: float = 5.0

    @classmethod
    def from_raw(cls, article: RawArticle, scores: ArticleScore) -> ArticleWithScore:
        return cls(**article.base_fields(), scores=scores, overall_score=scores.overall)


@dataclass(frozen=True)
class ArticleSummary:
    why_it_matters: str
    one_sentence_summary: str
    key_points: list[str]
    tags: list[str]
    level: str = "advanced"
    background: str | None = None


@dataclass
class ArticleWithSummary(ArticleWithScore):
    summary: ArticleSummary | None = None

    @classmethod
    def from_scored(cls, article: ArticleWithScore, summary: ArticleSummary) -> ArticleWithSummary:
        return cls(
            **article.base_fields(),
            scores=article.scores,
            overall_score=article.overall_score,
            summary=summary,
        )


@dataclass
class Section:
    slug: str
    name: str
    icon: str
    articles: list[ArticleWithSummary]


@dataclass(frozen=True)
class DigestStats:
    total_articles: int
    average_score: float
    estimated_read_time: int


@dataclass
class DailyDigest:
    date: date
    headline: ArticleWithSummary
    sections: list[Section]
    stats: DigestStats
    generated_at: str = ""
