##########################################################################################
#
# Script name: test_pipeline.py
#
# Description: Stage isolation, bounded concurrency, and an end-to-end digest run.
#
##########################################################################################

import logging
import threading
import time
from datetime import date

from helpers import ScriptedAIService, build_raw

from infohound import pipeline
from infohound.cache import ContentCache
from infohound.config import PipelineSettings
from infohound.models import ArticleScore, SourceConfig
from infohound.pipeline import evaluate_articles, fetch_articles, generate_digest, run_bounded, summarize_articles


class StaticCollector:
    def __init__(self, articles):
        self.articles = articles

    def fetch(self):
        return list(self.articles)


def _source(source_id: str, category: str = 'ai') -> SourceConfig:
    return SourceConfig(
        id=source_id,
        name=source_id.title(),
        type='rss',
        url=f'https://{source_id}.example/feed',
        category=category,
    )


class ExplodingService(ScriptedAIService):
    '''Raises straight out of evaluate/summarize for chosen titles.'''

    def __init__(self, bad_title: str):
        super().__init__()
        self.bad_title = bad_title

    def evaluate(self, article):
        if article.title == self.bad_title:
            raise RuntimeError('boom')
        return super().evaluate(article)

    def summarize(self, article):
        if article.title == self.bad_title:
            raise RuntimeError('boom')
        return super().summarize(article)


def test_run_bounded_limits_in_flight_calls_and_keeps_order() -> None:
    lock = threading.Lock()
    state = {'active': 0, 'peak': 0}

    def work(value: int) -> int:
        with lock:
            state['active'] += 1
            state['peak'] = max(state['peak'], state['active'])
        time.sleep(0.02 * (5 - value % 5))
        with lock:
            state['active'] -= 1
        return value * 10

    results = run_bounded(work, range(9), max_workers=3)
    assert results == [value * 10 for value in range(9)]
    assert 1 <= state['peak'] <= 3


def test_run_bounded_empty_input() -> None:
    assert run_bounded(lambda item: item, [], max_workers=3) == []


def test_fetch_continues_after_failing_source_and_dedupes() -> None:
    collectors = {
        'first': StaticCollector([build_raw(0, url='https://a.example'), build_raw(1, url='https://b.example')]),
        'third': StaticCollector([build_raw(2, url='https://a.example'), build_raw(3, url='https://c.example')]),
    }

    def factory(source):
        if source.id == 'second':
            raise ValueError('no collector')
        return collectors[source.id]

    articles = fetch_articles([_source('first'), _source('second'), _source('third')], factory)
    assert [article.url for article in articles] == ['https://a.example', 'https://b.example', 'https://c.example']


def test_evaluate_failure_for_one_article_keeps_batch(caplog) -> None:
    articles = [build_raw(idx) for idx in range(5)]
    service = ScriptedAIService(fail_titles=['Article 2'])
    with caplog.at_level(logging.ERROR):
        evaluated = evaluate_articles(articles, service, concurrency=3)
    assert len(evaluated) == 5
    assert [article.id for article in evaluated] == [f'article-{idx}' for idx in range(5)]
    assert evaluated[2].scores == ArticleScore.default()
    assert evaluated[2].overall_score == 5.0
    for idx in (0, 1, 3, 4):
        assert evaluated[idx].overall_score == 8.0
    assert 'Article 2' in caplog.text


def test_evaluate_exception_escaping_service_gets_default_score() -> None:
    articles = [build_raw(idx) for idx in range(5)]
    evaluated = evaluate_articles(articles, ExplodingService('Article 4'), concurrency=3)
    assert len(evaluated) == 5
    assert evaluated[4].scores == ArticleScore.default()
    assert evaluated[0].overall_score == 8.0


def test_summarize_exception_gets_degraded_summary() -> None:
    service = ExplodingService('Article 1')
    scored = evaluate_articles([build_raw(0), build_raw(1)], ScriptedAIService())
    summarized = summarize_articles(scored, service, concurrency=3)
    assert len(summarized) == 2
    assert summarized[0].summary.level == 'expert'
    assert summarized[1].summary.why_it_matters == 'Article about Article 1'
    assert summarized[1].summary.level == 'advanced'


def test_generate_digest_end_to_end() -> None:
    sources = [_source('one', 'tech-deep'), _source('two', 'product'), _source('three', 'ai')]
    collectors = {
        source.id: StaticCollector(
            [build_raw(idx * 2 + offset, category=source.category) for offset in range(2)]
        )
        for idx, source in enumerate(sources)
    }
    service = ScriptedAIService()
    digest = generate_digest(
        sources,
        service,
        date(2026, 10, 18),
        collector_factory=lambda source: collectors[source.id],
    )
    assert digest is not None
    assert digest.headline.id == 'article-0'
    grouped = [article for section in digest.sections for article in section.articles]
    assert len(grouped) == 5
    assert all(len(section.articles) <= 3 for section in digest.sections)
    assert digest.stats.total_articles == 6
    assert digest.stats.average_score == 8.0
    assert digest.stats.estimated_read_time == 9


def test_generate_digest_caps_evaluate_and_summarize() -> None:
    service = ScriptedAIService()
    raw = [build_raw(idx) for idx in range(25)]
    digest = generate_digest([], service, date(2026, 10, 18), raw_articles=raw)
    evaluations = [prompt for prompt in service.prompts if 'Rate this article' in prompt]
    summaries = [prompt for prompt in service.prompts if 'structured summary' in prompt]
    assert len(evaluations) == 20
    assert len(summaries) == 15
    assert digest.stats.total_articles == 15


def test_generate_digest_respects_custom_settings() -> None:
    service = ScriptedAIService()
    settings = PipelineSettings(max_evaluate=4, max_summarize=2, ai_concurrency=1)
    digest = generate_digest([], service, date(2026, 10, 18), settings=settings, raw_articles=[build_raw(idx) for idx in range(6)])
    assert digest.stats.total_articles == 2


def test_generate_digest_returns_none_when_nothing_fetched(caplog) -> None:
    with caplog.at_level(logging.WARNING):
        digest = generate_digest(
            [_source('empty')],
            ScriptedAIService(),
            date(2026, 10, 18),
            collector_factory=lambda source: StaticCollector([]),
        )
    assert digest is None
    assert 'No articles found' in caplog.text


def test_generate_digest_returns_none_when_nothing_passes_threshold() -> None:
    service = ScriptedAIService(score_reply={'novelty': 6, 'depth': 7, 'practicality': 7, 'relevance': 7})
    digest = generate_digest([], service, date(2026, 10, 18), raw_articles=[build_raw(0), build_raw(1)])
    assert digest is None
    assert not [prompt for prompt in service.prompts if 'structured summary' in prompt]


def test_generate_digest_passes_logger_to_default_collectors(tmp_path, monkeypatch) -> None:
    seen = []

    def fake_create_collector(source, cache=None, session=None, logger=None):
        seen.append((source.id, logger))
        return StaticCollector([])

    monkeypatch.setattr(pipeline, 'create_collector', fake_create_collector)
    run_log = logging.getLogger('infohound.test-run')
    digest = generate_digest(
        [_source('alpha'), _source('beta')],
        ScriptedAIService(),
        date(2026, 10, 18),
        cache=ContentCache(str(tmp_path)),
        logger=run_log,
    )
    assert digest is None
    assert seen == [('alpha', run_log), ('beta', run_log)]
