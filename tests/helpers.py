##########################################################################################
#
# Script name: helpers.py
#
# Description: Shared builders for articles and a scripted AI service.
#
##########################################################################################

import json
from datetime import datetime, timezone

from infohound.config import AIConfig
from infohound.models import ArticleScore, ArticleSummary, ArticleWithScore, ArticleWithSummary, RawArticle
from infohound.summarizer import AIService


class ScriptedAIService(AIService):
    '''AIService that answers with canned JSON replies instead of calling an SDK client.'''

    def __init__(self, score_reply=None, summary_reply=None, fail_titles=()):
        super().__init__(AIConfig(provider='anthropic', api_key='test', model='test-model'))
        self.score_reply = score_reply or {'novelty': 8, 'depth': 8, 'practicality': 8, 'relevance': 8}
        self.summary_reply = summary_reply or {
            'whyItMatters': 'It changes how teams ship.',
            'oneSentenceSummary': 'A concise core point.',
            'keyPoints': ['First insight', 'Second insight', 'Third insight'],
            'background': 'Some context.',
            'tags': ['Backend', 'AI'],
            'level': 'expert',
        }
        self.fail_titles = set(fail_titles)
        self.prompts: list[str] = []

    def complete(self, prompt: str) -> str:
        self.prompts.append(prompt)
        for title in self.fail_titles:
            if f'Title: {title}\n' in prompt:
                raise RuntimeError(f'simulated provider failure for {title}')
        if 'Rate this article' in prompt:
            return f'```json\n{json.dumps(self.score_reply)}\n```'
        return f'Here you go: {json.dumps(self.summary_reply)}'


def build_raw(idx: int = 0, category: str = 'ai', url: str | None = None, **overrides) -> RawArticle:
    fields = {
        'id': f'article-{idx}',
        'title': f'Article {idx}',
        'url': url or f'https://example.com/{idx}',
        'published_at': datetime(2026, 10, 18, 8, 0, tzinfo=timezone.utc),
        'source': 'example',
        'source_name': 'Example',
        'category': category,
        'content': f'Body of article {idx}',
        'description': f'Description {idx}',
    }
    fields.update(overrides)
    return RawArticle(**fields)


def build_summarized(idx: int, score: float, category: str = 'ai', key_points=None) -> ArticleWithSummary:
    scored = ArticleWithScore.from_raw(build_raw(idx, category=category), ArticleScore(score, score, score, score, score))
    summary = ArticleSummary(
        why_it_matters=f'Why {idx} matters',
        one_sentence_summary=f'Summary {idx}',
        key_points=key_points or ['Point A', 'Point B', 'Point C'],
        tags=['Tag'],
        level='advanced',
    )
    return ArticleWithSummary.from_scored(scored, summary)
