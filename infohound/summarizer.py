##########################################################################################
#
# Script name: summarizer.py
#
# Description: Article scoring and summarization over Anthropic and OpenAI-compatible models.
#
##########################################################################################

import json
import logging
import re
from typing import Any, NamedTuple

import anthropic
from openai import OpenAI

from .config import DEFAULT_LEVEL, LEVELS, AIConfig, ConfigError
from .models import ArticleScore, ArticleSummary, ArticleWithScore, RawArticle


# ****************************************************************************************
# Global data and configuration
# ****************************************************************************************

log = logging.getLogger(__name__)

REQUEST_TIMEOUT_SECONDS = 60
EVALUATION_CONTENT_CHARS = 8000
SUMMARY_CONTENT_CHARS = 10000
MAX_KEY_POINTS = 5
MAX_TAGS = 4

FENCED_BLOCK_RE = re.compile(r'```(?:json)?\s*([\s\S]*?)```')
BRACE_SPAN_RE = re.compile(r'\{[\s\S]*\}')

SCORE_FIELDS = ('novelty', 'depth', 'practicality', 'relevance')

EVALUATION_PROMPT = '''You are a senior tech editor evaluating article quality.

Article Title: {title}
Article Content: {content}
Source: {source_name}
Category: {category}

Rate this article on 4 dimensions (1-10 scale):
1. novelty: How new/unique is the information?
2. depth: How deep is the analysis? Does it have data/cases?
3. practicality: Can readers get actionable insights?
4. relevance: How relevant for a tech-savvy reader interested in {category}?

Respond in JSON format:
{{
  "novelty": 8,
  "depth": 7,
  "practicality": 9,
  "relevance": 8,
  "reasoning": "Brief explanation of your ratings"
}}'''

SUMMARY_PROMPT = '''Create a structured summary for this tech article.

Title: {title}
Content: {content}
Source: {source_name}
Quality Score: {score}/10

Generate:
1. whyItMatters: One sentence explaining WHY this is worth reading (not just what it's about)
2. oneSentenceSummary: The core point in one sentence
3. keyPoints: 3-5 bullet points with real insights (include specific data/cases when available)
4. background: Brief context if needed to understand (optional)
5. tags: 2-4 technical tags (e.g., "AI", "Backend", "React", "Security")
6. level: "beginner", "advanced", or "expert"

Respond in JSON format:
{{
  "whyItMatters": "...",
  "oneSentenceSummary": "...",
  "keyPoints": ["...", "...", "..."],
  "background": "...",
  "tags": ["tag1", "tag2"],
  "level": "advanced"
}}'''


# ****************************************************************************************
# Functions
# ****************************************************************************************


class JsonExtraction(NamedTuple):
    value: Any = None
    error: str | None = None

    @property
    def ok(self) -> bool:
        return self.error is None


def extract_json(text: str) -> JsonExtraction:
    '''
    Pull a JSON value out of a free-text model reply.

    A fenced code block wins when present; otherwise the greedy span from the
    first "{" to the last "}" is tried. Never raises.
    '''
    text = text or ''
    fenced = FENCED_BLOCK_RE.search(text)
    if fenced:
        candidate = fenced.group(1).strip()
    else:
        braces = BRACE_SPAN_RE.search(text)
        if not braces:
            return JsonExtraction(error='no JSON found')
        candidate = braces.group(0)
    try:
        return JsonExtraction(value=json.loads(candidate))
    except ValueError as exc:
        return JsonExtraction(error=f'invalid JSON: {exc}')


def _rating(payload: dict, key: str) -> float:
    value = float(payload[key])
    return min(10.0, max(1.0, value))


def parse_scores(payload: Any) -> ArticleScore:
    if not isinstance(payload, dict):
        raise ValueError('score reply is not a JSON object')
    ratings = [_rating(payload, key) for key in SCORE_FIELDS]
    return ArticleScore.from_ratings(*ratings)


def coerce_level(level: Any) -> str:
    return level if level in LEVELS else DEFAULT_LEVEL


def parse_summary(payload: Any) -> ArticleSummary:
    if not isinstance(payload, dict):
        raise ValueError('summary reply is not a JSON object')
    why = str(payload.get('whyItMatters') or '').strip()
    one_sentence = str(payload.get('oneSentenceSummary') or '').strip()
    key_points = payload.get('keyPoints')
    if not why or not one_sentence or not isinstance(key_points, list) or not key_points:
        raise ValueError('summary reply is missing required fields')
    tags = payload.get('tags') if isinstance(payload.get('tags'), list) else []
    background = str(payload.get('background') or '').strip() or None
    return ArticleSummary(
        why_it_matters=why,
        one_sentence_summary=one_sentence,
        key_points=[str(point) for point in key_points[:MAX_KEY_POINTS]],
        tags=[str(tag) for tag in tags[:MAX_TAGS]],
        level=coerce_level(payload.get('level')),
        background=background,
    )


def default_summary(article: RawArticle) -> ArticleSummary:
    return ArticleSummary(
        why_it_matters=f'Article about {article.title}',
        one_sentence_summary=article.description or article.title,
        key_points=[article.description or 'See original article'],
        tags=[article.category],
        level=DEFAULT_LEVEL,
    )


def build_evaluation_prompt(article: RawArticle) -> str:
    return EVALUATION_PROMPT.format(
        title=article.title,
        content=article.content[:EVALUATION_CONTENT_CHARS] or article.description or 'N/A',
        source_name=article.source_name,
        category=article.category,
    )


def build_summary_prompt(article: ArticleWithScore) -> str:
    return SUMMARY_PROMPT.format(
        title=article.title,
        content=article.content[:SUMMARY_CONTENT_CHARS] or article.description or 'N/A',
        source_name=article.source_name,
        score=article.overall_score,
    )


# ****************************************************************************************
# Classes
# ****************************************************************************************


class AIService:
    '''
    Provider-agnostic scoring and summarization.

    Subclasses implement complete(prompt) for one backend. evaluate() and
    summarize() never raise: any failure yields ArticleScore.default() or
    default_summary(article).
    '''

    def __init__(self, config: AIConfig, logger: logging.Logger | None = None) -> None:
        self.config = config
        self.log = logger or log

    def complete(self, prompt: str) -> str:
        raise NotImplementedError

    def evaluate(self, article: RawArticle) -> ArticleScore:
        try:
            reply = self.complete(build_evaluation_prompt(article))
            extraction = extract_json(reply)
            if not extraction.ok:
                raise ValueError(extraction.error)
            return parse_scores(extraction.value)
        except Exception as exc:  # noqa: BLE001
            self.log.error('Error evaluating article %s: %s', article.title, exc)
            return ArticleScore.default()

    def summarize(self, article: ArticleWithScore) -> ArticleSummary:
        try:
            reply = self.complete(build_summary_prompt(article))
            extraction = extract_json(reply)
            if not extraction.ok:
                raise ValueError(extraction.error)
            return parse_summary(extraction.value)
        except Exception as exc:  # noqa: BLE001
            self.log.error('Error summarizing article %s: %s', article.title, exc)
            return default_summary(article)


class AnthropicService(AIService):

    def __init__(self, config: AIConfig, client=None, logger: logging.Logger | None = None) -> None:
        super().__init__(config, logger=logger)
        self.client = client or anthropic.Anthropic(
            api_key=config.api_key,
            base_url=config.base_url,
            timeout=REQUEST_TIMEOUT_SECONDS,
        )

    def complete(self, prompt: str) -> str:
        response = self.client.messages.create(
            model=self.config.model,
            max_tokens=self.config.max_tokens,
            temperature=self.config.temperature,
            messages=[{'role': 'user', 'content': prompt}],
        )
        return ''.join(block.text for block in response.content if getattr(block, 'type', '') == 'text')


class OpenAICompatibleService(AIService):
    '''OpenAI, OpenRouter, DeepSeek, and any custom chat-completions endpoint.'''

    JSON_MODE_PROVIDERS = {'openai', 'deepseek'}

    def __init__(self, config: AIConfig, client=None, logger: logging.Logger | None = None) -> None:
        super().__init__(config, logger=logger)
        self.client = client or OpenAI(
            api_key=config.api_key,
            base_url=config.base_url,
            timeout=REQUEST_TIMEOUT_SECONDS,
        )
        self.json_mode = config.provider in self.JSON_MODE_PROVIDERS

    def complete(self, prompt: str) -> str:
        kwargs = {}
        if self.json_mode:
            kwargs['response_format'] = {'type': 'json_object'}
        response = self.client.chat.completions.create(
            model=self.config.model,
            max_tokens=self.config.max_tokens,
            temperature=self.config.temperature,
            messages=[{'role': 'user', 'content': prompt}],
            **kwargs,
        )
        return response.choices[0].message.content or ''


SERVICES_BY_PROVIDER: dict[str, type[AIService]] = {
    'anthropic': AnthropicService,
    'openai': OpenAICompatibleService,
    'openrouter': OpenAICompatibleService,
    'deepseek': OpenAICompatibleService,
    'custom': OpenAICompatibleService,
}


def create_ai_service(config: AIConfig, client=None, logger: logging.Logger | None = None) -> AIService:
    service_cls = SERVICES_BY_PROVIDER.get(config.provider)
    if service_cls is None:
        raise ConfigError(f'Unknown AI provider: {config.provider}')
    (logger or log).info('Creating AI service: %s with model %s', config.provider, config.model)
    return service_cls(config, client=client, logger=logger)
