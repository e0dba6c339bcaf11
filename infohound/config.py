##########################################################################################
#
# Script name: config.py
#
# Description: Static configuration, category taxonomy, and config loading for InfoHound.
#
##########################################################################################

import os
from dataclasses import dataclass
from typing import Mapping

import yaml

from .models import AppConfig, AppSettings, SourceConfig, SourceFilter


# ****************************************************************************************
# Exceptions
# ****************************************************************************************


class ConfigError(Exception):
    '''
    Raised when configuration is missing or invalid. Fatal before the pipeline starts.
    '''


# ****************************************************************************************
# Global data and configuration
# ****************************************************************************************


@dataclass(frozen=True)
class Category:
    order: int
    slug: str
    name: str
    icon: str


CATEGORIES = [
    Category(order=0, slug='tech-deep', name='Deep Tech', icon='🔥'),
    Category(order=1, slug='product', name='Product & Startups', icon='🚀'),
    Category(order=2, slug='ai', name='AI & Research', icon='🤖'),
    Category(order=3, slug='chinese', name='Chinese Picks', icon='🌏'),
]

CATEGORY_BY_SLUG = {category.slug: category for category in CATEGORIES}

LEVELS = ('beginner', 'advanced', 'expert')
DEFAULT_LEVEL = 'advanced'

MAX_SECTION_ARTICLES = 3
READ_MINUTES_PER_ARTICLE = 1.5


@dataclass(frozen=True)
class PipelineSettings:
    max_evaluate: int = 20
    max_summarize: int = 15
    quality_threshold: float = 7.0
    ai_concurrency: int = 3

    def __post_init__(self) -> None:
        if self.ai_concurrency < 1:
            raise ConfigError('ai_concurrency must be at least 1')


DEFAULT_CONFIG_PATH = 'config/sources.json'
DEFAULT_MAX_PER_SOURCE = 10

DEFAULT_MAX_TOKENS = 2000
DEFAULT_TEMPERATURE = 0.3
LEGACY_ANTHROPIC_MODEL = 'claude-3-5-sonnet-20241022'

# provider -> (base_url, model)
PROVIDER_DEFAULTS: dict[str, tuple[str | None, str | None]] = {
    'anthropic': (None, LEGACY_ANTHROPIC_MODEL),
    'openai': (None, 'gpt-4o-mini'),
    'openrouter': ('https://openrouter.ai/api/v1', 'anthropic/claude-3.5-sonnet'),
    'deepseek': ('https://api.deepseek.com', 'deepseek-chat'),
    'custom': (None, None),
}


@dataclass(frozen=True)
class AIConfig:
    provider: str
    api_key: str
    model: str
    base_url: str | None = None
    max_tokens: int = DEFAULT_MAX_TOKENS
    temperature: float = DEFAULT_TEMPERATURE


# ****************************************************************************************
# Functions
# ****************************************************************************************


def _env_number(env: Mapping[str, str], key: str, default, cast):
    value = (env.get(key) or '').strip()
    if not value:
        return default
    try:
        return cast(value)
    except ValueError as exc:
        raise ConfigError(f'{key} must be numeric, got {value!r}') from exc


def get_ai_config(env: Mapping[str, str] | None = None) -> AIConfig:
    if env is None:
        env = os.environ

    api_key = (env.get('AI_API_KEY') or '').strip()
    legacy_key = (env.get('ANTHROPIC_API_KEY') or '').strip()
    if not api_key:
        if legacy_key:
            return AIConfig(
                provider='anthropic',
                api_key=legacy_key,
                model=LEGACY_ANTHROPIC_MODEL,
                max_tokens=DEFAULT_MAX_TOKENS,
                temperature=DEFAULT_TEMPERATURE,
            )
        raise ConfigError('AI_API_KEY (or legacy ANTHROPIC_API_KEY) environment variable is required')

    provider = (env.get('AI_PROVIDER') or 'anthropic').strip().lower()
    if provider not in PROVIDER_DEFAULTS:
        raise ConfigError(f'Unknown AI provider: {provider}')
    default_base_url, default_model = PROVIDER_DEFAULTS[provider]
    base_url = (env.get('AI_BASE_URL') or '').strip() or default_base_url
    model = (env.get('AI_MODEL') or '').strip() or default_model
    if provider == 'custom' and not base_url:
        raise ConfigError('AI_BASE_URL is required for the custom provider')
    if not model:
        raise ConfigError(f'AI_MODEL is required for provider {provider}')

    return AIConfig(
        provider=provider,
        api_key=api_key,
        model=model,
        base_url=base_url,
        max_tokens=_env_number(env, 'AI_MAX_TOKENS', DEFAULT_MAX_TOKENS, int),
        temperature=_env_number(env, 'AI_TEMPERATURE', DEFAULT_TEMPERATURE, float),
    )


def _parse_filter(raw) -> SourceFilter | None:
    if not raw:
        return None
    if not isinstance(raw, dict):
        raise ConfigError('source filter must be a mapping')
    min_score = raw.get('minScore', raw.get('min_score'))
    return SourceFilter(
        min_score=int(min_score) if min_score is not None else None,
        keywords=list(raw.get('keywords') or []),
        exclude_keywords=list(raw.get('excludeKeywords') or raw.get('exclude_keywords') or []),
    )


def _parse_source(raw, default_max: int) -> SourceConfig:
    if not isinstance(raw, dict):
        raise ConfigError(f'source entry must be a mapping, got {type(raw).__name__}')
    source_id = str(raw.get('id') or '').strip()
    url = str(raw.get('url') or '').strip()
    if not source_id or not url:
        raise ConfigError(f'source entry requires id and url: {raw!r}')
    category = raw.get('category', 'tech-deep')
    if category not in CATEGORY_BY_SLUG:
        raise ConfigError(f'source {source_id} has unknown category {category!r}')
    max_per_day = raw.get('maxPerDay', raw.get('max_per_day', default_max))
    return SourceConfig(
        id=source_id,
        name=str(raw.get('name') or source_id),
        type=str(raw.get('type') or 'rss').lower(),
        url=url,
        category=category,
        weight=float(raw.get('weight', 1.0)),
        max_per_day=int(max_per_day),
        filter=_parse_filter(raw.get('filter')),
    )


def load_config(path: str = DEFAULT_CONFIG_PATH) -> AppConfig:
    '''
    Load the source document (JSON or YAML) into an AppConfig.

    Raises ConfigError when the file is missing or malformed.
    '''
    try:
        with open(path, 'r', encoding='utf-8') as handle:
            payload = yaml.safe_load(handle) or {}
    except OSError as exc:
        raise ConfigError(f'Cannot read source config {path}: {exc}') from exc
    except yaml.YAMLError as exc:
        raise ConfigError(f'Cannot parse source config {path}: {exc}') from exc

    if not isinstance(payload, dict):
        raise ConfigError(f'Source config {path} must be a mapping')

    raw_settings = payload.get('settings') or {}
    settings = AppSettings(
        max_articles_per_source=int(raw_settings.get('maxArticlesPerSource', DEFAULT_MAX_PER_SOURCE)),
        max_articles_per_day=int(raw_settings.get('maxArticlesPerDay', 20)),
        retention_days=int(raw_settings.get('retentionDays', 30)),
        categories=list(raw_settings.get('categories') or [category.slug for category in CATEGORIES]),
    )

    sources = payload.get('sources', [])
    if not isinstance(sources, list):
        raise ConfigError('config.sources must be a list')
    return AppConfig(
        sources=[_parse_source(raw, settings.max_articles_per_source) for raw in sources],
        settings=settings,
    )
