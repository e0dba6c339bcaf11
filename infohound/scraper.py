##########################################################################################
#
# Script name: scraper.py
#
# Description: Full-text extraction from article pages for the collectors.
#
##########################################################################################

import logging

from bs4 import BeautifulSoup

from .cache import ContentCache
from .utils import normalize_whitespace


# ****************************************************************************************
# Global data and configuration
# ****************************************************************************************

log = logging.getLogger(__name__)

SCRAPER_USER_AGENT = 'Mozilla/5.0 (compatible; InfoHound/1.0)'
SCRAPE_TIMEOUT_SECONDS = 10
SCRAPE_CACHE_TTL_HOURS = 24

NOISE_SELECTORS = 'script, style, nav, footer, aside, .ads, .ad, .comments, .comment'
CONTENT_SELECTORS = ['article', '[role="main"]', '.content', '.post', 'main', 'body']


# ****************************************************************************************
# Functions
# ****************************************************************************************


def extract_main_text(page_html: str, max_chars: int) -> str:
    soup = BeautifulSoup(page_html, 'html.parser')
    for node in soup.select(NOISE_SELECTORS):
        node.decompose()
    for selector in CONTENT_SELECTORS:
        text = ' '.join(node.get_text(' ') for node in soup.select(selector))
        text = normalize_whitespace(text)
        if text:
            return text[:max_chars]
    return ''


def scrape_article(url: str, session, cache: ContentCache, max_chars: int) -> str:
    '''
    Fetch url and return its main text, trimmed to max_chars.

    Results are cached for 24 hours under the URL. HTTP and network errors
    propagate so the caller can decide what to keep.
    '''

    def _fetch() -> str:
        response = session.get(
            url,
            timeout=SCRAPE_TIMEOUT_SECONDS,
            headers={'User-Agent': SCRAPER_USER_AGENT},
        )
        response.raise_for_status()
        return extract_main_text(response.text, max_chars)

    content = cache.get_or_fetch(url, _fetch, SCRAPE_CACHE_TTL_HOURS)
    return content[:max_chars]
