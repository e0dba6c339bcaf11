##########################################################################################
#
# Script name: render.py
#
# Description: Markdown/HTML digest rendering and archive persistence.
#
##########################################################################################

import json
import logging
import re
from datetime import date, timedelta
from html import escape
from pathlib import Path

from .models import ArticleWithSummary, DailyDigest, Section


# ****************************************************************************************
# Global data and configuration
# ****************************************************************************************

log = logging.getLogger(__name__)

BODY_KEY_POINTS = 3
LEVEL_EMOJI = {
    'beginner': '🟢',
    'advanced': '🟡',
    'expert': '🔴',
}
ARCHIVE_NAME_RE = re.compile(r'^(\d{4}-\d{2}-\d{2})\.(md|json)$')

CSS = '''
* { box-sizing: border-box; }
body {
  font-family: -apple-system, BlinkMacSystemFont, "Segoe UI", Roboto, sans-serif;
  line-height: 1.6;
  max-width: 680px;
  margin: 0 auto;
  padding: 20px;
  color: #333;
  background: #f5f5f5;
}
.container {
  background: white;
  padding: 40px;
  border-radius: 8px;
  box-shadow: 0 2px 4px rgba(0, 0, 0, 0.1);
}
h1 { color: #1a1a1a; font-size: 28px; margin-bottom: 8px; }
.subtitle { color: #666; font-size: 14px; margin-bottom: 30px; }
.headline { background: #f8f9fa; padding: 24px; border-radius: 8px; margin: 24px 0; }
.section { margin: 32px 0; }
.section-title { font-size: 20px; color: #1a1a1a; margin-bottom: 16px; padding-bottom: 8px; border-bottom: 2px solid #e9ecef; }
.article { margin: 20px 0; padding: 16px; border-left: 4px solid #dee2e6; }
.article.tech-deep { border-left-color: #2563eb; }
.article.product { border-left-color: #f59e0b; }
.article.ai { border-left-color: #8b5cf6; }
.article.chinese { border-left-color: #10b981; }
.article-title { font-size: 16px; font-weight: 600; margin-bottom: 8px; }
.article-meta { font-size: 12px; color: #6b7280; margin-bottom: 8px; }
.article-summary { font-size: 14px; color: #4b5563; margin-bottom: 12px; }
.key-points { margin: 12px 0; padding-left: 16px; }
.key-points li { margin: 4px 0; font-size: 14px; color: #374151; }
.level-badge { display: inline-block; padding: 2px 8px; border-radius: 4px; font-size: 11px; margin-left: 8px; }
.level-beginner { background: #d1fae5; color: #065f46; }
.level-advanced { background: #fef3c7; color: #92400e; }
.level-expert { background: #fee2e2; color: #991b1b; }
.tag { display: inline-block; padding: 2px 8px; background: #f3f4f6; border-radius: 4px; font-size: 11px; color: #6b7280; margin-right: 4px; }
a { color: #2563eb; text-decoration: none; }
a:hover { text-decoration: underline; }
.stats { background: #f8f9fa; padding: 16px; border-radius: 8px; margin-top: 24px; }
.stats table { width: 100%; font-size: 14px; }
.footer { text-align: center; margin-top: 32px; padding-top: 24px; border-top: 1px solid #e5e7eb; font-size: 12px; color: #9ca3af; }
@media (max-width: 600px) {
  body { padding: 10px; }
  .container { padding: 20px; }
}
'''


# ****************************************************************************************
# Functions
# ****************************************************************************************


def format_date(value: date) -> str:
    return value.strftime('%A, %B %d, %Y')


def _bullets(points: list[str]) -> str:
    return '\n'.join(f'- {point}' for point in points)


def _render_headline_md(article: ArticleWithSummary) -> str:
    summary = article.summary
    lines = [
        '## 🌟 Headline',
        '',
        f'### {article.title}',
        f'**Source**: {article.source_name} | **Score**: {article.overall_score:.1f}/10 '
        f'| **Level**: {LEVEL_EMOJI.get(summary.level, "")} {summary.level}',
        '',
        f'**Why it matters**: {summary.why_it_matters}',
        '',
        f'**In one sentence**: {summary.one_sentence_summary}',
        '',
        '**Key points**:',
        _bullets(summary.key_points),
    ]
    if summary.background:
        lines += ['', f'**Background**: {summary.background}']
    lines += [
        '',
        f'**Tags**: {", ".join(summary.tags)}',
        '',
        f'[Read the original]({article.url})',
    ]
    return '\n'.join(lines)


def _render_article_md(article: ArticleWithSummary) -> str:
    summary = article.summary
    return '\n'.join(
        [
            f'### {LEVEL_EMOJI.get(summary.level, "")} {article.title}',
            f'**Source**: {article.source_name} | **Score**: {article.overall_score:.1f}/10',
            '',
            f'**Why it matters**: {summary.why_it_matters}',
            '',
            '**Key points**:',
            _bullets(summary.key_points[:BODY_KEY_POINTS]),
            '',
            f'**Tags**: {", ".join(summary.tags)}',
            '',
            f'[Read the original]({article.url})',
        ]
    )


def _render_section_md(section: Section) -> str:
    articles = '\n\n'.join(_render_article_md(article) for article in section.articles)
    return f'## {section.icon} {section.name}\n\n{articles}\n'


def render_markdown(digest: DailyDigest) -> str:
    stats = digest.stats
    blocks = [
        f'# 📰 InfoHound - {format_date(digest.date)}',
        '',
        f'> {stats.total_articles} curated articles today, about {stats.estimated_read_time} minutes of reading',
        '',
        '---',
        '',
        _render_headline_md(digest.headline),
        '',
        '---',
        '',
    ]
    if digest.sections:
        blocks += ['\n---\n\n'.join(_render_section_md(section) for section in digest.sections), '---', '']
    blocks += [
        '## 📊 Stats',
        '',
        '| Metric | Value |',
        '|--------|-------|',
        f'| Articles | {stats.total_articles} |',
        f'| Average score | {stats.average_score}/10 |',
        f'| Reading time | {stats.estimated_read_time} min |',
        '',
        '---',
        '',
        '*Generated automatically by InfoHound. Curated by AI, read by humans.*',
        '',
    ]
    return '\n'.join(blocks)


def _render_article_html(article: ArticleWithSummary, headline: bool = False) -> str:
    summary = article.summary
    points = summary.key_points if headline else summary.key_points[:BODY_KEY_POINTS]
    points_html = ''.join(f'<li>{escape(point)}</li>' for point in points)
    tags_html = ''.join(f'<span class="tag">{escape(tag)}</span>' for tag in summary.tags)
    classes = f'article {escape(article.category)}'
    if headline:
        classes = f'headline {classes}'
    extra = ''
    if headline:
        extra = f'<div class="article-summary"><strong>In one sentence:</strong> {escape(summary.one_sentence_summary)}</div>'
        if summary.background:
            extra += f'<div class="article-summary"><strong>Background:</strong> {escape(summary.background)}</div>'
    return (
        f'<div class="{classes}">'
        f'<div class="article-title">{escape(article.title)}</div>'
        f'<div class="article-meta">Source: {escape(article.source_name)} · '
        f'Score: {article.overall_score:.1f}/10'
        f'<span class="level-badge level-{escape(summary.level)}">{escape(summary.level)}</span></div>'
        f'<div class="article-summary"><strong>Why it matters:</strong> {escape(summary.why_it_matters)}</div>'
        f'{extra}'
        f'<ul class="key-points">{points_html}</ul>'
        f'<div class="tags">{tags_html}</div>'
        f'<p><a href="{escape(article.url)}" target="_blank" rel="noopener noreferrer">Read the original →</a></p>'
        '</div>'
    )


def _render_section_html(section: Section) -> str:
    articles_html = ''.join(_render_article_html(article) for article in section.articles)
    return (
        '<div class="section">'
        f'<div class="section-title">{escape(section.icon)} {escape(section.name)}</div>'
        f'{articles_html}'
        '</div>'
    )


def render_html(digest: DailyDigest) -> str:
    stats = digest.stats
    day = escape(format_date(digest.date))
    sections_html = ''.join(_render_section_html(section) for section in digest.sections)
    return f'''<!doctype html>
<html lang="en">
  <head>
    <meta charset="utf-8" />
    <meta name="viewport" content="width=device-width, initial-scale=1" />
    <title>InfoHound - {day}</title>
    <style>{CSS}</style>
  </head>
  <body>
    <div class="container">
      <h1>📰 InfoHound</h1>
      <p class="subtitle">{day} · {stats.total_articles} articles · about {stats.estimated_read_time} min read</p>
      {_render_article_html(digest.headline, headline=True)}
      {sections_html}
      <div class="stats">
        <table>
          <tr><td>Articles</td><td><strong>{stats.total_articles}</strong></td></tr>
          <tr><td>Average score</td><td><strong>{stats.average_score}/10</strong></td></tr>
          <tr><td>Reading time</td><td><strong>{stats.estimated_read_time} min</strong></td></tr>
        </table>
      </div>
      <div class="footer">Generated {escape(digest.generated_at)} by InfoHound. Curated by AI, read by humans.</div>
    </div>
  </body>
</html>
'''


def _article_to_json(article: ArticleWithSummary) -> dict:
    summary = article.summary
    return {
        'id': article.id,
        'title': article.title,
        'url': article.url,
        'source': article.source,
        'source_name': article.source_name,
        'category': article.category,
        'published_at': article.published_at.isoformat() if article.published_at else None,
        'overall_score': article.overall_score,
        'scores': {
            'novelty': article.scores.novelty,
            'depth': article.scores.depth,
            'practicality': article.scores.practicality,
            'relevance': article.scores.relevance,
            'overall': article.scores.overall,
        },
        'summary': {
            'why_it_matters': summary.why_it_matters,
            'one_sentence_summary': summary.one_sentence_summary,
            'key_points': summary.key_points,
            'background': summary.background,
            'tags': summary.tags,
            'level': summary.level,
        },
    }


def digest_to_json(digest: DailyDigest) -> dict:
    return {
        'date': digest.date.isoformat(),
        'generated_at': digest.generated_at,
        'headline': _article_to_json(digest.headline),
        'sections': [
            {
                'slug': section.slug,
                'name': section.name,
                'icon': section.icon,
                'articles': [_article_to_json(article) for article in section.articles],
            }
            for section in digest.sections
        ],
        'stats': {
            'total_articles': digest.stats.total_articles,
            'average_score': digest.stats.average_score,
            'estimated_read_time': digest.stats.estimated_read_time,
        },
    }


def prune_archive(archive_dir: Path, today: date, retention_days: int) -> list[Path]:
    cutoff = today - timedelta(days=retention_days)
    removed: list[Path] = []
    for path in sorted(archive_dir.iterdir()):
        match = ARCHIVE_NAME_RE.match(path.name)
        if not match:
            continue
        try:
            archived_on = date.fromisoformat(match.group(1))
        except ValueError:
            continue
        if archived_on < cutoff:
            path.unlink()
            removed.append(path)
    if removed:
        log.info('Pruned %d archive file(s) older than %s', len(removed), cutoff)
    return removed


def write_outputs(
    digest: DailyDigest,
    output_dir: str,
    archive_dir: str,
    retention_days: int | None = None,
) -> dict[str, Path]:
    root = Path(output_dir)
    archive = Path(archive_dir)
    root.mkdir(parents=True, exist_ok=True)
    archive.mkdir(parents=True, exist_ok=True)

    day = digest.date.isoformat()
    markdown = render_markdown(digest)
    paths = {
        'markdown': root / f'{day}.md',
        'html': root / 'index.html',
        'archive': archive / f'{day}.md',
        'archive_json': archive / f'{day}.json',
    }
    paths['markdown'].write_text(markdown, encoding='utf-8')
    log.info('Saved Markdown: %s', paths['markdown'])
    paths['html'].write_text(render_html(digest), encoding='utf-8')
    log.info('Saved HTML: %s', paths['html'])
    paths['archive'].write_text(markdown, encoding='utf-8')
    paths['archive_json'].write_text(
        json.dumps(digest_to_json(digest), ensure_ascii=False, indent=2), encoding='utf-8'
    )

    if retention_days is not None:
        prune_archive(archive, digest.date, retention_days)
    return paths
