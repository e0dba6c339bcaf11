##########################################################################################
#
# Script name: test_render.py
#
# Description: Markdown/HTML rendering and output persistence.
#
##########################################################################################

import json
from datetime import date
from pathlib import Path

from helpers import build_summarized

from infohound.curation import orchestrate
from infohound.render import render_html, render_markdown, write_outputs


def _digest():
    headline = build_summarized(0, 9.5, category='tech-deep', key_points=['H1', 'H2', 'H3', 'H4', 'H5'])
    body = build_summarized(1, 8.0, category='ai', key_points=['B1', 'B2', 'B3', 'B4'])
    other = build_summarized(2, 7.5, category='product')
    other.title = 'Pricing <script>alert(1)</script> & more'
    return orchestrate([headline, body, other], date(2026, 10, 18))


def test_markdown_contains_every_field() -> None:
    markdown = render_markdown(_digest())
    assert 'InfoHound - Sunday, October 18, 2026' in markdown
    assert '### Article 0' in markdown
    for point in ['H1', 'H2', 'H3', 'H4', 'H5']:
        assert f'- {point}' in markdown
    assert '- B3' in markdown
    assert '- B4' not in markdown
    assert '## 🤖 AI & Research' in markdown
    assert '## 🚀 Product & Startups' in markdown
    assert markdown.index('🚀 Product') < markdown.index('🤖 AI')
    assert '**Why it matters**: Why 1 matters' in markdown
    assert '**Score**: 8.0/10' in markdown
    assert '[Read the original](https://example.com/1)' in markdown
    assert '**Tags**: Tag' in markdown
    assert '| Articles | 3 |' in markdown
    assert '| Average score | 8.3/10 |' in markdown
    assert '| Reading time | 5 min |' in markdown


def test_html_escapes_article_text_and_limits_body_points() -> None:
    page = render_html(_digest())
    assert page.startswith('<!doctype html>')
    assert '<script>alert(1)</script>' not in page
    assert 'Pricing &lt;script&gt;alert(1)&lt;/script&gt; &amp; more' in page
    assert '<li>H5</li>' in page
    assert '<li>B3</li>' in page
    assert '<li>B4</li>' not in page
    assert 'level-advanced' in page
    assert '<strong>3</strong>' in page


def test_write_outputs_creates_files_and_prunes_archive(tmp_path: Path) -> None:
    output_dir = tmp_path / 'dist'
    archive_dir = tmp_path / 'data' / 'archive'
    archive_dir.mkdir(parents=True)
    (archive_dir / '2026-08-01.md').write_text('old', encoding='utf-8')
    (archive_dir / '2026-08-01.json').write_text('{}', encoding='utf-8')
    (archive_dir / '2026-10-10.md').write_text('recent', encoding='utf-8')
    (archive_dir / 'notes.txt').write_text('keep', encoding='utf-8')

    digest = _digest()
    paths = write_outputs(digest, str(output_dir), str(archive_dir), retention_days=30)

    assert (output_dir / '2026-10-18.md').read_text(encoding='utf-8') == render_markdown(digest)
    assert (output_dir / 'index.html').exists()
    assert (archive_dir / '2026-10-18.md').read_text(encoding='utf-8') == render_markdown(digest)
    payload = json.loads((archive_dir / '2026-10-18.json').read_text(encoding='utf-8'))
    assert payload['headline']['id'] == 'article-0'
    assert payload['stats'] == {'total_articles': 3, 'average_score': 8.3, 'estimated_read_time': 5}
    assert paths['html'] == output_dir / 'index.html'
    assert not (archive_dir / '2026-08-01.md').exists()
    assert not (archive_dir / '2026-08-01.json').exists()
    assert (archive_dir / '2026-10-10.md').exists()
    assert (archive_dir / 'notes.txt').exists()
