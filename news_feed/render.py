##########################################################################################
#
# Script name: render.py
#
# Description: HTML card-feed rendering and static snapshot output.
#
##########################################################################################

import json
from html import escape
from pathlib import Path

from .config import PLACEHOLDER_IMAGE
from .errors import Error
from .models import AggregationResult, NormalizedArticle
from .utils import parse_iso


# ****************************************************************************************
# Global data and configuration
# ****************************************************************************************

BADGE_LABELS = {
    'newsapi': 'NewsAPI',
    'mock': 'Mock',
    'reddit': 'Reddit',
}

PROVIDER_OPTIONS = (
    ('reddit', 'Reddit'),
    ('newsapi', 'NewsAPI (mock without key)'),
)

CSS = '''
:root {
  --bg-1: #fdf7ea;
  --bg-2: #e6f0ff;
  --surface: rgba(255, 255, 255, 0.82);
  --text: #1d212a;
  --muted: #5b6270;
  --stroke: rgba(31, 42, 64, 0.14);
  --accent: #004f8c;
  --accent-2: #008056;
}

* { box-sizing: border-box; }
html, body { margin: 0; padding: 0; }
body {
  font-family: "IBM Plex Sans", "Segoe UI", sans-serif;
  color: var(--text);
  background: linear-gradient(165deg, var(--bg-1), var(--bg-2));
  min-height: 100vh;
}

.wrap {
  max-width: 720px;
  margin: 0 auto;
  padding: 1.2rem 1rem 4rem;
}

.headline {
  font-family: "Space Grotesk", "Avenir Next", sans-serif;
  font-size: clamp(1.6rem, 3.2vw, 2.4rem);
  margin: 0 0 0.8rem;
}

.search {
  display: flex;
  gap: 0.5rem;
  margin-bottom: 1rem;
}

.search input[type="text"] { flex: 1; padding: 0.5rem; }

.dev-note {
  background: rgba(255, 255, 255, 0.68);
  border: 1px solid var(--stroke);
  border-radius: 12px;
  padding: 0.6rem 0.8rem;
  margin-bottom: 1rem;
  font-size: 0.85rem;
  color: var(--muted);
}

.dev-note pre { white-space: pre-wrap; font-size: 0.78rem; }

.feed {
  display: grid;
  gap: 0.95rem;
}

.card {
  background: var(--surface);
  border: 1px solid var(--stroke);
  border-radius: 14px;
  overflow: hidden;
  animation: fadeUp 0.45s ease both;
}

.card .thumb {
  width: 100%;
  aspect-ratio: 16 / 9;
  object-fit: cover;
  display: block;
  background: #eee;
}

.card-body { padding: 0.8rem 0.9rem; }

.card-top {
  display: flex;
  gap: 0.55rem;
  justify-content: space-between;
  align-items: center;
}

.subreddit {
  font-size: 0.8rem;
  font-weight: 700;
  color: var(--accent-2);
}

.badge {
  border-radius: 999px;
  border: 1px solid var(--stroke);
  padding: 0.1rem 0.5rem;
  font-size: 0.72rem;
  font-weight: 700;
}

.badge[data-source="reddit"] { background: #ff4500; color: #fff; border-color: #ff4500; }
.badge[data-source="newsapi"] { background: #004f8c; color: #fff; border-color: #004f8c; }
.badge[data-source="mock"] { background: #e9fff4; color: #00744f; border-color: #9ddac0; }

.title {
  margin: 0.4rem 0 0.2rem;
  line-height: 1.18;
}

.desc {
  margin: 0.3rem 0;
  font-size: 0.93rem;
}

.meta {
  font-size: 0.78rem;
  color: var(--muted);
  margin: 0.25rem 0 0;
}

.no-results {
  padding: 1.2rem;
  text-align: center;
  color: var(--muted);
}

@keyframes fadeUp {
  from { opacity: 0; transform: translateY(10px); }
  to { opacity: 1; transform: translateY(0); }
}
'''


# ****************************************************************************************
# Functions
# ****************************************************************************************


def format_date(value: str) -> str:
    if not value:
        return ''
    parsed = parse_iso(value)
    if parsed is None:
        return value
    return parsed.strftime('%Y-%m-%d %H:%M UTC')


def badge_label(fetched_from: str) -> str:
    return BADGE_LABELS.get(fetched_from or '', 'Unknown')


def _render_card(article: NormalizedArticle) -> str:
    image = article.image or PLACEHOLDER_IMAGE
    alt = article.title or 'article image'
    source = article.fetched_from or 'unknown'
    label = article.subreddit or article.source or ''
    meta = f'{article.source or "Unknown"} · {format_date(article.published_at)}'
    return (
        '<article class="card">'
        f'<img class="thumb" src="{escape(image)}" alt="{escape(alt)}" loading="lazy" />'
        '<div class="card-body">'
        '<div class="card-top">'
        f'<span class="subreddit">{escape(label)}</span>'
        f'<span class="badge" data-source="{escape(source)}">{escape(badge_label(article.fetched_from))}</span>'
        '</div>'
        f'<h3 class="title">{escape(article.title)}</h3>'
        f'<p class="desc">{escape(article.description)}</p>'
        f'<p class="meta">{escape(meta)}</p>'
        '</div>'
        '</article>'
    )


def _render_feed(articles: list[NormalizedArticle]) -> str:
    if not articles:
        return '<div class="no-results">No articles found.</div>'
    return ''.join(_render_card(article) for article in articles)


def _render_search(query: str, provider: str) -> str:
    options = ''.join(
        f'<option value="{escape(value)}"{" selected" if value == provider else ""}>{escape(label)}</option>'
        for value, label in PROVIDER_OPTIONS
    )
    return (
        '<form class="search" method="get" action="./">'
        f'<input type="text" name="q" value="{escape(query)}" placeholder="Search news" />'
        f'<select name="provider">{options}</select>'
        '<button type="submit">Search</button>'
        '</form>'
    )


def _render_dev_note(summary: str, details: dict) -> str:
    details_json = json.dumps(details, ensure_ascii=True, indent=2, default=str)
    return (
        '<aside class="dev-note">'
        f'<span class="dev-summary">{escape(summary)}</span>'
        '<details><summary>Show details</summary>'
        f'<pre>{escape(details_json)}</pre>'
        '</details>'
        '</aside>'
    )


def _render_page(body: str, query: str, provider: str, stylesheet: str) -> str:
    return f'''<!doctype html>
<html lang="en">
  <head>
    <meta charset="utf-8" />
    <meta name="viewport" content="width=device-width, initial-scale=1" />
    <title>News Feed</title>
    <link rel="stylesheet" href="{escape(stylesheet)}" />
  </head>
  <body>
    <div class="wrap">
      <header>
        <h1 class="headline">News Feed</h1>
        {_render_search(query, provider)}
      </header>
      {body}
    </div>
  </body>
</html>
'''


def render_page(
    result: AggregationResult,
    query: str = '',
    provider: str = '',
    stylesheet: str = './style.css',
) -> str:
    source = result.source or result.backend_info.get('provider') or 'unknown'
    summary = (
        f'Backend source: {source}. Returned {len(result.articles)} articles. '
        f'Query: "{query}" Provider: "{provider}"'
    )
    details = result.backend_info or {'source': result.source}
    body = _render_dev_note(summary, details) + f'<main class="feed">{_render_feed(result.articles)}</main>'
    return _render_page(body, query, provider, stylesheet)


def render_error_page(
    error: Error,
    query: str = '',
    provider: str = '',
    stylesheet: str = './style.css',
) -> str:
    body = (
        _render_dev_note(f'Request failed: {error.tag}', error.to_dict())
        + '<main class="feed"><div class="no-results">Error loading articles.</div></main>'
    )
    return _render_page(body, query, provider, stylesheet)


def write_site(result: AggregationResult, output_dir: str, query: str = '', provider: str = '') -> Path:
    root = Path(output_dir)
    data_dir = root / 'data'
    root.mkdir(parents=True, exist_ok=True)
    data_dir.mkdir(parents=True, exist_ok=True)

    (data_dir / 'news.json').write_text(
        json.dumps(result.to_dict(), ensure_ascii=True, indent=2), encoding='utf-8'
    )
    (root / 'style.css').write_text(CSS.strip() + '\n', encoding='utf-8')
    index_path = root / 'index.html'
    index_path.write_text(render_page(result, query=query, provider=provider), encoding='utf-8')
    return index_path
