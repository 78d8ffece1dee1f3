##########################################################################################
#
# Script name: config.py
#
# Description: Static configuration, sample catalog, and runtime settings for the news feed.
#
##########################################################################################

import logging
import os
from dataclasses import dataclass, replace

import yaml
from dotenv import load_dotenv


# ****************************************************************************************
# Global data and configuration
# ****************************************************************************************

log = logging.getLogger(__name__)

NEWSAPI_TOP_HEADLINES_URL = 'https://newsapi.org/v2/top-headlines'
REDDIT_SEARCH_URL = 'https://www.reddit.com/search.json'
REDDIT_HOT_URL = 'https://www.reddit.com/r/{feed}/hot.json'
REDDIT_FANOUT_DESCRIPTOR = 'multiple r/*/hot'

USER_AGENT = 'news-feed-app/1.0'
PAGE_SIZE = 30
NEWSAPI_LANGUAGE = 'en'
DEFAULT_REQUEST_TIMEOUT = 15.0
DEFAULT_HOST = '127.0.0.1'
DEFAULT_PORT = 3000

MOCK_NOTE = 'Sample/mock data returned because NEWSAPI_KEY is not set'
PLACEHOLDER_IMAGE = 'https://via.placeholder.com/800x450.png?text=No+Image'


@dataclass(frozen=True)
class SampleArticle:
    title: str
    description: str
    image: str
    source: str
    age_hours: float = 0.0


REDDIT_NEWS_FEEDS = ('news', 'worldnews', 'technology', 'politics', 'business')

SAMPLE_CATALOG = (
    SampleArticle(
        title='Tech startups in the Philippines see surge in funding',
        description='A wave of investments is flowing into Filipino startups focused on fintech and e-commerce.',
        image='https://via.placeholder.com/800x450.png?text=Philippines+Tech',
        source='TechDaily',
        age_hours=0.0,
    ),
    SampleArticle(
        title='New gaming laptops announced with powerful GPUs',
        description='Major manufacturers released next-gen models optimized for creators and gamers.',
        image='https://via.placeholder.com/800x450.png?text=Gaming+Laptops',
        source='GamerNews',
        age_hours=6.0,
    ),
    SampleArticle(
        title='Climate initiatives push for cleaner cities',
        description='Local governments are adopting greener policies to reduce emissions.',
        image='https://via.placeholder.com/800x450.png?text=Climate',
        source='WorldReport',
        age_hours=24.0,
    ),
)


@dataclass(frozen=True)
class Settings:
    newsapi_key: str = ''
    request_timeout: float = DEFAULT_REQUEST_TIMEOUT
    host: str = DEFAULT_HOST
    port: int = DEFAULT_PORT
    reddit_feeds: tuple[str, ...] = REDDIT_NEWS_FEEDS
    sample_catalog: tuple[SampleArticle, ...] = SAMPLE_CATALOG

    @property
    def has_api_key(self) -> bool:
        return bool(self.newsapi_key)


# ****************************************************************************************
# Functions
# ****************************************************************************************


def _safe_float(value, default: float) -> float:
    if value in (None, ''):
        return default
    try:
        return float(value)
    except (TypeError, ValueError):
        log.warning('Ignoring invalid float setting %r; using %s.', value, default)
        return default


def _safe_int(value, default: int) -> int:
    if value in (None, ''):
        return default
    try:
        return int(value)
    except (TypeError, ValueError):
        log.warning('Ignoring invalid integer setting %r; using %s.', value, default)
        return default


def _load_yaml_overrides(path: str) -> dict:
    with open(path, 'r', encoding='utf-8') as handle:
        payload = yaml.safe_load(handle) or {}
    if not isinstance(payload, dict):
        raise ValueError(f'{path} must contain a mapping of settings')
    feeds = payload.get('reddit_feeds')
    if feeds is not None:
        if not isinstance(feeds, list) or not all(isinstance(feed, str) and feed.strip() for feed in feeds):
            raise ValueError('config.reddit_feeds must be a list of feed names')
    return payload


def load_settings(path: str | None = None) -> Settings:
    '''
    Build Settings from the environment, optionally overlaid with a YAML file.

    Input:
        path: optional YAML file with host, port, request_timeout, reddit_feeds.

    Output:
        Frozen Settings instance. NEWSAPI_KEY only ever comes from the environment.
    '''
    load_dotenv()
    settings = Settings(
        newsapi_key=(os.getenv('NEWSAPI_KEY') or '').strip(),
        request_timeout=_safe_float(os.getenv('REQUEST_TIMEOUT'), DEFAULT_REQUEST_TIMEOUT),
        host=os.getenv('HOST') or DEFAULT_HOST,
        port=_safe_int(os.getenv('PORT'), DEFAULT_PORT),
    )
    if not path:
        return settings

    overrides = _load_yaml_overrides(path)
    updates = {}
    if 'host' in overrides:
        updates['host'] = str(overrides['host'])
    if 'port' in overrides:
        updates['port'] = _safe_int(overrides['port'], settings.port)
    if 'request_timeout' in overrides:
        updates['request_timeout'] = _safe_float(overrides['request_timeout'], settings.request_timeout)
    if overrides.get('reddit_feeds'):
        updates['reddit_feeds'] = tuple(feed.strip() for feed in overrides['reddit_feeds'])
    log.info('Loaded %d setting override(s) from %s.', len(updates), path)
    return replace(settings, **updates)
