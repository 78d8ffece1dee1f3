##########################################################################################
#
# Script name: fetchers.py
#
# Description: Provider adapters that fetch and normalize articles from the sample
#              catalog, NewsAPI top headlines, and Reddit search / hot listings.
#
##########################################################################################

import logging
from concurrent.futures import ThreadPoolExecutor
from datetime import datetime, timedelta

import requests

from .config import (
    DEFAULT_REQUEST_TIMEOUT,
    MOCK_NOTE,
    NEWSAPI_LANGUAGE,
    NEWSAPI_TOP_HEADLINES_URL,
    PAGE_SIZE,
    REDDIT_FANOUT_DESCRIPTOR,
    REDDIT_HOT_URL,
    REDDIT_NEWS_FEEDS,
    REDDIT_SEARCH_URL,
    SAMPLE_CATALOG,
    USER_AGENT,
    SampleArticle,
)
from .curation import curate_feed
from .errors import InternalError, UpstreamError
from .models import (
    AggregationResult,
    NewsApiArticle,
    NewsApiResponse,
    NormalizedArticle,
    RedditListing,
    RedditPost,
)
from .utils import (
    build_url,
    is_absolute_url,
    iso_from_unix,
    matches_query,
    redact_url,
    to_iso,
    unescape_amp,
    utc_now,
    utc_now_iso,
)


# ****************************************************************************************
# Global data and configuration
# ****************************************************************************************

log = logging.getLogger(__name__)
REDDIT_HEADERS = {'User-Agent': USER_AGENT}


# ****************************************************************************************
# Functions
# ****************************************************************************************


def fetch_mock_articles(
    query: str,
    catalog: tuple[SampleArticle, ...] = SAMPLE_CATALOG,
    now: datetime | None = None,
) -> AggregationResult:
    if now is None:
        now = utc_now()
    articles = [
        NormalizedArticle(
            title=sample.title,
            description=sample.description,
            image=sample.image,
            source=sample.source,
            published_at=to_iso(now - timedelta(hours=sample.age_hours)),
            fetched_from='mock',
        )
        for sample in catalog
        if matches_query(query, sample.title, sample.description)
    ]
    backend_info = {
        'provider': 'mock',
        'note': MOCK_NOTE,
        'timestamp': to_iso(now),
        'totalResults': len(articles),
    }
    return AggregationResult(source='mock', articles=articles, backend_info=backend_info)


def map_newsapi_article(item: NewsApiArticle) -> NormalizedArticle:
    return NormalizedArticle(
        title=item.title,
        description=item.description,
        image=item.url_to_image,
        source=item.source_name,
        published_at=item.published_at,
        fetched_from='newsapi',
    )


def fetch_newsapi_articles(
    query: str,
    api_key: str,
    session: requests.Session,
    timeout: float = DEFAULT_REQUEST_TIMEOUT,
) -> AggregationResult:
    params = {'apiKey': api_key, 'language': NEWSAPI_LANGUAGE, 'pageSize': PAGE_SIZE}
    if query:
        params['q'] = query
    log.debug('Requesting NewsAPI top headlines: %s', redact_url(NEWSAPI_TOP_HEADLINES_URL, params))
    try:
        response = session.get(NEWSAPI_TOP_HEADLINES_URL, params=params, timeout=timeout)
    except requests.RequestException as exc:
        raise InternalError(str(exc), provider='newsapi') from exc
    if not response.ok:
        raise UpstreamError(response.status_code, response.text, provider='newsapi')
    try:
        payload = NewsApiResponse.from_payload(response.json())
    except ValueError as exc:
        raise InternalError(f'Invalid NewsAPI response body: {exc}', provider='newsapi') from exc

    articles = [map_newsapi_article(item) for item in payload.articles]
    backend_info = {
        'provider': 'newsapi.org',
        'apiUrl': redact_url(NEWSAPI_TOP_HEADLINES_URL, params),
        'apiKeyUsed': bool(api_key),
        'totalResults': payload.total_results or len(articles),
        'timestamp': utc_now_iso(),
    }
    return AggregationResult(source='newsapi', articles=articles, backend_info=backend_info)


def _reddit_image(post: RedditPost) -> str:
    if post.preview_image_url is not None:
        return unescape_amp(post.preview_image_url)
    if is_absolute_url(post.thumbnail):
        return post.thumbnail
    return ''


def map_reddit_post(post: RedditPost, origin_feed: str = '') -> NormalizedArticle:
    '''
    Map one Reddit post to a NormalizedArticle.

    Input:
        post: parsed listing entry.
        origin_feed: feed the post was pooled from during fan-out; empty for search.

    Output:
        NormalizedArticle tagged fetchedFrom="reddit". With an origin feed, the id
        falls back to "<feed>-<title>" and the subreddit to the feed name.
    '''
    article_id = post.id or post.url or post.permalink
    if not article_id and origin_feed and post.title:
        article_id = f'{origin_feed}-{post.title}'
    return NormalizedArticle(
        title=post.title,
        description=post.selftext or post.title,
        image=_reddit_image(post),
        source=post.subreddit_name_prefixed or (f'u/{post.author}' if post.author else ''),
        subreddit=post.subreddit or origin_feed,
        published_at=iso_from_unix(post.created_utc),
        fetched_from='reddit',
        id=article_id,
    )


def fetch_reddit_search(
    query: str,
    session: requests.Session,
    timeout: float = DEFAULT_REQUEST_TIMEOUT,
) -> AggregationResult:
    params = {'q': query, 'limit': PAGE_SIZE, 'sort': 'hot', 'type': 'link'}
    url = build_url(REDDIT_SEARCH_URL, params)
    log.debug('Requesting Reddit search: %s', url)
    try:
        response = session.get(REDDIT_SEARCH_URL, params=params, headers=REDDIT_HEADERS, timeout=timeout)
    except requests.RequestException as exc:
        raise InternalError(str(exc), provider='reddit') from exc
    if not response.ok:
        raise UpstreamError(response.status_code, response.text, provider='reddit')
    try:
        listing = RedditListing.from_payload(response.json())
    except ValueError as exc:
        raise InternalError(f'Invalid Reddit response body: {exc}', provider='reddit') from exc

    articles = [map_reddit_post(post) for post in listing.posts]
    backend_info = {
        'provider': 'reddit',
        'apiUrl': url,
        'timestamp': utc_now_iso(),
        'totalResults': len(articles),
    }
    return AggregationResult(source='reddit', articles=articles, backend_info=backend_info)


def _fetch_reddit_feed(session: requests.Session, feed: str, timeout: float) -> RedditListing | None:
    url = REDDIT_HOT_URL.format(feed=feed)
    try:
        response = session.get(url, params={'limit': PAGE_SIZE}, headers=REDDIT_HEADERS, timeout=timeout)
        if not response.ok:
            log.warning('Reddit feed r/%s request failed (%s).', feed, response.status_code)
            return None
        return RedditListing.from_payload(response.json())
    except Exception as exc:  # noqa: BLE001
        log.warning('Reddit feed r/%s fetch failed: %s', feed, exc)
        return None


def fetch_reddit_hot_feeds(
    session: requests.Session,
    feeds: tuple[str, ...] = REDDIT_NEWS_FEEDS,
    timeout: float = DEFAULT_REQUEST_TIMEOUT,
) -> AggregationResult:
    pooled: list[NormalizedArticle] = []
    if feeds:
        with ThreadPoolExecutor(max_workers=len(feeds)) as executor:
            listings = list(executor.map(lambda feed: _fetch_reddit_feed(session, feed, timeout), feeds))
        for feed, listing in zip(feeds, listings):
            if listing is None:
                continue
            pooled.extend(map_reddit_post(post, origin_feed=feed) for post in listing.posts)

    articles = curate_feed(pooled)
    log.debug('Reddit fan-out pooled %d item(s), kept %d after dedupe.', len(pooled), len(articles))
    backend_info = {
        'provider': 'reddit',
        'apiUrl': REDDIT_FANOUT_DESCRIPTOR,
        'timestamp': utc_now_iso(),
        'totalResults': len(articles),
        'subsQueried': list(feeds),
    }
    return AggregationResult(source='reddit', articles=articles, backend_info=backend_info)
