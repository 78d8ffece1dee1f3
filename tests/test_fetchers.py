##########################################################################################
#
# Script name: test_fetchers.py
#
# Description: Provider adapter mapping, filtering, and failure behavior.
#
##########################################################################################

from datetime import datetime, timezone

import pytest
import requests

from conftest import INVALID_JSON, FakeResponse, FakeSession, hot_url, reddit_listing
from news_feed.config import REDDIT_NEWS_FEEDS, SAMPLE_CATALOG
from news_feed.errors import InternalError, UpstreamError
from news_feed.fetchers import (
    fetch_mock_articles,
    fetch_newsapi_articles,
    fetch_reddit_hot_feeds,
    fetch_reddit_search,
)


NEWSAPI_URL = 'https://newsapi.org/v2/top-headlines'
SEARCH_URL = 'https://www.reddit.com/search.json'
ARTICLE_KEYS = {'title', 'description', 'image', 'source', 'publishedAt', 'fetchedFrom'}


def _assert_total(article: dict) -> None:
    assert ARTICLE_KEYS <= set(article)
    assert all(value is not None for value in article.values())
    assert all(isinstance(value, str) for value in article.values())


# ----------------------------------------------------------------------------------------
# Sample catalog
# ----------------------------------------------------------------------------------------


def test_mock_empty_query_returns_full_catalog() -> None:
    now = datetime(2026, 3, 1, 12, 0, tzinfo=timezone.utc)
    result = fetch_mock_articles('', now=now)

    assert result.source == 'mock'
    assert [article.title for article in result.articles] == [sample.title for sample in SAMPLE_CATALOG]
    assert [article.published_at for article in result.articles] == [
        '2026-03-01T12:00:00.000Z',
        '2026-03-01T06:00:00.000Z',
        '2026-02-28T12:00:00.000Z',
    ]
    assert all(article.fetched_from == 'mock' for article in result.articles)
    assert result.backend_info['provider'] == 'mock'
    assert 'NEWSAPI_KEY' in result.backend_info['note']
    assert result.backend_info['totalResults'] == 3


@pytest.mark.parametrize('query', ['laptops', 'LAPTOPS', 'cities', 'funding', 'gamers', 'zzz-no-match', 'e'])
def test_mock_filter_keeps_only_matching_items(query: str) -> None:
    result = fetch_mock_articles(query)
    for article in result.articles:
        assert query.casefold() in f'{article.title} {article.description}'.casefold()
    expected = [
        sample for sample in SAMPLE_CATALOG
        if query.casefold() in f'{sample.title} {sample.description}'.casefold()
    ]
    assert len(result.articles) == len(expected)
    assert result.backend_info['totalResults'] == len(expected)


def test_mock_laptops_returns_gaming_laptops_only() -> None:
    result = fetch_mock_articles('laptops')
    assert [article.title for article in result.articles] == ['New gaming laptops announced with powerful GPUs']
    assert result.articles[0].source == 'GamerNews'


def test_mock_timestamps_recomputed_per_call() -> None:
    first = fetch_mock_articles('', now=datetime(2026, 3, 1, 12, 0, tzinfo=timezone.utc))
    second = fetch_mock_articles('', now=datetime(2026, 3, 1, 13, 0, tzinfo=timezone.utc))
    assert first.articles[0].published_at != second.articles[0].published_at


# ----------------------------------------------------------------------------------------
# NewsAPI
# ----------------------------------------------------------------------------------------


def test_newsapi_request_parameters_without_query() -> None:
    session = FakeSession({NEWSAPI_URL: FakeResponse(200, {'status': 'ok', 'articles': []})})
    fetch_newsapi_articles('', 'secret-key', session)

    call = session.calls[0]
    assert call['url'] == NEWSAPI_URL
    assert call['params'] == {'apiKey': 'secret-key', 'language': 'en', 'pageSize': 30}


def test_newsapi_maps_articles_and_backend_info() -> None:
    payload = {
        'status': 'ok',
        'totalResults': 57,
        'articles': [
            {
                'source': {'id': None, 'name': 'Reuters'},
                'title': 'Markets rally',
                'description': 'Stocks rose.',
                'urlToImage': 'https://img.example/1.jpg',
                'publishedAt': '2026-03-01T10:00:00Z',
            },
            {'title': 'Bare item', 'source': None, 'description': None},
        ],
    }
    session = FakeSession({NEWSAPI_URL: FakeResponse(200, payload)})
    result = fetch_newsapi_articles('markets', 'secret-key', session)

    assert session.calls[0]['params']['q'] == 'markets'
    first, second = [article.to_dict() for article in result.articles]
    assert first == {
        'title': 'Markets rally',
        'description': 'Stocks rose.',
        'image': 'https://img.example/1.jpg',
        'source': 'Reuters',
        'publishedAt': '2026-03-01T10:00:00Z',
        'fetchedFrom': 'newsapi',
    }
    _assert_total(second)
    assert second['source'] == ''
    assert second['image'] == ''
    assert result.source == 'newsapi'
    assert result.backend_info['provider'] == 'newsapi.org'
    assert result.backend_info['apiKeyUsed'] is True
    assert result.backend_info['totalResults'] == 57
    assert 'secret-key' not in result.backend_info['apiUrl']
    assert 'q=markets' in result.backend_info['apiUrl']


def test_newsapi_total_results_falls_back_to_mapped_count() -> None:
    session = FakeSession({NEWSAPI_URL: FakeResponse(200, {'articles': [{'title': 'One'}]})})
    result = fetch_newsapi_articles('', 'secret-key', session)
    assert result.backend_info['totalResults'] == 1


@pytest.mark.parametrize('total', [1e400, float('nan'), 'NaN'])
def test_newsapi_non_finite_total_falls_back_to_mapped_count(total) -> None:
    payload = {'totalResults': total, 'articles': [{'title': 'One'}, {'title': 'Two'}]}
    session = FakeSession({NEWSAPI_URL: FakeResponse(200, payload)})
    result = fetch_newsapi_articles('', 'secret-key', session)
    assert result.backend_info['totalResults'] == 2


def test_newsapi_rate_limited_raises_upstream_error() -> None:
    body = '{"status":"error","code":"rateLimited"}'
    session = FakeSession({NEWSAPI_URL: FakeResponse(429, text=body)})
    with pytest.raises(UpstreamError) as excinfo:
        fetch_newsapi_articles('', 'secret-key', session)
    assert excinfo.value.status == 429
    assert excinfo.value.detail == body


def test_newsapi_transport_failure_raises_internal_error() -> None:
    session = FakeSession({NEWSAPI_URL: requests.ConnectionError('connection refused')})
    with pytest.raises(InternalError) as excinfo:
        fetch_newsapi_articles('', 'secret-key', session)
    assert 'connection refused' in excinfo.value.detail


def test_newsapi_invalid_body_raises_internal_error() -> None:
    session = FakeSession({NEWSAPI_URL: FakeResponse(200, INVALID_JSON)})
    with pytest.raises(InternalError):
        fetch_newsapi_articles('', 'secret-key', session)


# ----------------------------------------------------------------------------------------
# Reddit search
# ----------------------------------------------------------------------------------------


def test_reddit_search_request_parameters() -> None:
    session = FakeSession({SEARCH_URL: FakeResponse(200, reddit_listing())})
    result = fetch_reddit_search('mars rover', session)

    call = session.calls[0]
    assert call['params'] == {'q': 'mars rover', 'limit': 30, 'sort': 'hot', 'type': 'link'}
    assert call['headers'] == {'User-Agent': 'news-feed-app/1.0'}
    assert result.backend_info['apiUrl'].startswith(SEARCH_URL + '?q=mars+rover')
    assert result.backend_info['provider'] == 'reddit'
    assert result.articles == []


def test_reddit_search_maps_post_fields() -> None:
    post = {
        'id': 'abc123',
        'title': 'Rover finds water',
        'selftext': '',
        'preview': {'images': [{'source': {'url': 'https://preview.redd.it/x.jpg?w=1&amp;s=2'}}]},
        'thumbnail': 'https://b.thumbs.redditmedia.com/t.jpg',
        'subreddit': 'space',
        'subreddit_name_prefixed': 'r/space',
        'author': 'astro',
        'created_utc': 1704067200,
    }
    session = FakeSession({SEARCH_URL: FakeResponse(200, reddit_listing(post))})
    article = fetch_reddit_search('rover', session).articles[0].to_dict()

    assert article == {
        'title': 'Rover finds water',
        'description': 'Rover finds water',
        'image': 'https://preview.redd.it/x.jpg?w=1&s=2',
        'source': 'r/space',
        'subreddit': 'space',
        'publishedAt': '2024-01-01T00:00:00.000Z',
        'fetchedFrom': 'reddit',
        'id': 'abc123',
    }


def test_reddit_search_image_and_source_fallbacks() -> None:
    posts = [
        {'id': 'a', 'title': 'Thumb', 'thumbnail': 'https://thumbs.example/a.jpg', 'author': 'alice'},
        {'id': 'b', 'title': 'Self post', 'thumbnail': 'self', 'selftext': 'Body text'},
        {'id': 'c', 'title': 'Broken preview', 'preview': {'images': 'oops'}, 'thumbnail': 'default'},
        {'url': 'https://example.com/story', 'title': 'No id'},
        {'permalink': '/r/x/comments/1/', 'title': 'Permalink only'},
    ]
    session = FakeSession({SEARCH_URL: FakeResponse(200, reddit_listing(*posts))})
    articles = [article.to_dict() for article in fetch_reddit_search('x', session).articles]

    assert [article['image'] for article in articles] == ['https://thumbs.example/a.jpg', '', '', '', '']
    assert articles[0]['source'] == 'u/alice'
    assert articles[1]['source'] == ''
    assert articles[1]['description'] == 'Body text'
    assert articles[1]['publishedAt'] == ''
    assert [article['id'] for article in articles[3:]] == ['https://example.com/story', '/r/x/comments/1/']
    for article in articles:
        _assert_total(article)


def test_reddit_search_preview_present_never_falls_back_to_thumbnail() -> None:
    posts = [
        {'id': 'a', 'title': 'No source', 'preview': {'images': [{}]}, 'thumbnail': 'https://thumbs.example/a.jpg'},
        {
            'id': 'b',
            'title': 'Empty url',
            'preview': {'images': [{'source': {'url': ''}}]},
            'thumbnail': 'https://thumbs.example/b.jpg',
        },
        {'id': 'c', 'title': 'No images', 'preview': {'images': []}, 'thumbnail': 'https://thumbs.example/c.jpg'},
    ]
    session = FakeSession({SEARCH_URL: FakeResponse(200, reddit_listing(*posts))})
    articles = fetch_reddit_search('x', session).articles
    assert [article.image for article in articles] == ['', '', 'https://thumbs.example/c.jpg']


def test_reddit_search_non_success_raises_upstream_error() -> None:
    session = FakeSession({SEARCH_URL: FakeResponse(503, text='busy')})
    with pytest.raises(UpstreamError) as excinfo:
        fetch_reddit_search('x', session)
    assert excinfo.value.status == 503
    assert excinfo.value.provider == 'reddit'


# ----------------------------------------------------------------------------------------
# Reddit hot-feed fan-out
# ----------------------------------------------------------------------------------------


def _all_feeds(**listings) -> dict:
    return {hot_url(feed): FakeResponse(200, listings.get(feed, reddit_listing())) for feed in REDDIT_NEWS_FEEDS}


def test_fanout_requests_each_feed_once() -> None:
    session = FakeSession(_all_feeds())
    result = fetch_reddit_hot_feeds(session)

    assert sorted(call['url'] for call in session.calls) == sorted(hot_url(feed) for feed in REDDIT_NEWS_FEEDS)
    assert all(call['params'] == {'limit': 30} for call in session.calls)
    assert all(call['headers'] == {'User-Agent': 'news-feed-app/1.0'} for call in session.calls)
    assert result.backend_info['subsQueried'] == list(REDDIT_NEWS_FEEDS)
    assert result.backend_info['apiUrl'] == 'multiple r/*/hot'
    assert result.backend_info['totalResults'] == 0


def test_fanout_dedupe_keeps_first_feed_in_list_order() -> None:
    shared = {'id': 'dup', 'title': 'Same story', 'created_utc': 1704067200}
    session = FakeSession(_all_feeds(
        news=reddit_listing(dict(shared, subreddit='news')),
        business=reddit_listing(dict(shared, subreddit='business')),
    ))
    result = fetch_reddit_hot_feeds(session)

    assert len(result.articles) == 1
    assert result.articles[0].subreddit == 'news'


def test_fanout_sorts_newest_first_with_unparseable_last() -> None:
    session = FakeSession(_all_feeds(
        news=reddit_listing({'id': 't3', 'title': 'No timestamp'}),
        worldnews=reddit_listing({'id': 't2', 'title': 'Older', 'created_utc': 1704067200}),
        technology=reddit_listing({'id': 't1', 'title': 'Newer', 'created_utc': 1704153600}),
    ))
    result = fetch_reddit_hot_feeds(session)
    assert [article.id for article in result.articles] == ['t1', 't2', 't3']


def test_fanout_partial_failure_keeps_other_feeds() -> None:
    routes = _all_feeds(
        news=reddit_listing({'id': 'n1', 'title': 'News item'}),
        technology=reddit_listing({'id': 't1', 'title': 'Tech item'}),
        business=reddit_listing({'id': 'b1', 'title': 'Business item'}),
    )
    routes[hot_url('worldnews')] = requests.Timeout('timed out')
    routes[hot_url('politics')] = FakeResponse(500, text='oops')
    result = fetch_reddit_hot_feeds(FakeSession(routes))

    assert sorted(article.id for article in result.articles) == ['b1', 'n1', 't1']
    assert result.backend_info['totalResults'] == 3


def test_fanout_invalid_body_counts_as_empty_feed() -> None:
    routes = _all_feeds(news=reddit_listing({'id': 'n1', 'title': 'News item'}))
    routes[hot_url('technology')] = FakeResponse(200, INVALID_JSON)
    result = fetch_reddit_hot_feeds(FakeSession(routes))
    assert [article.id for article in result.articles] == ['n1']


def test_fanout_composite_id_and_subreddit_fallback() -> None:
    session = FakeSession(_all_feeds(
        politics=reddit_listing({'title': 'Untracked post'}, {'selftext': 'no title or id'}),
    ))
    result = fetch_reddit_hot_feeds(session)

    assert len(result.articles) == 1
    article = result.articles[0]
    assert article.id == 'politics-Untracked post'
    assert article.subreddit == 'politics'
    _assert_total(article.to_dict())
