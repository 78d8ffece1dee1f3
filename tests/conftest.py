##########################################################################################
#
# Script name: conftest.py
#
# Description: Fake HTTP session shared by the adapter, aggregator, and server tests.
#
##########################################################################################

import threading

import pytest

from news_feed.config import Settings


INVALID_JSON = object()


class FakeResponse:
    def __init__(self, status_code: int = 200, payload=None, text: str = ''):
        self.status_code = status_code
        self._payload = payload
        self.text = text

    @property
    def ok(self) -> bool:
        return self.status_code < 400

    def json(self):
        if self._payload is INVALID_JSON:
            raise ValueError('Expecting value: line 1 column 1 (char 0)')
        return self._payload


class FakeSession:
    '''
    Stands in for requests.Session. Routes map a URL (without query string) to a
    FakeResponse, or to an exception instance that get() raises.
    '''

    def __init__(self, routes: dict | None = None):
        self.routes = routes or {}
        self.calls: list[dict] = []
        self._lock = threading.Lock()

    def get(self, url, params=None, headers=None, timeout=None):
        with self._lock:
            self.calls.append({'url': url, 'params': dict(params or {}), 'headers': dict(headers or {}), 'timeout': timeout})
        outcome = self.routes.get(url)
        if outcome is None:
            return FakeResponse(404, text='not found')
        if isinstance(outcome, Exception):
            raise outcome
        return outcome


def reddit_listing(*posts: dict) -> dict:
    return {'kind': 'Listing', 'data': {'children': [{'kind': 't3', 'data': post} for post in posts]}}


def hot_url(feed: str) -> str:
    return f'https://www.reddit.com/r/{feed}/hot.json'


@pytest.fixture
def no_key_settings() -> Settings:
    return Settings(newsapi_key='')


@pytest.fixture
def key_settings() -> Settings:
    return Settings(newsapi_key='secret-key')
