##########################################################################################
#
# Script name: aggregator.py
#
# Description: Chooses a provider adapter for a request and wraps its failures.
#
##########################################################################################

import logging

import requests

from .config import Settings
from .errors import Error, InternalError
from .fetchers import (
    fetch_mock_articles,
    fetch_newsapi_articles,
    fetch_reddit_hot_feeds,
    fetch_reddit_search,
)
from .models import AggregationResult


# ****************************************************************************************
# Global data and configuration
# ****************************************************************************************

log = logging.getLogger(__name__)
REDDIT_PROVIDER = 'reddit'


# ****************************************************************************************
# Classes
# ****************************************************************************************


class NewsAggregator:
    '''
    Stateless request dispatcher over the provider adapters.

    Settings (API key, feed list, sample catalog, timeout) are fixed at
    construction. The HTTP session is shared across calls but holds no
    per-request data.
    '''

    def __init__(self, settings: Settings | None = None, session: requests.Session | None = None):
        self.settings = settings or Settings()
        self.session = session or requests.Session()

    def select_provider(self, query: str, provider: str) -> str:
        if provider == REDDIT_PROVIDER:
            return 'reddit-search' if query else 'reddit-hot'
        if not self.settings.has_api_key:
            return 'mock'
        return 'newsapi'

    def aggregate(self, query: str = '', provider: str = '') -> AggregationResult:
        query = query or ''
        provider = provider or ''
        route = self.select_provider(query, provider)
        log.info('Aggregating query=%r provider=%r via %s.', query, provider, route)
        try:
            if route == 'reddit-search':
                return fetch_reddit_search(query, self.session, timeout=self.settings.request_timeout)
            if route == 'reddit-hot':
                return fetch_reddit_hot_feeds(
                    self.session,
                    feeds=self.settings.reddit_feeds,
                    timeout=self.settings.request_timeout,
                )
            if route == 'mock':
                return fetch_mock_articles(query, catalog=self.settings.sample_catalog)
            return fetch_newsapi_articles(
                query,
                self.settings.newsapi_key,
                self.session,
                timeout=self.settings.request_timeout,
            )
        except Error:
            raise
        except Exception as exc:  # noqa: BLE001
            log.exception('Unexpected failure while aggregating via %s.', route)
            raise InternalError(str(exc), provider=route.split('-')[0]) from exc


# ****************************************************************************************
# Functions
# ****************************************************************************************


def aggregate(
    query: str = '',
    provider: str = '',
    settings: Settings | None = None,
    session: requests.Session | None = None,
) -> AggregationResult:
    return NewsAggregator(settings=settings, session=session).aggregate(query, provider)
