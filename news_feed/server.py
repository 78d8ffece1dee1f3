##########################################################################################
#
# Script name: server.py
#
# Description: FastAPI app exposing /api/news and the rendered card feed.
#
##########################################################################################

import logging

from fastapi import FastAPI, Query, Request
from fastapi.responses import HTMLResponse, JSONResponse, Response

from .aggregator import NewsAggregator
from .config import Settings, load_settings
from .errors import Error, UpstreamError
from .render import CSS, render_error_page, render_page


# ****************************************************************************************
# Global data and configuration
# ****************************************************************************************

log = logging.getLogger(__name__)
DEFAULT_PAGE_PROVIDER = 'reddit'


# ****************************************************************************************
# Functions
# ****************************************************************************************


def error_status(error: Error) -> int:
    return 502 if isinstance(error, UpstreamError) else 500


def create_app(settings: Settings | None = None, aggregator: NewsAggregator | None = None) -> FastAPI:
    '''
    Build the FastAPI application.

    Input:
        settings: runtime settings; loaded from the environment when omitted.
        aggregator: pre-built aggregator, mainly for tests.

    Output:
        FastAPI app with GET /api/news, GET / and GET /style.css.
    '''
    if aggregator is None:
        aggregator = NewsAggregator(settings=settings or load_settings())

    app = FastAPI(
        title='News Feed API',
        description='Normalized news articles from NewsAPI, Reddit, or sample data',
        version='1.0.0',
    )
    app.state.aggregator = aggregator

    @app.exception_handler(Error)
    async def handle_aggregation_error(request: Request, exc: Error):
        log.error('Request %s failed: %s', request.url.path, exc)
        return JSONResponse(status_code=error_status(exc), content=exc.to_dict())

    @app.get('/api/news')
    def get_news(
        q: str = Query(default=''),
        provider: str = Query(default=''),
    ):
        """Aggregate articles for a query from the selected provider."""
        result = app.state.aggregator.aggregate(q, provider)
        return JSONResponse(content=result.to_dict())

    @app.get('/', response_class=HTMLResponse)
    def get_feed_page(
        q: str = Query(default=''),
        provider: str = Query(default=DEFAULT_PAGE_PROVIDER),
    ):
        """Render the card feed for a query."""
        query = q.strip()
        try:
            result = app.state.aggregator.aggregate(query, provider)
        except Error as exc:
            log.error('Feed page failed: %s', exc)
            return HTMLResponse(
                render_error_page(exc, query=query, provider=provider, stylesheet='/style.css'),
                status_code=error_status(exc),
            )
        return HTMLResponse(render_page(result, query=query, provider=provider, stylesheet='/style.css'))

    @app.get('/style.css')
    def get_stylesheet():
        return Response(content=CSS.strip() + '\n', media_type='text/css')

    return app
