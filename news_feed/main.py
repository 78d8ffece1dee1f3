##########################################################################################
#
# Script name: main.py
#
# Description: CLI entrypoint for serving the news feed or writing a static snapshot.
#
##########################################################################################

import argparse
import logging
import os
import random
import socket
import sys
from dataclasses import replace
from datetime import date

import uvicorn

from .aggregator import NewsAggregator
from .config import Settings, load_settings
from .render import write_site
from .server import create_app


# ****************************************************************************************
# Global data and configuration
# ****************************************************************************************

log = logging.getLogger(os.path.basename(sys.argv[0]))
log.setLevel(logging.DEBUG)
log.propagate = False
formatter = logging.Formatter(
    '%(asctime)-15s [%(funcName)25s:%(lineno)-5s] %(levelname)-8s %(message)s'
)

# File handler for logging
fh = logging.FileHandler('news_feed.log', mode='w', delay=True)
fh.setLevel(logging.DEBUG)
fh.setFormatter(formatter)
if not any(isinstance(handler, logging.FileHandler) for handler in log.handlers):
    log.addHandler(fh)

root_log = logging.getLogger()
root_log.setLevel(logging.DEBUG)
if not any(isinstance(handler, logging.FileHandler) for handler in root_log.handlers):
    root_log.addHandler(fh)

PORT_RETRY_RANGE = (2000, 62000)
PORT_RETRY_ATTEMPTS = 5


# ****************************************************************************************
# Functions
# ****************************************************************************************


def _port_available(host: str, port: int) -> bool:
    with socket.socket(socket.AF_INET, socket.SOCK_STREAM) as probe:
        try:
            probe.bind((host, port))
        except OSError:
            return False
    return True


def resolve_port(host: str, port: int) -> int:
    candidate = port
    for _ in range(PORT_RETRY_ATTEMPTS):
        if _port_available(host, candidate):
            return candidate
        next_port = random.randint(*PORT_RETRY_RANGE)
        log.warning('Port %s in use, retrying on %s', candidate, next_port)
        candidate = next_port
    raise RuntimeError(f'No free port found after {PORT_RETRY_ATTEMPTS} attempts starting at {port}.')


def serve(settings: Settings) -> None:
    port = resolve_port(settings.host, settings.port)
    log.info('Server listening on http://%s:%s', settings.host, port)
    if not settings.has_api_key:
        log.info('Set NEWSAPI_KEY env var to enable real NewsAPI results.')
    uvicorn.run(create_app(settings=settings), host=settings.host, port=port)


def build_snapshot(settings: Settings, query: str, provider: str, output_dir: str) -> None:
    aggregator = NewsAggregator(settings=settings)
    result = aggregator.aggregate(query, provider)
    log.debug('Aggregated %d article(s) from %s.', len(result.articles), result.source)
    index_path = write_site(result, output_dir=output_dir, query=query, provider=provider)
    log.info('Wrote %d article(s) from %s to %s', len(result.articles), result.source, index_path)


# ****************************************************************************************
# Handle the arguments
# ****************************************************************************************


def handle_args(argv: list[str] | None = None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(description='Serve or snapshot a normalized news feed.')
    parser.add_argument('--serve', action='store_true', help='Run the HTTP server instead of writing a snapshot.')
    parser.add_argument('--config', default=None, help='Optional YAML settings file.')
    parser.add_argument('--host', default=None, help='Host interface for --serve.')
    parser.add_argument('--port', type=int, default=None, help='Port for --serve (default PORT env or 3000).')
    parser.add_argument('--query', default='', help='Free-text query for the snapshot.')
    parser.add_argument('--provider', default='', help='Provider selector, e.g. "reddit".')
    parser.add_argument('--output-dir', default='site', help='Directory where the snapshot is written.')
    parser.add_argument('-v', '--verbose', action='store_true', help='Enable verbose output to stdout.')
    parser.add_argument('-q', '--quiet', action='store_true', help='Minimal stdout.')
    args = parser.parse_args(argv)

    # Configure stdout logging based on arguments
    ch = logging.StreamHandler(sys.stdout)
    if args.verbose:
        ch.setLevel(logging.DEBUG)
    elif args.quiet:
        ch.setLevel(logging.ERROR)
    else:
        ch.setLevel(logging.INFO)
    ch.setFormatter(formatter)
    log.addHandler(ch)
    root_log.addHandler(ch)

    log.debug('Checking script requirements...')
    if not args.verbose and not args.quiet:
        log.debug('No output level specified. Defaulting to INFO.')

    log.info('++++++++++++++++++++++++++++++++++++++++++++++')
    log.info('+  %s', os.path.basename(sys.argv[0]))
    log.info('+  Python Version: %s', sys.version.split()[0])
    log.info('+  Today is: %s', date.today())
    log.info('+  Mode: %s', 'serve' if args.serve else 'snapshot')
    log.info('++++++++++++++++++++++++++++++++++++++++++++++')
    return args


# ****************************************************************************************
# Main
# ****************************************************************************************


def main(argv: list[str] | None = None) -> None:
    args = handle_args(argv)
    settings = load_settings(args.config)
    if args.host:
        settings = replace(settings, host=args.host)
    if args.port:
        settings = replace(settings, port=args.port)

    if args.serve:
        serve(settings)
        return
    build_snapshot(settings, query=args.query, provider=args.provider, output_dir=args.output_dir)


if __name__ == '__main__':
    main()
