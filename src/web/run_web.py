"""
Run script for the Bird Digest trigger endpoint.
Starts the Quart app under Hypercorn.
"""
import argparse
import asyncio
import logging

from hypercorn.asyncio import serve
from hypercorn.config import Config as HypercornConfig

from services.config import load_settings
from services.logging import setup_logging

logger = logging.getLogger(__name__)


def run_server(host: str = '0.0.0.0', port: int = 8080, debug: bool = False):
    """Run the web server."""
    from web.app import app

    logger.info(f"Starting Bird Digest trigger server on http://{host}:{port}")

    config = HypercornConfig()
    config.bind = [f"{host}:{port}"]
    config.use_reloader = debug
    config.accesslog = '-'
    config.errorlog = '-'

    asyncio.run(serve(app, config))


def main():
    parser = argparse.ArgumentParser(description='Bird Digest trigger server')
    parser.add_argument('--host', default='0.0.0.0',
                        help='Host to bind to (default: 0.0.0.0)')
    parser.add_argument('--port', type=int, default=8080,
                        help='Port to bind to (default: 8080)')
    parser.add_argument('--debug', action='store_true',
                        help='Enable debug mode')

    args = parser.parse_args()
    setup_logging(load_settings().LOG_LEVEL)
    run_server(host=args.host, port=args.port, debug=args.debug)


if __name__ == '__main__':
    main()
