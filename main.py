#!/usr/bin/env python3
"""
SiteGraph
Crawls a website's same-domain pages and streams the analysis over server-sent events
"""

import argparse
import logging
import sys

from aiohttp import web

from sitegraph.config import Settings
from sitegraph.monitoring import LogManager
from sitegraph.server import create_app

logger = logging.getLogger(__name__)


def parse_args(settings: Settings) -> argparse.Namespace:
    parser = argparse.ArgumentParser(description="SiteGraph analysis server")
    parser.add_argument('--host', default=settings.server.host, help="Interface to bind")
    parser.add_argument('--port', type=int, default=settings.server.port, help="Port to listen on")
    parser.add_argument('--log-level', default=settings.server.log_level,
                        choices=['DEBUG', 'INFO', 'WARNING', 'ERROR'], type=str.upper)
    parser.add_argument('--log-dir', default=settings.server.log_dir, help="Directory for log files")
    return parser.parse_args()


def main():
    """Main entry point for the server"""
    settings = Settings.from_env()
    args = parse_args(settings)

    settings.server.host = args.host
    settings.server.port = args.port
    LogManager(args.log_dir, args.log_level)

    logger.info(f"Starting SiteGraph on {args.host}:{args.port}")
    web.run_app(create_app(settings), host=args.host, port=args.port, print=None)


if __name__ == "__main__":
    try:
        main()
    except KeyboardInterrupt:
        print("\nServer stopped by user")
    except Exception as e:
        print(f"Error: {e}")
        sys.exit(1)
