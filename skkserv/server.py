#!/usr/bin/env python3
"""
SKK Server Entry Point

This is the main entry point for starting the SKK server.

Usage:
    python -m skkserv.server                         # Default settings (0.0.0.0:1178)
    python -m skkserv.server --port 11178            # Custom port
    python -m skkserv.server --host 127.0.0.1        # Custom host
    python -m skkserv.server --cache-file cache.tsv  # Custom cache file
    python -m skkserv.server --debug                 # Enable debug logging

Environment Variables:
    SKKSERV_HOST         - Server bind address
    SKKSERV_PORT         - Server port
    SKKSERV_CACHE_PATH   - Cache file location
    SKKSERV_CACHE_TTL    - Seconds a cached conversion stays fresh
    SKKSERV_DEBUG        - Enable debug mode (true/false)
"""

import argparse
import asyncio
import logging
import signal
import sys

from . import __version__
from .cache.store import CacheStore
from .config.settings import settings
from .lookup.client import TransliterateClient
from .lookup.service import LookupService
from .network.tcp_server import SKKServer


def parse_args(argv=None) -> argparse.Namespace:
    """Parse command line arguments."""
    parser = argparse.ArgumentParser(
        description="skkserv: SKK dictionary server backed by a transliteration API",
        formatter_class=argparse.ArgumentDefaultsHelpFormatter,
    )

    parser.add_argument(
        "--host",
        type=str,
        default=settings.HOST,
        help="Host address to bind to",
    )

    parser.add_argument(
        "--port",
        type=int,
        default=settings.PORT,
        help="Port number to listen on",
    )

    parser.add_argument(
        "--cache-file",
        type=str,
        default=settings.CACHE_PATH,
        help="File the conversion cache is persisted to",
    )

    parser.add_argument(
        "--debug", "--verbose",
        dest="debug",
        action="store_true",
        default=settings.DEBUG,
        help="Enable debug logging",
    )

    parser.add_argument(
        "--version",
        action="version",
        version=f"{settings.SERVER_NAME} {__version__}",
    )

    return parser.parse_args(argv)


def setup_logging(debug: bool = False) -> None:
    """Configure logging based on debug flag."""
    level = logging.DEBUG if debug else getattr(logging, settings.LOG_LEVEL.upper(), logging.INFO)

    logging.basicConfig(
        level=level,
        format='%(asctime)s - %(name)s - %(levelname)s - %(message)s',
        handlers=[
            logging.StreamHandler(sys.stdout),
        ]
    )


def main() -> None:
    """Main entry point for the server."""
    args = parse_args()

    # Setup logging
    setup_logging(debug=args.debug)
    logger = logging.getLogger(__name__)

    store = CacheStore(path=args.cache_file)
    client = TransliterateClient()
    service = LookupService(store=store, client=client)

    server = SKKServer(
        service=service,
        host=args.host,
        port=args.port,
    )

    loop = asyncio.new_event_loop()
    asyncio.set_event_loop(loop)

    async def shutdown(sig: signal.Signals) -> None:
        """Handle shutdown signal."""
        logger.info(f"Received signal {sig.name}, initiating shutdown...")
        await server.stop()

    # Register signal handlers (Unix only)
    if sys.platform != 'win32':
        for sig in (signal.SIGTERM, signal.SIGINT):
            loop.add_signal_handler(
                sig,
                lambda s=sig: asyncio.create_task(shutdown(s))
            )

    # Log startup info
    logger.info(f"Starting {settings.SERVER_NAME} {__version__}")
    logger.info(f"  Host: {args.host}")
    logger.info(f"  Port: {args.port}")
    logger.info(f"  Cache file: {args.cache_file}")
    logger.info(f"  Debug: {args.debug}")

    # Run the server
    try:
        loop.run_until_complete(server.start())
    except KeyboardInterrupt:
        logger.info("Keyboard interrupt received")
        loop.run_until_complete(server.stop())
    except Exception as e:
        logger.error(f"Server error: {e}")
        raise
    finally:
        client.close()
        try:
            loop.run_until_complete(loop.shutdown_asyncgens())
        except Exception:
            pass
        loop.close()
        logger.info("Server shutdown complete")


if __name__ == "__main__":
    main()
