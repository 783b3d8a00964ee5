"""
routepause - Entry Point

Run with: python -m routepause
"""

import argparse
import asyncio
import logging
import sys
from pathlib import Path

from routepause import __version__
from routepause.config import Settings, reload_settings
from routepause.errors import RoutePauseError
from routepause.server import RoutePauseServer


def setup_logging(verbose: bool = False) -> None:
    """Configure logging for the application."""
    level = logging.DEBUG if verbose else logging.INFO

    logging.basicConfig(
        level=level,
        format="%(asctime)s [%(levelname)s] %(name)s: %(message)s",
        datefmt="%Y-%m-%d %H:%M:%S",
    )

    # Reduce noise from third-party libraries
    logging.getLogger("asyncio").setLevel(logging.WARNING)
    logging.getLogger("uvicorn").setLevel(logging.WARNING)


def parse_args(argv: list[str] | None = None) -> argparse.Namespace:
    """Parse command line arguments."""
    parser = argparse.ArgumentParser(
        prog="routepause",
        description="Pause media players while a managed audio output device is active",
    )

    parser.add_argument(
        "-v",
        "--verbose",
        action="store_true",
        help="Enable verbose (debug) logging",
    )

    parser.add_argument(
        "-c",
        "--config",
        type=Path,
        default=None,
        help="TOML config file merged over the built-in defaults",
    )

    parser.add_argument(
        "-d",
        "--device",
        type=str,
        default=None,
        help="Name of the managed output device (overrides device.managed)",
    )

    parser.add_argument(
        "--host",
        type=str,
        default=None,
        help="Web API host (overrides web.host)",
    )

    parser.add_argument(
        "-p",
        "--port",
        type=int,
        default=None,
        help="Web API port (overrides web.port)",
    )

    parser.add_argument(
        "--no-web",
        action="store_true",
        help="Do not start the web API",
    )

    parser.add_argument(
        "--version",
        action="version",
        version=f"%(prog)s {__version__}",
    )

    return parser.parse_args(argv)


def apply_overrides(settings: Settings, args: argparse.Namespace) -> Settings:
    """Apply command-line overrides to loaded settings."""
    if args.device:
        settings.device.managed = args.device
    if args.host:
        settings.web.host = args.host
    if args.port is not None:
        settings.web.port = args.port
    if args.no_web:
        settings.web.enabled = False
    return settings


async def run_server(settings: Settings) -> None:
    """Start and run routepause."""
    server = RoutePauseServer(settings)
    await server.run()


def main(argv: list[str] | None = None) -> int:
    """Main entry point for the application."""
    args = parse_args(argv)
    setup_logging(verbose=args.verbose)

    logger = logging.getLogger(__name__)
    logger.info("Starting routepause %s...", __version__)

    try:
        settings = apply_overrides(reload_settings(args.config), args)
        asyncio.run(run_server(settings))
    except KeyboardInterrupt:
        logger.info("Shutdown requested by user")
    except RoutePauseError as e:
        logger.error("Cannot start: %s", e)
        return 1
    except Exception as e:
        logger.exception("Fatal error: %s", e)
        return 1

    logger.info("routepause stopped")
    return 0


if __name__ == "__main__":
    sys.exit(main())
