"""CLI command for running the API server.

Usage:
    python -m nedapay.cli serve [--host HOST] [--port PORT] [--reload]
"""

from argparse import ArgumentParser, Namespace

import uvicorn

from nedapay.core.config import Settings


def add_arguments(parser: ArgumentParser) -> None:
    parser.add_argument("--host", help="Bind address (default: HOST from settings)")
    parser.add_argument("--port", type=int, help="Bind port (default: PORT from settings)")
    parser.add_argument(
        "--reload",
        action="store_true",
        help="Restart on code changes (development only)",
    )


def run(args: Namespace, settings: Settings) -> int:
    """Serve ``nedapay.app:app`` until interrupted.

    Returns:
        Exit code: 0 after a clean shutdown
    """
    uvicorn.run(
        "nedapay.app:app",
        host=args.host or settings.host,
        port=args.port or settings.port,
        log_level=settings.log_level.lower(),
        reload=args.reload,
    )
    return 0
