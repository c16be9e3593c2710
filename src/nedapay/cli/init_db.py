"""CLI command for creating the ledger tables.

Usage:
    python -m nedapay.cli init-db
"""

import asyncio
from argparse import ArgumentParser, Namespace

import structlog

from nedapay.core.config import Settings, configure_logging
from nedapay.core.database import create_db_engine, init_db

logger = structlog.get_logger()


def add_arguments(parser: ArgumentParser) -> None:
    parser.add_argument(
        "--database-url",
        help="Override DATABASE_URL from settings",
    )


async def _create_tables(database_url: str, pool_size: int) -> None:
    engine = create_db_engine(database_url, pool_size)
    try:
        await init_db(engine)
    finally:
        await engine.dispose()


def run(args: Namespace, settings: Settings) -> int:
    """Create missing tables.

    Returns:
        Exit code: 0 (success), 1 (error)
    """
    configure_logging(settings)

    database_url = args.database_url or settings.database_url

    try:
        asyncio.run(_create_tables(database_url, settings.db_pool_size))
    except Exception as e:
        logger.error("init_db.failed", error=str(e), error_type=type(e).__name__)
        return 1

    logger.info("init_db.complete", db_url=database_url.split("@")[-1])
    return 0
