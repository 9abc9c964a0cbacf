from __future__ import annotations

import logging
from contextlib import asynccontextmanager
from typing import AsyncIterator

from psycopg_pool import AsyncConnectionPool

from url_dispatcher.settings import Settings

logger = logging.getLogger(__name__)


def _add_connect_timeout(dsn: str, seconds: int = 3) -> str:
    if "connect_timeout=" in dsn:
        return dsn
    if "://" not in dsn:
        # key=value DSN
        return f"{dsn} connect_timeout={seconds}"
    sep = "&" if "?" in dsn else "?"
    return f"{dsn}{sep}connect_timeout={seconds}"


def create_pool(settings: Settings) -> AsyncConnectionPool:
    """
    Build the pool WITHOUT opening it; the owner decides when to open and close.
    """
    return AsyncConnectionPool(
        _add_connect_timeout(
            settings.database_url, settings.db_connect_timeout_seconds
        ),
        min_size=1,
        max_size=settings.db_pool_max_size,
        timeout=5,
        open=False,
    )


@asynccontextmanager
async def open_pool(settings: Settings) -> AsyncIterator[AsyncConnectionPool]:
    """
    Own the pool for the lifetime of the block. Opening does not wait for the
    database: an unreachable store surfaces later as StoreUnavailable per tick.
    """
    pool = create_pool(settings)
    await pool.open(wait=False)
    logger.info("db pool opened", extra={"max_size": settings.db_pool_max_size})
    try:
        yield pool
    finally:
        await pool.close()
        logger.info("db pool closed")
