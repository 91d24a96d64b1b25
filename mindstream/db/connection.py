"""Process-wide asyncpg pool for the journal store."""

from urllib.parse import urlsplit

import asyncpg

from mindstream.config import settings
from mindstream.utils.logging import get_logger

log = get_logger(__name__)

_pool: asyncpg.Pool | None = None


def _dsn_target(dsn: str) -> dict[str, str | None]:
    # Credentials stay out of the log.
    parts = urlsplit(dsn)
    return {"host": parts.hostname, "database": parts.path.lstrip("/") or None}


async def get_pool() -> asyncpg.Pool:
    global _pool
    if _pool is None:
        target = _dsn_target(settings.database_url)
        try:
            _pool = await asyncpg.create_pool(
                settings.database_url,
                min_size=1,
                max_size=10,
                command_timeout=30,
            )
        except (asyncpg.PostgresError, OSError) as exc:
            log.error("database_pool_failed", error=str(exc), **target)
            raise
        log.info("database_pool_created", **target)
    return _pool


async def close_pool() -> None:
    global _pool
    if _pool is not None:
        await _pool.close()
        _pool = None
        log.info("database_pool_closed")
