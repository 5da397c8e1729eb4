"""
Async PostgreSQL access for the event store (asyncpg pool).

Only used when ``DATABASE_URL`` is set; otherwise the application runs on the
in-memory store.
"""

import logging
import os
import pathlib
from contextlib import asynccontextmanager
from typing import Optional

import asyncpg

logger = logging.getLogger(__name__)

DATABASE_URL = os.getenv("DATABASE_URL", "").strip()

_pool: Optional[asyncpg.Pool] = None


async def init_db_pool(
    dsn: Optional[str] = None,
    min_size: int = 1,
    max_size: int = 5,
    command_timeout: float = 30.0,
) -> asyncpg.Pool:
    """Create the connection pool. Call once at startup."""
    global _pool

    if _pool is not None:
        logger.warning("Database pool already initialized")
        return _pool

    logger.info(f"Initializing database pool (min={min_size}, max={max_size})")
    try:
        _pool = await asyncpg.create_pool(
            dsn or DATABASE_URL,
            min_size=min_size,
            max_size=max_size,
            command_timeout=command_timeout,
        )
    except Exception as e:
        logger.error(f"Failed to initialize database pool: {e}")
        raise
    return _pool


async def close_db_pool() -> None:
    global _pool

    if _pool is None:
        return

    logger.info("Closing database pool")
    await _pool.close()
    _pool = None


def get_pool() -> asyncpg.Pool:
    if _pool is None:
        raise RuntimeError("Database pool not initialized. Call init_db_pool() first.")
    return _pool


@asynccontextmanager
async def get_connection():
    """
    Acquire a pooled connection.

    Usage:
        async with get_connection() as conn:
            rows = await conn.fetch("SELECT * FROM events")
    """
    async with get_pool().acquire() as connection:
        yield connection


async def execute(query: str, *args) -> str:
    async with get_connection() as conn:
        return await conn.execute(query, *args)


async def fetch(query: str, *args) -> list:
    async with get_connection() as conn:
        return await conn.fetch(query, *args)


async def fetchrow(query: str, *args):
    async with get_connection() as conn:
        return await conn.fetchrow(query, *args)


async def fetchval(query: str, *args):
    async with get_connection() as conn:
        return await conn.fetchval(query, *args)


async def init_schema() -> None:
    """Create the events table if it does not exist (storage/schema.sql)."""
    schema_path = pathlib.Path(__file__).parent / "schema.sql"
    if not schema_path.exists():
        raise FileNotFoundError(f"Schema file not found: {schema_path}")

    logger.info(f"Initializing database schema from {schema_path}")
    async with get_connection() as conn:
        await conn.execute(schema_path.read_text())


async def health_check() -> dict:
    try:
        await fetchval("SELECT 1")
        return {
            "status": "healthy",
            "database": "connected",
            "pool_size": _pool.get_size() if _pool else 0,
            "pool_free": _pool.get_idle_size() if _pool else 0,
        }
    except Exception as e:
        logger.error(f"Database health check failed: {e}")
        return {"status": "unhealthy", "database": "disconnected", "error": str(e)}
