# =============================================================================
# File: sentinel/infra/persistence/pg_client.py
# Description: asyncpg pool management and query helpers
# =============================================================================

from __future__ import annotations

import asyncio
import contextvars
import logging
import pathlib
import time
from contextlib import asynccontextmanager
from typing import Any, AsyncIterator, List, Optional

import asyncpg

from sentinel.config.store_config import StoreConfig

log = logging.getLogger("sentinel.infra.pg_client")

_POOL: Optional[asyncpg.Pool] = None
_POOL_LOCK = asyncio.Lock()

# Connection of the enclosing transaction() block, if any
_current_transaction_connection: contextvars.ContextVar[Optional[asyncpg.Connection]] = contextvars.ContextVar(
    "sentinel_pg_transaction_connection", default=None
)

SLOW_QUERY_THRESHOLD_MS = 500.0

# Arbitrary constant shared by every worker applying the schema
_SCHEMA_ADVISORY_LOCK_ID = 74_210_001


# =============================================================================
# Pool lifecycle
# =============================================================================

async def init_db_pool(config: StoreConfig) -> asyncpg.Pool:
    """Initialize the global asyncpg pool. Idempotent."""
    global _POOL

    if not config.dsn:
        raise RuntimeError("STORE_DSN is required for the postgres backend")

    async with _POOL_LOCK:
        if _POOL is None or _POOL.is_closing():
            log.info(f"Initializing PostgreSQL pool (hidden DSN): {config.dsn.split('@')[-1]}")
            try:
                pool = await asyncpg.create_pool(
                    dsn=config.dsn,
                    min_size=config.pool_min_size,
                    max_size=config.pool_max_size,
                    command_timeout=config.command_timeout,
                )
                async with pool.acquire() as conn:
                    await conn.fetchval("SELECT 1")
            except Exception as e:
                log.critical(f"Failed to init PostgreSQL pool: {e}", exc_info=True)
                raise RuntimeError(f"PostgreSQL pool init error: {e}") from e

            _POOL = pool
            log.info(f"PostgreSQL pool ready. Min/Max size: {config.pool_min_size}/{config.pool_max_size}")

    return _POOL


def get_pool() -> asyncpg.Pool:
    if _POOL is None or _POOL.is_closing():
        raise RuntimeError("PostgreSQL pool not available")
    return _POOL


async def close_db_pool() -> None:
    """Close the global pool gracefully."""
    global _POOL

    async with _POOL_LOCK:
        pool, _POOL = _POOL, None
        if pool and not pool.is_closing():
            log.info("Closing PostgreSQL pool...")
            try:
                await pool.close()
                log.info("PostgreSQL pool closed.")
            except Exception as e:
                log.error(f"Error closing pool: {e}", exc_info=True)


# =============================================================================
# Query helpers
# =============================================================================

@asynccontextmanager
async def acquire_connection() -> AsyncIterator[asyncpg.Connection]:
    """Yield the enclosing transaction's connection, or a pooled one."""
    conn = _current_transaction_connection.get()
    if conn is not None:
        yield conn
        return

    async with get_pool().acquire() as pooled:
        yield pooled


def _log_if_slow(kind: str, query: str, started: float) -> None:
    elapsed_ms = (time.monotonic() - started) * 1000
    if elapsed_ms > SLOW_QUERY_THRESHOLD_MS:
        log.warning(f"[SLOW QUERY] {kind} took {elapsed_ms:.1f}ms: {query[:150]}")


async def fetch(query: str, *args: Any, timeout: Optional[float] = None) -> List[asyncpg.Record]:
    """Execute the query and return all rows."""
    started = time.monotonic()
    async with acquire_connection() as conn:
        rows = await conn.fetch(query, *args, timeout=timeout)
    _log_if_slow("FETCH", query, started)
    return rows


async def fetchrow(query: str, *args: Any, timeout: Optional[float] = None) -> Optional[asyncpg.Record]:
    """Execute the query and return the first row."""
    started = time.monotonic()
    async with acquire_connection() as conn:
        row = await conn.fetchrow(query, *args, timeout=timeout)
    _log_if_slow("FETCHROW", query, started)
    return row


async def fetchval(query: str, *args: Any, column: int = 0, timeout: Optional[float] = None) -> Any:
    """Execute the query and return a single value."""
    started = time.monotonic()
    async with acquire_connection() as conn:
        value = await conn.fetchval(query, *args, column=column, timeout=timeout)
    _log_if_slow("FETCHVAL", query, started)
    return value


async def execute(query: str, *args: Any, timeout: Optional[float] = None) -> str:
    """Execute a statement and return its status string."""
    started = time.monotonic()
    async with acquire_connection() as conn:
        status = await conn.execute(query, *args, timeout=timeout)
    _log_if_slow("EXECUTE", query, started)
    return status


@asynccontextmanager
async def transaction() -> AsyncIterator[asyncpg.Connection]:
    """
    Transaction context manager.

    Usage:
        async with transaction() as conn:
            await conn.execute("INSERT INTO ...")

    Helpers called inside the block (fetch, execute, ...) reuse the same
    connection. Committed on normal exit, rolled back on exception.
    """
    existing = _current_transaction_connection.get()
    if existing is not None:
        async with existing.transaction():
            yield existing
        return

    async with get_pool().acquire() as conn:
        async with conn.transaction():
            token = _current_transaction_connection.set(conn)
            try:
                yield conn
            finally:
                _current_transaction_connection.reset(token)


# =============================================================================
# Schema and health
# =============================================================================

async def run_schema_from_file(file_path: pathlib.Path | str) -> None:
    """Execute DDL statements from a SQL file, serialized across workers by an advisory lock."""
    path = pathlib.Path(file_path)
    if not path.is_file():
        raise FileNotFoundError(f"Schema file not found: {path}")

    sql = path.read_text(encoding="utf-8").strip()
    if not sql:
        log.warning(f"Schema file {path} is empty")
        return

    async with get_pool().acquire() as conn:
        await conn.execute("SELECT pg_advisory_lock($1)", _SCHEMA_ADVISORY_LOCK_ID)
        try:
            await conn.execute(sql)
            log.info(f"Schema from {path.name} applied successfully")
        except Exception as e:
            log.error(f"Schema execution failed: {e}", exc_info=True)
            raise
        finally:
            await conn.execute("SELECT pg_advisory_unlock($1)", _SCHEMA_ADVISORY_LOCK_ID)


async def health_check() -> dict:
    """PostgreSQL health check with latency."""
    if _POOL is None or _POOL.is_closing():
        return {"status": "unavailable"}

    started = time.monotonic()
    try:
        async with _POOL.acquire() as conn:
            await conn.fetchval("SELECT 1")
    except Exception as e:
        log.error(f"PostgreSQL health check failed: {e}")
        return {"status": "unhealthy", "error": str(e)}

    return {
        "status": "healthy",
        "latency_ms": round((time.monotonic() - started) * 1000, 2),
        "pool_size": _POOL.get_size(),
        "pool_idle": _POOL.get_idle_size(),
    }
