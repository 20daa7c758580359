"""
Database connection factory utilities for the benefit transfer service.

Provides centralized management of pooled PostgreSQL connections with proper
lifecycle management. The PoolManager singleton ensures the shared pool is
closed on application exit.

Includes retry logic for transient connection failures using tenacity.
"""

from __future__ import annotations

import atexit
import threading
from pathlib import Path
from typing import Optional

import psycopg
from psycopg import Connection
from psycopg_pool import ConnectionPool
from tenacity import retry, retry_if_exception_type, stop_after_attempt, wait_exponential

from benefits.config import Settings, get_settings
from benefits.utils.logging import get_logger

log = get_logger(__name__)

SCHEMA_PATH = Path(__file__).resolve().parents[1] / "db" / "init.sql"


def build_dsn(settings: Optional[Settings] = None) -> str:
    """Compose a DSN string from settings."""
    settings = settings or get_settings()
    return (
        f"postgresql://{settings.db_user}:{settings.db_password}"
        f"@{settings.db_host}:{settings.db_port}/{settings.db_name}"
    )


def apply_statement_timeout(cur: psycopg.Cursor, timeout_ms: int) -> None:
    """
    Bound how long statements of the current transaction may block (0 disables).

    Uses SET LOCAL so pooled connections do not keep the setting.
    """
    if timeout_ms > 0:
        cur.execute(f"SET LOCAL statement_timeout = {int(timeout_ms)}")


class PoolManager:
    """
    Thread-safe singleton for managing the shared connection pool.

    Handles lifecycle management with automatic cleanup via atexit hook.
    """

    _instance: Optional["PoolManager"] = None
    _lock = threading.Lock()

    def __new__(cls) -> "PoolManager":
        """Create or return the singleton instance."""
        with cls._lock:
            if cls._instance is None:
                cls._instance = super().__new__(cls)
                cls._instance._pool: Optional[ConnectionPool] = None
                atexit.register(cls._instance.close_all)
            return cls._instance

    def get_pool(self, min_size: int = 1, max_size: int = 10) -> ConnectionPool:
        """
        Get or create the synchronous connection pool.

        Parameters
        ----------
        min_size : int
            Minimum number of idle connections to keep.
        max_size : int
            Maximum total connections in the pool.

        Returns
        -------
        ConnectionPool
            The managed pool instance.
        """
        with self._lock:
            if self._pool is None:
                self._pool = ConnectionPool(
                    conninfo=build_dsn(), min_size=min_size, max_size=max_size, open=True
                )
                log.info(
                    "Connection pool opened",
                    extra={"pool_min_size": min_size, "pool_max_size": max_size},
                )
            return self._pool

    def close_all(self) -> None:
        """Close the pool if open. Safe to call multiple times."""
        with self._lock:
            if self._pool is not None:
                try:
                    self._pool.close()
                finally:
                    self._pool = None


@retry(
    stop=stop_after_attempt(3),
    wait=wait_exponential(multiplier=1, min=1, max=10),
    retry=retry_if_exception_type((psycopg.OperationalError, psycopg.InterfaceError)),
    reraise=True,
)
def get_sync_connection(dsn: Optional[str] = None) -> Connection:
    """
    Acquire a dedicated synchronous connection with automatic retry.

    Retries up to 3 times with exponential backoff for transient connection errors.
    Use this for one-off operations such as schema setup. Prefer the pool for
    repeated use.

    Raises
    ------
    psycopg.OperationalError
        If connection fails after all retry attempts.
    """
    return psycopg.connect(dsn or build_dsn())


def get_sync_pool(min_size: int = 1, max_size: int = 10) -> ConnectionPool:
    """Get or create the shared connection pool via PoolManager."""
    return PoolManager().get_pool(min_size=min_size, max_size=max_size)


def load_schema_sql() -> str:
    """Schema DDL shipped with the package in benefits/db/init.sql."""
    return SCHEMA_PATH.read_text(encoding="utf-8")


def ensure_schema(dsn: Optional[str] = None) -> None:
    """Create the benefits table if it does not exist yet."""
    with get_sync_connection(dsn) as conn:
        with conn.cursor() as cur:
            cur.execute(load_schema_sql())
        conn.commit()
    log.info("Schema ensured", extra={"schema_path": str(SCHEMA_PATH)})


__all__ = [
    "PoolManager",
    "apply_statement_timeout",
    "build_dsn",
    "ensure_schema",
    "get_sync_connection",
    "get_sync_pool",
    "load_schema_sql",
]
