"""
Infrastructure package for the benefit transfer service.

Centralizes database connectivity concerns (DSN, pooling, schema bootstrap).
Keep this layer focused on I/O and resource management, decoupled from the
transfer engine.
"""

from benefits.infrastructure.db_factory import (
    PoolManager,
    build_dsn,
    ensure_schema,
    get_sync_connection,
    get_sync_pool,
)

__all__ = [
    "PoolManager",
    "build_dsn",
    "ensure_schema",
    "get_sync_connection",
    "get_sync_pool",
]
