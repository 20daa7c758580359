"""
Record store package for the benefit transfer service.

Re-exports the store contract and the concrete backends, and resolves the
configured backend by name.
"""

from __future__ import annotations

from typing import Callable, Dict, List, Optional

from benefits.config import Settings, get_settings
from benefits.stores.abstract import AbstractRecordStore, RecordStore
from benefits.stores.memory import InMemoryRecordStore
from benefits.stores.postgres import PostgresRecordStore


def _store_factories() -> Dict[str, Callable[[], RecordStore]]:
    """Registry of available store backends."""
    return {
        "memory": lambda: InMemoryRecordStore(),
        "postgres": lambda: PostgresRecordStore(),
    }


def available_stores() -> List[str]:
    """List available store backend names."""
    return sorted(_store_factories().keys())


def build_store(settings: Optional[Settings] = None, backend: Optional[str] = None) -> RecordStore:
    """
    Instantiate the record store named by `backend` or by `settings.store_backend`.
    """
    name = backend or (settings or get_settings()).store_backend
    factories = _store_factories()
    if name not in factories:
        raise ValueError(f"Unknown store backend '{name}'. Available: {', '.join(factories)}")
    return factories[name]()


__all__ = [
    "AbstractRecordStore",
    "RecordStore",
    "InMemoryRecordStore",
    "PostgresRecordStore",
    "available_stores",
    "build_store",
]
