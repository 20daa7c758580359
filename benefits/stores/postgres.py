"""
PostgreSQL record store.

Optimistic concurrency is enforced by the database: every write is an
`UPDATE ... WHERE id = %s AND version = %s` that bumps the version column, so
"compare, write and increment" is a single atomic statement per row. A unit of
writes runs in one transaction and is rolled back as soon as any row misses.
"""

from __future__ import annotations

from typing import Dict, List, Optional, Sequence

import psycopg
from psycopg.rows import dict_row
from psycopg_pool import ConnectionPool

from benefits.config import get_settings
from benefits.domain.errors import VersionConflict
from benefits.domain.lifecycle import apply_defaults
from benefits.domain.models import BenefitDraft, BenefitRecord, VersionedWrite
from benefits.infrastructure.db_factory import apply_statement_timeout, get_sync_pool
from benefits.stores.abstract import AbstractRecordStore, check_distinct_ids
from benefits.utils.logging import get_logger

log = get_logger(__name__)

_COLUMNS = "id, name, description, value, active, version"

_SELECT_ONE = f"SELECT {_COLUMNS} FROM public.benefits WHERE id = %s;"
_SELECT_ALL = f"SELECT {_COLUMNS} FROM public.benefits ORDER BY id;"
_SELECT_VERSION = "SELECT version FROM public.benefits WHERE id = %s;"
_EXISTS = "SELECT 1 FROM public.benefits WHERE id = %s;"
_INSERT = f"""
    INSERT INTO public.benefits (name, description, value, active, version)
    VALUES (%(name)s, %(description)s, %(value)s, %(active)s, 0)
    RETURNING {_COLUMNS};
"""
_VERSIONED_UPDATE = f"""
    UPDATE public.benefits
       SET name = %(name)s,
           description = %(description)s,
           value = %(value)s,
           active = %(active)s,
           version = version + 1
     WHERE id = %(id)s AND version = %(expected_version)s
    RETURNING {_COLUMNS};
"""
_DELETE = "DELETE FROM public.benefits WHERE id = %s;"


class PostgresRecordStore(AbstractRecordStore):
    """
    Record store backed by the `benefits` table.

    Uses the shared pool from PoolManager unless a DSN override is given, in
    which case the store owns (and closes) a private pool.
    """

    name: str = "postgres"

    def __init__(
        self,
        dsn_override: Optional[str] = None,
        pool_min_size: Optional[int] = None,
        pool_max_size: Optional[int] = None,
        statement_timeout_ms: Optional[int] = None,
    ) -> None:
        settings = get_settings()
        self.pool_min_size = pool_min_size or settings.db_pool_min_size
        self.pool_max_size = pool_max_size or settings.db_pool_max_size
        self.statement_timeout_ms = (
            settings.db_statement_timeout_ms
            if statement_timeout_ms is None
            else statement_timeout_ms
        )
        self._dsn_override = dsn_override
        self._pool_instance: ConnectionPool | None = None

    def _get_pool(self) -> ConnectionPool:
        if self._pool_instance is not None:
            return self._pool_instance
        if self._dsn_override:
            self._pool_instance = ConnectionPool(
                conninfo=self._dsn_override,
                min_size=self.pool_min_size,
                max_size=self.pool_max_size,
                open=True,
            )
        else:
            self._pool_instance = get_sync_pool(
                min_size=self.pool_min_size, max_size=self.pool_max_size
            )
        return self._pool_instance

    def get(self, benefit_id: int) -> Optional[BenefitRecord]:
        with self._get_pool().connection() as conn:
            with conn.cursor(row_factory=dict_row) as cur:
                cur.execute(_SELECT_ONE, (benefit_id,))
                row = cur.fetchone()
        return BenefitRecord(**row) if row else None

    def exists(self, benefit_id: int) -> bool:
        with self._get_pool().connection() as conn:
            with conn.cursor() as cur:
                cur.execute(_EXISTS, (benefit_id,))
                return cur.fetchone() is not None

    def find_all(self) -> List[BenefitRecord]:
        with self._get_pool().connection() as conn:
            with conn.cursor(row_factory=dict_row) as cur:
                cur.execute(_SELECT_ALL)
                return [BenefitRecord(**row) for row in cur.fetchall()]

    def create(self, draft: BenefitDraft) -> BenefitRecord:
        draft = apply_defaults(draft)
        with self._get_pool().connection() as conn:
            with conn.transaction():
                with conn.cursor(row_factory=dict_row) as cur:
                    cur.execute(_INSERT, draft.model_dump())
                    row = cur.fetchone()
        return BenefitRecord(**row)

    def delete(self, benefit_id: int) -> bool:
        with self._get_pool().connection() as conn:
            with conn.transaction():
                with conn.cursor() as cur:
                    cur.execute(_DELETE, (benefit_id,))
                    return cur.rowcount > 0

    def compare_and_swap_many(self, writes: Sequence[VersionedWrite]) -> List[BenefitRecord]:
        check_distinct_ids(writes)
        # Rows are always locked in ascending id order so two units touching
        # the same pair cannot deadlock on each other.
        ordered = sorted(writes, key=lambda write: write.benefit_id)
        committed: Dict[int, BenefitRecord] = {}

        try:
            with self._get_pool().connection() as conn:
                with conn.transaction():
                    with conn.cursor(row_factory=dict_row) as cur:
                        apply_statement_timeout(cur, self.statement_timeout_ms)
                        for write in ordered:
                            params = write.record.model_dump(exclude={"version"})
                            params["expected_version"] = write.expected_version
                            cur.execute(_VERSIONED_UPDATE, params)
                            row = cur.fetchone()
                            if row is None:
                                cur.execute(_SELECT_VERSION, (write.benefit_id,))
                                found = cur.fetchone()
                                raise VersionConflict(
                                    write.benefit_id,
                                    write.expected_version,
                                    found["version"] if found else None,
                                )
                            committed[row["id"]] = BenefitRecord(**row)
        except (psycopg.errors.DeadlockDetected, psycopg.errors.SerializationFailure) as exc:
            first = ordered[0]
            log.warning(
                "Commit aborted by the server",
                extra={"benefit_id": first.benefit_id, "error_type": type(exc).__name__},
            )
            raise VersionConflict(first.benefit_id, first.expected_version, None) from exc

        return [committed[write.benefit_id] for write in writes]

    def close(self) -> None:
        """Close the private pool, if any. The shared pool is closed at exit."""
        if self._dsn_override and self._pool_instance is not None:
            self._pool_instance.close()
        self._pool_instance = None


__all__ = ["PostgresRecordStore"]
