"""
Pytest configuration for the benefit transfer service.

Provides fixtures for:
- In-memory stores, seeded records and engines for unit tests
- Database connection management for integration tests
- Settings override for integration tests
"""

from __future__ import annotations

import os
from decimal import Decimal
from typing import Generator, Tuple

import psycopg
import pytest

from benefits.config import Settings
from benefits.domain.models import BenefitDraft, BenefitRecord
from benefits.engine.retry import ConflictRetryPolicy
from benefits.engine.transfer import TransferEngine
from benefits.infrastructure.db_factory import load_schema_sql
from benefits.stores.memory import InMemoryRecordStore
from benefits.stores.postgres import PostgresRecordStore

SOURCE_VALUE = Decimal("100.00")
TARGET_VALUE = Decimal("50.00")


@pytest.fixture
def store() -> InMemoryRecordStore:
    return InMemoryRecordStore()


@pytest.fixture
def pair(store: InMemoryRecordStore) -> Tuple[BenefitRecord, BenefitRecord]:
    """Two active records: id 1 holding 100.00 and id 2 holding 50.00."""
    source = store.create(BenefitDraft(name="source", value=SOURCE_VALUE, active=True))
    target = store.create(BenefitDraft(name="target", value=TARGET_VALUE, active=True))
    return source, target


@pytest.fixture
def engine(store: InMemoryRecordStore) -> TransferEngine:
    return TransferEngine(store, ConflictRetryPolicy(max_attempts=3))


@pytest.fixture(scope="session")
def test_settings() -> Settings:
    """
    Settings fixture with test-specific overrides.

    Can be overridden via environment variables in CI or local testing.
    """
    return Settings(
        db_host=os.getenv("DB_HOST", "localhost"),
        db_port=int(os.getenv("DB_PORT", "5432")),
        db_user=os.getenv("DB_USER", "postgres"),
        db_password=os.getenv("DB_PASSWORD", "postgres"),
        db_name=os.getenv("DB_NAME", "benefits"),
        log_level="DEBUG",
    )


@pytest.fixture(scope="session")
def test_dsn(test_settings: Settings) -> str:
    """
    Database connection string for tests.
    """
    return (
        f"postgresql://{test_settings.db_user}:{test_settings.db_password}"
        f"@{test_settings.db_host}:{test_settings.db_port}/{test_settings.db_name}"
    )


@pytest.fixture(scope="session")
def db_connection_available(test_dsn: str) -> bool:
    """
    Check if database is reachable.

    Used to conditionally skip integration tests when DB is not available.
    """
    try:
        with psycopg.connect(test_dsn, connect_timeout=5) as conn:
            with conn.cursor() as cur:
                cur.execute("SELECT 1;")
                cur.fetchone()
        return True
    except psycopg.Error:
        return False


@pytest.fixture(scope="session")
def db_connection(
    test_dsn: str, db_connection_available: bool
) -> Generator[psycopg.Connection, None, None]:
    """
    Provide a session-scoped database connection for integration tests.

    Skips tests if database is not available.
    """
    if not db_connection_available:
        pytest.skip("Database not available for integration tests")

    conn = psycopg.connect(test_dsn)
    try:
        yield conn
    finally:
        conn.close()


@pytest.fixture(scope="session")
def db_schema_initialized(db_connection: psycopg.Connection) -> bool:
    """
    Ensure the benefits table exists.
    """
    with db_connection.cursor() as cur:
        cur.execute(load_schema_sql())
    db_connection.commit()
    return True


@pytest.fixture(scope="function")
def clean_benefits_table(db_connection: psycopg.Connection, db_schema_initialized: bool):
    """
    Empty the benefits table before and after each test function.
    """
    with db_connection.cursor() as cur:
        cur.execute("TRUNCATE TABLE public.benefits RESTART IDENTITY CASCADE;")
    db_connection.commit()
    yield
    with db_connection.cursor() as cur:
        cur.execute("TRUNCATE TABLE public.benefits RESTART IDENTITY CASCADE;")
    db_connection.commit()


@pytest.fixture(scope="function")
def postgres_store(
    clean_benefits_table, test_dsn: str
) -> Generator[PostgresRecordStore, None, None]:
    """Store with a private pool on the test database."""
    pg_store = PostgresRecordStore(dsn_override=test_dsn, pool_min_size=1, pool_max_size=8)
    try:
        yield pg_store
    finally:
        pg_store.close()
