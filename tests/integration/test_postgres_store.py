"""
Integration tests for the PostgreSQL record store and the transfer engine.

These tests run against a real PostgreSQL instance and verify that:
1. Versioned writes bump the version column and reject stale versions
2. A unit of writes is rolled back as a whole when any row misses
3. Concurrent transfers through the engine conserve the total value

Run with: RUN_INTEGRATION_TESTS=1 pytest tests/integration/
"""

from __future__ import annotations

import os
from concurrent.futures import ThreadPoolExecutor
from decimal import Decimal

import pytest

from benefits.domain.errors import InsufficientBalance, TransferError, VersionConflict
from benefits.domain.models import BenefitDraft, VersionedWrite
from benefits.engine.retry import ConflictRetryPolicy
from benefits.engine.transfer import TransferEngine
from benefits.stress import StressConfig, run_stress

# Test configuration constants
CONCURRENT_WORKERS = 8
CONCURRENT_TRANSFERS = 200
STRESS_RECORDS = 4
STRESS_TRANSFERS = 100

pytestmark = pytest.mark.skipif(
    os.getenv("RUN_INTEGRATION_TESTS", "0") != "1",
    reason="Integration tests require RUN_INTEGRATION_TESTS=1 and reachable Postgres",
)


class TestPostgresRecordStore:
    """Store contract against the benefits table."""

    def test_create_applies_defaults(self, postgres_store):
        record = postgres_store.create(BenefitDraft(name="meal"))

        assert record.id == 1
        assert record.value == Decimal("0.00")
        assert record.active is True
        assert record.version == 0

    def test_get_and_exists(self, postgres_store):
        record = postgres_store.create(BenefitDraft(name="meal", value=Decimal("10.50")))

        assert postgres_store.get(record.id) == record
        assert postgres_store.exists(record.id) is True
        assert postgres_store.get(999) is None
        assert postgres_store.exists(999) is False

    def test_compare_and_swap_bumps_version(self, postgres_store):
        record = postgres_store.create(BenefitDraft(name="meal", value=Decimal("10.00")))

        committed = postgres_store.compare_and_swap(
            VersionedWrite(
                record=record.model_copy(update={"value": Decimal("4.00")}),
                expected_version=record.version,
            )
        )

        assert committed.version == 1
        assert committed.value == Decimal("4.00")

    def test_stale_write_reports_actual_version(self, postgres_store):
        record = postgres_store.create(BenefitDraft(name="meal"))
        postgres_store.compare_and_swap(VersionedWrite(record=record, expected_version=0))

        with pytest.raises(VersionConflict) as excinfo:
            postgres_store.compare_and_swap(VersionedWrite(record=record, expected_version=0))

        assert excinfo.value.actual_version == 1

    def test_unit_rolls_back_when_any_row_misses(self, postgres_store):
        first = postgres_store.create(BenefitDraft(name="a", value=Decimal("10.00")))
        second = postgres_store.create(BenefitDraft(name="b", value=Decimal("10.00")))
        postgres_store.compare_and_swap(VersionedWrite(record=second, expected_version=0))

        with pytest.raises(VersionConflict):
            postgres_store.compare_and_swap_many(
                [
                    VersionedWrite(
                        record=first.model_copy(update={"value": Decimal("0")}),
                        expected_version=0,
                    ),
                    VersionedWrite(
                        record=second.model_copy(update={"value": Decimal("20.00")}),
                        expected_version=0,
                    ),
                ]
            )

        assert postgres_store.get(first.id) == first

    def test_delete(self, postgres_store):
        record = postgres_store.create(BenefitDraft(name="meal"))

        assert postgres_store.delete(record.id) is True
        assert postgres_store.delete(record.id) is False
        assert postgres_store.find_all() == []


class TestTransfersOnPostgres:
    """Engine behaviour with the database enforcing versioned writes."""

    def test_transfer_commits_both_rows(self, postgres_store):
        source = postgres_store.create(BenefitDraft(name="source", value=Decimal("100.00")))
        target = postgres_store.create(BenefitDraft(name="target", value=Decimal("50.00")))

        receipt = TransferEngine(postgres_store).transfer(source.id, target.id, Decimal("30"))

        assert receipt.source.value == Decimal("70.00")
        assert receipt.target.value == Decimal("80.00")
        assert (receipt.source.version, receipt.target.version) == (1, 1)

    def test_insufficient_balance_leaves_rows_untouched(self, postgres_store):
        source = postgres_store.create(BenefitDraft(name="source", value=Decimal("20.00")))
        target = postgres_store.create(BenefitDraft(name="target", value=Decimal("50.00")))

        with pytest.raises(InsufficientBalance):
            TransferEngine(postgres_store).transfer(source.id, target.id, Decimal("30"))

        assert postgres_store.find_all() == [source, target]

    def test_concurrent_transfers_conserve_total(self, postgres_store):
        ids = [
            postgres_store.create(BenefitDraft(name=f"b{i}", value=Decimal("100.00"))).id
            for i in range(3)
        ]
        engine = TransferEngine(postgres_store, ConflictRetryPolicy(max_attempts=5))
        plan = [
            (ids[i % 3], ids[(i + 1) % 3], Decimal("3.33")) for i in range(CONCURRENT_TRANSFERS)
        ]

        def run(args):
            try:
                engine.transfer(*args)
            except TransferError:
                pass

        with ThreadPoolExecutor(max_workers=CONCURRENT_WORKERS) as pool:
            list(pool.map(run, plan))

        records = postgres_store.find_all()
        assert sum(r.value for r in records) == Decimal("300.00")
        assert all(r.value >= 0 for r in records)

    def test_stress_runner_on_postgres(self, postgres_store):
        report = run_stress(
            StressConfig(records=STRESS_RECORDS, transfers=STRESS_TRANSFERS, workers=4),
            store=postgres_store,
        )

        assert report["store"] == "postgres"
        assert report["conservation_ok"] is True
        assert report["no_negative_balance"] is True
