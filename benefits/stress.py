"""
Concurrent transfer stress runner.

Seeds a fresh set of records, fires many random transfers at them from a pool
of worker threads, and checks the invariants afterwards: the seeded total is
conserved and no balance went negative. Outcomes are tallied per failure kind
so conflict and retry behaviour under contention is visible.

Usage (example from CLI):
    from benefits.stress import StressConfig, run_stress

    report = run_stress(StressConfig(records=5, transfers=500, workers=8, backend="memory"))
    print(report["outcomes"], report["conservation_ok"])

Persisted reports are saved to `results/` by default:
- `results/latest.json` (last run)
- `results/stress-<timestamp>.json` (timestamped archive)
"""

from __future__ import annotations

import json
import random
from collections import Counter
from concurrent.futures import ThreadPoolExecutor
from dataclasses import dataclass
from datetime import datetime, timezone
from decimal import Decimal
from pathlib import Path
from typing import Any, Dict, List, Optional, Tuple

from benefits.config import get_settings
from benefits.domain.errors import TransferError
from benefits.domain.lifecycle import has_valid_scale, validate_draft
from benefits.domain.models import BenefitDraft, BenefitRecord
from benefits.engine.retry import ConflictRetryPolicy
from benefits.engine.transfer import TransferEngine
from benefits.stores import RecordStore, build_store
from benefits.utils.logging import get_logger
from benefits.utils.profiler import profile_block

log = get_logger(__name__)

COMMITTED = "Committed"

PlannedTransfer = Tuple[int, int, Decimal]


@dataclass(frozen=True)
class StressConfig:
    """Parameters of one stress run."""

    records: int = 10
    initial_value: Decimal = Decimal("100.00")
    transfers: int = 1_000
    workers: int = 8
    max_amount: Decimal = Decimal("50.00")
    seed: int = 42
    backend: Optional[str] = None
    max_attempts: Optional[int] = None
    persist: bool = False
    results_dir: Path | str = "results"

    def __post_init__(self) -> None:
        if self.records < 2:
            raise ValueError("records must be at least 2")
        if self.transfers < 0 or self.workers < 1:
            raise ValueError("transfers must be >= 0 and workers >= 1")
        if not has_valid_scale(self.max_amount) or self.max_amount < Decimal("0.01"):
            raise ValueError("max_amount must be at least 0.01 with at most 2 decimal places")
        if not has_valid_scale(self.initial_value) or self.initial_value < 0:
            raise ValueError("initial_value must be non-negative with at most 2 decimal places")
        if self.max_attempts is not None and self.max_attempts < 1:
            raise ValueError("max_attempts must be at least 1")


def _plan_transfers(ids: List[int], config: StressConfig) -> List[PlannedTransfer]:
    """Deterministic list of (from, to, amount) with distinct endpoints."""
    rng = random.Random(config.seed)
    max_cents = int(config.max_amount * 100)
    plan: List[PlannedTransfer] = []
    for _ in range(config.transfers):
        source, target = rng.sample(ids, 2)
        amount = Decimal(rng.randint(1, max_cents)).scaleb(-2)
        plan.append((source, target, amount))
    return plan


def _execute_one(engine: TransferEngine, planned: PlannedTransfer) -> Tuple[str, int]:
    source, target, amount = planned
    try:
        receipt = engine.transfer(source, target, amount)
    except TransferError as exc:
        return exc.kind, getattr(exc, "attempts", 1)
    return COMMITTED, receipt.attempts


def _seed(store: RecordStore, config: StressConfig) -> List[BenefitRecord]:
    stamp = datetime.now(timezone.utc).strftime("%Y%m%dT%H%M%S")
    return [
        store.create(
            validate_draft(
                BenefitDraft(
                    name=f"stress-{stamp}-{index}",
                    description="stress runner fixture",
                    value=config.initial_value,
                    active=True,
                )
            )
        )
        for index in range(config.records)
    ]


def _persist_results(payload: dict, results_dir: Path) -> None:
    results_dir.mkdir(parents=True, exist_ok=True)
    latest_path = results_dir / "latest.json"
    timestamp = datetime.now(timezone.utc).strftime("%Y%m%dT%H%M%SZ")
    archive_path = results_dir / f"stress-{timestamp}.json"

    for path in (latest_path, archive_path):
        with path.open("w", encoding="utf-8") as f:
            json.dump(payload, f, indent=2, sort_keys=True, default=str)

    log.info("Results persisted", extra={"latest": str(latest_path), "archive": str(archive_path)})


def run_stress(config: StressConfig, store: Optional[RecordStore] = None) -> Dict[str, Any]:
    """
    Run one stress scenario and return its report.

    Parameters
    ----------
    config : StressConfig
        Scenario parameters.
    store : RecordStore, optional
        Store to run against. When omitted, one is built from `config.backend`
        (or the configured backend) and closed afterwards.

    Returns
    -------
    dict
        Outcome tallies, retry counts, invariant checks and profiler stats.
    """
    settings = get_settings()
    owns_store = store is None
    active_store = store if store is not None else build_store(settings, backend=config.backend)
    max_attempts = config.max_attempts or settings.transfer_max_attempts
    engine = TransferEngine(active_store, ConflictRetryPolicy(max_attempts=max_attempts))

    try:
        seeded = _seed(active_store, config)
        ids = [record.id for record in seeded]
        total_before = sum((record.value for record in seeded), Decimal("0"))
        plan = _plan_transfers(ids, config)

        log.info(
            f"[STRESS START] {config.transfers} transfers over {config.records} records",
            extra={"store": active_store.name, "workers": config.workers, "seed": config.seed},
        )
        with profile_block("stress") as stats:
            with ThreadPoolExecutor(max_workers=config.workers) as pool:
                outcomes = list(pool.map(lambda planned: _execute_one(engine, planned), plan))

        final: List[BenefitRecord] = [
            record for record in (active_store.get(i) for i in ids) if record is not None
        ]
        total_after = sum((record.value for record in final), Decimal("0"))
    finally:
        if owns_store:
            active_store.close()

    tally = Counter(kind for kind, _ in outcomes)
    retries = sum(attempts - 1 for kind, attempts in outcomes if kind == COMMITTED)
    duration = stats.duration_seconds
    report: Dict[str, Any] = {
        "timestamp": datetime.now(timezone.utc).isoformat(),
        "store": active_store.name,
        "records": config.records,
        "transfers": config.transfers,
        "workers": config.workers,
        "max_attempts": max_attempts,
        "seed": config.seed,
        "outcomes": dict(sorted(tally.items())),
        "committed": tally.get(COMMITTED, 0),
        "retries": retries,
        "total_before": str(total_before),
        "total_after": str(total_after),
        "conservation_ok": total_before == total_after and len(final) == len(ids),
        "no_negative_balance": all(record.value >= 0 for record in final),
        "duration_seconds": round(duration, 3),
        "transfers_per_sec": round(config.transfers / duration, 2) if duration else 0.0,
        "profile": stats.to_dict(),
    }

    log.info(
        "[STRESS COMPLETE]",
        extra={
            "committed": report["committed"],
            "retries": retries,
            "conservation_ok": report["conservation_ok"],
        },
    )

    if config.persist:
        _persist_results(report, Path(config.results_dir))

    return report


__all__ = ["COMMITTED", "StressConfig", "run_stress"]
