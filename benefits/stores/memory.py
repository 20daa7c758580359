"""
In-memory record store.

Keeps records in a dict guarded by a single lock, so reading, comparing and
writing every record of a unit happens as one atomic step. Useful for tests,
the stress runner and embedding the engine without a database.
"""

from __future__ import annotations

import itertools
import threading
from typing import Dict, List, Optional, Sequence

from benefits.domain.errors import VersionConflict
from benefits.domain.lifecycle import apply_defaults
from benefits.domain.models import BenefitDraft, BenefitRecord, VersionedWrite
from benefits.stores.abstract import AbstractRecordStore, check_distinct_ids
from benefits.utils.logging import get_logger

log = get_logger(__name__)


class InMemoryRecordStore(AbstractRecordStore):
    """
    Thread-safe, process-local store.

    Records are immutable models, so handing them out directly is a snapshot.
    """

    name: str = "memory"

    def __init__(self, records: Optional[Sequence[BenefitRecord]] = None) -> None:
        self._lock = threading.Lock()
        self._records: Dict[int, BenefitRecord] = {}
        for record in records or ():
            self._records[record.id] = record
        self._ids = itertools.count(max(self._records, default=0) + 1)

    def get(self, benefit_id: int) -> Optional[BenefitRecord]:
        with self._lock:
            return self._records.get(benefit_id)

    def compare_and_swap_many(self, writes: Sequence[VersionedWrite]) -> List[BenefitRecord]:
        check_distinct_ids(writes)
        with self._lock:
            for write in writes:
                current = self._records.get(write.benefit_id)
                actual = current.version if current is not None else None
                if actual != write.expected_version:
                    log.debug(
                        "Version conflict",
                        extra={
                            "benefit_id": write.benefit_id,
                            "expected_version": write.expected_version,
                            "actual_version": actual,
                        },
                    )
                    raise VersionConflict(write.benefit_id, write.expected_version, actual)

            committed = [
                write.record.model_copy(update={"version": write.expected_version + 1})
                for write in writes
            ]
            for record in committed:
                self._records[record.id] = record
            return committed

    def create(self, draft: BenefitDraft) -> BenefitRecord:
        draft = apply_defaults(draft)
        with self._lock:
            record = BenefitRecord(
                id=next(self._ids),
                name=draft.name,
                description=draft.description,
                value=draft.value,
                active=draft.active,
                version=0,
            )
            self._records[record.id] = record
            return record

    def delete(self, benefit_id: int) -> bool:
        with self._lock:
            return self._records.pop(benefit_id, None) is not None

    def find_all(self) -> List[BenefitRecord]:
        with self._lock:
            return [self._records[key] for key in sorted(self._records)]


__all__ = ["InMemoryRecordStore"]
