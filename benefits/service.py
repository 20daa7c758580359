"""
Benefit service: listing, single-record CRUD and transfer orchestration.

Direct edits follow the same read-then-versioned-write discipline as the
transfer engine, so an edit and a transfer racing on one record are caught by
the same version check.
"""

from __future__ import annotations

from typing import Any, List, Optional

from benefits.domain.errors import BenefitNotFound, ConcurrentUpdateConflict, VersionConflict
from benefits.domain.lifecycle import replace_fields, validate_draft
from benefits.domain.models import BenefitDraft, BenefitRecord, TransferReceipt, VersionedWrite
from benefits.engine.abstract import TransferExecutor
from benefits.engine.transfer import TransferEngine
from benefits.stores.abstract import RecordStore
from benefits.utils.logging import get_logger

log = get_logger(__name__)


class BenefitService:
    def __init__(self, store: RecordStore, executor: Optional[TransferExecutor] = None) -> None:
        self.store = store
        self.executor = executor or TransferEngine(store)

    def list_all(self) -> List[BenefitRecord]:
        return self.store.find_all()

    def get_by_id(self, benefit_id: int) -> BenefitRecord:
        record = self.store.get(benefit_id)
        if record is None:
            raise BenefitNotFound(benefit_id)
        return record

    def create(self, draft: BenefitDraft) -> BenefitRecord:
        """Create a record with lifecycle defaults applied (value 0, active)."""
        record = self.store.create(validate_draft(draft))
        log.info("Benefit created", extra={"benefit_id": record.id})
        return record

    def update(
        self,
        benefit_id: int,
        changes: BenefitDraft,
        expected_version: Optional[int] = None,
    ) -> BenefitRecord:
        """
        Replace the business fields of a record.

        Parameters
        ----------
        benefit_id : int
            Record to edit.
        changes : BenefitDraft
            New business fields; absent value/active take the creation defaults.
        expected_version : int, optional
            Version the caller last saw. When given, the edit is rejected if
            the record has moved on since.

        Raises
        ------
        BenefitNotFound
            The record does not exist.
        ConcurrentUpdateConflict
            Another write committed first. Not retried: re-applying a full
            replacement would silently overwrite the other writer.
        """
        current = self.get_by_id(benefit_id)
        if expected_version is not None and expected_version != current.version:
            raise ConcurrentUpdateConflict(
                f"Benefit {benefit_id} changed since version {expected_version}, reload and retry",
                benefit_id=benefit_id,
            )
        replacement = replace_fields(current, changes)
        try:
            updated = self.store.compare_and_swap(
                VersionedWrite(record=replacement, expected_version=current.version)
            )
        except VersionConflict as exc:
            if exc.actual_version is None and not self.store.exists(benefit_id):
                raise BenefitNotFound(benefit_id) from exc
            raise ConcurrentUpdateConflict(
                f"Benefit {benefit_id} was updated concurrently, reload and retry",
                benefit_id=benefit_id,
            ) from exc
        log.info(
            "Benefit updated",
            extra={"benefit_id": benefit_id, "version": updated.version},
        )
        return updated

    def delete(self, benefit_id: int) -> None:
        if not self.store.delete(benefit_id):
            raise BenefitNotFound(benefit_id)
        log.info("Benefit deleted", extra={"benefit_id": benefit_id})

    def transfer(self, from_id: Any, to_id: Any, amount: Any) -> TransferReceipt:
        return self.executor.transfer(from_id, to_id, amount)


__all__ = ["BenefitService"]
