"""
Record store interfaces for the benefit transfer service.

Concrete stores (in-memory, PostgreSQL) implement the RecordStore protocol.
The transfer engine relies only on this contract; in particular on
`compare_and_swap_many` being atomic across concurrent writers.
"""

from __future__ import annotations

import abc
from typing import List, Optional, Protocol, Sequence, runtime_checkable

from benefits.domain.models import BenefitDraft, BenefitRecord, VersionedWrite


@runtime_checkable
class RecordStore(Protocol):
    """
    Durable keyed storage of benefit records with versioned writes.

    Attributes
    ----------
    name : str
        A short machine-friendly identifier for the backend.
    """

    name: str

    def get(self, benefit_id: int) -> Optional[BenefitRecord]:
        """
        Read a consistent snapshot (business fields + version) of one record.

        Returns None when the id does not resolve to a record.
        """
        ...

    def compare_and_swap(self, write: VersionedWrite) -> BenefitRecord:
        """Versioned write of a single record. See `compare_and_swap_many`."""
        ...

    def compare_and_swap_many(self, writes: Sequence[VersionedWrite]) -> List[BenefitRecord]:
        """
        Write several records as one unit.

        Each write is accepted only if the stored version still equals its
        `expected_version`; the committed record carries `expected_version + 1`.

        Returns
        -------
        list[BenefitRecord]
            Committed records, in the order of `writes`.

        Raises
        ------
        VersionConflict
            If any write is stale or its record vanished. Nothing is written.
        """
        ...

    def create(self, draft: BenefitDraft) -> BenefitRecord:
        """Insert a new record (defaults already applied) with version 0."""
        ...

    def delete(self, benefit_id: int) -> bool:
        """Remove a record. Returns False when nothing was deleted."""
        ...

    def exists(self, benefit_id: int) -> bool:
        ...

    def find_all(self) -> List[BenefitRecord]:
        """All records ordered by id."""
        ...

    def close(self) -> None:
        ...


class AbstractRecordStore(abc.ABC):
    """
    Optional ABC helper for class-based stores.

    Subclasses implement the primitive operations; single writes and
    existence checks are derived from them.
    """

    name: str

    @abc.abstractmethod
    def get(self, benefit_id: int) -> Optional[BenefitRecord]:  # pragma: no cover - interface only
        raise NotImplementedError

    @abc.abstractmethod
    def compare_and_swap_many(
        self, writes: Sequence[VersionedWrite]
    ) -> List[BenefitRecord]:  # pragma: no cover - interface only
        raise NotImplementedError

    @abc.abstractmethod
    def create(self, draft: BenefitDraft) -> BenefitRecord:  # pragma: no cover - interface only
        raise NotImplementedError

    @abc.abstractmethod
    def delete(self, benefit_id: int) -> bool:  # pragma: no cover - interface only
        raise NotImplementedError

    @abc.abstractmethod
    def find_all(self) -> List[BenefitRecord]:  # pragma: no cover - interface only
        raise NotImplementedError

    def compare_and_swap(self, write: VersionedWrite) -> BenefitRecord:
        return self.compare_and_swap_many([write])[0]

    def exists(self, benefit_id: int) -> bool:
        return self.get(benefit_id) is not None

    def close(self) -> None:
        """Release backend resources. No-op by default."""


def check_distinct_ids(writes: Sequence[VersionedWrite]) -> None:
    """A unit of writes may touch each record at most once."""
    ids = [write.benefit_id for write in writes]
    if len(ids) != len(set(ids)):
        raise ValueError(f"Duplicate benefit ids in one commit: {ids}")


__all__ = [
    "RecordStore",
    "AbstractRecordStore",
    "check_distinct_ids",
]
