"""
Capability interface for moving value between two benefit records.

Every backing store is served by the same engine; callers depend on this
protocol rather than on a particular implementation.
"""

from __future__ import annotations

from decimal import Decimal
from typing import Protocol, Union, runtime_checkable

from benefits.domain.models import TransferReceipt

BenefitId = Union[int, str]
Amount = Union[Decimal, int, str]


@runtime_checkable
class TransferExecutor(Protocol):
    """Debits one record and credits another as a single committed unit."""

    def transfer(self, from_id: BenefitId, to_id: BenefitId, amount: Amount) -> TransferReceipt:
        """
        Move `amount` from `from_id` to `to_id`.

        Returns
        -------
        TransferReceipt
            Both records as committed.

        Raises
        ------
        InvalidRequest, ParticipantNotFound, InactiveParticipant,
        InsufficientBalance, ConcurrentUpdateConflict
            Nothing is written when any of these is raised.
        """
        ...


__all__ = ["Amount", "BenefitId", "TransferExecutor"]
