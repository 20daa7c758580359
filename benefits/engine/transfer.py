"""
Transfer engine.

Moves value between two benefit records under optimistic concurrency control:

1. validate the request (no store access),
2. read both records, snapshotting value and version,
3. check existence, activity and balance,
4. compute both new balances in memory,
5. commit both records as one versioned unit.

A stale version at step 5 sends the whole sequence back to step 2 under the
conflict retry policy. Writes only happen at step 5, so every failure path
and every abandoned call leaves both records untouched.
"""

from __future__ import annotations

from typing import Any, Optional

from benefits.config import Settings, get_settings
from benefits.domain.errors import InactiveParticipant, InsufficientBalance, ParticipantNotFound
from benefits.domain.lifecycle import is_transfer_eligible
from benefits.domain.models import BenefitRecord, TransferReceipt, VersionedWrite
from benefits.engine.retry import ConflictRetryPolicy
from benefits.engine.validation import TransferRequest, validate_transfer
from benefits.stores.abstract import RecordStore
from benefits.utils.logging import get_logger

log = get_logger(__name__)


class TransferEngine:
    """
    The single TransferExecutor implementation, whatever store backs it.

    Holds no per-record state and takes no in-process locks; all coordination
    goes through the store's versioned writes. Safe to share across threads.
    """

    def __init__(self, store: RecordStore, retry_policy: Optional[ConflictRetryPolicy] = None) -> None:
        self.store = store
        self.retry_policy = retry_policy or ConflictRetryPolicy()

    def transfer(self, from_id: Any, to_id: Any, amount: Any) -> TransferReceipt:
        request = validate_transfer(from_id, to_id, amount)
        log.debug(
            "Transfer requested",
            extra={
                "from_id": request.from_id,
                "to_id": request.to_id,
                "amount": str(request.amount),
            },
        )
        receipt = self.retry_policy.run(lambda attempt: self._attempt(request, attempt))
        log.info(
            "[TRANSFER COMMITTED] "
            f"{request.from_id} -> {request.to_id} amount={request.amount}",
            extra={
                "from_id": request.from_id,
                "to_id": request.to_id,
                "amount": str(request.amount),
                "attempts": receipt.attempts,
            },
        )
        return receipt

    def _load(self, benefit_id: int) -> BenefitRecord:
        record = self.store.get(benefit_id)
        if record is None:
            raise ParticipantNotFound(benefit_id)
        return record

    def _attempt(self, request: TransferRequest, attempt: int) -> TransferReceipt:
        """One read-validate-commit pass. Never reuses state from earlier attempts."""
        source = self._load(request.from_id)
        target = self._load(request.to_id)

        for record in (source, target):
            if not is_transfer_eligible(record):
                raise InactiveParticipant(record.id)
        if source.value < request.amount:
            raise InsufficientBalance(source.id, source.value, request.amount)

        debited = source.model_copy(update={"value": source.value - request.amount})
        credited = target.model_copy(update={"value": target.value + request.amount})

        log.debug(
            f"[ATTEMPT {attempt}] committing",
            extra={
                "attempt": attempt,
                "from_id": source.id,
                "from_version": source.version,
                "to_id": target.id,
                "to_version": target.version,
            },
        )
        committed_source, committed_target = self.store.compare_and_swap_many(
            [
                VersionedWrite(record=debited, expected_version=source.version),
                VersionedWrite(record=credited, expected_version=target.version),
            ]
        )
        return TransferReceipt(
            source=committed_source,
            target=committed_target,
            amount=request.amount,
            attempts=attempt,
        )


def build_transfer_executor(
    store: RecordStore, settings: Optional[Settings] = None
) -> TransferEngine:
    """Wire an engine to `store` with the configured attempt bound."""
    settings = settings or get_settings()
    return TransferEngine(store, ConflictRetryPolicy(max_attempts=settings.transfer_max_attempts))


__all__ = ["TransferEngine", "build_transfer_executor"]
