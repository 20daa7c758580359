"""
Error taxonomy for benefit records and transfers.

Transfer failures are ordinary, expected outcomes of a call. Each carries a
machine-readable `kind` so the presentation layer can map it to a transport
status without inspecting messages.
"""
from __future__ import annotations

from typing import Any, Dict, Optional


class BenefitError(Exception):
    """Base class for every domain error raised by this package."""

    kind: str = "BenefitError"

    def __init__(self, message: str, **context: Any) -> None:
        super().__init__(message)
        self.message = message
        self.context: Dict[str, Any] = context

    def to_dict(self) -> Dict[str, Any]:
        return {"error": self.kind, "message": self.message}


class BenefitNotFound(BenefitError):
    kind = "BenefitNotFound"

    def __init__(self, benefit_id: Any) -> None:
        super().__init__(f"Benefit {benefit_id} not found", benefit_id=benefit_id)
        self.benefit_id = benefit_id


class InvalidBenefit(BenefitError):
    """A record's business fields violate the lifecycle rules."""

    kind = "InvalidBenefit"


class TransferError(BenefitError):
    """Base class for the typed failures of a transfer."""

    kind = "TransferError"


class InvalidRequest(TransferError):
    kind = "InvalidRequest"


class ParticipantNotFound(TransferError, BenefitNotFound):
    kind = "ParticipantNotFound"

    def __init__(self, benefit_id: Any) -> None:
        BenefitError.__init__(
            self, f"Transfer participant {benefit_id} not found", benefit_id=benefit_id
        )
        self.benefit_id = benefit_id


class InactiveParticipant(TransferError):
    kind = "InactiveParticipant"

    def __init__(self, benefit_id: int) -> None:
        super().__init__(
            f"Benefit {benefit_id} is inactive and cannot take part in transfers",
            benefit_id=benefit_id,
        )
        self.benefit_id = benefit_id


class InsufficientBalance(TransferError):
    kind = "InsufficientBalance"

    def __init__(self, benefit_id: int, available: Any, requested: Any) -> None:
        super().__init__(
            f"Benefit {benefit_id} has {available} available, {requested} requested",
            benefit_id=benefit_id,
            available=str(available),
            requested=str(requested),
        )
        self.benefit_id = benefit_id
        self.available = available
        self.requested = requested


class ConcurrentUpdateConflict(TransferError):
    """A versioned write kept losing to concurrent writers."""

    kind = "ConcurrentUpdateConflict"

    def __init__(self, message: str, attempts: int = 1, benefit_id: Optional[int] = None) -> None:
        super().__init__(message, attempts=attempts, benefit_id=benefit_id)
        self.attempts = attempts
        self.benefit_id = benefit_id


class VersionConflict(Exception):
    """
    Raised by a record store when a versioned write is stale.

    `actual_version` is None when the record no longer exists or the backend
    aborted the whole unit (deadlock, serialization failure).
    """

    def __init__(
        self, benefit_id: int, expected_version: int, actual_version: Optional[int]
    ) -> None:
        super().__init__(
            f"Benefit {benefit_id}: expected version {expected_version}, "
            f"found {actual_version if actual_version is not None else 'none'}"
        )
        self.benefit_id = benefit_id
        self.expected_version = expected_version
        self.actual_version = actual_version


__all__ = [
    "BenefitError",
    "BenefitNotFound",
    "InvalidBenefit",
    "TransferError",
    "InvalidRequest",
    "ParticipantNotFound",
    "InactiveParticipant",
    "InsufficientBalance",
    "ConcurrentUpdateConflict",
    "VersionConflict",
]
