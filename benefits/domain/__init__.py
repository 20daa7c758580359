"""
Domain package for the benefit transfer service.

Exports the record models, the error taxonomy and the lifecycle rules.
Keep this package free of storage and transport concerns.
"""

from benefits.domain.errors import (
    BenefitError,
    BenefitNotFound,
    ConcurrentUpdateConflict,
    InactiveParticipant,
    InsufficientBalance,
    InvalidBenefit,
    InvalidRequest,
    ParticipantNotFound,
    TransferError,
    VersionConflict,
)
from benefits.domain.models import BenefitDraft, BenefitRecord, TransferReceipt, VersionedWrite

__all__ = [
    "BenefitDraft",
    "BenefitRecord",
    "TransferReceipt",
    "VersionedWrite",
    "BenefitError",
    "BenefitNotFound",
    "ConcurrentUpdateConflict",
    "InactiveParticipant",
    "InsufficientBalance",
    "InvalidBenefit",
    "InvalidRequest",
    "ParticipantNotFound",
    "TransferError",
    "VersionConflict",
]
