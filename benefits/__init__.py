"""
Benefit Transfer - named monetary benefit records and value transfers between them.

The core is the transfer engine: it debits one record and credits another as
a single unit under optimistic concurrency control, rejecting stale writes
instead of overwriting them. Around it the package provides:

- Lifecycle rules for record defaults and transfer eligibility
- A bounded retry policy for version conflicts
- In-memory and PostgreSQL record stores behind one contract
- A CRUD service and a framework-free presentation layer
- A concurrent stress runner that checks the invariants under contention
"""

from __future__ import annotations

__version__ = "0.1.0"
__license__ = "MIT"

# Public API exports
from benefits.config import Settings, get_settings
from benefits.domain import (
    BenefitDraft,
    BenefitError,
    BenefitNotFound,
    BenefitRecord,
    ConcurrentUpdateConflict,
    InactiveParticipant,
    InsufficientBalance,
    InvalidBenefit,
    InvalidRequest,
    ParticipantNotFound,
    TransferError,
    TransferReceipt,
    VersionConflict,
)
from benefits.engine import (
    ConflictRetryPolicy,
    TransferEngine,
    TransferExecutor,
    build_transfer_executor,
)
from benefits.service import BenefitService
from benefits.stores import InMemoryRecordStore, PostgresRecordStore, RecordStore, build_store
from benefits.utils.logging import configure_logging, get_logger

__all__ = [
    # Version info
    "__version__",
    "__license__",
    # Configuration
    "Settings",
    "get_settings",
    # Domain
    "BenefitDraft",
    "BenefitRecord",
    "TransferReceipt",
    # Errors
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
    # Engine
    "ConflictRetryPolicy",
    "TransferEngine",
    "TransferExecutor",
    "build_transfer_executor",
    # Storage and service
    "BenefitService",
    "InMemoryRecordStore",
    "PostgresRecordStore",
    "RecordStore",
    "build_store",
    # Logging
    "configure_logging",
    "get_logger",
]
