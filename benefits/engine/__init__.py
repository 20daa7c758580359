"""
Transfer engine package.

Re-exports the executor capability, the engine that implements it, and the
conflict retry policy.
"""

from benefits.engine.abstract import TransferExecutor
from benefits.engine.retry import ConflictRetryPolicy
from benefits.engine.transfer import TransferEngine, build_transfer_executor
from benefits.engine.validation import TransferRequest, validate_transfer

__all__ = [
    "ConflictRetryPolicy",
    "TransferEngine",
    "TransferExecutor",
    "TransferRequest",
    "build_transfer_executor",
    "validate_transfer",
]
