"""Fail-fast validation of transfer requests. Pure; never touches storage."""

from __future__ import annotations

from dataclasses import dataclass
from decimal import Decimal, InvalidOperation
from typing import Any

from benefits.domain.errors import InvalidRequest
from benefits.domain.lifecycle import has_valid_scale
from benefits.domain.models import VALUE_DECIMAL_PLACES

# Largest id the BIGSERIAL column can hold.
MAX_ID = 2**63 - 1


@dataclass(frozen=True)
class TransferRequest:
    from_id: int
    to_id: int
    amount: Decimal


def normalize_id(value: Any, field: str) -> int:
    """Accept positive ints and integer strings; reject everything else."""
    if value is None:
        raise InvalidRequest(f"{field} must be provided")
    if isinstance(value, bool):
        raise InvalidRequest(f"{field} must be an integer id")
    if isinstance(value, str):
        text = value.strip()
        if not text:
            raise InvalidRequest(f"{field} must not be empty")
        if not (text.isascii() and text.isdigit()):
            raise InvalidRequest(f"{field} must be an integer id, got {value!r}")
        value = int(text)
    if not isinstance(value, int):
        raise InvalidRequest(f"{field} must be an integer id")
    if value <= 0:
        raise InvalidRequest(f"{field} must be positive")
    if value > MAX_ID:
        raise InvalidRequest(f"{field} is out of range")
    return value


def normalize_amount(value: Any) -> Decimal:
    """Exact, finite, strictly positive amount with at most two decimal places."""
    if value is None:
        raise InvalidRequest("amount must be provided")
    if isinstance(value, (bool, float)):
        raise InvalidRequest("amount must be an exact decimal, not a binary float")
    if isinstance(value, int):
        value = Decimal(value)
    elif isinstance(value, str):
        try:
            value = Decimal(value.strip())
        except InvalidOperation:
            raise InvalidRequest(f"amount is not a decimal number: {value!r}") from None
    elif not isinstance(value, Decimal):
        raise InvalidRequest("amount must be a decimal number")

    if not value.is_finite():
        raise InvalidRequest("amount must be finite")
    if value <= 0:
        raise InvalidRequest("amount must be positive")
    if not has_valid_scale(value):
        raise InvalidRequest(f"amount must have at most {VALUE_DECIMAL_PLACES} decimal places")
    return value


def validate_transfer(from_id: Any, to_id: Any, amount: Any) -> TransferRequest:
    """
    Reject malformed input before any store access.

    Raises
    ------
    InvalidRequest
        Missing or malformed ids, equal ids, or a non-positive amount.
    """
    source = normalize_id(from_id, "from_id")
    target = normalize_id(to_id, "to_id")
    if source == target:
        raise InvalidRequest("from_id and to_id must be different")
    return TransferRequest(from_id=source, to_id=target, amount=normalize_amount(amount))


__all__ = ["MAX_ID", "TransferRequest", "normalize_amount", "normalize_id", "validate_transfer"]
