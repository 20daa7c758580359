"""
Domain models for the benefit transfer service.

Defines the benefit record schema aligned with `benefits/db/init.sql`, the draft used
for creation and full-replacement updates, the versioned write handed to a
record store, and the receipt returned by a committed transfer.
"""
from __future__ import annotations

from decimal import Decimal
from typing import Optional

from pydantic import BaseModel, Field

# Fractional digits kept by the `value` column (NUMERIC(15,2)).
VALUE_DECIMAL_PLACES = 2


class BenefitRecord(BaseModel):
    """
    Representation of a single row in the `benefits` table.

    `version` exists only for optimistic concurrency; stores set it, callers
    never edit it directly.
    """

    id: int = Field(..., description="Store-assigned identifier, immutable.")
    name: str = Field(..., description="Free-text name.")
    description: Optional[str] = Field(None, description="Free-text description.")
    value: Decimal = Field(..., ge=0, description="Available balance.")
    active: bool = Field(True, description="Whether the record may take part in transfers.")
    version: int = Field(0, ge=0, description="Optimistic concurrency stamp.")

    model_config = {
        "frozen": True,
        "populate_by_name": True,
    }


class BenefitDraft(BaseModel):
    """
    Business fields supplied on creation or full replacement.

    `value` and `active` may be omitted; lifecycle rules fill the defaults.
    """

    name: str = Field(..., description="Free-text name.")
    description: Optional[str] = None
    value: Optional[Decimal] = None
    active: Optional[bool] = None

    model_config = {
        "frozen": True,
    }


class VersionedWrite(BaseModel):
    """
    New state for an existing record plus the version observed when it was read.

    The store accepts the write only if its current version still equals
    `expected_version`, and commits it as `expected_version + 1`.
    """

    record: BenefitRecord
    expected_version: int = Field(..., ge=0)

    model_config = {
        "frozen": True,
    }

    @property
    def benefit_id(self) -> int:
        return self.record.id


class TransferReceipt(BaseModel):
    """Outcome of a committed transfer."""

    source: BenefitRecord
    target: BenefitRecord
    amount: Decimal
    attempts: int = Field(1, ge=1)

    model_config = {
        "frozen": True,
    }


__all__ = [
    "VALUE_DECIMAL_PLACES",
    "BenefitRecord",
    "BenefitDraft",
    "VersionedWrite",
    "TransferReceipt",
]
