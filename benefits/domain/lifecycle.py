"""
Lifecycle rules for benefit records.

Defaulting and validity policy applied when a record is created or fully
replaced, and the eligibility predicate the transfer engine consults on every
attempt.
"""
from __future__ import annotations

from decimal import Decimal

from benefits.domain.errors import InvalidBenefit
from benefits.domain.models import VALUE_DECIMAL_PLACES, BenefitDraft, BenefitRecord

DEFAULT_VALUE = Decimal("0")
DEFAULT_ACTIVE = True


def has_valid_scale(amount: Decimal) -> bool:
    """True when `amount` is finite and fits the stored number of fractional digits."""
    if not amount.is_finite():
        return False
    exponent = amount.as_tuple().exponent
    return isinstance(exponent, int) and exponent >= -VALUE_DECIMAL_PLACES


def apply_defaults(draft: BenefitDraft) -> BenefitDraft:
    """Fill an absent value with zero and an absent active flag with True."""
    updates = {}
    if draft.value is None:
        updates["value"] = DEFAULT_VALUE
    if draft.active is None:
        updates["active"] = DEFAULT_ACTIVE
    return draft.model_copy(update=updates) if updates else draft


def validate_draft(draft: BenefitDraft) -> BenefitDraft:
    """
    Apply defaults and reject drafts that would produce an invalid record.

    Raises
    ------
    InvalidBenefit
        Blank name, negative value, or a value with too many fractional digits.
    """
    draft = apply_defaults(draft)
    if not draft.name or not draft.name.strip():
        raise InvalidBenefit("Benefit name must not be blank")
    value = draft.value if draft.value is not None else DEFAULT_VALUE
    if not has_valid_scale(value):
        raise InvalidBenefit(
            f"Benefit value must be a finite amount with at most "
            f"{VALUE_DECIMAL_PLACES} decimal places"
        )
    if value < 0:
        raise InvalidBenefit("Benefit value must not be negative")
    return draft


def replace_fields(current: BenefitRecord, draft: BenefitDraft) -> BenefitRecord:
    """
    Full replacement of business fields, keeping id and version.

    The returned record still carries the version that was read, which is the
    version the store must match when committing it.
    """
    draft = validate_draft(draft)
    return current.model_copy(
        update={
            "name": draft.name,
            "description": draft.description,
            "value": draft.value,
            "active": draft.active,
        }
    )


def is_transfer_eligible(record: BenefitRecord) -> bool:
    """Only active records may take part in a transfer."""
    return record.active is True


__all__ = [
    "DEFAULT_VALUE",
    "DEFAULT_ACTIVE",
    "has_valid_scale",
    "apply_defaults",
    "validate_draft",
    "replace_fields",
    "is_transfer_eligible",
]
