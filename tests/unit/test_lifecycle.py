from __future__ import annotations

from decimal import Decimal

import pytest

from benefits.domain.errors import BenefitNotFound, ConcurrentUpdateConflict, InvalidBenefit
from benefits.domain.lifecycle import (
    apply_defaults,
    is_transfer_eligible,
    replace_fields,
    validate_draft,
)
from benefits.domain.models import BenefitDraft, BenefitRecord, VersionedWrite
from benefits.service import BenefitService
from benefits.stores.memory import InMemoryRecordStore

MISSING_ID = 404


class _RacingStore(InMemoryRecordStore):
    """Commits a rival edit between the service's read and its versioned write."""

    def compare_and_swap_many(self, writes):
        current = self.get(writes[0].benefit_id)
        super().compare_and_swap_many(
            [
                VersionedWrite(
                    record=current.model_copy(update={"name": "rival"}),
                    expected_version=current.version,
                )
            ]
        )
        return super().compare_and_swap_many(writes)


class _VanishingStore(InMemoryRecordStore):
    """Deletes the record between the service's read and its versioned write."""

    def compare_and_swap_many(self, writes):
        self.delete(writes[0].benefit_id)
        return super().compare_and_swap_many(writes)


@pytest.fixture
def service(store: InMemoryRecordStore) -> BenefitService:
    return BenefitService(store)


def test_apply_defaults_fills_value_and_active() -> None:
    draft = apply_defaults(BenefitDraft(name="meal"))
    assert draft.value == Decimal("0")
    assert draft.active is True


def test_apply_defaults_keeps_explicit_fields() -> None:
    draft = apply_defaults(BenefitDraft(name="meal", value=Decimal("5.00"), active=False))
    assert draft.value == Decimal("5.00")
    assert draft.active is False


@pytest.mark.parametrize(
    "draft",
    [
        BenefitDraft(name=""),
        BenefitDraft(name="   "),
        BenefitDraft(name="meal", value=Decimal("-0.01")),
        BenefitDraft(name="meal", value=Decimal("1.005")),
    ],
)
def test_validate_draft_rejects_invalid_fields(draft: BenefitDraft) -> None:
    with pytest.raises(InvalidBenefit):
        validate_draft(draft)


def test_replace_fields_keeps_id_and_version() -> None:
    current = BenefitRecord(id=3, name="old", value=Decimal("10.00"), active=True, version=4)

    replaced = replace_fields(current, BenefitDraft(name="new", description="d"))

    assert replaced.id == 3
    assert replaced.version == 4
    assert replaced.name == "new"
    assert replaced.description == "d"
    assert replaced.value == Decimal("0")
    assert replaced.active is True


def test_eligibility_follows_active_flag() -> None:
    active = BenefitRecord(id=1, name="a", value=Decimal("1"), active=True)
    assert is_transfer_eligible(active)
    assert not is_transfer_eligible(active.model_copy(update={"active": False}))


def test_service_create_applies_defaults(service: BenefitService) -> None:
    record = service.create(BenefitDraft(name="meal"))

    assert record.id == 1
    assert record.value == Decimal("0")
    assert record.active is True
    assert record.version == 0


def test_service_create_rejects_negative_value(service, store) -> None:
    with pytest.raises(InvalidBenefit):
        service.create(BenefitDraft(name="meal", value=Decimal("-1")))
    assert store.find_all() == []


def test_service_update_bumps_version(service: BenefitService) -> None:
    created = service.create(BenefitDraft(name="meal", value=Decimal("10.00")))

    updated = service.update(created.id, BenefitDraft(name="meal+", value=Decimal("12.00")))

    assert updated.version == created.version + 1
    assert updated.name == "meal+"
    assert service.get_by_id(created.id) == updated


def test_service_update_accepts_matching_expected_version(service: BenefitService) -> None:
    created = service.create(BenefitDraft(name="meal"))

    updated = service.update(created.id, BenefitDraft(name="x"), expected_version=0)

    assert updated.version == 1


def test_service_update_rejects_stale_expected_version(service: BenefitService) -> None:
    created = service.create(BenefitDraft(name="meal"))
    service.update(created.id, BenefitDraft(name="first"))

    with pytest.raises(ConcurrentUpdateConflict):
        service.update(created.id, BenefitDraft(name="second"), expected_version=0)

    assert service.get_by_id(created.id).name == "first"


def test_service_update_reports_concurrent_edit() -> None:
    racing = _RacingStore()
    service = BenefitService(racing)
    created = service.create(BenefitDraft(name="meal"))

    with pytest.raises(ConcurrentUpdateConflict):
        service.update(created.id, BenefitDraft(name="mine"))

    assert racing.get(created.id).name == "rival"


def test_service_update_of_vanished_record_is_not_found() -> None:
    service = BenefitService(_VanishingStore())
    created = service.create(BenefitDraft(name="meal"))

    with pytest.raises(BenefitNotFound):
        service.update(created.id, BenefitDraft(name="mine"))


def test_service_update_missing_record(service: BenefitService) -> None:
    with pytest.raises(BenefitNotFound):
        service.update(MISSING_ID, BenefitDraft(name="x"))


def test_service_delete_and_get_missing(service: BenefitService) -> None:
    created = service.create(BenefitDraft(name="meal"))

    service.delete(created.id)

    with pytest.raises(BenefitNotFound):
        service.get_by_id(created.id)
    with pytest.raises(BenefitNotFound):
        service.delete(created.id)


def test_service_transfer_delegates_to_engine(service, pair) -> None:
    receipt = service.transfer(1, 2, "10.00")

    assert receipt.source.value == Decimal("90.00")
    assert [r.value for r in service.list_all()] == [Decimal("90.00"), Decimal("60.00")]
