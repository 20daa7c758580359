"""
Presentation layer for benefit records.

Maps stored records to and from wire payloads and translates domain failures
into transport-level statuses. Framework-agnostic: each resource method
returns a `Response(status, body)` that any HTTP adapter can serialise.

Status mapping:
- 400  malformed payload, InvalidRequest, InvalidBenefit
- 404  BenefitNotFound, ParticipantNotFound
- 409  ConcurrentUpdateConflict (client should try again)
- 422  InactiveParticipant, InsufficientBalance
"""

from __future__ import annotations

from decimal import Decimal
from typing import Any, Callable, Dict, List, Mapping, NamedTuple, Optional

from pydantic import BaseModel, Field, ValidationError

from benefits.domain.errors import (
    BenefitError,
    BenefitNotFound,
    ConcurrentUpdateConflict,
    InactiveParticipant,
    InsufficientBalance,
    InvalidBenefit,
    InvalidRequest,
    ParticipantNotFound,
)
from benefits.domain.models import BenefitDraft, BenefitRecord
from benefits.service import BenefitService
from benefits.utils.logging import get_logger

log = get_logger(__name__)

_STATUS_BY_ERROR: Dict[type, int] = {
    InvalidRequest: 400,
    InvalidBenefit: 400,
    ParticipantNotFound: 404,
    BenefitNotFound: 404,
    ConcurrentUpdateConflict: 409,
    InactiveParticipant: 422,
    InsufficientBalance: 422,
}


class Response(NamedTuple):
    status: int
    body: Any = None


class BenefitRequest(BaseModel):
    """Incoming payload for create and full-replacement update."""

    name: str = Field(..., min_length=1, max_length=100)
    description: Optional[str] = Field(None, max_length=255)
    value: Optional[Decimal] = Field(None, ge=0, decimal_places=2)
    active: Optional[bool] = None

    def to_draft(self) -> BenefitDraft:
        return BenefitDraft(**self.model_dump())


class BenefitResponse(BaseModel):
    """Outgoing representation of a record. The version stamp is not exposed."""

    id: int
    name: str
    description: Optional[str] = None
    value: str
    active: bool

    @classmethod
    def from_record(cls, record: BenefitRecord) -> "BenefitResponse":
        return cls(
            id=record.id,
            name=record.name,
            description=record.description,
            value=str(record.value),
            active=record.active,
        )


class TransferPayload(BaseModel):
    """
    Incoming transfer payload.

    Only shape and presence are checked here; the engine re-validates ids and
    amount positivity itself.
    """

    from_id: int = Field(..., alias="fromId")
    to_id: int = Field(..., alias="toId")
    amount: Decimal

    model_config = {
        "populate_by_name": True,
    }


def status_for(exc: BenefitError) -> int:
    """Most specific mapped status along the exception's class hierarchy."""
    for klass in type(exc).__mro__:
        if klass in _STATUS_BY_ERROR:
            return _STATUS_BY_ERROR[klass]
    return 400


def error_response(exc: BenefitError) -> Response:
    return Response(status_for(exc), exc.to_dict())


def validation_error_response(exc: ValidationError) -> Response:
    return Response(
        400,
        {
            "error": InvalidRequest.kind,
            "message": "Malformed payload",
            "details": exc.errors(include_url=False, include_context=False, include_input=False),
        },
    )


class BenefitResource:
    """Transport-neutral counterpart of the benefits REST controller."""

    def __init__(self, service: BenefitService) -> None:
        self.service = service

    def _handle(self, action: Callable[[], Any], success_status: int = 200) -> Response:
        try:
            return Response(success_status, action())
        except ValidationError as exc:
            return validation_error_response(exc)
        except BenefitError as exc:
            log.info(
                f"Request rejected: {exc.kind}",
                extra={"error_kind": exc.kind, "status": status_for(exc)},
            )
            return error_response(exc)

    def list(self) -> Response:
        def action() -> List[Dict[str, Any]]:
            return [BenefitResponse.from_record(r).model_dump() for r in self.service.list_all()]

        return self._handle(action)

    def get(self, benefit_id: int) -> Response:
        return self._handle(
            lambda: BenefitResponse.from_record(self.service.get_by_id(benefit_id)).model_dump()
        )

    def create(self, payload: Mapping[str, Any]) -> Response:
        def action() -> Dict[str, Any]:
            draft = BenefitRequest.model_validate(payload).to_draft()
            return BenefitResponse.from_record(self.service.create(draft)).model_dump()

        return self._handle(action, success_status=201)

    def update(self, benefit_id: int, payload: Mapping[str, Any]) -> Response:
        def action() -> Dict[str, Any]:
            draft = BenefitRequest.model_validate(payload).to_draft()
            return BenefitResponse.from_record(self.service.update(benefit_id, draft)).model_dump()

        return self._handle(action)

    def delete(self, benefit_id: int) -> Response:
        return self._handle(lambda: self.service.delete(benefit_id), success_status=204)

    def transfer(self, payload: Mapping[str, Any]) -> Response:
        def action() -> None:
            request = TransferPayload.model_validate(payload)
            log.info(
                f"Transfer requested: from={request.from_id} to={request.to_id} amount={request.amount}"
            )
            self.service.transfer(request.from_id, request.to_id, request.amount)

        return self._handle(action, success_status=204)


__all__ = [
    "BenefitRequest",
    "BenefitResource",
    "BenefitResponse",
    "Response",
    "TransferPayload",
    "error_response",
    "status_for",
    "validation_error_response",
]
