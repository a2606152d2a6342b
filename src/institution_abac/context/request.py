"""Subject and request context models."""

from __future__ import annotations

from datetime import datetime

from pydantic import BaseModel, ConfigDict, Field

from institution_abac.constants import InstitutionPhase, PaymentStatus

__all__ = [
    "RequestContext",
    "Subject",
]


class Subject(BaseModel):
    """The caller requesting access.

    Attributes:
        roles: Role names held by the subject. Any role granting the
            (resource, action) pair satisfies the base grant.
        id: Optional subject identifier, used only for audit logging.
        institution_ids: Institutions the subject belongs to. None (with
            polo_ids also None) leaves the subject unscoped.
        polo_ids: Polos the subject belongs to.
    """

    roles: list[str] = Field(default_factory=list)
    id: str | None = None
    institution_ids: list[str] | None = None
    polo_ids: list[str] | None = None

    model_config = ConfigDict(frozen=True, coerce_numbers_to_str=True)


class RequestContext(BaseModel):
    """Contextual attributes for one evaluation.

    Attributes:
        institution_id: Institution the request is scoped to.
        polo_id: Optional polo (branch campus) within the institution.
        institution_phase: Institution's current lifecycle phase.
        payment_status: Payer's current billing status.
        now: Instant to evaluate at. Defaults to the wall clock; inject it
            for deterministic tests and backdated audit replay.
    """

    institution_id: str | None = None
    polo_id: str | None = None
    institution_phase: InstitutionPhase | None = None
    payment_status: PaymentStatus | None = None
    now: datetime | None = None

    model_config = ConfigDict(frozen=True, coerce_numbers_to_str=True)
