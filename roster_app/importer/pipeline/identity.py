"""
Cross-roster identity checks.

Looks a candidate's national ID and phone up in every roster table, soft
deleted rows included, and decides whether the row is a fresh create, a
restore of a deactivated identity, or a duplicate.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Iterable, Literal, Sequence, Type

from roster_app.models import ROSTER_MODELS, db

from ..contracts import ImportProfile
from ..errors import ErrorKind, RowError

IdentityMode = Literal["create", "restore", "reject"]


@dataclass(frozen=True)
class IdentityMatch:
    """A roster record matching a candidate, tagged with its origin and state."""

    model: Type
    record: object
    matched_on: Literal["national_id", "phone_number"]

    @property
    def table(self) -> str:
        return self.model.roster_label

    @property
    def is_active(self) -> bool:
        return not self.record.is_deleted

    @property
    def deleted_at(self):
        return self.record.deleted_at


@dataclass
class IdentityDecision:
    mode: IdentityMode
    errors: list[RowError] = field(default_factory=list)
    restore_from: IdentityMatch | None = None


def _find(column: str, value: str, models: Sequence[Type]) -> list[IdentityMatch]:
    if not value:
        return []
    matches: list[IdentityMatch] = []
    for model in models:
        records = db.session.query(model).filter(getattr(model, column) == value).order_by(model.id).all()
        matches.extend(IdentityMatch(model=model, record=record, matched_on=column) for record in records)
    return matches


def find_by_national_id(national_id: str, models: Sequence[Type] = ROSTER_MODELS) -> list[IdentityMatch]:
    return _find("national_id", national_id, models)


def find_by_phone(phone: str, models: Sequence[Type] = ROSTER_MODELS) -> list[IdentityMatch]:
    return _find("phone_number", phone, models)


def _pick_restore_candidate(matches: Iterable[IdentityMatch], profile: ImportProfile) -> IdentityMatch | None:
    deleted = [match for match in matches if not match.is_active]
    if not deleted:
        return None
    own_table = [match for match in deleted if match.model is profile.roster_model]
    pool = own_table or deleted
    return max(pool, key=lambda match: (match.deleted_at, match.record.id))


def check_identity(
    national_id: str,
    phone: str,
    profile: ImportProfile,
    *,
    seen_national_ids: Iterable[str] = (),
    seen_phones: Iterable[str] = (),
) -> IdentityDecision:
    """
    Classify a candidate against the persisted rosters and the current batch.

    An active national-ID match and an active phone match are reported as
    separate errors. Restore eligibility is keyed on national ID only; a
    deleted record matching just the phone neither blocks nor restores.
    """

    errors: list[RowError] = []
    id_matches = find_by_national_id(national_id)
    phone_matches = find_by_phone(phone)

    active_id = next((match for match in id_matches if match.is_active), None)
    if active_id is not None or national_id in set(seen_national_ids):
        where = active_id.table if active_id is not None else "this batch"
        errors.append(
            RowError(
                ErrorKind.DUPLICATE_NATIONAL_ID,
                f"National ID {national_id} is already registered ({where}).",
                "national_id",
            )
        )

    active_phone = next((match for match in phone_matches if match.is_active), None)
    if active_phone is not None or phone in set(seen_phones):
        where = active_phone.table if active_phone is not None else "this batch"
        errors.append(
            RowError(
                ErrorKind.DUPLICATE_PHONE,
                f"Phone number {phone} is already registered ({where}).",
                "phone_number",
            )
        )

    if errors:
        return IdentityDecision(mode="reject", errors=errors)

    candidate = _pick_restore_candidate(id_matches, profile)
    if candidate is not None:
        return IdentityDecision(mode="restore", restore_from=candidate)
    return IdentityDecision(mode="create")
