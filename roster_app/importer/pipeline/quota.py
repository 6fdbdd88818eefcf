"""
Per-village headcount quota.

Effective count = persisted active assignees (read once per village per
batch) + rows this batch has already provisioned into the village.
"""

from __future__ import annotations

from typing import Type

from sqlalchemy import func

from roster_app.models import db

from ..contracts import ImportProfile
from ..errors import ErrorKind, RowError
from .state import BatchState


def count_active_assignees(model: Type, village_code: str) -> int:
    return (
        db.session.query(func.count(model.id))
        .filter(model.village_code == village_code, model.deleted_at.is_(None))
        .scalar()
        or 0
    )


def effective_count(model: Type, village_code: str, state: BatchState) -> int:
    if village_code not in state.quota_baselines:
        state.quota_baselines[village_code] = count_active_assignees(model, village_code)
    return state.quota_baselines[village_code] + state.assigned[village_code]


def check_quota(
    profile: ImportProfile,
    village_code: str,
    village_name: str,
    state: BatchState,
    ceiling: int | None,
) -> RowError | None:
    """Return a ``QuotaExceeded`` error when the village is already at ``ceiling``."""

    if ceiling is None:
        return None
    current = effective_count(profile.roster_model, village_code, state)
    if current >= ceiling:
        return RowError(
            ErrorKind.QUOTA_EXCEEDED,
            f"Village '{village_name}' already has {current} active {profile.quota_noun} "
            f"(limit {ceiling}).",
            "village",
        )
    return None


def record_assignment(village_code: str, state: BatchState) -> None:
    state.assigned[village_code] += 1
