"""Reference-table lookups for optional roster columns."""

from __future__ import annotations

from sqlalchemy import func

from roster_app.models import CommunityOrganization, db

from ..errors import ErrorKind, RowError


def find_organization(name: str) -> CommunityOrganization | None:
    """Case-insensitive exact match on the organization name."""

    token = (name or "").strip().upper()
    if not token:
        return None
    return (
        db.session.query(CommunityOrganization)
        .filter(func.upper(CommunityOrganization.name) == token)
        .order_by(CommunityOrganization.id)
        .first()
    )


def resolve_organization(name: str) -> tuple[int | None, RowError | None]:
    """Return the organization id for ``name``; empty names are allowed and resolve to ``None``."""

    if not (name or "").strip():
        return None, None
    organization = find_organization(name)
    if organization is None:
        return None, RowError(
            ErrorKind.REFERENCE_NOT_FOUND,
            f"Organization '{name.strip()}' not found.",
            "organization",
        )
    return organization.id, None
