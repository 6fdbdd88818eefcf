"""Roster import pipeline stages."""

from __future__ import annotations

from .headers import HeaderMapping, collect_headers, map_headers, sanitize_header
from .identity import IdentityDecision, IdentityMatch, check_identity, find_by_national_id, find_by_phone
from .locations import GeoMatch, ResolvedLocation, resolve_location, resolve_unit
from .normalize import NormalizedRow, coerce_cell, normalize_phone, normalize_polling_station, normalize_row
from .orchestrator import (
    BatchReport,
    ImportResult,
    Rejected,
    RowOutcome,
    import_roster,
    process_batch,
    resolve_owner,
)
from .provisioning import Created, ProvisionedAccount, Reactivated, create_member, restore_member
from .quota import check_quota, count_active_assignees, record_assignment
from .state import BatchState

__all__ = [
    "BatchReport",
    "BatchState",
    "Created",
    "GeoMatch",
    "HeaderMapping",
    "IdentityDecision",
    "IdentityMatch",
    "ImportResult",
    "NormalizedRow",
    "ProvisionedAccount",
    "Reactivated",
    "Rejected",
    "ResolvedLocation",
    "RowOutcome",
    "check_identity",
    "check_quota",
    "coerce_cell",
    "collect_headers",
    "count_active_assignees",
    "create_member",
    "find_by_national_id",
    "find_by_phone",
    "import_roster",
    "map_headers",
    "normalize_phone",
    "normalize_polling_station",
    "normalize_row",
    "process_batch",
    "record_assignment",
    "resolve_location",
    "resolve_owner",
    "resolve_unit",
    "restore_member",
    "sanitize_header",
]
