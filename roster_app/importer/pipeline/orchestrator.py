"""
Batch orchestration for roster imports.

Drives each row through header mapping, normalization, location resolution,
reference lookup, identity checks, quota and provisioning, short-circuiting
at the first failing stage. Each accepted row is its own unit of work:
committed, or rolled back in dry-run mode. A row that raises is rolled back
and reported as a system error; the batch carries on.
"""

from __future__ import annotations

import time
from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Iterable, Mapping, Sequence, Union

from flask import current_app, has_app_context
from sqlalchemy.exc import SQLAlchemyError

from roster_app.models import Coordinator, ImportRun, ImportRunStatus, db
from roster_app.utils.importer import get_quota_ceiling

from ..contracts import ImportProfile, LocationSource, get_profile
from ..errors import (
    ErrorKind,
    MissingRequiredHeaderError,
    OwnerRequiredError,
    RowError,
    error_codes,
    error_messages,
)
from ..metrics import record_batch_duration, record_row_errors, record_row_outcome
from .headers import HeaderMapping, collect_headers, map_headers
from .identity import check_identity
from .locations import ResolvedLocation, location_from_record, resolve_location
from .normalize import UNKNOWN_DISPLAY_NAME, coerce_cell, is_blank_row, normalize_row
from .provisioning import Created, ProvisionedAccount, Reactivated, create_member, restore_member
from .quota import check_quota, record_assignment
from .references import resolve_organization
from .state import BatchState

FIRST_DATA_ROW = 2  # spreadsheet line of the first data row (header is line 1)


@dataclass(frozen=True)
class Rejected:
    """A row that produced one or more errors and was not provisioned."""

    row_number: int
    display_name: str
    errors: tuple[RowError, ...]

    mode = "rejected"

    def as_report_entry(self) -> dict:
        return {
            "row": self.row_number,
            "display_name": self.display_name,
            "errors": error_messages(self.errors),
            "error_codes": error_codes(self.errors),
        }


RowOutcome = Union[Created, Reactivated, Rejected]


@dataclass
class BatchReport:
    """Aggregated outcome of a batch, in source order."""

    created: list[ProvisionedAccount] = field(default_factory=list)
    failed: list[Rejected] = field(default_factory=list)
    skipped_blank: int = 0

    @property
    def success_count(self) -> int:
        return len(self.created)

    @property
    def reactivated_count(self) -> int:
        return sum(1 for account in self.created if isinstance(account, Reactivated))

    def add(self, outcome: RowOutcome) -> None:
        if isinstance(outcome, Rejected):
            self.failed.append(outcome)
        else:
            self.created.append(outcome)

    def counts(self) -> dict:
        return {
            "rows_processed": self.success_count + len(self.failed),
            "created": self.success_count - self.reactivated_count,
            "reactivated": self.reactivated_count,
            "rejected": len(self.failed),
            "skipped_blank": self.skipped_blank,
        }

    def to_dict(self) -> dict:
        return {
            "success_count": self.success_count,
            "created": [account.as_report_entry() for account in self.created],
            "failed": [rejection.as_report_entry() for rejection in self.failed],
        }


@dataclass
class BatchContext:
    """Everything resolved once per batch and shared by its rows."""

    profile: ImportProfile
    mapping: HeaderMapping
    state: BatchState
    ceiling: int | None
    owner_id: int | None = None
    owner_location: ResolvedLocation | None = None


@dataclass(frozen=True)
class ImportResult:
    run_id: int
    status: ImportRunStatus
    report: BatchReport

    def to_dict(self) -> dict:
        return {"run_id": self.run_id, "status": self.status.value, "report": self.report.to_dict()}


def _log(level: str, message: str, *args, **kwargs) -> None:
    if has_app_context():
        getattr(current_app.logger, level)(message, *args, **kwargs)


def _display_name(row: Mapping[str, object], mapping: HeaderMapping) -> str:
    return coerce_cell(mapping.value(row, "full_name")) or UNKNOWN_DISPLAY_NAME


def resolve_owner(profile: ImportProfile, coordinator_id: int | None) -> Coordinator | None:
    """
    Load the coordinator a volunteer batch is imported under.

    Profiles that resolve location from the row ignore ``coordinator_id``.
    Raises ``OwnerRequiredError`` when the profile needs an owner and none
    (or no active one) is available.
    """

    if not profile.requires_owner:
        return None
    if coordinator_id is None:
        raise OwnerRequiredError(profile.name, "No coordinator id was supplied.")
    owner = db.session.get(Coordinator, coordinator_id)
    if owner is None or owner.is_deleted:
        raise OwnerRequiredError(
            profile.name,
            f"Coordinator {coordinator_id} was not found or is inactive.",
            coordinator_id=coordinator_id,
        )
    return owner


def build_context(
    rows: Sequence[Mapping[str, object]],
    profile: ImportProfile,
    *,
    dry_run: bool = False,
    owner: Coordinator | None = None,
    state: BatchState | None = None,
) -> BatchContext:
    mapping = map_headers(collect_headers(rows), profile.field_specs, profile.required)
    if not mapping.is_complete and profile.headers_fatal:
        raise MissingRequiredHeaderError(mapping.missing_labels)

    context = BatchContext(
        profile=profile,
        mapping=mapping,
        state=state or BatchState(dry_run=dry_run),
        ceiling=get_quota_ceiling(profile.name, default=profile.quota_ceiling),
    )
    if profile.location_source is LocationSource.OWNER:
        if owner is None:
            raise OwnerRequiredError(profile.name)
        owner_location = location_from_record(owner)
        if owner_location is None:
            raise OwnerRequiredError(
                profile.name,
                f"Coordinator {owner.id} has no complete location.",
                coordinator_id=owner.id,
            )
        context.owner_id = owner.id
        context.owner_location = owner_location
    return context


def _provision(context: BatchContext, row, location, decision, extras: dict) -> RowOutcome:
    profile, state = context.profile, context.state
    if decision.mode == "restore":
        outcome = restore_member(profile, row, location, decision.restore_from, state, extras=extras)
    else:
        outcome = create_member(profile, row, location, state, extras=extras)
    if state.dry_run:
        db.session.rollback()
    else:
        db.session.commit()
    return outcome


def _system_error(row: Mapping[str, object], row_number: int, context: BatchContext, exc: Exception) -> Rejected:
    db.session.rollback()
    if isinstance(exc, SQLAlchemyError):
        _log("exception", "Database error on row %s (%s)", row_number, context.profile.name)
    else:
        _log("exception", "Unexpected error on row %s (%s)", row_number, context.profile.name)
    return Rejected(
        row_number=row_number,
        display_name=_display_name(row, context.mapping),
        errors=(RowError(ErrorKind.SYSTEM_ERROR, f"System error: {exc}"),),
    )


def process_row(row: Mapping[str, object], row_number: int, context: BatchContext) -> RowOutcome:
    """Run one non-blank row through every stage and return its outcome."""

    profile, state, mapping = context.profile, context.state, context.mapping

    def reject(errors: Iterable[RowError], display_name: str) -> Rejected:
        return Rejected(row_number=row_number, display_name=display_name, errors=tuple(errors))

    header_error = mapping.missing_header_error()
    if header_error is not None:
        return reject([header_error], _display_name(row, mapping))

    normalized, errors = normalize_row(row, row_number, mapping, profile)
    if errors:
        return reject(errors, normalized.display_name)

    if profile.location_source is LocationSource.OWNER:
        location = context.owner_location
    else:
        location, errors = resolve_location(normalized, cache=state.location_cache)
        if errors:
            return reject(errors, normalized.display_name)

    extras: dict = {}
    if profile.requires_owner:
        extras["coordinator_id"] = context.owner_id
    if profile.collects_organization:
        organization_id, error = resolve_organization(normalized.organization)
        if error is not None:
            return reject([error], normalized.display_name)
        extras["organization_id"] = organization_id

    decision = check_identity(
        normalized.national_id,
        normalized.phone_number,
        profile,
        seen_national_ids=state.seen_national_ids,
        seen_phones=state.seen_phones,
    )
    if decision.errors:
        return reject(decision.errors, normalized.display_name)

    quota_error = check_quota(profile, location.village_code, location.village_name, state, context.ceiling)
    if quota_error is not None:
        return reject([quota_error], normalized.display_name)

    outcome = _provision(context, normalized, location, decision, extras)
    if not isinstance(outcome, Rejected):
        record_assignment(location.village_code, state)
        state.remember_identity(normalized.national_id, normalized.phone_number)
    return outcome


def process_batch(
    rows: Iterable[Mapping[str, object]],
    profile: ImportProfile,
    *,
    dry_run: bool = False,
    owner: Coordinator | None = None,
    state: BatchState | None = None,
) -> BatchReport:
    """
    Import ``rows`` (header -> cell mappings in source order) under ``profile``.

    Entirely blank rows are skipped; every other row yields exactly one
    outcome in the returned report.
    """

    rows = list(rows)
    context = build_context(rows, profile, dry_run=dry_run, owner=owner, state=state)
    report = BatchReport()

    for index, row in enumerate(rows):
        if is_blank_row(row):
            report.skipped_blank += 1
            continue
        row_number = index + FIRST_DATA_ROW
        try:
            outcome = process_row(row, row_number, context)
        except Exception as exc:  # row boundary: any failure becomes a SystemError row
            outcome = _system_error(row, row_number, context, exc)
        report.add(outcome)
        record_row_outcome(profile.name, outcome.mode)
        if isinstance(outcome, Rejected):
            record_row_errors(profile.name, outcome.errors)
            _log("debug", "Row %s rejected: %s", row_number, "; ".join(error_messages(outcome.errors)))

    _log(
        "info",
        "Roster import (%s%s) finished: %s succeeded, %s rejected, %s blank rows skipped",
        profile.name,
        ", dry run" if dry_run else "",
        report.success_count,
        len(report.failed),
        report.skipped_blank,
    )
    return report


def _final_status(report: BatchReport) -> ImportRunStatus:
    if report.failed and report.success_count:
        return ImportRunStatus.PARTIALLY_FAILED
    if report.failed:
        return ImportRunStatus.FAILED
    return ImportRunStatus.SUCCEEDED


def _error_summary(report: BatchReport, limit: int = 5) -> str | None:
    if not report.failed:
        return None
    lines = [
        f"Row {rejection.row_number}: {'; '.join(error_messages(rejection.errors))}"
        for rejection in report.failed[:limit]
    ]
    remaining = len(report.failed) - limit
    if remaining > 0:
        lines.append(f"... and {remaining} more rejected row(s)")
    return "\n".join(lines)


def import_roster(
    rows: Iterable[Mapping[str, object]],
    profile: ImportProfile | str,
    *,
    dry_run: bool = False,
    coordinator_id: int | None = None,
    triggered_by_user_id: int | None = None,
    source: str | None = None,
) -> ImportResult:
    """
    Run a batch and record it in the ``import_runs`` ledger.

    Configuration problems (unknown profile, missing owner) raise before a run
    is recorded; batch-fatal header problems and errors outside any row mark the run
    ``FAILED`` and re-raise.
    """

    if isinstance(profile, str):
        profile = get_profile(profile)
    owner = resolve_owner(profile, coordinator_id)

    run = ImportRun(
        profile=profile.name,
        source=source,
        status=ImportRunStatus.RUNNING,
        dry_run=dry_run,
        started_at=datetime.now(timezone.utc),
        triggered_by_user_id=triggered_by_user_id,
        owner_coordinator_id=owner.id if owner is not None else None,
    )
    db.session.add(run)
    db.session.commit()
    run_id = run.id

    started = time.perf_counter()
    try:
        report = process_batch(rows, profile, dry_run=dry_run, owner=owner)
    except MissingRequiredHeaderError as exc:
        db.session.rollback()
        run = db.session.get(ImportRun, run_id)
        run.status = ImportRunStatus.FAILED
        run.error_summary = str(exc)
        run.finished_at = datetime.now(timezone.utc)
        db.session.commit()
        raise
    except Exception as exc:
        db.session.rollback()
        run = db.session.get(ImportRun, run_id)
        run.status = ImportRunStatus.FAILED
        run.error_summary = f"System error: {exc}"
        run.finished_at = datetime.now(timezone.utc)
        db.session.commit()
        _log("exception", "Import run %s aborted", run_id, extra={"import_run_id": run_id})
        raise
    finally:
        record_batch_duration(profile.name, time.perf_counter() - started)

    run = db.session.get(ImportRun, run_id)
    run.status = _final_status(report)
    run.counts_json = report.counts()
    run.error_summary = _error_summary(report)
    run.finished_at = datetime.now(timezone.utc)
    db.session.commit()

    _log(
        "info",
        "Import run %s recorded with status %s",
        run_id,
        run.status.value,
        extra={"import_run_id": run_id, "roster_profile": profile.name, "dry_run": dry_run},
    )
    return ImportResult(run_id=run_id, status=run.status, report=report)
