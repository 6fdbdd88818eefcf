import dataclasses

import pytest
from sqlalchemy.exc import OperationalError

from roster_app.importer.contracts import get_profile
from roster_app.importer.errors import MissingRequiredHeaderError, UnknownProfileError
from roster_app.importer.pipeline import orchestrator
from roster_app.importer.pipeline.orchestrator import import_roster, process_batch
from roster_app.models import Coordinator, ImportRun, ImportRunStatus, User, db


def _rows(coordinator_row, count, **overrides):
    return [
        coordinator_row(
            **{
                "Nama": f"Koordinator {index}",
                "NIK": f"317501010190{index:04d}",
                "No. HP": f"08123456{index:04d}",
                **overrides,
            }
        )
        for index in range(1, count + 1)
    ]


def test_quota_fills_within_a_single_batch(geo_directory, coordinator_row):
    report = process_batch(_rows(coordinator_row, 3), get_profile("coordinator"))

    assert report.success_count == 2
    assert [entry["display_name"] for entry in report.to_dict()["created"]] == [
        "Koordinator 1",
        "Koordinator 2",
    ]
    assert len(report.failed) == 1
    rejected = report.failed[0].as_report_entry()
    assert rejected["row"] == 4
    assert rejected["error_codes"] == ["quota_exceeded"]
    assert rejected["errors"] == ["Village 'PISANGAN BARU' already has 2 active coordinators (limit 2)."]
    assert db.session.query(Coordinator).count() == 2


def test_persisted_coordinators_fill_the_quota(geo_directory, make_roster_member, coordinator_row):
    make_roster_member(Coordinator)
    make_roster_member(Coordinator)

    report = process_batch([coordinator_row()], get_profile("coordinator"))

    assert report.success_count == 0
    assert report.failed[0].as_report_entry()["errors"] == [
        "Village 'PISANGAN BARU' already has 2 active coordinators (limit 2)."
    ]


def test_configured_ceiling_overrides_profile_default(app, geo_directory, coordinator_row):
    app.config["ROSTER_QUOTA_CEILINGS"] = {"coordinator": None}

    report = process_batch(_rows(coordinator_row, 3), get_profile("coordinator"))

    assert report.success_count == 3


def test_blank_rows_are_skipped_but_keep_row_numbers(geo_directory, coordinator_row):
    rows = _rows(coordinator_row, 2)
    rows.insert(1, {key: "" for key in rows[0]})
    rows[2]["NIK"] = "123"

    report = process_batch(rows, get_profile("coordinator"))

    assert report.skipped_blank == 1
    assert report.success_count == 1
    assert report.failed[0].row_number == 4
    assert report.counts() == {
        "rows_processed": 2,
        "created": 1,
        "reactivated": 0,
        "rejected": 1,
        "skipped_blank": 1,
    }


def test_first_failing_stage_short_circuits(geo_directory, coordinator_row):
    rows = [coordinator_row(Kelurahan="Atlantis", NIK="123")]

    report = process_batch(rows, get_profile("coordinator"))

    # normalization fails first, so the unknown village is never looked up
    assert report.failed[0].as_report_entry()["error_codes"] == ["invalid_national_id"]


def test_duplicates_within_batch_are_rejected(geo_directory, coordinator_row):
    first = coordinator_row()
    second = coordinator_row(Nama="Budi Kembar", Kelurahan="Utan Kayu Selatan")

    report = process_batch([first, second], get_profile("coordinator"))

    assert report.success_count == 1
    entry = report.failed[0].as_report_entry()
    assert entry["display_name"] == "Budi Kembar"
    assert entry["error_codes"] == ["duplicate_national_id", "duplicate_phone"]
    # row 1 is committed before row 2 is checked
    assert "(coordinator)" in entry["errors"][0]


def test_duplicates_within_dry_run_batch_are_rejected(geo_directory, coordinator_row):
    first = coordinator_row()
    second = coordinator_row(Nama="Budi Kembar", Kelurahan="Utan Kayu Selatan")

    report = process_batch([first, second], get_profile("coordinator"), dry_run=True)

    assert report.success_count == 1
    entry = report.failed[0].as_report_entry()
    assert entry["error_codes"] == ["duplicate_national_id", "duplicate_phone"]
    assert "(this batch)" in entry["errors"][0]
    assert "(this batch)" in entry["errors"][1]


def test_missing_headers_reject_every_row_by_default(geo_directory):
    rows = [{"Nama": "Budi", "NIK": "3175010101900001"}, {"Nama": "", "NIK": "3175010101900002"}]

    report = process_batch(rows, get_profile("coordinator"))

    assert report.success_count == 0
    entries = [rejection.as_report_entry() for rejection in report.failed]
    assert [entry["display_name"] for entry in entries] == ["Budi", "Unknown"]
    assert entries[0]["error_codes"] == ["missing_required_header"]
    assert entries[0]["errors"][0].startswith("Missing required column(s): Province, City")


def test_dry_run_persists_nothing_but_predicts_outcomes(geo_directory, coordinator_row):
    rows = _rows(coordinator_row, 3) + [coordinator_row(Kelurahan="Kebon Pala", Kecamatan="Makasar")]
    rows[3]["NIK"] = rows[0]["NIK"]

    result = import_roster(rows, "coordinator", dry_run=True)

    report = result.report
    assert report.success_count == 2
    assert [entry["error_codes"] for entry in report.to_dict()["failed"]] == [
        ["quota_exceeded"],
        ["duplicate_national_id"],
    ]
    assert db.session.query(Coordinator).count() == 0
    assert db.session.query(User).count() == 0

    run = db.session.get(ImportRun, result.run_id)
    assert run.dry_run is True
    assert run.status is ImportRunStatus.PARTIALLY_FAILED


def test_import_run_ledger_records_success(geo_directory, coordinator_row, operator_user):
    result = import_roster(
        [coordinator_row()],
        "coordinator",
        triggered_by_user_id=operator_user.id,
        source="coordinators.csv",
    )

    assert result.status is ImportRunStatus.SUCCEEDED
    run = db.session.get(ImportRun, result.run_id)
    assert run.profile == "coordinator"
    assert run.source == "coordinators.csv"
    assert run.triggered_by_user_id == operator_user.id
    assert run.counts_json["created"] == 1
    assert run.error_summary is None
    assert run.finished_at is not None

    payload = result.to_dict()
    assert payload["status"] == "succeeded"
    assert payload["report"]["success_count"] == 1
    created = payload["report"]["created"][0]
    assert set(created) == {"display_name", "login_handle", "generated_password", "mode"}


def test_import_run_failed_when_every_row_rejected(geo_directory, coordinator_row):
    result = import_roster([coordinator_row(NIK="1")], "coordinator")

    run = db.session.get(ImportRun, result.run_id)
    assert run.status is ImportRunStatus.FAILED
    assert run.error_summary.startswith("Row 2: National ID '1' must be exactly 16 digits.")


def test_unexpected_error_becomes_system_error_row(geo_directory, coordinator_row, monkeypatch):
    real_create_member = orchestrator.create_member
    calls = {"count": 0}

    def flaky_create_member(*args, **kwargs):
        calls["count"] += 1
        if calls["count"] == 1:
            raise RuntimeError("disk on fire")
        return real_create_member(*args, **kwargs)

    monkeypatch.setattr(orchestrator, "create_member", flaky_create_member)

    report = process_batch(_rows(coordinator_row, 2), get_profile("coordinator"))

    assert report.success_count == 1
    entry = report.failed[0].as_report_entry()
    assert entry["row"] == 2
    assert entry["errors"] == ["System error: disk on fire"]
    assert entry["error_codes"] == ["system_error"]
    assert db.session.query(Coordinator).count() == 1


def test_database_error_in_identity_check_is_contained(geo_directory, coordinator_row, monkeypatch):
    real_check_identity = orchestrator.check_identity
    calls = {"count": 0}

    def locked_check_identity(*args, **kwargs):
        calls["count"] += 1
        if calls["count"] == 1:
            raise OperationalError("SELECT 1", {}, Exception("database is locked"))
        return real_check_identity(*args, **kwargs)

    monkeypatch.setattr(orchestrator, "check_identity", locked_check_identity)

    report = process_batch(_rows(coordinator_row, 2), get_profile("coordinator"))

    assert report.success_count == 1
    entry = report.failed[0].as_report_entry()
    assert entry["row"] == 2
    assert entry["display_name"] == "Koordinator 1"
    assert entry["error_codes"] == ["system_error"]
    assert "database is locked" in entry["errors"][0]
    assert db.session.query(Coordinator).count() == 1


def test_location_error_is_recorded_on_the_run(geo_directory, coordinator_row, monkeypatch):
    def broken_resolve_location(*args, **kwargs):
        raise RuntimeError("directory offline")

    monkeypatch.setattr(orchestrator, "resolve_location", broken_resolve_location)

    result = import_roster([coordinator_row()], "coordinator")

    assert result.report.to_dict()["failed"][0]["errors"] == ["System error: directory offline"]
    run = db.session.get(ImportRun, result.run_id)
    assert run.status is ImportRunStatus.FAILED
    assert run.finished_at is not None
    assert run.error_summary == "Row 2: System error: directory offline"


def test_error_outside_rows_fails_the_run(geo_directory, coordinator_row, monkeypatch):
    def broken_build_context(*args, **kwargs):
        raise RuntimeError("quota settings unreadable")

    monkeypatch.setattr(orchestrator, "build_context", broken_build_context)

    with pytest.raises(RuntimeError):
        import_roster([coordinator_row()], "coordinator")

    run = db.session.query(ImportRun).one()
    assert run.status is ImportRunStatus.FAILED
    assert run.error_summary == "System error: quota settings unreadable"
    assert run.finished_at is not None


def test_batch_fatal_headers_fail_the_run(geo_directory):
    strict = dataclasses.replace(get_profile("coordinator"), headers_fatal=True)

    with pytest.raises(MissingRequiredHeaderError) as excinfo:
        import_roster([{"Nama": "Budi"}], strict)

    assert "Province" in excinfo.value.labels
    run = db.session.query(ImportRun).one()
    assert run.status is ImportRunStatus.FAILED
    assert "Missing required headers" in run.error_summary


def test_unknown_profile_raises_before_recording_a_run(app):
    with pytest.raises(UnknownProfileError):
        import_roster([], "treasurer")

    assert db.session.query(ImportRun).count() == 0
