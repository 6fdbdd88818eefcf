from datetime import timedelta

from roster_app.importer.contracts import get_profile
from roster_app.importer.errors import ErrorKind
from roster_app.importer.pipeline.identity import check_identity, find_by_national_id, find_by_phone
from roster_app.models import ApkCoordinator, Coordinator, Volunteer, db
from roster_app.models.base import utcnow

NEW_NID = "3175010101900001"
NEW_PHONE = "081234567890"


def test_unknown_identity_is_a_create(geo_directory):
    decision = check_identity(NEW_NID, NEW_PHONE, get_profile("coordinator"))

    assert decision.mode == "create"
    assert decision.errors == []
    assert decision.restore_from is None


def test_active_national_id_in_other_table_is_rejected(geo_directory, make_roster_member):
    make_roster_member(ApkCoordinator, national_id=NEW_NID)

    decision = check_identity(NEW_NID, NEW_PHONE, get_profile("coordinator"))

    assert decision.mode == "reject"
    assert [error.kind for error in decision.errors] == [ErrorKind.DUPLICATE_NATIONAL_ID]
    assert decision.errors[0].message == f"National ID {NEW_NID} is already registered (coordinator_apk)."


def test_id_and_phone_duplicates_are_reported_separately(geo_directory, make_roster_member):
    make_roster_member(Coordinator, national_id=NEW_NID)
    make_roster_member(Volunteer, phone_number=NEW_PHONE, polling_station="001")

    decision = check_identity(NEW_NID, NEW_PHONE, get_profile("coordinator"))

    assert [error.kind for error in decision.errors] == [
        ErrorKind.DUPLICATE_NATIONAL_ID,
        ErrorKind.DUPLICATE_PHONE,
    ]
    assert "(volunteer)" in decision.errors[1].message


def test_batch_duplicates_are_caught_without_persisted_rows(geo_directory):
    decision = check_identity(
        NEW_NID,
        NEW_PHONE,
        get_profile("coordinator"),
        seen_national_ids={NEW_NID},
        seen_phones={NEW_PHONE},
    )

    assert decision.mode == "reject"
    assert all("(this batch)" in error.message for error in decision.errors)


def test_deleted_national_id_match_is_restore_candidate(geo_directory, make_roster_member):
    deleted = make_roster_member(Coordinator, national_id=NEW_NID, deleted=True)

    decision = check_identity(NEW_NID, NEW_PHONE, get_profile("coordinator"))

    assert decision.mode == "restore"
    assert decision.restore_from.record.id == deleted.id
    assert decision.restore_from.matched_on == "national_id"


def test_deleted_phone_only_match_neither_blocks_nor_restores(geo_directory, make_roster_member):
    make_roster_member(Coordinator, phone_number=NEW_PHONE, deleted=True)

    decision = check_identity(NEW_NID, NEW_PHONE, get_profile("coordinator"))

    assert decision.mode == "create"


def test_restore_prefers_profile_table_then_most_recent(geo_directory, make_roster_member):
    older = make_roster_member(Coordinator, national_id=NEW_NID, deleted=True)
    newer = make_roster_member(Coordinator, national_id=NEW_NID, deleted=True)
    other_table = make_roster_member(ApkCoordinator, national_id=NEW_NID, deleted=True)
    older.deleted_at = utcnow() - timedelta(days=10)
    newer.deleted_at = utcnow() - timedelta(days=1)
    other_table.deleted_at = utcnow()
    db.session.commit()

    decision = check_identity(NEW_NID, NEW_PHONE, get_profile("coordinator"))

    assert decision.restore_from.model is Coordinator
    assert decision.restore_from.record.id == newer.id

    apk_decision = check_identity(NEW_NID, NEW_PHONE, get_profile("coordinator_apk"))
    assert apk_decision.restore_from.model is ApkCoordinator


def test_finders_include_soft_deleted_rows(geo_directory, make_roster_member):
    make_roster_member(Coordinator, national_id=NEW_NID, phone_number=NEW_PHONE, deleted=True)

    assert len(find_by_national_id(NEW_NID)) == 1
    assert len(find_by_phone(NEW_PHONE)) == 1
    assert find_by_national_id("") == []
