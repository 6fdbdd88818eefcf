import pytest

from roster_app.importer.errors import OwnerRequiredError
from roster_app.importer.pipeline.orchestrator import import_roster
from roster_app.models import ImportRun, UserRole, Volunteer, db


def test_volunteers_require_an_owner_coordinator(geo_directory, volunteer_row):
    with pytest.raises(OwnerRequiredError) as excinfo:
        import_roster([volunteer_row()], "volunteer")

    assert excinfo.value.coordinator_id is None
    assert db.session.query(ImportRun).count() == 0


def test_deleted_owner_is_rejected(geo_directory, make_roster_member, volunteer_row):
    owner = make_roster_member(deleted=True)

    with pytest.raises(OwnerRequiredError) as excinfo:
        import_roster([volunteer_row()], "volunteer", coordinator_id=owner.id)

    assert excinfo.value.coordinator_id == owner.id


def test_volunteers_inherit_owner_location(coordinator_owner, volunteer_row):
    result = import_roster([volunteer_row()], "volunteer", coordinator_id=coordinator_owner.id)

    assert result.report.success_count == 1
    volunteer = db.session.query(Volunteer).one()
    assert volunteer.coordinator_id == coordinator_owner.id
    assert volunteer.village_code == coordinator_owner.village_code
    assert volunteer.district_code == "3175010"
    assert volunteer.polling_station == "012"
    assert volunteer.organization_id is None
    assert volunteer.user.role is UserRole.VOLUNTEER

    run = db.session.get(ImportRun, result.run_id)
    assert run.owner_coordinator_id == coordinator_owner.id


def test_volunteers_have_no_village_quota(coordinator_owner, volunteer_row):
    rows = [
        volunteer_row(**{"Nama Lengkap": f"Relawan {index}", "NIK": f"317501410195{index:04d}", "No HP": f"08129876{index:04d}"})
        for index in range(1, 6)
    ]

    result = import_roster(rows, "volunteer", coordinator_id=coordinator_owner.id)

    assert result.report.success_count == 5


def test_volunteer_polling_station_is_required(coordinator_owner, volunteer_row):
    result = import_roster([volunteer_row(TPS="")], "volunteer", coordinator_id=coordinator_owner.id)

    assert result.report.to_dict()["failed"][0]["errors"] == ["Polling Station is required."]


def test_organization_is_resolved_case_insensitively(coordinator_owner, community_organization, volunteer_row):
    result = import_roster(
        [volunteer_row(Ormas="karang taruna")], "volunteer", coordinator_id=coordinator_owner.id
    )

    assert result.report.success_count == 1
    assert db.session.query(Volunteer).one().organization_id == community_organization.id


def test_unknown_organization_rejects_row(coordinator_owner, volunteer_row):
    result = import_roster(
        [volunteer_row(Ormas="Pemuda Pancasila")], "volunteer", coordinator_id=coordinator_owner.id
    )

    entry = result.report.to_dict()["failed"][0]
    assert entry["errors"] == ["Organization 'Pemuda Pancasila' not found."]
    assert entry["error_codes"] == ["reference_not_found"]


def test_deleted_volunteer_is_reactivated_with_original_national_id(
    coordinator_owner, make_roster_member, volunteer_row
):
    national_id = "3175014101950002"
    deleted = make_roster_member(
        Volunteer,
        national_id=national_id,
        phone_number="081277770000",
        full_name="Siti Lama",
        polling_station="003",
        deleted=True,
    )

    result = import_roster([volunteer_row(NIK=national_id)], "volunteer", coordinator_id=coordinator_owner.id)

    created = result.report.to_dict()["created"]
    assert [entry["mode"] for entry in created] == ["reactivated"]
    assert result.report.counts()["reactivated"] == 1

    volunteers = db.session.query(Volunteer).all()
    assert len(volunteers) == 1
    restored = volunteers[0]
    assert restored.id == deleted.id
    assert restored.deleted_at is None
    assert restored.national_id == national_id
    assert restored.full_name == "Siti Aminah"
    assert restored.phone_number == "081298765432"
    assert restored.coordinator_id == coordinator_owner.id
    assert restored.polling_station == "012"


def test_owner_identity_blocks_volunteer_duplicate(coordinator_owner, volunteer_row):
    result = import_roster(
        [volunteer_row(NIK=coordinator_owner.national_id)], "volunteer", coordinator_id=coordinator_owner.id
    )

    entry = result.report.to_dict()["failed"][0]
    assert entry["error_codes"] == ["duplicate_national_id"]
    assert entry["errors"] == [f"National ID {coordinator_owner.national_id} is already registered (coordinator)."]
