# conftest.py

import os

import pytest

# Set testing environment BEFORE importing app to prevent database corruption
# This ensures app.py uses TestingConfig when imported
os.environ["FLASK_ENV"] = "testing"

# Now import app and other modules after environment is set
from app import app as flask_app
from roster_app.models import (
    ApkCoordinator,
    City,
    CommunityOrganization,
    Coordinator,
    District,
    Province,
    User,
    UserRole,
    UserStatus,
    Village,
    Volunteer,
    db,
)
from roster_app.models.base import utcnow


@pytest.fixture(scope="function")
def app():
    """Create and configure a test Flask application (in-memory SQLite, fresh schema per test)"""
    flask_app.config.update(
        {
            "TESTING": True,
            "SECRET_KEY": "test-secret-key-for-testing-only",
            "CREDENTIAL_ENCRYPTION_KEY": None,
            "DEBUG": True,
            "ENABLE_FILE_LOGGING": False,
            "ENABLE_CONSOLE_LOGGING": True,
            "LOG_FORMAT": "text",
            "LOG_LEVEL": "DEBUG",
            "IMPORTER_ENABLED": True,
            "MONITORING_ENABLED": False,
            "ROSTER_QUOTA_CEILINGS": {"coordinator": 2, "coordinator_apk": 2, "volunteer": None},
            "ROSTER_LOGIN_DOMAIN": "gmail.com",
            "ROSTER_PASSWORD_LENGTH": 10,
            "ROSTER_HANDLE_MAX_ATTEMPTS": 50,
        }
    )

    # Re-initialize logging with updated config to pick up LOG_LEVEL=DEBUG
    from roster_app.utils.logging_config import setup_logging

    setup_logging(flask_app)

    with flask_app.app_context():
        # Drop any existing tables to ensure clean state
        db.drop_all()
        db.create_all()
        yield flask_app
        db.session.remove()
        db.drop_all()


@pytest.fixture(autouse=True)
def app_context(app):
    """Automatically provide app context for all tests"""
    with app.app_context():
        yield


@pytest.fixture
def client(app):
    """Create a test client for the Flask application"""
    return app.test_client()


@pytest.fixture
def runner(app):
    """Create a test CLI runner for the Flask application"""
    return app.test_cli_runner()


@pytest.fixture
def geo_directory(app):
    """
    Seed a small slice of the geographic directory:
    DKI Jakarta > Jakarta Timur / Jakarta Barat with a few districts and villages.
    """
    province = Province(province_code="31", name="DKI JAKARTA")
    cities = [
        City(city_code="3175", province_code="31", name="KOTA ADM. JAKARTA TIMUR"),
        City(city_code="3173", province_code="31", name="KOTA ADM. JAKARTA BARAT"),
    ]
    districts = [
        District(district_code="3175010", city_code="3175", name="MATRAMAN"),
        District(district_code="3175040", city_code="3175", name="MAKASAR"),
        District(district_code="3173050", city_code="3173", name="GROGOL PERTAMBURAN"),
    ]
    villages = [
        Village(village_code="3175011001", district_code="3175010", name="PISANGAN BARU"),
        Village(village_code="3175011002", district_code="3175010", name="UTAN KAYU SELATAN"),
        Village(village_code="3175041001", district_code="3175040", name="HALIM PERDANAKUSUMA"),
        Village(village_code="3175041002", district_code="3175040", name="KEBON PALA"),
        Village(village_code="3173051001", district_code="3173050", name="TOMANG"),
        Village(village_code="3173051002", district_code="3173050", name="WIJAYA KUSUMA"),
    ]
    db.session.add(province)
    db.session.add_all(cities + districts + villages)
    db.session.commit()
    return {
        "province": province,
        "cities": {city.city_code: city for city in cities},
        "districts": {district.district_code: district for district in districts},
        "villages": {village.village_code: village for village in villages},
    }


@pytest.fixture
def operator_user(app):
    """Active operator account used to call the JSON API."""
    user = User(
        name="Operator",
        login="operator@example.com",
        role=UserRole.ADMIN,
        status=UserStatus.ACTIVE,
    )
    user.set_password("operator-pass-123")
    db.session.add(user)
    db.session.commit()
    return user


@pytest.fixture
def logged_in_client(client, operator_user):
    """Client with the operator's session loaded by Flask-Login."""
    with client.session_transaction() as session:
        session["_user_id"] = str(operator_user.id)
        session["_fresh"] = True
    return client


@pytest.fixture
def make_roster_member(app):
    """Factory persisting a roster record (and its account) in a given village."""

    counter = {"value": 0}

    def _make(
        model=Coordinator,
        *,
        national_id=None,
        phone_number=None,
        village_code="3175011001",
        district_code="3175010",
        city_code="3175",
        province_code="31",
        deleted=False,
        full_name="Existing Member",
        **extra,
    ):
        counter["value"] += 1
        sequence = counter["value"]
        role = {
            Coordinator: UserRole.COORDINATOR,
            ApkCoordinator: UserRole.COORDINATOR_APK,
            Volunteer: UserRole.VOLUNTEER,
        }[model]
        user = User(
            name=full_name,
            national_id=national_id,
            login=f"existing{sequence}@example.com",
            role=role,
            status=UserStatus.ACTIVE,
        )
        user.set_password("existing-pass")
        if deleted:
            user.soft_delete()
        db.session.add(user)
        db.session.flush()
        record = model(
            user_id=user.id,
            full_name=full_name,
            national_id=national_id or f"{3175000000000000 + sequence}",
            phone_number=phone_number or f"0811000000{sequence:02d}",
            province_code=province_code,
            city_code=city_code,
            district_code=district_code,
            village_code=village_code,
            **extra,
        )
        if deleted:
            record.soft_delete(utcnow())
        db.session.add(record)
        db.session.commit()
        return record

    return _make


@pytest.fixture
def coordinator_owner(geo_directory, make_roster_member):
    """Active coordinator in Pisangan Baru that volunteer batches are imported under."""
    return make_roster_member(
        Coordinator,
        national_id="3175019999000001",
        phone_number="081299990001",
        full_name="Owner Coordinator",
        polling_station="001",
    )


@pytest.fixture
def community_organization(app):
    organization = CommunityOrganization(name="Karang Taruna")
    db.session.add(organization)
    db.session.commit()
    return organization


# Pytest configuration
def pytest_configure(config):
    """Configure pytest with custom markers and ensure testing environment"""
    os.environ["FLASK_ENV"] = "testing"

    config.addinivalue_line("markers", "slow: marks tests as slow (deselect with '-m \"not slow\"')")
    config.addinivalue_line("markers", "integration: marks tests as integration tests")
    config.addinivalue_line("markers", "unit: marks tests as unit tests")


def pytest_collection_modifyitems(config, items):
    """Modify test collection to add markers"""
    for item in items:
        if "integration" in item.nodeid:
            item.add_marker(pytest.mark.slow)
            item.add_marker(pytest.mark.integration)
        else:
            item.add_marker(pytest.mark.unit)
