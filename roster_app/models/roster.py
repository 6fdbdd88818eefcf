# roster_app/models/roster.py
"""
Roster tables: coordinators, APK coordinators and volunteers.

All three share the same identity/location columns and a soft-delete marker,
so identity and quota checks can treat them uniformly.
"""

import enum

from sqlalchemy import Enum
from sqlalchemy.orm import declared_attr

from .base import BaseModel, SoftDeleteMixin, db


class RosterStatus(str, enum.Enum):
    ACTIVE = "active"
    INACTIVE = "inactive"


class RosterRecordMixin(SoftDeleteMixin):
    """Columns shared by every roster table."""

    # Overridden per table; used in diagnostics and identity matches.
    roster_label = "roster"

    @declared_attr
    def user_id(cls):
        return db.Column(db.Integer, db.ForeignKey("users.id"), nullable=False, index=True)

    @declared_attr
    def user(cls):
        return db.relationship("User")

    province_code = db.Column(db.String(20), nullable=True)
    city_code = db.Column(db.String(20), nullable=True)
    district_code = db.Column(db.String(20), nullable=True)
    village_code = db.Column(db.String(20), nullable=True, index=True)
    full_name = db.Column(db.String(255), nullable=False)
    national_id = db.Column(db.String(16), nullable=False, index=True)
    phone_number = db.Column(db.String(20), nullable=False, index=True)
    address = db.Column(db.String(255), nullable=True)
    status = db.Column(
        Enum(RosterStatus, name="roster_status_enum"),
        nullable=False,
        default=RosterStatus.ACTIVE,
    )

    def apply_location(self, location):
        self.province_code = location.province_code
        self.city_code = location.city_code
        self.district_code = location.district_code
        self.village_code = location.village_code

    def __repr__(self):
        return f"<{type(self).__name__} {self.national_id} {self.full_name}>"


class Coordinator(BaseModel, RosterRecordMixin):
    """Village coordinator assigned to polling stations."""

    __tablename__ = "coordinators"
    roster_label = "coordinator"

    id = db.Column(db.Integer, primary_key=True)
    polling_station = db.Column(db.String(3), nullable=False, default="000")

    volunteers = db.relationship("Volunteer", back_populates="coordinator")


class ApkCoordinator(BaseModel, RosterRecordMixin):
    """Village coordinator for campaign props (APK); no polling station."""

    __tablename__ = "apk_coordinators"
    roster_label = "coordinator_apk"

    id = db.Column(db.Integer, primary_key=True)


class CommunityOrganization(BaseModel):
    """Mass/community organization ("ormas") a volunteer may belong to."""

    __tablename__ = "community_organizations"

    id = db.Column(db.Integer, primary_key=True)
    name = db.Column(db.String(255), nullable=False, unique=True)

    def __repr__(self):
        return f"<CommunityOrganization {self.name}>"


class Volunteer(BaseModel, RosterRecordMixin):
    """Volunteer recruited under a coordinator, sharing their location."""

    __tablename__ = "volunteers"
    roster_label = "volunteer"

    id = db.Column(db.Integer, primary_key=True)
    polling_station = db.Column(db.String(3), nullable=True)
    coordinator_id = db.Column(db.Integer, db.ForeignKey("coordinators.id"), nullable=True, index=True)
    organization_id = db.Column(
        db.Integer, db.ForeignKey("community_organizations.id"), nullable=True
    )

    coordinator = db.relationship("Coordinator", back_populates="volunteers")
    organization = db.relationship("CommunityOrganization")


# Every table that participates in cross-roster identity checks.
ROSTER_MODELS = (Coordinator, ApkCoordinator, Volunteer)
