"""Import profiles: one declarative description per roster import variant."""

from __future__ import annotations

import enum
from dataclasses import dataclass
from types import MappingProxyType
from typing import Mapping, Tuple, Type

from roster_app.models import ApkCoordinator, Coordinator, UserRole, Volunteer

from ..errors import UnknownProfileError
from .fields import LOCATION_FIELDS, FieldSpec, get_field_label, get_field_specs

_IDENTITY_FIELDS = ("full_name", "national_id", "phone_number", "address")


class PollingStationPolicy(str, enum.Enum):
    NONE = "none"  # column not collected
    DEFAULT = "default"  # empty cells become "000"
    REQUIRED = "required"  # empty cells reject the row


class LocationSource(str, enum.Enum):
    ROW = "row"  # resolved from the row's location columns
    OWNER = "owner"  # inherited from the coordinator the batch runs under


@dataclass(frozen=True)
class ImportProfile:
    """Static configuration for one roster import variant."""

    name: str
    title: str
    role: UserRole
    roster_model: Type
    fields: Tuple[str, ...]
    required: Tuple[str, ...]
    polling_station: PollingStationPolicy = PollingStationPolicy.NONE
    location_source: LocationSource = LocationSource.ROW
    quota_ceiling: int | None = None
    quota_noun: str = "members"
    headers_fatal: bool = False

    @property
    def field_specs(self) -> Tuple[FieldSpec, ...]:
        return get_field_specs(self.fields)

    @property
    def required_labels(self) -> Tuple[str, ...]:
        return tuple(get_field_label(name) for name in self.required)

    @property
    def requires_owner(self) -> bool:
        return self.location_source is LocationSource.OWNER

    @property
    def collects_organization(self) -> bool:
        return "organization" in self.fields


COORDINATOR_PROFILE = ImportProfile(
    name="coordinator",
    title="Village coordinators",
    role=UserRole.COORDINATOR,
    roster_model=Coordinator,
    fields=LOCATION_FIELDS + _IDENTITY_FIELDS + ("polling_station",),
    required=LOCATION_FIELDS + _IDENTITY_FIELDS,
    polling_station=PollingStationPolicy.DEFAULT,
    quota_ceiling=2,
    quota_noun="coordinators",
)

APK_COORDINATOR_PROFILE = ImportProfile(
    name="coordinator_apk",
    title="Campaign-props (APK) coordinators",
    role=UserRole.COORDINATOR_APK,
    roster_model=ApkCoordinator,
    fields=LOCATION_FIELDS + _IDENTITY_FIELDS,
    required=LOCATION_FIELDS + _IDENTITY_FIELDS,
    quota_ceiling=2,
    quota_noun="APK coordinators",
)

VOLUNTEER_PROFILE = ImportProfile(
    name="volunteer",
    title="Volunteers under a coordinator",
    role=UserRole.VOLUNTEER,
    roster_model=Volunteer,
    fields=_IDENTITY_FIELDS + ("polling_station", "organization"),
    required=_IDENTITY_FIELDS + ("polling_station",),
    polling_station=PollingStationPolicy.REQUIRED,
    location_source=LocationSource.OWNER,
    quota_ceiling=None,
    quota_noun="volunteers",
)

IMPORT_PROFILES: Mapping[str, ImportProfile] = MappingProxyType(
    {
        profile.name: profile
        for profile in (COORDINATOR_PROFILE, APK_COORDINATOR_PROFILE, VOLUNTEER_PROFILE)
    }
)


def get_profile(name: str) -> ImportProfile:
    key = (name or "").strip().lower()
    try:
        return IMPORT_PROFILES[key]
    except KeyError:
        raise UnknownProfileError(name, IMPORT_PROFILES.keys()) from None
