"""Static roster import configuration: fields, header aliases, location aliases, profiles."""

from __future__ import annotations

from .fields import (
    LOCATION_FIELDS,
    ROSTER_FIELDS,
    FieldSpec,
    get_field_label,
    get_field_spec,
    get_field_specs,
)
from .locations import (
    LOCATION_ALIAS_TABLES,
    LocationAliasTable,
    LocationLevel,
    apply_location_alias,
    normalize_location_name,
)
from .profiles import (
    IMPORT_PROFILES,
    ImportProfile,
    LocationSource,
    PollingStationPolicy,
    get_profile,
)

__all__ = [
    "FieldSpec",
    "ROSTER_FIELDS",
    "LOCATION_FIELDS",
    "get_field_label",
    "get_field_spec",
    "get_field_specs",
    "LocationLevel",
    "LocationAliasTable",
    "LOCATION_ALIAS_TABLES",
    "apply_location_alias",
    "normalize_location_name",
    "ImportProfile",
    "IMPORT_PROFILES",
    "LocationSource",
    "PollingStationPolicy",
    "get_profile",
]
