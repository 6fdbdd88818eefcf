"""Per-level location alias tables.

The tables pre-correct common spelling and format variants found in field
spreadsheets before the geographic directory is queried. They never replace
the directory: a substituted value must still resolve against it.
"""

from __future__ import annotations

import enum
import re
from dataclasses import dataclass
from types import MappingProxyType
from typing import Mapping

_WHITESPACE_RE = re.compile(r"\s+")
_NON_ALNUM_RE = re.compile(r"[^A-Z0-9 ]")


class LocationLevel(str, enum.Enum):
    PROVINCE = "province"
    CITY = "city"
    DISTRICT = "district"
    VILLAGE = "village"

    @property
    def label(self) -> str:
        return self.value.capitalize()

    @property
    def parent(self) -> "LocationLevel | None":
        order = list(LocationLevel)
        index = order.index(self)
        return order[index - 1] if index else None


def normalize_location_name(value: object | None) -> str:
    """Uppercase, trim and collapse internal whitespace."""

    if value is None:
        return ""
    return _WHITESPACE_RE.sub(" ", str(value)).strip().upper()


@dataclass(frozen=True)
class LocationAliasTable:
    """Alias substitutions for one geographic level."""

    level: LocationLevel
    aliases: Mapping[str, str]
    match_contained: bool = False
    strip_punctuation: bool = False

    def apply(self, value: str) -> str:
        """
        Return the search string for ``value`` (already normalized).

        Exact alias keys win; tables with ``match_contained`` also substitute
        when an alias key appears inside the value.
        """

        candidate = value
        if self.strip_punctuation:
            candidate = normalize_location_name(_NON_ALNUM_RE.sub("", candidate))
        if candidate in self.aliases:
            return self.aliases[candidate]
        if self.match_contained:
            for key, canonical in self.aliases.items():
                if key in candidate:
                    return canonical
        return candidate


PROVINCE_ALIASES = LocationAliasTable(
    level=LocationLevel.PROVINCE,
    aliases=MappingProxyType(
        {
            "JAKARTA": "DKI JAKARTA",
            "DKI JAKARTA": "DKI JAKARTA",
            "DKIJAKARTA": "DKI JAKARTA",
            "DKI-JAKARTA": "DKI JAKARTA",
            "JAKARTA RAYA": "DKI JAKARTA",
            "PROVINSI JAKARTA": "DKI JAKARTA",
            "PROVINSI DKI JAKARTA": "DKI JAKARTA",
            "DKI": "DKI JAKARTA",
        }
    ),
)

CITY_ALIASES = LocationAliasTable(
    level=LocationLevel.CITY,
    aliases=MappingProxyType(
        {
            "JAKARTA TIMUR": "KOTA ADM. JAKARTA TIMUR",
            "JAKTIM": "KOTA ADM. JAKARTA TIMUR",
            "JAKARTA BARAT": "KOTA ADM. JAKARTA BARAT",
            "JAKBAR": "KOTA ADM. JAKARTA BARAT",
            "JAKARTA SELATAN": "KOTA ADM. JAKARTA SELATAN",
            "JAKSEL": "KOTA ADM. JAKARTA SELATAN",
            "JAKARTA UTARA": "KOTA ADM. JAKARTA UTARA",
            "JAKUT": "KOTA ADM. JAKARTA UTARA",
            "JAKARTA PUSAT": "KOTA ADM. JAKARTA PUSAT",
            "JAKPUS": "KOTA ADM. JAKARTA PUSAT",
            "KEPULAUAN SERIBU": "KAB. ADM. KEP. SERIBU",
            "KEP SERIBU": "KAB. ADM. KEP. SERIBU",
        }
    ),
    match_contained=True,
)

DISTRICT_ALIASES = LocationAliasTable(
    level=LocationLevel.DISTRICT,
    aliases=MappingProxyType(
        {
            "GROGOL PETAMBURAN": "GROGOL PERTAMBURAN",
        }
    ),
)

VILLAGE_ALIASES = LocationAliasTable(
    level=LocationLevel.VILLAGE,
    aliases=MappingProxyType(
        {
            "HALIM PERDANAKUSUMAH": "HALIM PERDANAKUSUMA",
            "HALIM PK": "HALIM PERDANAKUSUMA",
            "PAPANGO": "PAPANGGO",
            "KAMPUNG TENGAH": "TENGAH",
            "PALMERIEM": "PALMERIAM",
            "TANJUNGPRIUK": "TANJUNGPRIOK",
            "WIJAYA KESUMA": "WIJAYA KUSUMA",
            "HARAPAN MULYA": "HARAPAN MULIA",
            "BALEKAMBANG": "BALE KAMBANG",
        }
    ),
    strip_punctuation=True,
)

LOCATION_ALIAS_TABLES: Mapping[LocationLevel, LocationAliasTable] = MappingProxyType(
    {
        LocationLevel.PROVINCE: PROVINCE_ALIASES,
        LocationLevel.CITY: CITY_ALIASES,
        LocationLevel.DISTRICT: DISTRICT_ALIASES,
        LocationLevel.VILLAGE: VILLAGE_ALIASES,
    }
)


def apply_location_alias(level: LocationLevel, value: object | None) -> str:
    """Normalize ``value`` and run it through the alias table for ``level``."""

    return LOCATION_ALIAS_TABLES[level].apply(normalize_location_name(value))
