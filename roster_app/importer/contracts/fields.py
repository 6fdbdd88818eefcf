"""Canonical roster field definitions and header alias table.

Spreadsheets arrive with free-form, often misspelled headers ("No. HP",
"Kab/Kota", "Kelurahan"). Each canonical field lists lowercase substrings that
identify its column. Declaration order matters: header mapping scans fields in
this order and each header can satisfy only one field.
"""

from __future__ import annotations

from dataclasses import dataclass
from types import MappingProxyType
from typing import Mapping, Tuple


@dataclass(frozen=True)
class FieldSpec:
    """Metadata describing a canonical roster field."""

    name: str
    label: str
    aliases: Tuple[str, ...]
    max_length: int | None = None


ROSTER_FIELDS: Tuple[FieldSpec, ...] = (
    FieldSpec(
        name="province",
        label="Province",
        aliases=("prov", "provinsi", "propinsi", "profinsi"),
    ),
    FieldSpec(
        name="city",
        label="City/Regency",
        aliases=("kab", "kota", "kabkot", "kabupaten", "kabupaten kota", "kab/kot"),
    ),
    FieldSpec(
        name="district",
        label="District",
        aliases=("kec", "kecamatan"),
    ),
    FieldSpec(
        name="village",
        label="Village",
        aliases=("desa", "deskel", "kelurahan", "kel"),
    ),
    # Ahead of full_name so a "Nama Ormas" column is not taken for the name.
    FieldSpec(
        name="organization",
        label="Organization",
        aliases=("ormas", "organisasi"),
        max_length=255,
    ),
    FieldSpec(
        name="full_name",
        label="Name",
        aliases=("nama", "name"),
        max_length=255,
    ),
    FieldSpec(
        name="national_id",
        label="National ID",
        aliases=("nik",),
    ),
    FieldSpec(
        name="phone_number",
        label="Phone",
        aliases=("hp", "no_hp", "nohp", "nomor hp", "nomorhp", "telp", "no telp", "telepon"),
    ),
    FieldSpec(
        name="polling_station",
        label="Polling Station",
        aliases=("tps",),
    ),
    FieldSpec(
        name="address",
        label="Address",
        aliases=("alamat", "address"),
        max_length=255,
    ),
)

_FIELDS_BY_NAME: Mapping[str, FieldSpec] = MappingProxyType({spec.name: spec for spec in ROSTER_FIELDS})

LOCATION_FIELDS: Tuple[str, ...] = ("province", "city", "district", "village")


def get_field_spec(name: str) -> FieldSpec:
    return _FIELDS_BY_NAME[name]


def get_field_specs(names: Tuple[str, ...] | None = None) -> Tuple[FieldSpec, ...]:
    """Return field specs in declaration order, optionally restricted to ``names``."""

    if names is None:
        return ROSTER_FIELDS
    wanted = set(names)
    unknown = wanted.difference(_FIELDS_BY_NAME)
    if unknown:
        raise KeyError(f"Unknown roster fields: {', '.join(sorted(unknown))}")
    return tuple(spec for spec in ROSTER_FIELDS if spec.name in wanted)


def get_field_label(name: str) -> str:
    return _FIELDS_BY_NAME[name].label
