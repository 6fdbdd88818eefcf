"""
Location resolution against the geographic directory.

Free-text province/city/district/village names are normalized, passed
through the per-level alias tables and looked up top-down, each level
restricted to its resolved parent. The first failing level stops the cascade.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import MutableMapping

from flask import current_app, has_app_context
from sqlalchemy import func

from roster_app.models import City, District, Province, Village, db

from ..contracts import LocationLevel, apply_location_alias
from ..errors import ErrorKind, RowError
from .normalize import NormalizedRow

CONTAINS_MIN_LENGTH = 4

# level -> (model, code column name, parent code column name)
_LEVEL_MODELS = {
    LocationLevel.PROVINCE: (Province, "province_code", None),
    LocationLevel.CITY: (City, "city_code", "province_code"),
    LocationLevel.DISTRICT: (District, "district_code", "city_code"),
    LocationLevel.VILLAGE: (Village, "village_code", "district_code"),
}


@dataclass(frozen=True)
class GeoMatch:
    code: str
    name: str


@dataclass(frozen=True)
class ResolvedLocation:
    province_code: str
    province_name: str
    city_code: str
    city_name: str
    district_code: str
    district_name: str
    village_code: str
    village_name: str


def _escape_like(value: str) -> str:
    return value.replace("\\", "\\\\").replace("%", "\\%").replace("_", "\\_")


def resolve_unit(level: LocationLevel, candidate: str, parent_code: str | None = None) -> GeoMatch | None:
    """
    Look ``candidate`` (already alias-substituted) up at ``level``.

    Cascade, first hit wins: exact name, prefix, then substring when the
    search string has at least ``CONTAINS_MIN_LENGTH`` characters.
    """

    if not candidate:
        return None
    model, code_attr, parent_attr = _LEVEL_MODELS[level]
    upper_name = func.upper(model.name)
    query = db.session.query(model)
    if parent_attr is not None:
        query = query.filter(getattr(model, parent_attr) == parent_code)

    escaped = _escape_like(candidate)
    attempts = [upper_name == candidate, upper_name.like(f"{escaped}%", escape="\\")]
    if len(candidate) >= CONTAINS_MIN_LENGTH:
        attempts.append(upper_name.like(f"%{escaped}%", escape="\\"))

    for condition in attempts:
        record = query.filter(condition).order_by(model.name, model.id).first()
        if record is not None:
            return GeoMatch(code=getattr(record, code_attr), name=record.name)
    return None


def _not_found(level: LocationLevel, value: str, parent: GeoMatch | None) -> RowError:
    shown = value.strip()
    if parent is None:
        message = f"{level.label} '{shown}' not found."
    else:
        message = f"{level.label} '{shown}' not found in {level.parent.value} '{parent.name}'."
    return RowError(ErrorKind.LOCATION_NOT_FOUND, message, level.value)


def resolve_location(
    row: NormalizedRow,
    cache: MutableMapping[tuple, GeoMatch | None] | None = None,
) -> tuple[ResolvedLocation | None, list[RowError]]:
    """
    Resolve the row's four location columns top-down.

    ``cache`` (keyed by level, search string and parent code) lets a batch
    avoid repeating identical directory queries.
    """

    matches: dict[LocationLevel, GeoMatch] = {}
    parent: GeoMatch | None = None
    for level in LocationLevel:
        raw_value = getattr(row, level.value)
        candidate = apply_location_alias(level, raw_value)
        key = (level, candidate, parent.code if parent else None)
        if cache is not None and key in cache:
            match = cache[key]
        else:
            match = resolve_unit(level, candidate, parent.code if parent else None)
            if cache is not None:
                cache[key] = match
        if match is None:
            if has_app_context():
                current_app.logger.debug(
                    "Location lookup failed at %s for %r (searched %r)", level.value, raw_value, candidate
                )
            return None, [_not_found(level, raw_value, parent)]
        matches[level] = match
        parent = match

    return (
        ResolvedLocation(
            province_code=matches[LocationLevel.PROVINCE].code,
            province_name=matches[LocationLevel.PROVINCE].name,
            city_code=matches[LocationLevel.CITY].code,
            city_name=matches[LocationLevel.CITY].name,
            district_code=matches[LocationLevel.DISTRICT].code,
            district_name=matches[LocationLevel.DISTRICT].name,
            village_code=matches[LocationLevel.VILLAGE].code,
            village_name=matches[LocationLevel.VILLAGE].name,
        ),
        [],
    )


def location_from_record(record) -> ResolvedLocation | None:
    """Build a ``ResolvedLocation`` from a roster record's stored codes (owner inheritance)."""

    codes = (record.province_code, record.city_code, record.district_code, record.village_code)
    if not all(codes):
        return None
    names = []
    for level, code in zip(LocationLevel, codes):
        model, code_attr, _ = _LEVEL_MODELS[level]
        unit = db.session.query(model).filter(getattr(model, code_attr) == code).first()
        names.append(unit.name if unit is not None else code)
    return ResolvedLocation(
        province_code=codes[0],
        province_name=names[0],
        city_code=codes[1],
        city_name=names[1],
        district_code=codes[2],
        district_name=names[2],
        village_code=codes[3],
        village_name=names[3],
    )
