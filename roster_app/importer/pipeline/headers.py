"""
Header mapping: match free-form spreadsheet headers to canonical roster fields.
"""

from __future__ import annotations

from dataclasses import dataclass
from types import MappingProxyType
from typing import Iterable, Mapping, Sequence, Tuple

from ..contracts import FieldSpec, get_field_label
from ..errors import ErrorKind, RowError

_BOM = "\ufeff"


def sanitize_header(header: object | None) -> str:
    """Strip whitespace and a leading UTF-8 BOM (first column of Excel CSV exports)."""

    if header is None:
        return ""
    return str(header).replace(_BOM, "").strip()


def collect_headers(rows: Iterable[Mapping[str, object]]) -> Tuple[str, ...]:
    """Union of row keys in first-seen order."""

    seen: dict[str, None] = {}
    for row in rows:
        for key in row.keys():
            if key not in seen:
                seen[key] = None
    return tuple(seen)


@dataclass(frozen=True)
class HeaderMapping:
    """Canonical field -> source header key, plus unmapped required fields."""

    columns: Mapping[str, str]
    missing_required: Tuple[str, ...] = ()

    @property
    def is_complete(self) -> bool:
        return not self.missing_required

    @property
    def missing_labels(self) -> Tuple[str, ...]:
        return tuple(get_field_label(name) for name in self.missing_required)

    def value(self, row: Mapping[str, object], field: str) -> object | None:
        header = self.columns.get(field)
        if header is None:
            return None
        return row.get(header)

    def missing_header_error(self) -> RowError | None:
        if self.is_complete:
            return None
        return RowError(
            kind=ErrorKind.MISSING_REQUIRED_HEADER,
            message=f"Missing required column(s): {', '.join(self.missing_labels)}.",
        )


def map_headers(
    headers: Sequence[str],
    fields: Sequence[FieldSpec],
    required: Iterable[str] = (),
) -> HeaderMapping:
    """
    Map ``headers`` onto ``fields``.

    Fields are scanned in declaration order; for each, the first header (in the
    given order) containing one of its aliases case-insensitively wins. A
    header consumed by one field is not offered to later fields.

    Returns:
        HeaderMapping: The mapping and any required fields left unmapped.
    """

    cleaned = [(header, sanitize_header(header).lower()) for header in headers]
    consumed: set[str] = set()
    columns: dict[str, str] = {}

    for spec in fields:
        for header, lowered in cleaned:
            if header in consumed or not lowered:
                continue
            if any(alias in lowered for alias in spec.aliases):
                columns[spec.name] = header
                consumed.add(header)
                break

    missing = tuple(name for name in required if name not in columns)
    return HeaderMapping(columns=MappingProxyType(columns), missing_required=missing)
