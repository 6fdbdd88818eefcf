"""
Row normalization: cell coercion, phone/polling-station canonical forms and
field validation. Failures are collected as ``RowError`` values, never raised.
"""

from __future__ import annotations

import re
from dataclasses import dataclass
from typing import Mapping

from ..contracts import ImportProfile, PollingStationPolicy, get_field_spec
from ..errors import ErrorKind, RowError
from .headers import HeaderMapping

_NON_DIGIT_RE = re.compile(r"\D")
_NATIONAL_ID_RE = re.compile(r"^\d{16}$")
_POLLING_STATION_RE = re.compile(r"^(\d+)(?:\.0+)?$")

PHONE_MIN_DIGITS = 10
PHONE_MAX_DIGITS = 13
POLLING_STATION_WIDTH = 3
DEFAULT_POLLING_STATION = "000"
UNKNOWN_DISPLAY_NAME = "Unknown"


def coerce_cell(value: object | None) -> str:
    """Render a spreadsheet cell as trimmed text (integral floats lose their ``.0``)."""

    if value is None:
        return ""
    if isinstance(value, bool):
        return str(value)
    if isinstance(value, float):
        if value != value:  # NaN
            return ""
        if value.is_integer():
            return str(int(value))
    return str(value).strip()


def is_blank_row(row: Mapping[str, object]) -> bool:
    return all(coerce_cell(value) == "" for value in row.values())


def normalize_phone(value: object | None) -> str:
    """
    Canonicalize an Indonesian mobile number to the ``08…`` form.

    Non-digits are dropped, a ``62`` country prefix becomes ``0`` and a bare
    leading ``8`` gains a ``0``. Applying it to its own output is a no-op.
    """

    digits = _NON_DIGIT_RE.sub("", coerce_cell(value))
    if digits.startswith("62"):
        digits = "0" + digits[2:]
    elif digits.startswith("8"):
        digits = "0" + digits
    return digits


def validate_phone(phone: str) -> RowError | None:
    if not phone.startswith("08"):
        return RowError(
            ErrorKind.INVALID_PHONE,
            f"Phone number '{phone}' must start with 08.",
            "phone_number",
        )
    if not PHONE_MIN_DIGITS <= len(phone) <= PHONE_MAX_DIGITS:
        return RowError(
            ErrorKind.INVALID_PHONE,
            f"Phone number '{phone}' must be {PHONE_MIN_DIGITS}-{PHONE_MAX_DIGITS} digits long.",
            "phone_number",
        )
    return None


def validate_national_id(national_id: str) -> RowError | None:
    if _NATIONAL_ID_RE.match(national_id):
        return None
    return RowError(
        ErrorKind.INVALID_NATIONAL_ID,
        f"National ID '{national_id}' must be exactly 16 digits.",
        "national_id",
    )


def normalize_polling_station(
    value: object | None,
    policy: PollingStationPolicy,
) -> tuple[str | None, RowError | None]:
    """Left-pad a polling-station number to three digits, applying the profile's empty-cell policy."""

    if policy is PollingStationPolicy.NONE:
        return None, None
    token = coerce_cell(value)
    if not token:
        if policy is PollingStationPolicy.DEFAULT:
            return DEFAULT_POLLING_STATION, None
        return None, RowError(
            ErrorKind.FIELD_VALIDATION_FAILED, "Polling Station is required.", "polling_station"
        )
    match = _POLLING_STATION_RE.match(token)
    digits = (match.group(1).lstrip("0") or "0") if match else ""
    if not match or len(digits) > POLLING_STATION_WIDTH:
        return None, RowError(
            ErrorKind.FIELD_VALIDATION_FAILED,
            f"Polling Station '{token}' must be a number of at most {POLLING_STATION_WIDTH} digits.",
            "polling_station",
        )
    return digits.zfill(POLLING_STATION_WIDTH), None


@dataclass(frozen=True)
class NormalizedRow:
    """A row after header mapping and normalization."""

    row_number: int
    full_name: str = ""
    national_id: str = ""
    phone_number: str = ""
    address: str = ""
    polling_station: str | None = None
    province: str = ""
    city: str = ""
    district: str = ""
    village: str = ""
    organization: str = ""

    @property
    def display_name(self) -> str:
        return self.full_name or UNKNOWN_DISPLAY_NAME


def _text_errors(name: str, value: str, required: bool) -> list[RowError]:
    spec = get_field_spec(name)
    if not value:
        if required:
            return [RowError(ErrorKind.FIELD_VALIDATION_FAILED, f"{spec.label} is required.", name)]
        return []
    if spec.max_length is not None and len(value) > spec.max_length:
        return [
            RowError(
                ErrorKind.FIELD_VALIDATION_FAILED,
                f"{spec.label} must be at most {spec.max_length} characters.",
                name,
            )
        ]
    return []


def normalize_row(
    row: Mapping[str, object],
    row_number: int,
    mapping: HeaderMapping,
    profile: ImportProfile,
) -> tuple[NormalizedRow, list[RowError]]:
    """
    Pull the profile's fields out of ``row`` and normalize them.

    Returns the normalized row (populated as far as possible so the display
    name is always available) and every validation error found.
    """

    raw = {name: coerce_cell(mapping.value(row, name)) for name in profile.fields}
    required = set(profile.required)
    errors: list[RowError] = []

    for name in ("full_name", "address", "organization", "province", "city", "district", "village"):
        if name in raw:
            errors.extend(_text_errors(name, raw[name], name in required))

    national_id = raw.get("national_id", "")
    if national_id:
        error = validate_national_id(national_id)
        if error:
            errors.append(error)
    elif "national_id" in required:
        errors.append(RowError(ErrorKind.FIELD_VALIDATION_FAILED, "National ID is required.", "national_id"))

    phone = ""
    if raw.get("phone_number", ""):
        phone = normalize_phone(raw["phone_number"])
        error = validate_phone(phone)
        if error:
            errors.append(error)
    elif "phone_number" in required:
        errors.append(RowError(ErrorKind.FIELD_VALIDATION_FAILED, "Phone is required.", "phone_number"))

    polling_station, error = normalize_polling_station(raw.get("polling_station"), profile.polling_station)
    if error:
        errors.append(error)

    normalized = NormalizedRow(
        row_number=row_number,
        full_name=raw.get("full_name", ""),
        national_id=national_id,
        phone_number=phone,
        address=raw.get("address", ""),
        polling_station=polling_station,
        province=raw.get("province", ""),
        city=raw.get("city", ""),
        district=raw.get("district", ""),
        village=raw.get("village", ""),
        organization=raw.get("organization", ""),
    )
    return normalized, errors
