"""
Row-level error values and the few exceptions the roster importer raises.

Every stage reports problems as ``RowError`` values so one bad row never stops
a batch. Exceptions are reserved for conditions detected before a batch starts
(unknown profile, missing owner, batch-fatal headers) and for handle
exhaustion inside provisioning, which the orchestrator turns into a row error.
"""

from __future__ import annotations

import enum
from dataclasses import dataclass
from typing import Iterable, Sequence


class ErrorKind(str, enum.Enum):
    MISSING_REQUIRED_HEADER = "missing_required_header"
    INVALID_PHONE = "invalid_phone"
    INVALID_NATIONAL_ID = "invalid_national_id"
    FIELD_VALIDATION_FAILED = "field_validation_failed"
    LOCATION_NOT_FOUND = "location_not_found"
    DUPLICATE_NATIONAL_ID = "duplicate_national_id"
    DUPLICATE_PHONE = "duplicate_phone"
    QUOTA_EXCEEDED = "quota_exceeded"
    REFERENCE_NOT_FOUND = "reference_not_found"
    SYSTEM_ERROR = "system_error"


@dataclass(frozen=True)
class RowError:
    """A single diagnostic attached to a rejected row."""

    kind: ErrorKind
    message: str
    field: str | None = None


def error_messages(errors: Iterable[RowError]) -> list[str]:
    return [error.message for error in errors]


def error_codes(errors: Iterable[RowError]) -> list[str]:
    return [error.kind.value for error in errors]


class RosterImportError(Exception):
    """Base class for importer configuration and batch-level failures."""


class UnknownProfileError(RosterImportError):
    def __init__(self, name: str, available: Sequence[str]):
        self.name = name
        self.available = tuple(available)
        super().__init__(f"Unknown import profile '{name}'. Available: {', '.join(self.available)}.")


class OwnerRequiredError(RosterImportError):
    """Raised when a profile that inherits location is run without an owner."""

    def __init__(self, profile_name: str, detail: str | None = None, coordinator_id: int | None = None):
        self.profile_name = profile_name
        self.coordinator_id = coordinator_id
        message = f"Profile '{profile_name}' must be imported under an active coordinator."
        if detail:
            message = f"{message} {detail}"
        super().__init__(message)


class MissingRequiredHeaderError(RosterImportError):
    """Raised for batch-fatal profiles when required headers are absent."""

    def __init__(self, labels: Sequence[str]):
        self.labels = tuple(labels)
        super().__init__(f"Missing required headers: {', '.join(self.labels)}.")


class ProvisioningError(RosterImportError):
    """Raised when an account cannot be provisioned (e.g. handle exhaustion)."""
