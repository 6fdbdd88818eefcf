"""Prometheus metrics helpers for the roster importer."""

from __future__ import annotations

from typing import Iterable

from prometheus_client import Counter, Histogram

from .errors import RowError

_rows_counter = Counter(
    "roster_import_rows_total",
    "Roster import rows processed, by profile and outcome.",
    ["profile", "outcome"],
)
_row_errors_counter = Counter(
    "roster_import_row_errors_total",
    "Row-level errors raised while importing rosters, by profile and kind.",
    ["profile", "kind"],
)
_batch_duration = Histogram(
    "roster_import_batch_duration_seconds",
    "Duration of roster import batches in seconds.",
    ["profile"],
    buckets=(0.1, 0.5, 1, 2, 5, 10, 30, 60, 120, 300),
)


def record_row_outcome(profile: str, outcome: str) -> None:
    """Increment the per-row outcome counter (created, reactivated, rejected)."""

    _rows_counter.labels(profile=profile, outcome=outcome).inc()


def record_row_errors(profile: str, errors: Iterable[RowError]) -> None:
    for error in errors:
        _row_errors_counter.labels(profile=profile, kind=error.kind.value).inc()


def record_batch_duration(profile: str, duration_seconds: float) -> None:
    _batch_duration.labels(profile=profile).observe(duration_seconds)
