"""
Importer blueprint endpoints: health, metrics, profile listing, roster batch
import and import run lookup.
"""

from __future__ import annotations

from http import HTTPStatus

from flask import Blueprint, Response, current_app, jsonify, request
from flask_login import current_user
from prometheus_client import CONTENT_TYPE_LATEST, generate_latest

from roster_app.models import ImportRun, db
from roster_app.utils.importer import get_quota_ceiling, is_importer_enabled

from .contracts import IMPORT_PROFILES
from .errors import MissingRequiredHeaderError, OwnerRequiredError, UnknownProfileError
from .pipeline import import_roster

importer_blueprint = Blueprint("importer", __name__, url_prefix="/importer")


def _json_error(message: str, status: HTTPStatus):
    return jsonify({"error": message}), status


def _ensure_importer_enabled_api():
    if not is_importer_enabled(current_app):
        return _json_error("Importer is disabled.", HTTPStatus.NOT_FOUND)
    return None


def _ensure_authenticated_api():
    if not current_user.is_authenticated:
        return _json_error("Authentication required.", HTTPStatus.UNAUTHORIZED)
    return None


def _parse_import_payload(payload) -> tuple[list[dict], bool, int | None]:
    """Validate the JSON body; raises ``ValueError`` with a client-facing message."""

    if not isinstance(payload, dict):
        raise ValueError("Request body must be a JSON object.")
    rows = payload.get("rows")
    if not isinstance(rows, list) or not all(isinstance(row, dict) for row in rows):
        raise ValueError("'rows' must be a list of objects mapping header to cell value.")
    dry_run = payload.get("dry_run", False)
    if not isinstance(dry_run, bool):
        raise ValueError("'dry_run' must be a boolean.")
    coordinator_id = payload.get("coordinator_id")
    if coordinator_id is not None and (isinstance(coordinator_id, bool) or not isinstance(coordinator_id, int)):
        raise ValueError("'coordinator_id' must be an integer.")
    return rows, dry_run, coordinator_id


@importer_blueprint.get("/health")
def importer_healthcheck():
    """
    Lightweight health endpoint proving the importer blueprint mounted correctly.
    """
    return jsonify({"status": "ok", "enabled": is_importer_enabled(current_app)}), 200


@importer_blueprint.get("/metrics")
def importer_metrics():
    """Prometheus exposition of the importer counters; 404 unless MONITORING_ENABLED."""
    if not current_app.config.get("MONITORING_ENABLED", False):
        return _json_error("Metrics are disabled.", HTTPStatus.NOT_FOUND)
    return Response(generate_latest(), mimetype=CONTENT_TYPE_LATEST)


@importer_blueprint.get("/roster/profiles")
def roster_profiles():
    enabled_response = _ensure_importer_enabled_api()
    if enabled_response:
        return enabled_response

    return jsonify(
        {
            "profiles": [
                {
                    "name": profile.name,
                    "title": profile.title,
                    "required_columns": list(profile.required_labels),
                    "quota_ceiling": get_quota_ceiling(profile.name, default=profile.quota_ceiling),
                    "requires_coordinator": profile.requires_owner,
                }
                for profile in IMPORT_PROFILES.values()
            ]
        }
    )


@importer_blueprint.post("/roster/<profile_name>")
def roster_import(profile_name: str):
    """
    Import a batch of roster rows for ``profile_name``.

    Body: ``{"rows": [...], "dry_run": false, "coordinator_id": 1}``.
    Returns the run id and the batch report.
    """
    enabled_response = _ensure_importer_enabled_api()
    if enabled_response:
        return enabled_response

    auth_response = _ensure_authenticated_api()
    if auth_response:
        return auth_response

    if profile_name not in IMPORT_PROFILES:
        return _json_error(f"Unknown import profile '{profile_name}'.", HTTPStatus.NOT_FOUND)

    try:
        rows, dry_run, coordinator_id = _parse_import_payload(request.get_json(silent=True))
    except ValueError as exc:
        return _json_error(str(exc), HTTPStatus.BAD_REQUEST)

    try:
        result = import_roster(
            rows,
            profile_name,
            dry_run=dry_run,
            coordinator_id=coordinator_id,
            triggered_by_user_id=current_user.id,
            source="api",
        )
    except UnknownProfileError as exc:
        return _json_error(str(exc), HTTPStatus.NOT_FOUND)
    except OwnerRequiredError as exc:
        status = HTTPStatus.NOT_FOUND if exc.coordinator_id is not None else HTTPStatus.BAD_REQUEST
        return _json_error(str(exc), status)
    except MissingRequiredHeaderError as exc:
        return _json_error(str(exc), HTTPStatus.BAD_REQUEST)

    current_app.logger.info(
        "Roster import submitted via API",
        extra={
            "import_run_id": result.run_id,
            "roster_profile": profile_name,
            "dry_run": dry_run,
            "triggered_by_user_id": current_user.id,
        },
    )
    return jsonify({"run_id": result.run_id, "status": result.status.value, "report": result.report.to_dict()})


@importer_blueprint.get("/runs/<int:run_id>")
def importer_run_detail(run_id: int):
    enabled_response = _ensure_importer_enabled_api()
    if enabled_response:
        return enabled_response

    auth_response = _ensure_authenticated_api()
    if auth_response:
        return auth_response

    run = db.session.get(ImportRun, run_id)
    if run is None:
        return _json_error(f"Import run {run_id} not found.", HTTPStatus.NOT_FOUND)
    return jsonify(
        {
            "id": run.id,
            "profile": run.profile,
            "source": run.source,
            "status": run.status.value,
            "dry_run": run.dry_run,
            "started_at": run.started_at.isoformat() if run.started_at else None,
            "finished_at": run.finished_at.isoformat() if run.finished_at else None,
            "counts": run.counts_json or {},
            "error_summary": run.error_summary,
        }
    )
