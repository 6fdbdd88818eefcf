"""
Roster importer package.

Provides conditional blueprint and CLI registration so the importer stays
out of the way when ``IMPORTER_ENABLED`` is false.
"""

from __future__ import annotations

from flask import Flask

from roster_app.utils.importer import get_quota_ceilings, is_importer_enabled

from .cli import get_disabled_roster_group, roster_cli
from .contracts import IMPORT_PROFILES, get_profile
from .pipeline import BatchReport, ImportResult, import_roster, process_batch
from .views import importer_blueprint

IMPORTER_EXTENSION_KEY = "importer"

__all__ = [
    "init_importer",
    "IMPORTER_EXTENSION_KEY",
    "BatchReport",
    "ImportResult",
    "get_profile",
    "import_roster",
    "process_batch",
]


def _ensure_extension_state(app: Flask) -> dict:
    state = app.extensions.setdefault(
        IMPORTER_EXTENSION_KEY,
        {
            "enabled": False,
            "profiles": (),
            "quota_ceilings": {},
        },
    )
    return state


def _set_cli(app: Flask, enabled: bool) -> None:
    """Register the appropriate CLI group based on flag state."""
    # Avoid duplicate registrations when running tests
    command_name = roster_cli.name
    if command_name in app.cli.commands:
        app.cli.commands.pop(command_name)

    if enabled:
        app.cli.add_command(roster_cli)
    else:
        app.cli.add_command(get_disabled_roster_group())


def init_importer(app: Flask) -> None:
    """
    Conditionally mount the importer blueprint and CLI based on configuration.

    Records importer state inside ``app.extensions['importer']``.
    """
    enabled = is_importer_enabled(app)
    state = _ensure_extension_state(app)
    state.update(
        {
            "enabled": enabled,
            "profiles": tuple(IMPORT_PROFILES),
            "quota_ceilings": get_quota_ceilings(app),
        }
    )

    if not enabled:
        _set_cli(app, enabled=False)
        app.logger.info("Importer disabled via IMPORTER_ENABLED flag; skipping registration.")
        return

    if importer_blueprint.name not in app.blueprints and not getattr(app, "_got_first_request", False):
        app.register_blueprint(importer_blueprint)
    elif importer_blueprint.name not in app.blueprints:
        app.logger.warning(
            "Importer blueprint registration skipped because the app has already handled its first request."
        )
    _set_cli(app, enabled=True)

    app.logger.info("Roster importer enabled with profiles: %s", ", ".join(IMPORT_PROFILES))
