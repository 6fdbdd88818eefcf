"""
Utility helpers for importer feature flag and settings lookups.
"""

from __future__ import annotations

from typing import Mapping

from flask import current_app


def _get_config(app=None):
    if app is not None:
        return app.config
    return current_app.config


def is_importer_enabled(app=None) -> bool:
    """Return True when the importer feature flag is enabled."""
    config = _get_config(app)
    return bool(config.get("IMPORTER_ENABLED", False))


def get_quota_ceilings(app=None) -> Mapping[str, int | None]:
    config = _get_config(app)
    return dict(config.get("ROSTER_QUOTA_CEILINGS") or {})


def get_quota_ceiling(profile_name: str, default: int | None = None, app=None) -> int | None:
    """
    Return the per-village headcount ceiling configured for ``profile_name``.

    Profiles missing from ``ROSTER_QUOTA_CEILINGS`` fall back to ``default``
    (the profile's own ceiling); an explicit ``None`` disables the quota.
    """
    ceilings = get_quota_ceilings(app)
    if profile_name in ceilings:
        return ceilings[profile_name]
    return default


def get_login_domain(app=None) -> str:
    config = _get_config(app)
    return str(config.get("ROSTER_LOGIN_DOMAIN") or "gmail.com").lstrip("@")


def get_password_length(app=None) -> int:
    config = _get_config(app)
    return max(8, int(config.get("ROSTER_PASSWORD_LENGTH", 10)))


def get_handle_max_attempts(app=None) -> int:
    config = _get_config(app)
    return max(1, int(config.get("ROSTER_HANDLE_MAX_ATTEMPTS", 50)))
