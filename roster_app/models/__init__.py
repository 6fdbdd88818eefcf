# roster_app/models/__init__.py
"""
Database models package
"""

from .base import BaseModel, SoftDeleteMixin, db
from .importer import ImportRun, ImportRunStatus
from .region import City, District, Province, Village
from .roster import (
    ROSTER_MODELS,
    ApkCoordinator,
    CommunityOrganization,
    Coordinator,
    RosterStatus,
    Volunteer,
)
from .user import CredentialType, User, UserCredential, UserRole, UserStatus

__all__ = [
    "db",
    "BaseModel",
    "SoftDeleteMixin",
    "User",
    "UserCredential",
    "UserRole",
    "UserStatus",
    "CredentialType",
    # Geography
    "Province",
    "City",
    "District",
    "Village",
    # Roster tables
    "Coordinator",
    "ApkCoordinator",
    "Volunteer",
    "CommunityOrganization",
    "RosterStatus",
    "ROSTER_MODELS",
    # Importer ledger
    "ImportRun",
    "ImportRunStatus",
]
