"""
Account provisioning for accepted roster rows.

Creates (or reactivates) the login account, its encrypted hand-over
credential and the roster record in the session. The caller owns the unit of
work: it commits, or rolls back for dry runs and failures.
"""

from __future__ import annotations

import random
import re
import secrets
import string
import unicodedata
from dataclasses import dataclass
from typing import Callable, ClassVar

from flask import current_app, has_app_context

from roster_app.models import CredentialType, RosterStatus, User, UserCredential, UserStatus, db
from roster_app.utils.crypto import encrypt_secret
from roster_app.utils.importer import get_handle_max_attempts, get_login_domain, get_password_length

from ..contracts import ImportProfile
from ..errors import ProvisioningError
from .identity import IdentityMatch
from .locations import ResolvedLocation
from .normalize import NormalizedRow
from .state import BatchState

_SLUG_STRIP_RE = re.compile(r"[^a-z0-9]")
_PASSWORD_ALPHABET = string.ascii_letters + string.digits


@dataclass(frozen=True)
class ProvisionedAccount:
    """Successful provisioning; the only place the plaintext password surfaces."""

    display_name: str
    login_handle: str
    generated_password: str
    user_id: int | None = None
    record_id: int | None = None

    mode: ClassVar[str] = ""

    def as_report_entry(self) -> dict:
        return {
            "display_name": self.display_name,
            "login_handle": self.login_handle,
            "generated_password": self.generated_password,
            "mode": self.mode,
        }


class Created(ProvisionedAccount):
    mode = "created"


class Reactivated(ProvisionedAccount):
    mode = "reactivated"


def slugify_name(name: str) -> str:
    """ASCII-fold, lowercase and keep only alphanumerics; ``user`` when nothing is left."""

    folded = unicodedata.normalize("NFKD", name or "").encode("ascii", "ignore").decode("ascii")
    slug = _SLUG_STRIP_RE.sub("", folded.lower())
    return slug or "user"


def generate_password(length: int | None = None) -> str:
    length = length or get_password_length()
    return "".join(secrets.choice(_PASSWORD_ALPHABET) for _ in range(length))


def generate_login_handle(
    display_name: str,
    state: BatchState,
    *,
    domain: str | None = None,
    max_attempts: int | None = None,
    suffix_factory: Callable[[], int] | None = None,
) -> str:
    """
    Build ``<slug><4 digits>@<domain>``, retrying on collision.

    Collisions are checked against every stored account and against handles
    already issued in this batch. Raises ``ProvisioningError`` when
    ``max_attempts`` candidates all collide.
    """

    domain = domain or get_login_domain()
    max_attempts = max_attempts or get_handle_max_attempts()
    suffix_factory = suffix_factory or (lambda: random.randint(1000, 9999))
    slug = slugify_name(display_name)

    for _ in range(max_attempts):
        handle = f"{slug}{suffix_factory():04d}@{domain}"
        if handle in state.issued_handles or User.login_exists(handle):
            continue
        state.issued_handles.add(handle)
        return handle
    raise ProvisioningError(f"Could not generate a unique login handle for '{display_name}' after {max_attempts} attempts.")


def _issue_credential(user: User, password: str, credential_type: CredentialType) -> UserCredential:
    user.set_password(password)
    user.deactivate_credentials()
    credential = UserCredential(
        encrypted_password=encrypt_secret(password),
        credential_type=credential_type,
        is_active=True,
    )
    user.credentials.append(credential)
    return credential


def _fill_record(record, profile: ImportProfile, row: NormalizedRow, location: ResolvedLocation, extras: dict) -> None:
    record.full_name = row.full_name
    record.national_id = row.national_id
    record.phone_number = row.phone_number
    record.address = row.address or None
    record.status = RosterStatus.ACTIVE
    record.apply_location(location)
    if hasattr(record, "polling_station") and row.polling_station is not None:
        record.polling_station = row.polling_station
    for key, value in extras.items():
        setattr(record, key, value)


def create_member(
    profile: ImportProfile,
    row: NormalizedRow,
    location: ResolvedLocation,
    state: BatchState,
    *,
    extras: dict | None = None,
) -> Created:
    """Create a new inactive account, its initial credential and the roster record."""

    handle = generate_login_handle(row.full_name, state)
    password = generate_password()
    user = User(
        name=row.full_name,
        national_id=row.national_id,
        login=handle,
        role=profile.role,
        status=UserStatus.INACTIVE,
    )
    _issue_credential(user, password, CredentialType.INITIAL)
    db.session.add(user)
    db.session.flush()

    record = profile.roster_model(user_id=user.id)
    _fill_record(record, profile, row, location, extras or {})
    db.session.add(record)
    db.session.flush()

    return Created(
        display_name=row.display_name,
        login_handle=handle,
        generated_password=password,
        user_id=user.id,
        record_id=record.id,
    )


def restore_member(
    profile: ImportProfile,
    row: NormalizedRow,
    location: ResolvedLocation,
    match: IdentityMatch,
    state: BatchState,
    *,
    extras: dict | None = None,
) -> Reactivated:
    """
    Reactivate a soft-deleted identity with fresh attributes and credentials.

    A record in the profile's own table is restored in place. A record from
    another roster table stays deleted; its account is re-roled and a new
    record is created in the profile's table.
    """

    previous = match.record
    user = previous.user
    if user is None:
        user = User(
            name=row.full_name,
            national_id=row.national_id,
            login=generate_login_handle(row.full_name, state),
            role=profile.role,
            status=UserStatus.INACTIVE,
        )
        db.session.add(user)
    user.restore()
    user.name = row.full_name
    user.national_id = row.national_id
    user.role = profile.role

    password = generate_password()
    _issue_credential(user, password, CredentialType.REISSUE)
    db.session.flush()

    if match.model is profile.roster_model:
        record = previous
        record.restore()
        record.user_id = user.id
    else:
        record = profile.roster_model(user_id=user.id)
        db.session.add(record)
    _fill_record(record, profile, row, location, extras or {})
    db.session.flush()

    if has_app_context():
        current_app.logger.info(
            "Reactivated %s record %s as %s (account %s)",
            match.table,
            previous.id,
            profile.name,
            user.id,
        )

    return Reactivated(
        display_name=row.display_name,
        login_handle=user.login,
        generated_password=password,
        user_id=user.id,
        record_id=record.id,
    )
