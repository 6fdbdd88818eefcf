# roster_app/models/user.py

import enum

from flask import current_app
from flask_login import UserMixin
from sqlalchemy import Enum
from sqlalchemy.exc import SQLAlchemyError
from werkzeug.security import check_password_hash, generate_password_hash

from .base import BaseModel, SoftDeleteMixin, db, utcnow


class UserRole(str, enum.Enum):
    ADMIN = "admin"
    COORDINATOR = "coordinator"
    COORDINATOR_APK = "coordinator_apk"
    VOLUNTEER = "volunteer"


class UserStatus(str, enum.Enum):
    ACTIVE = "active"
    INACTIVE = "inactive"


class CredentialType(str, enum.Enum):
    INITIAL = "initial"
    REISSUE = "reissue"


class User(BaseModel, SoftDeleteMixin, UserMixin):
    """Login account owned by a roster member or an operator."""

    __tablename__ = "users"

    id = db.Column(db.Integer, primary_key=True)
    name = db.Column(db.String(255), nullable=False)
    national_id = db.Column(db.String(16), nullable=True, index=True)
    login = db.Column(db.String(255), unique=True, nullable=False, index=True)
    password_hash = db.Column(db.String(255), nullable=False)
    role = db.Column(Enum(UserRole, name="user_role_enum"), nullable=False, index=True)
    status = db.Column(
        Enum(UserStatus, name="user_status_enum"),
        nullable=False,
        default=UserStatus.INACTIVE,
    )

    credentials = db.relationship(
        "UserCredential",
        back_populates="user",
        cascade="all, delete-orphan",
        order_by="UserCredential.id",
    )

    def __repr__(self):
        return f"<User {self.login}>"

    @property
    def is_active(self):
        # Imported accounts stay inactive until an operator activates them.
        return self.status == UserStatus.ACTIVE and self.deleted_at is None

    def set_password(self, password):
        self.password_hash = generate_password_hash(password)

    def check_password(self, password):
        return check_password_hash(self.password_hash, password)

    @property
    def active_credential(self):
        for credential in reversed(self.credentials):
            if credential.is_active:
                return credential
        return None

    def deactivate_credentials(self):
        for credential in self.credentials:
            credential.is_active = False

    @staticmethod
    def login_exists(login):
        """True when any account (deleted ones included) already owns ``login``."""
        try:
            return db.session.query(User.id).filter(User.login == login).first() is not None
        except SQLAlchemyError as e:
            current_app.logger.error(f"Database error checking login {login}: {str(e)}")
            raise


class UserCredential(BaseModel):
    """Reversibly encrypted copy of a generated password, for hand-over."""

    __tablename__ = "user_credentials"

    id = db.Column(db.Integer, primary_key=True)
    user_id = db.Column(db.Integer, db.ForeignKey("users.id", ondelete="CASCADE"), nullable=False, index=True)
    encrypted_password = db.Column(db.Text, nullable=False)
    credential_type = db.Column(
        Enum(CredentialType, name="credential_type_enum"),
        nullable=False,
        default=CredentialType.INITIAL,
    )
    is_active = db.Column(db.Boolean, nullable=False, default=True)
    used_at = db.Column(db.DateTime(timezone=True), nullable=True)

    user = db.relationship("User", back_populates="credentials")

    def mark_used(self):
        self.used_at = utcnow()

    def __repr__(self):
        return f"<UserCredential user={self.user_id} type={self.credential_type}>"
