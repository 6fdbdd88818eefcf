"""
Reversible encryption for generated credentials.

Generated passwords are hashed on the account and also kept as a Fernet token
so an operator can hand them over later. The key comes from
``CREDENTIAL_ENCRYPTION_KEY`` or, when unset, is derived from ``SECRET_KEY``.
"""

from __future__ import annotations

import base64
import hashlib

from cryptography.fernet import Fernet, InvalidToken
from flask import current_app

__all__ = ["CredentialCipherError", "decrypt_secret", "encrypt_secret", "get_cipher"]


class CredentialCipherError(RuntimeError):
    """Raised when a credential cannot be encrypted or decrypted."""


def _derive_key(secret_key: str) -> bytes:
    digest = hashlib.sha256(secret_key.encode("utf-8")).digest()
    return base64.urlsafe_b64encode(digest)


def get_cipher(app=None) -> Fernet:
    config = app.config if app is not None else current_app.config
    configured = config.get("CREDENTIAL_ENCRYPTION_KEY")
    if configured:
        key = configured.encode("ascii") if isinstance(configured, str) else configured
    else:
        secret_key = config.get("SECRET_KEY")
        if not secret_key:
            raise CredentialCipherError("Neither CREDENTIAL_ENCRYPTION_KEY nor SECRET_KEY is configured.")
        key = _derive_key(str(secret_key))
    try:
        return Fernet(key)
    except ValueError as exc:
        raise CredentialCipherError(f"Invalid credential encryption key: {exc}") from exc


def encrypt_secret(plaintext: str, app=None) -> str:
    return get_cipher(app).encrypt(plaintext.encode("utf-8")).decode("ascii")


def decrypt_secret(token: str, app=None) -> str:
    try:
        return get_cipher(app).decrypt(token.encode("ascii")).decode("utf-8")
    except InvalidToken as exc:
        raise CredentialCipherError("Credential token could not be decrypted with the current key.") from exc
