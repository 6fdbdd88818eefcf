# config.py
import os
from datetime import timedelta


def _coerce_bool(value, default=False):
    """Convert environment-style truthy/falsey values to bool."""
    if value is None:
        return default
    if isinstance(value, bool):
        return value
    value_str = str(value).strip().lower()
    if value_str in {"1", "true", "yes", "on"}:
        return True
    if value_str in {"0", "false", "no", "off"}:
        return False
    return default


def _coerce_int(value, default, *, minimum=None):
    """Parse an integer setting, falling back to ``default`` on bad input."""
    if value is None or str(value).strip() == "":
        return default
    try:
        number = int(str(value).strip())
    except ValueError:
        return default
    if minimum is not None and number < minimum:
        return default
    return number


def _parse_quota_ceilings(value, defaults):
    """
    Parse ``profile=ceiling`` pairs (comma-separated) into a ceiling map.

    Unknown or malformed entries are ignored; ``none`` disables the ceiling
    for that profile.

    Returns:
        dict[str, int | None]: Ceiling per import profile name.
    """
    ceilings = dict(defaults)
    if not value:
        return ceilings

    for raw_item in value.split(","):
        item = raw_item.strip()
        if not item or "=" not in item:
            continue
        name, raw_ceiling = (part.strip() for part in item.split("=", 1))
        if not name:
            continue
        if raw_ceiling.lower() in {"none", "off", ""}:
            ceilings[name.lower()] = None
            continue
        try:
            ceiling = int(raw_ceiling)
        except ValueError:
            continue
        if ceiling < 0:
            continue
        ceilings[name.lower()] = ceiling
    return ceilings


DEFAULT_QUOTA_CEILINGS = {
    "coordinator": 2,
    "coordinator_apk": 2,
    "volunteer": None,
}


class Config:
    # SECRET_KEY must be set via environment variable for security
    # For development, we allow a default but warn about it
    # For production, it must be set via environment variable
    _flask_env = os.environ.get("FLASK_ENV", "development")
    _is_testing = _flask_env == "testing"
    _is_production = _flask_env == "production"

    SECRET_KEY = os.environ.get("SECRET_KEY")

    # Only require SECRET_KEY in production mode
    if not SECRET_KEY and _is_production:
        raise ValueError(
            "SECRET_KEY environment variable is required in production. "
            'Generate with: python -c "import secrets; print(secrets.token_hex(32))"'
        )

    if not SECRET_KEY and not _is_testing:
        import warnings

        warnings.warn(
            "SECRET_KEY not set. Using default for development only. "
            "Generated credentials are encrypted with a key derived from SECRET_KEY, "
            "so set SECRET_KEY (or CREDENTIAL_ENCRYPTION_KEY) before importing real rosters.",
            UserWarning,
        )
        SECRET_KEY = "dev-secret-key-change-in-production"

    if not SECRET_KEY:
        SECRET_KEY = "test-secret-key-placeholder"

    SQLALCHEMY_TRACK_MODIFICATIONS = False
    SQLALCHEMY_ENGINE_OPTIONS = {}

    # Importer configuration
    IMPORTER_ENABLED = _coerce_bool(os.environ.get("IMPORTER_ENABLED"), default=True)
    ROSTER_QUOTA_CEILINGS = _parse_quota_ceilings(
        os.environ.get("ROSTER_QUOTA_CEILINGS", ""),
        DEFAULT_QUOTA_CEILINGS,
    )
    ROSTER_LOGIN_DOMAIN = os.environ.get("ROSTER_LOGIN_DOMAIN", "gmail.com")
    ROSTER_PASSWORD_LENGTH = _coerce_int(os.environ.get("ROSTER_PASSWORD_LENGTH"), 10, minimum=8)
    ROSTER_HANDLE_MAX_ATTEMPTS = _coerce_int(os.environ.get("ROSTER_HANDLE_MAX_ATTEMPTS"), 50, minimum=1)

    # Fernet key (urlsafe base64, 32 bytes). Derived from SECRET_KEY when unset.
    CREDENTIAL_ENCRYPTION_KEY = os.environ.get("CREDENTIAL_ENCRYPTION_KEY")

    # Session configuration
    PERMANENT_SESSION_LIFETIME = timedelta(days=7)
    SESSION_COOKIE_SECURE = False  # Set to True in production with HTTPS
    SESSION_COOKIE_HTTPONLY = True
    SESSION_COOKIE_SAMESITE = "Lax"


class DevelopmentConfig(Config):
    DEBUG = True
    _config_dir = os.path.dirname(os.path.abspath(__file__))
    _project_root = os.path.dirname(_config_dir)
    instance_path = os.path.join(_project_root, "instance")

    if not os.path.exists(instance_path):
        os.makedirs(instance_path, exist_ok=True)

    # SQLite URI format: sqlite:///absolute/path (3 slashes for absolute path)
    db_path = os.path.join(instance_path, "roster_dev.db").replace("\\", "/")
    db_uri = f"sqlite:///{db_path}"

    SQLALCHEMY_DATABASE_URI = os.environ.get("DATABASE_URL", db_uri)
    SQLALCHEMY_ECHO = _coerce_bool(os.environ.get("SQLALCHEMY_ECHO"), default=False)
    if SQLALCHEMY_DATABASE_URI.startswith("sqlite"):
        SQLALCHEMY_ENGINE_OPTIONS = {
            "connect_args": {
                "check_same_thread": False,
                "timeout": 5,
            }
        }
    else:
        SQLALCHEMY_ENGINE_OPTIONS = {}


class TestingConfig(Config):
    TESTING = True
    SECRET_KEY = os.environ.get("SECRET_KEY", "test-secret-key-for-testing-only")
    SQLALCHEMY_DATABASE_URI = "sqlite:///:memory:"
    SQLALCHEMY_ECHO = False
    SQLALCHEMY_ENGINE_OPTIONS = {
        "connect_args": {
            "check_same_thread": False,
            "timeout": 5,
        }
    }


class ProductionConfig(Config):
    DEBUG = False
    uri = os.environ.get("DATABASE_URL")
    if uri and uri.startswith("postgres://"):
        uri = uri.replace("postgres://", "postgresql://", 1)
    SQLALCHEMY_DATABASE_URI = uri
    SQLALCHEMY_ECHO = False
    SESSION_COOKIE_SECURE = True
