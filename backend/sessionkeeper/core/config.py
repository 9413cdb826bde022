"""Application settings with environment-based simple classes."""

from __future__ import annotations

import os
from collections.abc import Mapping
from datetime import timedelta
from typing import Final

from dotenv import load_dotenv

# Public selector env var (keep neutral name to avoid collisions)
ENV_VAR: Final[str] = "APP_ENV"  # 'development' | 'testing' | 'production'

# Placeholder signing key; only acceptable outside production
DEFAULT_SECRET_KEY: Final[str] = "CHANGE_ME"


# Load .env during development (no-op when the file is absent)
load_dotenv()


def env_bool(name: str, default: bool = False) -> bool:
    """Parse a boolean flag from an environment variable.

    Parameters
    ----------
    name: str
        Environment variable to inspect.
    default: bool, optional
        Value returned when the variable is unset. Defaults to ``False``.

    Returns
    -------
    bool
        ``True`` if the value resembles ``{"1", "true", "yes", "y", "on"}``
        ignoring case; otherwise ``False`` or ``default`` when missing.
    """
    val = os.getenv(name)
    if val is None:
        return default
    return str(val).strip().lower() in {"1", "true", "yes", "y", "on"}


def env_int(name: str, default: int | None = None) -> int | None:
    """Parse an optional integer from an environment variable.

    Blank values count as unset so ``MAX_SESSIONS_PER_SUBJECT=`` disables the
    session cap instead of failing.

    :raises ValueError: If the value is present but not an integer.
    """
    val = os.getenv(name)
    if val is None or not val.strip():
        return default
    return int(val.strip())


class BaseConfig:
    """Base configuration shared across environments.

    Attributes
    ----------
    API_BASE_PREFIX: str
        Root path for registering API blueprints.
    SECRET_KEY: str
        Signing/verification key material for tokens. Defaults to a
        development-safe placeholder and must be overridden in production.
    JWT_SECRET_KEY: str
        Key handed to ``flask-jwt-extended``; mirrors ``SECRET_KEY``.
    REQUIRE_SECRET_KEY: bool
        When true, :func:`check_secrets` refuses the placeholder key at startup.
    JWT_ALGORITHM: str
        Signature algorithm (``HS256`` by default).
    JWT_ISSUER: str
        Value written to and required in the ``iss`` claim.
    ACCESS_TOKEN_EXPIRE_MIN: int
        Access-token lifetime in minutes.
    REFRESH_TOKEN_EXPIRE_HOUR: int
        Refresh-token lifetime in hours; also bounds the backing record.
    MAX_SESSIONS_PER_SUBJECT: int | None
        Maximum concurrently active refresh tokens per subject, or ``None``
        for no cap.
    SESSION_LIMIT_POLICY: str
        ``"evict"`` (oldest session is deactivated) or ``"reject"`` (login
        fails with ``max_sign_in_exceeded``).
    SESSION_LOCK_TIMEOUT_SEC: float
        Upper bound on waiting for the per-subject issuance lock.
    REDIS_URL: str | None
        Enables cross-process per-subject locks when set.
    SQLALCHEMY_DATABASE_URI: str
        Database connection string consumed by SQLAlchemy.
    LOG_LEVEL: str
        Root logging verbosity (``INFO`` by default).

    Notes
    -----
    Values are primarily sourced from environment variables, enabling
    configuration without code changes.
    """

    API_BASE_PREFIX = "/api"

    # Secrets / security
    SECRET_KEY = os.getenv("SECRET_KEY", DEFAULT_SECRET_KEY)
    JWT_SECRET_KEY = SECRET_KEY
    JWT_ALGORITHM = os.getenv("JWT_ALGORITHM", "HS256")
    JWT_ISSUER = os.getenv("JWT_ISSUER", "sessionkeeper")
    JWT_ENCODE_ISSUER = JWT_ISSUER
    JWT_DECODE_ISSUER = JWT_ISSUER
    JWT_ENCODE_NBF = False
    REQUIRE_SECRET_KEY = False

    # Token lifecycle
    ACCESS_TOKEN_EXPIRE_MIN = env_int("ACCESS_TOKEN_EXPIRE_MIN", 30)
    REFRESH_TOKEN_EXPIRE_HOUR = env_int("REFRESH_TOKEN_EXPIRE_HOUR", 24 * 7)
    JWT_ACCESS_TOKEN_EXPIRES = timedelta(minutes=ACCESS_TOKEN_EXPIRE_MIN or 30)
    JWT_REFRESH_TOKEN_EXPIRES = timedelta(hours=REFRESH_TOKEN_EXPIRE_HOUR or 24 * 7)
    MAX_SESSIONS_PER_SUBJECT = env_int("MAX_SESSIONS_PER_SUBJECT")
    SESSION_LIMIT_POLICY = os.getenv("SESSION_LIMIT_POLICY", "evict")
    SESSION_LOCK_TIMEOUT_SEC = float(os.getenv("SESSION_LOCK_TIMEOUT_SEC", "5"))
    REDIS_URL = os.getenv("REDIS_URL") or None

    # DB
    SQLALCHEMY_DATABASE_URI = os.getenv("DATABASE_URL", "sqlite:///./dev.db")
    SQLALCHEMY_TRACK_MODIFICATIONS = False
    SQLALCHEMY_ECHO = env_bool("SQLALCHEMY_ECHO", False)

    # Flask & JSON
    JSON_SORT_KEYS = False
    PROPAGATE_EXCEPTIONS = False

    # Logging
    LOG_LEVEL = os.getenv("LOG_LEVEL", "INFO")

    # Flask built-ins
    DEBUG = False
    TESTING = False


class DevelopmentConfig(BaseConfig):
    """Configuration tailored for local development."""

    DEBUG = env_bool("FLASK_DEBUG", True)
    SQLALCHEMY_ECHO = env_bool("SQLALCHEMY_ECHO", False)


class TestingConfig(BaseConfig):
    """Configuration for automated test runs.

    Notes
    -----
    - Forces ``TESTING`` mode and disables debug logs.
    - Uses an in-memory SQLite database unless ``TEST_DATABASE_URL`` is set.
    - Never talks to Redis; per-subject locks stay in-process.
    """

    TESTING = True
    DEBUG = False
    SECRET_KEY = "testing-secret-key-with-enough-entropy"
    JWT_SECRET_KEY = SECRET_KEY
    SQLALCHEMY_DATABASE_URI = os.getenv("TEST_DATABASE_URL", "sqlite:///:memory:")
    REDIS_URL = None
    PROPAGATE_EXCEPTIONS = True


class ProductionConfig(BaseConfig):
    """Configuration defaults for production deployments."""

    DEBUG = False
    REQUIRE_SECRET_KEY = True
    SQLALCHEMY_ECHO = False
    PROPAGATE_EXCEPTIONS = False


# Map names -> classes (simple, explicit)
CONFIG_MAP: Mapping[str, type[BaseConfig]] = {
    "development": DevelopmentConfig,
    "testing": TestingConfig,
    "production": ProductionConfig,
}


def check_secrets(config: Mapping[str, object]) -> None:
    """Refuse to start with the placeholder signing key where a real one is required.

    Raises
    ------
    RuntimeError
        If ``REQUIRE_SECRET_KEY`` is set and ``SECRET_KEY`` or
        ``JWT_SECRET_KEY`` is empty or still the placeholder.
    """
    if not config.get("REQUIRE_SECRET_KEY"):
        return
    for key in ("SECRET_KEY", "JWT_SECRET_KEY"):
        value = config.get(key)
        if not value or value == DEFAULT_SECRET_KEY:
            raise RuntimeError(f"{key} must be set to a real secret in production.")


def get_config() -> type[BaseConfig]:
    """Return the configuration class inferred from ``APP_ENV``.

    Falls back to :class:`DevelopmentConfig` when ``APP_ENV`` is unset or
    unknown.
    """
    name = os.getenv(ENV_VAR, "development").strip().lower()
    return CONFIG_MAP.get(name, DevelopmentConfig)
