"""Token lifecycle engine: issuance, validation, revocation and session capping.

:func:`init_app` builds one set of services per Flask app from its config and
stores it under ``app.extensions["sessions"]``; request handlers and CLI
commands fetch it with :func:`get_session_services`.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import cast

from flask import Flask, current_app

from sessionkeeper.core.extensions import get_redis
from sessionkeeper.infra.jwt.flask_jwt_token_codec import FlaskJWTTokenCodec
from sessionkeeper.infra.locks.local_subject_lock import LocalSubjectLock
from sessionkeeper.infra.redis.redis_subject_lock import RedisSubjectLock
from sessionkeeper.services._shared.ports import SubjectLock, TokenCodec

from .dto import (
    AccessTokenOut,
    AuthenticatedSubject,
    SessionLimitPolicy,
    SessionView,
    TokenPairOut,
    TokenSettings,
)
from .issuer import TokenIssuer
from .limiter import SessionLimiter
from .revocation import RevocationManager
from .validator import TokenValidator

EXTENSION_KEY = "sessions"


@dataclass(frozen=True, slots=True)
class SessionServices:
    """The wired lifecycle services sharing one codec, lock and settings."""

    settings: TokenSettings
    codec: TokenCodec
    lock: SubjectLock
    issuer: TokenIssuer
    validator: TokenValidator
    revocation: RevocationManager


def build_services(
    settings: TokenSettings, *, codec: TokenCodec | None = None, lock: SubjectLock | None = None
) -> SessionServices:
    """Assemble the lifecycle services from explicit collaborators."""
    codec = codec or FlaskJWTTokenCodec()
    lock = lock or LocalSubjectLock(timeout=settings.lock_timeout)
    issuer = TokenIssuer(codec=codec, settings=settings, lock=lock)
    return SessionServices(
        settings=settings,
        codec=codec,
        lock=lock,
        issuer=issuer,
        validator=TokenValidator(codec=codec, settings=settings, issuer=issuer),
        revocation=RevocationManager(settings=settings),
    )


def init_app(app: Flask) -> None:
    """Build the services from ``app.config`` and register them on the app.

    A Redis-backed lock is used when a Redis client was configured, so several
    worker processes serialize issuance for the same subject.
    """
    settings = TokenSettings.from_config(app.config)
    r = get_redis()
    lock: SubjectLock
    if r is not None:
        lock = RedisSubjectLock(r, timeout=settings.lock_timeout)
    else:
        lock = LocalSubjectLock(timeout=settings.lock_timeout)
    app.extensions[EXTENSION_KEY] = build_services(settings, lock=lock)


def get_session_services() -> SessionServices:
    """Return the services registered on the current app."""
    return cast(SessionServices, current_app.extensions[EXTENSION_KEY])


__all__ = [
    "AccessTokenOut",
    "AuthenticatedSubject",
    "RevocationManager",
    "SessionLimitPolicy",
    "SessionLimiter",
    "SessionServices",
    "SessionView",
    "TokenIssuer",
    "TokenPairOut",
    "TokenSettings",
    "TokenValidator",
    "build_services",
    "get_session_services",
    "init_app",
]
