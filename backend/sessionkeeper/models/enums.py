"""Enumerations shared by the account and refresh-token models."""

from __future__ import annotations

from enum import Enum


class SubjectType(str, Enum):
    """Closed set of principal kinds a session can be bound to."""

    USER = "USER"
    ADMIN = "ADMIN"
    STAFF = "STAFF"


class TokenStatus(str, Enum):
    """Two-state lifecycle of a refresh-token record."""

    ACTIVE = "ACTIVE"
    INACTIVE = "INACTIVE"


class RevocationReason(str, Enum):
    """Why a refresh-token record left the ``ACTIVE`` state (audit trail)."""

    LOGOUT = "LOGOUT"
    FORCED_LOGOUT = "FORCED_LOGOUT"
    EVICTION = "EVICTION"
    EXPIRED_ON_READ = "EXPIRED_ON_READ"
