# sessionkeeper/services/sessions/dto.py
from __future__ import annotations

from collections.abc import Mapping
from dataclasses import dataclass
from datetime import datetime, timedelta
from enum import Enum
from typing import Any

from sessionkeeper.services._shared.subject import SubjectRef

# ------------------------------ Settings ---------------------------------- #


class SessionLimitPolicy(str, Enum):
    """What happens when a login would exceed the per-subject session cap."""

    EVICT = "evict"
    REJECT = "reject"


@dataclass(frozen=True, slots=True)
class TokenSettings:
    """
    Frozen token lifecycle settings.

    :param issuer: ``iss`` claim written into every token.
    :type issuer: str
    :param access_ttl: Access-token lifetime.
    :type access_ttl: timedelta
    :param refresh_ttl: Refresh-token lifetime; also bounds the backing record.
    :type refresh_ttl: timedelta
    :param max_sessions: Active refresh tokens allowed per subject, ``None``
        for no cap.
    :type max_sessions: int | None
    :param limit_policy: Applied when ``max_sessions`` would be exceeded.
    :type limit_policy: SessionLimitPolicy
    :param lock_timeout: Seconds to wait for the per-subject issuance lock.
    :type lock_timeout: float
    """

    issuer: str
    access_ttl: timedelta
    refresh_ttl: timedelta
    max_sessions: int | None = None
    limit_policy: SessionLimitPolicy = SessionLimitPolicy.EVICT
    lock_timeout: float = 5.0

    def __post_init__(self) -> None:
        if not self.issuer:
            raise ValueError("issuer must be a non-empty string")
        if self.access_ttl <= timedelta(0) or self.refresh_ttl <= timedelta(0):
            raise ValueError("token lifetimes must be positive")
        if self.max_sessions is not None and self.max_sessions < 1:
            raise ValueError("max_sessions must be >= 1 when set")
        if self.lock_timeout <= 0:
            raise ValueError("lock_timeout must be positive")

    @classmethod
    def from_config(cls, config: Mapping[str, Any]) -> TokenSettings:
        """
        Build settings from a Flask config mapping.

        :param config: ``app.config`` or any mapping with the same keys.
        :returns: Validated settings.
        :raises ValueError: If a value is out of range or the policy is unknown.
        """
        policy_raw = str(config.get("SESSION_LIMIT_POLICY") or "evict").strip().lower()
        try:
            policy = SessionLimitPolicy(policy_raw)
        except ValueError:
            raise ValueError(f"Unknown SESSION_LIMIT_POLICY {policy_raw!r}") from None

        max_sessions = config.get("MAX_SESSIONS_PER_SUBJECT")
        return cls(
            issuer=str(config.get("JWT_ISSUER") or ""),
            access_ttl=timedelta(minutes=int(config["ACCESS_TOKEN_EXPIRE_MIN"])),
            refresh_ttl=timedelta(hours=int(config["REFRESH_TOKEN_EXPIRE_HOUR"])),
            max_sessions=int(max_sessions) if max_sessions is not None else None,
            limit_policy=policy,
            lock_timeout=float(config.get("SESSION_LOCK_TIMEOUT_SEC", 5.0)),
        )


# --------------------------- Output DTOs ---------------------------------- #


@dataclass(frozen=True, slots=True)
class TokenPairOut:
    """
    Output of a successful issuance.

    :param access_token: Encoded access JWT.
    :type access_token: str
    :param refresh_token: Encoded refresh JWT.
    :type refresh_token: str
    :param ref_id: Id of the refresh record both tokens are bound to.
    :type ref_id: int
    """

    access_token: str
    refresh_token: str
    ref_id: int


@dataclass(frozen=True, slots=True)
class AccessTokenOut:
    """Fresh access token minted from a refresh token."""

    access_token: str
    ref_id: int


@dataclass(frozen=True, slots=True)
class AuthenticatedSubject:
    """
    Result of a successful access-token validation.

    :param subject: The resolved principal.
    :type subject: SubjectRef
    :param ref_id: Session (refresh record) the token belongs to.
    :type ref_id: int
    """

    subject: SubjectRef
    ref_id: int


@dataclass(frozen=True, slots=True)
class SessionView:
    """Read model of one active session, for device management."""

    id: int
    created_at: datetime
    expires_at: datetime
    current: bool = False
