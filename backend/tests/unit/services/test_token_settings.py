"""Tests for TokenSettings construction and validation."""

from __future__ import annotations

from datetime import timedelta

import pytest
from sessionkeeper.services.sessions import SessionLimitPolicy, TokenSettings

BASE_CONFIG = {
    "JWT_ISSUER": "issuer",
    "ACCESS_TOKEN_EXPIRE_MIN": 30,
    "REFRESH_TOKEN_EXPIRE_HOUR": 168,
}


def test_from_config_defaults():
    settings = TokenSettings.from_config(BASE_CONFIG)

    assert settings.issuer == "issuer"
    assert settings.access_ttl == timedelta(minutes=30)
    assert settings.refresh_ttl == timedelta(hours=168)
    assert settings.max_sessions is None
    assert settings.limit_policy is SessionLimitPolicy.EVICT


def test_from_config_session_cap():
    settings = TokenSettings.from_config(
        {**BASE_CONFIG, "MAX_SESSIONS_PER_SUBJECT": "3", "SESSION_LIMIT_POLICY": " Reject "}
    )
    assert settings.max_sessions == 3
    assert settings.limit_policy is SessionLimitPolicy.REJECT


def test_from_config_unknown_policy():
    with pytest.raises(ValueError, match="SESSION_LIMIT_POLICY"):
        TokenSettings.from_config({**BASE_CONFIG, "SESSION_LIMIT_POLICY": "queue"})


@pytest.mark.parametrize(
    "overrides",
    [
        {"issuer": ""},
        {"access_ttl": timedelta(0)},
        {"refresh_ttl": timedelta(seconds=-1)},
        {"max_sessions": 0},
        {"lock_timeout": 0},
    ],
)
def test_rejects_out_of_range_values(overrides):
    values = {
        "issuer": "issuer",
        "access_ttl": timedelta(minutes=30),
        "refresh_ttl": timedelta(hours=1),
    }
    values.update(overrides)
    with pytest.raises(ValueError):
        TokenSettings(**values)
