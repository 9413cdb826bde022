"""Convenience exports for application schemas."""

from __future__ import annotations

from .auth import (
    AccessTokenSchema,
    LoginSchema,
    RefreshSchema,
    RevokedCountSchema,
    SessionSchema,
    TokenPairSchema,
    WhoAmISchema,
)

__all__ = [
    "AccessTokenSchema",
    "LoginSchema",
    "RefreshSchema",
    "RevokedCountSchema",
    "SessionSchema",
    "TokenPairSchema",
    "WhoAmISchema",
]
