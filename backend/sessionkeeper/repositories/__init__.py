"""Repository package exposing persistence-layer access for all domain models."""

from __future__ import annotations

from sessionkeeper.repositories.account import AccountRepository
from sessionkeeper.repositories.base import BaseRepository
from sessionkeeper.repositories.refresh_token import RefreshTokenRepository

__all__ = [
    "BaseRepository",
    "AccountRepository",
    "RefreshTokenRepository",
]
