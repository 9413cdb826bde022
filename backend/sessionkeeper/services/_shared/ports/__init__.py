"""
sessionkeeper.services._shared.ports
====================================

Collection of *ports* (hexagonal interfaces) that define the contracts for
the token lifecycle infrastructure.

Modules
-------
- :mod:`token_codec`:
    Defines :class:`~.TokenCodec` and :class:`~.TokenClaims`, the signing and
    verification boundary.

- :mod:`refresh_token_store`:
    Defines :class:`~.RefreshTokenStore`, durable revocable session records.

- :mod:`subject_lock`:
    Defines :class:`~.SubjectLock`, per-subject serialization for issuance.

Concrete adapters live under ``sessionkeeper.infra`` and
``sessionkeeper.repositories``.
"""

from __future__ import annotations

from .refresh_token_store import RefreshTokenStore
from .subject_lock import SubjectLock
from .token_codec import (
    ACCESS_TOKEN_TYPE,
    REFRESH_TOKEN_TYPE,
    TOKEN_TYPES,
    TokenClaims,
    TokenCodec,
)

__all__ = [
    "ACCESS_TOKEN_TYPE",
    "REFRESH_TOKEN_TYPE",
    "TOKEN_TYPES",
    "RefreshTokenStore",
    "SubjectLock",
    "TokenClaims",
    "TokenCodec",
]
