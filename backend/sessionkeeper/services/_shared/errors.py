"""
Domain-level exceptions used within the service layer.

These exceptions are **framework-agnostic** and never import Flask, HTTP or
SQLAlchemy. They are the only failure kinds allowed to cross the
issuer/validator boundary; raw decode or storage errors are wrapped first.

The translation to HTTP responses (RFC 7807) is handled by
``sessionkeeper/core/errors.py`` via :func:`translate_service_error`.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from sessionkeeper.services._shared.result import Rejection
    from sessionkeeper.services._shared.subject import SubjectRef


# --------------------------------------------------------------------------- #
# Base types
# --------------------------------------------------------------------------- #


class ServiceError(Exception):
    """
    Base class for all service-level errors.

    Notes
    -----
    - These are *not* HTTP errors.
    - The API layer translates them to ``APIError`` subclasses.
    """

    pass


# --------------------------------------------------------------------------- #
# Specific domain-level errors
# --------------------------------------------------------------------------- #


@dataclass(slots=True)
class NotFoundError(ServiceError):
    """
    Raised when an entity is not found in the repository.

    :param entity: Entity name (e.g., "RefreshToken").
    :type entity: str
    :param key: Identifier or search key.
    :type key: str | int
    """

    entity: str
    key: str | int

    def __str__(self) -> str:  # pragma: no cover
        return f"{self.entity} not found: {self.key}"


class InvalidTokenError(ServiceError):
    """Signature or structure of a token could not be verified."""


class UnauthorizedError(ServiceError):
    """
    A token or credential was refused.

    The public message is always the same so callers cannot learn which check
    failed; :attr:`rejection` keeps the precise cause for logs and tests.
    """

    def __init__(self, rejection: Rejection | None = None) -> None:
        super().__init__("Unauthorized")
        self.rejection = rejection


class EncodingError(ServiceError):
    """Malformed claims were handed to the codec (integration bug)."""


class MaxSignInExceededError(ServiceError):
    """A login was refused because the subject already holds the maximum sessions."""

    def __init__(self, subject: SubjectRef, max_sessions: int) -> None:
        super().__init__(
            f"Maximum of {max_sessions} active sessions reached for {subject.sub}."
        )
        self.subject = subject
        self.max_sessions = max_sessions


class SessionLockTimeoutError(ServiceError):
    """The per-subject issuance lock could not be acquired in time."""
