# sessionkeeper/services/auth/dto.py
from __future__ import annotations

from dataclasses import dataclass

from sessionkeeper.models.enums import SubjectType

# ---------------------------- Input DTOs ---------------------------------- #


@dataclass(frozen=True, slots=True)
class LoginIn:
    """
    Input DTO for login.

    :param subject_type: Kind of account signing in; never inferred.
    :type subject_type: SubjectType
    :param email: Account email.
    :type email: str
    :param password: Raw password (to be verified).
    :type password: str
    """

    subject_type: SubjectType
    email: str
    password: str


@dataclass(frozen=True, slots=True)
class RefreshIn:
    """
    Input DTO for token refresh.

    :param refresh_token: Encoded refresh JWT.
    :type refresh_token: str
    """

    refresh_token: str


# --------------------------- Output DTOs ---------------------------------- #


@dataclass(frozen=True, slots=True)
class WhoAmIOut:
    """Identity of the caller behind an access token."""

    subject_type: SubjectType
    subject_id: int
    email: str
    ref_id: int
