"""Explicit success/failure values for multi-step validation chains."""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum, auto
from typing import Generic, TypeVar

T = TypeVar("T")


class Rejection(Enum):
    """Every reason a token can be refused. Never shown to clients."""

    DECODE_FAILED = auto()
    WRONG_TOKEN_TYPE = auto()
    MISSING_REF_ID = auto()
    RECORD_NOT_FOUND = auto()
    RECORD_INACTIVE = auto()
    RECORD_EXPIRED = auto()
    MALFORMED_SUBJECT = auto()
    SUBJECT_TYPE_NOT_ALLOWED = auto()
    SUBJECT_MISMATCH = auto()
    SUBJECT_NOT_FOUND = auto()
    SUBJECT_DEACTIVATED = auto()


@dataclass(frozen=True, slots=True)
class Ok(Generic[T]):
    """Successful step carrying its value."""

    value: T


@dataclass(frozen=True, slots=True)
class Err:
    """Failed step carrying the rejection reason."""

    reason: Rejection


Result = Ok[T] | Err
