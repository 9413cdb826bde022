"""Refresh-token record: the durable, revocable half of a session."""

from __future__ import annotations

from datetime import datetime, timedelta

from sqlalchemy import Boolean, DateTime, Index, Integer, String, true
from sqlalchemy import Enum as SAEnum
from sqlalchemy.orm import Mapped, mapped_column, validates

from sessionkeeper.core.extensions import db

from .base import PKMixin, ReprMixin, as_utc, utcnow
from .enums import RevocationReason, SubjectType, TokenStatus


class RefreshToken(PKMixin, ReprMixin, db.Model):
    """
    One login session for one subject.

    A single table serves every subject type; ``(subject_type, subject_id)``
    identifies the owner. Expiry is never stored: it is ``created_at`` plus the
    configured refresh TTL.

    Fields
    ------
    subject_type : SubjectType
        Kind of principal owning the session.
    subject_id : int
        Principal id within ``subject_type``.
    token : str
        Serialized refresh token, kept for exact-match lookup.
    is_active : bool
        Monotonic: may go ``True -> False`` only.
    revoked_reason : RevocationReason | None
        Set together with ``is_active = False``.
    revoked_at : datetime | None
        When the record was deactivated.
    created_at : datetime
        Session start (UTC).
    """

    __tablename__ = "refresh_tokens"

    subject_type: Mapped[SubjectType] = mapped_column(
        SAEnum(SubjectType, name="enum_subject_type", native_enum=False, length=16),
        nullable=False,
    )
    subject_id: Mapped[int] = mapped_column(Integer, nullable=False)
    token: Mapped[str] = mapped_column(String(1024), nullable=False)
    is_active: Mapped[bool] = mapped_column(
        Boolean, nullable=False, default=True, server_default=true()
    )
    revoked_reason: Mapped[RevocationReason | None] = mapped_column(
        SAEnum(RevocationReason, name="enum_revocation_reason", native_enum=False, length=32),
        nullable=True,
    )
    revoked_at: Mapped[datetime | None] = mapped_column(DateTime(timezone=True), nullable=True)
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), nullable=False, default=utcnow
    )

    __table_args__ = (
        Index("ix_refresh_tokens_token", "token", unique=True),
        Index("ix_refresh_tokens_subject_active", "subject_type", "subject_id", "is_active"),
    )

    # -------------------- Lifecycle --------------------
    @property
    def status(self) -> TokenStatus:
        return TokenStatus.ACTIVE if self.is_active else TokenStatus.INACTIVE

    def expires_at(self, ttl: timedelta) -> datetime:
        """
        Compute the absolute expiry for a refresh TTL.

        :param ttl: Configured refresh-token lifetime.
        :type ttl: timedelta
        :returns: ``created_at + ttl`` (UTC).
        :rtype: datetime
        """
        return as_utc(self.created_at) + ttl

    def is_expired(self, now: datetime, ttl: timedelta) -> bool:
        """Return ``True`` once ``now`` is strictly past the computed expiry."""
        return now > self.expires_at(ttl)

    @validates("is_active")
    def _forbid_reactivation(self, key: str, value: bool) -> bool:
        """
        Keep ``is_active`` monotonic; a new session needs a new record.

        :raises ValueError: On an attempted ``False -> True`` transition.
        """
        if value and self.is_active is False:
            raise ValueError("Refresh token records cannot be reactivated.")
        return value
