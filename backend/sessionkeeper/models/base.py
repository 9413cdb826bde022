"""Reusable SQLAlchemy mixins shared by domain models (typed 2.0)."""

from __future__ import annotations

from datetime import UTC, datetime

from sqlalchemy import DateTime, Integer, func
from sqlalchemy.orm import Mapped, mapped_column


def utcnow() -> datetime:
    """Return the current time as a timezone-aware UTC datetime."""
    return datetime.now(UTC)


def as_utc(value: datetime) -> datetime:
    """Label naive datetimes as UTC.

    SQLite drops ``tzinfo`` on round-trip; every timestamp written by this
    package is UTC, so re-attaching the zone is lossless.

    :param value: Datetime read back from the database.
    :type value: datetime
    :returns: Timezone-aware datetime.
    :rtype: datetime
    """
    if value.tzinfo is None:
        return value.replace(tzinfo=UTC)
    return value


class TimestampMixin:
    """Provide ``created_at`` and ``updated_at`` timestamp columns.

    Attributes
    ----------
    created_at:
        Timezone-aware timestamp assigned in Python on insert.
    updated_at:
        Timezone-aware timestamp refreshed by the database on update.
    """

    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        nullable=False,
        default=utcnow,
    )
    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        nullable=False,
        server_default=func.now(),
        onupdate=func.now(),
    )


class PKMixin:
    """Expose an integer surrogate primary key column named ``id``."""

    id: Mapped[int] = mapped_column(Integer, primary_key=True)


class ReprMixin:
    """Provide a concise ``__repr__`` including the class name and id."""

    def __repr__(self) -> str:
        cls = self.__class__.__name__
        key = getattr(self, "id", None)
        return f"<{cls} id={key}>"
