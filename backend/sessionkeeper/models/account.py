"""Account models: the principals a session can be issued for."""

from __future__ import annotations

from typing import Any

from sqlalchemy import Boolean, String, UniqueConstraint, true
from sqlalchemy.orm import Mapped, declared_attr, mapped_column, validates
from werkzeug.security import check_password_hash, generate_password_hash

from sessionkeeper.core.extensions import db

from .base import PKMixin, ReprMixin, TimestampMixin
from .enums import SubjectType


class AccountMixin(PKMixin, ReprMixin, TimestampMixin):
    """
    Columns and password API shared by every subject type.

    Each subject type lives in its own table; ids are only unique within a type,
    which is why sessions always carry the ``(subject_type, id)`` pair.

    Fields
    ------
    email : str
        Login email. Stored normalized (lowercase, trimmed).
    password_hash : str
        Hashed password (write-only setter via ``password``).
    is_active : bool
        ``False`` flags the account as deactivated; its tokens stop validating.
    """

    email: Mapped[str] = mapped_column(String(254), nullable=False)
    password_hash: Mapped[str] = mapped_column(String(254), nullable=False)
    is_active: Mapped[bool] = mapped_column(
        Boolean, nullable=False, default=True, server_default=true()
    )

    @declared_attr.directive
    def __table_args__(cls):  # noqa: N805
        return (UniqueConstraint("email", name=f"uq_{cls.__tablename__}_email"),)

    # -------------------- Password API --------------------
    @property
    def password(self) -> Any:  # pragma: no cover - explicit write-only contract
        """
        Disallow reading passwords.

        :raises AttributeError: Always, to ensure password is write-only.
        """
        raise AttributeError("Password is write-only.")

    @password.setter
    def password(self, raw: str) -> None:
        if not isinstance(raw, str) or not raw:
            raise ValueError("Password must be a non-empty string.")
        self.password_hash = generate_password_hash(raw)

    def verify_password(self, raw: str) -> bool:
        """
        Verify a password against the stored hash.

        :param raw: Plain text password candidate.
        :type raw: str
        :returns: ``True`` if it matches; otherwise ``False``.
        :rtype: bool
        """
        if not self.password_hash:
            return False
        return bool(check_password_hash(self.password_hash, raw))

    # -------------------- Validators --------------------
    @validates("email")
    def _normalize_email(self, key: str, value: str) -> str:
        """
        Normalize and validate email.

        :raises ValueError: If email is missing or malformed.
        """
        if not value or not isinstance(value, str):
            raise ValueError("Email is required.")
        v = value.strip().lower()
        # Minimal sanity check; full validation happens at API layer.
        if "@" not in v or "." not in v.split("@")[-1]:
            raise ValueError("Email format looks invalid.")
        return v


class User(AccountMixin, db.Model):
    """End-user account (``USER`` subjects)."""

    __tablename__ = "users"
    subject_type = SubjectType.USER


class Admin(AccountMixin, db.Model):
    """Back-office administrator (``ADMIN`` subjects)."""

    __tablename__ = "admins"
    subject_type = SubjectType.ADMIN


class Staff(AccountMixin, db.Model):
    """Staff operator (``STAFF`` subjects)."""

    __tablename__ = "staff"
    subject_type = SubjectType.STAFF


ACCOUNT_MODELS: dict[SubjectType, type[AccountMixin]] = {
    SubjectType.USER: User,
    SubjectType.ADMIN: Admin,
    SubjectType.STAFF: Staff,
}
