"""Refresh-token repository: the SQLAlchemy implementation of the token store."""

from __future__ import annotations

from collections.abc import Sequence
from datetime import datetime
from typing import Any, cast

from sqlalchemy import ColumnElement, and_, false, func, select, update

from sessionkeeper.models.base import utcnow
from sessionkeeper.models.enums import RevocationReason
from sessionkeeper.models.refresh_token import RefreshToken
from sessionkeeper.repositories.base import BaseRepository
from sessionkeeper.services._shared.ports import RefreshTokenStore
from sessionkeeper.services._shared.subject import SubjectRef


class RefreshTokenRepository(BaseRepository[RefreshToken], RefreshTokenStore):
    """Persistence-only repository for :class:`RefreshToken`.

    Every deactivation is one ``UPDATE ... WHERE is_active`` statement, so the
    database arbitrates concurrent revocations: exactly one caller observes
    the transition and the rest see a no-op.
    """

    model = RefreshToken

    _STATE_FIELDS = ("is_active", "revoked_reason", "revoked_at")

    # ---------------------------- Helpers ----------------------------

    @staticmethod
    def _owned_by(subject: SubjectRef) -> ColumnElement[bool]:
        return and_(
            RefreshToken.subject_type == subject.type,
            RefreshToken.subject_id == subject.id,
        )

    def _deactivate_where(self, *criteria: ColumnElement[bool], reason: RevocationReason) -> int:
        """Run the conditional ``UPDATE`` and return the number of rows switched off."""
        stmt = (
            update(RefreshToken)
            .where(RefreshToken.is_active.is_(True), *criteria)
            .values(is_active=False, revoked_reason=reason, revoked_at=utcnow())
            .execution_options(synchronize_session=False)
        )
        result: Any = self.session.execute(stmt)
        self._expire_cached()
        return int(result.rowcount or 0)

    def _expire_cached(self) -> None:
        """Force already-loaded records to re-read their lifecycle columns."""
        for obj in list(self.session.identity_map.values()):
            if isinstance(obj, RefreshToken):
                self.session.expire(obj, list(self._STATE_FIELDS))

    # ---------------------------- Store API ----------------------------

    def create(
        self, subject: SubjectRef, token: str, *, created_at: datetime | None = None
    ) -> RefreshToken:
        record = RefreshToken(
            subject_type=subject.type,
            subject_id=subject.id,
            token=token,
            is_active=True,
            created_at=created_at or utcnow(),
        )
        return self.add(record)

    def get_by_id(self, record_id: int) -> RefreshToken | None:
        return self.get(record_id)

    def get_by_value(self, token: str) -> RefreshToken | None:
        """Fetch the record holding exactly ``token``."""
        stmt = select(RefreshToken).where(RefreshToken.token == token)
        return cast(RefreshToken | None, self.session.execute(stmt).scalars().first())

    def lock_subject(self, subject: SubjectRef) -> None:
        """Take a transaction-scoped lock on ``subject``'s sessions.

        PostgreSQL gets an advisory lock keyed by the subject. SQLite has no
        row locks, so a no-op ``UPDATE`` claims the database write lock
        instead. Other dialects lock the subject's active rows.
        """
        dialect = self.session.get_bind().dialect.name
        if dialect == "postgresql":
            self.session.execute(select(func.pg_advisory_xact_lock(func.hashtext(subject.sub))))
        elif dialect == "sqlite":
            self.session.execute(
                update(RefreshToken)
                .where(false())
                .values(is_active=False)
                .execution_options(synchronize_session=False)
            )
        else:
            stmt = (
                select(RefreshToken.id)
                .where(self._owned_by(subject), RefreshToken.is_active.is_(True))
                .with_for_update()
            )
            self.session.execute(stmt).all()

    def count_active(self, subject: SubjectRef) -> int:
        stmt = (
            select(func.count())
            .select_from(RefreshToken)
            .where(self._owned_by(subject), RefreshToken.is_active.is_(True))
        )
        return int(self.session.execute(stmt).scalar_one())

    def list_active(self, subject: SubjectRef) -> Sequence[RefreshToken]:
        stmt = (
            select(RefreshToken)
            .where(self._owned_by(subject), RefreshToken.is_active.is_(True))
            .order_by(RefreshToken.created_at.asc(), RefreshToken.id.asc())
        )
        return list(self.session.execute(stmt).scalars().all())

    def deactivate(self, record_id: int, reason: RevocationReason) -> bool:
        return self._deactivate_where(RefreshToken.id == record_id, reason=reason) == 1

    def deactivate_all_active(self, subject: SubjectRef, reason: RevocationReason) -> int:
        return self._deactivate_where(self._owned_by(subject), reason=reason)

    def deactivate_oldest_active(
        self, subject: SubjectRef, count: int, reason: RevocationReason
    ) -> list[int]:
        """Deactivate the ``count`` oldest active records (FIFO).

        :returns: Ids that this call actually switched off.
        """
        if count <= 0:
            return []
        ids_stmt = (
            select(RefreshToken.id)
            .where(self._owned_by(subject), RefreshToken.is_active.is_(True))
            .order_by(RefreshToken.created_at.asc(), RefreshToken.id.asc())
            .limit(count)
        )
        candidates = list(self.session.execute(ids_stmt).scalars().all())
        evicted = [
            record_id
            for record_id in candidates
            if self._deactivate_where(RefreshToken.id == record_id, reason=reason)
        ]
        return evicted

    def deactivate_expired(
        self,
        created_before: datetime,
        reason: RevocationReason,
        *,
        subject: SubjectRef | None = None,
    ) -> int:
        criteria = [RefreshToken.created_at < created_before]
        if subject is not None:
            criteria.append(self._owned_by(subject))
        return self._deactivate_where(*criteria, reason=reason)
