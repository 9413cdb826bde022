# sessionkeeper/services/sessions/revocation.py
from __future__ import annotations

import logging
from datetime import datetime

from sessionkeeper.models.base import as_utc
from sessionkeeper.models.enums import RevocationReason
from sessionkeeper.services._shared.base import BaseService
from sessionkeeper.services._shared.errors import NotFoundError
from sessionkeeper.services._shared.subject import SubjectRef
from sessionkeeper.services.sessions.dto import SessionView, TokenSettings

log = logging.getLogger(__name__)


class RevocationManager(BaseService):
    """
    Server-side session invalidation.

    Every operation is a thin wrapper over the store's conditional
    deactivation, so repeating any of them is a harmless no-op.
    """

    def __init__(self, *, settings: TokenSettings) -> None:
        super().__init__()
        self.settings = settings

    def logout(self, record_id: int, reason: RevocationReason = RevocationReason.LOGOUT) -> bool:
        """
        Close one session.

        :param record_id: Refresh record to deactivate.
        :returns: ``True`` if this call closed it, ``False`` if it was already
            closed or never existed.
        """
        with self.rw_uow() as uow:
            changed = uow.refresh_tokens.deactivate(record_id, reason)
        if changed:
            log.info("session.revoked", extra={"ref_id": record_id, "reason": reason.value})
        return changed

    def logout_all(
        self, subject: SubjectRef, reason: RevocationReason = RevocationReason.FORCED_LOGOUT
    ) -> int:
        """
        Close every active session of ``subject`` (forced logout on all devices).

        Works without any token of the subject, so administrators can call it.

        :returns: Number of sessions closed.
        """
        with self.rw_uow() as uow:
            count = uow.refresh_tokens.deactivate_all_active(subject, reason)
        log.info(
            "session.revoked",
            extra={"subject": subject.sub, "reason": reason.value, "count": count},
        )
        return count

    def revoke_session(self, subject: SubjectRef, record_id: int) -> bool:
        """
        Close one of the subject's own sessions.

        :raises NotFoundError: If the record does not exist or belongs to
            another subject.
        """
        with self.rw_uow() as uow:
            record = uow.refresh_tokens.get_by_id(record_id)
            if (
                record is None
                or record.subject_type != subject.type
                or record.subject_id != subject.id
            ):
                raise NotFoundError("RefreshToken", record_id)
            changed = uow.refresh_tokens.deactivate(record_id, RevocationReason.LOGOUT)
        if changed:
            log.info(
                "session.revoked",
                extra={
                    "subject": subject.sub,
                    "ref_id": record_id,
                    "reason": RevocationReason.LOGOUT.value,
                },
            )
        return changed

    def list_sessions(
        self, subject: SubjectRef, current_ref_id: int | None = None
    ) -> list[SessionView]:
        """Active, unexpired sessions of ``subject``, oldest first."""
        now = self.now_utc()
        ttl = self.settings.refresh_ttl
        with self.ro_uow() as uow:
            return [
                SessionView(
                    id=record.id,
                    created_at=as_utc(record.created_at),
                    expires_at=record.expires_at(ttl),
                    current=record.id == current_ref_id,
                )
                for record in uow.refresh_tokens.list_active(subject)
                if not record.is_expired(now, ttl)
            ]

    def purge_expired(self, now: datetime | None = None) -> int:
        """
        Deactivate every active record past its refresh TTL.

        Validation already closes expired records lazily; this sweep only keeps
        the table tidy.

        :returns: Number of records closed.
        """
        cutoff = (now or self.now_utc()) - self.settings.refresh_ttl
        with self.rw_uow() as uow:
            count = uow.refresh_tokens.deactivate_expired(cutoff, RevocationReason.EXPIRED_ON_READ)
        log.info(
            "session.purged",
            extra={"count": count, "reason": RevocationReason.EXPIRED_ON_READ.value},
        )
        return count
