# sessionkeeper/services/sessions/limiter.py
from __future__ import annotations

import logging
from datetime import datetime

from sessionkeeper.models.enums import RevocationReason
from sessionkeeper.services._shared.errors import MaxSignInExceededError
from sessionkeeper.services._shared.ports import RefreshTokenStore
from sessionkeeper.services._shared.subject import SubjectRef
from sessionkeeper.services.sessions.dto import SessionLimitPolicy, TokenSettings

log = logging.getLogger(__name__)


class SessionLimiter:
    """
    Cap concurrently active refresh tokens per subject.

    Must be called inside the issuer's transaction, right before the new record
    is created: the count it reads has to still hold when the insert commits.
    :meth:`RefreshTokenStore.lock_subject` keeps that true across processes.
    """

    def __init__(self, settings: TokenSettings) -> None:
        self.settings = settings

    @property
    def enabled(self) -> bool:
        return self.settings.max_sessions is not None

    def enforce(self, store: RefreshTokenStore, subject: SubjectRef, now: datetime) -> list[int]:
        """
        Make room for one more session.

        Records already past their refresh TTL are closed first so they never
        count against the cap.

        :param store: Store bound to the issuer's unit of work.
        :param subject: Subject about to receive a new session.
        :param now: Issuance time.
        :returns: Ids of records evicted to make room (empty when none).
        :raises MaxSignInExceededError: Under the ``reject`` policy when the
            subject is already at the cap.
        """
        max_sessions = self.settings.max_sessions
        if max_sessions is None:
            return []

        store.lock_subject(subject)
        store.deactivate_expired(
            now - self.settings.refresh_ttl,
            RevocationReason.EXPIRED_ON_READ,
            subject=subject,
        )

        active = store.count_active(subject)
        overflow = active + 1 - max_sessions
        if overflow <= 0:
            return []

        if self.settings.limit_policy is SessionLimitPolicy.REJECT:
            log.info(
                "session.rejected",
                extra={"subject": subject.sub, "reason": "max_sign_in_exceeded"},
            )
            raise MaxSignInExceededError(subject, max_sessions)

        evicted = store.deactivate_oldest_active(subject, overflow, RevocationReason.EVICTION)
        log.info(
            "session.evicted",
            extra={
                "subject": subject.sub,
                "evicted": evicted,
                "reason": RevocationReason.EVICTION.value,
            },
        )
        return evicted
