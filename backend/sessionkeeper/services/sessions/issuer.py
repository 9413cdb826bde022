# sessionkeeper/services/sessions/issuer.py
from __future__ import annotations

import logging

from sessionkeeper.services._shared.base import BaseService
from sessionkeeper.services._shared.ports import (
    ACCESS_TOKEN_TYPE,
    REFRESH_TOKEN_TYPE,
    SubjectLock,
    TokenClaims,
    TokenCodec,
)
from sessionkeeper.services._shared.subject import SubjectRef
from sessionkeeper.services.sessions.dto import TokenPairOut, TokenSettings
from sessionkeeper.services.sessions.limiter import SessionLimiter

log = logging.getLogger(__name__)


class TokenIssuer(BaseService):
    """
    Mint an access/refresh pair backed by a new refresh record.

    The whole sequence (limit, encode refresh, store record, encode access)
    runs in one read-write unit of work nested inside the subject's lock. The
    unit of work commits before the lock is released, and any failure rolls
    back the record, so a caller gets both tokens or nothing.
    """

    def __init__(
        self,
        *,
        codec: TokenCodec,
        settings: TokenSettings,
        lock: SubjectLock,
        limiter: SessionLimiter | None = None,
    ) -> None:
        super().__init__()
        self.codec = codec
        self.settings = settings
        self.lock = lock
        self.limiter = limiter or SessionLimiter(settings)

    def access_claims(self, subject: SubjectRef, ref_id: int, iat: int) -> TokenClaims:
        """Build the access claim set for ``subject`` bound to record ``ref_id``."""
        return TokenClaims(
            type=ACCESS_TOKEN_TYPE,
            sub=subject.sub,
            iat=iat,
            exp=iat + int(self.settings.access_ttl.total_seconds()),
            iss=self.settings.issuer,
            ref_id=ref_id,
        )

    def refresh_claims(self, subject: SubjectRef, iat: int) -> TokenClaims:
        return TokenClaims(
            type=REFRESH_TOKEN_TYPE,
            sub=subject.sub,
            iat=iat,
            exp=iat + int(self.settings.refresh_ttl.total_seconds()),
            iss=self.settings.issuer,
        )

    def mint_access(self, subject: SubjectRef, ref_id: int) -> str:
        """Encode a fresh access token for an existing record."""
        iat = int(self.now_utc().timestamp())
        return self.codec.encode(self.access_claims(subject, ref_id, iat))

    def issue(self, subject: SubjectRef) -> TokenPairOut:
        """
        Start a new session for ``subject``.

        :param subject: Authenticated principal.
        :type subject: SubjectRef
        :returns: Access and refresh tokens plus the record id.
        :rtype: TokenPairOut
        :raises MaxSignInExceededError: Under the ``reject`` policy at the cap.
        :raises SessionLockTimeoutError: If the subject's lock is contended.
        :raises EncodingError: If claims are malformed.
        """
        with self.lock.hold(subject), self.rw_uow() as uow:
            now = self.now_utc()
            iat = int(now.timestamp())

            evicted = self.limiter.enforce(uow.refresh_tokens, subject, now)

            refresh_token = self.codec.encode(self.refresh_claims(subject, iat))
            record = uow.refresh_tokens.create(subject, refresh_token, created_at=now)
            access_token = self.codec.encode(self.access_claims(subject, record.id, iat))
            ref_id = record.id

        log.info(
            "session.issued",
            extra={"subject": subject.sub, "ref_id": ref_id, "evicted": evicted},
        )
        return TokenPairOut(access_token=access_token, refresh_token=refresh_token, ref_id=ref_id)
