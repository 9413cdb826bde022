# sessionkeeper/services/sessions/validator.py
from __future__ import annotations

import logging
from collections.abc import Iterable
from datetime import datetime
from typing import TYPE_CHECKING, TypeVar

from sessionkeeper.models.enums import RevocationReason, SubjectType
from sessionkeeper.services._shared.base import BaseService
from sessionkeeper.services._shared.errors import InvalidTokenError, UnauthorizedError
from sessionkeeper.services._shared.ports import (
    ACCESS_TOKEN_TYPE,
    REFRESH_TOKEN_TYPE,
    TokenClaims,
    TokenCodec,
)
from sessionkeeper.services._shared.result import Err, Ok, Rejection, Result
from sessionkeeper.services._shared.subject import SubjectRef
from sessionkeeper.services.sessions.dto import (
    AccessTokenOut,
    AuthenticatedSubject,
    TokenSettings,
)
from sessionkeeper.services.sessions.issuer import TokenIssuer

if TYPE_CHECKING:
    from sessionkeeper.models.refresh_token import RefreshToken
    from sessionkeeper.uow.sqlalchemy_uow import SQLAlchemyUnitOfWork

log = logging.getLogger(__name__)

T = TypeVar("T")


class TokenValidator(BaseService):
    """
    Verify access and refresh tokens against the durable session state.

    Each step returns :class:`Ok` or :class:`Err` and the chain stops at the
    first ``Err``. The ``check_*`` methods expose that result directly; the
    ``validate_*`` methods raise :class:`UnauthorizedError` instead.

    Records observed inactive or past their refresh TTL are deactivated on
    sight. That write is committed even when validation fails.
    """

    def __init__(self, *, codec: TokenCodec, settings: TokenSettings, issuer: TokenIssuer) -> None:
        super().__init__()
        self.codec = codec
        self.settings = settings
        self.issuer = issuer

    # ------------------------------------------------------------------ #
    # Steps
    # ------------------------------------------------------------------ #

    def _decode(self, token: str, expected_type: str) -> Result[TokenClaims]:
        try:
            claims = self.codec.decode(token)
        except InvalidTokenError:
            return Err(Rejection.DECODE_FAILED)
        if claims.type != expected_type:
            return Err(Rejection.WRONG_TOKEN_TYPE)
        return Ok(claims)

    def _check_record(
        self, uow: SQLAlchemyUnitOfWork, record: RefreshToken | None, now: datetime
    ) -> Result[RefreshToken]:
        if record is None:
            return Err(Rejection.RECORD_NOT_FOUND)
        if not record.is_active:
            return Err(Rejection.RECORD_INACTIVE)
        if record.is_expired(now, self.settings.refresh_ttl):
            uow.refresh_tokens.deactivate(record.id, RevocationReason.EXPIRED_ON_READ)
            return Err(Rejection.RECORD_EXPIRED)
        return Ok(record)

    @staticmethod
    def _check_subject(
        claims: TokenClaims,
        record: RefreshToken,
        allowed: frozenset[SubjectType] | None = None,
    ) -> Result[SubjectRef]:
        try:
            subject = SubjectRef.parse(claims.sub)
        except ValueError:
            return Err(Rejection.MALFORMED_SUBJECT)
        if allowed is not None and subject.type not in allowed:
            return Err(Rejection.SUBJECT_TYPE_NOT_ALLOWED)
        if subject.type != record.subject_type or subject.id != record.subject_id:
            return Err(Rejection.SUBJECT_MISMATCH)
        return Ok(subject)

    @staticmethod
    def _check_account(uow: SQLAlchemyUnitOfWork, subject: SubjectRef) -> Result[SubjectRef]:
        account = uow.accounts.resolve(subject)
        if account is None:
            return Err(Rejection.SUBJECT_NOT_FOUND)
        if not account.is_active:
            return Err(Rejection.SUBJECT_DEACTIVATED)
        return Ok(subject)

    # ------------------------------------------------------------------ #
    # Chains
    # ------------------------------------------------------------------ #

    def check_access(
        self, token: str, expected_types: Iterable[SubjectType]
    ) -> Result[AuthenticatedSubject]:
        """
        Run the access-token chain and return its result.

        :param token: Encoded access token.
        :param expected_types: Subject types accepted by the calling endpoint.
        :returns: ``Ok(AuthenticatedSubject)`` or ``Err(Rejection)``.
        """
        allowed = frozenset(SubjectType(t) for t in expected_types)
        decoded = self._decode(token, ACCESS_TOKEN_TYPE)
        if isinstance(decoded, Err):
            return decoded
        claims = decoded.value
        if claims.ref_id is None:
            return Err(Rejection.MISSING_REF_ID)

        with self.rw_uow() as uow:
            now = self.now_utc()
            checked = self._check_record(uow, uow.refresh_tokens.get_by_id(claims.ref_id), now)
            if isinstance(checked, Err):
                return checked
            record = checked.value

            subject = self._check_subject(claims, record, allowed)
            if isinstance(subject, Err):
                return subject

            account = self._check_account(uow, subject.value)
            if isinstance(account, Err):
                return account

            return Ok(AuthenticatedSubject(subject=account.value, ref_id=record.id))

    def check_refresh(self, token: str) -> Result[AccessTokenOut]:
        """
        Run the refresh-token chain and mint an access token on success.

        The refresh token itself is left untouched; the new access token is
        bound to the same record.
        """
        decoded = self._decode(token, REFRESH_TOKEN_TYPE)
        if isinstance(decoded, Err):
            return decoded
        claims = decoded.value

        with self.rw_uow() as uow:
            now = self.now_utc()
            checked = self._check_record(uow, uow.refresh_tokens.get_by_value(token), now)
            if isinstance(checked, Err):
                return checked
            record = checked.value

            subject = self._check_subject(claims, record)
            if isinstance(subject, Err):
                return subject

            account = self._check_account(uow, subject.value)
            if isinstance(account, Err):
                return account

            ref_id = record.id
            access_token = self.issuer.mint_access(account.value, ref_id)
            return Ok(AccessTokenOut(access_token=access_token, ref_id=ref_id))

    # ------------------------------------------------------------------ #
    # Raising entry points
    # ------------------------------------------------------------------ #

    def validate_access(
        self, token: str, expected_types: Iterable[SubjectType]
    ) -> AuthenticatedSubject:
        """
        Authenticate a request from its access token.

        :raises UnauthorizedError: On any failed check; the message is opaque.
        """
        return self._unwrap(self.check_access(token, expected_types), "access")

    def validate_refresh(self, token: str) -> AccessTokenOut:
        """
        Exchange a refresh token for a new access token.

        :raises UnauthorizedError: On any failed check; the message is opaque.
        """
        return self._unwrap(self.check_refresh(token), "refresh")

    @staticmethod
    def _unwrap(result: Result[T], token_type: str) -> T:
        if isinstance(result, Err):
            log.info(
                "token.rejected",
                extra={"reason": result.reason.name.lower(), "token_type": token_type},
            )
            raise UnauthorizedError(result.reason)
        return result.value
