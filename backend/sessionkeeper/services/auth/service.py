# sessionkeeper/services/auth/service.py
from __future__ import annotations

from sessionkeeper.services._shared.base import BaseService
from sessionkeeper.services._shared.errors import NotFoundError, UnauthorizedError
from sessionkeeper.services._shared.subject import SubjectRef
from sessionkeeper.services.auth.dto import LoginIn, RefreshIn, WhoAmIOut
from sessionkeeper.services.sessions import (
    AccessTokenOut,
    AuthenticatedSubject,
    SessionServices,
    SessionView,
    TokenPairOut,
)


class AuthService(BaseService):
    """
    Authentication use cases (login / refresh / logout / device management).

    Credential checks stay here; everything about tokens and session records
    is delegated to the lifecycle services.
    """

    def __init__(self, *, sessions: SessionServices) -> None:
        """
        Initialize the service with the app's lifecycle services.

        :param sessions: Issuer, validator and revocation manager.
        """
        super().__init__()
        self.sessions = sessions

    # ------------------------------------------------------------------ #
    # Login / refresh
    # ------------------------------------------------------------------ #

    def login(self, dto: LoginIn) -> TokenPairOut:
        """
        Authenticate credentials and start a new session.

        :param dto: Login input.
        :returns: Access/refresh token pair.
        :raises UnauthorizedError: If the credentials are wrong or the account
            is deactivated.
        :raises MaxSignInExceededError: When the session cap rejects the login.
        """
        with self.ro_uow() as uow:
            account = uow.accounts.authenticate(dto.subject_type, dto.email, dto.password)
            if account is None or not account.is_active:
                raise UnauthorizedError()
            subject = SubjectRef(type=dto.subject_type, id=account.id)

        return self.sessions.issuer.issue(subject)

    def refresh(self, dto: RefreshIn) -> AccessTokenOut:
        """
        Exchange a refresh token for a new access token.

        The refresh token is not rotated; it stays valid until it expires or
        its session is revoked.
        """
        return self.sessions.validator.validate_refresh(dto.refresh_token)

    # ------------------------------------------------------------------ #
    # Logout
    # ------------------------------------------------------------------ #

    def logout(self, auth: AuthenticatedSubject) -> bool:
        """Close the session behind the caller's access token."""
        return self.sessions.revocation.logout(auth.ref_id)

    def logout_everywhere(self, auth: AuthenticatedSubject) -> int:
        """Close every session of the caller, including the current one."""
        return self.sessions.revocation.logout_all(auth.subject)

    # ------------------------------------------------------------------ #
    # Identity / devices
    # ------------------------------------------------------------------ #

    def whoami(self, auth: AuthenticatedSubject) -> WhoAmIOut:
        with self.ro_uow() as uow:
            account = uow.accounts.resolve(auth.subject)
            if account is None:
                raise NotFoundError(auth.subject.type.value, auth.subject.id)
            return WhoAmIOut(
                subject_type=auth.subject.type,
                subject_id=account.id,
                email=account.email,
                ref_id=auth.ref_id,
            )

    def list_sessions(self, auth: AuthenticatedSubject) -> list[SessionView]:
        return self.sessions.revocation.list_sessions(auth.subject, current_ref_id=auth.ref_id)

    def revoke_session(self, auth: AuthenticatedSubject, record_id: int) -> bool:
        """
        Close one of the caller's sessions, e.g. a lost device.

        :raises NotFoundError: If the session is not the caller's.
        """
        return self.sessions.revocation.revoke_session(auth.subject, record_id)
