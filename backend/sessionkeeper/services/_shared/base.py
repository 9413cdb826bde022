# sessionkeeper/services/_shared/base.py
from __future__ import annotations

from datetime import datetime

from sessionkeeper.core import errors as api_errors
from sessionkeeper.models.base import utcnow
from sessionkeeper.services._shared.errors import (
    EncodingError,
    InvalidTokenError,
    MaxSignInExceededError,
    NotFoundError,
    ServiceError,
    SessionLockTimeoutError,
    UnauthorizedError,
)
from sessionkeeper.uow.sqlalchemy_uow import (
    SQLAlchemyReadOnlyUnitOfWork,
    SQLAlchemyUnitOfWork,
)


def translate_service_error(exc: Exception) -> Exception:
    """
    Map domain/service-level errors to API-level (HTTP) errors.

    Token and credential failures all collapse into the same opaque 401 so
    clients cannot tell which check refused them.

    :param exc: Exception raised within the service layer.
    :type exc: Exception
    :returns: Translated exception ready to be re-raised.
    :rtype: Exception
    """
    if isinstance(exc, (UnauthorizedError, InvalidTokenError)):
        return api_errors.Unauthorized()

    if isinstance(exc, MaxSignInExceededError):
        return api_errors.MaxSignInExceeded(max_sessions=exc.max_sessions)

    if isinstance(exc, NotFoundError):
        return api_errors.NotFound(str(exc))

    if isinstance(exc, SessionLockTimeoutError):
        return api_errors.ServiceUnavailable("Session store is busy, retry shortly")

    if isinstance(exc, EncodingError):
        return api_errors.APIError(
            message="Token could not be issued",
            status_code=500,
            code="internal_server_error",
        )

    # Any other ServiceError subclass → 400 Bad Request
    if isinstance(exc, ServiceError):
        return api_errors.APIError(
            message=str(exc),
            status_code=400,
            code="bad_request",
        )

    return exc


class BaseService:
    """
    Base class for application services.

    Responsibilities
    ----------------
    * Provide helpers to run read-only and read-write units of work.
    * Provide the service clock (:meth:`now_utc`).

    Notes
    -----
    - Services must never touch the global session; always use a Unit of Work.
    """

    DEFAULT_READ_ISOLATION = "READ COMMITTED"

    # -------------------------- UoW helpers ---------------------------------

    def rw_uow(self) -> SQLAlchemyUnitOfWork:
        """
        Create a read-write Unit of Work.

        :returns: Read-write UoW instance.
        :rtype: SQLAlchemyUnitOfWork
        """
        return SQLAlchemyUnitOfWork()

    def ro_uow(
        self, *, isolation: str | None = None, enforce_db_readonly: bool = True
    ) -> SQLAlchemyReadOnlyUnitOfWork:
        """
        Create a read-only Unit of Work.

        :param isolation: Transaction isolation level (e.g. "READ COMMITTED").
        :type isolation: str | None
        :param enforce_db_readonly: Apply `SET TRANSACTION READ ONLY` when supported.
        :type enforce_db_readonly: bool
        :returns: Read-only UoW instance.
        :rtype: SQLAlchemyReadOnlyUnitOfWork
        """
        return SQLAlchemyReadOnlyUnitOfWork(
            isolation_level=isolation or self.DEFAULT_READ_ISOLATION,
            enforce_db_readonly=enforce_db_readonly,
        )

    # ------------------------------ Clock -----------------------------------

    def now_utc(self) -> datetime:
        """Return the current aware UTC time used for all lifecycle decisions."""
        return utcnow()
