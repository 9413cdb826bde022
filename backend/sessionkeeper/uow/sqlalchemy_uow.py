"""
SQLAlchemy implementation of UnitOfWork for Flask.
"""

from __future__ import annotations

from contextlib import suppress

from flask import current_app
from sqlalchemy import event, text
from sqlalchemy.engine import Connection
from sqlalchemy.exc import InvalidRequestError, SQLAlchemyError
from sqlalchemy.orm import Session, SessionTransaction

from sessionkeeper.core.extensions import db
from sessionkeeper.repositories import AccountRepository, RefreshTokenRepository
from sessionkeeper.uow.base import UnitOfWork


class SQLAlchemyRepositoryContainer:
    """Provide repository instances that share a SQLAlchemy session."""

    def __init__(self, *, session: Session) -> None:
        self.session = session
        self.accounts = AccountRepository(session=self.session)
        self.refresh_tokens = RefreshTokenRepository(session=self.session)


class SQLAlchemyUnitOfWork(SQLAlchemyRepositoryContainer, UnitOfWork):
    """
    SQLAlchemy-backed UoW using the Flask-scoped session.

    The same session is shared across all repositories for a consistent transaction.
    """

    def __init__(self) -> None:
        """Initialise the Unit of Work with a shared SQLAlchemy session.

        All repositories receive the same session instance so that they operate
        within the identical transactional context.
        """
        super().__init__(session=db.session)

    def __enter__(self) -> SQLAlchemyUnitOfWork:
        # No-op: the session is lazily started on the first statement.
        return self

    def __exit__(self, exc_type, exc, tb) -> None:
        if exc_type is None:
            try:
                self.commit()
            except Exception:
                self.rollback()
                raise
        else:
            self.rollback()

    def commit(self) -> None:
        self.session.commit()

    def rollback(self) -> None:
        self.session.rollback()


class SQLAlchemyReadOnlyUnitOfWork(SQLAlchemyRepositoryContainer, UnitOfWork):
    """
    Read-only Unit of Work backed by the Flask-scoped SQLAlchemy session.

    Used for listing sessions and other pure reads. Deactivate-on-read makes
    token validation a write path, so validators never run under this UoW.

    This UoW:
    - Optionally sets the transaction isolation level (PostgreSQL/MySQL only).
    - Applies database-level READ ONLY when enabled and supported.
    - Installs portable write-guards and always rolls back on exit.
    - Disallows ``commit()``.

    Parameters
    ----------
    isolation_level:
        Optional transaction isolation level hint, e.g. ``"READ COMMITTED"``.
        If ``None``, the connection's default is used.
    enforce_db_readonly:
        If ``True`` (default), applies ``SET TRANSACTION READ ONLY`` when supported.

    Notes
    -----
    *SQLite*: neither directive is supported; write-guards still prevent writes.
    """

    _WRITE_PREFIXES = (
        "insert",
        "update",
        "delete",
        "merge",
        "alter",
        "drop",
        "truncate",
        "create",
        "replace",
        "grant",
        "revoke",
    )
    _TXN_DIALECTS = ("postgresql", "mysql", "mariadb")

    def __init__(
        self,
        *,
        isolation_level: str | None = "READ COMMITTED",
        enforce_db_readonly: bool = True,
    ) -> None:
        super().__init__(session=db.session)
        self.isolation_level = isolation_level
        self.enforce_db_readonly = enforce_db_readonly

        self._conn: Connection | None = None
        self._txn_ctx: SessionTransaction | None = None
        self._listeners_installed = False

    # ----------------------------- Context Manager -----------------------------

    def __enter__(self) -> SQLAlchemyReadOnlyUnitOfWork:
        """Enter a transactional scope that enforces read protections when possible.

        The unit of work first tries to own a fresh transaction so it can issue
        ``SET TRANSACTION`` directives. If a transaction is already running on
        the session (``InvalidRequestError``), it attaches to that scope: the
        guards still block writes but no directives are issued.
        """
        self._txn_ctx = None
        self._conn = None

        try:
            self._txn_ctx = self.session.begin()
        except InvalidRequestError:
            current_app.logger.debug("Read-only UoW attached to an existing transaction.")

        self._conn = self.session.connection()
        dialect = self._conn.dialect.name

        self._install_listeners()

        if self._txn_ctx is not None and dialect in self._TXN_DIALECTS:
            try:
                if self.isolation_level:
                    iso = self.isolation_level.upper().strip()
                    self.session.execute(text(f"SET TRANSACTION ISOLATION LEVEL {iso}"))
                if self.enforce_db_readonly:
                    self.session.execute(text("SET TRANSACTION READ ONLY"))
            except SQLAlchemyError as exc:
                current_app.logger.warning(
                    "SET TRANSACTION directives failed (%s). Falling back to guards-only.", exc
                )

        return self

    def __exit__(self, exc_type, exc, tb) -> None:
        """
        Always remove guards. Roll back only if we own the transaction.
        """
        try:
            if self._txn_ctx is not None:
                try:
                    self._txn_ctx.rollback()
                finally:
                    self._txn_ctx = None
        finally:
            self._remove_listeners()
            self._conn = None

    # ----------------------------- Public API ---------------------------------

    def commit(self) -> None:
        """
        Disallow commit in read-only Unit of Work.

        :raises RuntimeError: always, to prevent accidental writes.
        """
        raise RuntimeError("Read-only UnitOfWork does not allow commit().")

    def rollback(self) -> None:
        """Rollback the current transaction if active."""
        self.session.rollback()

    # ----------------------------- Guards & Listeners --------------------------

    def _install_listeners(self) -> None:
        """Install ORM/db-level listeners to prevent any write attempt."""
        if self._listeners_installed:
            return

        def _before_flush(session, flush_context, instances):
            if session.new or session.dirty or session.deleted:
                raise RuntimeError(
                    "Read-only UnitOfWork: ORM flush blocked (new/dirty/deleted objects present)."
                )

        event.listen(self.session, "before_flush", _before_flush)

        def _before_cursor_execute(conn, cursor, statement, parameters, context, executemany):
            first_token = statement.lstrip().split(None, 1)[0].lower() if statement else ""
            if first_token.startswith(self._WRITE_PREFIXES):
                raise RuntimeError(
                    f"Read-only UnitOfWork: SQL statement blocked: {first_token.upper()}"
                )

        target = self._conn if self._conn is not None else self.session.get_bind()
        event.listen(target, "before_cursor_execute", _before_cursor_execute)

        self._ro__before_flush = _before_flush
        self._ro__before_cursor_execute = _before_cursor_execute
        self._listeners_installed = True

    def _remove_listeners(self) -> None:
        """Detach previously installed listeners."""
        if not self._listeners_installed:
            return

        # The scoped session may already be gone at teardown.
        with suppress(InvalidRequestError):
            event.remove(self.session, "before_flush", self._ro__before_flush)

        with suppress(InvalidRequestError):
            target = self._conn if self._conn is not None else self.session.get_bind()
            event.remove(target, "before_cursor_execute", self._ro__before_cursor_execute)

        self._listeners_installed = False
