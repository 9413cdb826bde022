"""Pytest fixtures configuring an isolated transactional database layer.

Each test runs inside a SAVEPOINT-backed transaction against an in-memory
SQLite database so data changes never leak between cases.
"""

from __future__ import annotations

import os
import pytest
from sessionkeeper.core.config import TestingConfig
from sessionkeeper.core.extensions import db as _db  # Flask-SQLAlchemy instance
from sessionkeeper.factory import create_app  # application factory under test
from sessionkeeper.infra.locks.local_subject_lock import LocalSubjectLock
from sessionkeeper.services.sessions import (
    SessionLimitPolicy,
    TokenSettings,
    build_services,
)
from sqlalchemy import event
from sqlalchemy.orm import scoped_session, sessionmaker


class TestConfig(TestingConfig):
    """Testing configuration for creating the Flask app.

    Notes
    -----
    - Uses an in-memory SQLite database for speed.
    - No session cap, so tests opt into one explicitly.
    - Avoids hitting external services (no Redis).
    """

    SQLALCHEMY_DATABASE_URI = "sqlite:///:memory:"
    SQLALCHEMY_TRACK_MODIFICATIONS = False
    JWT_ISSUER = "sessionkeeper-tests"
    JWT_ENCODE_ISSUER = JWT_ISSUER
    JWT_DECODE_ISSUER = JWT_ISSUER
    ACCESS_TOKEN_EXPIRE_MIN = 30
    REFRESH_TOKEN_EXPIRE_HOUR = 168
    MAX_SESSIONS_PER_SUBJECT = None
    SESSION_LIMIT_POLICY = "evict"
    LOG_LEVEL = "WARNING"


@pytest.fixture(scope="session")
def app():
    """Create a Flask application configured for testing.

    Returns
    -------
    flask.Flask
        Application instance with :class:`TestConfig` applied and logging
        noise reduced.
    """
    # Ensure env-based config does not leak into tests
    os.environ.pop("DATABASE_URL", None)
    os.environ.pop("REDIS_URL", None)
    app = create_app(TestConfig, instance_relative_config=False)
    app.logger.setLevel("WARNING")
    return app


@pytest.fixture(scope="session")
def db(app):
    """Create database tables once per test session.

    Yields
    ------
    flask_sqlalchemy.SQLAlchemy
        Database extension bound to the testing application.
    """
    with app.app_context():
        _db.create_all()
        yield _db
        _db.session.remove()
        _db.drop_all()


@pytest.fixture(scope="session")
def connection(db):
    """Keep a dedicated DBAPI connection open for the whole session.

    Yields
    ------
    sqlalchemy.engine.Connection
        Connection reused by nested transactions in each test.
    """
    conn = db.engine.connect()
    try:
        yield conn
    finally:
        conn.close()


@pytest.fixture(scope="function")
def session(db, connection):
    """Provide a SQLAlchemy session wrapped in a nested transaction.

    Yields
    ------
    sqlalchemy.orm.scoping.scoped_session
        Scoped session bound to the shared connection; automatically rolled
        back after each test.

    Notes
    -----
    The fixture begins a top-level transaction, starts a SAVEPOINT per test,
    and reinstalls the SAVEPOINT whenever SQLAlchemy ends one, so the Unit of
    Work can ``commit()`` freely.
    """
    top_trans = connection.begin()

    SessionFactory = sessionmaker(bind=connection, future=True, autoflush=False)
    scoped = scoped_session(SessionFactory)

    nested = connection.begin_nested()

    @event.listens_for(scoped(), "after_transaction_end")
    def _restart_savepoint(sess, trans):  # pragma: no cover
        if trans.nested and not trans._parent.nested:
            nonlocal nested
            nested = connection.begin_nested()

    original_session = db.session
    db.session.remove()
    db.session = scoped

    try:
        yield scoped
    finally:
        scoped.remove()
        db.session = original_session
        top_trans.rollback()


@pytest.fixture(scope="session")
def faker():
    """Provide a :class:`faker.Faker` instance seeded for deterministic tests."""
    from faker import Faker

    fk = Faker()
    Faker.seed(1337)
    return fk


# -- Lifecycle services -------------------------------------------------------
@pytest.fixture
def make_services(app):
    """Build lifecycle services with overridden settings.

    Usage: ``make_services(max_sessions=2, limit_policy=SessionLimitPolicy.REJECT)``.
    """

    def _make(**overrides):
        base = TokenSettings.from_config(app.config)
        values = {
            "issuer": base.issuer,
            "access_ttl": base.access_ttl,
            "refresh_ttl": base.refresh_ttl,
            "max_sessions": base.max_sessions,
            "limit_policy": base.limit_policy,
            "lock_timeout": base.lock_timeout,
        }
        values.update(overrides)
        settings = TokenSettings(**values)
        return build_services(settings, lock=LocalSubjectLock(timeout=settings.lock_timeout))

    return _make


@pytest.fixture
def services(make_services):
    """Lifecycle services with the test app's default settings."""
    return make_services()


@pytest.fixture
def capped_services(make_services):
    """Services capping subjects at two sessions, evicting the oldest."""
    return make_services(max_sessions=2, limit_policy=SessionLimitPolicy.EVICT)


@pytest.fixture
def client(app, session):
    """Flask test client sharing the transactional session."""
    return app.test_client()


# -- Hook up Factory Boy to pytest SQLAlchemy session --------------------------
@pytest.fixture(autouse=True)
def _factories_session(session):
    """Wire Factory Boy's session helper to the transactional session fixture."""
    from tests.factories import SQLAlchemySession

    SQLAlchemySession.set(session)
    yield


# -- HTTP helpers --------------------------------------------------------------
@pytest.fixture()
def user_creds(session) -> dict:
    """A committed user account, as plain values (requests close the session)."""
    from tests.factories.account import UserFactory

    user = UserFactory(email="alice@example.com", password="alice-pw")
    session.commit()
    return {"id": user.id, "email": "alice@example.com", "password": "alice-pw"}


@pytest.fixture()
def admin_creds(session) -> dict:
    from tests.factories.account import AdminFactory

    admin = AdminFactory(email="root@example.com", password="root-pw")
    session.commit()
    return {"id": admin.id, "email": "root@example.com", "password": "root-pw"}


@pytest.fixture()
def login(client):
    """POST credentials to ``/auth/<subject_type>/login`` and return the response."""

    def _login(creds: dict, subject_type: str = "user"):
        return client.post(
            f"/api/v1/auth/{subject_type}/login",
            json={"email": creds["email"], "password": creds["password"]},
        )

    return _login
