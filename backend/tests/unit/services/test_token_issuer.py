"""Tests for TokenIssuer (access/refresh pair minting)."""

from __future__ import annotations

import threading
from datetime import UTC, datetime

import pytest
from freezegun import freeze_time
from sessionkeeper.models.enums import RevocationReason, SubjectType
from sessionkeeper.models.refresh_token import RefreshToken
from sessionkeeper.services._shared.errors import (
    EncodingError,
    MaxSignInExceededError,
    SessionLockTimeoutError,
)
from sessionkeeper.services._shared.ports import TokenClaims
from sessionkeeper.services._shared.subject import SubjectRef
from sessionkeeper.services.sessions import SessionLimitPolicy, TokenPairOut
from tests.factories.account import UserFactory

SEPT_1_2024 = 1725148800


@pytest.fixture()
def subject(session) -> SubjectRef:
    user = UserFactory()
    session.commit()
    return SubjectRef(type=SubjectType.USER, id=user.id)


def _active(session, subject) -> list[RefreshToken]:
    return (
        session.query(RefreshToken)
        .filter_by(subject_type=subject.type, subject_id=subject.id, is_active=True)
        .order_by(RefreshToken.id)
        .all()
    )


class TestIssue:
    @freeze_time(datetime.fromtimestamp(SEPT_1_2024, tz=UTC))
    def test_claims_follow_configured_lifetimes(self, services, subject):
        pair = services.issuer.issue(subject)

        assert isinstance(pair, TokenPairOut)
        access = services.codec.decode(pair.access_token)
        refresh = services.codec.decode(pair.refresh_token)

        assert access.type == "access"
        assert access.sub == subject.sub
        assert access.iat == SEPT_1_2024
        assert access.exp == SEPT_1_2024 + 30 * 60
        assert access.iss == "sessionkeeper-tests"
        assert access.ref_id == pair.ref_id

        assert refresh.type == "refresh"
        assert refresh.sub == subject.sub
        assert refresh.exp == SEPT_1_2024 + 168 * 3600
        assert refresh.ref_id is None

    @freeze_time(datetime.fromtimestamp(SEPT_1_2024, tz=UTC))
    def test_user_45_access_expiry(self, services):
        claims = services.issuer.access_claims(
            SubjectRef(type=SubjectType.USER, id=45), 7, SEPT_1_2024
        )
        assert claims.sub == "USER-45"
        assert claims.exp == 1725150600
        assert services.codec.decode(services.codec.encode(claims)).exp == 1725150600

    def test_record_is_persisted_and_bound(self, services, subject, session):
        pair = services.issuer.issue(subject)

        record = session.get(RefreshToken, pair.ref_id)
        assert record is not None
        assert record.is_active is True
        assert record.token == pair.refresh_token
        assert record.subject_type is SubjectType.USER
        assert record.subject_id == subject.id

    def test_each_login_is_its_own_session(self, services, subject, session):
        first = services.issuer.issue(subject)
        second = services.issuer.issue(subject)

        assert first.ref_id != second.ref_id
        assert first.refresh_token != second.refresh_token
        assert len(_active(session, subject)) == 2


class TestSessionCap:
    def test_evicts_oldest_beyond_cap(self, capped_services, subject, session):
        first = capped_services.issuer.issue(subject)
        second = capped_services.issuer.issue(subject)
        third = capped_services.issuer.issue(subject)

        assert [r.id for r in _active(session, subject)] == [second.ref_id, third.ref_id]
        evicted = session.get(RefreshToken, first.ref_id)
        assert evicted.revoked_reason is RevocationReason.EVICTION

    def test_reject_policy_creates_nothing(self, make_services, subject, session):
        services = make_services(max_sessions=1, limit_policy=SessionLimitPolicy.REJECT)
        services.issuer.issue(subject)

        with pytest.raises(MaxSignInExceededError):
            services.issuer.issue(subject)

        assert len(_active(session, subject)) == 1
        assert session.query(RefreshToken).filter_by(subject_id=subject.id).count() == 1


class TestAtomicity:
    def test_failed_access_encoding_rolls_back_record(self, services, subject, session):
        class BrokenAccessCodec:
            def __init__(self, inner):
                self.inner = inner

            def encode(self, claims: TokenClaims) -> str:
                if claims.is_access:
                    raise EncodingError("boom")
                return self.inner.encode(claims)

            def decode(self, token):
                return self.inner.decode(token)

        services.issuer.codec = BrokenAccessCodec(services.codec)

        with pytest.raises(EncodingError):
            services.issuer.issue(subject)

        assert session.query(RefreshToken).filter_by(subject_id=subject.id).count() == 0

    def test_lock_timeout_surfaces_as_service_error(self, make_services, subject):
        services = make_services(lock_timeout=0.05)
        held = threading.Event()
        release = threading.Event()

        def holder():
            with services.lock.hold(subject):
                held.set()
                release.wait(2)

        t = threading.Thread(target=holder)
        t.start()
        held.wait(2)
        try:
            with pytest.raises(SessionLockTimeoutError):
                services.issuer.issue(subject)
        finally:
            release.set()
            t.join()
