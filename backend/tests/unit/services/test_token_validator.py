"""Tests for TokenValidator (access and refresh validation chains)."""

from __future__ import annotations

from dataclasses import replace
from datetime import UTC, datetime, timedelta

import pytest
from flask_jwt_extended import create_access_token
from freezegun import freeze_time
from sessionkeeper.models.enums import RevocationReason, SubjectType
from sessionkeeper.models.refresh_token import RefreshToken
from sessionkeeper.services._shared.errors import UnauthorizedError
from sessionkeeper.services._shared.result import Err, Ok, Rejection
from sessionkeeper.services._shared.subject import SubjectRef
from sessionkeeper.services.sessions import AuthenticatedSubject
from sqlalchemy import event
from tests.factories.account import AdminFactory, UserFactory
from tests.factories.refresh_token import RefreshTokenFactory

T0 = datetime(2024, 9, 1, tzinfo=UTC)
ALL_TYPES = tuple(SubjectType)


@pytest.fixture()
def user(session):
    u = UserFactory()
    session.commit()
    return u


@pytest.fixture()
def subject(user) -> SubjectRef:
    return SubjectRef(type=SubjectType.USER, id=user.id)


def _rejection(result) -> Rejection:
    assert isinstance(result, Err), result
    return result.reason


def _access_for(services, sub: str, ref_id: int) -> str:
    """Sign an access token with an arbitrary ``sub`` claim."""
    claims = services.issuer.access_claims(
        SubjectRef(type=SubjectType.USER, id=1), ref_id, int(datetime.now(UTC).timestamp())
    )
    return services.codec.encode(replace(claims, sub=sub))


class TestAccessChain:
    def test_valid_token(self, services, subject):
        pair = services.issuer.issue(subject)

        result = services.validator.check_access(pair.access_token, ALL_TYPES)

        assert result == Ok(AuthenticatedSubject(subject=subject, ref_id=pair.ref_id))

    def test_garbage_fails_decode(self, services):
        assert _rejection(services.validator.check_access("nope", ALL_TYPES)) is (
            Rejection.DECODE_FAILED
        )

    def test_refresh_token_is_not_an_access_token(self, services, subject):
        pair = services.issuer.issue(subject)
        result = services.validator.check_access(pair.refresh_token, ALL_TYPES)
        assert _rejection(result) is Rejection.WRONG_TOKEN_TYPE

    def test_missing_ref_id(self, services, subject):
        token = create_access_token(identity=subject.sub)
        result = services.validator.check_access(token, ALL_TYPES)
        assert _rejection(result) is Rejection.MISSING_REF_ID

    def test_unknown_record(self, services, subject):
        token = _access_for(services, subject.sub, 987654)
        assert _rejection(services.validator.check_access(token, ALL_TYPES)) is (
            Rejection.RECORD_NOT_FOUND
        )

    def test_logged_out_session(self, services, subject):
        pair = services.issuer.issue(subject)
        services.revocation.logout(pair.ref_id)

        result = services.validator.check_access(pair.access_token, ALL_TYPES)
        assert _rejection(result) is Rejection.RECORD_INACTIVE

    def test_logged_out_session_is_rejected_without_writing(self, services, subject, connection):
        pair = services.issuer.issue(subject)
        services.revocation.logout(pair.ref_id)

        statements: list[str] = []

        def _record(conn, cursor, statement, parameters, context, executemany):
            statements.append(statement)

        event.listen(connection, "before_cursor_execute", _record)
        try:
            result = services.validator.check_access(pair.access_token, ALL_TYPES)
        finally:
            event.remove(connection, "before_cursor_execute", _record)

        assert _rejection(result) is Rejection.RECORD_INACTIVE
        assert not [s for s in statements if s.lstrip().upper().startswith("UPDATE")]

    def test_malformed_subject(self, services, user):
        record = RefreshTokenFactory(owner=user)
        token = _access_for(services, "ROOT-1", record.id)

        result = services.validator.check_access(token, ALL_TYPES)
        assert _rejection(result) is Rejection.MALFORMED_SUBJECT

    def test_subject_type_not_allowed(self, services, subject):
        pair = services.issuer.issue(subject)
        result = services.validator.check_access(pair.access_token, (SubjectType.ADMIN,))
        assert _rejection(result) is Rejection.SUBJECT_TYPE_NOT_ALLOWED

    def test_subject_must_own_record(self, services, user, session):
        other = UserFactory()
        session.commit()
        record = RefreshTokenFactory(owner=user)
        token = _access_for(services, f"USER-{other.id}", record.id)

        result = services.validator.check_access(token, ALL_TYPES)
        assert _rejection(result) is Rejection.SUBJECT_MISMATCH

    def test_same_id_other_subject_type_is_a_mismatch(self, services, user, session):
        admin = AdminFactory()
        session.commit()
        record = RefreshTokenFactory(owner=user)
        token = _access_for(services, f"ADMIN-{admin.id}", record.id)

        result = services.validator.check_access(token, ALL_TYPES)
        assert _rejection(result) is Rejection.SUBJECT_MISMATCH

    def test_subject_without_account(self, services):
        ghost = SubjectRef(type=SubjectType.STAFF, id=424242)
        pair = services.issuer.issue(ghost)

        result = services.validator.check_access(pair.access_token, ALL_TYPES)
        assert _rejection(result) is Rejection.SUBJECT_NOT_FOUND

    def test_deactivated_account(self, services, user, subject, session):
        pair = services.issuer.issue(subject)
        user.is_active = False
        session.commit()

        result = services.validator.check_access(pair.access_token, ALL_TYPES)
        assert _rejection(result) is Rejection.SUBJECT_DEACTIVATED


class TestRecordExpiry:
    def test_expired_record_is_deactivated_on_read(self, services, make_services, subject, session):
        short = make_services(refresh_ttl=timedelta(hours=1))
        with freeze_time(T0) as frozen:
            pair = services.issuer.issue(subject)
            frozen.tick(timedelta(hours=2))
            token = short.issuer.mint_access(subject, pair.ref_id)

            result = short.validator.check_access(token, ALL_TYPES)

        assert _rejection(result) is Rejection.RECORD_EXPIRED
        record = session.get(RefreshToken, pair.ref_id)
        assert record.is_active is False
        assert record.revoked_reason is RevocationReason.EXPIRED_ON_READ

    def test_revocation_takes_precedence_over_expiry(
        self, services, make_services, subject, session
    ):
        short = make_services(refresh_ttl=timedelta(hours=1))
        with freeze_time(T0) as frozen:
            pair = services.issuer.issue(subject)
            services.revocation.logout(pair.ref_id)
            frozen.tick(timedelta(hours=2))
            token = short.issuer.mint_access(subject, pair.ref_id)

            result = short.validator.check_access(token, ALL_TYPES)

        assert _rejection(result) is Rejection.RECORD_INACTIVE
        record = session.get(RefreshToken, pair.ref_id)
        assert record.revoked_reason is RevocationReason.LOGOUT

    def test_access_token_expiry_with_record_still_active(self, services, subject, session):
        with freeze_time(T0) as frozen:
            pair = services.issuer.issue(subject)
            frozen.tick(timedelta(minutes=29))
            assert isinstance(services.validator.check_access(pair.access_token, ALL_TYPES), Ok)

            frozen.tick(timedelta(minutes=2))
            result = services.validator.check_access(pair.access_token, ALL_TYPES)

        assert _rejection(result) is Rejection.DECODE_FAILED
        assert session.get(RefreshToken, pair.ref_id).is_active is True

    def test_refresh_path_revocation_takes_precedence_over_expiry(
        self, services, make_services, subject, session
    ):
        short = make_services(refresh_ttl=timedelta(hours=1))
        with freeze_time(T0) as frozen:
            pair = services.issuer.issue(subject)
            services.revocation.logout(pair.ref_id)
            frozen.tick(timedelta(hours=2))

            result = short.validator.check_refresh(pair.refresh_token)

        assert _rejection(result) is Rejection.RECORD_INACTIVE
        assert session.get(RefreshToken, pair.ref_id).revoked_reason is RevocationReason.LOGOUT

    def test_refresh_path_deactivates_expired_record(
        self, services, make_services, subject, session
    ):
        short = make_services(refresh_ttl=timedelta(hours=1))
        with freeze_time(T0) as frozen:
            pair = services.issuer.issue(subject)
            frozen.tick(timedelta(hours=2))

            result = short.validator.check_refresh(pair.refresh_token)

        assert _rejection(result) is Rejection.RECORD_EXPIRED
        record = session.get(RefreshToken, pair.ref_id)
        assert record.revoked_reason is RevocationReason.EXPIRED_ON_READ

    def test_record_valid_right_up_to_expiry(self, services, make_services, subject):
        short = make_services(refresh_ttl=timedelta(hours=1))
        with freeze_time(T0) as frozen:
            pair = services.issuer.issue(subject)
            frozen.tick(timedelta(hours=1))
            token = short.issuer.mint_access(subject, pair.ref_id)

            assert isinstance(short.validator.check_access(token, ALL_TYPES), Ok)


class TestRefreshChain:
    def test_mints_access_bound_to_same_record(self, services, subject):
        pair = services.issuer.issue(subject)

        result = services.validator.check_refresh(pair.refresh_token)

        assert isinstance(result, Ok)
        out = result.value
        assert out.ref_id == pair.ref_id
        claims = services.codec.decode(out.access_token)
        assert claims.ref_id == pair.ref_id
        assert claims.sub == subject.sub

    def test_refresh_token_is_not_rotated(self, services, subject):
        pair = services.issuer.issue(subject)
        assert isinstance(services.validator.check_refresh(pair.refresh_token), Ok)
        assert isinstance(services.validator.check_refresh(pair.refresh_token), Ok)

    def test_access_token_is_not_a_refresh_token(self, services, subject):
        pair = services.issuer.issue(subject)
        assert _rejection(services.validator.check_refresh(pair.access_token)) is (
            Rejection.WRONG_TOKEN_TYPE
        )

    def test_unstored_refresh_token(self, services, subject):
        token = services.codec.encode(
            services.issuer.refresh_claims(subject, int(datetime.now(UTC).timestamp()))
        )
        assert _rejection(services.validator.check_refresh(token)) is Rejection.RECORD_NOT_FOUND

    def test_revoked_session(self, services, subject):
        pair = services.issuer.issue(subject)
        services.revocation.logout_all(subject)
        assert _rejection(services.validator.check_refresh(pair.refresh_token)) is (
            Rejection.RECORD_INACTIVE
        )

    def test_deactivated_account(self, services, user, subject, session):
        pair = services.issuer.issue(subject)
        user.is_active = False
        session.commit()
        assert _rejection(services.validator.check_refresh(pair.refresh_token)) is (
            Rejection.SUBJECT_DEACTIVATED
        )


class TestRaisingEntryPoints:
    def test_validate_access_returns_identity(self, services, subject):
        pair = services.issuer.issue(subject)
        auth = services.validator.validate_access(pair.access_token, (SubjectType.USER,))
        assert auth.subject == subject
        assert auth.ref_id == pair.ref_id

    def test_rejections_are_opaque(self, services, subject, caplog):
        pair = services.issuer.issue(subject)
        services.revocation.logout(pair.ref_id)

        with caplog.at_level("INFO"), pytest.raises(UnauthorizedError) as err:
            services.validator.validate_access(pair.access_token, ALL_TYPES)

        assert str(err.value) == "Unauthorized"
        assert err.value.rejection is Rejection.RECORD_INACTIVE
        logged = [r for r in caplog.records if r.getMessage() == "token.rejected"]
        assert logged and logged[0].reason == "record_inactive"

    def test_validate_refresh(self, services, subject):
        pair = services.issuer.issue(subject)
        assert services.validator.validate_refresh(pair.refresh_token).ref_id == pair.ref_id
        with pytest.raises(UnauthorizedError):
            services.validator.validate_refresh("garbage")
