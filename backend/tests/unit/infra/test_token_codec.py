"""Tests for FlaskJWTTokenCodec (signing and verification boundary)."""

from __future__ import annotations

import time

import pytest
from sessionkeeper.infra.jwt.flask_jwt_token_codec import FlaskJWTTokenCodec
from sessionkeeper.services._shared.errors import EncodingError, InvalidTokenError
from sessionkeeper.services._shared.ports import (
    ACCESS_TOKEN_TYPE,
    REFRESH_TOKEN_TYPE,
    TokenClaims,
)

ISSUER = "sessionkeeper-tests"


@pytest.fixture()
def codec(app) -> FlaskJWTTokenCodec:
    return FlaskJWTTokenCodec()


def _claims(**overrides) -> TokenClaims:
    now = int(time.time())
    values = {
        "type": ACCESS_TOKEN_TYPE,
        "sub": "USER-45",
        "iat": now,
        "exp": now + 1800,
        "iss": ISSUER,
        "ref_id": 7,
    }
    values.update(overrides)
    return TokenClaims(**values)


class TestEncodeDecode:
    def test_access_claims_survive_signing(self, codec):
        claims = _claims()
        decoded = codec.decode(codec.encode(claims))

        assert decoded.type == ACCESS_TOKEN_TYPE
        assert decoded.sub == "USER-45"
        assert decoded.iat == claims.iat
        assert decoded.exp == claims.exp
        assert decoded.iss == ISSUER
        assert decoded.ref_id == 7
        assert decoded.jti

    def test_refresh_tokens_have_no_ref_id(self, codec):
        decoded = codec.decode(codec.encode(_claims(type=REFRESH_TOKEN_TYPE, ref_id=None)))
        assert decoded.is_refresh
        assert decoded.ref_id is None

    def test_identical_claims_yield_distinct_tokens(self, codec):
        claims = _claims(type=REFRESH_TOKEN_TYPE, ref_id=None)
        assert codec.encode(claims) != codec.encode(claims)


class TestEncodingErrors:
    @pytest.mark.parametrize(
        "overrides",
        [
            {"sub": ""},
            {"iss": ""},
            {"type": "id"},
            {"ref_id": None},
            {"type": REFRESH_TOKEN_TYPE, "ref_id": 3},
        ],
    )
    def test_rejects_malformed_claims(self, codec, overrides):
        with pytest.raises(EncodingError):
            codec.encode(_claims(**overrides))

    def test_rejects_exp_not_after_iat(self, codec):
        now = int(time.time())
        with pytest.raises(EncodingError):
            codec.encode(_claims(iat=now, exp=now))


class TestDecodeErrors:
    def test_tampered_signature(self, codec):
        token = codec.encode(_claims())
        head, payload, signature = token.split(".")
        flipped = ("A" if signature[0] != "A" else "B") + signature[1:]
        with pytest.raises(InvalidTokenError):
            codec.decode(f"{head}.{payload}.{flipped}")

    def test_expired_token(self, codec):
        now = int(time.time())
        token = codec.encode(_claims(iat=now - 7200, exp=now - 3600))
        with pytest.raises(InvalidTokenError):
            codec.decode(token)

    def test_wrong_issuer(self, codec):
        token = codec.encode(_claims(iss="someone-else"))
        with pytest.raises(InvalidTokenError):
            codec.decode(token)

    @pytest.mark.parametrize("garbage", ["", "not-a-jwt", "a.b.c"])
    def test_garbage(self, codec, garbage):
        with pytest.raises(InvalidTokenError):
            codec.decode(garbage)
