# sessionkeeper/infra/jwt/flask_jwt_token_codec.py
from __future__ import annotations

from dataclasses import dataclass
from typing import Any, cast

import jwt as pyjwt
from flask_jwt_extended.exceptions import JWTExtendedException

from sessionkeeper.services._shared.errors import EncodingError, InvalidTokenError
from sessionkeeper.services._shared.ports import (
    ACCESS_TOKEN_TYPE,
    REFRESH_TOKEN_TYPE,
    TOKEN_TYPES,
    TokenClaims,
    TokenCodec,
)

_REQUIRED = ("type", "sub", "iat", "exp", "iss")


@dataclass(slots=True)
class FlaskJWTTokenCodec(TokenCodec):
    """
    Adapter for Flask-JWT-Extended.

    The library supplies signing keys, algorithm and issuer verification from
    the app config (``JWT_SECRET_KEY``, ``JWT_ALGORITHM``, ``JWT_DECODE_ISSUER``).
    Our claim set is passed as overrides so ``iat``/``exp``/``iss`` are exactly
    the values the issuer computed.

    .. note::
       Requires an active Flask app context.
    """

    def _check(self, claims: TokenClaims) -> None:
        for name in _REQUIRED:
            value = getattr(claims, name)
            if value is None or value == "":
                raise EncodingError(f"Missing required claim: {name}")
        if claims.type not in TOKEN_TYPES:
            raise EncodingError(f"Unknown token type: {claims.type!r}")
        if claims.is_access and claims.ref_id is None:
            raise EncodingError("Access tokens require a ref_id claim.")
        if claims.is_refresh and claims.ref_id is not None:
            raise EncodingError("Refresh tokens must not carry a ref_id claim.")
        if claims.exp <= claims.iat:
            raise EncodingError("exp must be later than iat.")

    def encode(self, claims: TokenClaims) -> str:
        from flask_jwt_extended import create_access_token, create_refresh_token

        self._check(claims)
        overrides: dict[str, Any] = {
            "type": claims.type,
            "iat": int(claims.iat),
            "exp": int(claims.exp),
            "iss": claims.iss,
        }
        if claims.ref_id is not None:
            overrides["ref_id"] = int(claims.ref_id)

        # expires_delta=False: exp comes from the overrides, not JWT_*_EXPIRES.
        create = create_access_token if claims.is_access else create_refresh_token
        return cast(
            str,
            create(identity=claims.sub, expires_delta=False, additional_claims=overrides),
        )

    def decode(self, token: str) -> TokenClaims:
        from flask_jwt_extended import decode_token

        if not isinstance(token, str) or not token:
            raise InvalidTokenError("Token is empty.")
        try:
            raw = cast(dict[str, Any], decode_token(token))
        except (pyjwt.PyJWTError, JWTExtendedException) as exc:
            raise InvalidTokenError(str(exc)) from exc

        try:
            claims = TokenClaims(
                type=str(raw["type"]),
                sub=raw["sub"],
                iat=int(raw["iat"]),
                exp=int(raw["exp"]),
                iss=str(raw["iss"]),
                ref_id=self._ref_id(raw.get("ref_id")),
                jti=raw.get("jti"),
            )
        except (KeyError, TypeError, ValueError) as exc:
            raise InvalidTokenError(f"Malformed claims: {exc}") from exc

        if claims.type not in (ACCESS_TOKEN_TYPE, REFRESH_TOKEN_TYPE):
            raise InvalidTokenError(f"Unknown token type: {claims.type!r}")
        return claims

    @staticmethod
    def _ref_id(value: Any) -> int | None:
        if value is None:
            return None
        # bool is an int subclass; a boolean ref_id is never legitimate.
        if isinstance(value, bool) or not isinstance(value, int):
            raise ValueError("ref_id must be an integer")
        return value
