from __future__ import annotations

from dataclasses import dataclass
from typing import Protocol

ACCESS_TOKEN_TYPE = "access"
REFRESH_TOKEN_TYPE = "refresh"
TOKEN_TYPES = frozenset({ACCESS_TOKEN_TYPE, REFRESH_TOKEN_TYPE})


@dataclass(frozen=True, slots=True)
class TokenClaims:
    """
    Claim set carried by access and refresh tokens.

    :ivar type: ``"access"`` or ``"refresh"``.
    :ivar sub: ``"{SUBJECT_TYPE}-{SUBJECT_ID}"``.
    :ivar iat: Issued-at, unix seconds.
    :ivar exp: Expiry, unix seconds.
    :ivar iss: Issuer.
    :ivar ref_id: Backing refresh record id (access tokens only).
    :ivar jti: Random token id added by the codec; ``None`` before encoding.
    """

    type: str
    sub: str
    iat: int
    exp: int
    iss: str
    ref_id: int | None = None
    jti: str | None = None

    @property
    def is_access(self) -> bool:
        return self.type == ACCESS_TOKEN_TYPE

    @property
    def is_refresh(self) -> bool:
        return self.type == REFRESH_TOKEN_TYPE


class TokenCodec(Protocol):
    """
    Port turning claim sets into signed strings and back.

    Implementations are the single point enforcing tamper-evidence. They know
    nothing about sessions or storage.
    """

    def encode(self, claims: TokenClaims) -> str:
        """
        Sign ``claims``.

        :raises EncodingError: If a required claim is missing.
        """
        ...

    def decode(self, token: str) -> TokenClaims:
        """
        Verify and parse ``token``.

        :raises InvalidTokenError: On bad signature, structure, issuer or expiry.
            No partial claims are returned.
        """
        ...
