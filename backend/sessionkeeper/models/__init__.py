from sessionkeeper.models.account import ACCOUNT_MODELS, AccountMixin, Admin, Staff, User
from sessionkeeper.models.enums import RevocationReason, SubjectType, TokenStatus
from sessionkeeper.models.refresh_token import RefreshToken

__all__ = [
    "ACCOUNT_MODELS",
    "AccountMixin",
    "Admin",
    "RefreshToken",
    "RevocationReason",
    "Staff",
    "SubjectType",
    "TokenStatus",
    "User",
]
