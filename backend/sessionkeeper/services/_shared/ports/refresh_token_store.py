from __future__ import annotations

from collections.abc import Sequence
from datetime import datetime
from typing import TYPE_CHECKING, Protocol

from sessionkeeper.models.enums import RevocationReason
from sessionkeeper.services._shared.subject import SubjectRef

if TYPE_CHECKING:
    from sessionkeeper.models.refresh_token import RefreshToken


class RefreshTokenStore(Protocol):
    """
    Durable collection of refresh-token records.

    Deactivations MUST be single conditional updates (``WHERE is_active``) so a
    concurrent reader observes either the active or the inactive state and
    repeated calls are harmless no-ops.
    """

    def create(
        self, subject: SubjectRef, token: str, *, created_at: datetime | None = None
    ) -> RefreshToken:
        """Insert an active record and materialize its id."""
        ...

    def get_by_id(self, record_id: int) -> RefreshToken | None: ...

    def get_by_value(self, token: str) -> RefreshToken | None: ...

    def lock_subject(self, subject: SubjectRef) -> None:
        """
        Serialize session bookkeeping for ``subject`` until the transaction ends.

        Concurrent transactions calling this for the same subject queue behind
        each other, so a count read afterwards still holds at commit.
        """
        ...

    def count_active(self, subject: SubjectRef) -> int: ...

    def list_active(self, subject: SubjectRef) -> Sequence[RefreshToken]:
        """Active records for ``subject``, oldest first."""
        ...

    def deactivate(self, record_id: int, reason: RevocationReason) -> bool:
        """
        Deactivate one record.

        :returns: ``True`` if this call performed the transition, ``False`` if
            the record was already inactive or does not exist.
        """
        ...

    def deactivate_all_active(self, subject: SubjectRef, reason: RevocationReason) -> int:
        """Deactivate every active record of ``subject``; return the count."""
        ...

    def deactivate_oldest_active(
        self, subject: SubjectRef, count: int, reason: RevocationReason
    ) -> list[int]:
        """Deactivate up to ``count`` oldest active records; return their ids."""
        ...

    def deactivate_expired(
        self,
        created_before: datetime,
        reason: RevocationReason,
        *,
        subject: SubjectRef | None = None,
    ) -> int:
        """Deactivate active records created strictly before ``created_before``."""
        ...
