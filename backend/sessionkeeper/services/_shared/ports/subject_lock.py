from __future__ import annotations

from contextlib import AbstractContextManager
from typing import Protocol

from sessionkeeper.services._shared.subject import SubjectRef


class SubjectLock(Protocol):
    """
    Mutual exclusion keyed by subject.

    Serializes the count-evict-create sequence of session issuance for one
    subject while leaving unrelated subjects fully concurrent.
    """

    def hold(self, subject: SubjectRef) -> AbstractContextManager[None]:
        """
        Block until the subject's lock is held; release on exit.

        :raises SessionLockTimeoutError: If the lock cannot be acquired in time.
        """
        ...
