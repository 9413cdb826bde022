# sessionkeeper/infra/redis/redis_subject_lock.py
from __future__ import annotations

import logging
from collections.abc import Iterator
from contextlib import contextmanager
from dataclasses import dataclass

import redis  # type: ignore[import-untyped]
from redis.exceptions import LockError  # type: ignore[import-untyped]

from sessionkeeper.services._shared.errors import SessionLockTimeoutError
from sessionkeeper.services._shared.ports import SubjectLock
from sessionkeeper.services._shared.subject import SubjectRef

log = logging.getLogger(__name__)


@dataclass(slots=True)
class RedisSubjectLock(SubjectLock):
    """
    Cross-process per-subject lock backed by redis-py's :class:`redis.lock.Lock`.

    :param r: A Redis client (already connected).
    :param timeout: Seconds to wait for the lock before giving up.
    :param lease: Seconds after which Redis frees a lock whose holder died.
    """

    r: redis.Redis
    timeout: float = 5.0
    lease: float = 30.0

    @staticmethod
    def _k(subject: SubjectRef) -> str:
        return f"sess:lock:{subject.sub}"

    @contextmanager
    def hold(self, subject: SubjectRef) -> Iterator[None]:
        lock = self.r.lock(self._k(subject), timeout=self.lease, blocking_timeout=self.timeout)
        if not lock.acquire():
            raise SessionLockTimeoutError(f"Timed out waiting for session lock of {subject}")
        try:
            yield
        finally:
            try:
                lock.release()
            except LockError:
                # Lease expired while held; the key may already belong to another holder.
                log.warning("session.lock_lease_expired", extra={"subject": subject.sub})
