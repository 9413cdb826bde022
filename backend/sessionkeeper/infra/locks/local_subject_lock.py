# sessionkeeper/infra/locks/local_subject_lock.py
from __future__ import annotations

import threading
from collections.abc import Iterator
from contextlib import contextmanager

from sessionkeeper.services._shared.errors import SessionLockTimeoutError
from sessionkeeper.services._shared.ports import SubjectLock
from sessionkeeper.services._shared.subject import SubjectRef


class LocalSubjectLock(SubjectLock):
    """
    In-process per-subject locks.

    Sufficient for a single worker process; use
    :class:`~sessionkeeper.infra.redis.redis_subject_lock.RedisSubjectLock` when
    several processes issue sessions against the same database.

    A subject's lock lives only while some thread holds or waits for it, so the
    map stays bounded by the number of concurrent logins.

    :param timeout: Seconds to wait for a subject's lock (``None`` = forever).
    """

    def __init__(self, *, timeout: float | None = 5.0) -> None:
        self.timeout = timeout
        self._locks: dict[SubjectRef, tuple[threading.Lock, int]] = {}
        self._guard = threading.Lock()

    def _checkout(self, subject: SubjectRef) -> threading.Lock:
        with self._guard:
            lock, users = self._locks.get(subject, (None, 0))
            if lock is None:
                lock = threading.Lock()
            self._locks[subject] = (lock, users + 1)
            return lock

    def _checkin(self, subject: SubjectRef) -> None:
        with self._guard:
            lock, users = self._locks[subject]
            if users <= 1:
                del self._locks[subject]
            else:
                self._locks[subject] = (lock, users - 1)

    @contextmanager
    def hold(self, subject: SubjectRef) -> Iterator[None]:
        lock = self._checkout(subject)
        try:
            acquired = lock.acquire(timeout=-1 if self.timeout is None else self.timeout)
            if not acquired:
                raise SessionLockTimeoutError(f"Timed out waiting for session lock of {subject}")
            try:
                yield
            finally:
                lock.release()
        finally:
            self._checkin(subject)
