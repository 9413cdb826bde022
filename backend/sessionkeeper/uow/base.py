"""
Abstract Unit of Work contracts.
"""

from __future__ import annotations

from abc import ABC, abstractmethod


class UnitOfWork(ABC):
    """
    Coordinates a transactional boundary for a use-case.

    Responsibilities:
    - Provide ``accounts`` and ``refresh_tokens`` bound to the same session.
    - Commit on success, rollback on error.

    A session-issuance scope must commit before the per-subject lock is
    released, so callers nest the UoW *inside* the lock context.
    """

    @abstractmethod
    def __enter__(self) -> UnitOfWork: ...
    @abstractmethod
    def __exit__(self, exc_type, exc, tb) -> None: ...
    @abstractmethod
    def commit(self) -> None: ...
    @abstractmethod
    def rollback(self) -> None: ...
