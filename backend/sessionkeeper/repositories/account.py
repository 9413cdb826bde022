"""Account repository: subject lookup across the per-type account tables."""

from __future__ import annotations

from typing import cast

from sqlalchemy import select

from sessionkeeper.models.account import ACCOUNT_MODELS, AccountMixin
from sessionkeeper.models.enums import SubjectType
from sessionkeeper.repositories.base import BaseRepository
from sessionkeeper.services._shared.subject import SubjectRef


class AccountRepository(BaseRepository[AccountMixin]):
    """Persistence-only repository over ``users``, ``admins`` and ``staff``.

    The concrete table is chosen per call from the subject type, so one
    repository instance serves every kind of principal. It NEVER issues or
    validates tokens.
    """

    @staticmethod
    def model_for(subject_type: SubjectType) -> type[AccountMixin]:
        """Return the mapped class storing accounts of ``subject_type``.

        :raises KeyError: If the subject type has no account table.
        """
        return ACCOUNT_MODELS[SubjectType(subject_type)]

    def resolve(self, subject: SubjectRef) -> AccountMixin | None:
        """Fetch the account a subject reference points to.

        :param subject: Typed subject reference.
        :type subject: SubjectRef
        :returns: Account instance or ``None`` when it does not exist.
        :rtype: AccountMixin | None
        """
        model = self.model_for(subject.type)
        stmt = select(model).where(model.id == subject.id)
        return cast(AccountMixin | None, self.session.execute(stmt).scalars().first())

    def get_by_email(self, subject_type: SubjectType, email: str) -> AccountMixin | None:
        """Fetch an account by email (case-insensitive) within one subject type."""
        model = self.model_for(subject_type)
        stmt = select(model).where(model.email == email.lower().strip())
        return cast(AccountMixin | None, self.session.execute(stmt).scalars().first())

    def authenticate(
        self, subject_type: SubjectType, email: str, password: str
    ) -> AccountMixin | None:
        """Return the account when the credentials match, else ``None``.

        Deactivated accounts are returned as well; callers decide how to treat
        them.
        """
        account = self.get_by_email(subject_type, email)
        if account is None or not account.verify_password(password):
            return None
        return account

    def create(
        self, subject_type: SubjectType, *, email: str, password: str, is_active: bool = True
    ) -> AccountMixin:
        """Stage a new account of the given type and flush it."""
        model = self.model_for(subject_type)
        account = model(email=email, is_active=is_active)
        account.password = password
        return self.add(account)

    def set_active(self, subject: SubjectRef, is_active: bool) -> bool:
        """Toggle the account's active flag.

        :returns: ``False`` when the account does not exist.
        """
        account = self.resolve(subject)
        if account is None:
            return False
        account.is_active = is_active
        self.flush()
        return True
