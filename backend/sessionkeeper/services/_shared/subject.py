"""Structured subject identity carried through the session pipeline."""

from __future__ import annotations

from dataclasses import dataclass

from sessionkeeper.models.enums import SubjectType

SUB_SEPARATOR = "-"


@dataclass(frozen=True, slots=True)
class SubjectRef:
    """
    Tagged ``(subject_type, subject_id)`` pair.

    The ``"TYPE-ID"`` wire form only exists inside tokens; it is parsed once by
    :meth:`parse` and never re-parsed downstream.

    :ivar type: Kind of principal.
    :ivar id: Principal id within ``type``.
    """

    type: SubjectType
    id: int

    @property
    def sub(self) -> str:
        """Return the ``sub`` claim value, e.g. ``"USER-45"``."""
        return f"{self.type.value}{SUB_SEPARATOR}{self.id}"

    @classmethod
    def parse(cls, raw: object) -> SubjectRef:
        """
        Parse a ``sub`` claim.

        :param raw: Claim value taken from a decoded token.
        :returns: Structured subject.
        :raises ValueError: If the separator is missing, the type is unknown,
            or the id is not a positive decimal integer.
        """
        if not isinstance(raw, str):
            raise ValueError("Subject claim must be a string.")
        type_part, sep, id_part = raw.partition(SUB_SEPARATOR)
        if not sep:
            raise ValueError(f"Subject claim {raw!r} lacks a type-id separator.")
        try:
            subject_type = SubjectType(type_part)
        except ValueError:
            raise ValueError(f"Unknown subject type {type_part!r}.") from None
        if not (id_part.isascii() and id_part.isdigit()):
            raise ValueError(f"Subject id {id_part!r} is not numeric.")
        subject_id = int(id_part)
        if subject_id <= 0:
            raise ValueError("Subject id must be positive.")
        return cls(type=subject_type, id=subject_id)

    def __str__(self) -> str:
        return self.sub
