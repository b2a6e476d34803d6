"""Subject store port - durable keyed storage for subject records.

This module defines the repository interface following hexagonal architecture principles.
"""

from abc import ABC, abstractmethod
from collections.abc import Sequence

from ..domain.models import Subject


class SubjectStore(ABC):
    """Abstract store for subject records.

    Implementations own email uniqueness: ``save`` must perform its
    uniqueness check and its write as one atomic step, so that concurrent
    writers racing on the same email cannot both commit.
    """

    @abstractmethod
    async def find_all(self) -> Sequence[Subject]:
        """Return every live subject. Ordering is unspecified."""
        ...

    @abstractmethod
    async def find_by_id(self, subject_id: str) -> Subject | None:
        """Get a subject by identifier, or None when absent."""
        ...

    @abstractmethod
    async def exists_by_email(self, email: str) -> bool:
        """Check whether any live subject uses the email."""
        ...

    @abstractmethod
    async def exists_by_email_excluding(self, email: str, subject_id: str) -> bool:
        """Check whether a subject other than ``subject_id`` uses the email."""
        ...

    @abstractmethod
    async def save(self, subject: Subject) -> Subject:
        """Insert (identifier unset) or fully replace (identifier set) a subject.

        Returns:
            The persisted record, identifier populated.

        Raises:
            DuplicateEmailError: Another subject already holds the email.
            SubjectNotFoundError: Replacing an identifier with no record.
            StorageError: The storage medium failed.
        """
        ...

    @abstractmethod
    async def delete_by_id(self, subject_id: str) -> bool:
        """Hard-delete a subject. Returns False when no record matched."""
        ...
