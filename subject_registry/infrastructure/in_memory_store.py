"""In-memory implementation of the SubjectStore.

Infrastructure adapter for tests and single-process deployments. An
``asyncio.Lock`` serializes every mutation, so the uniqueness check inside
``save`` and the write it guards happen as one step.
"""

import asyncio
import uuid

from ..domain.exceptions import DuplicateEmailError, SubjectNotFoundError
from ..domain.models import Subject
from ..ports.subject_store import SubjectStore


class InMemorySubjectStore(SubjectStore):
    """In-memory SubjectStore with an email index."""

    def __init__(self) -> None:
        # Insertion ordered; replacing a record keeps its position
        self._storage: dict[str, Subject] = {}
        self._email_index: dict[str, str] = {}
        self._lock = asyncio.Lock()

    async def find_all(self) -> list[Subject]:
        return list(self._storage.values())

    async def find_by_id(self, subject_id: str) -> Subject | None:
        return self._storage.get(subject_id)

    async def exists_by_email(self, email: str) -> bool:
        return email in self._email_index

    async def exists_by_email_excluding(self, email: str, subject_id: str) -> bool:
        owner = self._email_index.get(email)
        return owner is not None and owner != subject_id

    async def save(self, subject: Subject) -> Subject:
        async with self._lock:
            if subject.id is None:
                return self._insert(subject)
            return self._replace(subject.id, subject)

    async def delete_by_id(self, subject_id: str) -> bool:
        async with self._lock:
            subject = self._storage.pop(subject_id, None)
            if subject is None:
                return False
            self._email_index.pop(subject.email, None)
            return True

    def _insert(self, subject: Subject) -> Subject:
        if subject.email in self._email_index:
            raise DuplicateEmailError(subject.email)
        subject_id = str(uuid.uuid4())
        persisted = subject.with_id(subject_id)
        self._storage[subject_id] = persisted
        self._email_index[persisted.email] = subject_id
        return persisted

    def _replace(self, subject_id: str, subject: Subject) -> Subject:
        current = self._storage.get(subject_id)
        if current is None:
            raise SubjectNotFoundError(subject_id)
        owner = self._email_index.get(subject.email)
        if owner is not None and owner != subject_id:
            raise DuplicateEmailError(subject.email)

        if current.email != subject.email:
            del self._email_index[current.email]
        self._email_index[subject.email] = subject_id
        persisted = subject.model_copy()
        self._storage[subject_id] = persisted
        return persisted

    def clear(self) -> None:
        """Drop every record (useful for testing)."""
        self._storage.clear()
        self._email_index.clear()
