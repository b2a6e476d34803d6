"""NATS JetStream key-value implementation of the SubjectStore.

Records live under ``subject.<id>``. Email uniqueness is enforced with a
claim key ``email.<sha256(email)>`` that is created with ``kv.create``:
the server accepts exactly one creator, which makes the check and the
claim a single atomic step across processes.
"""

from __future__ import annotations

import hashlib
import uuid
from typing import TYPE_CHECKING

import msgpack
from nats.js.errors import (
    BucketNotFoundError,
    KeyNotFoundError,
    KeyWrongLastSequenceError,
    NoKeysError,
)
from nats.js.kv import KeyValue

from ..domain.exceptions import DuplicateEmailError, StorageError, SubjectNotFoundError
from ..domain.models import Subject
from ..ports.subject_store import SubjectStore
from .config import SubjectPatterns

if TYPE_CHECKING:
    from ..ports.logger import LoggerPort
    from .nats_adapter import NATSAdapter

_RECORD_PREFIX = "subject."
_CLAIM_PREFIX = "email."


def record_key(subject_id: str) -> str:
    return f"{_RECORD_PREFIX}{subject_id}"


def claim_key(email: str) -> str:
    """KV-safe key for an email. Emails contain characters KV keys reject."""
    return f"{_CLAIM_PREFIX}{hashlib.sha256(email.encode()).hexdigest()}"


class NATSKVSubjectStore(SubjectStore):
    """SubjectStore backed by a NATS KV bucket."""

    def __init__(self, kv: KeyValue, logger: LoggerPort | None = None):
        self._kv = kv
        self._logger = logger

    @classmethod
    async def connect(
        cls,
        adapter: NATSAdapter,
        bucket: str = SubjectPatterns.KV_BUCKET,
        logger: LoggerPort | None = None,
    ) -> NATSKVSubjectStore:
        """Open the bucket, creating it on first use."""
        js = adapter.jetstream
        try:
            kv = await js.key_value(bucket)
        except BucketNotFoundError:
            kv = await js.create_key_value(bucket=bucket, history=5)
        return cls(kv, logger=logger)

    # Encoding

    @staticmethod
    def _encode(subject: Subject) -> bytes:
        return bytes(msgpack.packb(subject.model_dump(mode="json"), use_bin_type=True))

    @staticmethod
    def _decode(data: bytes | None) -> Subject:
        try:
            return Subject.model_validate(msgpack.unpackb(data or b"", raw=False))
        except Exception as e:
            raise StorageError(f"Corrupt subject record: {e}", operation="read") from e

    # Queries

    async def find_all(self) -> list[Subject]:
        try:
            keys = await self._kv.keys()
        except NoKeysError:
            return []

        subjects = []
        for key in keys:
            if not key.startswith(_RECORD_PREFIX):
                continue
            try:
                entry = await self._kv.get(key)
            except KeyNotFoundError:
                # Deleted since the listing
                continue
            subjects.append(self._decode(entry.value))
        return subjects

    async def find_by_id(self, subject_id: str) -> Subject | None:
        try:
            entry = await self._kv.get(record_key(subject_id))
        except KeyNotFoundError:
            return None
        return self._decode(entry.value)

    async def _claim_owner(self, email: str) -> str | None:
        try:
            entry = await self._kv.get(claim_key(email))
        except KeyNotFoundError:
            return None
        return (entry.value or b"").decode() or None

    async def exists_by_email(self, email: str) -> bool:
        return await self._claim_owner(email) is not None

    async def exists_by_email_excluding(self, email: str, subject_id: str) -> bool:
        owner = await self._claim_owner(email)
        return owner is not None and owner != subject_id

    # Mutations

    async def _claim(self, email: str, subject_id: str) -> None:
        try:
            await self._kv.create(claim_key(email), subject_id.encode())
        except KeyWrongLastSequenceError as e:
            raise DuplicateEmailError(email) from e

    async def _release(self, email: str) -> None:
        try:
            await self._kv.delete(claim_key(email))
        except Exception as e:
            # Leaves a stale claim; the email stays blocked until cleaned up
            if self._logger:
                self._logger.exception(
                    "Failed to release email claim", exc_info=e, operation="release_claim"
                )

    async def save(self, subject: Subject) -> Subject:
        if subject.id is None:
            return await self._insert(subject)
        return await self._replace(subject.id, subject)

    async def _insert(self, subject: Subject) -> Subject:
        subject_id = str(uuid.uuid4())
        persisted = subject.with_id(subject_id)
        await self._claim(persisted.email, subject_id)
        try:
            await self._kv.create(record_key(subject_id), self._encode(persisted))
        except Exception as e:
            await self._release(persisted.email)
            raise StorageError(f"Failed to write subject record: {e}", operation="insert") from e
        return persisted

    async def _replace(self, subject_id: str, subject: Subject) -> Subject:
        try:
            entry = await self._kv.get(record_key(subject_id))
        except KeyNotFoundError as e:
            raise SubjectNotFoundError(subject_id) from e
        current = self._decode(entry.value)

        email_changed = current.email != subject.email
        if email_changed:
            await self._claim(subject.email, subject_id)

        try:
            await self._kv.update(
                record_key(subject_id), self._encode(subject), last=entry.revision
            )
        except KeyWrongLastSequenceError as e:
            if email_changed:
                await self._release(subject.email)
            raise StorageError(
                f"Subject {subject_id} was modified concurrently", operation="update"
            ) from e

        if email_changed:
            await self._release(current.email)
        return subject.model_copy()

    async def delete_by_id(self, subject_id: str) -> bool:
        try:
            entry = await self._kv.get(record_key(subject_id))
        except KeyNotFoundError:
            return False
        current = self._decode(entry.value)

        try:
            await self._kv.delete(record_key(subject_id), last=entry.revision)
        except KeyWrongLastSequenceError as e:
            raise StorageError(
                f"Subject {subject_id} was modified concurrently", operation="delete"
            ) from e
        await self._release(current.email)
        return True
