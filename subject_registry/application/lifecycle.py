"""Subject lifecycle orchestration.

Coordinates the subject store, the billing account provisioning client and
the change event publisher for create, and the store alone for update and
delete. Domain exceptions raised by the ports are translated here, and only
here, into typed ``Success``/``Failure`` results.

Create runs strictly in this order:

1. ``exists_by_email`` - duplicate email is rejected before any write.
2. ``save`` - the store re-checks uniqueness atomically with the write.
3. ``create_account`` - called once, bounded by ``provisioning_timeout``,
   never retried. A failure is returned to the caller while the subject
   stays in the store, unless ``compensate_on_provisioning_failure`` is set.
4. ``publish`` - bounded by ``publish_timeout``; failures are logged only.
"""

from __future__ import annotations

import asyncio
from collections.abc import Sequence
from typing import TYPE_CHECKING

from pydantic import BaseModel, ConfigDict, Field, model_validator

from ..domain.enums import ErrorKind
from ..domain.exceptions import (
    DuplicateEmailError,
    ProvisioningError,
    RegistryError,
    StorageError,
    SubjectNotFoundError,
)
from ..domain.models import ChangeEvent, ProvisionedAccount, Subject
from ..domain.results import Failure, OperationResult, Success
from ..infrastructure.in_memory_metrics import InMemoryMetrics
from .dtos import SubjectRequest

if TYPE_CHECKING:
    from ..ports.account_provisioning import AccountProvisioningPort
    from ..ports.event_publisher import ChangeEventPublisherPort
    from ..ports.logger import LoggerPort
    from ..ports.metrics import MetricsPort
    from ..ports.subject_store import SubjectStore


class LifecycleConfig(BaseModel):
    """Timeouts and failure policy for lifecycle orchestration."""

    model_config = ConfigDict(extra="forbid", validate_assignment=True)

    provisioning_timeout: float = Field(
        default=5.0, gt=0, description="Upper bound for the billing call in seconds"
    )
    publish_timeout: float = Field(
        default=1.0, gt=0, description="Upper bound for broker acceptance in seconds"
    )
    compensate_on_provisioning_failure: bool = Field(
        default=False,
        description="Delete the new subject when provisioning fails",
    )

    @model_validator(mode="after")
    def validate_timeouts(self) -> LifecycleConfig:
        """The publish step is meant to be the short one."""
        if self.publish_timeout > self.provisioning_timeout:
            raise ValueError("publish_timeout must not exceed provisioning_timeout")
        return self


class SubjectLifecycleOrchestrator:
    """Sequences store, provisioning and publishing for subject writes.

    Holds no mutable state of its own; concurrent calls share only the
    store, which serializes uniqueness-sensitive writes.
    """

    def __init__(
        self,
        store: SubjectStore,
        provisioning: AccountProvisioningPort,
        publisher: ChangeEventPublisherPort,
        config: LifecycleConfig | None = None,
        logger: LoggerPort | None = None,
        metrics: MetricsPort | None = None,
    ):
        self._store = store
        self._provisioning = provisioning
        self._publisher = publisher
        self._config = config or LifecycleConfig()
        self._logger = logger
        self._metrics = metrics or InMemoryMetrics()

    @property
    def config(self) -> LifecycleConfig:
        return self._config

    # Reads

    async def list_subjects(self) -> Sequence[Subject]:
        """Return every registered subject."""
        return await self._store.find_all()

    async def get_subject(self, subject_id: str) -> OperationResult[Subject]:
        """Look a subject up by identifier."""
        try:
            subject = await self._store.find_by_id(subject_id)
        except StorageError as e:
            return self._reject(ErrorKind.STORAGE_FAILURE, e)
        if subject is None:
            return self._reject(ErrorKind.SUBJECT_NOT_FOUND, SubjectNotFoundError(subject_id))
        return Success(subject)

    # Writes

    async def create(self, request: SubjectRequest) -> OperationResult[Subject]:
        """Register a new subject, provision its account and announce it."""
        with self._metrics.timer("subjects.create"):
            try:
                taken = await self._store.exists_by_email(request.email)
            except StorageError as e:
                return self._reject(ErrorKind.STORAGE_FAILURE, e)
            if taken:
                return self._reject(ErrorKind.DUPLICATE_EMAIL, DuplicateEmailError(request.email))

            try:
                subject = await self._store.save(request.to_subject())
            except DuplicateEmailError as e:
                # Lost a race against a concurrent create for the same email
                return self._reject(ErrorKind.DUPLICATE_EMAIL, e)
            except StorageError as e:
                return self._reject(ErrorKind.STORAGE_FAILURE, e)
            if subject.id is None:
                return self._reject(
                    ErrorKind.STORAGE_FAILURE,
                    StorageError("Store returned a subject without an id", operation="insert"),
                )

            try:
                await self._provision(subject.id, subject)
            except ProvisioningError as e:
                return await self._handle_provisioning_failure(subject.id, subject, e)

            await self._publish(ChangeEvent.from_subject(subject))

        self._metrics.increment("subjects.created")
        if self._logger:
            self._logger.info(
                f"Subject {subject.id} created",
                operation="create",
                subject_id=subject.id,
            )
        return Success(subject)

    async def update(self, subject_id: str, request: SubjectRequest) -> OperationResult[Subject]:
        """Replace every mutable field of an existing subject.

        Update never provisions accounts or emits change events.
        """
        try:
            existing = await self._store.find_by_id(subject_id)
            if existing is None:
                return self._reject(ErrorKind.SUBJECT_NOT_FOUND, SubjectNotFoundError(subject_id))
            taken = request.email != existing.email and (
                await self._store.exists_by_email_excluding(request.email, subject_id)
            )
        except StorageError as e:
            return self._reject(ErrorKind.STORAGE_FAILURE, e)
        if taken:
            return self._reject(ErrorKind.DUPLICATE_EMAIL, DuplicateEmailError(request.email))

        try:
            updated = await self._store.save(request.apply_to(existing))
        except DuplicateEmailError as e:
            return self._reject(ErrorKind.DUPLICATE_EMAIL, e)
        except SubjectNotFoundError as e:
            # Deleted between lookup and save
            return self._reject(ErrorKind.SUBJECT_NOT_FOUND, e)
        except StorageError as e:
            return self._reject(ErrorKind.STORAGE_FAILURE, e)

        self._metrics.increment("subjects.updated")
        if self._logger:
            self._logger.info(
                f"Subject {subject_id} updated", operation="update", subject_id=subject_id
            )
        return Success(updated)

    async def delete(self, subject_id: str) -> OperationResult[None]:
        """Hard-delete a subject. No downstream propagation."""
        try:
            deleted = await self._store.delete_by_id(subject_id)
        except StorageError as e:
            return self._reject(ErrorKind.STORAGE_FAILURE, e)

        if not deleted:
            return self._reject(ErrorKind.SUBJECT_NOT_FOUND, SubjectNotFoundError(subject_id))

        self._metrics.increment("subjects.deleted")
        if self._logger:
            self._logger.info(
                f"Subject {subject_id} deleted", operation="delete", subject_id=subject_id
            )
        return Success(None)

    # Steps

    async def _provision(self, subject_id: str, subject: Subject) -> ProvisionedAccount:
        with self._metrics.timer("provisioning.create_account"):
            try:
                account = await asyncio.wait_for(
                    self._provisioning.create_account(subject_id, subject.name, subject.email),
                    timeout=self._config.provisioning_timeout,
                )
            except ProvisioningError:
                raise
            except TimeoutError as e:
                raise ProvisioningError(
                    f"Account provisioning timed out after {self._config.provisioning_timeout}s",
                    subject_id=subject_id,
                    timed_out=True,
                ) from e
            except Exception as e:
                raise ProvisioningError(
                    f"Account provisioning failed: {e}", subject_id=subject_id
                ) from e

        if account.is_failed:
            raise ProvisioningError(
                f"Billing system reported account {account.account_id} as FAILED",
                subject_id=subject_id,
            )
        if self._logger:
            self._logger.debug(
                f"Account {account.account_id} provisioned for subject {subject_id}",
                operation="provision",
                subject_id=subject_id,
                account_status=account.status.value,
            )
        return account

    async def _handle_provisioning_failure(
        self, subject_id: str, subject: Subject, error: ProvisioningError
    ) -> Failure:
        self._metrics.increment("provisioning.failed")
        if error.subject_id is None:
            error.subject_id = subject_id
            error.details["subject_id"] = subject_id

        if not self._config.compensate_on_provisioning_failure:
            return self._reject(ErrorKind.PROVISIONING_FAILURE, error, subject=subject)

        try:
            await self._store.delete_by_id(subject_id)
        except StorageError as e:
            # Compensation failed: the record survives, report it as partial
            if self._logger:
                self._logger.exception(
                    f"Compensating delete failed for subject {subject_id}",
                    exc_info=e,
                    operation="compensate",
                    subject_id=subject_id,
                )
            return self._reject(ErrorKind.PROVISIONING_FAILURE, error, subject=subject)

        error.details["compensated"] = True
        return self._reject(ErrorKind.PROVISIONING_FAILURE, error)

    async def _publish(self, event: ChangeEvent) -> None:
        try:
            await asyncio.wait_for(
                self._publisher.publish(event), timeout=self._config.publish_timeout
            )
        except Exception as e:
            # Includes timeouts and adapter errors that were not wrapped
            self._metrics.increment("events.publish_failed")
            if self._logger:
                self._logger.warning(
                    f"Change event for subject {event.subject_id} not published: {e}",
                    operation="publish",
                    subject_id=event.subject_id,
                    error_type=type(e).__name__,
                )
            return
        self._metrics.increment("events.published")

    def _reject(
        self, kind: ErrorKind, error: RegistryError, subject: Subject | None = None
    ) -> Failure:
        self._metrics.increment(f"subjects.rejected.{kind.value.lower()}")
        if self._logger:
            failed = kind == ErrorKind.PROVISIONING_FAILURE
            log = self._logger.error if failed else self._logger.info
            log(
                f"Operation rejected ({kind.value}): {error.message}",
                error_code=kind.value,
                **error.details,
            )
        return Failure.from_error(kind, error, subject=subject)
