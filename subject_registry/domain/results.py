"""Typed results returned by lifecycle operations.

Every orchestrator operation returns either ``Success`` or ``Failure``, so
callers handle each error kind explicitly instead of catching exceptions:

    match await orchestrator.create(request):
        case Success(value=subject):
            ...
        case Failure(kind=ErrorKind.DUPLICATE_EMAIL):
            ...
"""

from dataclasses import dataclass, field
from typing import Any, Generic, TypeAlias, TypeVar

from .enums import ErrorKind
from .exceptions import (
    DuplicateEmailError,
    ProvisioningError,
    RegistryError,
    StorageError,
    SubjectNotFoundError,
)
from .models import Subject

T = TypeVar("T")


@dataclass(frozen=True)
class Success(Generic[T]):
    """Operation completed; ``value`` holds its result."""

    value: T

    @property
    def is_success(self) -> bool:
        return True

    def unwrap(self) -> T:
        """Return the wrapped value."""
        return self.value


@dataclass(frozen=True)
class Failure:
    """Operation rejected or partially completed.

    ``subject`` is set when a record was persisted before the failure
    occurred (provisioning failure without compensation).
    """

    kind: ErrorKind
    message: str
    details: dict[str, Any] = field(default_factory=dict)
    subject: Subject | None = None

    @property
    def is_success(self) -> bool:
        return False

    @property
    def is_partial(self) -> bool:
        """Whether the local write survived the failure."""
        return self.subject is not None

    @classmethod
    def from_error(
        cls, kind: ErrorKind, error: RegistryError, subject: Subject | None = None
    ) -> "Failure":
        """Build a failure from a domain exception."""
        return cls(kind=kind, message=error.message, details=dict(error.details), subject=subject)

    def to_exception(self) -> RegistryError:
        """Rebuild the domain exception matching this failure."""
        if self.kind == ErrorKind.DUPLICATE_EMAIL:
            return DuplicateEmailError(self.details.get("email", ""))
        if self.kind == ErrorKind.SUBJECT_NOT_FOUND:
            return SubjectNotFoundError(self.details.get("subject_id", ""))
        if self.kind == ErrorKind.PROVISIONING_FAILURE:
            return ProvisioningError(
                self.message,
                subject_id=self.details.get("subject_id"),
                timed_out=bool(self.details.get("timed_out", False)),
            )
        return StorageError(self.message, operation=self.details.get("operation"))

    def unwrap(self) -> Any:
        """Raise the domain exception matching this failure."""
        raise self.to_exception()


OperationResult: TypeAlias = Success[T] | Failure
