"""Domain enums for type safety and consistency."""

from enum import Enum


class AccountStatus(str, Enum):
    """Status of a remotely provisioned billing account."""

    ACTIVE = "ACTIVE"  # Account is usable
    PENDING = "PENDING"  # Accepted, activation still in progress
    FAILED = "FAILED"  # Remote system could not open the account


class ErrorKind(str, Enum):
    """Caller-facing failure kinds returned by lifecycle operations."""

    DUPLICATE_EMAIL = "DUPLICATE_EMAIL"
    SUBJECT_NOT_FOUND = "SUBJECT_NOT_FOUND"
    PROVISIONING_FAILURE = "PROVISIONING_FAILURE"
    STORAGE_FAILURE = "STORAGE_FAILURE"


class ChangeEventType(str, Enum):
    """Change notification types carried on the event stream."""

    SUBJECT_CREATED = "subject.created"
