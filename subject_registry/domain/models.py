"""Domain models using Pydantic for validation."""

from datetime import UTC, date, datetime
from typing import Literal

from pydantic import BaseModel, ConfigDict, Field, field_validator

from .enums import AccountStatus, ChangeEventType

CHANGE_EVENT_SCHEMA_VERSION = 1


def utc_today() -> date:
    """Current calendar date in UTC."""
    return datetime.now(UTC).date()


class Subject(BaseModel):
    """Canonical registry record.

    The identifier is unset until the store persists the record for the
    first time; the store assigns it exactly once.
    """

    model_config = ConfigDict(
        extra="forbid",
        str_strip_whitespace=True,
        validate_assignment=True,
    )

    id: str | None = Field(default=None, description="Store-assigned identifier")
    name: str = Field(..., min_length=1, description="Display name")
    email: str = Field(..., min_length=3, description="Contact address, unique across subjects")
    address: str = Field(..., description="Postal address")
    date_of_birth: date = Field(..., description="Date of birth")
    registered_date: date = Field(default_factory=utc_today, description="Registration date")

    @property
    def is_persisted(self) -> bool:
        """Whether the store has assigned an identifier."""
        return self.id is not None

    def with_id(self, subject_id: str) -> "Subject":
        """Return a copy carrying the given identifier."""
        return self.model_copy(update={"id": subject_id})


class ChangeEvent(BaseModel):
    """Minimal projection of a subject emitted after a successful create.

    The schema version and event type travel with every payload so a
    consumer can reject anything it does not understand.
    """

    model_config = ConfigDict(
        extra="forbid",
        strict=True,
        frozen=True,
    )

    schema_version: Literal[1] = Field(default=CHANGE_EVENT_SCHEMA_VERSION)
    event_type: Literal["subject.created"] = Field(default=ChangeEventType.SUBJECT_CREATED.value)
    subject_id: str = Field(..., min_length=1)
    name: str = Field(..., min_length=1)
    email: str = Field(..., min_length=1)

    @classmethod
    def from_subject(cls, subject: Subject) -> "ChangeEvent":
        """Project a persisted subject into a change event."""
        if subject.id is None:
            raise ValueError("Cannot emit a change event for an unsaved subject")
        return cls(subject_id=subject.id, name=subject.name, email=subject.email)


class ProvisionedAccount(BaseModel):
    """Result of a remote account provisioning call. Never persisted."""

    model_config = ConfigDict(extra="forbid", frozen=True)

    account_id: str = Field(..., min_length=1, description="Remote account identifier")
    status: AccountStatus = Field(..., description="Remote account status")

    @property
    def is_failed(self) -> bool:
        """Whether the remote system reported the account as failed."""
        return self.status == AccountStatus.FAILED


class UserAccount(BaseModel):
    """Credentials record consulted by the authentication service."""

    model_config = ConfigDict(extra="forbid", str_strip_whitespace=True)

    email: str = Field(..., min_length=3)
    password_hash: str = Field(..., min_length=1)
    role: str = Field(default="USER", pattern="^(USER|ADMIN)$")

    @field_validator("email")
    @classmethod
    def validate_email(cls, v: str) -> str:
        """Require a local part and a domain."""
        if "@" not in v.strip("@"):
            raise ValueError(f"Invalid email: {v}")
        return v
