"""Request and response models for lifecycle operations."""

import re
from datetime import date

from pydantic import BaseModel, ConfigDict, Field, field_validator

from ..domain.models import Subject, utc_today

_EMAIL_PATTERN = re.compile(r"^[^@\s]+@[^@\s]+\.[^@\s]+$")


class SubjectRequest(BaseModel):
    """Validated input for create and update.

    Update is a whole-record replace, so every mutable field is required.
    """

    model_config = ConfigDict(extra="forbid", str_strip_whitespace=True)

    name: str = Field(..., min_length=1, max_length=100, description="Display name")
    email: str = Field(..., description="Contact email, unique across subjects")
    address: str = Field(..., min_length=1, description="Postal address")
    date_of_birth: date = Field(..., description="Date of birth (ISO format)")

    @field_validator("email")
    @classmethod
    def validate_email(cls, v: str) -> str:
        """Validate email shape. Case is preserved; uniqueness is case-sensitive."""
        if not _EMAIL_PATTERN.match(v):
            raise ValueError(f"Invalid email format: {v}")
        return v

    @field_validator("date_of_birth")
    @classmethod
    def validate_date_of_birth(cls, v: date) -> date:
        """Reject birth dates in the future."""
        if v > utc_today():
            raise ValueError(f"Date of birth {v.isoformat()} is in the future")
        return v

    def to_subject(self) -> Subject:
        """Build a new, unsaved subject from this request."""
        return Subject(
            name=self.name,
            email=self.email,
            address=self.address,
            date_of_birth=self.date_of_birth,
        )

    def apply_to(self, subject: Subject) -> Subject:
        """Replace every mutable field of ``subject``, keeping id and registration date."""
        return subject.model_copy(
            update={
                "name": self.name,
                "email": self.email,
                "address": self.address,
                "date_of_birth": self.date_of_birth,
            }
        )


class SubjectResponse(BaseModel):
    """Caller-facing projection of a subject."""

    id: str
    name: str
    email: str
    address: str
    date_of_birth: str
    registered_date: str

    @classmethod
    def from_subject(cls, subject: Subject) -> "SubjectResponse":
        """Project a persisted subject."""
        if subject.id is None:
            raise ValueError("Cannot project an unsaved subject")
        return cls(
            id=subject.id,
            name=subject.name,
            email=subject.email,
            address=subject.address,
            date_of_birth=subject.date_of_birth.isoformat(),
            registered_date=subject.registered_date.isoformat(),
        )
