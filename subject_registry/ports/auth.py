"""Ports consumed by the authentication service."""

from abc import ABC, abstractmethod
from typing import Any

from ..domain.models import UserAccount


class UserDirectoryPort(ABC):
    """Lookup of credential records by email."""

    @abstractmethod
    async def find_by_email(self, email: str) -> UserAccount | None:
        """Get a user by email, or None when unknown."""
        ...


class PasswordHasherPort(ABC):
    """One-way password hashing."""

    @abstractmethod
    def hash(self, password: str) -> str:
        """Hash a plain password for storage."""
        ...

    @abstractmethod
    def verify(self, password: str, password_hash: str) -> bool:
        """Return True if ``password`` matches ``password_hash``."""
        ...


class TokenIssuerPort(ABC):
    """Issues and verifies signed access tokens."""

    @abstractmethod
    def generate_token(self, subject: str, role: str) -> str:
        """Issue a token for ``subject`` carrying ``role``."""
        ...

    @abstractmethod
    def validate_token(self, token: str) -> dict[str, Any]:
        """Return the token claims.

        Raises:
            TokenValidationError: Token expired, malformed or badly signed.
        """
        ...
