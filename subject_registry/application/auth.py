"""Authentication service used by the registry's callers."""

from __future__ import annotations

from typing import TYPE_CHECKING

from ..domain.exceptions import TokenValidationError

if TYPE_CHECKING:
    from ..ports.auth import PasswordHasherPort, TokenIssuerPort, UserDirectoryPort
    from ..ports.logger import LoggerPort


class AuthService:
    """Credential check and token validation.

    A token is only generated after both the user lookup and the password
    check succeed.
    """

    def __init__(
        self,
        users: UserDirectoryPort,
        passwords: PasswordHasherPort,
        tokens: TokenIssuerPort,
        logger: LoggerPort | None = None,
    ):
        self._users = users
        self._passwords = passwords
        self._tokens = tokens
        self._logger = logger

    async def authenticate(self, email: str, password: str) -> str | None:
        """Return an access token for valid credentials, otherwise None."""
        user = await self._users.find_by_email(email)
        if user is None:
            if self._logger:
                self._logger.info("Login rejected: unknown user", operation="authenticate")
            return None

        if not self._passwords.verify(password, user.password_hash):
            if self._logger:
                self._logger.info("Login rejected: bad password", operation="authenticate")
            return None

        return self._tokens.generate_token(user.email, user.role)

    def validate_token(self, token: str) -> bool:
        """Return True for a valid, unexpired token."""
        try:
            self._tokens.validate_token(token)
        except TokenValidationError as e:
            if self._logger:
                self._logger.debug(f"Token rejected: {e.message}", operation="validate_token")
            return False
        return True
