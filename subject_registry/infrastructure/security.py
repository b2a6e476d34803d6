"""Token signing and password hashing adapters.

Passwords are bcrypt hashed after a SHA-256 pre-hash. Bcrypt truncates
inputs at 72 bytes; the pre-hash gives a fixed-length input so long
passwords are not silently truncated.
"""

from __future__ import annotations

import base64
import hashlib
from datetime import UTC, datetime, timedelta
from typing import Any, cast

import bcrypt
from jose import JWTError, jwt

from ..domain.exceptions import TokenValidationError
from ..domain.models import UserAccount
from ..ports.auth import PasswordHasherPort, TokenIssuerPort, UserDirectoryPort
from .config import AuthConfig


class JoseTokenIssuer(TokenIssuerPort):
    """HMAC-signed JWTs carrying ``sub``, ``role`` and ``exp``."""

    def __init__(self, config: AuthConfig):
        self._config = config

    def generate_token(
        self, subject: str, role: str, expires_delta: timedelta | None = None
    ) -> str:
        expire = datetime.now(UTC) + (
            expires_delta
            if expires_delta is not None
            else timedelta(minutes=self._config.access_token_expire_minutes)
        )
        claims = {"sub": subject, "role": role, "exp": expire}
        encoded = jwt.encode(
            claims,
            self._config.secret_key.get_secret_value(),
            algorithm=self._config.algorithm,
        )
        return cast(str, encoded)

    def validate_token(self, token: str) -> dict[str, Any]:
        try:
            payload = jwt.decode(
                token,
                self._config.secret_key.get_secret_value(),
                algorithms=[self._config.algorithm],
                options={"require_exp": True, "require_sub": True},
            )
        except JWTError as e:
            raise TokenValidationError(f"Invalid token: {e!s}") from e
        return dict(payload)


def _prehash(password: str) -> bytes:
    return base64.b64encode(hashlib.sha256(password.encode("utf-8")).digest())


class BcryptPasswordHasher(PasswordHasherPort):
    """bcrypt with a SHA-256 pre-hash."""

    def __init__(self, rounds: int = 12):
        self._rounds = rounds

    def hash(self, password: str) -> str:
        hashed = bcrypt.hashpw(_prehash(password), bcrypt.gensalt(rounds=self._rounds))
        return hashed.decode("utf-8")

    def verify(self, password: str, password_hash: str) -> bool:
        try:
            return bool(bcrypt.checkpw(_prehash(password), password_hash.encode("utf-8")))
        except (ValueError, TypeError):
            return False


class InMemoryUserDirectory(UserDirectoryPort):
    """User directory held in a dict keyed by exact email."""

    def __init__(self, users: list[UserAccount] | None = None):
        self._users = {user.email: user for user in users or []}

    def add(self, user: UserAccount) -> None:
        self._users[user.email] = user

    async def find_by_email(self, email: str) -> UserAccount | None:
        return self._users.get(email)
