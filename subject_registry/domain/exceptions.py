"""Domain-specific exceptions following DDD principles."""


class RegistryError(Exception):
    """Base exception for all subject registry errors."""

    def __init__(self, message: str, details: dict | None = None):
        super().__init__(message)
        self.message = message
        self.details = details or {}


class DuplicateEmailError(RegistryError):
    """Raised when a write would give two live subjects the same email."""

    def __init__(self, email: str):
        super().__init__(f"Email '{email}' is already registered", details={"email": email})
        self.email = email


class SubjectNotFoundError(RegistryError):
    """Raised when a subject identifier has no matching record."""

    def __init__(self, subject_id: str):
        super().__init__(f"Subject '{subject_id}' not found", details={"subject_id": subject_id})
        self.subject_id = subject_id


class StorageError(RegistryError):
    """Subject store medium errors (connection loss, corrupt records)."""

    def __init__(self, message: str, operation: str | None = None):
        super().__init__(message)
        self.operation = operation
        if operation:
            self.details["operation"] = operation


class ProvisioningError(RegistryError):
    """Remote account provisioning failed, timed out or was rejected."""

    def __init__(self, message: str, subject_id: str | None = None, timed_out: bool = False):
        super().__init__(message)
        self.subject_id = subject_id
        self.timed_out = timed_out
        if subject_id:
            self.details["subject_id"] = subject_id
        self.details["timed_out"] = timed_out


class PublishError(RegistryError):
    """Change event emission failed or timed out."""

    def __init__(self, message: str, subject_id: str | None = None):
        super().__init__(message)
        self.subject_id = subject_id
        if subject_id:
            self.details["subject_id"] = subject_id


class SerializationError(RegistryError):
    """Serialization/deserialization errors."""

    pass


class DecodeError(SerializationError):
    """An inbound stream payload is not a valid change event."""

    def __init__(self, message: str, payload_size: int | None = None):
        super().__init__(message)
        self.payload_size = payload_size
        if payload_size is not None:
            self.details["payload_size"] = payload_size


class AuthenticationError(RegistryError):
    """Token issuing or verification errors."""

    pass


class TokenValidationError(AuthenticationError):
    """Raised by token issuers for expired, malformed or forged tokens."""

    pass
