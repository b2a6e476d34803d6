"""Domain layer - Core registry entities, errors and results."""

from .enums import AccountStatus, ChangeEventType, ErrorKind
from .exceptions import (
    AuthenticationError,
    DecodeError,
    DuplicateEmailError,
    ProvisioningError,
    PublishError,
    RegistryError,
    SerializationError,
    StorageError,
    SubjectNotFoundError,
    TokenValidationError,
)
from .models import ChangeEvent, ProvisionedAccount, Subject, UserAccount
from .results import Failure, OperationResult, Success

__all__ = [
    "AccountStatus",
    "AuthenticationError",
    "ChangeEvent",
    "ChangeEventType",
    "DecodeError",
    "DuplicateEmailError",
    "ErrorKind",
    "Failure",
    "OperationResult",
    "ProvisionedAccount",
    "ProvisioningError",
    "PublishError",
    "RegistryError",
    "SerializationError",
    "StorageError",
    "Subject",
    "SubjectNotFoundError",
    "Success",
    "TokenValidationError",
    "UserAccount",
]
