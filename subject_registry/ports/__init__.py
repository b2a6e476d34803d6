"""Ports layer - Interfaces for external collaborators."""

from .account_provisioning import AccountProvisioningPort
from .auth import PasswordHasherPort, TokenIssuerPort, UserDirectoryPort
from .event_publisher import ChangeEventPublisherPort
from .logger import LoggerPort
from .message_bus import MessageBusPort
from .metrics import MetricsPort
from .subject_store import SubjectStore

__all__ = [
    "AccountProvisioningPort",
    "ChangeEventPublisherPort",
    "LoggerPort",
    "MessageBusPort",
    "MetricsPort",
    "PasswordHasherPort",
    "SubjectStore",
    "TokenIssuerPort",
    "UserDirectoryPort",
]
