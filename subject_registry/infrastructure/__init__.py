"""Infrastructure layer - Concrete implementations of ports.

Wiring lives in ``infrastructure.factories``, which imports the application
layer and is therefore not re-exported here.
"""

from .config import AuthConfig, LogContext, NATSConnectionConfig, SubjectPatterns
from .in_memory_metrics import InMemoryMetrics
from .in_memory_publisher import InMemoryChangeEventPublisher
from .in_memory_store import InMemorySubjectStore
from .nats_adapter import NATSAdapter, NATSNotConnectedError
from .nats_event_publisher import NATSChangeEventPublisher
from .nats_kv_store import NATSKVSubjectStore
from .nats_provisioning import (
    LocalAccountProvisioningClient,
    NATSAccountProvisioningClient,
    bind_billing_responder,
)
from .security import BcryptPasswordHasher, InMemoryUserDirectory, JoseTokenIssuer
from .serialization import decode_change_event, encode_change_event
from .simple_logger import SimpleLogger

__all__ = [
    "AuthConfig",
    "BcryptPasswordHasher",
    "InMemoryChangeEventPublisher",
    "InMemoryMetrics",
    "InMemorySubjectStore",
    "InMemoryUserDirectory",
    "JoseTokenIssuer",
    "LocalAccountProvisioningClient",
    "LogContext",
    "NATSAccountProvisioningClient",
    "NATSAdapter",
    "NATSChangeEventPublisher",
    "NATSConnectionConfig",
    "NATSKVSubjectStore",
    "NATSNotConnectedError",
    "SimpleLogger",
    "SubjectPatterns",
    "bind_billing_responder",
    "decode_change_event",
    "encode_change_event",
]
