"""Application layer - Lifecycle orchestration and stream consumption."""

from .auth import AuthService
from .billing import BillingAccountService
from .consumer import TolerantEventConsumer
from .dtos import SubjectRequest, SubjectResponse
from .lifecycle import LifecycleConfig, SubjectLifecycleOrchestrator

__all__ = [
    "AuthService",
    "BillingAccountService",
    "LifecycleConfig",
    "SubjectLifecycleOrchestrator",
    "SubjectRequest",
    "SubjectResponse",
    "TolerantEventConsumer",
]
