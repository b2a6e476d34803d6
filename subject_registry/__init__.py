"""Subject registry - lifecycle orchestration for the canonical subject registry."""

from .application.consumer import TolerantEventConsumer
from .application.lifecycle import SubjectLifecycleOrchestrator

__all__ = ["SubjectLifecycleOrchestrator", "TolerantEventConsumer"]
__version__ = "0.1.0"
