"""Metrics port - Abstract interface for metrics collection.

Lets the orchestrator and the consumer count outcomes without depending
on a specific metrics backend.
"""

from abc import ABC, abstractmethod
from contextlib import AbstractContextManager
from typing import Any


class MetricsPort(ABC):
    """Abstract interface for metrics collection."""

    @abstractmethod
    def increment(self, name: str, value: int = 1) -> None:
        """Increment a counter metric.

        Args:
            name: The metric name (e.g., "subjects.created")
            value: The increment value (default: 1)
        """
        ...

    @abstractmethod
    def gauge(self, name: str, value: float) -> None:
        """Set a gauge metric."""
        ...

    @abstractmethod
    def record(self, name: str, value: float) -> None:
        """Record a value for summary statistics."""
        ...

    @abstractmethod
    def timer(self, name: str) -> AbstractContextManager[Any]:
        """Create a context manager recording an operation's duration in ms."""
        ...

    @abstractmethod
    def get_all(self) -> dict[str, Any]:
        """Get all metrics as a dictionary."""
        ...

    @abstractmethod
    def reset(self) -> None:
        """Reset all metrics."""
        ...
