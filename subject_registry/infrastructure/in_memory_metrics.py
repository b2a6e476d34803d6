"""In-memory metrics implementation following hexagonal architecture.

Stores counters, gauges and timing summaries in process memory. Depends
only on the metrics port.
"""

import time
from collections import defaultdict
from collections.abc import Iterator
from contextlib import contextmanager
from typing import Any

from ..ports.metrics import MetricsPort


class MetricsSummary:
    """Summary statistics for a recorded metric."""

    def __init__(self) -> None:
        self.count: int = 0
        self.total: float = 0.0
        self.min: float = float("inf")
        self.max: float = float("-inf")

    def add(self, value: float) -> None:
        """Add a value to the summary."""
        self.count += 1
        self.total += value
        self.min = min(self.min, value)
        self.max = max(self.max, value)

    @property
    def average(self) -> float:
        return self.total / self.count if self.count > 0 else 0.0

    def to_dict(self) -> dict[str, float]:
        return {
            "count": self.count,
            "average": round(self.average, 2),
            "min": round(self.min, 2) if self.count > 0 else 0,
            "max": round(self.max, 2) if self.count > 0 else 0,
        }


class InMemoryMetrics(MetricsPort):
    """In-memory implementation of the MetricsPort."""

    def __init__(self) -> None:
        self._counters: dict[str, int] = defaultdict(int)
        self._gauges: dict[str, float] = {}
        self._summaries: dict[str, MetricsSummary] = defaultdict(MetricsSummary)
        self._start_time = time.time()

    def increment(self, name: str, value: int = 1) -> None:
        self._counters[name] += value

    def gauge(self, name: str, value: float) -> None:
        self._gauges[name] = value

    def record(self, name: str, value: float) -> None:
        self._summaries[name].add(value)

    @contextmanager
    def timer(self, name: str) -> Iterator[None]:
        """Record the wrapped block's duration in milliseconds."""
        start = time.perf_counter()
        try:
            yield
        finally:
            self.record(name, (time.perf_counter() - start) * 1000)

    def counter(self, name: str) -> int:
        """Current value of a counter (0 if never incremented)."""
        return self._counters.get(name, 0)

    def get_all(self) -> dict[str, Any]:
        return {
            "uptime_seconds": round(time.time() - self._start_time, 2),
            "counters": dict(self._counters),
            "gauges": dict(self._gauges),
            "summaries": {name: summary.to_dict() for name, summary in self._summaries.items()},
        }

    def reset(self) -> None:
        """Reset all metrics. Uptime keeps counting."""
        self._counters.clear()
        self._gauges.clear()
        self._summaries.clear()
