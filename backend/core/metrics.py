"""
Operational counters for the image edit endpoint.

Usage-record write failures never fail a request, so they are counted here
and exposed through the health endpoint for monitoring.
"""

from threading import Lock
from typing import Dict


class UsageMetrics:
    """Thread-safe counters for request outcomes and usage-record writes."""

    def __init__(self):
        self._lock = Lock()
        self._counters: Dict[str, int] = {
            "requests_succeeded": 0,
            "requests_failed": 0,
            "requests_rejected": 0,
            "usage_records_written": 0,
            "usage_record_failures": 0,
        }

    def increment(self, name: str, amount: int = 1) -> None:
        """
        Increase a counter.

        Args:
            name: Counter name, created on first use
            amount: Value to add
        """
        with self._lock:
            self._counters[name] = self._counters.get(name, 0) + amount

    def get(self, name: str) -> int:
        with self._lock:
            return self._counters.get(name, 0)

    def snapshot(self) -> Dict[str, int]:
        """
        Get a copy of all counters for monitoring.

        Returns:
            Dictionary of counter name to value
        """
        with self._lock:
            return dict(self._counters)

    def reset(self) -> None:
        with self._lock:
            for key in self._counters:
                self._counters[key] = 0


# Process-wide instance used by the API layer
usage_metrics = UsageMetrics()
