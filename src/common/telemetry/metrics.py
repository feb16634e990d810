"""
Exercise Resolution Metrics.

Counters for catalog lookups, retries and failed resolutions.
"""

from __future__ import annotations

import logging

from src.common.telemetry.setup import get_meter

logger = logging.getLogger(__name__)


class ResolutionMetrics:
    """
    Metrics for exercise reference resolution.

    Tracks:
    - Upstream catalog calls by outcome (success, rate_limited, not_found, failed)
    - Retries scheduled after rate limiting
    - Resolutions that ended in an error, by reason
    """

    def __init__(self, meter_name: str = "routine-service.resolution"):
        self._meter = get_meter(meter_name)

        self._upstream_calls = self._meter.create_counter(
            name="exercise_catalog_calls",
            description="Calls made to the exercise catalog",
            unit="1",
        )
        self._retries = self._meter.create_counter(
            name="exercise_catalog_retries",
            description="Retries scheduled after the catalog throttled a call",
            unit="1",
        )
        self._backoff_seconds = self._meter.create_histogram(
            name="exercise_catalog_backoff_seconds",
            description="Backoff waited before a retry",
            unit="s",
        )
        self._failures = self._meter.create_counter(
            name="exercise_resolution_failures",
            description="Resolutions that ended in an error",
            unit="1",
        )

    def record_upstream_call(self, outcome: str, shape: str) -> None:
        """Record one catalog call and how it was classified."""
        self._upstream_calls.add(1, {"outcome": outcome, "shape": shape})

    def record_retry(self, delay: float, hinted: bool) -> None:
        """Record a scheduled retry and its backoff."""
        attrs = {"hinted": hinted}
        self._retries.add(1, attrs)
        self._backoff_seconds.record(delay, attrs)

    def record_failure(self, reason: str) -> None:
        """Record a resolution that raised instead of returning."""
        self._failures.add(1, {"reason": reason})


_resolution_metrics: ResolutionMetrics | None = None


def get_resolution_metrics() -> ResolutionMetrics:
    """Get the shared ResolutionMetrics instance."""
    global _resolution_metrics
    if _resolution_metrics is None:
        _resolution_metrics = ResolutionMetrics()
    return _resolution_metrics
