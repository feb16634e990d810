"""
Exercise Transport Protocol

A transport performs exactly one attempt against the exercise catalog and
classifies the outcome. Retrying is the resolver's job, never the
transport's.
"""

from __future__ import annotations

from collections.abc import Sequence
from typing import Protocol, runtime_checkable

from src.routine_service.resolution.models import TransportResult


@runtime_checkable
class ExerciseTransport(Protocol):
    """Protocol for single-attempt exercise catalog lookups."""

    async def lookup_batch(self, exercise_ids: Sequence[int]) -> TransportResult:
        """
        Look up several exercises in one attempt.

        Args:
            exercise_ids: Non-empty, duplicate-free exercise ids

        Returns:
            LookupSuccess, RateLimited or LookupFailed
        """
        ...

    async def lookup_one(self, exercise_id: int) -> TransportResult:
        """
        Look up a single exercise in one attempt.

        Returns:
            LookupSuccess holding one exercise, NotFound, RateLimited or LookupFailed
        """
        ...

    async def health_check(self) -> bool:
        """Check whether the catalog is reachable and healthy."""
        ...

    async def close(self) -> None:
        """Release pooled connections."""
        ...
