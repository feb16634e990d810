"""
Fan-out Transport

Resolves a batch as concurrent single-exercise lookups for catalogs (or
deployments) without the batch endpoint. Sits behind the same
TransportResult contract as the batch transport, so the resolver retries
it the same way.
"""

from __future__ import annotations

import asyncio
import logging
from collections.abc import Sequence
from typing import Any

from src.routine_service.resolution.models import (
    LookupFailed,
    LookupSuccess,
    NotFound,
    RateLimited,
    TransportResult,
)
from src.routine_service.resolution.protocols import ExerciseTransport

logger = logging.getLogger(__name__)


def merge_results(exercise_ids: Sequence[int], results: Sequence[TransportResult]) -> TransportResult:
    """
    Fold per-exercise results into one batch result.

    Precedence: the first failure wins, then any rate limit (carrying the
    longest hint any call supplied), otherwise a success listing the 404s
    as missing.
    """
    for result in results:
        if isinstance(result, LookupFailed):
            return result

    limited = [r for r in results if isinstance(r, RateLimited)]
    if limited:
        hints = [r.retry_after for r in limited if r.retry_after is not None]
        return RateLimited(retry_after=max(hints) if hints else None)

    exercises = []
    missing = []
    for exercise_id, result in zip(exercise_ids, results):
        if isinstance(result, NotFound):
            missing.append(exercise_id)
        elif isinstance(result, LookupSuccess):
            exercises.extend(result.exercises)
            missing.extend(result.missing_ids)

    return LookupSuccess(exercises=tuple(exercises), missing_ids=tuple(missing))


class FanOutExerciseTransport:
    """Batch lookups issued as bounded-concurrency single lookups."""

    def __init__(self, inner: ExerciseTransport, concurrency: int = 8):
        if concurrency < 1:
            raise ValueError(f"concurrency must be at least 1, got {concurrency}")
        self._inner = inner
        self._concurrency = concurrency

    async def lookup_batch(self, exercise_ids: Sequence[int]) -> TransportResult:
        if not exercise_ids:
            raise ValueError("lookup_batch requires at least one exercise id")

        # Per call, so concurrent resolutions don't throttle each other
        semaphore = asyncio.Semaphore(self._concurrency)

        async def _lookup(exercise_id: int) -> TransportResult:
            async with semaphore:
                return await self._inner.lookup_one(exercise_id)

        results = await asyncio.gather(*(_lookup(i) for i in exercise_ids))
        merged = merge_results(exercise_ids, results)
        logger.debug(
            f"Fan-out of {len(exercise_ids)} lookups merged to {type(merged).__name__}"
        )
        return merged

    async def lookup_one(self, exercise_id: int) -> TransportResult:
        return await self._inner.lookup_one(exercise_id)

    async def health_check(self) -> bool:
        return await self._inner.health_check()

    async def close(self) -> None:
        await self._inner.close()

    async def __aenter__(self) -> FanOutExerciseTransport:
        return self

    async def __aexit__(self, *exc_info: Any) -> None:
        await self.close()
