"""
Exercise Service

Entry point used by routine and workout handlers to check and fetch the
exercises they reference. Deduplicates input, never sends an empty batch,
and leaves the policy for missing exercises to the caller.
"""

from __future__ import annotations

import asyncio
import logging
from collections.abc import Awaitable, Iterable
from typing import Any, TypeVar

from src.common.telemetry import add_span_attributes, trace_async
from src.routine_service.resolution.errors import ResolutionCancelledError
from src.routine_service.resolution.models import (
    Exercise,
    FetchResult,
    ResolutionOutcome,
    VerificationResult,
)
from src.routine_service.resolution.reconcile import reconcile, unique_ids
from src.routine_service.resolution.resolver import BatchResolver

logger = logging.getLogger(__name__)

T = TypeVar("T")


def _validate_ids(exercise_ids: Iterable[int]) -> list[int]:
    ids = list(exercise_ids)
    for exercise_id in ids:
        # bool is an int subclass, but True is never a meaningful exercise id
        if isinstance(exercise_id, bool) or not isinstance(exercise_id, int):
            raise ValueError(f"Exercise ids must be integers, got {exercise_id!r}")
        if exercise_id <= 0:
            raise ValueError(f"Exercise ids must be positive, got {exercise_id}")
    return ids


class ExerciseService:
    """
    Resolves exercise references against the exercise catalog.

    Holds no state between calls apart from the transport's connection pool,
    so one instance can serve many concurrent requests.

    Example:
        async with create_exercise_service(config) as exercises:
            check = await exercises.verify_all(routine.exercise_ids)
            if not check.all_valid:
                raise InvalidRoutine(check.invalid)
    """

    def __init__(self, resolver: BatchResolver, deadline_seconds: float | None = None):
        """
        Args:
            resolver: Retrying resolver over a catalog transport
            deadline_seconds: Default deadline for each call, backoff included
        """
        self._resolver = resolver
        self._deadline_seconds = deadline_seconds

    async def __aenter__(self) -> ExerciseService:
        return self

    async def __aexit__(self, *exc_info: Any) -> None:
        await self.close()

    async def close(self) -> None:
        """Release the transport's pooled connections."""
        await self._resolver.transport.close()

    async def health_check(self) -> bool:
        """Check whether the exercise catalog is healthy."""
        return await self._resolver.transport.health_check()

    async def resolve(
        self, exercise_ids: Iterable[int], timeout: float | None = None
    ) -> ResolutionOutcome:
        """
        Resolve exercise ids into found exercises and missing ids.

        Args:
            exercise_ids: Ids in caller order, duplicates allowed
            timeout: Deadline in seconds, overriding the configured one

        Returns:
            ResolutionOutcome over the unique ids

        Raises:
            RetriesExhaustedError: The catalog kept rate limiting
            FatalLookupError: The catalog failed
            ResolutionCancelledError: The deadline expired first
        """
        requested = _validate_ids(exercise_ids)
        wanted = unique_ids(requested)
        if not wanted:
            return ResolutionOutcome()

        add_span_attributes(
            {"exercise.requested": len(requested), "exercise.unique": len(wanted)}
        )
        success = await self._within_deadline(self._resolver.resolve(wanted), timeout)
        outcome = reconcile(requested, success)

        logger.debug(
            f"Resolved {len(outcome.resolved)}/{len(wanted)} exercises, "
            f"missing={list(outcome.missing)}"
        )
        return outcome

    @trace_async("exercise.service.verify_all")
    async def verify_all(
        self, exercise_ids: Iterable[int], timeout: float | None = None
    ) -> VerificationResult:
        """
        Check that every referenced exercise exists.

        Returns:
            VerificationResult; all_valid is True iff no id is invalid
        """
        outcome = await self.resolve(exercise_ids, timeout=timeout)
        invalid = list(outcome.missing)
        return VerificationResult(all_valid=not invalid, invalid=invalid)

    @trace_async("exercise.service.fetch_all")
    async def fetch_all(
        self,
        exercise_ids: Iterable[int],
        keep_duplicates: bool = False,
        timeout: float | None = None,
    ) -> FetchResult:
        """
        Fetch display data for the referenced exercises.

        Args:
            exercise_ids: Ids in caller order, duplicates allowed
            keep_duplicates: Repeat exercises as often as the caller listed them,
                e.g. for a routine that does the same exercise twice
            timeout: Deadline in seconds, overriding the configured one

        Returns:
            FetchResult with exercises in request order and the missing ids
        """
        requested = _validate_ids(exercise_ids)
        outcome = await self.resolve(requested, timeout=timeout)
        order = requested if keep_duplicates else unique_ids(requested)
        return FetchResult(exercises=outcome.exercises_for(order), missing=list(outcome.missing))

    async def get_one(self, exercise_id: int, timeout: float | None = None) -> Exercise | None:
        """Fetch one exercise, or None if the catalog doesn't know it."""
        (exercise_id,) = _validate_ids([exercise_id])
        return await self._within_deadline(self._resolver.resolve_one(exercise_id), timeout)

    async def verify_one(self, exercise_id: int, timeout: float | None = None) -> bool:
        """Check that one exercise exists."""
        return await self.get_one(exercise_id, timeout=timeout) is not None

    async def _within_deadline(self, call: Awaitable[T], timeout: float | None) -> T:
        deadline = timeout if timeout is not None else self._deadline_seconds
        if deadline is None:
            return await call

        try:
            return await asyncio.wait_for(call, deadline)
        except asyncio.TimeoutError as e:
            logger.warning(f"Exercise resolution abandoned after {deadline}s deadline")
            raise ResolutionCancelledError(deadline) from e
