"""
Batch Resolver

The only place exercise lookups are retried. Only explicit rate limiting
from the catalog is retried; every other failure surfaces immediately so a
real outage is never disguised as a transient one.
"""

from __future__ import annotations

import asyncio
import logging
from collections.abc import Awaitable, Callable, Sequence

from src.common.resilience import BackoffPolicy
from src.common.resilience.backoff import is_valid_hint
from src.common.telemetry import get_resolution_metrics, get_tracer
from src.routine_service.resolution.errors import FatalLookupError, RetriesExhaustedError
from src.routine_service.resolution.models import (
    Exercise,
    LookupFailed,
    LookupSuccess,
    NotFound,
    RateLimited,
    TransportResult,
)
from src.routine_service.resolution.protocols import ExerciseTransport

logger = logging.getLogger(__name__)
tracer = get_tracer(__name__)

DEFAULT_MAX_ATTEMPTS = 3


class BatchResolver:
    """
    Runs catalog lookups with bounded retry on rate limiting.

    Attempts are numbered 0..max_attempts, so a fully throttled call makes
    max_attempts + 1 catalog calls before giving up. Attempts never overlap;
    the next one starts only after the previous result is known.
    """

    def __init__(
        self,
        transport: ExerciseTransport,
        max_attempts: int = DEFAULT_MAX_ATTEMPTS,
        backoff: BackoffPolicy | None = None,
        sleep: Callable[[float], Awaitable[None]] = asyncio.sleep,
    ):
        """
        Initialize the resolver.

        Args:
            transport: Single-attempt catalog transport
            max_attempts: Retries allowed after the first throttled attempt
            backoff: Backoff policy (defaults to 200ms doubling)
            sleep: Awaitable used to wait between attempts
        """
        if max_attempts < 0:
            raise ValueError(f"max_attempts must be non-negative, got {max_attempts}")
        self._transport = transport
        self._max_attempts = max_attempts
        self._backoff = backoff or BackoffPolicy()
        self._sleep = sleep
        self._metrics = get_resolution_metrics()

    @property
    def transport(self) -> ExerciseTransport:
        return self._transport

    @property
    def max_attempts(self) -> int:
        return self._max_attempts

    async def resolve(self, exercise_ids: Sequence[int]) -> LookupSuccess:
        """
        Look up a batch of exercises, retrying while rate limited.

        Args:
            exercise_ids: Non-empty, duplicate-free exercise ids

        Returns:
            The catalog's answer for the batch

        Raises:
            RetriesExhaustedError: Still rate limited after the last attempt
            FatalLookupError: Any other lookup failure
        """
        with tracer.start_as_current_span("exercise.resolver.resolve") as span:
            span.set_attribute("exercise.batch_size", len(exercise_ids))

            result = await self._run_with_retries(
                lambda: self._transport.lookup_batch(exercise_ids),
                label=f"batch of {len(exercise_ids)}",
            )
            if isinstance(result, NotFound):
                return LookupSuccess(missing_ids=tuple(exercise_ids))
            return result

    async def resolve_one(self, exercise_id: int) -> Exercise | None:
        """
        Look up a single exercise, retrying while rate limited.

        Returns:
            The exercise, or None if the catalog doesn't know it
        """
        result = await self._run_with_retries(
            lambda: self._transport.lookup_one(exercise_id),
            label=f"exercise {exercise_id}",
        )
        if isinstance(result, NotFound):
            return None
        for exercise in result.exercises:
            if exercise.id == exercise_id:
                return exercise
        return None

    async def _run_with_retries(
        self,
        attempt_call: Callable[[], Awaitable[TransportResult]],
        label: str,
    ) -> LookupSuccess | NotFound:
        for attempt in range(self._max_attempts + 1):
            try:
                result = await attempt_call()
            except asyncio.CancelledError:
                logger.info(f"Lookup for {label} cancelled on attempt {attempt}")
                raise

            if isinstance(result, (LookupSuccess, NotFound)):
                if attempt:
                    logger.info(f"Lookup for {label} succeeded on attempt {attempt}")
                return result

            if isinstance(result, LookupFailed):
                logger.warning(f"Lookup for {label} failed: {result.reason}")
                self._metrics.record_failure("fatal")
                raise FatalLookupError(result.reason, result.status_code) from result.cause

            if not isinstance(result, RateLimited):
                raise TypeError(f"Unexpected transport result: {result!r}")

            if attempt == self._max_attempts:
                logger.warning(
                    f"Lookup for {label} still rate limited after {attempt + 1} attempts"
                )
                self._metrics.record_failure("retries_exhausted")
                raise RetriesExhaustedError(attempt + 1, result.retry_after)

            hinted = is_valid_hint(result.retry_after)
            delay = self._backoff.next_delay(attempt, result.retry_after)
            logger.info(
                f"Lookup for {label} rate limited on attempt {attempt}, "
                f"retrying in {delay:.2f}s ({'server hint' if hinted else 'backoff'})"
            )
            self._metrics.record_retry(delay, hinted)

            try:
                await self._sleep(delay)
            except asyncio.CancelledError:
                logger.info(f"Lookup for {label} cancelled during backoff")
                raise

        # Should not reach here, but satisfy type checker
        raise RuntimeError("Retry logic error")
