"""
HTTP Transport for the Exercise Catalog

Issues single catalog calls over a pooled httpx client and classifies each
response. There is no retry logic here; see resolver.BatchResolver.
"""

from __future__ import annotations

import logging
import math
from collections.abc import Sequence
from typing import Any

import httpx
from pydantic import ValidationError

from src.common.telemetry import get_resolution_metrics, get_tracer
from src.routine_service.resolution.models import (
    BatchLookupEnvelope,
    LookupFailed,
    LookupSuccess,
    NotFound,
    RateLimited,
    SingleLookupEnvelope,
    TransportResult,
)

logger = logging.getLogger(__name__)
tracer = get_tracer(__name__)


def parse_retry_after(value: str | None) -> float | None:
    """
    Parse a Retry-After header given in seconds.

    HTTP-date values, negatives and garbage are treated as absent so the
    caller falls back to computed backoff.
    """
    if value is None:
        return None
    try:
        seconds = float(value.strip())
    except ValueError:
        return None
    if not math.isfinite(seconds) or seconds < 0:
        return None
    return seconds


def _outcome_label(result: TransportResult) -> str:
    if isinstance(result, LookupSuccess):
        return "success"
    if isinstance(result, RateLimited):
        return "rate_limited"
    if isinstance(result, NotFound):
        return "not_found"
    return "failed"


class HttpExerciseTransport:
    """
    Single-attempt exercise lookups against the catalog's HTTP API.

    Features:
    - Batch lookup: one GET for many ids
    - Single lookup with 404 mapped to NotFound
    - Connection pooling: one AsyncClient reused across calls
    - Timeout: prevents hanging on slow responses
    """

    def __init__(
        self,
        base_url: str,
        api_key: str | None = None,
        timeout_seconds: float = 5.0,
        max_connections: int = 20,
        batch_path: str = "/entities/batch",
        item_path: str = "/entities/{id}",
        health_path: str = "/health",
        transport: httpx.AsyncBaseTransport | None = None,
    ):
        """
        Initialize the catalog transport.

        Args:
            base_url: Base URL of the exercise catalog (e.g., "http://localhost:3002")
            api_key: Optional service token for the Authorization header
            timeout_seconds: Timeout for one catalog call
            max_connections: Pooled connection limit
            batch_path: Batch lookup endpoint
            item_path: Single lookup endpoint containing "{id}"
            health_path: Liveness endpoint
            transport: Optional httpx transport (used to mount an in-process catalog)
        """
        self._base_url = base_url.rstrip("/")
        self._api_key = api_key
        self._timeout_seconds = timeout_seconds
        self._max_connections = max_connections
        self._batch_path = batch_path
        self._item_path = item_path
        self._health_path = health_path
        self._transport = transport
        self._metrics = get_resolution_metrics()

        # HTTP client (created lazily)
        self._client: httpx.AsyncClient | None = None

    async def _get_client(self) -> httpx.AsyncClient:
        """Get or create the pooled HTTP client."""
        if self._client is None:
            headers = {"Accept": "application/json"}
            if self._api_key:
                headers["Authorization"] = f"Bearer {self._api_key}"

            self._client = httpx.AsyncClient(
                base_url=self._base_url,
                headers=headers,
                timeout=httpx.Timeout(self._timeout_seconds),
                limits=httpx.Limits(max_connections=self._max_connections),
                transport=self._transport,
            )
        return self._client

    async def close(self) -> None:
        """Close the HTTP client."""
        if self._client:
            await self._client.aclose()
            self._client = None

    async def __aenter__(self) -> HttpExerciseTransport:
        return self

    async def __aexit__(self, *exc_info: Any) -> None:
        await self.close()

    async def lookup_batch(self, exercise_ids: Sequence[int]) -> TransportResult:
        """
        Look up several exercises with one batch call.

        Calls GET {batch_path}?ids=1,2,3.

        Args:
            exercise_ids: Non-empty, duplicate-free exercise ids

        Returns:
            LookupSuccess, RateLimited or LookupFailed
        """
        if not exercise_ids:
            raise ValueError("lookup_batch requires at least one exercise id")

        with tracer.start_as_current_span("exercise.transport.lookup_batch") as span:
            span.set_attribute("exercise.batch_size", len(exercise_ids))

            result = await self._get(
                self._batch_path,
                params={"ids": ",".join(str(i) for i in exercise_ids)},
            )
            if isinstance(result, httpx.Response):
                result = self._classify_batch(result)

            span.set_attribute("exercise.outcome", _outcome_label(result))
            self._metrics.record_upstream_call(_outcome_label(result), "batch")
            return result

    async def lookup_one(self, exercise_id: int) -> TransportResult:
        """
        Look up a single exercise.

        Calls GET {item_path}; a 404 is reported as NotFound.
        """
        with tracer.start_as_current_span("exercise.transport.lookup_one") as span:
            span.set_attribute("exercise.id", exercise_id)

            result = await self._get(self._item_path.format(id=exercise_id))
            if isinstance(result, httpx.Response):
                result = self._classify_single(result, exercise_id)

            span.set_attribute("exercise.outcome", _outcome_label(result))
            self._metrics.record_upstream_call(_outcome_label(result), "single")
            return result

    async def health_check(self) -> bool:
        """
        Check if the exercise catalog is healthy.

        Returns:
            True if the catalog answered the health endpoint with 200
        """
        try:
            client = await self._get_client()
            response = await client.get(self._health_path)
            return response.status_code == 200
        except httpx.HTTPError as e:
            logger.debug(f"Exercise catalog health check failed: {e}")
            return False

    async def _get(
        self, path: str, params: dict[str, str] | None = None
    ) -> httpx.Response | LookupFailed:
        """Issue one GET; transport-level errors become LookupFailed."""
        client = await self._get_client()
        try:
            return await client.get(path, params=params)
        except httpx.HTTPError as e:
            logger.warning(f"Exercise catalog unreachable at {path}: {e!r}")
            return LookupFailed(reason=f"{type(e).__name__}: {e}", cause=e)

    def _classify_common(self, response: httpx.Response) -> TransportResult | None:
        """Shared handling for 429 and unexpected statuses."""
        if response.status_code == 429:
            retry_after = parse_retry_after(response.headers.get("Retry-After"))
            logger.debug(f"Exercise catalog rate limited, Retry-After={retry_after}")
            return RateLimited(retry_after=retry_after)

        if response.status_code != 200:
            return LookupFailed(
                reason="unexpected status from exercise catalog",
                status_code=response.status_code,
            )
        return None

    def _classify_batch(self, response: httpx.Response) -> TransportResult:
        outcome = self._classify_common(response)
        if outcome is not None:
            return outcome

        try:
            envelope = BatchLookupEnvelope.model_validate_json(response.content)
        except ValidationError as e:
            logger.warning(f"Malformed batch response from exercise catalog: {e}")
            return LookupFailed(reason="malformed batch response", status_code=200, cause=e)

        return LookupSuccess(
            exercises=tuple(envelope.data.exercises),
            missing_ids=tuple(envelope.data.missing_ids),
        )

    def _classify_single(self, response: httpx.Response, exercise_id: int) -> TransportResult:
        if response.status_code == 404:
            return NotFound(exercise_id=exercise_id)

        outcome = self._classify_common(response)
        if outcome is not None:
            return outcome

        try:
            envelope = SingleLookupEnvelope.model_validate_json(response.content)
        except ValidationError as e:
            logger.warning(f"Malformed response for exercise {exercise_id}: {e}")
            return LookupFailed(reason="malformed exercise response", status_code=200, cause=e)

        return LookupSuccess(exercises=(envelope.data,))
