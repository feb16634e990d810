"""
End-to-end tests for exercise resolution over HTTP.

Runs the full ExerciseService -> BatchResolver -> HttpExerciseTransport
round trip against the in-process catalog from conftest.
"""

from __future__ import annotations

import pytest

from src.routine_service.resolution import (
    FatalLookupError,
    RetriesExhaustedError,
    create_exercise_service,
)

pytestmark = pytest.mark.integration


class TestBatchMode:
    async def test_verify_all_found(self, catalog, config) -> None:
        async with create_exercise_service(config, http_transport=catalog.transport) as service:
            result = await service.verify_all([3, 5, 5, 7])

        assert result.all_valid is True
        assert len(catalog.lookups) == 1
        assert catalog.lookups[0].url.params["ids"] == "3,5,7"

    async def test_fetch_all_partial_miss(self, catalog, config) -> None:
        async with create_exercise_service(config, http_transport=catalog.transport) as service:
            result = await service.fetch_all([7, 9, 3])

        assert [e.name for e in result.exercises] == ["Deadlift", "Squat"]
        assert result.exercises[0].aliases == ("conventional", "pull")
        assert result.missing == [9]

    async def test_throttled_then_served(self, catalog, config) -> None:
        catalog.throttle_next(2, retry_after="0")

        async with create_exercise_service(config, http_transport=catalog.transport) as service:
            result = await service.verify_all([3, 9])

        assert result.invalid == [9]
        assert len(catalog.lookups) == 3

    async def test_sustained_throttling_exhausts(self, catalog, config) -> None:
        catalog.throttle_next(100)

        async with create_exercise_service(config, http_transport=catalog.transport) as service:
            with pytest.raises(RetriesExhaustedError):
                await service.verify_all([3])

        assert len(catalog.lookups) == 4

    async def test_upstream_error_is_fatal(self, catalog, config) -> None:
        catalog.fail_with = 503

        async with create_exercise_service(config, http_transport=catalog.transport) as service:
            with pytest.raises(FatalLookupError) as exc_info:
                await service.fetch_all([3])

        assert exc_info.value.status_code == 503
        assert len(catalog.lookups) == 1

    async def test_single_lookup(self, catalog, config) -> None:
        async with create_exercise_service(config, http_transport=catalog.transport) as service:
            squat = await service.get_one(3)
            unknown = await service.get_one(404)

        assert squat is not None
        assert squat.video_path == "/uploads/squat.mp4"
        assert unknown is None

    async def test_health(self, catalog, config) -> None:
        async with create_exercise_service(config, http_transport=catalog.transport) as service:
            assert await service.health_check() is True


class TestFanOutMode:
    async def test_fetch_all_fans_out(self, catalog, config) -> None:
        fanout = config.model_copy(update={"transport_mode": "fanout"})

        async with create_exercise_service(fanout, http_transport=catalog.transport) as service:
            result = await service.fetch_all([5, 3, 5, 9], keep_duplicates=True)

        assert [e.id for e in result.exercises] == [5, 3, 5]
        assert result.missing == [9]
        assert sorted(r.url.path for r in catalog.lookups) == [
            "/entities/3",
            "/entities/5",
            "/entities/9",
        ]

    async def test_throttled_fanout_retries_whole_batch(self, catalog, config) -> None:
        fanout = config.model_copy(update={"transport_mode": "fanout"})
        catalog.throttle_next(1, retry_after="0")

        async with create_exercise_service(fanout, http_transport=catalog.transport) as service:
            result = await service.verify_all([3, 5])

        assert result.all_valid is True
        assert len(catalog.lookups) == 4
