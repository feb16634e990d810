"""Tests for configuration and the exercise service factory."""

from __future__ import annotations

import pytest
from pydantic import ValidationError

from src.routine_service.config import ExerciseCatalogConfig, load_config
from src.routine_service.resolution.factory import create_exercise_service, create_transport
from src.routine_service.resolution.fanout import FanOutExerciseTransport
from src.routine_service.resolution.service import ExerciseService
from src.routine_service.resolution.transport import HttpExerciseTransport


@pytest.fixture(autouse=True)
def _clean_env(monkeypatch: pytest.MonkeyPatch) -> None:
    for name in (
        "EXERCISE_SERVICE_URL",
        "EXERCISE_SERVICE_MAX_ATTEMPTS",
        "EXERCISE_SERVICE_BACKOFF_BASE_DELAY",
        "EXERCISE_SERVICE_TRANSPORT_MODE",
        "EXERCISE_SERVICE_DEADLINE_SECONDS",
    ):
        monkeypatch.delenv(name, raising=False)


class TestExerciseCatalogConfig:
    def test_defaults(self) -> None:
        config = ExerciseCatalogConfig()

        assert config.url == "http://localhost:3002"
        assert config.max_attempts == 3
        assert config.backoff_base_delay == 0.2
        assert config.deadline_seconds is None
        assert config.transport_mode == "batch"
        assert config.batch_path == "/entities/batch"

    def test_reads_environment(self, monkeypatch: pytest.MonkeyPatch) -> None:
        monkeypatch.setenv("EXERCISE_SERVICE_URL", "http://exercise-service:3002")
        monkeypatch.setenv("EXERCISE_SERVICE_MAX_ATTEMPTS", "5")
        monkeypatch.setenv("EXERCISE_SERVICE_BACKOFF_BASE_DELAY", "0.5")
        monkeypatch.setenv("EXERCISE_SERVICE_TRANSPORT_MODE", "fanout")

        config = load_config()

        assert config.url == "http://exercise-service:3002"
        assert config.max_attempts == 5
        assert config.backoff_base_delay == 0.5
        assert config.transport_mode == "fanout"

    def test_immutable(self) -> None:
        config = ExerciseCatalogConfig()

        with pytest.raises(ValidationError):
            config.max_attempts = 10  # type: ignore[misc]

    @pytest.mark.parametrize(
        "overrides",
        [
            {"max_attempts": -1},
            {"backoff_base_delay": -0.1},
            {"transport_mode": "grpc"},
            {"fanout_concurrency": 0},
            {"deadline_seconds": 0},
        ],
    )
    def test_rejects_invalid_values(self, overrides) -> None:
        with pytest.raises(ValidationError):
            ExerciseCatalogConfig(**overrides)


class TestFactory:
    async def test_batch_mode(self) -> None:
        config = ExerciseCatalogConfig(url="http://catalog:3002", max_attempts=2)

        service = create_exercise_service(config)

        assert isinstance(service, ExerciseService)
        assert isinstance(service._resolver.transport, HttpExerciseTransport)
        assert service._resolver.max_attempts == 2
        await service.close()

    async def test_fanout_mode(self) -> None:
        config = ExerciseCatalogConfig(transport_mode="fanout", fanout_concurrency=2)

        transport = create_transport(config)

        assert isinstance(transport, FanOutExerciseTransport)
        await transport.close()

    async def test_deadline_passed_through(self) -> None:
        service = create_exercise_service(ExerciseCatalogConfig(deadline_seconds=1.5))

        assert service._deadline_seconds == 1.5
        await service.close()

    async def test_loads_config_when_omitted(self, monkeypatch: pytest.MonkeyPatch) -> None:
        monkeypatch.setenv("EXERCISE_SERVICE_MAX_ATTEMPTS", "1")

        service = create_exercise_service()

        assert service._resolver.max_attempts == 1
        await service.close()
