"""
Shared fixtures for integration tests.

Integration tests drive the real HTTP transport, retry loop and
reconciliation against an in-process exercise catalog mounted through
httpx.MockTransport, so no network or docker services are needed.
"""

from __future__ import annotations

import os
import re

import httpx
import pytest

from src.routine_service.config import ExerciseCatalogConfig

_ITEM_PATH = re.compile(r"/entities/(\d+)")

CATALOG = [
    {"id": 3, "name": "Squat", "description": "Barbell back squat",
     "videoPath": "/uploads/squat.mp4", "aliases": ["back squat"]},
    {"id": 5, "name": "Bench Press", "description": "Flat barbell bench",
     "videoPath": None, "aliases": []},
    {"id": 7, "name": "Deadlift", "description": None,
     "videoPath": "https://videos.example.com/deadlift.mp4", "aliases": "conventional, pull"},
]


def pytest_configure(config):
    os.environ["ROUTINE_TELEMETRY_ENABLED"] = "false"


class FakeCatalog:
    """
    Minimal exercise catalog speaking the batch/item HTTP contract.

    `throttle_next(n)` makes the next n lookups answer 429.
    """

    def __init__(self, exercises: list[dict]):
        self.exercises = {e["id"]: e for e in exercises}
        self.requests: list[httpx.Request] = []
        self.retry_after: str | None = None
        self.fail_with: int | None = None
        self._throttle_remaining = 0
        self.transport = httpx.MockTransport(self.handle)

    def throttle_next(self, count: int, retry_after: str | None = None) -> None:
        self._throttle_remaining = count
        self.retry_after = retry_after

    @property
    def lookups(self) -> list[httpx.Request]:
        return [r for r in self.requests if r.url.path != "/health"]

    def handle(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)

        if request.url.path == "/health":
            return httpx.Response(200, json={"status": "ok"})

        if self.fail_with is not None:
            return httpx.Response(self.fail_with, json={"error": "catalog unavailable"})

        if self._throttle_remaining > 0:
            self._throttle_remaining -= 1
            headers = {"Retry-After": self.retry_after} if self.retry_after is not None else {}
            return httpx.Response(429, headers=headers, json={"error": "Too many requests"})

        if request.url.path == "/entities/batch":
            ids = [int(i) for i in request.url.params["ids"].split(",")]
            found = [self.exercises[i] for i in ids if i in self.exercises]
            missing = [i for i in ids if i not in self.exercises]
            return httpx.Response(
                200, json={"data": {"entities": found, "missingIdentifiers": missing}}
            )

        match = _ITEM_PATH.fullmatch(request.url.path)
        if match:
            exercise = self.exercises.get(int(match.group(1)))
            if exercise is None:
                return httpx.Response(404, json={"error": "Exercise not found"})
            return httpx.Response(200, json={"data": exercise})

        return httpx.Response(404, json={"error": "Not found"})


@pytest.fixture
def catalog() -> FakeCatalog:
    return FakeCatalog(CATALOG)


@pytest.fixture
def config() -> ExerciseCatalogConfig:
    return ExerciseCatalogConfig(
        url="http://exercise-service:3002",
        max_attempts=3,
        backoff_base_delay=0.001,
    )
