"""
Exercise Service Factory

Builds an ExerciseService wired to the configured exercise catalog.
"""

from __future__ import annotations

import logging

import httpx

from src.common.resilience import BackoffPolicy
from src.routine_service.config import ExerciseCatalogConfig, load_config
from src.routine_service.resolution.fanout import FanOutExerciseTransport
from src.routine_service.resolution.protocols import ExerciseTransport
from src.routine_service.resolution.resolver import BatchResolver
from src.routine_service.resolution.service import ExerciseService
from src.routine_service.resolution.transport import HttpExerciseTransport

logger = logging.getLogger(__name__)


def create_transport(
    config: ExerciseCatalogConfig,
    http_transport: httpx.AsyncBaseTransport | None = None,
) -> ExerciseTransport:
    """
    Create the catalog transport selected by `transport_mode`.

    Args:
        config: Catalog configuration
        http_transport: Optional httpx transport to mount under the client
    """
    http = HttpExerciseTransport(
        base_url=config.url,
        api_key=config.api_key,
        timeout_seconds=config.timeout_seconds,
        max_connections=config.max_connections,
        batch_path=config.batch_path,
        item_path=config.item_path,
        health_path=config.health_path,
        transport=http_transport,
    )
    if config.transport_mode == "fanout":
        logger.info(
            f"Using fan-out exercise lookups against {config.url} "
            f"(concurrency={config.fanout_concurrency})"
        )
        return FanOutExerciseTransport(http, concurrency=config.fanout_concurrency)

    logger.info(f"Using batch exercise lookups against {config.url}")
    return http


def create_exercise_service(
    config: ExerciseCatalogConfig | None = None,
    http_transport: httpx.AsyncBaseTransport | None = None,
) -> ExerciseService:
    """
    Create an ExerciseService from configuration.

    Args:
        config: Catalog configuration (loaded from the environment if omitted)
        http_transport: Optional httpx transport to mount under the client

    Returns:
        ExerciseService; close it (or use `async with`) to release connections
    """
    config = config or load_config()
    resolver = BatchResolver(
        create_transport(config, http_transport),
        max_attempts=config.max_attempts,
        backoff=BackoffPolicy(base_delay=config.backoff_base_delay),
    )
    return ExerciseService(resolver, deadline_seconds=config.deadline_seconds)
