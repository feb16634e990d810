"""
Routine Service Configuration

Settings for reaching the exercise catalog, using pydantic-settings for
environment variable support.
"""

from __future__ import annotations

from typing import Literal

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class ExerciseCatalogConfig(BaseSettings):
    """
    Configuration for the exercise catalog client.

    Reads from environment variables with the EXERCISE_SERVICE_ prefix,
    e.g. EXERCISE_SERVICE_URL. Instances are immutable and injected into the
    resolution layer at construction.
    """

    model_config = SettingsConfigDict(
        env_prefix="EXERCISE_SERVICE_",
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
        frozen=True,
    )

    # Catalog location
    url: str = Field(
        default="http://localhost:3002",
        description="Base URL of the exercise catalog service",
    )
    api_key: str | None = Field(
        default=None,
        description="Service token sent as a Bearer Authorization header",
    )
    batch_path: str = Field(
        default="/entities/batch",
        description="Batch lookup endpoint, takes ?ids=1,2,3",
    )
    item_path: str = Field(
        default="/entities/{id}",
        description="Single exercise endpoint, {id} is substituted",
    )
    health_path: str = Field(
        default="/health",
        description="Liveness endpoint of the catalog",
    )

    # HTTP
    timeout_seconds: float = Field(
        default=5.0,
        gt=0,
        description="Timeout for a single catalog call",
    )
    max_connections: int = Field(
        default=20,
        ge=1,
        description="Size of the pooled connection limit to the catalog",
    )

    # Retry
    max_attempts: int = Field(
        default=3,
        ge=0,
        description="Retries after the first attempt when the catalog rate limits",
    )
    backoff_base_delay: float = Field(
        default=0.2,
        ge=0,
        description="Base backoff in seconds, doubled per attempt",
    )
    deadline_seconds: float | None = Field(
        default=None,
        gt=0,
        description="Overall deadline for one resolution, including backoff",
    )

    # Transport
    transport_mode: Literal["batch", "fanout"] = Field(
        default="batch",
        description="batch: one call per resolution; fanout: one call per exercise",
    )
    fanout_concurrency: int = Field(
        default=8,
        ge=1,
        description="Concurrent single lookups in fanout mode",
    )

    # Logging
    log_level: str = Field(
        default="INFO",
        description="Logging level",
    )


def load_config() -> ExerciseCatalogConfig:
    """Load configuration from environment."""
    return ExerciseCatalogConfig()
