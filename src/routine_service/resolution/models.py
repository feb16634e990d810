"""
Exercise Resolution Models

Wire models for the exercise catalog's responses, the classified outcome of
a single catalog call, and the result shapes handed back to request handlers.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Union

from pydantic import AliasChoices, BaseModel, ConfigDict, Field, field_validator


class Exercise(BaseModel):
    """
    An exercise as owned by the catalog service.

    Read-only reference data; fields the catalog adds beyond these are kept
    as extra attributes so handlers can render them.
    """

    model_config = ConfigDict(frozen=True, populate_by_name=True, extra="allow")

    id: int = Field(gt=0)
    name: str
    description: str | None = None
    video_path: str | None = Field(default=None, alias="videoPath")
    aliases: tuple[str, ...] = ()

    @field_validator("aliases", mode="before")
    @classmethod
    def _split_aliases(cls, value: object) -> object:
        # The admin form stores aliases as one comma-separated string
        if value is None:
            return ()
        if isinstance(value, str):
            return tuple(alias.strip() for alias in value.split(",") if alias.strip())
        return value


class BatchLookupData(BaseModel):
    """Payload of the catalog's batch lookup response."""

    exercises: list[Exercise] = Field(
        default_factory=list,
        validation_alias=AliasChoices("entities", "exercises"),
    )
    missing_ids: list[int] = Field(
        default_factory=list,
        validation_alias=AliasChoices("missingIdentifiers", "missingExerciseIds"),
    )


class BatchLookupEnvelope(BaseModel):
    """`{"data": {...}}` wrapper around a batch lookup."""

    data: BatchLookupData


class SingleLookupEnvelope(BaseModel):
    """`{"data": {...}}` wrapper around a single exercise."""

    data: Exercise


# === Transport outcomes ===


@dataclass(frozen=True)
class LookupSuccess:
    """The catalog answered; it reports which requested ids it could not find."""

    exercises: tuple[Exercise, ...] = ()
    missing_ids: tuple[int, ...] = ()


@dataclass(frozen=True)
class RateLimited:
    """The catalog throttled the call (HTTP 429)."""

    retry_after: float | None = None  # Seconds, from Retry-After


@dataclass(frozen=True)
class NotFound:
    """A single-exercise lookup returned 404."""

    exercise_id: int


@dataclass(frozen=True)
class LookupFailed:
    """Anything else: network error, unexpected status, malformed body."""

    reason: str
    status_code: int | None = None
    cause: BaseException | None = field(default=None, compare=False)


TransportResult = Union[LookupSuccess, RateLimited, NotFound, LookupFailed]


# === Resolution results ===


@dataclass(frozen=True)
class ResolutionOutcome:
    """
    Partition of the requested exercise ids.

    Every requested id is either a key of `resolved` or listed in `missing`,
    never both. `missing` keeps first-seen request order.
    """

    resolved: dict[int, Exercise] = field(default_factory=dict)
    missing: tuple[int, ...] = ()

    @property
    def all_resolved(self) -> bool:
        return not self.missing

    def exercises_for(self, exercise_ids: list[int]) -> list[Exercise]:
        """Exercises for the given ids in that order, skipping missing ones."""
        return [self.resolved[i] for i in exercise_ids if i in self.resolved]


@dataclass(frozen=True)
class VerificationResult:
    """Existence check over a set of exercise references."""

    all_valid: bool
    invalid: list[int] = field(default_factory=list)


@dataclass(frozen=True)
class FetchResult:
    """Exercises with display data, plus the ids that did not resolve."""

    exercises: list[Exercise] = field(default_factory=list)
    missing: list[int] = field(default_factory=list)
