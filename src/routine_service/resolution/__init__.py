"""
Exercise Reference Resolution

Confirms that exercise ids referenced by routines and workouts exist in the
exercise catalog service, and fetches their display data, with bounded
retry when the catalog rate limits.

Two transports available:
- HttpExerciseTransport: one batch call per resolution
- FanOutExerciseTransport: one call per exercise, run concurrently
"""

from src.routine_service.resolution.errors import (
    ExerciseResolutionError,
    FatalLookupError,
    ResolutionCancelledError,
    RetriesExhaustedError,
)
from src.routine_service.resolution.factory import create_exercise_service, create_transport
from src.routine_service.resolution.fanout import FanOutExerciseTransport
from src.routine_service.resolution.models import (
    Exercise,
    FetchResult,
    LookupFailed,
    LookupSuccess,
    NotFound,
    RateLimited,
    ResolutionOutcome,
    TransportResult,
    VerificationResult,
)
from src.routine_service.resolution.protocols import ExerciseTransport
from src.routine_service.resolution.reconcile import reconcile, unique_ids
from src.routine_service.resolution.resolver import BatchResolver
from src.routine_service.resolution.service import ExerciseService
from src.routine_service.resolution.transport import HttpExerciseTransport

__all__ = [
    # Public API
    "ExerciseService",
    "create_exercise_service",  # Factory (preferred way to get a service)
    "Exercise",
    "VerificationResult",
    "FetchResult",
    "ResolutionOutcome",
    # Errors
    "ExerciseResolutionError",
    "FatalLookupError",
    "RetriesExhaustedError",
    "ResolutionCancelledError",
    # Building blocks
    "BatchResolver",
    "ExerciseTransport",
    "HttpExerciseTransport",
    "FanOutExerciseTransport",
    "create_transport",
    "reconcile",
    "unique_ids",
    "TransportResult",
    "LookupSuccess",
    "RateLimited",
    "NotFound",
    "LookupFailed",
]
