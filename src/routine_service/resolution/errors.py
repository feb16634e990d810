"""
Exercise Resolution Errors

Missing exercises are not errors; they are reported through
ResolutionOutcome.missing. These exceptions cover the cases where the
catalog could not give an answer at all.
"""

from __future__ import annotations


class ExerciseResolutionError(Exception):
    """Base class for failures resolving exercise references."""


class FatalLookupError(ExerciseResolutionError):
    """
    The catalog was unreachable, errored, or sent an unparseable response.

    Never retried locally.
    """

    def __init__(self, reason: str, status_code: int | None = None):
        self.reason = reason
        self.status_code = status_code
        message = f"Exercise catalog lookup failed: {reason}"
        if status_code is not None:
            message += f" (HTTP {status_code})"
        super().__init__(message)


class RetriesExhaustedError(ExerciseResolutionError):
    """
    The catalog kept throttling past the retry limit.

    The catalog was reachable, so the caller's own request is safe to retry
    later.
    """

    def __init__(self, attempts: int, retry_after: float | None = None):
        self.attempts = attempts
        self.retry_after = retry_after
        super().__init__(f"Exercise catalog still rate limiting after {attempts} attempts")


class ResolutionCancelledError(ExerciseResolutionError):
    """The caller's deadline expired before resolution finished."""

    def __init__(self, timeout: float):
        self.timeout = timeout
        super().__init__(f"Exercise resolution abandoned after {timeout:.3f}s deadline")
