"""
Resilience Patterns

Backoff policies for retrying calls to throttled upstream services.
"""

from src.common.resilience.backoff import DEFAULT_BASE_DELAY, BackoffPolicy

__all__ = [
    "BackoffPolicy",
    "DEFAULT_BASE_DELAY",
]
