"""
Exponential Backoff

Maps a retry attempt (and an optional server-supplied hint) to a wait
duration in seconds.
"""

from __future__ import annotations

import math
from dataclasses import dataclass

DEFAULT_BASE_DELAY = 0.2


@dataclass(frozen=True)
class BackoffPolicy:
    """
    Deterministic exponential backoff.

    No jitter is applied, so the same inputs always give the same delay
    and delays never decrease as the attempt number grows.

    Example:
        policy = BackoffPolicy(base_delay=0.2)
        policy.next_delay(0)                  # 0.2
        policy.next_delay(2)                  # 0.8
        policy.next_delay(2, server_hint=5)   # 5.0
    """

    base_delay: float = DEFAULT_BASE_DELAY
    exponential_base: float = 2.0

    def __post_init__(self) -> None:
        if self.base_delay < 0:
            raise ValueError(f"base_delay must be non-negative, got {self.base_delay}")
        if self.exponential_base < 1:
            raise ValueError(
                f"exponential_base must be at least 1, got {self.exponential_base}"
            )

    def next_delay(self, attempt: int, server_hint: float | None = None) -> float:
        """
        Compute how long to wait before the next attempt.

        Args:
            attempt: Zero-based number of the attempt that was just throttled
            server_hint: Wait suggested by the upstream (e.g. Retry-After), in seconds

        Returns:
            Delay in seconds. A valid server hint is returned verbatim.
        """
        if attempt < 0:
            raise ValueError(f"attempt must be non-negative, got {attempt}")

        if is_valid_hint(server_hint):
            return float(server_hint)  # type: ignore[arg-type]

        if self.base_delay == 0:
            return 0.0
        try:
            growth = self.exponential_base**attempt
        except OverflowError:
            # Saturates; the caller's deadline bounds the actual wait
            growth = math.inf
        return self.base_delay * growth


def is_valid_hint(server_hint: float | None) -> bool:
    """Check whether a server hint is a usable, finite, non-negative duration."""
    if server_hint is None or isinstance(server_hint, bool):
        return False
    try:
        value = float(server_hint)
    except (TypeError, ValueError):
        return False
    return math.isfinite(value) and value >= 0
