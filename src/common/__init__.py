"""
Shared infrastructure for the routine service.

Logging sanitization, resilience primitives and OpenTelemetry setup.
"""

from src.common import (
    logging,  # noqa: F401
    resilience,  # noqa: F401
    telemetry,  # noqa: F401
)
