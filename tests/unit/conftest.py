"""
Pytest configuration for unit tests.

Disables telemetry so spans and metrics stay on the no-op API providers.
"""

import os


def pytest_configure(config):
    """Disable telemetry for unit tests."""
    os.environ["ROUTINE_TELEMETRY_ENABLED"] = "false"
