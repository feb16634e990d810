"""
Telemetry for the routine service.

Provides centralized OpenTelemetry instrumentation for:
- Request tracing (spans)
- Metrics (counters, histograms)

Usage:
    from src.common.telemetry import init_telemetry, get_tracer

    # Initialize at application startup
    init_telemetry(service_name="routine-service", otlp_endpoint="http://localhost:4317")

    tracer = get_tracer(__name__)
    with tracer.start_as_current_span("exercise.resolve") as span:
        span.set_attribute("exercise.count", len(ids))
        ...
"""

from src.common.telemetry.metrics import ResolutionMetrics, get_resolution_metrics
from src.common.telemetry.setup import (
    TelemetryConfig,
    get_meter,
    get_tracer,
    init_telemetry,
    is_telemetry_enabled,
    shutdown_telemetry,
)
from src.common.telemetry.tracing import (
    add_span_attributes,
    record_exception,
    trace_async,
)

__all__ = [
    # Setup
    "init_telemetry",
    "shutdown_telemetry",
    "get_tracer",
    "get_meter",
    "is_telemetry_enabled",
    "TelemetryConfig",
    # Metrics
    "ResolutionMetrics",
    "get_resolution_metrics",
    # Tracing
    "trace_async",
    "add_span_attributes",
    "record_exception",
]
