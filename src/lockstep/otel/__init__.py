"""OpenTelemetry instrumentation for lockstep."""

from lockstep.otel.metrics import MetricsPublisher, metrics_middleware

__all__ = [
    "MetricsPublisher",
    "metrics_middleware",
]
