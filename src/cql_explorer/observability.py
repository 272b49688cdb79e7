"""OpenTelemetry instrumentation for CQL Explorer.

Provides:
- OpenTelemetry SDK initialization with auto-instrumentation
- Tracer for creating spans around catalog loads
- Metrics for schema loading (duration, tables loaded)
- Structured JSON logging with trace correlation
"""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING

import structlog
from opentelemetry import metrics, trace
from opentelemetry.exporter.otlp.proto.grpc.metric_exporter import OTLPMetricExporter
from opentelemetry.exporter.otlp.proto.grpc.trace_exporter import OTLPSpanExporter
from opentelemetry.instrumentation.fastapi import FastAPIInstrumentor
from opentelemetry.sdk.metrics import MeterProvider
from opentelemetry.sdk.metrics.export import PeriodicExportingMetricReader
from opentelemetry.sdk.resources import SERVICE_NAME, Resource
from opentelemetry.sdk.trace import TracerProvider
from opentelemetry.sdk.trace.export import BatchSpanProcessor

from cql_explorer.config import get_settings

if TYPE_CHECKING:
    from fastapi import FastAPI

_initialized = False

_tracer: trace.Tracer | None = None
_meter: metrics.Meter | None = None
_tracer_provider: TracerProvider | None = None
_meter_provider: MeterProvider | None = None

_schema_load_histogram: metrics.Histogram | None = None
_tables_loaded_counter: metrics.Counter | None = None


def get_tracer() -> trace.Tracer:
    """Get the application tracer.

    Returns:
        The OpenTelemetry tracer for creating spans.
    """
    global _tracer
    if _tracer is None:
        _tracer = trace.get_tracer("cql_explorer")
    return _tracer


def get_meter() -> metrics.Meter:
    """Get the application meter.

    Returns:
        The OpenTelemetry meter for creating metrics.
    """
    global _meter
    if _meter is None:
        _meter = metrics.get_meter("cql_explorer")
    return _meter


def record_schema_load_duration(duration_seconds: float, status: str = "completed") -> None:
    """Record how long a schema load from the catalog took.

    Args:
        duration_seconds: Load duration in seconds.
        status: Load status (completed, failed).
    """
    if _schema_load_histogram is not None:
        _schema_load_histogram.record(duration_seconds, {"status": status})


def record_tables_loaded(table_count: int) -> None:
    """Record number of tables loaded from the catalog.

    Args:
        table_count: Number of tables in the loaded schema.
    """
    if _tables_loaded_counter is not None:
        _tables_loaded_counter.add(table_count)


def _add_trace_context(
    logger: logging.Logger,  # noqa: ARG001
    method_name: str,  # noqa: ARG001
    event_dict: dict,
) -> dict:
    """Add OpenTelemetry trace context to log records.

    Args:
        logger: The logger instance (unused but required by structlog).
        method_name: The logging method name (unused but required by structlog).
        event_dict: The event dictionary to enhance.

    Returns:
        Event dictionary with trace context added.
    """
    span = trace.get_current_span()
    ctx = span.get_span_context()
    if ctx.is_valid:
        event_dict["trace_id"] = format(ctx.trace_id, "032x")
        event_dict["span_id"] = format(ctx.span_id, "016x")
    return event_dict


def configure_logging() -> None:
    """Configure structured JSON logging with trace context."""
    structlog.configure(
        processors=[
            structlog.stdlib.filter_by_level,
            structlog.stdlib.add_logger_name,
            structlog.stdlib.add_log_level,
            structlog.stdlib.PositionalArgumentsFormatter(),
            structlog.processors.TimeStamper(fmt="iso"),
            structlog.processors.StackInfoRenderer(),
            structlog.processors.UnicodeDecoder(),
            _add_trace_context,
            structlog.processors.JSONRenderer(),
        ],
        context_class=dict,
        logger_factory=structlog.stdlib.LoggerFactory(),
        wrapper_class=structlog.stdlib.BoundLogger,
        cache_logger_on_first_use=True,
    )

    logging.basicConfig(
        format="%(message)s",
        level=logging.INFO,
    )


def get_logger(name: str | None = None) -> structlog.stdlib.BoundLogger:
    """Get a structured logger.

    Args:
        name: Logger name. Defaults to "cql_explorer".

    Returns:
        A structured logger with trace context support.
    """
    return structlog.get_logger(name or "cql_explorer")


def setup_opentelemetry(app: FastAPI | None = None) -> None:
    """Initialize OpenTelemetry instrumentation.

    Sets up:
    - Tracer provider with OTLP exporter
    - Meter provider with OTLP exporter
    - FastAPI auto-instrumentation when an app is given
    - Metrics for schema loading

    Args:
        app: FastAPI application to instrument.
    """
    global _initialized, _tracer, _meter, _tracer_provider, _meter_provider
    global _schema_load_histogram, _tables_loaded_counter

    if _initialized:
        return

    settings = get_settings()

    configure_logging()

    if not settings.otel.enabled:
        _initialized = True
        return

    resource = Resource.create({SERVICE_NAME: settings.otel.service_name})

    tracer_provider = TracerProvider(resource=resource)
    span_exporter = OTLPSpanExporter(
        endpoint=settings.otel.endpoint, insecure=settings.otel.insecure
    )
    tracer_provider.add_span_processor(BatchSpanProcessor(span_exporter))
    trace.set_tracer_provider(tracer_provider)
    _tracer_provider = tracer_provider

    metric_exporter = OTLPMetricExporter(
        endpoint=settings.otel.endpoint, insecure=settings.otel.insecure
    )
    metric_reader = PeriodicExportingMetricReader(metric_exporter, export_interval_millis=10000)
    meter_provider = MeterProvider(resource=resource, metric_readers=[metric_reader])
    metrics.set_meter_provider(meter_provider)
    _meter_provider = meter_provider

    _tracer = trace.get_tracer("cql_explorer")
    _meter = metrics.get_meter("cql_explorer")

    _schema_load_histogram = _meter.create_histogram(
        name="schema_load_duration_seconds",
        description="Duration of schema loads from the catalog in seconds",
        unit="s",
    )

    _tables_loaded_counter = _meter.create_counter(
        name="schema_tables_loaded",
        description="Total number of table definitions loaded from the catalog",
        unit="tables",
    )

    if app is not None:
        FastAPIInstrumentor.instrument_app(app)

    _initialized = True


def shutdown_opentelemetry() -> None:
    """Shutdown OpenTelemetry providers to flush pending telemetry."""
    import contextlib

    global _tracer_provider, _meter_provider
    if _tracer_provider is not None:
        with contextlib.suppress(Exception):
            _tracer_provider.force_flush(timeout_millis=5000)
            _tracer_provider.shutdown()
        _tracer_provider = None
    if _meter_provider is not None:
        with contextlib.suppress(Exception):
            _meter_provider.force_flush(timeout_millis=5000)
            _meter_provider.shutdown()
        _meter_provider = None


def reset_observability() -> None:
    """Reset observability state (useful for testing)."""
    import contextlib

    global _initialized, _tracer, _meter, _tracer_provider, _meter_provider
    global _schema_load_histogram, _tables_loaded_counter

    # Uninstrument FastAPI to avoid double-instrumentation on re-setup
    with contextlib.suppress(Exception):
        FastAPIInstrumentor.uninstrument()

    _initialized = False
    _tracer = None
    _meter = None
    _tracer_provider = None
    _meter_provider = None
    _schema_load_histogram = None
    _tables_loaded_counter = None
