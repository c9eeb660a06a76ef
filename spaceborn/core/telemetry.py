"""OpenTelemetry instrumentation

Tracer/meter setup shared by the API process and tests. Accessors fall back to
no-op providers when telemetry was never initialized.
"""

from __future__ import annotations

import logging
import os
from functools import wraps
from typing import TYPE_CHECKING, Any, Callable, TypeVar

from opentelemetry import metrics, trace
from opentelemetry.exporter.otlp.proto.grpc.metric_exporter import OTLPMetricExporter
from opentelemetry.sdk.metrics import MeterProvider
from opentelemetry.sdk.metrics.export import PeriodicExportingMetricReader
from opentelemetry.sdk.resources import Resource
from opentelemetry.sdk.trace import TracerProvider
from opentelemetry.semconv.resource import ResourceAttributes

if TYPE_CHECKING:
    from fastapi import FastAPI
    from sqlalchemy.ext.asyncio import AsyncEngine

logger = logging.getLogger(__name__)

T = TypeVar("T")


def init_telemetry(
    service_name: str,
    service_version: str = "0.1.0",
    otlp_endpoint: str | None = None,
    environment: str = "development",
) -> tuple[trace.Tracer, metrics.Meter]:
    """Initialize OpenTelemetry

    Args:
        service_name: service name (e.g. "spaceborn-api")
        service_version: service version
        otlp_endpoint: OTLP receiver (default: OTEL_EXPORTER_OTLP_ENDPOINT)
        environment: deployment environment (settings.app_env)

    Returns:
        (Tracer, Meter)
    """
    endpoint = otlp_endpoint or os.getenv("OTEL_EXPORTER_OTLP_ENDPOINT", "http://localhost:4317")

    resource = Resource.create(
        {
            ResourceAttributes.SERVICE_NAME: service_name,
            ResourceAttributes.SERVICE_VERSION: service_version,
            ResourceAttributes.DEPLOYMENT_ENVIRONMENT: environment,
        }
    )

    tracer_provider = TracerProvider(resource=resource)
    trace.set_tracer_provider(tracer_provider)

    metric_reader = PeriodicExportingMetricReader(
        OTLPMetricExporter(endpoint=endpoint, insecure=True),
        export_interval_millis=10000,
    )
    meter_provider = MeterProvider(resource=resource, metric_readers=[metric_reader])
    metrics.set_meter_provider(meter_provider)

    tracer = trace.get_tracer(service_name, service_version)
    meter = metrics.get_meter(service_name, service_version)

    logger.info(
        "Telemetry initialized: service=%s, endpoint=%s",
        service_name,
        endpoint,
    )

    return tracer, meter


def instrument_fastapi(app: FastAPI) -> None:
    """Automatic FastAPI instrumentation"""
    try:
        from opentelemetry.instrumentation.fastapi import FastAPIInstrumentor

        FastAPIInstrumentor.instrument_app(app)
        logger.info("FastAPI instrumentation enabled")
    except Exception as e:
        logger.warning("Failed to instrument FastAPI: %s", e)


def instrument_sqlalchemy(engine: AsyncEngine) -> None:
    """Automatic SQLAlchemy instrumentation"""
    try:
        from opentelemetry.instrumentation.sqlalchemy import SQLAlchemyInstrumentor

        SQLAlchemyInstrumentor().instrument(engine=engine.sync_engine)
        logger.info("SQLAlchemy instrumentation enabled")
    except Exception as e:
        logger.warning("Failed to instrument SQLAlchemy: %s", e)


# ===========================================
# Tracker metrics
# ===========================================


class SpaceBornMetrics:
    """Custom metrics for the tracker core"""

    def __init__(self, meter: metrics.Meter):
        self.meter = meter
        self.recompute_total = self.meter.create_counter(
            name="spaceborn_topic_recompute_total",
            description="Topic rollup recomputations",
        )
        self.recompute_conflicts_total = self.meter.create_counter(
            name="spaceborn_topic_recompute_conflicts_total",
            description="Rollup writes rejected by the version check",
        )
        self.store_call_duration = self.meter.create_histogram(
            name="spaceborn_store_call_duration_seconds",
            description="Document store call latency",
            unit="s",
        )


# ===========================================
# Singletons and accessors
# ===========================================

_tracer: trace.Tracer | None = None
_meter: metrics.Meter | None = None
_metrics: SpaceBornMetrics | None = None
_initialized: bool = False


def get_tracer() -> trace.Tracer:
    """Tracer instance (no-op tracer before initialization)"""
    if _tracer is None:
        return trace.get_tracer("spaceborn-noop")
    return _tracer


def get_spaceborn_metrics() -> SpaceBornMetrics | None:
    """Metrics instance (None before initialization)"""
    return _metrics


def setup_telemetry(
    service_name: str,
    service_version: str = "0.1.0",
    environment: str = "development",
) -> None:
    """Global telemetry setup, called once at startup"""
    global _tracer, _meter, _metrics, _initialized

    if _initialized:
        logger.warning("Telemetry already initialized, skipping")
        return

    _tracer, _meter = init_telemetry(service_name, service_version, environment=environment)
    _metrics = SpaceBornMetrics(_meter)
    _initialized = True


# ===========================================
# Decorators
# ===========================================


def traced_function(
    span_name: str | None = None,
    attributes: dict[str, Any] | None = None,
) -> Callable[[Callable[..., T]], Callable[..., T]]:
    """Wrap a coroutine function in an OTel span

    Usage:
        @traced_function("topic.recompute")
        async def recompute(...):
            ...
    """

    def decorator(func: Callable[..., T]) -> Callable[..., T]:
        name = span_name or func.__name__

        @wraps(func)
        async def async_wrapper(*args: Any, **kwargs: Any) -> T:
            tracer = get_tracer()
            with tracer.start_as_current_span(name) as span:
                if attributes:
                    for key, value in attributes.items():
                        span.set_attribute(key, value)
                try:
                    return await func(*args, **kwargs)
                except Exception as e:
                    span.record_exception(e)
                    span.set_status(trace.Status(trace.StatusCode.ERROR, str(e)))
                    raise

        return async_wrapper  # type: ignore

    return decorator

