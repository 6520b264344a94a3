"""OpenTelemetry tracing configuration for the DRA driver."""

from opentelemetry import trace
from opentelemetry.exporter.otlp.proto.grpc.trace_exporter import OTLPSpanExporter
from opentelemetry.sdk.resources import Resource
from opentelemetry.sdk.trace import TracerProvider
from opentelemetry.sdk.trace.export import BatchSpanProcessor

from accel_dra.infrastructure.config import Config, get_config
from accel_dra.version import get_version


def setup_tracing(config: Config | None = None) -> trace.Tracer:
    """Configure OpenTelemetry tracing.

    Spans are exported over OTLP when an endpoint is configured and
    dropped otherwise.
    """
    config = config or get_config()

    resource = Resource.create(
        {
            "service.name": "accel_dra",
            "service.version": get_version(),
            "deployment.environment": config.observability.environment,
            "k8s.node.name": config.driver.node_name,
        }
    )

    provider = TracerProvider(resource=resource)

    if config.observability.otel_endpoint:
        otlp_exporter = OTLPSpanExporter(
            endpoint=config.observability.otel_endpoint,
            insecure=True,
        )
        provider.add_span_processor(BatchSpanProcessor(otlp_exporter))

    trace.set_tracer_provider(provider)

    return trace.get_tracer("accel_dra")


def get_tracer(name: str = "accel_dra") -> trace.Tracer:
    """Get a tracer instance."""
    return trace.get_tracer(name)
