"""OpenTelemetry tracing and exception reporting.

The hub owns a private ``TracerProvider``; it never installs itself as the
global provider. Entry points create one hub at startup and pass it to the
interceptor chain, the HTTP tracing middleware and fatal-path handlers.

Both entry points continue a trace propagated through ``traceid`` (32 hex
chars) and ``spanid`` (16 hex chars) call metadata or headers.
"""
from __future__ import annotations

from typing import Any, Mapping, Optional

from opentelemetry import trace
from opentelemetry.context import Context
from opentelemetry.sdk.resources import SERVICE_NAME, SERVICE_VERSION, Resource
from opentelemetry.sdk.trace import SpanProcessor, TracerProvider
from opentelemetry.sdk.trace.export import BatchSpanProcessor, ConsoleSpanExporter
from opentelemetry.sdk.trace.id_generator import RandomIdGenerator
from opentelemetry.sdk.trace.sampling import TraceIdRatioBased
from opentelemetry.trace import NonRecordingSpan, SpanContext, Status, StatusCode, TraceFlags

from core.logging_config import get_logger


logger = get_logger(__name__)


TRACE_ID_KEY = "traceid"
SPAN_ID_KEY = "spanid"
TRACE_ID_BYTES = 16
SPAN_ID_BYTES = 8

_id_generator = RandomIdGenerator()


def decode_hex_id(value: Any, width: int) -> Optional[int]:
    """Decode a fixed-width hex id; ``None`` when the value is absent.

    Raises ValueError for malformed hex, a wrong width or an all-zero id.
    """
    if value is None:
        return None
    if isinstance(value, (bytes, bytearray)):
        value = bytes(value).decode("ascii")
    value = value.strip()
    if not value:
        return None
    raw = bytes.fromhex(value)
    if len(raw) != width:
        raise ValueError(f"expected {width} bytes of hex, got {len(raw)}")
    number = int.from_bytes(raw, "big")
    if number == 0:
        raise ValueError("id must not be all zeros")
    return number


class ObservabilityHub:
    """Process-wide tracing and exception sink with an explicit lifetime."""

    def __init__(
        self,
        service_name: str,
        service_version: str,
        *,
        environment: str = "localhost",
        server_name: Optional[str] = None,
        enabled: bool = True,
    ) -> None:
        self.service_name = service_name
        self.service_version = service_version
        self.environment = environment
        self.server_name = server_name
        self.enabled = enabled
        self.tracer_provider: TracerProvider | None = None
        self._tracer: trace.Tracer = trace.NoOpTracer()

    def setup(
        self,
        exporter_type: str = "console",
        otlp_endpoint: str | None = None,
        sample_rate: float = 1.0,
    ) -> "ObservabilityHub":
        """Build the tracer provider and its exporter.

        Args:
            exporter_type: "console", "otlp" or "none".
            otlp_endpoint: OTLP gRPC endpoint (e.g. http://localhost:4317).
            sample_rate: Sampling rate 0.0-1.0.

        Raises whatever the SDK raises; a hub that cannot start is fatal.
        """
        if not self.enabled:
            logger.info("telemetry_disabled")
            return self

        attributes: dict[str, Any] = {
            SERVICE_NAME: self.service_name,
            SERVICE_VERSION: self.service_version,
            "deployment.environment": self.environment,
        }
        if self.server_name:
            attributes["host.name"] = self.server_name
        self.tracer_provider = TracerProvider(
            resource=Resource(attributes=attributes),
            sampler=TraceIdRatioBased(sample_rate),
        )

        if exporter_type == "otlp" and otlp_endpoint:
            from opentelemetry.exporter.otlp.proto.grpc.trace_exporter import OTLPSpanExporter

            exporter = OTLPSpanExporter(
                endpoint=otlp_endpoint, insecure=otlp_endpoint.startswith("http://")
            )
            self.tracer_provider.add_span_processor(BatchSpanProcessor(exporter))
        elif exporter_type == "none":
            pass
        else:
            if exporter_type != "console":
                logger.warning("telemetry_unknown_exporter", exporter=exporter_type)
                exporter_type = "console"
            self.tracer_provider.add_span_processor(BatchSpanProcessor(ConsoleSpanExporter()))

        self._tracer = self.tracer_provider.get_tracer(self.service_name, self.service_version)
        logger.info(
            "telemetry_initialized",
            service=self.service_name,
            version=self.service_version,
            exporter=exporter_type,
            sample_rate=sample_rate,
        )
        return self

    def add_span_processor(self, processor: SpanProcessor) -> None:
        if self.tracer_provider is None:
            raise RuntimeError("telemetry is not set up")
        self.tracer_provider.add_span_processor(processor)

    @property
    def tracer(self) -> trace.Tracer:
        return self._tracer

    def _decode(self, carrier: Mapping[str, Any], key: str, width: int) -> Optional[int]:
        try:
            return decode_hex_id(carrier.get(key), width)
        except (ValueError, UnicodeDecodeError) as exc:
            logger.warning("trace_header_invalid", key=key, error=str(exc))
            self.capture_exception(exc, header=key)
            return None

    def remote_parent(self, carrier: Mapping[str, Any]) -> Optional[Context]:
        """Parent context from ``traceid``/``spanid`` in ``carrier``.

        ``None`` when neither id is usable. A missing half is generated;
        undecodable values are reported and treated as missing.
        """
        trace_id = self._decode(carrier, TRACE_ID_KEY, TRACE_ID_BYTES)
        span_id = self._decode(carrier, SPAN_ID_KEY, SPAN_ID_BYTES)
        if trace_id is None and span_id is None:
            return None
        parent = SpanContext(
            trace_id=trace_id or _id_generator.generate_trace_id(),
            span_id=span_id or _id_generator.generate_span_id(),
            is_remote=True,
            trace_flags=TraceFlags(TraceFlags.SAMPLED),
        )
        return trace.set_span_in_context(NonRecordingSpan(parent))

    def capture_exception(self, exc: BaseException, **attributes: Any) -> None:
        """Report an exception on the current span, or on a span of its own."""
        span = trace.get_current_span()
        if span.is_recording():
            span.record_exception(exc, attributes=_stringify(attributes))
            return
        with self._tracer.start_as_current_span("exception") as own:
            own.record_exception(exc, attributes=_stringify(attributes))
            own.set_status(Status(StatusCode.ERROR, str(exc)))

    def flush(self, timeout_ms: int = 2000) -> bool:
        if self.tracer_provider is None:
            return True
        return self.tracer_provider.force_flush(timeout_ms)

    def shutdown(self) -> None:
        """Flush and stop the provider."""
        if self.tracer_provider is None:
            return
        try:
            self.tracer_provider.shutdown()
            logger.info("telemetry_shutdown")
        except Exception as exc:
            logger.error("telemetry_shutdown_failed", error=str(exc), exc_info=True)
        finally:
            self.tracer_provider = None
            self._tracer = trace.NoOpTracer()


def _stringify(attributes: dict[str, Any]) -> dict[str, str]:
    return {k: str(v) for k, v in attributes.items() if v is not None}


def create_hub(settings) -> ObservabilityHub:
    """Build and start the hub from application settings."""
    cfg = settings.telemetry
    hub = ObservabilityHub(
        cfg.service_name,
        settings.VERSION,
        environment=settings.ENVIRONMENT,
        server_name=settings.HOSTNAME,
        enabled=cfg.enabled,
    )
    return hub.setup(
        exporter_type=cfg.exporter,
        otlp_endpoint=cfg.otlp_endpoint,
        sample_rate=cfg.sample_rate,
    )
