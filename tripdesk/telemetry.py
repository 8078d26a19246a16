"""OpenTelemetry setup and span helpers for the trip pipeline."""

from __future__ import annotations

from contextlib import contextmanager, nullcontext
import os
import sys
from typing import Any, ContextManager, Iterator, Sequence, TextIO

from opentelemetry import trace
from opentelemetry.exporter.otlp.proto.http.trace_exporter import OTLPSpanExporter
from opentelemetry.sdk.resources import Resource
from opentelemetry.sdk.trace import ReadableSpan, TracerProvider
from opentelemetry.sdk.trace.export import (
    BatchSpanProcessor,
    ConsoleSpanExporter,
    SpanExporter,
    SpanExportResult,
)
from opentelemetry.trace import Status, StatusCode

_INITIALIZED = False
_ENABLED = False


def _as_bool(value: str | None, default: bool) -> bool:
    if value is None:
        return default
    return value.strip().lower() in {"1", "true", "yes", "on"}


def is_enabled() -> bool:
    return _as_bool(os.getenv("TRIPDESK_TRACING_ENABLED"), default=True)


def configure_telemetry() -> bool:
    """Configure the global tracer provider once. Returns whether tracing is on."""
    global _INITIALIZED
    global _ENABLED

    if _INITIALIZED:
        return _ENABLED

    _ENABLED = is_enabled()
    if not _ENABLED:
        _INITIALIZED = True
        return False

    provider = TracerProvider(
        resource=Resource.create({"service.name": "tripdesk"}),
    )
    exporter_kind = os.getenv("TRIPDESK_TRACING_EXPORTER", "console").strip().lower()
    if exporter_kind == "otlp":
        endpoint = os.getenv("TRIPDESK_OTLP_ENDPOINT", "http://localhost:4318/v1/traces")
        timeout_ms = int(os.getenv("TRIPDESK_OTLP_TIMEOUT_MS", "1000"))
        exporter: SpanExporter = OTLPSpanExporter(endpoint=endpoint, timeout=timeout_ms / 1000)
    elif os.getenv("TRIPDESK_TRACING_CONSOLE_MODE", "compact").strip().lower() == "raw":
        exporter = ConsoleSpanExporter(out=sys.stderr)
    else:
        exporter = _CompactConsoleSpanExporter(out=sys.stderr)
    provider.add_span_processor(BatchSpanProcessor(exporter))
    trace.set_tracer_provider(provider)

    _INITIALIZED = True
    return True


def start_span(name: str, **attributes: Any) -> ContextManager[Any]:
    """Start a span when tracing is enabled; yields None otherwise."""
    if not configure_telemetry():
        return nullcontext()
    return _traced(name, attributes)


@contextmanager
def _traced(name: str, attributes: dict[str, Any]) -> Iterator[Any]:
    tracer = trace.get_tracer("tripdesk")
    with tracer.start_as_current_span(name) as span:
        for key, value in attributes.items():
            if value is not None:
                span.set_attribute(key, value)
        try:
            yield span
        except Exception as exc:
            span.set_status(Status(StatusCode.ERROR, str(exc)))
            raise


def set_span_attribute(span: Any, key: str, value: Any) -> None:
    if span is not None and value is not None:
        span.set_attribute(key, value)


class _CompactConsoleSpanExporter(SpanExporter):
    """Writes one `[trace]` line per finished span."""

    def __init__(self, out: TextIO) -> None:
        self._out = out

    def export(self, spans: Sequence[ReadableSpan]) -> SpanExportResult:
        text = "".join(format_trip_span(span) + "\n" for span in spans)
        try:
            self._out.write(text)
            self._out.flush()
        except ValueError:
            # closed at interpreter shutdown
            pass
        return SpanExportResult.SUCCESS

    def shutdown(self) -> None:
        return None


def format_trip_span(span: ReadableSpan) -> str:
    """`[trace] <name> <ms> ok|ERR` followed by the span's trip.* and store.* attributes."""
    elapsed_ms = max(0, span.end_time - span.start_time) / 1_000_000
    failed = span.status.status_code is StatusCode.ERROR
    parts = [f"[trace] {span.name}", f"{elapsed_ms:.1f}ms", "ERR" if failed else "ok"]
    parts.extend(
        f"{key}={_one_line(value)}"
        for key, value in sorted(span.attributes.items())
        if key.startswith(("trip.", "store."))
    )
    if span.status.description:
        parts.append(f"error={_one_line(span.status.description)}")
    return " ".join(parts)


def _one_line(value: Any) -> str:
    return " ".join(str(value).split())
