"""Span per call, continuing a trace propagated through call metadata.

Clients send ``traceid`` (32 hex chars) and ``spanid`` (16 hex chars). The
trace id becomes the span's trace id and the span id its remote parent.
Missing or undecodable values are replaced by fresh ids; decoding errors are
reported to the observability hub and never fail the call.
"""
from __future__ import annotations

from contextlib import asynccontextmanager
from enum import Enum
from typing import Any, Dict, Optional

import grpc
import structlog
from google.protobuf import text_format
from google.protobuf.message import Message
from opentelemetry.context import Context
from opentelemetry.trace import SpanKind, Status, StatusCode

from core.telemetry import ObservabilityHub
from grpc_app.interceptors.base import CallScopeInterceptor
from grpc_app.interceptors.exceptions import grpc_status_for_exception


SPAN_OP = "grpc.server"
REQUEST_BODY_MAX_CHARS = 1024


class SpanStatusCategory(str, Enum):
    INTERNAL_ERROR = "internal_error"
    INVALID_ARGUMENT = "invalid_argument"
    FAILED_PRECONDITION = "failed_precondition"
    UNDEFINED = "undefined"


_STATUS_CATEGORIES = {
    grpc.StatusCode.INTERNAL: SpanStatusCategory.INTERNAL_ERROR,
    grpc.StatusCode.INVALID_ARGUMENT: SpanStatusCategory.INVALID_ARGUMENT,
    grpc.StatusCode.FAILED_PRECONDITION: SpanStatusCategory.FAILED_PRECONDITION,
}


def span_status_for(code: grpc.StatusCode) -> SpanStatusCategory:
    return _STATUS_CATEGORIES.get(code, SpanStatusCategory.UNDEFINED)


def first_metadata_values(metadata) -> Dict[str, Any]:
    """Metadata as a mapping; a key sent more than once keeps its first value."""
    values: Dict[str, Any] = {}
    for key, value in metadata or ():
        values.setdefault(key, value)
    return values


def _request_body(request: Any) -> Optional[str]:
    if not isinstance(request, Message):
        return None
    body = text_format.MessageToString(request, as_one_line=True)
    return body[:REQUEST_BODY_MAX_CHARS]


class TracingInterceptor(CallScopeInterceptor):
    def __init__(self, hub: ObservabilityHub) -> None:
        self._hub = hub

    def parent_context(self, handler_call_details: grpc.HandlerCallDetails) -> Optional[Context]:
        return self._hub.remote_parent(first_metadata_values(handler_call_details.invocation_metadata))

    @asynccontextmanager
    async def call_scope(self, handler_call_details, request, context):
        method = handler_call_details.method
        parent = self.parent_context(handler_call_details)
        service, _, rpc_method = method.lstrip("/").partition("/")

        with self._hub.tracer.start_as_current_span(
            method,
            context=parent,
            kind=SpanKind.SERVER,
            record_exception=False,
            set_status_on_exception=False,
        ) as span:
            span.set_attribute("rpc.system", "grpc")
            span.set_attribute("rpc.service", service)
            span.set_attribute("rpc.method", rpc_method)
            span.set_attribute("span.op", SPAN_OP)
            body = _request_body(request)
            if body is not None:
                span.set_attribute("rpc.request_body", body)

            span_context = span.get_span_context()
            structlog.contextvars.bind_contextvars(
                trace_id=format(span_context.trace_id, "032x"),
                span_id=format(span_context.span_id, "016x"),
            )
            try:
                yield span
            except Exception as exc:
                code = grpc_status_for_exception(exc)
                category = span_status_for(code)
                span.set_attribute("rpc.grpc.status_code", code.value[0])
                span.set_attribute("grpc.span_status", category.value)
                span.set_status(Status(StatusCode.ERROR, getattr(exc, "message", None) or str(exc)))
                if category is SpanStatusCategory.INTERNAL_ERROR:
                    self._hub.capture_exception(exc, method=method)
                else:
                    span.record_exception(exc)
                raise
            else:
                span.set_status(Status(StatusCode.OK))
            finally:
                structlog.contextvars.unbind_contextvars("trace_id", "span_id")
