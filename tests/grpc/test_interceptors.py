import asyncio
from types import SimpleNamespace

import grpc
import pytest
from opentelemetry import trace

from core.telemetry import decode_hex_id
from domain.common.exceptions import (
    DomainValidationException,
    NegativeLikesException,
    StoreException,
    SubjectNotFoundException,
)
from grpc_app.interceptors.exceptions import ExceptionMappingInterceptor, grpc_status_for_exception
from grpc_app.interceptors.logging import LoggingInterceptor
from grpc_app.interceptors.store import StoreSessionInterceptor, get_call_store
from grpc_app.interceptors.tracing import (
    SpanStatusCategory,
    TracingInterceptor,
    first_metadata_values,
    span_status_for,
)
from grpc_app.server import build_interceptors
from grpc_app.services.board_service import BoardService


def _details(method="/board.Board/Test", metadata=()):
    return SimpleNamespace(method=method, invocation_metadata=metadata)


async def _wrap(interceptor, handler):
    async def continuation(details):
        return handler

    return await interceptor.intercept_service(continuation, _details())


def test_interceptor_order(spy_store, hub):
    chain = build_interceptors(spy_store, hub)
    assert [type(i) for i in chain] == [
        LoggingInterceptor,
        ExceptionMappingInterceptor,
        TracingInterceptor,
        StoreSessionInterceptor,
    ]


def test_decode_hex_id():
    assert decode_hex_id("0af7651916cd43dd8448eb211c80319c", 16) == 0x0AF7651916CD43DD8448EB211C80319C
    assert decode_hex_id(b"b7ad6b7169203331", 8) == 0xB7AD6B7169203331
    assert decode_hex_id(None, 16) is None
    assert decode_hex_id("", 8) is None


@pytest.mark.parametrize(
    "value, width",
    [
        ("zz", 8),
        ("b7ad6b71", 8),
        ("0af7651916cd43dd8448eb211c80319c", 8),
        ("0000000000000000", 8),
    ],
)
def test_decode_hex_id_rejects(value, width):
    with pytest.raises(ValueError):
        decode_hex_id(value, width)


def test_span_status_categories():
    assert span_status_for(grpc.StatusCode.INTERNAL) is SpanStatusCategory.INTERNAL_ERROR
    assert span_status_for(grpc.StatusCode.INVALID_ARGUMENT) is SpanStatusCategory.INVALID_ARGUMENT
    assert span_status_for(grpc.StatusCode.FAILED_PRECONDITION) is SpanStatusCategory.FAILED_PRECONDITION
    assert span_status_for(grpc.StatusCode.NOT_FOUND) is SpanStatusCategory.UNDEFINED
    assert span_status_for(grpc.StatusCode.OK) is SpanStatusCategory.UNDEFINED


def test_exception_status_codes():
    assert grpc_status_for_exception(DomainValidationException("x")) == grpc.StatusCode.INVALID_ARGUMENT
    assert grpc_status_for_exception(SubjectNotFoundException(1)) == grpc.StatusCode.NOT_FOUND
    assert grpc_status_for_exception(NegativeLikesException(1, 0)) == grpc.StatusCode.FAILED_PRECONDITION
    assert grpc_status_for_exception(StoreException("down")) == grpc.StatusCode.INTERNAL
    assert grpc_status_for_exception(RuntimeError("boom")) == grpc.StatusCode.INTERNAL


def test_parent_context_only_when_metadata_present(hub):
    tracing = TracingInterceptor(hub)
    assert tracing.parent_context(_details()) is None

    ctx = tracing.parent_context(_details(metadata=(("traceid", "0af7651916cd43dd8448eb211c80319c"),)))
    parent = trace.get_current_span(ctx).get_span_context()
    assert parent.trace_id == 0x0AF7651916CD43DD8448EB211C80319C
    assert parent.span_id != 0
    assert parent.is_remote


def test_repeated_trace_metadata_uses_first_value(hub):
    first_trace, second_trace = "0af7651916cd43dd8448eb211c80319c", "4bf92f3577b34da6a3ce929d0e0e4736"
    metadata = (
        ("traceid", first_trace),
        ("spanid", "b7ad6b7169203331"),
        ("traceid", second_trace),
        ("spanid", "00f067aa0ba902b7"),
    )
    assert first_metadata_values(metadata) == {"traceid": first_trace, "spanid": "b7ad6b7169203331"}

    ctx = TracingInterceptor(hub).parent_context(_details(metadata=metadata))
    parent = trace.get_current_span(ctx).get_span_context()
    assert parent.trace_id == int(first_trace, 16)
    assert parent.span_id == 0xB7AD6B7169203331


@pytest.mark.asyncio
async def test_store_visible_to_every_streamed_message(spy_store):
    async def stream(request, context):
        for _ in range(3):
            await asyncio.sleep(0)
            yield get_call_store()

    wrapped = await _wrap(StoreSessionInterceptor(spy_store), grpc.unary_stream_rpc_method_handler(stream))
    seen = [item async for item in wrapped.unary_stream(object(), None)]

    assert seen == [spy_store, spy_store, spy_store]
    assert get_call_store() is None


@pytest.mark.asyncio
async def test_store_visible_in_bidi_stream(spy_store):
    async def requests():
        for i in range(2):
            yield i

    async def echo(request_iterator, context):
        async for item in request_iterator:
            yield item, get_call_store()

    wrapped = await _wrap(StoreSessionInterceptor(spy_store), grpc.stream_stream_rpc_method_handler(echo))
    seen = [item async for item in wrapped.stream_stream(requests(), None)]

    assert seen == [(0, spy_store), (1, spy_store)]


@pytest.mark.asyncio
async def test_store_bound_for_sync_unary_handler(spy_store):
    def handler(request, context):
        return get_call_store()

    wrapped = await _wrap(StoreSessionInterceptor(spy_store), grpc.unary_unary_rpc_method_handler(handler))
    assert await wrapped.unary_unary(object(), None) is spy_store
    assert get_call_store() is None


@pytest.mark.asyncio
async def test_board_service_uses_store_bound_to_the_call(spy_store):
    service = BoardService()
    with pytest.raises(RuntimeError):
        service._svc()

    def handler(request, context):
        return service._svc()

    wrapped = await _wrap(StoreSessionInterceptor(spy_store), grpc.unary_unary_rpc_method_handler(handler))
    app_service = await wrapped.unary_unary(object(), None)
    assert app_service._store is spy_store
