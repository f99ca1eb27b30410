from __future__ import annotations

import inspect
from typing import Any, AsyncContextManager, AsyncIterator, Awaitable, Callable, Optional

import grpc


# (request, context) -> async context manager active for the whole call
CallScope = Callable[[Optional[Any], grpc.aio.ServicerContext], AsyncContextManager[Any]]


async def _maybe_await(result: Any) -> Any:
    if inspect.isawaitable(result):
        return await result
    return result


async def _iterate_responses(result: Any) -> AsyncIterator[Any]:
    """Normalize a streaming handler's result into an async iterator.

    Handlers may be async generators, plain iterables, or coroutines that
    write through ``context.write()`` and return nothing.
    """
    if hasattr(result, "__aiter__"):
        async for item in result:
            yield item
    elif inspect.isawaitable(result):
        await result
    elif result is not None:
        for item in result:
            yield item


def wrap_rpc_method_handler(handler: grpc.RpcMethodHandler, scope: CallScope) -> grpc.RpcMethodHandler:
    """Run every kind of handler inside ``scope``.

    For streaming responses the scope stays open until the last message has
    been produced, so whatever it binds is visible to every message.
    """
    if handler.unary_unary:
        unary_unary = handler.unary_unary

        async def _unary_unary(request, context: grpc.aio.ServicerContext):
            async with scope(request, context):
                return await _maybe_await(unary_unary(request, context))

        return grpc.unary_unary_rpc_method_handler(
            _unary_unary,
            request_deserializer=handler.request_deserializer,
            response_serializer=handler.response_serializer,
        )

    if handler.unary_stream:
        unary_stream = handler.unary_stream

        async def _unary_stream(request, context: grpc.aio.ServicerContext):
            async with scope(request, context):
                async for response in _iterate_responses(unary_stream(request, context)):
                    yield response

        return grpc.unary_stream_rpc_method_handler(
            _unary_stream,
            request_deserializer=handler.request_deserializer,
            response_serializer=handler.response_serializer,
        )

    if handler.stream_unary:
        stream_unary = handler.stream_unary

        async def _stream_unary(request_iterator, context: grpc.aio.ServicerContext):
            async with scope(None, context):
                return await _maybe_await(stream_unary(request_iterator, context))

        return grpc.stream_unary_rpc_method_handler(
            _stream_unary,
            request_deserializer=handler.request_deserializer,
            response_serializer=handler.response_serializer,
        )

    if handler.stream_stream:
        stream_stream = handler.stream_stream

        async def _stream_stream(request_iterator, context: grpc.aio.ServicerContext):
            async with scope(None, context):
                async for response in _iterate_responses(stream_stream(request_iterator, context)):
                    yield response

        return grpc.stream_stream_rpc_method_handler(
            _stream_stream,
            request_deserializer=handler.request_deserializer,
            response_serializer=handler.response_serializer,
        )

    return handler


class CallScopeInterceptor(grpc.aio.ServerInterceptor):
    """Interceptor whose per-call behaviour is an async context manager.

    Subclasses implement ``call_scope``; this class applies it to unary and
    streaming handlers alike.
    """

    async def intercept_service(
        self,
        continuation: Callable[[grpc.HandlerCallDetails], Awaitable[grpc.RpcMethodHandler]],
        handler_call_details: grpc.HandlerCallDetails,
    ) -> grpc.RpcMethodHandler:
        handler = await continuation(handler_call_details)
        if handler is None:
            return handler

        def scope(request, context):
            return self.call_scope(handler_call_details, request, context)

        return wrap_rpc_method_handler(handler, scope)

    def call_scope(
        self,
        handler_call_details: grpc.HandlerCallDetails,
        request: Optional[Any],
        context: grpc.aio.ServicerContext,
    ) -> AsyncContextManager[Any]:
        raise NotImplementedError
