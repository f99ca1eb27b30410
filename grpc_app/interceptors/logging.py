from __future__ import annotations

import time
from contextlib import asynccontextmanager

import grpc

from core.logging_config import get_logger
from grpc_app.interceptors.base import CallScopeInterceptor
from grpc_app.interceptors.exceptions import is_mapped_error


logger = get_logger(__name__)


class LoggingInterceptor(CallScopeInterceptor):
    @asynccontextmanager
    async def call_scope(self, handler_call_details, request, context):
        method = handler_call_details.method
        start = time.perf_counter()
        peer = context.peer() if hasattr(context, "peer") else None
        logger.info("grpc_request", method=method, peer=peer)
        try:
            yield
        except grpc.aio.AbortError:
            # Already mapped/aborted by exception interceptor; avoid duplicate error logs here
            raise
        except Exception as exc:
            if is_mapped_error():
                raise
            # Unknown/unexpected exception -> log with stack
            logger.error(
                "grpc_unhandled_error",
                method=method,
                error=str(exc),
                exc_info=True,
            )
            raise
        finally:
            elapsed_ms = (time.perf_counter() - start) * 1000
            logger.info("grpc_request_done", method=method, elapsed_ms=round(elapsed_ms, 2))
