from __future__ import annotations

import contextvars
from contextlib import asynccontextmanager

import grpc

from core.logging_config import get_logger
from domain.common.exceptions import BusinessException, StoreException
from grpc_app.interceptors.base import CallScopeInterceptor
from shared.codes import BusinessCode


logger = get_logger(__name__)

# Mark that the current request has been mapped to a gRPC status
_mapped_error: contextvars.ContextVar[bool] = contextvars.ContextVar("grpc_mapped_error", default=False)


def set_mapped_error() -> None:
    _mapped_error.set(True)


def is_mapped_error() -> bool:
    return bool(_mapped_error.get())


_BUSINESS_CODE_TO_GRPC = {
    BusinessCode.PARAM_VALIDATION_ERROR: grpc.StatusCode.INVALID_ARGUMENT,
    BusinessCode.PARAM_ERROR: grpc.StatusCode.INVALID_ARGUMENT,
    BusinessCode.PARAM_MISSING: grpc.StatusCode.INVALID_ARGUMENT,
    BusinessCode.PARAM_TYPE_ERROR: grpc.StatusCode.INVALID_ARGUMENT,

    BusinessCode.NOT_FOUND: grpc.StatusCode.NOT_FOUND,
    BusinessCode.SUBJECT_NOT_FOUND: grpc.StatusCode.NOT_FOUND,
    BusinessCode.QUESTION_NOT_FOUND: grpc.StatusCode.NOT_FOUND,

    BusinessCode.SUBJECT_DISABLED: grpc.StatusCode.FAILED_PRECONDITION,
    BusinessCode.LIKES_EXHAUSTED: grpc.StatusCode.FAILED_PRECONDITION,

    BusinessCode.SERVICE_UNAVAILABLE: grpc.StatusCode.UNAVAILABLE,
    BusinessCode.NETWORK_ERROR: grpc.StatusCode.UNAVAILABLE,
    BusinessCode.SYSTEM_ERROR: grpc.StatusCode.INTERNAL,
    BusinessCode.DATABASE_ERROR: grpc.StatusCode.INTERNAL,
}


def business_code_to_grpc_status(code: int) -> grpc.StatusCode:
    try:
        bc = BusinessCode(code)
    except ValueError:
        return grpc.StatusCode.FAILED_PRECONDITION
    return _BUSINESS_CODE_TO_GRPC.get(bc, grpc.StatusCode.FAILED_PRECONDITION)


def grpc_status_for_exception(exc: BaseException) -> grpc.StatusCode:
    """Status a handler exception is reported with."""
    if isinstance(exc, BusinessException):
        return business_code_to_grpc_status(exc.code)
    if isinstance(exc, grpc.aio.AbortError):
        # handler aborted on its own; the code lives on the servicer context
        return grpc.StatusCode.UNKNOWN
    code = getattr(exc, "code", None)
    if isinstance(exc, grpc.RpcError) and callable(code):
        return code()
    return grpc.StatusCode.INTERNAL


def _set_error_trailers(context: grpc.aio.ServicerContext, code: int, error_type: str) -> None:
    try:
        context.set_trailing_metadata((
            ("x-biz-code", str(int(code))),
            ("x-error-type", error_type),
        ))
    except Exception:
        # trailers are best-effort; the status itself is still sent
        pass


class ExceptionMappingInterceptor(CallScopeInterceptor):
    """Turn business and unexpected exceptions into gRPC status codes."""

    @asynccontextmanager
    async def call_scope(self, handler_call_details, request, context):
        method = handler_call_details.method
        try:
            yield
        except grpc.aio.AbortError:
            raise
        except BusinessException as exc:
            status = business_code_to_grpc_status(exc.code)
            _set_error_trailers(context, exc.code, exc.error_type or "BusinessError")
            set_mapped_error()
            # Concise business error log (no stack)
            logger.error(
                "grpc_mapped_error",
                method=method,
                code=str(exc.code),
                status=str(status),
                message=exc.message,
                transient=exc.transient if isinstance(exc, StoreException) else None,
            )
            await context.abort(status, exc.message)
        except Exception as exc:
            _set_error_trailers(context, BusinessCode.SYSTEM_ERROR, "SystemError")
            set_mapped_error()
            logger.error(
                "grpc_mapped_error",
                method=method,
                code=str(BusinessCode.SYSTEM_ERROR.value),
                status=str(grpc.StatusCode.INTERNAL),
                message=str(exc),
                exc_info=True,
            )
            await context.abort(grpc.StatusCode.INTERNAL, "Internal server error")
