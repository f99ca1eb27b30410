"""
链路追踪中间件
按请求打开 SERVER span，沿用 traceid/spanid 请求头续接上游链路（与 gRPC 元数据同名）
"""
import structlog
from fastapi import Request
from opentelemetry.trace import SpanKind, Status, StatusCode
from starlette.middleware.base import BaseHTTPMiddleware

from core.telemetry import ObservabilityHub


SPAN_OP = "http.server"


def _route_name(request: Request) -> str:
    """优先使用路由模板（/questions/{question_id}），避免 span 名随ID膨胀"""
    route = request.scope.get("route")
    path = getattr(route, "path", None) or request.url.path
    return f"{request.method} {path}"


class TracingMiddleware(BaseHTTPMiddleware):
    """
    请求级 span

    hub 取自 app.state.observability（由 lifespan 创建），未初始化时直接放行
    """

    SKIP_PATHS = {"/health", "/docs", "/redoc", "/openapi.json"}

    async def dispatch(self, request: Request, call_next):
        hub: ObservabilityHub | None = getattr(request.app.state, "observability", None)
        if hub is None or request.url.path in self.SKIP_PATHS:
            return await call_next(request)

        parent = hub.remote_parent(request.headers)
        with hub.tracer.start_as_current_span(
            _route_name(request),
            context=parent,
            kind=SpanKind.SERVER,
            record_exception=False,
            set_status_on_exception=False,
        ) as span:
            span.set_attribute("http.request.method", request.method)
            span.set_attribute("url.path", request.url.path)
            span.set_attribute("span.op", SPAN_OP)

            span_context = span.get_span_context()
            structlog.contextvars.bind_contextvars(
                trace_id=format(span_context.trace_id, "032x"),
                span_id=format(span_context.span_id, "016x"),
            )
            try:
                response = await call_next(request)
            except Exception as exc:
                # 未处理异常由全局异常处理器上报
                span.record_exception(exc)
                span.set_status(Status(StatusCode.ERROR, str(exc)))
                raise
            finally:
                structlog.contextvars.unbind_contextvars("trace_id", "span_id")

            span.update_name(_route_name(request))
            span.set_attribute("http.response.status_code", response.status_code)
            if response.status_code >= 500:
                span.set_status(Status(StatusCode.ERROR))
            else:
                span.set_status(Status(StatusCode.OK))
            return response
