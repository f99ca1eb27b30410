from .request_id import RequestIDMiddleware
from .logging import LoggingMiddleware
from .tracing import TracingMiddleware

__all__ = [
    "RequestIDMiddleware",
    "LoggingMiddleware",
    "TracingMiddleware",
]
