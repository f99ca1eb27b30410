from __future__ import annotations

from typing import Optional, Sequence

import grpc
from grpc_health.v1 import health, health_pb2, health_pb2_grpc

from core.config import GrpcTlsSettings, settings
from core.logging_config import get_logger
from core.telemetry import ObservabilityHub
from domain.board.store import RecordStore
from grpc_app.generated import board_pb2_grpc
from grpc_app.interceptors.exceptions import ExceptionMappingInterceptor
from grpc_app.interceptors.logging import LoggingInterceptor
from grpc_app.interceptors.store import StoreSessionInterceptor
from grpc_app.interceptors.tracing import TracingInterceptor
from grpc_app.services.board_service import BoardService


logger = get_logger(__name__)

BOARD_SERVICE_NAME = "board.Board"


def build_interceptors(store: RecordStore, hub: ObservabilityHub) -> Sequence[grpc.aio.ServerInterceptor]:
    """Interceptor chain, outermost first; tracing always runs before store binding."""
    return (
        LoggingInterceptor(),
        ExceptionMappingInterceptor(),  # maps business exceptions
        TracingInterceptor(hub),        # span per call from traceid/spanid metadata
        StoreSessionInterceptor(store), # binds the record store to the call
    )


def build_server(
    store: RecordStore,
    hub: ObservabilityHub,
    *,
    strict: Optional[bool] = None,
    max_concurrent_streams: Optional[int] = None,
) -> grpc.aio.Server:
    """Create the server with the board service registered but no port bound."""
    streams = settings.grpc.max_concurrent_streams if max_concurrent_streams is None else max_concurrent_streams
    options = [
        ("grpc.max_concurrent_streams", max(1, streams)),
    ]
    server = grpc.aio.server(interceptors=build_interceptors(store, hub), options=options)

    # Register services
    board_service = BoardService(strict=settings.board.strict if strict is None else strict)
    board_pb2_grpc.add_BoardServicer_to_server(board_service, server)

    # Health service
    health_svc = health.HealthServicer()
    health_pb2_grpc.add_HealthServicer_to_server(health_svc, server)
    health_svc.set("", health_pb2.HealthCheckResponse.SERVING)
    health_svc.set(BOARD_SERVICE_NAME, health_pb2.HealthCheckResponse.SERVING)

    return server


def server_credentials(tls: GrpcTlsSettings) -> Optional[grpc.ServerCredentials]:
    """TLS credentials when enabled, ``None`` for plaintext."""
    if not tls.enabled:
        return None
    if not (tls.cert and tls.key):
        raise RuntimeError("GRPC TLS enabled but cert/key not provided")
    with open(tls.cert, "rb") as f:
        cert_chain = f.read()
    with open(tls.key, "rb") as f:
        private_key = f.read()
    root_certificates = None
    if tls.ca:
        with open(tls.ca, "rb") as f:
            root_certificates = f.read()
    return grpc.ssl_server_credentials(
        [(private_key, cert_chain)],
        root_certificates=root_certificates,
        require_client_auth=bool(root_certificates),
    )


def bind(server: grpc.aio.Server, address: str, credentials: Optional[grpc.ServerCredentials] = None) -> int:
    """Bind ``address`` and return the port; failure to bind raises."""
    if credentials is None:
        port = server.add_insecure_port(address)
    else:
        port = server.add_secure_port(address, credentials)
    if not port:
        raise RuntimeError(f"failed to bind gRPC server on {address}")
    return port


async def create_server(store: RecordStore, hub: ObservabilityHub) -> grpc.aio.Server:
    server = build_server(store, hub)

    # Bind address
    address = f"{settings.grpc.host}:{settings.grpc.port}"
    port = bind(server, address, server_credentials(settings.grpc.tls))
    logger.info("grpc_bound", address=address, port=port, tls=settings.grpc.tls.enabled)
    return server
