import asyncio
import sys

from core.config import settings
from core.logging_config import get_logger
from core.telemetry import ObservabilityHub, create_hub
from infrastructure.record_store import create_record_store
from grpc_app.server import create_server


logger = get_logger(__name__)


def _fatal(event: str, exc: BaseException, hub: ObservabilityHub | None = None) -> None:
    """Log, report to the hub when there is one, and terminate the process."""
    logger.critical(event, error=str(exc), exc_info=True)
    if hub is not None:
        hub.capture_exception(exc, event=event)
        hub.shutdown()
    sys.exit(1)


async def main() -> None:
    if not settings.grpc.enabled:
        logger.warning("grpc_disabled", message="gRPC disabled by config (GRPC__ENABLED=false)")
        return

    try:
        hub = create_hub(settings)
    except Exception as exc:
        _fatal("telemetry_init_failed", exc)

    try:
        store = create_record_store(settings.database)
    except Exception as exc:
        _fatal("store_open_failed", exc, hub)

    try:
        server = await create_server(store, hub)
    except Exception as exc:
        await store.close()
        _fatal("grpc_bind_failed", exc, hub)

    address = f"{settings.grpc.host}:{settings.grpc.port}"
    logger.info("grpc_starting", address=address)
    await server.start()
    logger.info("grpc_started", address=address)
    try:
        await server.wait_for_termination()
    except (KeyboardInterrupt, asyncio.CancelledError):
        logger.info("grpc_stopping")
        await server.stop(grace=None)
    finally:
        await store.close()
        hub.flush(settings.telemetry.flush_timeout_ms)
        hub.shutdown()


if __name__ == "__main__":
    asyncio.run(main())
