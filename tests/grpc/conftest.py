import grpc
import pytest_asyncio

from grpc_app.server import bind, build_server


@pytest_asyncio.fixture
async def start_board(hub):
    """Start an in-process server on an ephemeral port and return a channel to it."""
    started = []

    async def start(store, *, strict: bool = True) -> grpc.aio.Channel:
        server = build_server(store, hub, strict=strict)
        port = bind(server, "127.0.0.1:0")
        await server.start()
        channel = grpc.aio.insecure_channel(f"127.0.0.1:{port}")
        started.append((server, channel))
        return channel

    yield start

    for server, channel in started:
        await channel.close()
        await server.stop(grace=None)
