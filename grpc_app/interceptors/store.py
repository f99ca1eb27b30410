from __future__ import annotations

import contextvars
from contextlib import asynccontextmanager

from domain.board.store import RecordStore
from grpc_app.interceptors.base import CallScopeInterceptor


_call_store: contextvars.ContextVar[RecordStore | None] = contextvars.ContextVar("grpc_call_store", default=None)


def get_call_store() -> RecordStore | None:
    return _call_store.get()


class StoreSessionInterceptor(CallScopeInterceptor):
    """Attach the shared record store to every call's context."""

    def __init__(self, store: RecordStore) -> None:
        self._store = store

    @asynccontextmanager
    async def call_scope(self, handler_call_details, request, context):
        token = _call_store.set(self._store)
        try:
            yield self._store
        finally:
            _call_store.reset(token)
