"""Pytest bootstrap configuration.

Environment is pinned before any module that reads application settings
is imported. Tests run against an in-memory SQLite database shared through
a single connection (StaticPool).
"""
import os

os.environ.setdefault("ENVIRONMENT", "test")
os.environ.setdefault("DEBUG", "false")
os.environ.setdefault("TELEMETRY__ENABLED", "false")
os.environ.setdefault("GRPC__TLS__ENABLED", "false")

from typing import Any, List, Mapping, Optional, Sequence

import pytest
import pytest_asyncio
from opentelemetry.sdk.trace.export import SimpleSpanProcessor
from opentelemetry.sdk.trace.export.in_memory_span_exporter import InMemorySpanExporter
from sqlalchemy.ext.asyncio import create_async_engine
from sqlalchemy.pool import StaticPool

from core.telemetry import ObservabilityHub
from domain.board.store import RecordStore
from domain.common.exceptions import StoreErrorKind, StoreException
from infrastructure.database import create_tables, drop_tables
from infrastructure.record_store import SQLAlchemyRecordStore


TEST_DATABASE_URL = "sqlite+aiosqlite:///:memory:"


@pytest_asyncio.fixture
async def engine():
    engine = create_async_engine(
        TEST_DATABASE_URL,
        poolclass=StaticPool,
        connect_args={"check_same_thread": False},
    )
    await create_tables(engine)
    try:
        yield engine
    finally:
        await drop_tables(engine)
        await engine.dispose()


@pytest.fixture
def store(engine) -> SQLAlchemyRecordStore:
    return SQLAlchemyRecordStore(engine)


class Seeder:
    """Direct inserts that bypass the board rules (disabled subjects, preset likes)."""

    def __init__(self, store: RecordStore):
        self.store = store

    async def subject(self, title: str, enabled: bool = True) -> int:
        await self.store.execute(
            "INSERT INTO subject (title, enabled) VALUES (:title, :enabled)",
            {"title": title, "enabled": enabled},
        )
        rows = await self.store.query("SELECT MAX(id) AS id FROM subject")
        return int(rows[0]["id"])

    async def question(self, subject_id: int, text: str, likes: int = 0) -> int:
        await self.store.execute(
            "INSERT INTO question (question, subject_id, likes) VALUES (:question, :subject_id, :likes)",
            {"question": text, "subject_id": subject_id, "likes": likes},
        )
        rows = await self.store.query("SELECT MAX(id) AS id FROM question")
        return int(rows[0]["id"])

    async def likes(self, question_id: int) -> int:
        rows = await self.store.query("SELECT likes FROM question WHERE id = :id", {"id": question_id})
        return int(rows[0]["likes"])

    async def count(self, table: str) -> int:
        rows = await self.store.query(f"SELECT COUNT(*) AS n FROM {table}")
        return int(rows[0]["n"])


@pytest.fixture
def seed(store) -> Seeder:
    return Seeder(store)


class SpyStore(RecordStore):
    """Records every statement; answers with canned rows."""

    def __init__(self, rows: Optional[Sequence[Mapping[str, Any]]] = None, rowcount: int = 1):
        self.rows = list(rows or [])
        self.rowcount = rowcount
        self.calls: List[tuple] = []

    async def query(self, statement, params=None):
        self.calls.append(("query", statement, dict(params or {})))
        return self.rows

    async def execute(self, statement, params=None):
        self.calls.append(("execute", statement, dict(params or {})))
        return self.rowcount

    async def close(self) -> None:
        return None


class FailingStore(RecordStore):
    """Every statement fails with the given exception."""

    def __init__(self, error: Exception):
        self.error = error

    async def query(self, statement, params=None):
        raise self.error

    async def execute(self, statement, params=None):
        raise self.error

    async def close(self) -> None:
        return None


@pytest.fixture
def spy_store() -> SpyStore:
    return SpyStore()


@pytest.fixture
def failing_store() -> FailingStore:
    return FailingStore(StoreException("connection refused", kind=StoreErrorKind.TRANSIENT))


class RecordingHub(ObservabilityHub):
    """Hub that also keeps every captured exception for assertions."""

    def __init__(self, *args, **kwargs):
        super().__init__(*args, **kwargs)
        self.captured = []

    def capture_exception(self, exc, **attributes):
        self.captured.append(exc)
        super().capture_exception(exc, **attributes)


@pytest.fixture
def span_exporter() -> InMemorySpanExporter:
    return InMemorySpanExporter()


@pytest.fixture
def hub(span_exporter) -> RecordingHub:
    hub = RecordingHub("board-test", "0.0.0", environment="test").setup(exporter_type="none")
    hub.add_span_processor(SimpleSpanProcessor(span_exporter))
    yield hub
    hub.shutdown()
