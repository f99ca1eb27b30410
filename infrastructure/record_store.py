"""
记录存储网关实现 - 基于 SQLAlchemy 异步引擎执行参数化语句
"""
from __future__ import annotations

from contextlib import asynccontextmanager
from typing import Any, AsyncIterator, Mapping, Optional, Sequence

from sqlalchemy import exc as sa_exc
from sqlalchemy import text
from sqlalchemy.ext.asyncio import AsyncConnection, AsyncEngine

from core.logging_config import get_logger
from domain.board.store import RecordStore
from infrastructure.database import create_engine
from domain.common.exceptions import StoreErrorKind, StoreException


logger = get_logger(__name__)


_TRANSIENT_ERRORS = (
    sa_exc.OperationalError,
    sa_exc.InterfaceError,
    sa_exc.DisconnectionError,
    sa_exc.TimeoutError,
)


def classify_store_error(error: BaseException) -> StoreErrorKind:
    """将驱动/引擎异常归类为中立的错误类型"""
    if isinstance(error, sa_exc.DBAPIError) and error.connection_invalidated:
        return StoreErrorKind.TRANSIENT
    if isinstance(error, _TRANSIENT_ERRORS):
        return StoreErrorKind.TRANSIENT
    if isinstance(error, (ConnectionError, TimeoutError, OSError)):
        return StoreErrorKind.TRANSIENT
    return StoreErrorKind.FATAL


def _to_store_exception(error: Exception) -> StoreException:
    kind = classify_store_error(error)
    message = str(getattr(error, "orig", None) or error)
    return StoreException(message, kind=kind)


class SQLAlchemyRecordStore(RecordStore):
    """记录存储网关的 SQLAlchemy 实现

    Reads run on a pooled connection without an explicit transaction; every
    write runs in its own begin/commit scope.
    """

    def __init__(self, engine: AsyncEngine):
        self.engine = engine

    async def query(
        self, statement: str, params: Optional[Mapping[str, Any]] = None
    ) -> Sequence[Mapping[str, Any]]:
        try:
            async with self.engine.connect() as conn:
                result = await conn.execute(text(statement), dict(params or {}))
                return [dict(row) for row in result.mappings().all()]
        except Exception as error:
            store_error = _to_store_exception(error)
            logger.error("store_query_failed", statement=statement, kind=store_error.kind.value, error=store_error.message)
            raise store_error from error

    async def execute(
        self, statement: str, params: Optional[Mapping[str, Any]] = None
    ) -> int:
        try:
            async with self._transaction() as conn:
                result = await conn.execute(text(statement), dict(params or {}))
                return int(result.rowcount or 0)
        except Exception as error:
            store_error = _to_store_exception(error)
            logger.error("store_execute_failed", statement=statement, kind=store_error.kind.value, error=store_error.message)
            raise store_error from error

    @asynccontextmanager
    async def _transaction(self) -> AsyncIterator[AsyncConnection]:
        """显式事务：成功提交，失败回滚并抛出原始异常"""
        async with self.engine.connect() as conn:
            tx = await conn.begin()
            try:
                yield conn
            except BaseException:
                try:
                    await tx.rollback()
                except Exception as rollback_error:
                    # 回滚失败不单独上抛
                    logger.warning("store_rollback_failed", error=str(rollback_error))
                raise
            else:
                await tx.commit()

    async def close(self) -> None:
        await self.engine.dispose()


def create_record_store(config) -> SQLAlchemyRecordStore:
    """根据数据库配置创建网关（引擎延迟连接，首个语句时才建立连接）"""
    return SQLAlchemyRecordStore(create_engine(config))
