"""
数据库配置和连接管理
"""
from sqlalchemy.engine import make_url
from sqlalchemy.ext.asyncio import AsyncEngine, create_async_engine

from core.config import DatabaseSettings
from core.logging_config import get_logger
from infrastructure.models import Base


logger = get_logger(__name__)


def build_async_url(database_url: str) -> str:
    """确保数据库URL使用异步驱动"""
    url = make_url(database_url)
    drivername = url.drivername

    if "+" in drivername:
        return database_url

    driver_map = {
        "postgresql": "postgresql+asyncpg",
        "postgres": "postgresql+asyncpg",
        "sqlite": "sqlite+aiosqlite",
    }

    if drivername not in driver_map:
        raise ValueError(f"不支持的数据库驱动: {drivername}. 请使用 async 驱动或更新 DATABASE__URL")

    return url.set(drivername=driver_map[drivername]).render_as_string(hide_password=False)


def create_engine(config: DatabaseSettings, **overrides) -> AsyncEngine:
    """创建异步引擎（连接池在所有并发调用间共享）"""
    url = make_url(build_async_url(config.dsn))
    logger.info(
        "database_config",
        driver=url.drivername,
        host=url.host,
        port=url.port,
        user=url.username,
        database=url.database,
        sslmode=config.sslmode,
    )
    options = {"echo": config.echo, "pool_pre_ping": True}
    if not url.drivername.startswith("sqlite"):
        options.update(pool_size=config.pool_size, max_overflow=config.max_overflow)
    options.update(overrides)
    return create_async_engine(url, **options)


async def create_tables(engine: AsyncEngine) -> None:
    """
    创建所有表

    根据models中定义的所有模型创建对应的数据库表
    """
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)


async def drop_tables(engine: AsyncEngine) -> None:
    """
    删除所有表

    警告：仅用于测试环境，会删除所有数据！
    """
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.drop_all)
