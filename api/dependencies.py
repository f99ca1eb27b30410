"""
API依赖项 - 记录存储与看板服务
"""
from fastapi import Depends, Request

from application.services.board_service import BoardApplicationService
from core.config import settings
from domain.board.store import RecordStore


async def get_record_store(request: Request) -> RecordStore:
    """应用生命周期内共享的记录存储（由 lifespan 创建）"""
    store = getattr(request.app.state, "record_store", None)
    if store is None:
        raise RuntimeError("record store is not initialised")
    return store


async def get_board_service(store: RecordStore = Depends(get_record_store)) -> BoardApplicationService:
    return BoardApplicationService(store, strict=settings.board.strict)
