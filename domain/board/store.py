"""
记录存储网关接口 - 定义数据访问的抽象接口
"""
from abc import ABC, abstractmethod
from typing import Any, Mapping, Optional, Sequence


class RecordStore(ABC):
    """参数化读写的抽象网关 - 只定义能做什么，不管怎么做

    Implementations raise ``domain.common.exceptions.StoreException`` on any
    store failure.
    """

    @abstractmethod
    async def query(
        self, statement: str, params: Optional[Mapping[str, Any]] = None
    ) -> Sequence[Mapping[str, Any]]:
        """执行只读查询，返回行映射列表"""
        pass

    @abstractmethod
    async def execute(
        self, statement: str, params: Optional[Mapping[str, Any]] = None
    ) -> int:
        """在显式事务中执行单条写语句，返回受影响行数"""
        pass

    async def close(self) -> None:
        """释放底层资源"""
        return None
