"""验证码记录仓储接口"""

from abc import ABC, abstractmethod
from datetime import datetime
from typing import List, Optional, Sequence

from domain.verification.entities.code_record import CodeRecord
from domain.verification.value_objects.dedup_key import DedupKey


class CodeRecordRepository(ABC):
    """
    验证码记录仓储接口

    定义验证码记录的数据访问契约，具体实现在基础设施层。
    存储层必须对 (code, recipient, received_at) 施加唯一约束。
    """

    @abstractmethod
    def find_matching(self, keys: Sequence[DedupKey]) -> List[DedupKey]:
        """
        查找已存在的去重键

        Args:
            keys: 候选去重键

        Returns:
            其中已持久化的去重键
        """
        raise NotImplementedError

    @abstractmethod
    def insert_many(self, records: Sequence[CodeRecord]) -> int:
        """
        批量插入记录

        违反唯一约束的记录视为重复并跳过，不抛出异常。

        Args:
            records: 待插入记录

        Returns:
            实际插入的记录数
        """
        raise NotImplementedError

    @abstractmethod
    def find_recent(
        self,
        since: datetime,
        recipient: Optional[str] = None,
        limit: Optional[int] = None,
    ) -> List[CodeRecord]:
        """
        查询某时间之后收到的记录

        Args:
            since: 时间下界（不含）
            recipient: 可选，按收件人过滤
            limit: 可选，最大返回数量

        Returns:
            记录列表，按接收时间降序
        """
        raise NotImplementedError

    def close(self) -> None:
        """释放底层资源（默认无操作）"""
        pass
