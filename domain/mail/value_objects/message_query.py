"""邮箱查询值对象"""

from dataclasses import dataclass
from datetime import datetime, timezone
from typing import Optional, Tuple


@dataclass(frozen=True)
class MessageQuery:
    """
    邮箱查询条件："在某时间之后收到的消息"

    Attributes:
        received_after: 下界时间（带时区）
    """

    received_after: datetime

    @property
    def after_epoch(self) -> int:
        """下界的 Unix 秒"""
        received_after = self.received_after
        if received_after.tzinfo is None:
            received_after = received_after.replace(tzinfo=timezone.utc)
        return int(received_after.timestamp())


@dataclass(frozen=True)
class MessagePage:
    """
    一页消息 ID

    Attributes:
        ids: 消息 ID 列表
        next_page_token: 下一页令牌，None 表示已到末页
    """

    ids: Tuple[str, ...] = ()
    next_page_token: Optional[str] = None
