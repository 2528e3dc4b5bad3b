"""邮箱消息值对象"""

from dataclasses import dataclass, field
from datetime import datetime
from typing import Optional, Tuple

from domain.mail.value_objects.message_part import MessagePart


@dataclass(frozen=True)
class MessageHeader:
    """邮件头部（名称, 值）"""

    name: str
    value: str


@dataclass(frozen=True)
class MailboxMessage:
    """
    从邮箱后端获取的完整消息

    Attributes:
        message_id: 后端分配的消息 ID（Gmail message id 或 IMAP UID）
        headers: 头部列表
        payload: MIME 部件树根节点
        internal_date: 后端记录的接收时间（Date 头缺失或无法解析时使用）
    """

    message_id: str
    headers: Tuple[MessageHeader, ...] = field(default_factory=tuple)
    payload: MessagePart = field(default_factory=MessagePart)
    internal_date: Optional[datetime] = None

    def get_header(self, name: str) -> Optional[str]:
        """按名称获取头部值（大小写不敏感），不存在返回 None"""
        lowered = name.lower()
        for header in self.headers:
            if header.name.lower() == lowered:
                return header.value
        return None
