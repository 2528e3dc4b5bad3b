"""读取结果公共结构"""

from dataclasses import dataclass
from enum import Enum
from typing import Optional

from domain.verification.entities.code_record import CodeRecord


class ReadStatus(str, Enum):
    """读取结果状态

    Attributes:
        OK: 成功（可能没有记录）
        UNAUTHORIZED: 未认证，需要重新登录
        INVALID_EMAIL: 收件人地址无效
        FORBIDDEN_DOMAIN: 收件人域名不在允许列表中
        UNAVAILABLE: 存储不可用
    """

    OK = "ok"
    UNAUTHORIZED = "unauthorized"
    INVALID_EMAIL = "invalid_email"
    FORBIDDEN_DOMAIN = "forbidden_domain"
    UNAVAILABLE = "unavailable"


@dataclass(frozen=True)
class CodeItem:
    """返回给调用方的验证码条目"""

    code: str
    sender: Optional[str]
    recipient: str
    timestamp: int
    time: str
    is_protected: bool

    @classmethod
    def from_record(cls, record: CodeRecord) -> "CodeItem":
        return cls(
            code=record.code,
            sender=record.sender,
            recipient=record.recipient,
            timestamp=int(record.received_at.timestamp()),
            time=record.received_at.isoformat(),
            is_protected=record.is_protected,
        )

    def to_dict(self) -> dict:
        return {
            "code": self.code,
            "from": self.sender,
            "to": self.recipient,
            "timestamp": self.timestamp,
            "time": self.time,
            "isProtected": self.is_protected,
        }
