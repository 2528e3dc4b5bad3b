"""去重键值对象"""

from dataclasses import dataclass
from datetime import datetime, timezone

from domain.common.base_value_object import BaseValueObject
from domain.common.exceptions import InvalidValueObjectException


def normalize_timestamp(value: datetime) -> datetime:
    """
    规范化时间戳：转为 UTC 并截断到毫秒

    存储层按毫秒精度持久化，去重比较必须在同一精度上进行。
    无时区的时间按 UTC 处理。
    """
    if value.tzinfo is None:
        value = value.replace(tzinfo=timezone.utc)
    else:
        value = value.astimezone(timezone.utc)
    return value.replace(microsecond=(value.microsecond // 1000) * 1000)


@dataclass(frozen=True)
class DedupKey(BaseValueObject):
    """
    去重键 (code, recipient, received_at)

    三者完全一致时两条验证码记录视为重复。

    Attributes:
        code: 验证码
        recipient: 收件人（小写）
        received_at: 接收时间（UTC，毫秒精度）
    """

    code: str
    recipient: str
    received_at: datetime

    def validate(self) -> None:
        if not self.code:
            raise InvalidValueObjectException(
                value_object_type="DedupKey",
                value=self.code,
                reason="Code cannot be empty",
            )

    @classmethod
    def of(cls, code: str, recipient: str, received_at: datetime) -> "DedupKey":
        """创建规范化的去重键"""
        return cls(
            code=code,
            recipient=recipient.lower(),
            received_at=normalize_timestamp(received_at),
        )
