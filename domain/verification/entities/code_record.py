"""验证码记录实体"""

from dataclasses import dataclass, field
from datetime import datetime
from typing import Optional
from uuid import UUID

from domain.common.base_entity import BaseEntity
from domain.common.exceptions import InvalidOperationException
from domain.verification.value_objects.dedup_key import DedupKey, normalize_timestamp

UNKNOWN_RECIPIENT = "unknown"
NO_SUBJECT = "(no subject)"


@dataclass(eq=False)
class CodeRecord(BaseEntity):
    """
    验证码记录实体

    一次同步中从一封邮件提取到的一个验证码。创建后不再修改。

    Attributes:
        code: 验证码（6 位数字，或 XXXXX-XXXXX 字母数字格式）
        recipient: 收件人地址（小写），未知时为 "unknown"
        sender: 发件人地址（小写），未知时为 None
        subject: 邮件主题
        received_at: 接收时间（UTC，毫秒精度）
        is_protected: 是否为受保护验证码（如密码重置邮件）
    """

    code: str = field(default="")
    recipient: str = field(default=UNKNOWN_RECIPIENT)
    sender: Optional[str] = field(default=None)
    subject: str = field(default=NO_SUBJECT)
    received_at: datetime = field(default=None)  # type: ignore
    is_protected: bool = field(default=False)

    def __post_init__(self) -> None:
        """初始化后验证"""
        self._validate()

    def _validate(self) -> None:
        if not self.code:
            raise InvalidOperationException(
                operation="create_code_record",
                reason="Code cannot be empty",
            )

        if self.received_at is None:
            raise InvalidOperationException(
                operation="create_code_record",
                reason="Received time cannot be None",
            )

    @classmethod
    def create(
        cls,
        code: str,
        recipient: Optional[str],
        received_at: datetime,
        sender: Optional[str] = None,
        subject: Optional[str] = None,
        is_protected: bool = False,
        id: Optional[UUID] = None,
    ) -> "CodeRecord":
        """
        工厂方法：创建验证码记录

        收件人/发件人统一小写，主题缺失时使用占位符，时间规范化为 UTC 毫秒。
        """
        kwargs = {
            "code": code,
            "recipient": (recipient or UNKNOWN_RECIPIENT).strip().lower() or UNKNOWN_RECIPIENT,
            "sender": sender.strip().lower() if sender else None,
            "subject": subject or NO_SUBJECT,
            "received_at": normalize_timestamp(received_at),
            "is_protected": bool(is_protected),
        }

        if id is not None:
            kwargs["id"] = id

        return cls(**kwargs)

    @property
    def dedup_key(self) -> DedupKey:
        """去重键"""
        return DedupKey.of(self.code, self.recipient, self.received_at)
