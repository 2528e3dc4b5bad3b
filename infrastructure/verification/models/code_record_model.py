"""验证码记录 SQLAlchemy 数据模型"""

from datetime import datetime
from typing import Optional

from sqlalchemy import Boolean, DateTime, Index, Integer, String, UniqueConstraint
from sqlalchemy.orm import DeclarativeBase, Mapped, mapped_column


class Base(DeclarativeBase):
    """SQLAlchemy 声明式基类"""
    pass


class CodeRecordModel(Base):
    """
    验证码记录数据库模型

    对应领域层的 CodeRecord 实体。
    时间统一以无时区 UTC 存储，(code, recipient, received_at) 唯一。
    """

    __tablename__ = "codes"
    __table_args__ = (
        UniqueConstraint("code", "recipient", "received_at", name="uq_codes_dedup_key"),
        Index("ix_codes_recipient_received_at", "recipient", "received_at"),
    )

    # 主键
    id: Mapped[str] = mapped_column(String(36), primary_key=True)

    # 验证码
    code: Mapped[str] = mapped_column(String(32), nullable=False)

    # 收发件人
    recipient: Mapped[str] = mapped_column(String(320), nullable=False)
    sender: Mapped[Optional[str]] = mapped_column(String(320), nullable=True)

    # 邮件信息
    subject: Mapped[str] = mapped_column(String(1024), nullable=False, default="")
    received_at: Mapped[datetime] = mapped_column(DateTime, nullable=False, index=True)
    is_protected: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False)

    # 时间戳
    created_at: Mapped[datetime] = mapped_column(DateTime, nullable=False)

    # 版本
    version: Mapped[int] = mapped_column(Integer, nullable=False, default=0)

    def __repr__(self) -> str:
        return (
            f"<CodeRecordModel(id={self.id}, code={self.code}, "
            f"recipient={self.recipient}, received_at={self.received_at})>"
        )
