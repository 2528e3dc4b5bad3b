"""Verification 基础设施模块

提供验证码记录的持久化实现。
"""

from infrastructure.verification.models.code_record_model import Base, CodeRecordModel
from infrastructure.verification.repositories.sqlalchemy_code_record_repository import (
    SqlAlchemyCodeRecordRepository,
)

__all__ = [
    "Base",
    "CodeRecordModel",
    "SqlAlchemyCodeRecordRepository",
]
