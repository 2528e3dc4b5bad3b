"""Verification 领域模块

验证码同步的领域层，包含验证码记录实体、去重键值对象、
提取/分类领域服务和仓储接口。
"""

from domain.verification.entities.code_record import CodeRecord
from domain.verification.value_objects.dedup_key import DedupKey
from domain.verification.repositories.code_record_repository import CodeRecordRepository

__all__ = [
    "CodeRecord",
    "DedupKey",
    "CodeRecordRepository",
]
