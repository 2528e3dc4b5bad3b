"""验证码应用层服务模块"""

from application.verification.services.code_record_builder import CodeRecordBuilder
from application.verification.services.dedup_filter_service import DedupFilterService

__all__ = [
    "CodeRecordBuilder",
    "DedupFilterService",
]
