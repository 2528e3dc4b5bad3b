"""Verification 领域值对象模块"""

from domain.verification.value_objects.dedup_key import DedupKey, normalize_timestamp

__all__ = ["DedupKey", "normalize_timestamp"]
