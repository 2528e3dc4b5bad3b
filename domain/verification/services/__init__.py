"""Verification 领域服务模块"""

from domain.verification.services.code_extractor import CODE_PATTERN, CodeExtractor
from domain.verification.services.protection_classifier import ProtectionClassifier

__all__ = ["CODE_PATTERN", "CodeExtractor", "ProtectionClassifier"]
