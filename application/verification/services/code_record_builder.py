"""验证码记录构建服务"""

import logging
from datetime import datetime, timezone
from typing import Callable, List, Optional

from domain.mail.services.content_decoder import ContentDecoder
from domain.mail.services.header_parser import (
    decode_header_value,
    extract_email_address,
    parse_date_header,
)
from domain.mail.value_objects.mailbox_message import MailboxMessage
from domain.verification.entities.code_record import CodeRecord, NO_SUBJECT
from domain.verification.services.code_extractor import CodeExtractor
from domain.verification.services.protection_classifier import ProtectionClassifier


class CodeRecordBuilder:
    """
    验证码记录构建服务

    将一封邮件依次经过 解码 -> 提取 -> 分类，生成零到多条 CodeRecord。
    """

    def __init__(
        self,
        decoder: Optional[ContentDecoder] = None,
        extractor: Optional[CodeExtractor] = None,
        classifier: Optional[ProtectionClassifier] = None,
        clock: Optional[Callable[[], datetime]] = None,
        logger: Optional[logging.Logger] = None,
    ):
        """
        Args:
            decoder: 正文解码服务
            extractor: 验证码提取服务
            classifier: 受保护分类服务
            clock: 当前时间函数（Date 头和内部时间都缺失时使用）
            logger: 可选的日志记录器
        """
        self._decoder = decoder or ContentDecoder()
        self._extractor = extractor or CodeExtractor()
        self._classifier = classifier or ProtectionClassifier()
        self._clock = clock or (lambda: datetime.now(timezone.utc))
        self._logger = logger or logging.getLogger(__name__)

    def build(self, message: MailboxMessage) -> List[CodeRecord]:
        """
        从邮件构建验证码记录

        Args:
            message: 邮箱消息

        Returns:
            验证码记录列表（按验证码排序），没有验证码时为空列表
        """
        subject = decode_header_value(message.get_header("Subject")) or NO_SUBJECT
        sender = extract_email_address(message.get_header("From"))
        recipient = extract_email_address(message.get_header("To"))
        received_at = self.resolve_received_at(message)

        content = self._decoder.decode(message.payload)
        codes = self._extractor.extract(content.text)

        if not codes:
            self._logger.debug(f"[SYNC] No codes in \"{subject}\"")
            return []

        is_protected = self._classifier.classify(content.text, content.html)
        self._logger.info(
            f"[SYNC] Found {len(codes)} code(s) in \"{subject}\" from {sender}"
        )

        return [
            CodeRecord.create(
                code=code,
                recipient=recipient,
                sender=sender,
                subject=subject,
                received_at=received_at,
                is_protected=is_protected,
            )
            for code in sorted(codes)
        ]

    def resolve_received_at(self, message: MailboxMessage) -> datetime:
        """Date 头 -> 后端内部时间 -> 当前时间"""
        received_at = parse_date_header(message.get_header("Date"))
        if received_at is not None:
            return received_at

        if message.internal_date is not None:
            internal = message.internal_date
            if internal.tzinfo is None:
                internal = internal.replace(tzinfo=timezone.utc)
            return internal.astimezone(timezone.utc)

        return self._clock()
