"""按收件人查询验证码 Handler"""

import hmac
import logging
from dataclasses import dataclass, field
from datetime import datetime, timedelta, timezone
from typing import Callable, List, Optional, Sequence

from application.handlers.verification.code_items import CodeItem, ReadStatus
from application.queries.verification.get_recipient_codes import GetRecipientCodesQuery
from domain.verification.repositories.code_record_repository import CodeRecordRepository


@dataclass
class RecipientCodesResult:
    """收件人视图查询结果

    Attributes:
        status: 结果状态
        email: 规范化后的收件人地址
        items: 普通验证码，按接收时间降序
        locked_items: 受保护验证码（仅在已解锁时返回）
        locked_count: 受保护验证码数量（无论是否解锁都会报告）
        unlocked: 是否提供了正确的解锁密码
        checked_at: 查询时间
        message: 错误说明
    """

    status: ReadStatus
    checked_at: datetime
    email: str = ""
    items: List[CodeItem] = field(default_factory=list)
    locked_items: List[CodeItem] = field(default_factory=list)
    locked_count: int = 0
    unlocked: bool = False
    message: Optional[str] = None


class GetRecipientCodesHandler:
    """按收件人查询验证码 Handler

    受保护验证码默认不返回内容，只报告数量；提供 lock_passwords 中的
    任一密码后才返回。提供了错误的解锁密码时返回 UNAUTHORIZED。
    """

    DEFAULT_LOOKBACK_MINUTES = 8
    DEFAULT_PAGE_SIZE = 100

    def __init__(
        self,
        repository: CodeRecordRepository,
        lookback_minutes: int = DEFAULT_LOOKBACK_MINUTES,
        page_size: int = DEFAULT_PAGE_SIZE,
        allowed_domains: Sequence[str] = (),
        lock_passwords: Sequence[str] = (),
        clock: Optional[Callable[[], datetime]] = None,
        logger: Optional[logging.Logger] = None,
    ):
        """初始化 Handler

        Args:
            repository: 验证码记录仓储
            lookback_minutes: 回溯窗口（分钟）
            page_size: 最大返回条数
            allowed_domains: 允许查询的收件人域名，为空表示不限制
            lock_passwords: 受保护验证码的解锁密码
            clock: 当前时间函数（测试用）
            logger: 日志记录器
        """
        self._repository = repository
        self._lookback_minutes = lookback_minutes
        self._page_size = page_size
        self._allowed_domains = [d.lower() for d in allowed_domains if d]
        self._lock_passwords = [p for p in lock_passwords if p]
        self._clock = clock or (lambda: datetime.now(timezone.utc))
        self._logger = logger or logging.getLogger(__name__)

    def handle(self, query: GetRecipientCodesQuery) -> RecipientCodesResult:
        """处理查询请求"""
        checked_at = self._clock()
        email = (query.email or "").strip().lower()

        if not email or "@" not in email:
            return RecipientCodesResult(
                status=ReadStatus.INVALID_EMAIL,
                checked_at=checked_at,
                email=email,
                message="Please provide a valid email address.",
            )

        if not self.is_allowed_email(email):
            return RecipientCodesResult(
                status=ReadStatus.FORBIDDEN_DOMAIN,
                checked_at=checked_at,
                email=email,
                message="Email domain is not allowed.",
            )

        # 提供了解锁密码但不正确：拒绝，而不是当作未解锁
        unlock_password = (query.unlock_password or "").strip()
        unlocked = self.is_unlock_password_valid(unlock_password)
        if unlock_password and not unlocked:
            self._logger.warning("Rejected unlock password for recipient lookup")
            return RecipientCodesResult(
                status=ReadStatus.UNAUTHORIZED,
                checked_at=checked_at,
                email=email,
                message="Unauthorized.",
            )

        since = checked_at - timedelta(minutes=self._lookback_minutes)
        try:
            records = self._repository.find_recent(
                since, recipient=email, limit=self._page_size
            )
        except Exception as e:
            self._logger.error(f"Database error while listing codes for recipient: {e}")
            return RecipientCodesResult(
                status=ReadStatus.UNAVAILABLE,
                checked_at=checked_at,
                email=email,
                message="Server unavailable.",
            )
        finally:
            self._repository.close()

        items: List[CodeItem] = []
        locked: List[CodeItem] = []
        for record in records:
            item = CodeItem.from_record(record)
            if record.is_protected:
                locked.append(item)
            else:
                items.append(item)

        return RecipientCodesResult(
            status=ReadStatus.OK,
            checked_at=checked_at,
            email=email,
            items=items,
            locked_items=locked if unlocked else [],
            locked_count=len(locked),
            unlocked=unlocked,
        )

    def is_allowed_email(self, email: str) -> bool:
        """域名白名单检查，白名单为空时允许所有域名"""
        if not self._allowed_domains:
            return True
        _, _, domain = email.rpartition("@")
        return domain != "" and domain in self._allowed_domains

    def is_unlock_password_valid(self, password: Optional[str]) -> bool:
        password = (password or "").strip()
        if not password or not self._lock_passwords:
            return False
        return any(
            hmac.compare_digest(password.encode(), candidate.encode())
            for candidate in self._lock_passwords
        )
