"""查询最近验证码 Handler（管理员视图）"""

import logging
from dataclasses import dataclass, field
from datetime import datetime, timedelta, timezone
from typing import Callable, List, Optional

from application.handlers.verification.code_items import CodeItem, ReadStatus
from application.queries.verification.list_recent_codes import ListRecentCodesQuery
from domain.verification.repositories.code_record_repository import CodeRecordRepository


@dataclass
class RecentCodesResult:
    """管理员视图查询结果

    Attributes:
        status: 结果状态（ok / unauthorized / unavailable）
        items: 验证码条目，按接收时间降序
        checked_at: 查询时间
    """

    status: ReadStatus
    checked_at: datetime
    items: List[CodeItem] = field(default_factory=list)

    @property
    def is_empty(self) -> bool:
        return self.status == ReadStatus.OK and not self.items


class ListRecentCodesHandler:
    """查询最近验证码 Handler

    返回回溯窗口内所有收件人的验证码（包括受保护的），最多 page_size 条。
    这是一个纯读取操作。
    """

    DEFAULT_LOOKBACK_MINUTES = 8
    DEFAULT_PAGE_SIZE = 100

    def __init__(
        self,
        repository: CodeRecordRepository,
        lookback_minutes: int = DEFAULT_LOOKBACK_MINUTES,
        page_size: int = DEFAULT_PAGE_SIZE,
        clock: Optional[Callable[[], datetime]] = None,
        logger: Optional[logging.Logger] = None,
    ):
        """初始化 Handler

        Args:
            repository: 验证码记录仓储
            lookback_minutes: 回溯窗口（分钟）
            page_size: 最大返回条数
            clock: 当前时间函数（测试用）
            logger: 日志记录器
        """
        self._repository = repository
        self._lookback_minutes = lookback_minutes
        self._page_size = page_size
        self._clock = clock or (lambda: datetime.now(timezone.utc))
        self._logger = logger or logging.getLogger(__name__)

    def handle(self, query: ListRecentCodesQuery) -> RecentCodesResult:
        """处理查询请求"""
        checked_at = self._clock()

        if not query.authorized:
            return RecentCodesResult(status=ReadStatus.UNAUTHORIZED, checked_at=checked_at)

        since = checked_at - timedelta(minutes=self._lookback_minutes)
        try:
            records = self._repository.find_recent(since, limit=self._page_size)
        except Exception as e:
            self._logger.error(f"Database error while listing recent codes: {e}")
            return RecentCodesResult(status=ReadStatus.UNAVAILABLE, checked_at=checked_at)
        finally:
            self._repository.close()

        return RecentCodesResult(
            status=ReadStatus.OK,
            checked_at=checked_at,
            items=[CodeItem.from_record(record) for record in records],
        )
