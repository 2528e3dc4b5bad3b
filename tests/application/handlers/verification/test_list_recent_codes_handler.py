"""ListRecentCodesHandler 单元测试"""

from datetime import datetime, timedelta, timezone
from unittest.mock import Mock

import pytest

from application.handlers.verification import ListRecentCodesHandler, ReadStatus
from application.queries.verification import ListRecentCodesQuery
from domain.verification.entities.code_record import CodeRecord

NOW = datetime(2024, 1, 1, 12, 0, 0, tzinfo=timezone.utc)


@pytest.fixture
def handler(code_repository):
    return ListRecentCodesHandler(
        repository=code_repository,
        lookback_minutes=8,
        page_size=100,
        clock=lambda: NOW,
    )


def store(repository, code, minutes_ago, recipient="a@x.com", protected=False):
    repository.insert_many([
        CodeRecord.create(
            code=code,
            recipient=recipient,
            sender="s@service.com",
            received_at=NOW - timedelta(minutes=minutes_ago),
            is_protected=protected,
        )
    ])


class TestListRecentCodesHandler:
    """管理员视图"""

    def test_unauthorized(self, handler, code_repository):
        """测试未认证返回 UNAUTHORIZED 且不查询存储"""
        result = handler.handle(ListRecentCodesQuery(authorized=False))

        assert result.status == ReadStatus.UNAUTHORIZED
        assert code_repository.closed == 0

    def test_empty(self, handler):
        """测试没有记录时返回空列表"""
        result = handler.handle(ListRecentCodesQuery(authorized=True))

        assert result.status == ReadStatus.OK
        assert result.is_empty
        assert result.checked_at == NOW

    def test_returns_window_newest_first(self, handler, code_repository):
        """测试只返回回溯窗口内的记录，按时间降序"""
        store(code_repository, "111111", minutes_ago=5)
        store(code_repository, "222222", minutes_ago=1, protected=True)
        store(code_repository, "333333", minutes_ago=9)

        result = handler.handle(ListRecentCodesQuery(authorized=True))

        assert [item.code for item in result.items] == ["222222", "111111"]
        assert result.items[0].is_protected is True
        assert code_repository.closed == 1

    def test_item_format(self, handler, code_repository):
        """测试条目字段"""
        store(code_repository, "111111", minutes_ago=2)

        [item] = handler.handle(ListRecentCodesQuery(authorized=True)).items

        assert item.to_dict() == {
            "code": "111111",
            "from": "s@service.com",
            "to": "a@x.com",
            "timestamp": int((NOW - timedelta(minutes=2)).timestamp()),
            "time": (NOW - timedelta(minutes=2)).isoformat(),
            "isProtected": False,
        }

    def test_page_size(self, code_repository):
        """测试返回条数上限"""
        for i in range(5):
            store(code_repository, f"{i:06d}", minutes_ago=1 + i * 0.1)
        handler = ListRecentCodesHandler(code_repository, page_size=3, clock=lambda: NOW)

        assert len(handler.handle(ListRecentCodesQuery(authorized=True)).items) == 3

    def test_store_failure(self):
        """测试存储失败返回 UNAVAILABLE"""
        repository = Mock()
        repository.find_recent.side_effect = RuntimeError("connection refused")
        handler = ListRecentCodesHandler(repository, clock=lambda: NOW)

        result = handler.handle(ListRecentCodesQuery(authorized=True))

        assert result.status == ReadStatus.UNAVAILABLE
        assert result.items == []
        repository.close.assert_called_once()
