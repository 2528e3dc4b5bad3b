"""GetRecipientCodesHandler 单元测试"""

from datetime import datetime, timedelta, timezone
from unittest.mock import Mock

import pytest

from application.handlers.verification import GetRecipientCodesHandler, ReadStatus
from application.queries.verification import GetRecipientCodesQuery
from domain.verification.entities.code_record import CodeRecord

NOW = datetime(2024, 1, 1, 12, 0, 0, tzinfo=timezone.utc)


def store(repository, code, recipient="user@example.com", minutes_ago=1, protected=False):
    repository.insert_many([
        CodeRecord.create(
            code=code,
            recipient=recipient,
            received_at=NOW - timedelta(minutes=minutes_ago),
            is_protected=protected,
        )
    ])


@pytest.fixture
def handler(code_repository):
    return GetRecipientCodesHandler(
        repository=code_repository,
        allowed_domains=["example.com"],
        lock_passwords=["unlock-me"],
        clock=lambda: NOW,
    )


class TestValidation:
    """输入校验"""

    @pytest.mark.parametrize("email", ["", "   ", "not-an-email"])
    def test_invalid_email(self, handler, email):
        """测试无效邮箱"""
        result = handler.handle(GetRecipientCodesQuery(email=email))

        assert result.status == ReadStatus.INVALID_EMAIL
        assert result.message

    def test_forbidden_domain(self, handler):
        """测试域名不在允许列表"""
        result = handler.handle(GetRecipientCodesQuery(email="user@other.com"))

        assert result.status == ReadStatus.FORBIDDEN_DOMAIN

    def test_no_allowed_domains_allows_all(self, code_repository):
        """测试未配置允许列表时不限制域名"""
        handler = GetRecipientCodesHandler(code_repository, clock=lambda: NOW)

        assert handler.handle(GetRecipientCodesQuery(email="user@any.org")).status == ReadStatus.OK


class TestRecipientScope:
    """收件人范围"""

    def test_only_recipient_codes(self, handler, code_repository):
        """测试只返回该收件人的验证码"""
        store(code_repository, "111111")
        store(code_repository, "222222", recipient="someone@example.com")

        result = handler.handle(GetRecipientCodesQuery(email=" User@Example.com "))

        assert result.status == ReadStatus.OK
        assert result.email == "user@example.com"
        assert [item.code for item in result.items] == ["111111"]

    def test_empty(self, handler):
        """测试没有记录"""
        result = handler.handle(GetRecipientCodesQuery(email="user@example.com"))

        assert result.status == ReadStatus.OK
        assert result.items == []
        assert result.locked_count == 0


class TestProtectedCodes:
    """受保护验证码"""

    def test_withheld_without_password(self, handler, code_repository):
        """测试未解锁时只返回数量"""
        store(code_repository, "111111")
        store(code_repository, "222222", protected=True)

        result = handler.handle(GetRecipientCodesQuery(email="user@example.com"))

        assert [item.code for item in result.items] == ["111111"]
        assert result.locked_items == []
        assert result.locked_count == 1
        assert result.unlocked is False

    def test_wrong_password(self, handler, code_repository):
        """测试错误解锁密码返回未认证，且不读取存储"""
        store(code_repository, "222222", protected=True)

        result = handler.handle(GetRecipientCodesQuery(email="user@example.com", unlock_password="nope"))

        assert result.status == ReadStatus.UNAUTHORIZED
        assert result.message == "Unauthorized."
        assert result.unlocked is False
        assert result.locked_items == []
        assert result.items == []

    def test_blank_password_is_not_rejected(self, handler, code_repository):
        """测试空白解锁密码视为未提供"""
        store(code_repository, "222222", protected=True)

        result = handler.handle(GetRecipientCodesQuery(email="user@example.com", unlock_password="   "))

        assert result.status == ReadStatus.OK
        assert result.locked_count == 1

    def test_unlocked(self, handler, code_repository):
        """测试正确解锁密码返回受保护验证码"""
        store(code_repository, "222222", protected=True)

        result = handler.handle(
            GetRecipientCodesQuery(email="user@example.com", unlock_password="unlock-me")
        )

        assert result.unlocked is True
        assert [item.code for item in result.locked_items] == ["222222"]
        assert result.locked_count == 1
        assert result.items == []

    def test_no_lock_passwords_never_unlocks(self, code_repository):
        """测试未配置解锁密码时永远无法解锁"""
        handler = GetRecipientCodesHandler(code_repository, clock=lambda: NOW)

        result = handler.handle(GetRecipientCodesQuery(email="user@example.com", unlock_password=""))

        assert result.unlocked is False


class TestStoreFailure:
    """存储失败"""

    def test_unavailable(self):
        """测试存储失败返回 UNAVAILABLE"""
        repository = Mock()
        repository.find_recent.side_effect = RuntimeError("connection refused")
        handler = GetRecipientCodesHandler(repository, clock=lambda: NOW)

        result = handler.handle(GetRecipientCodesQuery(email="user@example.com"))

        assert result.status == ReadStatus.UNAVAILABLE
        repository.close.assert_called_once()
