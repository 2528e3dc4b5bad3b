"""CodeRecordBuilder 单元测试"""

import base64
from datetime import datetime, timezone

import pytest

from application.verification.services.code_record_builder import CodeRecordBuilder
from domain.mail.value_objects.mailbox_message import MailboxMessage, MessageHeader
from domain.mail.value_objects.message_part import MessagePart

NOW = datetime(2024, 1, 1, 12, 0, 0, tzinfo=timezone.utc)


@pytest.fixture
def builder():
    return CodeRecordBuilder(clock=lambda: NOW)


def headers(**values):
    names = {"from_": "From", "to": "To", "subject": "Subject", "date": "Date"}
    return tuple(MessageHeader(names[k], v) for k, v in values.items())


class TestBuild:
    """构建验证码记录"""

    def test_builds_record_per_code(self, builder):
        """测试每个验证码生成一条记录"""
        message = MailboxMessage(
            message_id="m1",
            headers=headers(
                from_="Service <NoReply@Service.com>",
                to="User <User@Example.com>",
                subject="Sign in",
                date="Mon, 01 Jan 2024 11:58:00 +0000",
            ),
            payload=MessagePart(mime_type="text/plain", body=b"codes 222222 and 111111"),
        )

        records = builder.build(message)

        assert [r.code for r in records] == ["111111", "222222"]
        record = records[0]
        assert record.recipient == "user@example.com"
        assert record.sender == "noreply@service.com"
        assert record.subject == "Sign in"
        assert record.received_at == datetime(2024, 1, 1, 11, 58, tzinfo=timezone.utc)
        assert record.is_protected is False

    def test_no_codes(self, builder):
        """测试没有验证码时返回空列表"""
        message = MailboxMessage(
            message_id="m1",
            payload=MessagePart(mime_type="text/plain", body=b"hello"),
        )
        assert builder.build(message) == []

    def test_missing_headers_use_defaults(self, builder):
        """测试缺失头部时使用默认值"""
        message = MailboxMessage(
            message_id="m1",
            payload=MessagePart(mime_type="text/plain", body=b"code 123456"),
        )

        [record] = builder.build(message)

        assert record.recipient == "unknown"
        assert record.sender is None
        assert record.subject == "(no subject)"
        assert record.received_at == NOW

    def test_protected_reset_mail(self, builder):
        """测试密码重置邮件被标记为受保护"""
        html = base64.b64encode(b"<div>Your password reset code: 123456</div>")
        message = MailboxMessage(
            message_id="m1",
            headers=headers(to="a@x.com"),
            payload=MessagePart(
                mime_type="multipart/alternative",
                parts=(MessagePart(mime_type="text/html", body=html, transfer_encoding="base64"),),
            ),
        )

        [record] = builder.build(message)

        assert record.code == "123456"
        assert record.is_protected is True

    def test_css_color_in_html_is_not_a_code(self, builder):
        """测试 HTML 样式中的颜色值不会被当作验证码"""
        html = b'<p style="color:#123456">Hello</p><style>.x{color:#654321}</style>'
        message = MailboxMessage(
            message_id="m1",
            payload=MessagePart(mime_type="text/html", body=html),
        )

        assert builder.build(message) == []

    def test_encoded_subject(self, builder):
        """测试解码 RFC 2047 主题"""
        message = MailboxMessage(
            message_id="m1",
            headers=headers(subject="=?utf-8?b?5L2g5aW9?="),
            payload=MessagePart(mime_type="text/plain", body=b"123456"),
        )

        [record] = builder.build(message)

        assert record.subject == "你好"


class TestResolveReceivedAt:
    """接收时间回退顺序"""

    def test_prefers_date_header(self, builder):
        """测试优先使用 Date 头"""
        message = MailboxMessage(
            message_id="m1",
            headers=headers(date="Mon, 01 Jan 2024 20:00:00 +0800"),
            internal_date=datetime(2020, 1, 1, tzinfo=timezone.utc),
        )
        assert builder.resolve_received_at(message) == datetime(2024, 1, 1, 12, tzinfo=timezone.utc)

    def test_falls_back_to_internal_date(self, builder):
        """测试 Date 头无效时使用内部时间"""
        message = MailboxMessage(
            message_id="m1",
            headers=headers(date="garbage"),
            internal_date=datetime(2024, 1, 1, 11, 30),
        )
        assert builder.resolve_received_at(message) == datetime(2024, 1, 1, 11, 30, tzinfo=timezone.utc)

    def test_falls_back_to_clock(self, builder):
        """测试都缺失时使用当前时间"""
        assert builder.resolve_received_at(MailboxMessage(message_id="m1")) == NOW
