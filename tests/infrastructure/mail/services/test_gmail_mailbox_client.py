"""GmailMailboxClient 单元测试"""

import base64
from datetime import datetime, timezone
from unittest.mock import MagicMock, Mock

import pytest
from google.auth.exceptions import RefreshError
from googleapiclient.errors import HttpError

from domain.mail.services.content_decoder import ContentDecoder
from domain.mail.services.mailbox_client import (
    MailboxAuthenticationError,
    MailboxConnectionError,
)
from domain.mail.value_objects.message_query import MessageQuery
from infrastructure.mail.services.gmail_mailbox_client import (
    GmailMailboxClient,
    payload_to_part,
)

QUERY = MessageQuery(received_after=datetime(2024, 1, 1, 11, 52, tzinfo=timezone.utc))


def b64url(text: str) -> str:
    return base64.urlsafe_b64encode(text.encode()).decode().rstrip("=")


def http_error(status: int) -> HttpError:
    resp = Mock(status=status, reason="error")
    return HttpError(resp=resp, content=b'{"error": {"message": "boom"}}')


@pytest.fixture
def service():
    """创建模拟 Gmail service"""
    return MagicMock()


@pytest.fixture
def messages_api(service):
    return service.users.return_value.messages.return_value


@pytest.fixture
def client(service):
    return GmailMailboxClient(
        client_id="id",
        client_secret="secret",
        refresh_token="token",
        service_factory=lambda: service,
    )


class TestListMessageIds:
    """列出消息"""

    def test_first_page(self, client, messages_api):
        """测试第一页查询参数"""
        messages_api.list.return_value.execute.return_value = {
            "messages": [{"id": "a"}, {"id": "b"}],
            "nextPageToken": "next",
        }

        page = client.list_message_ids(QUERY)

        assert page.ids == ("a", "b")
        assert page.next_page_token == "next"
        messages_api.list.assert_called_once_with(
            userId="me", q=f"after:{QUERY.after_epoch}", maxResults=100
        )

    def test_page_token_passed(self, client, messages_api):
        """测试传递分页令牌"""
        messages_api.list.return_value.execute.return_value = {}

        page = client.list_message_ids(QUERY, page_token="next")

        assert page.ids == ()
        assert page.next_page_token is None
        assert messages_api.list.call_args.kwargs["pageToken"] == "next"

    def test_auth_error(self, client, messages_api):
        """测试 401 转换为认证错误"""
        messages_api.list.return_value.execute.side_effect = http_error(401)

        with pytest.raises(MailboxAuthenticationError):
            client.list_message_ids(QUERY)

    def test_server_error(self, client, messages_api):
        """测试 5xx 转换为连接错误"""
        messages_api.list.return_value.execute.side_effect = http_error(503)

        with pytest.raises(MailboxConnectionError):
            client.list_message_ids(QUERY)

    def test_refresh_error_resets_service(self, service, messages_api):
        """测试令牌刷新失败后重新构建 service"""
        factory = Mock(return_value=service)
        client = GmailMailboxClient("id", "secret", "token", service_factory=factory)
        messages_api.list.return_value.execute.side_effect = [
            RefreshError("invalid_grant"),
            {"messages": [{"id": "a"}]},
        ]

        with pytest.raises(MailboxAuthenticationError):
            client.list_message_ids(QUERY)
        assert client.list_message_ids(QUERY).ids == ("a",)
        assert factory.call_count == 2

    def test_missing_credentials(self):
        """测试缺少 OAuth 凭据"""
        client = GmailMailboxClient("", "", "", service_factory=MagicMock)

        with pytest.raises(MailboxAuthenticationError):
            client.list_message_ids(QUERY)


class TestGetMessage:
    """获取消息"""

    def test_maps_message(self, client, messages_api):
        """测试转换为 MailboxMessage"""
        messages_api.get.return_value.execute.return_value = {
            "id": "a",
            "internalDate": "1704110280000",
            "payload": {
                "mimeType": "multipart/alternative",
                "headers": [
                    {"name": "To", "value": "user@example.com"},
                    {"name": "Subject", "value": "Code"},
                ],
                "parts": [
                    {
                        "mimeType": "text/plain",
                        "headers": [{"name": "Content-Type", "value": 'text/plain; charset="UTF-8"'}],
                        "body": {"data": b64url("Code 123456")},
                    },
                    {
                        "mimeType": "application/pdf",
                        "filename": "invoice.pdf",
                        "body": {"attachmentId": "x"},
                    },
                ],
            },
        }

        message = client.get_message("a")

        messages_api.get.assert_called_once_with(userId="me", id="a", format="full")
        assert message.message_id == "a"
        assert message.get_header("subject") == "Code"
        assert message.internal_date == datetime(2024, 1, 1, 11, 58, tzinfo=timezone.utc)
        plain, attachment = message.payload.parts
        assert plain.transfer_encoding == "base64url"
        assert plain.charset == "UTF-8"
        assert attachment.is_attachment is True
        assert ContentDecoder().decode(message.payload).text == "Code 123456"

    def test_missing_internal_date(self, client, messages_api):
        """测试缺少内部时间"""
        messages_api.get.return_value.execute.return_value = {"id": "a", "payload": {}}

        assert client.get_message("a").internal_date is None


class TestPayloadToPart:
    """payload 转换"""

    def test_empty_body(self):
        """测试空正文没有传输编码"""
        part = payload_to_part({"mimeType": "text/plain", "body": {"size": 0}})

        assert part.body == ""
        assert part.transfer_encoding is None

    def test_nested_parts(self):
        """测试嵌套部件"""
        part = payload_to_part({
            "mimeType": "multipart/mixed",
            "parts": [{"mimeType": "multipart/alternative", "parts": [{"mimeType": "text/html"}]}],
        })

        assert part.parts[0].parts[0].mime_type == "text/html"


class TestCheckConnection:
    """连接检查"""

    def test_success(self, client, service):
        """测试连接成功"""
        service.users.return_value.getProfile.return_value.execute.return_value = {
            "emailAddress": "Me@Gmail.com"
        }

        status = client.check_connection()

        assert status.authenticated is True
        assert status.account == "me@gmail.com"

    def test_api_error(self, client, service):
        """测试 API 错误"""
        service.users.return_value.getProfile.return_value.execute.side_effect = http_error(403)

        status = client.check_connection()

        assert status.authenticated is False
        assert status.message.startswith("Gmail API error")

    def test_missing_credentials(self):
        """测试缺少凭据"""
        status = GmailMailboxClient("", "", "").check_connection()

        assert status.authenticated is False
        assert status.message == "Missing Google OAuth credentials."
