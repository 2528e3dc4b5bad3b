"""Gmail API 邮箱客户端实现"""

import logging
import re
import threading
from datetime import datetime, timezone
from typing import Any, Callable, Dict, List, Optional

from google.auth.exceptions import RefreshError, TransportError
from google.oauth2.credentials import Credentials
from googleapiclient.discovery import build
from googleapiclient.errors import HttpError

from domain.mail.services.mailbox_client import (
    ConnectionStatus,
    MailboxAuthenticationError,
    MailboxClient,
    MailboxConnectionError,
    MailboxError,
)
from domain.mail.value_objects.mailbox_message import MailboxMessage, MessageHeader
from domain.mail.value_objects.message_part import MessagePart
from domain.mail.value_objects.message_query import MessagePage, MessageQuery

_CHARSET = re.compile(r'charset\s*=\s*"?([^";\s]+)', re.IGNORECASE)

GMAIL_SERVER = "gmail.googleapis.com"


def payload_to_part(payload: Dict[str, Any]) -> MessagePart:
    """
    将 Gmail API 的 payload 转换为 MessagePart 树

    Gmail 返回的 body.data 为 base64url 编码。
    """
    children = tuple(payload_to_part(child) for child in payload.get("parts") or [])
    body = payload.get("body") or {}
    data = body.get("data") or ""

    charset = None
    for header in payload.get("headers") or []:
        if str(header.get("name", "")).lower() == "content-type":
            match = _CHARSET.search(str(header.get("value", "")))
            if match:
                charset = match.group(1)
            break

    return MessagePart(
        mime_type=str(payload.get("mimeType") or "text/plain"),
        body=data,
        transfer_encoding="base64url" if data else None,
        charset=charset,
        is_attachment=bool(payload.get("filename")),
        parts=children,
    )


class GmailMailboxClient(MailboxClient):
    """
    Gmail API 邮箱客户端

    使用 OAuth refresh token 换取访问令牌，只读访问邮箱。
    googleapiclient 的 service 对象不是线程安全的，每个线程单独构建一个。
    """

    SCOPES = ["https://www.googleapis.com/auth/gmail.readonly"]
    TOKEN_URI = "https://oauth2.googleapis.com/token"
    PAGE_SIZE = 100

    def __init__(
        self,
        client_id: str,
        client_secret: str,
        refresh_token: str,
        user_id: str = "me",
        service_factory: Optional[Callable[[], Any]] = None,
        logger: Optional[logging.Logger] = None,
    ):
        """
        Args:
            client_id: OAuth 客户端 ID
            client_secret: OAuth 客户端密钥
            refresh_token: 长期 refresh token
            user_id: Gmail 用户 ID（"me" 表示令牌所属账号）
            service_factory: 构建 Gmail service 的工厂（测试时注入）
            logger: 可选的日志记录器
        """
        self._client_id = client_id
        self._client_secret = client_secret
        self._refresh_token = refresh_token
        self._user_id = user_id
        self._service_factory = service_factory or self._build_service
        self._logger = logger or logging.getLogger(__name__)
        self._local = threading.local()

    @property
    def has_credentials(self) -> bool:
        return bool(self._client_id and self._client_secret and self._refresh_token)

    def list_message_ids(
        self, query: MessageQuery, page_token: Optional[str] = None
    ) -> MessagePage:
        params: Dict[str, Any] = {
            "userId": self._user_id,
            "q": f"after:{query.after_epoch}",
            "maxResults": self.PAGE_SIZE,
        }
        if page_token:
            params["pageToken"] = page_token

        service = self._get_service()
        response = self._execute(service.users().messages().list(**params))

        messages: List[Dict[str, Any]] = response.get("messages") or []
        ids = tuple(str(item["id"]) for item in messages if item.get("id"))
        return MessagePage(ids=ids, next_page_token=response.get("nextPageToken"))

    def get_message(self, message_id: str) -> MailboxMessage:
        service = self._get_service()
        response = self._execute(
            service.users().messages().get(
                userId=self._user_id, id=message_id, format="full"
            )
        )

        payload = response.get("payload") or {}
        headers = tuple(
            MessageHeader(name=str(h.get("name", "")), value=str(h.get("value", "")))
            for h in payload.get("headers") or []
        )

        internal_date = None
        raw_internal = response.get("internalDate")
        if raw_internal:
            try:
                internal_date = datetime.fromtimestamp(
                    int(raw_internal) / 1000, tz=timezone.utc
                )
            except (TypeError, ValueError):
                internal_date = None

        return MailboxMessage(
            message_id=str(response.get("id") or message_id),
            headers=headers,
            payload=payload_to_part(payload),
            internal_date=internal_date,
        )

    def check_connection(self) -> ConnectionStatus:
        if not self.has_credentials:
            return ConnectionStatus(
                authenticated=False,
                message="Missing Google OAuth credentials.",
            )

        try:
            service = self._get_service()
            profile = self._execute(service.users().getProfile(userId=self._user_id))
        except MailboxError as e:
            self._logger.warning(f"Gmail connection check failed: {e}")
            return ConnectionStatus(authenticated=False, message=f"Gmail API error: {e}")

        account = str(profile.get("emailAddress") or "").lower() or None
        return ConnectionStatus(
            authenticated=True,
            message="Gmail connected. Ready to search.",
            account=account,
        )

    def _build_service(self) -> Any:
        credentials = Credentials(
            token=None,
            refresh_token=self._refresh_token,
            token_uri=self.TOKEN_URI,
            client_id=self._client_id,
            client_secret=self._client_secret,
            scopes=self.SCOPES,
        )
        return build("gmail", "v1", credentials=credentials, cache_discovery=False)

    def _get_service(self) -> Any:
        service = getattr(self._local, "service", None)
        if service is None:
            if not self.has_credentials:
                raise MailboxAuthenticationError(
                    account=self._user_id,
                    message="Google OAuth credentials not configured",
                )
            service = self._service_factory()
            self._local.service = service
        return service

    def _reset_service(self) -> None:
        self._local.service = None

    def _execute(self, request: Any) -> Dict[str, Any]:
        """执行 API 请求并转换错误"""
        try:
            return request.execute()
        except HttpError as e:
            status = getattr(e.resp, "status", None)
            if status in (401, 403):
                self._reset_service()
                raise MailboxAuthenticationError(account=self._user_id, message=str(e))
            raise MailboxConnectionError(server=GMAIL_SERVER, message=str(e))
        except RefreshError as e:
            self._reset_service()
            raise MailboxAuthenticationError(account=self._user_id, message=str(e))
        except (TransportError, OSError) as e:
            self._reset_service()
            raise MailboxConnectionError(server=GMAIL_SERVER, message=str(e))
