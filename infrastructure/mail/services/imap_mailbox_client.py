"""IMAP 邮箱客户端实现"""

import email
import imaplib
import logging
import ssl
import threading
import time
from contextlib import contextmanager
from datetime import datetime, timezone
from email.message import Message
from typing import Generator, List, Optional

from domain.mail.services.header_parser import decode_header_value
from domain.mail.services.mailbox_client import (
    ConnectionStatus,
    MailboxAuthenticationError,
    MailboxClient,
    MailboxConnectionError,
    MessageFetchError,
)
from domain.mail.value_objects.mailbox_message import MailboxMessage, MessageHeader
from domain.mail.value_objects.message_part import MessagePart
from domain.mail.value_objects.message_query import MessagePage, MessageQuery

_MONTHS = ("Jan", "Feb", "Mar", "Apr", "May", "Jun",
           "Jul", "Aug", "Sep", "Oct", "Nov", "Dec")


def imap_since_date(value: datetime) -> str:
    """IMAP SEARCH SINCE 日期格式（dd-Mon-yyyy，UTC，与 locale 无关）"""
    if value.tzinfo is not None:
        value = value.astimezone(timezone.utc)
    return f"{value.day:02d}-{_MONTHS[value.month - 1]}-{value.year}"


def message_to_part(msg: Message) -> MessagePart:
    """
    将 email.message.Message 转换为 MessagePart 树

    正文保持传输编码后的原样，由 ContentDecoder 解码。
    """
    disposition = str(msg.get("Content-Disposition", "")).lower()
    is_attachment = "attachment" in disposition

    if msg.is_multipart():
        children = msg.get_payload() or []
        return MessagePart(
            mime_type=msg.get_content_type(),
            is_attachment=is_attachment,
            parts=tuple(message_to_part(child) for child in children),
        )

    payload = msg.get_payload(decode=False)
    if isinstance(payload, str):
        try:
            body = payload.encode("ascii", errors="surrogateescape")
        except UnicodeEncodeError:
            body = payload.encode("utf-8", errors="replace")
    elif isinstance(payload, bytes):
        body = payload
    else:
        body = b""

    encoding = str(msg.get("Content-Transfer-Encoding", "")).strip().lower() or None

    return MessagePart(
        mime_type=msg.get_content_type(),
        body=body,
        transfer_encoding=encoding,
        charset=msg.get_content_charset(),
        is_attachment=is_attachment,
    )


class ImapMailboxClient(MailboxClient):
    """
    IMAP 邮箱客户端实现

    使用 Python 标准库 imaplib 访问邮箱，支持：
    - SSL/TLS 安全连接（端口 993）
    - 只读选择文件夹，使用 BODY.PEEK 获取，不改变已读状态
    - 以 UID 作为消息 ID，跨连接稳定
    - 复用单个连接（线程锁保护），断线后自动重连（指数退避）

    IMAP SEARCH SINCE 只精确到天，结果只有一页。
    """

    DAY_GRANULARITY_SEARCH = True
    MAX_RETRIES = 3
    BASE_DELAY = 1  # 秒
    DEFAULT_TIMEOUT = 30  # 秒

    def __init__(
        self,
        host: str,
        port: int,
        username: str,
        password: str,
        mailbox: str = "INBOX",
        timeout: float = DEFAULT_TIMEOUT,
        logger: Optional[logging.Logger] = None,
    ):
        """
        初始化 IMAP 邮箱客户端

        Args:
            host: IMAP 服务器
            port: IMAP 端口
            username: 登录用户名（邮箱地址）
            password: 登录密码或应用专用密码
            mailbox: 要搜索的文件夹
            timeout: 连接超时（秒）
            logger: 可选的日志记录器
        """
        self._host = host
        self._port = port
        self._username = username
        self._password = password
        self._mailbox = mailbox
        self._timeout = timeout
        self._logger = logger or logging.getLogger(__name__)

        self._lock = threading.Lock()
        self._imap: Optional[imaplib.IMAP4_SSL] = None

    @property
    def account(self) -> str:
        return self._username

    def list_message_ids(
        self, query: MessageQuery, page_token: Optional[str] = None
    ) -> MessagePage:
        """按 SINCE 日期搜索消息 UID"""
        since = imap_since_date(query.received_after)

        with self._session() as imap:
            status, data = imap.uid("SEARCH", None, "SINCE", since)
            if status != "OK":
                raise MailboxConnectionError(
                    server=self._host, message=f"SEARCH failed: {status}"
                )

        raw_ids = data[0].split() if data and data[0] else []
        ids = tuple(uid.decode() if isinstance(uid, bytes) else str(uid) for uid in raw_ids)
        self._logger.debug(f"IMAP search SINCE {since} returned {len(ids)} message(s)")
        return MessagePage(ids=ids, next_page_token=None)

    def get_message(self, message_id: str) -> MailboxMessage:
        """按 UID 获取完整消息（不标记已读）"""
        with self._session() as imap:
            status, data = imap.uid("FETCH", message_id, "(INTERNALDATE BODY.PEEK[])")

        if status != "OK" or not data:
            raise MessageFetchError(message_id, f"FETCH returned {status}")

        for item in data:
            if isinstance(item, tuple) and len(item) >= 2 and isinstance(item[1], bytes):
                return self._to_mailbox_message(message_id, item[0], item[1])

        raise MessageFetchError(message_id, "no message body in FETCH response")

    def check_connection(self) -> ConnectionStatus:
        """测试 IMAP 登录"""
        if not self._username or not self._password:
            return ConnectionStatus(
                authenticated=False,
                message="Missing IMAP credentials.",
            )

        try:
            imap = self._connect()
        except (MailboxConnectionError, MailboxAuthenticationError) as e:
            self._logger.warning(f"Connection test failed: {e}")
            return ConnectionStatus(authenticated=False, message=str(e))

        self._disconnect(imap)
        return ConnectionStatus(
            authenticated=True,
            message="IMAP connected. Ready to search.",
            account=self._username.lower(),
        )

    def close(self) -> None:
        """关闭复用的连接"""
        with self._lock:
            if self._imap is not None:
                self._disconnect(self._imap)
                self._imap = None

    @contextmanager
    def _session(self) -> Generator[imaplib.IMAP4_SSL, None, None]:
        """
        获取复用连接（线程互斥）

        连接中断时丢弃连接并抛出 MailboxConnectionError，下一次调用会重连。
        """
        with self._lock:
            if self._imap is None:
                self._imap = self._connect_with_retry()
                self._select(self._imap)
            try:
                yield self._imap
            except (imaplib.IMAP4.abort, OSError) as e:
                self._disconnect(self._imap)
                self._imap = None
                raise MailboxConnectionError(server=self._host, message=str(e))
            except imaplib.IMAP4.error as e:
                raise MailboxConnectionError(server=self._host, message=str(e))

    def _select(self, imap: imaplib.IMAP4_SSL) -> None:
        status, data = imap.select(self._quote_mailbox(self._mailbox), readonly=True)
        if status != "OK":
            self._disconnect(imap)
            self._imap = None
            raise MailboxConnectionError(
                server=self._host,
                message=f"Cannot select mailbox {self._mailbox}: {data}",
            )

    @staticmethod
    def _quote_mailbox(name: str) -> str:
        if " " in name and not name.startswith('"'):
            return f'"{name}"'
        return name

    def _connect_with_retry(self) -> imaplib.IMAP4_SSL:
        """
        带重试的连接逻辑（指数退避）

        Raises:
            MailboxConnectionError / MailboxAuthenticationError: 所有重试都失败
        """
        for attempt in range(self.MAX_RETRIES - 1):
            try:
                return self._connect()
            except (MailboxConnectionError, MailboxAuthenticationError) as e:
                delay = self.BASE_DELAY * (2**attempt)  # 1s, 2s
                self._logger.warning(
                    f"IMAP connection attempt {attempt + 1}/{self.MAX_RETRIES} "
                    f"failed, retry in {delay}s: {e}"
                )
                time.sleep(delay)

        # 最后一次失败直接抛出
        try:
            return self._connect()
        except (MailboxConnectionError, MailboxAuthenticationError):
            self._logger.error(
                f"IMAP connection failed after {self.MAX_RETRIES} retries "
                f"for {self._username}"
            )
            raise

    def _connect(self) -> imaplib.IMAP4_SSL:
        """
        建立 IMAP SSL 连接并登录

        Raises:
            MailboxConnectionError: 连接失败
            MailboxAuthenticationError: 认证失败
        """
        try:
            context = ssl.create_default_context()
            self._logger.debug(f"Connecting to {self._host}:{self._port}")
            imap = imaplib.IMAP4_SSL(
                host=self._host,
                port=self._port,
                ssl_context=context,
                timeout=self._timeout,
            )
        except Exception as e:
            raise MailboxConnectionError(
                server=f"{self._host}:{self._port}",
                message=str(e),
            )

        try:
            self._logger.debug(f"Authenticating as {self._username}")
            imap.login(self._username, self._password)
        except imaplib.IMAP4.error as e:
            self._disconnect(imap)
            raise MailboxAuthenticationError(account=self._username, message=str(e))

        self._logger.info(f"Successfully connected to {self._host}:{self._port}")
        return imap

    def _disconnect(self, imap: imaplib.IMAP4_SSL) -> None:
        """断开 IMAP 连接"""
        try:
            # close() 只能在 SELECTED 状态下调用
            if imap.state == "SELECTED":
                imap.close()
        except Exception as e:
            self._logger.debug(f"Error during close: {e}")

        try:
            imap.logout()
        except Exception as e:
            self._logger.debug(f"Error during logout: {e}")

    def _to_mailbox_message(
        self, message_id: str, envelope: bytes, raw: bytes
    ) -> MailboxMessage:
        msg = email.message_from_bytes(raw)

        headers: List[MessageHeader] = [
            MessageHeader(name=name, value=decode_header_value(str(value)))
            for name, value in msg.items()
        ]

        return MailboxMessage(
            message_id=message_id,
            headers=tuple(headers),
            payload=message_to_part(msg),
            internal_date=self._parse_internal_date(envelope),
        )

    @staticmethod
    def _parse_internal_date(envelope: bytes) -> Optional[datetime]:
        parsed = imaplib.Internaldate2tuple(envelope)
        if parsed is None:
            return None
        return datetime.fromtimestamp(time.mktime(parsed), tz=timezone.utc)
