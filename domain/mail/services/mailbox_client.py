"""邮箱客户端接口"""

from abc import ABC, abstractmethod
from dataclasses import dataclass
from typing import Optional

from domain.mail.value_objects.mailbox_message import MailboxMessage
from domain.mail.value_objects.message_query import MessagePage, MessageQuery


@dataclass(frozen=True)
class ConnectionStatus:
    """
    邮箱连接检查结果

    Attributes:
        authenticated: 是否连接并认证成功
        message: 可展示给用户的说明
        account: 已认证的邮箱地址（如果后端能提供）
    """

    authenticated: bool
    message: str
    account: Optional[str] = None


class MailboxClient(ABC):
    """
    邮箱客户端接口

    同步引擎通过该接口访问邮箱，具体后端（Gmail API、IMAP）在基础设施层实现。
    所有方法都是阻塞调用，由调用方负责放到线程池中执行。
    """

    # 搜索只精确到天（会返回早于查询时间的消息），同步引擎需按时间再过滤一次
    DAY_GRANULARITY_SEARCH = False

    @abstractmethod
    def list_message_ids(
        self, query: MessageQuery, page_token: Optional[str] = None
    ) -> MessagePage:
        """
        列出满足查询条件的消息 ID（分页）

        Args:
            query: 查询条件（在某时间之后收到）
            page_token: 上一页返回的令牌，None 表示第一页

        Returns:
            一页消息 ID，next_page_token 为 None 时表示已取完

        Raises:
            MailboxConnectionError: 连接失败
            MailboxAuthenticationError: 认证失败
        """
        raise NotImplementedError

    @abstractmethod
    def get_message(self, message_id: str) -> MailboxMessage:
        """
        获取单封消息的头部和 MIME 结构

        Args:
            message_id: list_message_ids 返回的消息 ID

        Returns:
            MailboxMessage

        Raises:
            MailboxError: 获取失败
        """
        raise NotImplementedError

    @abstractmethod
    def check_connection(self) -> ConnectionStatus:
        """
        检查邮箱连接和凭据

        不抛出异常，失败时返回 authenticated=False。
        """
        raise NotImplementedError


class MailboxError(Exception):
    """邮箱访问错误基类"""


class MailboxConnectionError(MailboxError):
    """邮箱连接错误"""

    def __init__(self, server: str, message: str):
        self.server = server
        super().__init__(f"Failed to connect to {server} - {message}")


class MailboxAuthenticationError(MailboxError):
    """邮箱认证错误"""

    def __init__(self, account: str, message: str):
        self.account = account
        super().__init__(f"Authentication failed for {account} - {message}")


class MessageFetchError(MailboxError):
    """单封消息获取错误"""

    def __init__(self, message_id: str, message: str):
        self.message_id = message_id
        super().__init__(f"Failed to fetch message {message_id} - {message}")
