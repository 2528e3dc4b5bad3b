"""邮件领域服务模块"""

from domain.mail.services.content_decoder import ContentDecoder, html_to_text
from domain.mail.services.mailbox_client import (
    ConnectionStatus,
    MailboxAuthenticationError,
    MailboxClient,
    MailboxConnectionError,
    MailboxError,
    MessageFetchError,
)

__all__ = [
    "ConnectionStatus",
    "ContentDecoder",
    "MailboxAuthenticationError",
    "MailboxClient",
    "MailboxConnectionError",
    "MailboxError",
    "MessageFetchError",
    "html_to_text",
]
