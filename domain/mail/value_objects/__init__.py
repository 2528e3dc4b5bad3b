"""邮件值对象模块"""

from domain.mail.value_objects.email_content import EmailContent
from domain.mail.value_objects.mailbox_message import MailboxMessage, MessageHeader
from domain.mail.value_objects.message_part import MessagePart
from domain.mail.value_objects.message_query import MessagePage, MessageQuery

__all__ = [
    "EmailContent",
    "MailboxMessage",
    "MessageHeader",
    "MessagePart",
    "MessagePage",
    "MessageQuery",
]
