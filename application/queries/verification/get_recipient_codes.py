"""按收件人查询验证码的 Query"""

from dataclasses import dataclass
from typing import Optional


@dataclass
class GetRecipientCodesQuery:
    """查询发往某个收件人的验证码

    受保护验证码只有在提供正确解锁密码时才返回内容。

    Attributes:
        email: 收件人地址
        unlock_password: 解锁密码（可选）
    """

    email: str
    unlock_password: Optional[str] = None
