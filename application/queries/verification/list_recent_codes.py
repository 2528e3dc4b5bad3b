"""查询最近验证码的 Query"""

from dataclasses import dataclass


@dataclass
class ListRecentCodesQuery:
    """查询回溯窗口内所有收件人的验证码（管理员视图）

    Attributes:
        authorized: 调用方是否已通过会话认证
    """

    authorized: bool = False
