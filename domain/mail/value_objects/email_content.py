"""邮件内容值对象"""

from dataclasses import dataclass

from domain.common.base_value_object import BaseValueObject


@dataclass(frozen=True)
class EmailContent(BaseValueObject):
    """
    邮件内容值对象

    解码后的正文内容。HTML 部分去除标签后的文本也会并入 text，
    因此只看 text 不会漏掉仅存在于 HTML 中的内容。

    Attributes:
        text: 纯文本正文（含 HTML 去标签后的文本）
        html: 原始 HTML 正文
    """

    text: str = ""
    html: str = ""

    @property
    def is_empty(self) -> bool:
        """检查内容是否为空"""
        return not self.text and not self.html
