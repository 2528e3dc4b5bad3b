"""邮件 MIME 部件值对象"""

from dataclasses import dataclass, field
from typing import Optional, Tuple, Union


@dataclass(frozen=True)
class MessagePart:
    """
    邮件 MIME 部件

    叶子部件携带 body，容器部件（multipart/*）携带子部件 parts。
    body 保持传输编码后的原样，由 ContentDecoder 按 transfer_encoding 解码。

    Attributes:
        mime_type: MIME 类型，如 "text/plain"、"multipart/alternative"
        body: 原始正文（未解码）
        transfer_encoding: Content-Transfer-Encoding（None 视为 identity）
        charset: 声明的字符集
        is_attachment: 是否为附件
        parts: 子部件
    """

    mime_type: str = "text/plain"
    body: Union[bytes, str] = b""
    transfer_encoding: Optional[str] = None
    charset: Optional[str] = None
    is_attachment: bool = False
    parts: Tuple["MessagePart", ...] = field(default_factory=tuple)

    @property
    def has_body(self) -> bool:
        """是否携带正文"""
        return len(self.body) > 0

    @property
    def subtype(self) -> str:
        """MIME 子类型（小写），如 plain、html"""
        _, _, subtype = self.mime_type.partition("/")
        return subtype.strip().lower()
