"""邮件正文解码服务"""

import base64
import binascii
import logging
import quopri
from typing import List, Optional, Union

from bs4 import BeautifulSoup

from domain.mail.value_objects.email_content import EmailContent
from domain.mail.value_objects.message_part import MessagePart


def html_to_text(html: str) -> str:
    """
    HTML 去标签转为纯文本

    script/style 内容会被丢弃，标签之间以空格分隔，避免相邻单词粘连。
    """
    soup = BeautifulSoup(html, "html.parser")

    for tag in soup(["script", "style"]):
        tag.decompose()

    return soup.get_text(separator=" ").strip()


class ContentDecoder:
    """
    邮件正文解码服务

    深度优先遍历 MIME 部件树：
    - 按 Content-Transfer-Encoding（identity / base64 / base64url / quoted-printable）解码叶子部件
    - text/plain 追加到 text
    - text/html 追加到 html，同时去标签后追加到 text
    - 各部件内容以换行分隔

    无法识别或解码失败的传输编码回退为原始字节，不会让整封邮件失败。
    """

    DEFAULT_MAX_DEPTH = 32

    IDENTITY_ENCODINGS = {"", "7bit", "8bit", "binary", "identity"}

    def __init__(
        self,
        max_depth: int = DEFAULT_MAX_DEPTH,
        logger: Optional[logging.Logger] = None,
    ):
        """
        Args:
            max_depth: 最大遍历深度，超过的子树被忽略
            logger: 可选的日志记录器
        """
        self._max_depth = max_depth
        self._logger = logger or logging.getLogger(__name__)

    def decode(self, payload: MessagePart) -> EmailContent:
        """
        解码消息正文

        Args:
            payload: MIME 部件树根节点

        Returns:
            EmailContent(text, html)
        """
        texts: List[str] = []
        htmls: List[str] = []
        self._walk(payload, texts, htmls, depth=0)

        return EmailContent(
            text="\n".join(t for t in texts if t).strip(),
            html="\n".join(h for h in htmls if h).strip(),
        )

    def _walk(
        self,
        part: MessagePart,
        texts: List[str],
        htmls: List[str],
        depth: int,
    ) -> None:
        if depth > self._max_depth:
            self._logger.warning(
                f"MIME tree deeper than {self._max_depth} levels, ignoring subtree"
            )
            return

        if part.has_body and not part.is_attachment:
            subtype = part.subtype
            if part.mime_type.lower().startswith("text/") and subtype in ("plain", "html"):
                decoded = self.decode_body(part)
                if subtype == "html":
                    htmls.append(decoded)
                    texts.append(html_to_text(decoded))
                else:
                    texts.append(decoded)

        for child in part.parts:
            self._walk(child, texts, htmls, depth + 1)

    def decode_body(self, part: MessagePart) -> str:
        """按部件声明的传输编码和字符集解码正文为字符串"""
        raw = self.decode_transfer_encoding(part.body, part.transfer_encoding)
        charset = part.charset or "utf-8"
        try:
            return raw.decode(charset, errors="replace")
        except LookupError:
            return raw.decode("utf-8", errors="replace")

    def decode_transfer_encoding(
        self, body: Union[bytes, str], encoding: Optional[str]
    ) -> bytes:
        """
        按传输编码解码为原始字节

        Args:
            body: 编码后的正文
            encoding: 传输编码，None 视为 identity

        Returns:
            解码后的字节；编码未知或数据损坏时返回原始字节
        """
        data = body.encode("utf-8", errors="surrogateescape") if isinstance(body, str) else body
        normalized = (encoding or "").strip().lower()

        try:
            if normalized in self.IDENTITY_ENCODINGS:
                return data
            if normalized == "base64":
                return base64.b64decode(_pad_base64(b"".join(data.split())))
            if normalized == "base64url":
                return base64.urlsafe_b64decode(_pad_base64(b"".join(data.split())))
            if normalized == "quoted-printable":
                return quopri.decodestring(data)
        except (binascii.Error, ValueError) as e:
            self._logger.debug(f"Failed to decode {normalized} body, using raw bytes: {e}")
            return data

        self._logger.debug(f"Unknown transfer encoding '{encoding}', using raw bytes")
        return data


def _pad_base64(data: bytes) -> bytes:
    """补齐 base64 填充字符"""
    missing = -len(data) % 4
    return data + b"=" * missing if missing else data
