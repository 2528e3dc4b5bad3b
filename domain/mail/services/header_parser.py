"""邮件头部解析工具"""

import re
from datetime import datetime, timezone
from email.header import decode_header
from email.utils import parsedate_to_datetime
from typing import Optional

_ANGLE_ADDRESS = re.compile(r"<([^>]+)>")


def decode_header_value(value: Optional[str]) -> str:
    """
    解码邮件头部值（处理 RFC 2047 编码）

    Args:
        value: 原始头部值

    Returns:
        解码后的字符串
    """
    if not value:
        return ""

    try:
        decoded_parts = decode_header(value)
    except Exception:
        return value

    result_parts = []
    for part, charset in decoded_parts:
        if isinstance(part, bytes):
            try:
                decoded = part.decode(charset or "utf-8", errors="replace")
            except (LookupError, UnicodeDecodeError):
                decoded = part.decode("utf-8", errors="replace")
            result_parts.append(decoded)
        else:
            result_parts.append(part)

    return "".join(result_parts)


def extract_email_address(value: Optional[str]) -> Optional[str]:
    """
    从 From/To 头部提取邮箱地址

    支持 "Name <user@example.com>" 和 "user@example.com" 两种格式，
    结果统一小写。多个收件人时取第一个尖括号中的地址。

    Returns:
        小写邮箱地址，头部为空时返回 None
    """
    if not value:
        return None

    decoded = decode_header_value(value).strip()
    if not decoded:
        return None

    match = _ANGLE_ADDRESS.search(decoded)
    if match:
        return match.group(1).strip().lower()
    return decoded.lower()


def parse_date_header(value: Optional[str]) -> Optional[datetime]:
    """
    解析 Date 头部为带时区的 UTC 时间

    Returns:
        UTC datetime，无法解析时返回 None
    """
    if not value:
        return None

    try:
        parsed = parsedate_to_datetime(value)
    except (TypeError, ValueError, IndexError):
        return None

    if parsed is None:
        return None
    if parsed.tzinfo is None:
        parsed = parsed.replace(tzinfo=timezone.utc)
    return parsed.astimezone(timezone.utc)
