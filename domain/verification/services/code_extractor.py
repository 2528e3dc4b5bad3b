"""验证码提取服务"""

import re
from typing import Set

# 6 位数字，或 XXXXX-XXXXX（字母数字）。
# 前面不能紧挨句点；后面的句点只允许是句末（不能接字母数字或另一个句点）
CODE_PATTERN = re.compile(
    r"\b(?<!\.)([0-9]{6}|[A-Za-z0-9]{5}-[A-Za-z0-9]{5})(?!\.[A-Za-z0-9.])\b",
    re.IGNORECASE | re.ASCII,
)

# XXXXX-XXXXX 格式至少包含的数字个数（两段合计）
MIN_ALPHANUMERIC_DIGITS = 4


def _is_code(token: str) -> bool:
    if "-" not in token:
        return True
    return sum(1 for ch in token if ch.isdigit()) >= MIN_ALPHANUMERIC_DIGITS


class CodeExtractor:
    """
    验证码提取服务

    在文本中查找两种格式的验证码：
    - 恰好 6 位 ASCII 数字
    - XXXXX-XXXXX，X 为字母或数字，10 个字符中至少 4 个数字

    结果为集合，同一文本中重复出现的验证码只计一次，不保证顺序。
    """

    pattern = CODE_PATTERN

    def extract(self, text: str) -> Set[str]:
        """
        从文本中提取验证码

        Args:
            text: 解码后的纯文本

        Returns:
            验证码集合
        """
        if not text:
            return set()

        return {
            match.group(1)
            for match in self.pattern.finditer(text)
            if _is_code(match.group(1))
        }
