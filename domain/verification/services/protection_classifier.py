"""受保护验证码分类服务"""

import re

RESET_PHRASES = ("reset code", "password reset")

# 某类重置邮件模板的背景色特征
RESET_TEMPLATE_STYLE = re.compile(r"background-color\s*:\s*#f3f3f3", re.IGNORECASE)


class ProtectionClassifier:
    """
    受保护验证码分类服务

    启发式判断邮件是否属于敏感流程（如密码重置）。
    这只是尽力而为的信号，误判不影响验证码的提取和保存。
    """

    def classify(self, text: str, html: str) -> bool:
        """
        Args:
            text: 纯文本正文
            html: 原始 HTML 正文

        Returns:
            True 如果邮件被判定为受保护
        """
        combined = f"{text or ''} {html or ''}".lower()
        if any(phrase in combined for phrase in RESET_PHRASES):
            return True

        return bool(html) and RESET_TEMPLATE_STYLE.search(html) is not None
